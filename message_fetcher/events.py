"""Dispatch observability events."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from .constants import EventType

Listener = Callable[["FetcherEvent"], None]


@dataclass(frozen=True)
class FetcherEvent:
    """Structured event emitted while a message is dispatched."""

    kind: EventType
    payload: Any = None
    error: Optional[BaseException] = None


class EventEmitter:
    """
    Listener registry for fetcher events.

    Emission is fire-and-forget: listeners run synchronously in registration
    order and a failing listener never reaches the dispatch path.
    """

    def __init__(self, logger: Optional[Any] = None) -> None:
        self._listeners: Dict[EventType, List[Listener]] = defaultdict(list)
        self._logger = logger or logging.getLogger(__name__)

    def on(self, kind: Union[EventType, str], listener: Listener) -> Listener:
        """Subscribe ``listener`` to ``kind``. Returns the listener for decorator use."""
        self._listeners[EventType(kind)].append(listener)
        return listener

    def off(self, kind: Union[EventType, str], listener: Listener) -> None:
        """Unsubscribe a listener; unknown listeners are ignored."""
        listeners = self._listeners.get(EventType(kind), [])
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, kind: Union[EventType, str]) -> int:
        return len(self._listeners.get(EventType(kind), []))

    def remove_all_listeners(self) -> None:
        self._listeners.clear()

    def emit(
        self,
        kind: EventType,
        payload: Any = None,
        error: Optional[BaseException] = None,
    ) -> None:
        event = FetcherEvent(kind=kind, payload=payload, error=error)
        for listener in list(self._listeners.get(kind, [])):
            try:
                listener(event)
            except Exception:
                # Observability hooks should not break dispatch.
                self._logger.debug(f"Event listener failed for {kind.value}", exc_info=True)
