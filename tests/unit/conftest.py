"""
Unit test conftest.py - Component-specific fixtures.

This module provides fixtures specific to unit testing:
- Fetchers wired to an in-memory sink and a fake transport
- An event recorder subscribed to every fetcher event
"""

from typing import List

import pytest

from message_fetcher import EventType, Fetcher, FetcherEvent


class EventRecorder:
    """Collects every event a fetcher emits."""

    def __init__(self) -> None:
        self.events: List[FetcherEvent] = []

    def __call__(self, event: FetcherEvent) -> None:
        self.events.append(event)

    def kinds(self) -> List[EventType]:
        return [event.kind for event in self.events]

    def of(self, kind: EventType) -> List[FetcherEvent]:
        return [event for event in self.events if event.kind == kind]

    def attach(self, fetcher: Fetcher) -> "EventRecorder":
        for kind in EventType:
            fetcher.on(kind, self)
        return self


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def make_fetcher(sink, fake_transport):
    """Build fetchers that never touch Kafka or a queue."""

    def _make(options, **kwargs):
        kwargs.setdefault("sink", sink)
        kwargs.setdefault("transport", fake_transport)
        return Fetcher(options, **kwargs)

    return _make
