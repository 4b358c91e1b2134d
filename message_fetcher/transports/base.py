"""
Transport interface.

A transport delivers one decoded message at a time to a callback. When the
callback raises, the transport makes a best-effort attempt to deliver the
message again later.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

MessageHandler = Callable[[Any], Awaitable[None]]


class Transport(ABC):
    """Abstract base class for message transports."""

    @abstractmethod
    async def start(self, on_message: MessageHandler) -> None:
        """
        Connect and begin delivering messages to ``on_message``.

        Returns once the transport is connected; delivery continues in the
        background until stop() is called.
        """

    @abstractmethod
    async def stop(self) -> None:
        """Stop delivering and release every underlying connection."""

    @property
    def running(self) -> bool:
        return getattr(self, "_running", False)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
