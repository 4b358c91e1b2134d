"""Disposal tracking for a fetcher instance."""

from typing import Awaitable, Callable


class LifecycleGuard:
    """
    Tracks whether a fetcher has been disposed.

    The flag flips before any release work starts so dispatches racing with
    disposal observe it and no-op.
    """

    def __init__(self) -> None:
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    async def dispose(self, release: Callable[[], Awaitable[None]]) -> bool:
        """
        Mark disposed and run ``release`` once.

        Returns:
            True if this call performed the release, False if already disposed
        """
        if self._disposed:
            return False
        self._disposed = True
        await release()
        return True
