"""
Before/after hooks around the user process function.

The chain is an explicit ordered list of handlers invoked around a single
core call:

    before hooks (identity, message)  ->  core (identity, message)
        ->  after hooks (result, identity, message)

Handlers may be plain callables or coroutine functions. Any failure stops the
chain and propagates to the caller.
"""

import inspect
from typing import Any, Awaitable, Callable, List, Optional, Union

Hook = Callable[..., Union[Any, Awaitable[Any]]]


async def _noop(*args: Any, **kwargs: Any) -> None:
    return None


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class HookChain:
    """Ordered pre/post handlers around a core callable."""

    def __init__(self, core: Hook):
        self._core: Hook = core
        self._before: List[Hook] = []
        self._after: List[Hook] = []

    def before(self, hook: Hook) -> Hook:
        """Register a handler that runs before the core, in registration order."""
        self._before.append(hook)
        return hook

    def after(self, hook: Hook) -> Hook:
        """Register a handler that runs after the core succeeds, in registration order."""
        self._after.append(hook)
        return hook

    async def run(self, identity: Optional[str], message: Any) -> Any:
        """
        Run the chain for one message.

        Args:
            identity: Extracted identity or None
            message: The decoded inbound message

        Returns:
            Whatever the core resolved with; after hooks observe it but do not
            replace it
        """
        for hook in list(self._before):
            await _maybe_await(hook(identity, message))

        result = await _maybe_await(self._core(identity, message))

        for hook in list(self._after):
            await _maybe_await(hook(result, identity, message))

        return result

    def reset(self) -> None:
        """Replace the core and every hook with no-ops."""
        self._core = _noop
        self._before = []
        self._after = []

    @property
    def before_hooks(self) -> List[Hook]:
        return list(self._before)

    @property
    def after_hooks(self) -> List[Hook]:
        return list(self._after)
