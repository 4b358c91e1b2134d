"""
Per-message dispatch.

Owns the message lifecycle:

    received -> (identity checked) -> processing -> succeeded | failed

A success is handed to the success topic; a failure is classified by the
presence of an error code. Coded failures are terminal and recorded on the
error topic; uncoded failures are re-raised so the transport redelivers the
message.
"""

from dataclasses import dataclass
from typing import Any, Optional

from .constants import EventType
from .events import EventEmitter
from .exceptions import IdentityMissingError, get_error_code
from .hooks import HookChain
from .identity import extract_identity
from .lifecycle import LifecycleGuard
from .options import FetcherOptions
from .output.producer import OutcomeProducer


@dataclass
class ProcessingContext:
    """State of a single dispatch; created per message and never shared."""

    message: Any
    identity: Optional[str]
    dispatcher: "Dispatcher"


class Dispatcher:
    """Runs the dispatch pipeline for one fetcher."""

    def __init__(
        self,
        options: FetcherOptions,
        hooks: HookChain,
        producer: OutcomeProducer,
        emitter: EventEmitter,
        guard: LifecycleGuard,
    ):
        self.options = options
        self.hooks = hooks
        self.producer = producer
        self.emitter = emitter
        self.guard = guard
        self.log = options.log

    async def dispatch(self, message: Any) -> None:
        """
        Dispatch one inbound message.

        Resolves when the message is handled (processed, or terminally failed
        and recorded). Raises the processing error when the failure is
        transient, signalling the transport to redeliver.
        """
        if self.guard.disposed:
            return

        self.emitter.emit(EventType.MESSAGE_RECEIVED, message)

        context = ProcessingContext(message=message, identity=None, dispatcher=self)

        if self.options.has_user:
            context.identity = extract_identity(
                message,
                self.options.credentials_key,
                topic=self.options.topic,
                log=self.log,
                token_kind=self.options.credentials_token_kind,
            )
            if context.identity is None:
                await self._handle_error(IdentityMissingError(topic=self.options.topic), context)
                return

        try:
            outcome = await self.hooks.run(context.identity, message)
        except Exception as e:
            await self._handle_error(e, context)
            return

        self.emitter.emit(EventType.PROCESSED, outcome)
        await self.producer.produce_success(outcome)

    async def _handle_error(self, error: Exception, context: ProcessingContext) -> None:
        """Record a coded error on the error topic, re-raise an uncoded one."""
        code = get_error_code(error)

        if code is None:
            self.log.error(
                f"Error occurred processing message on topic {self.options.topic}, "
                "failing it for redelivery",
                extra={"topic": self.options.topic, "error": repr(error)},
                exc_info=error,
            )
            raise error

        self.log.warning(
            f"Unresolvable error processing message on topic {self.options.topic}",
            extra={"topic": self.options.topic, "error_code": code, "error": str(error)},
        )
        produced = await self.producer.produce_error(error, context.message)

        if produced is False and self.options.rethrow_on_error_produce_failure:
            raise error
