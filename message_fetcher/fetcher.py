"""
Fetcher: consume stream messages or queue jobs alike and hand them to a
process function.

The fetcher wires together option validation, the transport, the outcome
producer, the before/after hook chain, the event emitter and the dispatcher.
"""

from typing import Any, Mapping, Optional, Union

from .config import AppConfig, get_config
from .constants import EventType
from .dispatcher import Dispatcher
from .events import EventEmitter, Listener
from .exceptions import TransportError
from .hooks import Hook, HookChain
from .lifecycle import LifecycleGuard
from .options import FetcherOptions, validate_options
from .output import KafkaProducerSink, OutcomeProducer, ProducerSink
from .transports import Transport, create_transport


class Fetcher:
    """
    Message fetcher.

    Usage:
        async def process(identity, message):
            ...
            return {"album_id": message["album_id"], "status": "done"}

        fetcher = Fetcher({
            "topic": "sync-download",
            "consumer_group": "sync-download-workers",
            "schema": SYNC_DOWNLOAD_SCHEMA,
            "process": process,
            "log": get_logger(),
        })
        await fetcher.init()
        ...
        await fetcher.dispose()
    """

    def __init__(
        self,
        options: Union[FetcherOptions, Mapping[str, Any]],
        *,
        sink: Optional[ProducerSink] = None,
        transport: Optional[Transport] = None,
        app_config: Optional[AppConfig] = None,
    ):
        self.options = validate_options(options)
        self.app_config = app_config or get_config()
        self.log = self.options.log

        if sink is None and self.options.produces_anything:
            sink = KafkaProducerSink(
                bootstrap_servers=self.options.bootstrap_servers,
                kafka_config=self.app_config.kafka,
            )
        self.sink = sink
        self.transport = transport or create_transport(self.options, self.app_config)

        self.guard = LifecycleGuard()
        self.emitter = EventEmitter()
        self.hooks = HookChain(self.options.process)
        self.producer = OutcomeProducer(self.options, self.sink, self.emitter)
        self.dispatcher = Dispatcher(
            options=self.options,
            hooks=self.hooks,
            producer=self.producer,
            emitter=self.emitter,
            guard=self.guard,
        )

    @property
    def disposed(self) -> bool:
        return self.guard.disposed

    async def init(self) -> "Fetcher":
        """Connect the sink and the transport and start fetching."""
        if self.sink is not None:
            await self.sink.start()
        try:
            await self.transport.start(self.dispatch)
        except Exception:
            if self.sink is not None:
                await self.sink.stop()
            raise

        self.log.info(
            f"Fetcher started for topic: {self.options.topic}",
            extra={
                "topic": self.options.topic,
                "consumer_group": self.options.consumer_group,
                "transport_mode": self.options.transport_mode.value,
            },
        )
        return self

    async def dispatch(self, message: Any) -> None:
        """Process one decoded message. See Dispatcher.dispatch()."""
        await self.dispatcher.dispatch(message)

    def before(self, hook: Hook) -> Hook:
        """Register a hook that runs before the process function."""
        return self.hooks.before(hook)

    def after(self, hook: Hook) -> Hook:
        """Register a hook that runs after the process function succeeds."""
        return self.hooks.after(hook)

    def on(self, kind: Union[EventType, str], listener: Listener) -> Listener:
        """Subscribe to a fetcher event."""
        return self.emitter.on(kind, listener)

    def off(self, kind: Union[EventType, str], listener: Listener) -> None:
        """Unsubscribe from a fetcher event."""
        self.emitter.off(kind, listener)

    async def dispose(self) -> None:
        """Stop fetching and release the transport and the sink. Safe to call twice."""
        await self.guard.dispose(self._release)

    async def _release(self) -> None:
        errors = []
        try:
            for resource in (self.transport, self.sink):
                if resource is None:
                    continue
                try:
                    await resource.stop()
                except Exception as e:
                    self.log.error(
                        f"Error stopping {resource!r} for topic: {self.options.topic}",
                        extra={"topic": self.options.topic, "error": str(e)},
                    )
                    errors.append(e)
        finally:
            self.emitter.remove_all_listeners()
            self.hooks.reset()

        if errors:
            raise TransportError("Fetcher could not be disposed cleanly", cause=errors[0])

        self.log.info(f"Fetcher disposed for topic: {self.options.topic}")

    async def __aenter__(self) -> "Fetcher":
        return await self.init()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.dispose()


async def create_fetcher(
    options: Union[FetcherOptions, Mapping[str, Any]], **kwargs: Any
) -> Fetcher:
    """Construct a Fetcher and initialize it."""
    fetcher = Fetcher(options, **kwargs)
    return await fetcher.init()
