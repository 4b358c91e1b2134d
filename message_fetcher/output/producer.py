"""
Outcome producer.

Routes a processing outcome to the success topic and a terminal failure to
the error topic. Both paths are optional, and a failed write on either of
them is reported through events and logs only.
"""

from collections.abc import Mapping
from typing import Any, Optional

from ..constants import EventType
from ..events import EventEmitter
from ..exceptions import get_error_code
from ..options import FetcherOptions
from .base import ProducedEnvelope, ProducerSink


class OutcomeProducer:
    """Success and error production for one fetcher."""

    def __init__(self, options: FetcherOptions, sink: Optional[ProducerSink], emitter: EventEmitter):
        self.options = options
        self.sink = sink
        self.emitter = emitter
        self.log = options.log

    async def produce_success(self, outcome: Any) -> Optional[ProducedEnvelope]:
        """
        Produce the processing outcome on the success topic.

        The partition key is read from ``outcome[key_attribute]``. An outcome
        missing the attribute is still produced, without a key.

        Returns:
            The produced envelope, or None when production is disabled or failed
        """
        if not self.options.produce_kafka:
            return None

        topic = self.options.topic_produce
        key_attribute = self.options.key_attribute
        key = outcome.get(key_attribute) if isinstance(outcome, Mapping) else None

        if key is None:
            self.log.warning(
                f'"key_attribute" was defined but processor response did not contain it. '
                f"Will not produce message with key for partitioning on topic: {topic}",
                extra={
                    "key_attribute": key_attribute,
                    "response_keys": list(outcome.keys()) if isinstance(outcome, Mapping) else None,
                },
            )

        try:
            envelope = await self.sink.send(
                topic, None if key is None else str(key), outcome, self.options.schema_produce
            )
        except Exception as e:
            self.log.error(
                f"Error producing on topic: {topic}", extra={"topic": topic, "error": str(e)}
            )
            self.emitter.emit(EventType.PRODUCE_ERROR, error=e)
            return None

        self.emitter.emit(EventType.PRODUCE, envelope)
        return envelope

    async def produce_error(self, error: BaseException, message: Any) -> Optional[bool]:
        """
        Produce a generated error payload on the error topic.

        The payload comes from the configured ``generate_error_message`` and
        the partition key from ``message[key_attribute_error]``.

        Returns:
            None when error production is disabled, otherwise whether the
            error record was written
        """
        if not self.options.produce_error_message:
            return None

        topic = self.options.topic_produce_error
        code = get_error_code(error)

        try:
            payload = self.options.generate_error_message(error, message)
            key = message.get(self.options.key_attribute_error) if isinstance(message, Mapping) else None
            envelope = await self.sink.send(
                topic, None if key is None else str(key), payload, self.options.schema_produce_error
            )
        except Exception as e:
            self.log.error(
                f"Error on producing error message on topic: {topic}",
                extra={"topic": topic, "error_code": code, "error": str(e)},
            )
            self.emitter.emit(EventType.ERROR_PRODUCE_ERROR, error=e)
            return False

        self.log.info(
            f"Processing failed, error message produced on topic: {topic}",
            extra={"topic": topic, "error_code": code, "error_message": str(error)},
        )
        self.emitter.emit(EventType.ERROR_PRODUCED, envelope)
        return True
