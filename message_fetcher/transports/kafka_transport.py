"""
Direct Kafka consumption.

Offsets are committed manually once a record is handled. A record whose
dispatch fails is fetched again: the consumer seeks back to its offset after
a short backoff.
"""

import asyncio
from typing import Any, Optional

from aiokafka import AIOKafkaConsumer, TopicPartition

from ..config import KafkaConfig, get_config
from ..exceptions import TransportError
from ..utils.json_utils import deserialize_value
from .base import MessageHandler, Transport


class KafkaStreamTransport(Transport):
    """Consumes one topic with a consumer group and dispatches each record."""

    def __init__(
        self,
        topic: str,
        consumer_group: str,
        log: Any,
        bootstrap_servers: Optional[str] = None,
        kafka_config: Optional[KafkaConfig] = None,
    ):
        self.topic = topic
        self.consumer_group = consumer_group
        self.log = log
        self._kafka_config = kafka_config or get_config().kafka
        self.bootstrap_servers = bootstrap_servers or self._kafka_config.bootstrap_servers

        self._consumer: Optional[AIOKafkaConsumer] = None
        self._task: Optional[asyncio.Task] = None
        self._running = False

    def _create_consumer(self) -> AIOKafkaConsumer:
        return AIOKafkaConsumer(
            self.topic,
            bootstrap_servers=self.bootstrap_servers,
            group_id=self.consumer_group,
            client_id=self._kafka_config.client_id,
            enable_auto_commit=False,
            auto_offset_reset=self._kafka_config.auto_offset_reset,
        )

    async def start(self, on_message: MessageHandler) -> None:
        consumer = self._create_consumer()
        try:
            await consumer.start()
        except Exception as e:
            raise TransportError(
                f"Could not connect to topic {self.topic}", cause=e, topic=self.topic
            )

        self._consumer = consumer
        self._running = True
        self._task = asyncio.create_task(self._consume(on_message))
        self.log.info(
            f"Connected to topic: {self.topic}",
            extra={"topic": self.topic, "consumer_group": self.consumer_group},
        )

    async def _consume(self, on_message: MessageHandler) -> None:
        while self._running:
            try:
                record = await self._consumer.getone()
            except Exception as e:
                self.log.error(
                    f"Streaming error for topic: {self.topic}. Suppressing.",
                    extra={"topic": self.topic, "error": str(e)},
                )
                await asyncio.sleep(self._kafka_config.redelivery_backoff_seconds)
                continue

            await self.handle_record(record, on_message)

    async def handle_record(self, record: Any, on_message: MessageHandler) -> bool:
        """
        Dispatch one consumer record.

        Returns:
            True if the record was handled and committed, False if it will be
            fetched again
        """
        partition = TopicPartition(record.topic, record.partition)

        try:
            message = deserialize_value(record.value)
        except ValueError as e:
            # Undecodable records would be redelivered forever; skip them.
            self.log.error(
                f"Could not decode record on topic: {self.topic}. Skipping.",
                extra={"topic": self.topic, "offset": record.offset, "error": str(e)},
            )
            await self._consumer.commit({partition: record.offset + 1})
            return True

        try:
            await on_message(message)
        except Exception as e:
            self.log.error(
                f"Processing error for topic: {self.topic}. Will redeliver.",
                extra={"topic": self.topic, "offset": record.offset, "error": str(e)},
            )
            await asyncio.sleep(self._kafka_config.redelivery_backoff_seconds)
            self._consumer.seek(partition, record.offset)
            return False

        await self._consumer.commit({partition: record.offset + 1})
        return True

    async def stop(self) -> None:
        self._running = False

        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._consumer is not None:
            consumer, self._consumer = self._consumer, None
            await consumer.stop()
            self.log.info(f"Disconnected from topic: {self.topic}", extra={"topic": self.topic})

    def __repr__(self) -> str:
        return f"KafkaStreamTransport(topic='{self.topic}', consumer_group='{self.consumer_group}')"
