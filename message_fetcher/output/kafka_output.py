"""
Kafka producer sink.

Writes JSON encoded records with UTF-8 string keys through aiokafka.
"""

from collections.abc import Mapping
from typing import Any, Optional

from aiokafka import AIOKafkaProducer
from aiokafka.errors import KafkaError

from ..config import KafkaConfig, get_config
from ..exceptions import ProduceError
from ..utils.json_utils import serialize_value
from ..utils.logger import get_logger
from .base import ProducedEnvelope, ProducerSink


class KafkaProducerSink(ProducerSink):
    """
    Producer sink backed by AIOKafkaProducer.

    The producer is created on start() (or lazily on the first send) and
    shared by every record this sink writes.
    """

    def __init__(
        self,
        bootstrap_servers: Optional[str] = None,
        kafka_config: Optional[KafkaConfig] = None,
    ):
        self._kafka_config = kafka_config or get_config().kafka
        self.bootstrap_servers = bootstrap_servers or self._kafka_config.bootstrap_servers
        self._producer: Optional[AIOKafkaProducer] = None
        self.logger = get_logger()

    async def start(self) -> None:
        if self._producer is not None:
            return
        producer = AIOKafkaProducer(
            bootstrap_servers=self.bootstrap_servers,
            client_id=self._kafka_config.client_id,
            value_serializer=serialize_value,
            key_serializer=lambda k: k.encode("utf-8"),
        )
        await producer.start()
        self._producer = producer
        self.logger.info(
            "Kafka producer started", extra={"bootstrap_servers": self.bootstrap_servers}
        )

    async def send(
        self,
        topic: str,
        key: Optional[str],
        value: Any,
        schema: Optional[Mapping] = None,
    ) -> ProducedEnvelope:
        if self._producer is None:
            await self.start()

        try:
            await self._producer.send_and_wait(
                topic, value=value, key=str(key) if key is not None else None
            )
        except KafkaError as e:
            raise ProduceError(
                f"Failed to produce on topic {topic}: {e}",
                topic=topic,
                cause=e,
                schema_name=(schema or {}).get("name"),
            )

        return ProducedEnvelope(topic=topic, key=key, value=value)

    async def stop(self) -> None:
        if self._producer is None:
            return
        producer, self._producer = self._producer, None
        await producer.stop()
        self.logger.info("Kafka producer stopped")

    def __repr__(self) -> str:
        return f"KafkaProducerSink(bootstrap_servers='{self.bootstrap_servers}')"
