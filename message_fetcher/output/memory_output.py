"""In-memory producer sink for local runs and tests."""

from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from ..exceptions import ProduceError
from .base import ProducedEnvelope, ProducerSink


class InMemoryProducerSink(ProducerSink):
    """Collects produced records per topic instead of writing them anywhere."""

    def __init__(self) -> None:
        self.records: List[ProducedEnvelope] = []
        self.started = False
        self.stopped = False
        self._failing_topics: Dict[str, Exception] = {}

    def fail_topic(self, topic: str, error: Optional[Exception] = None) -> None:
        """Make every send to ``topic`` fail with ProduceError."""
        self._failing_topics[topic] = error or RuntimeError("broker unavailable")

    async def start(self) -> None:
        self.started = True

    async def send(
        self,
        topic: str,
        key: Optional[str],
        value: Any,
        schema: Optional[Mapping] = None,
    ) -> ProducedEnvelope:
        if topic in self._failing_topics:
            raise ProduceError(
                f"Failed to produce on topic {topic}",
                topic=topic,
                cause=self._failing_topics[topic],
            )
        envelope = ProducedEnvelope(topic=topic, key=key, value=value)
        self.records.append(envelope)
        return envelope

    async def stop(self) -> None:
        self.stopped = True

    def for_topic(self, topic: str) -> List[ProducedEnvelope]:
        return [record for record in self.records if record.topic == topic]
