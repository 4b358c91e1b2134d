"""
Output sinks and the outcome producer.

Available sinks:
- ProducerSink: Abstract base class for all sinks
- KafkaProducerSink: aiokafka backed sink
- InMemoryProducerSink: Collects records in memory
"""

from .base import ProducedEnvelope, ProducerSink
from .kafka_output import KafkaProducerSink
from .memory_output import InMemoryProducerSink
from .producer import OutcomeProducer

__all__ = [
    "ProducedEnvelope",
    "ProducerSink",
    "KafkaProducerSink",
    "InMemoryProducerSink",
    "OutcomeProducer",
]
