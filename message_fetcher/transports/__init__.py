"""
Message transports.

Available transports:
- KafkaStreamTransport: consume a Kafka topic directly
- QueueTransport: consume an Azure Storage Queue with bounded concurrency
- QueueBridgeTransport: relay a Kafka topic into a queue and consume the queue
"""

from typing import Optional

from ..config import AppConfig, get_config
from ..constants import TransportMode
from ..options import FetcherOptions
from .base import MessageHandler, Transport
from .kafka_transport import KafkaStreamTransport
from .queue_transport import QueueBridgeTransport, QueueTransport, create_queue_client


def create_transport(options: FetcherOptions, app_config: Optional[AppConfig] = None) -> Transport:
    """Build the transport selected by ``options.transport_mode``."""
    app_config = app_config or get_config()

    stream = KafkaStreamTransport(
        topic=options.topic,
        consumer_group=options.consumer_group,
        log=options.log,
        bootstrap_servers=options.bootstrap_servers,
        kafka_config=app_config.kafka,
    )

    if options.transport_mode is TransportMode.DIRECT:
        return stream

    queue = QueueTransport(
        queue_url=options.queue_url,
        concurrent_ops_limit=options.concurrent_ops_limit,
        log=options.log,
        queue_config=app_config.queue,
    )
    return QueueBridgeTransport(stream=stream, queue=queue)


__all__ = [
    "MessageHandler",
    "Transport",
    "KafkaStreamTransport",
    "QueueTransport",
    "QueueBridgeTransport",
    "create_queue_client",
    "create_transport",
]
