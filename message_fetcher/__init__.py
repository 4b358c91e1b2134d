"""
Message fetcher.

Consumes stream messages (directly, or bridged through a queue), runs a
user-supplied process function on each of them and routes the outcome to a
success topic or, for terminal failures, to an error topic.
"""

from .constants import EventType, TransportMode
from .dispatcher import Dispatcher, ProcessingContext
from .events import EventEmitter, FetcherEvent
from .exceptions import (
    ConfigurationError,
    ErrorCode,
    FetcherError,
    IdentityMissingError,
    ProcessingError,
    ProduceError,
    TransportError,
    get_error_code,
    is_coded,
)
from .fetcher import Fetcher, create_fetcher
from .hooks import HookChain
from .identity import extract_identity
from .lifecycle import LifecycleGuard
from .options import FetcherOptions, validate_options
from .output import InMemoryProducerSink, KafkaProducerSink, OutcomeProducer, ProducedEnvelope, ProducerSink

__all__ = [
    "Fetcher",
    "create_fetcher",
    "FetcherOptions",
    "validate_options",
    "Dispatcher",
    "ProcessingContext",
    "HookChain",
    "LifecycleGuard",
    "EventEmitter",
    "FetcherEvent",
    "EventType",
    "TransportMode",
    "extract_identity",
    "OutcomeProducer",
    "ProducedEnvelope",
    "ProducerSink",
    "KafkaProducerSink",
    "InMemoryProducerSink",
    "FetcherError",
    "ConfigurationError",
    "ProcessingError",
    "IdentityMissingError",
    "ProduceError",
    "TransportError",
    "ErrorCode",
    "get_error_code",
    "is_coded",
]
