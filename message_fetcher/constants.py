"""
Constants and enums for the message fetcher.

This module centralizes the magic strings used throughout the package
to ensure consistency and maintainability.
"""

from enum import Enum


class EventType(str, Enum):
    """Observability events emitted while dispatching a message."""

    MESSAGE_RECEIVED = "message_received"
    PROCESSED = "processed"
    PRODUCE = "produce"
    PRODUCE_ERROR = "produce_error"
    ERROR_PRODUCED = "error_produced"
    ERROR_PRODUCE_ERROR = "error_produce_error"


class TransportMode(str, Enum):
    """How messages reach the dispatcher."""

    DIRECT = "direct"  # consume the stream topic directly
    BRIDGE = "bridge"  # relay the stream into a queue, consume the queue


class EnvironmentVariable(str, Enum):
    """Environment variable names read by the configuration layer."""

    APP_ENV = "APP_ENV"
    LOG_LEVEL = "LOG_LEVEL"
    KAFKA_BOOTSTRAP_SERVERS = "KAFKA_BOOTSTRAP_SERVERS"
    KAFKA_CLIENT_ID = "KAFKA_CLIENT_ID"
    AZURE_STORAGE_CONNECTION = "AZURE_STORAGE_CONNECTION_STRING"


class LogLevel(str, Enum):
    """Valid logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# Credential lookup inside a message: message[credentials_key]["credentials"][kind]["base64"]
CREDENTIALS_ATTRIBUTE = "credentials"
DEFAULT_TOKEN_KIND = "Jwt"
TOKEN_ENCODING = "base64"
SUBJECT_ID_CLAIM = "account_id"
