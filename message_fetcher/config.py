"""
Centralized configuration management for the message fetcher.

Process-wide settings (log level, Kafka and queue connectivity) are read from
environment variables and validated using Pydantic. Per-fetcher options live
in :mod:`message_fetcher.options`.
"""

import os
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .constants import EnvironmentVariable, LogLevel


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.LOG_LEVEL.value, LogLevel.INFO.value),
        description="Logging level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string",
    )

    @field_validator("level")
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {level.value for level in LogLevel}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class KafkaConfig(BaseModel):
    """Kafka connectivity for consuming and producing."""

    bootstrap_servers: str = Field(
        default_factory=lambda: os.getenv(
            EnvironmentVariable.KAFKA_BOOTSTRAP_SERVERS.value, "localhost:9092"
        ),
        description="Comma separated list of Kafka brokers",
    )
    client_id: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.KAFKA_CLIENT_ID.value, "message-fetcher"),
        description="Client id reported to the brokers",
    )
    auto_offset_reset: str = Field(default="earliest", description="Where new consumer groups start")
    redelivery_backoff_seconds: float = Field(
        default=1.0, ge=0, description="Pause before a failed record is fetched again"
    )


class QueueConfig(BaseModel):
    """Azure Storage Queue settings used in bridging mode."""

    connection_string: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.AZURE_STORAGE_CONNECTION.value, ""),
        description="Azure Storage connection string (empty when the queue URL carries a SAS)",
    )
    visibility_timeout: int = Field(
        default=30, description="Seconds a received message stays hidden from other consumers"
    )
    poll_interval_seconds: float = Field(
        default=1.0, description="Pause between polls when the queue is empty"
    )
    max_messages_per_poll: int = Field(
        default=32, ge=1, le=32, description="Upper bound for a single receive call"
    )


class AppConfig(BaseModel):
    """Main application configuration."""

    environment: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.APP_ENV.value, "development"),
        description="Application environment",
    )
    debug: bool = Field(
        default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true",
        description="Debug mode",
    )

    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    kafka: KafkaConfig = Field(default_factory=KafkaConfig, description="Kafka configuration")
    queue: QueueConfig = Field(default_factory=QueueConfig, description="Queue configuration")

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create configuration from environment variables."""
        return cls()


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def set_config(config: AppConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _config
    _config = None
