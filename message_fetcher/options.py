"""
Fetcher options and their validation.

FetcherOptions is captured once at construction and never mutated. Every
field required by an enabled toggle is checked by validate_options() before
a fetcher is usable.
"""

import inspect
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional, Union

from .constants import DEFAULT_TOKEN_KIND, TransportMode
from .exceptions import ConfigurationError

LOG_METHODS = ("info", "warning", "error")


class WarnAliasLog:
    """Adapts a log exposing ``warn`` instead of ``warning``."""

    def __init__(self, log: Any):
        self.log = log

    def warning(self, msg, **kwargs):
        self.log.warn(msg, **kwargs)

    def __getattr__(self, name: str) -> Any:
        return getattr(self.log, name)


@dataclass(frozen=True)
class FetcherOptions:
    """Immutable dispatch configuration."""

    topic: str
    consumer_group: str
    schema: Mapping
    process: Callable[..., Any]
    log: Any

    # Identity extraction
    has_user: bool = False
    credentials_key: Optional[str] = None
    credentials_token_kind: str = DEFAULT_TOKEN_KIND

    # Bridging mode
    use_queue_bridge: bool = False
    queue_url: Optional[str] = None
    concurrent_ops_limit: Optional[int] = None

    # Success output
    produce_kafka: bool = False
    topic_produce: Optional[str] = None
    schema_produce: Optional[Mapping] = None
    key_attribute: Optional[str] = None

    # Error output
    produce_error_message: bool = False
    topic_produce_error: Optional[str] = None
    schema_produce_error: Optional[Mapping] = None
    key_attribute_error: Optional[str] = None
    generate_error_message: Optional[Callable[[BaseException, Dict[str, Any]], Any]] = None
    rethrow_on_error_produce_failure: bool = False

    # Overrides KafkaConfig.bootstrap_servers when set
    bootstrap_servers: Optional[str] = None

    @classmethod
    def from_dict(cls, config_dict: Mapping) -> "FetcherOptions":
        """Create options from a mapping, ignoring keys the class does not accept."""
        valid_params = set(inspect.signature(cls).parameters.keys())
        filtered = {k: v for k, v in config_dict.items() if k in valid_params}
        missing = [
            name
            for name, param in inspect.signature(cls).parameters.items()
            if param.default is inspect.Parameter.empty and name not in filtered
        ]
        if missing:
            raise ConfigurationError(f'"{missing[0]}" must be defined', field=missing[0])
        return cls(**filtered)

    @property
    def transport_mode(self) -> TransportMode:
        """Delivery strategy selected by the options."""
        return TransportMode.BRIDGE if self.use_queue_bridge else TransportMode.DIRECT

    @property
    def produces_anything(self) -> bool:
        return self.produce_kafka or self.produce_error_message


def _is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and len(value) > 0


def _require_string(options: FetcherOptions, field: str) -> None:
    if not _is_non_empty_string(getattr(options, field)):
        raise ConfigurationError(f'"{field}" must be defined', field=field)


def _require_mapping(options: FetcherOptions, field: str) -> None:
    if not isinstance(getattr(options, field), Mapping):
        raise ConfigurationError(f'"{field}" must be defined', field=field)


def _require_callable(options: FetcherOptions, field: str) -> None:
    if not callable(getattr(options, field)):
        raise ConfigurationError(f'"{field}" must be defined', field=field)


def validate_options(options: Union[FetcherOptions, Mapping, None]) -> FetcherOptions:
    """
    Validate fetcher options.

    Args:
        options: A FetcherOptions instance or a mapping of option names to values

    Returns:
        The validated FetcherOptions

    Raises:
        ConfigurationError: If a required or conditionally required option is
            missing or has the wrong type
    """
    if options is None or not isinstance(options, (FetcherOptions, Mapping)):
        raise ConfigurationError("Options must be defined")

    if isinstance(options, Mapping):
        options = FetcherOptions.from_dict(options)

    _require_string(options, "topic")
    _require_string(options, "consumer_group")
    _require_mapping(options, "schema")
    _require_callable(options, "process")

    if options.log is None:
        raise ConfigurationError('"log" is required', field="log")
    if not callable(getattr(options.log, "warning", None)) and callable(
        getattr(options.log, "warn", None)
    ):
        options = replace(options, log=WarnAliasLog(options.log))
    if not all(callable(getattr(options.log, method, None)) for method in LOG_METHODS):
        raise ConfigurationError(
            f'"log" must have methods: {", ".join(LOG_METHODS)} (or warn)', field="log"
        )

    if options.has_user:
        _require_string(options, "credentials_key")
        _require_string(options, "credentials_token_kind")

    if options.use_queue_bridge:
        _require_string(options, "queue_url")
        limit = options.concurrent_ops_limit
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ConfigurationError(
                '"concurrent_ops_limit" must be defined', field="concurrent_ops_limit"
            )

    if options.produce_kafka:
        _require_string(options, "topic_produce")
        _require_mapping(options, "schema_produce")
        _require_string(options, "key_attribute")

    if options.produce_error_message:
        _require_string(options, "topic_produce_error")
        _require_mapping(options, "schema_produce_error")
        _require_string(options, "key_attribute_error")
        _require_callable(options, "generate_error_message")

    return options
