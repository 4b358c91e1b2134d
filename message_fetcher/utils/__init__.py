"""Utility helpers: logging and JSON serialization."""

from .json_utils import deserialize_value, dumps, loads, serialize_value
from .logger import ContextAwareLogger, configure_logging, get_logger

__all__ = [
    "ContextAwareLogger",
    "configure_logging",
    "get_logger",
    "dumps",
    "loads",
    "serialize_value",
    "deserialize_value",
]
