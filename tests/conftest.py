"""
Test fixtures for the message fetcher.

This module provides shared fixtures: fetcher options, a logger satisfying
the capability contract, an in-memory sink, a fake transport and messages
carrying credential tokens.
"""

import uuid
from typing import Any, Dict
from unittest.mock import Mock

import pytest

from message_fetcher.config import reset_config
from message_fetcher.output import InMemoryProducerSink
from message_fetcher.utils.logger import reset_logger
from tests.fixtures.factories import FakeTransport, make_message, make_token


@pytest.fixture(autouse=True)
def clean_global_state():
    """Reset the configuration and logger singletons around each test."""
    reset_config()
    reset_logger()
    yield
    reset_config()
    reset_logger()


@pytest.fixture
def test_log() -> Mock:
    """Logger satisfying the info/warning/error capability contract."""
    return Mock(spec=["info", "warning", "error"])


@pytest.fixture
def schema_fix() -> Dict[str, Any]:
    return {
        "type": "record",
        "name": "SyncDownload",
        "fields": [
            {"name": "album_id", "type": "string"},
            {"name": "job_id", "type": "string"},
        ],
    }


@pytest.fixture
def process_mock() -> Mock:
    """Process function resolving with the message it received."""
    return Mock(side_effect=lambda identity, message: message)


@pytest.fixture
def options_fix(test_log, schema_fix, process_mock) -> Dict[str, Any]:
    """Minimal valid options: no identity, no production, direct transport."""
    return {
        "log": test_log,
        "topic": "test-topic",
        "consumer_group": "consumer-group",
        "schema": schema_fix,
        "process": process_mock,
    }


@pytest.fixture
def produce_options(options_fix, schema_fix) -> Dict[str, Any]:
    """Options with success production enabled, keyed on album_id."""
    return {
        **options_fix,
        "produce_kafka": True,
        "topic_produce": "test-produce-topic",
        "schema_produce": schema_fix,
        "key_attribute": "album_id",
    }


@pytest.fixture
def generate_error_message() -> Mock:
    return Mock(
        side_effect=lambda error, message: {
            "album_id": message.get("album_id"),
            "error_message": str(error),
            "error_code": getattr(error, "code", None),
        }
    )


@pytest.fixture
def produce_error_options(produce_options, schema_fix, generate_error_message) -> Dict[str, Any]:
    """Options with both success and error production enabled."""
    return {
        **produce_options,
        "produce_error_message": True,
        "topic_produce_error": "test-produce-topic-error",
        "schema_produce_error": schema_fix,
        "key_attribute_error": "album_id",
        "generate_error_message": generate_error_message,
    }


@pytest.fixture
def user_options(produce_error_options) -> Dict[str, Any]:
    """Options with identity extraction under the ``viewer`` key."""
    return {**produce_error_options, "has_user": True, "credentials_key": "viewer"}


@pytest.fixture
def sink() -> InMemoryProducerSink:
    return InMemoryProducerSink()


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def account_id() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def user_message(account_id) -> Dict[str, Any]:
    """Message carrying a valid credential token for ``account_id``."""
    return make_message(make_token({"account_id": account_id}))
