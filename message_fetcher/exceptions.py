"""
Exception hierarchy for the message fetcher.

Errors carry an optional machine-readable code. The presence of a code is
what the dispatcher uses to tell terminal failures (routed to the error
topic) from transient ones (propagated so the transport redelivers).
"""

import traceback
from enum import Enum
from typing import Any, Dict, Optional, Union


class ErrorCode(str, Enum):
    """Standardized error codes."""

    # Dispatch errors
    IDENTITY_MISSING = "104"
    UNPROCESSABLE = "422"

    # System errors (1xxx)
    CONFIGURATION_ERROR = "1003"

    # External service errors (5xxx)
    PRODUCE_FAILED = "5001"
    TRANSPORT_ERROR = "5002"


class FetcherError(Exception):
    """Base exception with an optional error code, context and error chaining."""

    def __init__(
        self,
        message: str,
        error_code: Optional[Union[ErrorCode, str]] = None,
        cause: Optional[Exception] = None,
        **context: Any,
    ):
        """
        Initialize the error.

        Args:
            message: Human-readable error message
            error_code: Machine-readable code; leave empty for transient failures
            cause: Original exception that caused this error
            **context: Additional context information
        """
        self.message = message
        self.error_code = error_code
        self.cause = cause
        self.context = context

        if cause:
            self.context["cause"] = {
                "type": type(cause).__name__,
                "message": str(cause),
                "traceback": traceback.format_exception(type(cause), cause, cause.__traceback__),
            }

        super().__init__(message)

    @property
    def code(self) -> Optional[str]:
        """The error code as a plain string, or None when uncoded."""
        if self.error_code is None:
            return None
        if isinstance(self.error_code, Enum):
            return self.error_code.value
        return str(self.error_code)

    def to_dict(self, include_cause: bool = False) -> Dict[str, Any]:
        """
        Convert to dict for error payloads.

        Args:
            include_cause: Include cause type and message

        Returns:
            Dictionary representation suitable for JSON serialization
        """
        result: Dict[str, Any] = {
            "error": {
                "code": self.code,
                "message": self.message,
                "context": {k: v for k, v in self.context.items() if k != "cause"},
            }
        }

        if include_cause and "cause" in self.context:
            result["error"]["cause"] = {
                "type": self.context["cause"]["type"],
                "message": self.context["cause"]["message"],
            }

        return result

    def add_context(self, **kwargs: Any) -> "FetcherError":
        """Add additional context to the error (fluent interface)."""
        self.context.update(kwargs)
        return self


class ConfigurationError(FetcherError, TypeError):
    """Invalid fetcher options, raised synchronously at construction."""

    def __init__(self, message: str, field: Optional[str] = None, **context: Any):
        if field:
            context["field"] = field
        self.field = field
        super().__init__(message, error_code=ErrorCode.CONFIGURATION_ERROR, **context)


class ProcessingError(FetcherError):
    """
    Raised by process functions to reject a message.

    With an error code the rejection is terminal and gets recorded on the
    error topic. Without one it is treated as transient.
    """


class IdentityMissingError(ProcessingError):
    """The message did not carry a usable identity."""

    def __init__(self, message: str = "UserId could not be extracted from message", **context):
        super().__init__(message, error_code=ErrorCode.IDENTITY_MISSING, **context)


class ProduceError(FetcherError):
    """Writing to an output topic failed."""

    def __init__(self, message: str, topic: str, cause: Optional[Exception] = None, **context):
        context["topic"] = topic
        super().__init__(message, error_code=ErrorCode.PRODUCE_FAILED, cause=cause, **context)


class TransportError(FetcherError):
    """Connecting to or releasing a transport failed."""

    def __init__(self, message: str, cause: Optional[Exception] = None, **context):
        super().__init__(message, error_code=ErrorCode.TRANSPORT_ERROR, cause=cause, **context)


def get_error_code(error: BaseException) -> Optional[str]:
    """
    Return the machine-readable code of an error, or None when it has none.

    Reads ``error_code`` and falls back to ``code`` so third-party exceptions
    carrying a code are classified the same way. Empty values count as absent.
    """
    code = getattr(error, "error_code", None)
    if code is None or code == "":
        code = getattr(error, "code", None)
    if code is None or code == "" or callable(code):
        return None
    if isinstance(code, Enum):
        return str(code.value)
    return str(code)


def is_coded(error: BaseException) -> bool:
    """Whether the error is terminal (carries a code)."""
    return get_error_code(error) is not None
