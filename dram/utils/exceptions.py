"""
Dram Custom Exceptions
======================

Exception hierarchy for Dram with error codes, context information,
and user-friendly error messages.
"""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for categorizing exceptions."""

    # Configuration errors (C001-C099)
    CONFIG_INVALID = "C001"
    CONFIG_MISSING = "C002"
    CONFIG_PARSE_ERROR = "C003"

    # Feed ingestion errors (F001-F099)
    FEED_INVALID_URL = "F001"
    FEED_FETCH_TIMEOUT = "F002"
    FEED_PARSE_ERROR = "F003"
    FEED_NETWORK_ERROR = "F004"
    FEED_HTTP_ERROR = "F005"

    # Seen-store errors (S001-S099)
    STORE_WRITE_FAILED = "S002"
    STORE_LOCKED = "S003"

    # Classification errors (A001-A099)
    AI_PROCESSING_ERROR = "A001"
    AI_INVALID_RESPONSE = "A002"
    AI_TIMEOUT = "A003"
    AI_PROVIDER_UNAVAILABLE = "A004"


class DramError(Exception):
    """Base exception for all Dram errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        recoverable: bool = False,
    ):
        """Initialize Dram error.

        Args:
            message: Technical error message for logging
            error_code: Categorized error code
            context: Additional context information
            user_message: User-friendly error message
            recoverable: Whether the run can continue after this error
        """
        super().__init__(message)
        self.error_code = error_code
        self.context = context or {}
        self.user_message = user_message or message
        self.recoverable = recoverable

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code.value if self.error_code else None,
            "error_message": str(self),
            "user_message": self.user_message,
            "context": self.context,
            "recoverable": self.recoverable,
        }

    def __str__(self) -> str:
        """String representation with error code."""
        if self.error_code:
            return f"[{self.error_code.value}] {super().__str__()}"
        return super().__str__()


class ConfigurationError(DramError):
    """Configuration and source catalog errors."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        """Initialize configuration error.

        Args:
            message: Error message
            config_key: Configuration key that caused the error
            **kwargs: Additional arguments for DramError
        """
        context = kwargs.get("context", {})
        if config_key:
            context["config_key"] = config_key

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.CONFIG_INVALID),
            context=context,
            user_message=kwargs.get("user_message", f"Configuration error: {message}"),
            **{
                k: v
                for k, v in kwargs.items()
                if k not in ["context", "error_code", "user_message"]
            },
        )


class FeedError(DramError):
    """Feed ingestion and parsing errors."""

    def __init__(self, message: str, source_id: Optional[str] = None, **kwargs):
        """Initialize feed error.

        Args:
            message: Error message
            source_id: Source that caused the error
            **kwargs: Additional arguments for DramError
        """
        context = kwargs.get("context", {})
        if source_id:
            context["source_id"] = source_id

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.FEED_NETWORK_ERROR),
            context=context,
            user_message=kwargs.get(
                "user_message", f"Feed processing failed: {message}"
            ),
            recoverable=kwargs.get("recoverable", True),
            **{
                k: v
                for k, v in kwargs.items()
                if k not in ["context", "error_code", "user_message", "recoverable"]
            },
        )


class FeedFetchError(FeedError):
    """Feed fetching errors."""

    pass


class SeenStoreError(DramError):
    """Seen-store persistence errors.

    Never recoverable: failing to persist seen state would reintroduce
    duplicate processing on every later run.
    """

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        context = kwargs.get("context", {})
        if path:
            context["path"] = path

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.STORE_WRITE_FAILED),
            context=context,
            user_message=kwargs.get(
                "user_message", "Could not persist the seen-item store"
            ),
            recoverable=False,
        )


class ClassificationError(DramError):
    """Classification provider errors."""

    def __init__(self, message: str, provider: Optional[str] = None, **kwargs):
        """Initialize classification error.

        Args:
            message: Error message
            provider: Provider name (e.g. 'claude_cli')
            **kwargs: Additional arguments for DramError
        """
        context = kwargs.get("context", {})
        if provider:
            context["provider"] = provider

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.AI_PROCESSING_ERROR),
            context=context,
            user_message=kwargs.get(
                "user_message", "Classification temporarily unavailable"
            ),
            recoverable=kwargs.get("recoverable", True),
        )


def get_user_friendly_message(exception: Exception) -> str:
    """Get user-friendly error message for any exception."""
    if isinstance(exception, DramError):
        return exception.user_message

    return "An unexpected error occurred. Please try again later."
