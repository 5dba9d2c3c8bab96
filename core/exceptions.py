"""
Custom exceptions for the ingestion pipeline with structured error context.

This module provides the exception hierarchy used from credential exchange
through warehouse loading. Each exception carries context information for
debugging and for the per-chunk failure log.

Exception Hierarchy:
    IngestionError (base)
    ├── ConfigurationError
    ├── CredentialExchangeError
    ├── ExtractionError
    │   ├── SourceFetchError
    │   │   ├── AuthenticationError
    │   │   └── RateLimitError
    └── LoadError
        └── LoadJobError

A chunk that returns zero rows is not an error; the runner records it as
skipped.
"""

from typing import Optional, Dict, Any, List
from datetime import datetime, timezone


class IngestionError(Exception):
    """
    Base exception for all ingestion errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (platform, date range, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


class ConfigurationError(IngestionError):
    """
    A required setting is missing or invalid.

    Unrecoverable: surfaces to the top-level caller as a failed response.
    """
    pass


# ============================================================================
# Credential Errors
# ============================================================================

class CredentialExchangeError(IngestionError):
    """
    Exception raised when a hop of the workload identity exchange fails.

    Attributes:
        hop: "subject_token", "sts" or "impersonation"
    """

    def __init__(
        self,
        hop: str,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.hop = hop
        context = context or {}
        context["hop"] = hop
        super().__init__(message or f"{hop} token exchange failed", context, original_exception)


# ============================================================================
# Extraction Errors
# ============================================================================

class ExtractionError(IngestionError):
    """Base exception for source platform failures."""
    pass


class SourceFetchError(ExtractionError):
    """
    Platform returned a non-success status or a malformed payload.

    Context should include:
        - platform: Source platform name
        - status_code: HTTP status code (if applicable)
        - response_body: Response body (truncated)
    """
    pass


class AuthenticationError(SourceFetchError):
    """Platform rejected our credentials (HTTP 401, 403 or failed token refresh)."""
    pass


class RateLimitError(SourceFetchError):
    """Rate limiting errors (HTTP 429)."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
        retry_after: Optional[int] = None
    ):
        super().__init__(message, context, original_exception)
        self.retry_after = retry_after
        if retry_after:
            self.context["retry_after"] = retry_after


# ============================================================================
# Load Errors
# ============================================================================

class LoadError(IngestionError):
    """Base exception for warehouse loading failures."""
    pass


class LoadJobError(LoadError):
    """
    BigQuery reported a job-level or row-level failure.

    Attributes:
        errors: The error entries reported by the load job
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[Dict[str, Any]]] = None,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.errors = errors or []
        context = context or {}
        if self.errors:
            context["errors"] = self.errors
        super().__init__(message, context, original_exception)
