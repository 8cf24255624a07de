"""
Exception hierarchy for the patient retrieval pipeline.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Only InvalidParameterError, DimensionMismatchError and EmbeddingError reach
callers. Provider and backend failures are converted to soft results at the
boundary where they occur.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class PatientRAGException(Exception):
    """Base exception for all patient retrieval errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class InvalidParameterError(PatientRAGException):
    """Raised when caller-supplied parameters or input are malformed."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize invalid parameter error.

        Args:
            message: Error message
            field: Parameter name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class ProviderUnavailableError(PatientRAGException):
    """Raised when a single embedding provider cannot produce a vector."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if provider:
            details["provider"] = provider
        super().__init__(message, details)


class EmbeddingError(PatientRAGException):
    """Raised when every provider, including the local fallback, failed."""

    pass


class VectorStoreError(PatientRAGException):
    """Base exception for vector store errors."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize vector store error.

        Args:
            message: Error message
            operation: Operation that failed (initialize, upsert, query, delete, scan)
            details: Additional context
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class BackendUnavailableError(VectorStoreError):
    """Raised when the vector backend cannot be reached or initialized."""

    pass


class DimensionMismatchError(VectorStoreError):
    """Raised when a vector reaches the store with the wrong length."""

    def __init__(self, expected: int, actual: int, operation: str | None = None) -> None:
        super().__init__(
            f"Vector dimension {actual} does not match index dimension {expected}",
            operation=operation,
            details={"expected": expected, "actual": actual},
        )
        self.expected = expected
        self.actual = actual
