"""Custom exceptions for git-inquisitor."""

from typing import Any, Dict, Optional


class InquisitorError(Exception):
    """Base exception for git-inquisitor errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        """Initialize with message, optional details, and cause."""
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        """String representation with details."""
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message

    @classmethod
    def from_exception(cls, message: str, cause: Exception, details: Optional[Dict[str, Any]] = None):
        """Create exception with proper chaining from another exception."""
        return cls(message, details, cause)


class RepositoryError(InquisitorError):
    """Raised when a repository cannot be opened or its HEAD resolved."""
    pass


class CollectionError(InquisitorError):
    """Raised when data collection cannot proceed."""
    pass


class CacheError(InquisitorError):
    """Raised when the on-disk cache cannot be written or removed."""
    pass


class ReportError(InquisitorError):
    """Raised when a report cannot be prepared or written."""
    pass


class ConfigurationError(InquisitorError):
    """Exception raised for configuration-related errors."""
    pass
