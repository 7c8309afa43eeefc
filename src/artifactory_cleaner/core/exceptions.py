"""
Artifactory Cleaner Exception Hierarchy.

Defines all custom exceptions used across the cleaner.
Provides consistent error handling and debugging information.
"""

from typing import Any


class CleanerError(Exception):
    """
    Base exception for all Artifactory Cleaner errors.

    All custom exceptions inherit from this class, allowing
    generic catch blocks and consistent error handling.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        """
        Initialize a CleanerError.

        Args:
            message: Human-readable error message
            details: Optional structured data for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation with details."""
        base = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{base} ({details_str})"
        return base

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class RemoteStoreError(CleanerError):
    """
    Transient failure talking to the remote artifact store.

    Raised for any network or HTTP failure during a query, listing or
    delete call. The resilient store retries these; once its attempts
    are exhausted the last one reaches the caller.
    """

    def __init__(
        self,
        message: str,
        *,
        method: str | None = None,
        url: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a RemoteStoreError.

        Args:
            message: Human-readable error message
            method: HTTP method of the failed call
            url: Target URL of the failed call
            status_code: HTTP status code if a response was received
            details: Optional structured data for debugging
        """
        details = details or {}
        if method:
            details["method"] = method
        if url:
            details["url"] = url
        if status_code:
            details["status_code"] = status_code

        super().__init__(message, details=details)
        self.method = method
        self.url = url
        self.status_code = status_code


class MalformedDataError(CleanerError):
    """
    Raised when remote data does not have the expected shape.

    Covers item paths without a separator and timestamps that do not
    follow the store's format. Never retried: a malformed item aborts
    the policy run.
    """

    def __init__(
        self,
        message: str,
        *,
        value: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if value is not None:
            details["value"] = value

        super().__init__(message, details=details)
        self.value = value


class ConfigurationError(CleanerError):
    """
    Errors in configuration loading or validation.

    Raised when:
    - Configuration files are missing or malformed
    - Required settings are not provided
    - A release module line or filter pattern is invalid
    """

    def __init__(
        self,
        message: str,
        *,
        config_file: str | None = None,
        config_key: str | None = None,
        line_number: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a ConfigurationError.

        Args:
            message: Human-readable error message
            config_file: Path to configuration file if applicable
            config_key: Configuration key if applicable
            line_number: 1-based line number inside config_file
            details: Optional structured data for debugging
        """
        details = details or {}
        if config_file:
            details["config_file"] = config_file
        if config_key:
            details["config_key"] = config_key
        if line_number is not None:
            details["line_number"] = line_number

        super().__init__(message, details=details)
        self.config_file = config_file
        self.config_key = config_key
        self.line_number = line_number


class CleanupRunError(CleanerError):
    """Raised when one or more policies of a cleanup run failed."""

    def __init__(
        self,
        message: str = "Cleanup finished with failures",
        *,
        failed_policies: list[str] | None = None,
    ):
        details = {"failed_policies": failed_policies or []}
        super().__init__(message, details=details)
        self.failed_policies = failed_policies or []


def format_exception(error: BaseException) -> str:
    """
    Format an exception for user-friendly display.

    Args:
        error: The exception to format

    Returns:
        Formatted error message string
    """
    if isinstance(error, CleanerError):
        return str(error)
    return f"{error.__class__.__name__}: {error}"


def is_retriable_error(error: BaseException) -> bool:
    """Return True if the error is a transient remote failure."""
    return isinstance(error, RemoteStoreError)
