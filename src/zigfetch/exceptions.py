"""
Custom exceptions for the zigfetch application.

This module defines domain-specific exceptions that provide better error
categorization and more informative error messages for users and developers.
Every failure raised by the install pipeline derives from ZigfetchError so the
CLI can translate it into a message and an exit status in one place.
"""


class ZigfetchError(Exception):
    """
    Base exception for all zigfetch errors.

    All custom exceptions in zigfetch should inherit from this class
    to allow for easy catching of all application-specific errors.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class UserCancelled(ZigfetchError):
    """Raised when the user declines a prompt or interrupts input."""

    def __init__(self, message: str = "Cancelled by user") -> None:
        super().__init__(message)


class TerminalUnavailableError(ZigfetchError):
    """Raised when an interactive menu cannot be drawn (no TTY or a dumb terminal)."""

    def __init__(self, details: str | None = None) -> None:
        super().__init__(
            "Interactive menus need a terminal; use "
            "'zigfetch install --os <linux|macos> --yes' instead",
            details,
        )


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(ZigfetchError):
    """
    Exception raised when configuration is invalid or unreadable.

    Attributes:
        path: The configuration file involved, if any.
    """

    def __init__(
        self,
        message: str,
        path: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.path = path


# =============================================================================
# Network Errors
# =============================================================================


class NetworkError(ZigfetchError):
    """
    Exception raised for network-related failures.

    This includes:
    - Connection timeouts
    - DNS resolution failures
    - Connections reset mid-stream
    - Truncated response bodies

    Attributes:
        url: The URL that was being fetched when the error occurred.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.url = url


class HTTPError(NetworkError):
    """
    Exception raised when the server answers with a non-success status.

    Attributes:
        status_code: The HTTP status code returned by the server.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, url, details)
        self.status_code = status_code


class MissingContentLengthError(NetworkError):
    """Exception raised when a download must report its size but does not."""

    def __init__(self, url: str | None = None) -> None:
        super().__init__("Missing content length", url=url, details=url)


# =============================================================================
# Decode Errors
# =============================================================================


class DecodeError(ZigfetchError):
    """
    Exception raised when data does not have the expected shape.

    This includes:
    - Release manifests that are not valid JSON or miss required fields
    - Archives that are not valid xz-compressed tar data
    - Archive members that would escape the destination directory

    Attributes:
        source: The URL or file the data came from.
    """

    def __init__(
        self,
        message: str,
        source: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.source = source


class ChecksumMismatchError(DecodeError):
    """
    Exception raised when a downloaded artifact fails verification.

    Attributes:
        expected: The value published in the release manifest.
        actual: The value computed from the staged file.
    """

    def __init__(
        self,
        message: str,
        source: str | None = None,
        expected: str | None = None,
        actual: str | None = None,
    ) -> None:
        super().__init__(
            message, source, details=f"expected {expected}, got {actual}"
        )
        self.expected = expected
        self.actual = actual


# =============================================================================
# Resolution Errors
# =============================================================================


class UnsupportedTargetError(ZigfetchError):
    """
    Exception raised when the manifest has no build for the requested target.

    Attributes:
        key: The platform key that was looked up (e.g. "x86_64-linux").
        channel: The release channel that was searched.
    """

    def __init__(self, key: str, channel: str | None = None) -> None:
        details = f"channel '{channel}'" if channel else None
        super().__init__(f"No build available for '{key}'", details)
        self.key = key
        self.channel = channel


# =============================================================================
# File System Errors
# =============================================================================


class FileSystemError(ZigfetchError):
    """
    Exception raised for local file system failures.

    This includes:
    - Permission denied errors
    - Disk full errors
    - Missing parent directories

    Attributes:
        path: The file path that caused the error.
    """

    def __init__(
        self,
        message: str,
        path: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.path = path
