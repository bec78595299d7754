"""Custom exceptions for the Maxemail transfer client.

Transport failures raised by httpx are not wrapped and reach the caller
unchanged.
"""


class MaxemailError(Exception):
    """Base exception for the Maxemail client."""
    pass


class InvalidInputError(MaxemailError, ValueError):
    """Exception raised when caller input is rejected before any I/O."""
    pass


class LocalIOError(MaxemailError):
    """Exception raised when a local filesystem operation fails."""

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(message)
        self.reason = reason


class DetectionError(MaxemailError):
    """Exception raised when content sniffing cannot classify a file."""
    pass


class ArchiveError(MaxemailError):
    """Exception raised when a zip archive cannot be opened or extracted."""
    pass


class UnexpectedValueError(MaxemailError):
    """Exception raised when a response body cannot be decoded."""
    pass
