"""Exception taxonomy shared by the chat components."""

from typing import Optional


class ShellyError(Exception):
    """Base class for errors raised by Shelly-AI."""


class AuthError(ShellyError):
    """Raised when no API credential is configured. Fatal for the process."""

    def __init__(self, message: str = "API key not configured. Run with --setup first."):
        super().__init__(message)


class ApiError(ShellyError):
    """Raised when the completion endpoint returns a non-success status."""

    def __init__(self, status: Optional[int], message: str = "Unknown error"):
        self.status = status
        self.message = message
        if status is None:
            super().__init__(f"API error: {message}")
        else:
            super().__init__(f"API error ({status}): {message}")


class FileContextError(ShellyError):
    """Raised when a context file is missing or unreadable."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Error loading file {path}: {reason}")
