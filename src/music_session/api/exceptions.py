"""Backend-specific exceptions for error handling."""

from typing import Optional


class MusicSessionError(Exception):
    """Base exception for Music Session operations."""

    pass


class ApiError(MusicSessionError):
    """Raised when the backend answers with an unexpected HTTP status."""

    def __init__(self, status_code: int, message: Optional[str] = None):
        self.status_code = status_code
        super().__init__(message or f"Backend request failed with status {status_code}")


class NetworkError(MusicSessionError):
    """Raised when the backend cannot be reached."""

    pass


class AuthenticationError(MusicSessionError):
    """Raised when authentication fails."""

    pass


class SessionExpiredError(AuthenticationError):
    """Raised when the backend rejects the session and it cannot be refreshed."""

    pass


class AuthenticationRequiredError(AuthenticationError):
    """Raised when an action needs a logged-in user and there is none."""

    pass
