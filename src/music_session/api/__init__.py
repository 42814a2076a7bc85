"""REST client for the music backend."""

from .client import ApiClient
from .exceptions import (
    ApiError,
    AuthenticationError,
    AuthenticationRequiredError,
    MusicSessionError,
    NetworkError,
    SessionExpiredError,
)

__all__ = [
    "ApiClient",
    "ApiError",
    "AuthenticationError",
    "AuthenticationRequiredError",
    "MusicSessionError",
    "NetworkError",
    "SessionExpiredError",
]
