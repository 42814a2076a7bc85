"""
Logged-in user and bearer tokens.

Token issuance belongs to the backend; this module only keeps what it
returned and persists it through the session store.
"""

from typing import Any, Dict, Optional

from loguru import logger

from .store import SessionStore


class AuthSession:
    """Current user and access/refresh tokens, backed by the session store."""

    def __init__(self, store: SessionStore) -> None:
        self._store = store

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return self._store.record.user

    @property
    def user_id(self) -> Optional[str]:
        user = self.user
        if not user:
            return None
        user_id = user.get("id") or user.get("_id")
        return str(user_id) if user_id else None

    @property
    def access_token(self) -> Optional[str]:
        return self._store.record.access_token

    @property
    def refresh_token(self) -> Optional[str]:
        return self._store.record.refresh_token

    @property
    def is_authenticated(self) -> bool:
        """True when both a user id and an access token are present.

        Sessions created before tokens existed only carry a user record;
        those are treated as incomplete.
        """
        return bool(self.user_id and self.access_token)

    def login(
        self,
        user: Dict[str, Any],
        access_token: Optional[str],
        refresh_token: Optional[str] = None,
    ) -> None:
        self._store.update(
            user=user, access_token=access_token, refresh_token=refresh_token
        )
        logger.info(f"Logged in as user {self.user_id}")

    def update_tokens(self, access_token: str, refresh_token: Optional[str]) -> None:
        self._store.update(
            access_token=access_token,
            refresh_token=refresh_token or self.refresh_token,
        )
        logger.debug("Access token rotated")

    def clear(self) -> None:
        self._store.update(user=None, access_token=None, refresh_token=None)
