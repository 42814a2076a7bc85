"""Tests for the auth session."""

from music_session.domain.session.auth import AuthSession
from music_session.domain.session.store import SessionStore


class TestAuthSession:
    def test_anonymous(self, auth) -> None:
        assert auth.user_id is None
        assert auth.is_authenticated is False

    def test_login_persists(self, tmp_path) -> None:
        path = tmp_path / "s.db"
        AuthSession(SessionStore(path)).login({"_id": "u7", "name": "Bo"}, "a", "r")

        store = SessionStore(path)
        store.load()
        auth = AuthSession(store)
        assert auth.user_id == "u7"
        assert auth.access_token == "a"
        assert auth.refresh_token == "r"
        assert auth.is_authenticated is True

    def test_user_without_token_is_incomplete(self, auth) -> None:
        auth.login({"id": "u1"}, None)
        assert auth.user_id == "u1"
        assert auth.is_authenticated is False

    def test_update_tokens_keeps_refresh_when_omitted(self, logged_in) -> None:
        logged_in.update_tokens("access-2", None)
        assert logged_in.access_token == "access-2"
        assert logged_in.refresh_token == "refresh-1"

    def test_clear(self, logged_in) -> None:
        logged_in.clear()
        assert logged_in.user is None
        assert logged_in.is_authenticated is False
