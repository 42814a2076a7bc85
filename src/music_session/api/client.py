"""
Music backend REST client.

Wraps requests with the backend's conventions: bearer token on every request,
one wake-up retry for a sleeping server, and one token refresh on 401/403.
"""

import time
from typing import Any, Callable, Dict, List, Optional

import requests
from loguru import logger

from music_session.domain.session.auth import AuthSession

from .exceptions import (
    ApiError,
    AuthenticationError,
    AuthenticationRequiredError,
    NetworkError,
    SessionExpiredError,
)

SONGS_PATH = "/api/songs"
PLAYLISTS_PATH = "/api/playlists"
ALBUMS_PATH = "/api/albums"
BANNER_PATH = "/api/banner"
FAVORITES_PATH = "/api/user/favorites"
FAVORITE_TOGGLE_PATH = "/api/user/favorites/toggle"
LOGIN_PATH = "/api/auth/login"
REFRESH_PATH = "/api/auth/refresh"


def _error_message(response: requests.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return response.text or None
    if isinstance(body, dict):
        return body.get("message")
    return None


class ApiClient:
    """Synchronous client for the music backend.

    Methods block; callers that must stay responsive run them on an executor.
    """

    def __init__(
        self,
        base_url: str,
        auth: AuthSession,
        *,
        timeout: float = 15.0,
        cold_start_retry_delay: float = 3.0,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.auth = auth
        self.timeout = timeout
        self.cold_start_retry_delay = cold_start_retry_delay
        self.session = session or requests.Session()
        self._sleep = sleep

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self.auth.access_token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        """Send a request, retrying once for wake-up and once after a token refresh.

        Raises:
            NetworkError: Backend unreachable after the wake-up retry
            SessionExpiredError: 401/403 that a refresh could not fix
            ApiError: Any other non-2xx response
        """
        url = f"{self.base_url}{path}"
        retried_wakeup = False
        retried_refresh = False

        while True:
            try:
                response = self.session.request(
                    method,
                    url,
                    headers=self._headers(),
                    params=params,
                    json=json,
                    timeout=self.timeout,
                )
            except requests.RequestException as e:
                if not retried_wakeup:
                    retried_wakeup = True
                    logger.info(
                        f"Backend unreachable ({e}), server may be waking up. "
                        f"Retrying in {self.cold_start_retry_delay}s"
                    )
                    self._sleep(self.cold_start_retry_delay)
                    continue
                raise NetworkError(f"{method} {path} failed: {e}") from e

            status = response.status_code

            if status >= 500 and not retried_wakeup:
                retried_wakeup = True
                logger.info(
                    f"{method} {path} returned {status}, server may be waking up. "
                    f"Retrying in {self.cold_start_retry_delay}s"
                )
                self._sleep(self.cold_start_retry_delay)
                continue

            if status in (401, 403):
                if not retried_refresh and self.auth.refresh_token:
                    retried_refresh = True
                    self._refresh_tokens()
                    continue
                raise SessionExpiredError(
                    _error_message(response) or f"{method} {path} was not authorized"
                )

            if not response.ok:
                raise ApiError(status, _error_message(response))

            return response

    def _refresh_tokens(self) -> None:
        """Exchange the refresh token for a new token pair.

        Raises:
            SessionExpiredError: If the refresh is rejected or fails
        """
        try:
            response = self.session.post(
                f"{self.base_url}{REFRESH_PATH}",
                json={"refreshToken": self.auth.refresh_token},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
            self.auth.update_tokens(data["accessToken"], data.get("refreshToken"))
            logger.info("Access token refreshed")
        except (requests.RequestException, ValueError, KeyError) as e:
            logger.error(f"Token refresh failed: {e}")
            self.auth.clear()
            raise SessionExpiredError("Token refresh failed") from e

    def _json(self, response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(response.status_code, "Backend returned invalid JSON") from e

    def _cache_params(self, cache_bust: bool) -> Optional[Dict[str, Any]]:
        return {"t": int(time.time() * 1000)} if cache_bust else None

    def get_songs(self, cache_bust: bool = False) -> List[Dict[str, Any]]:
        return self._json(
            self._request("GET", SONGS_PATH, params=self._cache_params(cache_bust))
        )

    def get_playlists(self, cache_bust: bool = False) -> List[Dict[str, Any]]:
        return self._json(
            self._request("GET", PLAYLISTS_PATH, params=self._cache_params(cache_bust))
        )

    def get_albums(self, cache_bust: bool = False) -> List[Dict[str, Any]]:
        return self._json(
            self._request("GET", ALBUMS_PATH, params=self._cache_params(cache_bust))
        )

    def get_banner(self) -> Optional[Dict[str, Any]]:
        try:
            return self._json(self._request("GET", BANNER_PATH)) or None
        except ApiError as e:
            if e.status_code == 404:
                return None
            raise

    def _require_user_id(self) -> str:
        user_id = self.auth.user_id
        if not user_id:
            raise AuthenticationRequiredError("No logged-in user")
        return user_id

    def get_user_favorites(self) -> List[Any]:
        """Favorites of the logged-in user (populated songs or bare ids)."""
        user_id = self._require_user_id()
        return self._json(self._request("GET", f"{FAVORITES_PATH}/{user_id}"))

    def toggle_favorite(self, song_id: str) -> List[str]:
        """Toggle a favorite on the server.

        Returns:
            The user's complete favorites list after the toggle

        Raises:
            SessionExpiredError: If the user no longer exists on the server
        """
        user_id = self._require_user_id()
        try:
            response = self._request(
                "POST",
                FAVORITE_TOGGLE_PATH,
                json={"userId": user_id, "songId": song_id},
            )
        except ApiError as e:
            if e.status_code == 404:
                raise SessionExpiredError("User not found, session expired") from e
            raise

        data = self._json(response)
        return [str(song) for song in data.get("favorites", [])]

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """Log in and persist the returned user and tokens.

        Raises:
            AuthenticationError: If the backend rejects the credentials
        """
        try:
            response = self._request(
                "POST", LOGIN_PATH, json={"email": email, "password": password}
            )
        except ApiError as e:
            raise AuthenticationError(str(e)) from e

        data = self._json(response)
        user = data.get("user")
        if not user:
            raise AuthenticationError("Login response did not include a user")

        self.auth.login(user, data.get("accessToken"), data.get("refreshToken"))
        return user
