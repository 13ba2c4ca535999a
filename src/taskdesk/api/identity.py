# src/taskdesk/api/identity.py

from __future__ import annotations

import logging
from typing import Any

from ..core.models import LoginResult, SignupData, User
from ..errors import AuthError, AuthUnavailableError, SignupError, SignupUnavailableError
from .base import ApiClient

logger = logging.getLogger(__name__)


def _pick_token(data: dict[str, Any]) -> str | None:
    # Older deployments return "token", newer ones "accessToken".
    for key in ("accessToken", "token"):
        val = data.get(key)
        if isinstance(val, str) and val:
            return val
    return None


class IdentityClient:
    """Client for the external identity API (/auth/* and /users/add)."""

    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def login(self, username: str, password: str, *, expires_in_mins: int) -> LoginResult:
        """
        POST /auth/login.

        expires_in_mins only controls the remote token lifetime, never the
        client-side inactivity timeout.

        Raises:
            AuthError: the remote rejected the credentials
            AuthUnavailableError: the remote could not be reached
        """
        data = await self._api.request(
            "POST",
            "/auth/login",
            json={"username": username, "password": password, "expiresInMins": int(expires_in_mins)},
            error_cls=AuthError,
            unavailable_cls=AuthUnavailableError,
            fallback_message="Login failed",
        )
        if not isinstance(data, dict):
            raise AuthError("Unexpected login response.")

        token = _pick_token(data)
        if token is None:
            raise AuthError("Login response did not include a token.")
        try:
            user = User.from_api(data)
        except (KeyError, TypeError, ValueError) as e:
            raise AuthError("Login response did not include a user profile.") from e

        refresh_token = data.get("refreshToken")
        logger.info("Login accepted for user_id=%s", user.id)
        return LoginResult(
            user=user,
            access_token=token,
            refresh_token=refresh_token if isinstance(refresh_token, str) else "",
        )

    async def me(self) -> User:
        """GET /auth/me with the current bearer token."""
        data = await self._api.request(
            "GET",
            "/auth/me",
            authenticated=True,
            error_cls=AuthError,
            unavailable_cls=AuthUnavailableError,
            fallback_message="Could not load your profile",
        )
        try:
            return User.from_api(data)
        except (KeyError, TypeError, ValueError) as e:
            raise AuthError("Unexpected profile response.") from e

    async def refresh(self, refresh_token: str, *, expires_in_mins: int) -> tuple[str, str | None]:
        """POST /auth/refresh. Returns (access_token, new_refresh_token or None)."""
        data = await self._api.request(
            "POST",
            "/auth/refresh",
            json={"refreshToken": refresh_token, "expiresInMins": int(expires_in_mins)},
            error_cls=AuthError,
            unavailable_cls=AuthUnavailableError,
            fallback_message="Session refresh failed",
        )
        token = _pick_token(data) if isinstance(data, dict) else None
        if token is None:
            raise AuthError("Refresh response did not include a token.")
        new_refresh = data.get("refreshToken")
        return token, new_refresh if isinstance(new_refresh, str) and new_refresh else None

    async def signup(self, data: SignupData) -> dict[str, Any]:
        """POST /users/add. Registration only; no session is created."""
        created = await self._api.request(
            "POST",
            "/users/add",
            json=data.to_api(),
            error_cls=SignupError,
            unavailable_cls=SignupUnavailableError,
            fallback_message="Signup failed",
        )
        if not isinstance(created, dict):
            raise SignupError("Unexpected signup response.")
        logger.info("Signup accepted for username=%s", data.username)
        return created
