# src/taskdesk/auth/credential_store.py

from __future__ import annotations

import logging
from pathlib import Path

from ..core.models import User
from ..storage.local_store import LocalStore

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
REFRESH_TOKEN_KEY = "refreshToken"
USER_KEY = "user"


class CredentialStore:
    """
    Bearer token, refresh token and the cached user profile.

    Presence of a token is the client-side answer to "is this user signed in";
    the remote stays the authority on whether the token is still valid.
    """

    def __init__(self, store: LocalStore | str | Path) -> None:
        self._store = store if isinstance(store, LocalStore) else LocalStore(store)

    @property
    def available(self) -> bool:
        return self._store.available

    @property
    def token(self) -> str | None:
        raw = self._store.get(TOKEN_KEY)
        return raw if isinstance(raw, str) and raw else None

    @property
    def refresh_token(self) -> str | None:
        raw = self._store.get(REFRESH_TOKEN_KEY)
        return raw if isinstance(raw, str) and raw else None

    def has_token(self) -> bool:
        return self.token is not None

    def save(self, *, token: str, refresh_token: str, user: User) -> None:
        self._store.update(
            {
                TOKEN_KEY: token,
                REFRESH_TOKEN_KEY: refresh_token,
                USER_KEY: user.to_api(),
            }
        )
        logger.debug("Credentials saved for user_id=%s", user.id)

    def update_token(self, token: str, refresh_token: str | None = None) -> None:
        values: dict[str, str] = {TOKEN_KEY: token}
        if refresh_token:
            values[REFRESH_TOKEN_KEY] = refresh_token
        self._store.update(values)

    def update_user(self, user: User) -> None:
        self._store.set(USER_KEY, user.to_api())

    def load_user(self) -> User | None:
        raw = self._store.get(USER_KEY)
        if not isinstance(raw, dict):
            return None
        try:
            return User.from_api(raw)
        except (KeyError, TypeError, ValueError):
            logger.warning("Cached user profile is malformed; ignoring it.")
            return None

    def clear(self) -> None:
        self._store.remove(TOKEN_KEY, REFRESH_TOKEN_KEY, USER_KEY)
