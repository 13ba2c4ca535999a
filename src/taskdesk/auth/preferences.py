# src/taskdesk/auth/preferences.py

from __future__ import annotations

import logging
from pathlib import Path

from ..core.models import MAX_TIMEOUT_MINUTES, MIN_TIMEOUT_MINUTES, TimeoutPolicy, is_valid_timeout
from ..errors import ValidationError
from ..storage.local_store import LocalStore

logger = logging.getLogger(__name__)

TIMEOUT_KEY = "inactivityTimeout"
STAY_SIGNED_IN_KEY = "staySignedIn"


def _coerce_minutes(raw: object) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            return None
    return None


class TimeoutPreferenceStore:
    """Inactivity timeout (minutes) + "stay signed in" flag, kept apart from credentials."""

    def __init__(self, store: LocalStore | str | Path, *, default_minutes: int = 10) -> None:
        self._store = store if isinstance(store, LocalStore) else LocalStore(store)
        if not is_valid_timeout(default_minutes):
            logger.warning(
                "Default inactivity timeout %r outside [%d, %d]; using 10.",
                default_minutes,
                MIN_TIMEOUT_MINUTES,
                MAX_TIMEOUT_MINUTES,
            )
            default_minutes = 10
        self._default_minutes = default_minutes

    @property
    def available(self) -> bool:
        return self._store.available

    @property
    def default_minutes(self) -> int:
        return self._default_minutes

    def get_timeout_minutes(self) -> int:
        minutes = _coerce_minutes(self._store.get(TIMEOUT_KEY))
        if minutes is None or not is_valid_timeout(minutes):
            return self._default_minutes
        return minutes

    def get_stay_signed_in(self) -> bool:
        return self._store.get(STAY_SIGNED_IN_KEY) is True

    def get_policy(self) -> TimeoutPolicy:
        return TimeoutPolicy(
            timeout_minutes=self.get_timeout_minutes(),
            stay_signed_in=self.get_stay_signed_in(),
        )

    def set_timeout_minutes(self, minutes: int) -> None:
        if not is_valid_timeout(minutes):
            raise ValidationError(
                f"Inactivity timeout must be between {MIN_TIMEOUT_MINUTES} and {MAX_TIMEOUT_MINUTES} minutes."
            )
        self._store.set(TIMEOUT_KEY, minutes)
        logger.info("Inactivity timeout set to %d min", minutes)

    def set_stay_signed_in(self, flag: bool) -> None:
        if flag:
            self._store.set(STAY_SIGNED_IN_KEY, True)
        else:
            self._store.remove(STAY_SIGNED_IN_KEY)

    def reset(self) -> None:
        self._store.remove(TIMEOUT_KEY, STAY_SIGNED_IN_KEY)
