# src/taskdesk/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the local (gitignored) data directory exists,
- wires stores, HTTP clients, the session facade and the timers into AppState,
- shuts everything down without touching the stored credentials.
"""

from __future__ import annotations

import logging

import httpx

from ..api.base import ApiClient
from ..api.identity import IdentityClient
from ..api.todos import TodoClient
from ..auth.credential_store import CredentialStore
from ..auth.preferences import TimeoutPreferenceStore
from ..config import get_settings
from ..core.ports import Timers
from ..core.state import AppState
from ..session.manager import SessionManager
from ..session.timers import LoopTimers

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    try:
        settings.data_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        # Stores degrade to in-memory mode on their own.
        logger.warning("Could not create data dir %s", settings.data_dir)


def create_initial_state(
    *,
    settings=None,
    timers: Timers | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings, timers and the HTTP transport injectable makes the app easy to test.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    credentials = CredentialStore(settings.credentials_path)
    preferences = TimeoutPreferenceStore(
        settings.preferences_path,
        default_minutes=settings.inactivity_timeout_minutes,
    )

    api = ApiClient(
        settings.api_base_url,
        connect_timeout=settings.http_connect_timeout_seconds,
        read_timeout=settings.http_read_timeout_seconds,
        transport=transport,
    )

    session = SessionManager(
        identity=IdentityClient(api),
        credentials=credentials,
        preferences=preferences,
        timers=timers or LoopTimers(),
        warning_seconds=settings.warning_seconds,
        coalesce_seconds=settings.activity_coalesce_seconds,
        session_expires_mins=settings.session_expires_mins,
        persistent_session_expires_mins=settings.persistent_session_expires_mins,
        clear_policy_on_logout=settings.clear_policy_on_logout,
    )

    # API clients read the token from, and report activity to, the session facade.
    api.token_provider = session.token_provider
    api.on_authenticated_request = session.on_api_request

    return AppState(settings=settings, session=session, todos=TodoClient(api), api=api)


async def shutdown_state(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        state.session.shutdown()
    except Exception:
        logger.exception("Session shutdown failed.")

    try:
        await state.api.aclose()
    except Exception:
        logger.debug("HTTP client close failed.", exc_info=True)
