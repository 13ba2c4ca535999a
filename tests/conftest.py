# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskdesk.auth.credential_store import CredentialStore
from taskdesk.auth.preferences import TimeoutPreferenceStore
from taskdesk.session.manager import SessionManager

from .fakes import FakeIdentityApi, FakeTimers, RecordingListener


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and the session layer.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the developer's environment and .env.
    """
    return SimpleNamespace(
        app_name="taskdesk-test",
        log_level="DEBUG",
        api_base_url="https://api.test",
        http_connect_timeout_seconds=1.0,
        http_read_timeout_seconds=1.0,
        session_expires_mins=60,
        persistent_session_expires_mins=43200,
        inactivity_timeout_minutes=10,
        warning_seconds=60,
        activity_coalesce_seconds=0.0,
        clear_policy_on_logout=False,
        data_dir=tmp_path,
        credentials_path=tmp_path / "credentials.json",
        preferences_path=tmp_path / "preferences.json",
    )


@pytest.fixture()
def timers() -> FakeTimers:
    return FakeTimers()


@pytest.fixture()
def identity() -> FakeIdentityApi:
    return FakeIdentityApi()


@pytest.fixture()
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture()
def credentials(tmp_path: Path) -> CredentialStore:
    return CredentialStore(tmp_path / "credentials.json")


@pytest.fixture()
def preferences(tmp_path: Path) -> TimeoutPreferenceStore:
    return TimeoutPreferenceStore(tmp_path / "preferences.json", default_minutes=10)


@pytest.fixture()
def manager(
    identity: FakeIdentityApi,
    credentials: CredentialStore,
    preferences: TimeoutPreferenceStore,
    timers: FakeTimers,
    listener: RecordingListener,
) -> SessionManager:
    """
    SessionManager wired with deterministic fakes.

    NOTE: the JSON file stores are real (tmp_path); their persistence is part of
    what we want to test.
    """
    return SessionManager(
        identity=identity,
        credentials=credentials,
        preferences=preferences,
        timers=timers,
        listener=listener,
    )
