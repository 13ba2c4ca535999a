# tests/test_session_manager.py

from __future__ import annotations

import pytest

from taskdesk.auth.credential_store import CredentialStore
from taskdesk.auth.preferences import TimeoutPreferenceStore
from taskdesk.core.models import LogoutReason, SchedulerState, SignupData, User
from taskdesk.errors import (
    AuthError,
    AuthUnavailableError,
    NetworkError,
    SignupError,
    ValidationError,
)
from taskdesk.session.activity import ActivityKind
from taskdesk.session.manager import SessionManager

from .fakes import EMILY, FakeIdentityApi, FakeTimers, RecordingListener


@pytest.mark.asyncio
async def test_login_stores_credentials_and_arms(manager, credentials, timers, identity, listener) -> None:
    user = await manager.login("emilys", "emilyspass")

    assert user == EMILY
    assert manager.is_authenticated()
    assert credentials.token == "access-1"
    assert credentials.load_user() == EMILY
    assert manager.scheduler_state == SchedulerState.ARMED
    assert manager.monitor.active
    assert manager.session is not None and manager.session.persistent is False
    assert identity.calls[0] == ("login", ("emilys", 60))
    assert listener.events == [("logged_in", 1)]


@pytest.mark.asyncio
async def test_login_stay_signed_in_requests_long_token_and_stays_idle(
    manager, preferences, identity, timers
) -> None:
    await manager.login("emilys", "emilyspass", stay_signed_in=True)

    assert identity.calls[0] == ("login", ("emilys", 43200))
    assert preferences.get_stay_signed_in() is True
    assert manager.scheduler_state == SchedulerState.IDLE
    assert timers.pending == []


@pytest.mark.asyncio
async def test_failed_login_changes_nothing(manager, credentials, listener) -> None:
    with pytest.raises(AuthError) as exc:
        await manager.login("emilys", "wrong")

    assert exc.value.message == "Invalid credentials"
    assert manager.session is None
    assert not manager.is_authenticated()
    assert manager.scheduler_state == SchedulerState.IDLE
    assert not manager.monitor.active
    assert listener.events == []


@pytest.mark.asyncio
async def test_failed_login_keeps_running_session_untouched(manager, identity, timers) -> None:
    await manager.login("emilys", "emilyspass")
    timers.advance(10 * 60)
    assert manager.scheduler_state == SchedulerState.WARNING

    identity.login_error = AuthUnavailableError()
    with pytest.raises(NetworkError):
        await manager.login("emilys", "emilyspass")

    assert manager.scheduler_state == SchedulerState.WARNING
    assert manager.seconds_remaining == 60
    assert manager.is_authenticated()


@pytest.mark.asyncio
async def test_login_requires_username_and_password(manager, identity) -> None:
    with pytest.raises(AuthError):
        await manager.login("  ", "x")
    assert identity.calls == []


@pytest.mark.asyncio
async def test_logout_is_idempotent_from_every_state(manager, credentials, timers, listener) -> None:
    manager.logout()
    assert listener.events == []

    await manager.login("emilys", "emilyspass")
    timers.advance(10 * 60 + 5)
    assert manager.scheduler_state == SchedulerState.WARNING

    manager.logout()
    manager.logout()

    assert manager.scheduler_state == SchedulerState.IDLE
    assert timers.pending == []
    assert not manager.is_authenticated()
    assert credentials.load_user() is None
    assert not manager.monitor.active
    assert listener.names().count("logged_out") == 1
    assert listener.events[-1] == ("logged_out", LogoutReason.USER)


@pytest.mark.asyncio
async def test_logout_keeps_timeout_but_clears_stay_signed_in(manager, preferences) -> None:
    manager.update_timeout_policy(25)
    await manager.login("emilys", "emilyspass", stay_signed_in=True)

    manager.logout()

    policy = manager.get_timeout_policy()
    assert policy.timeout_minutes == 25
    assert policy.stay_signed_in is False


@pytest.mark.asyncio
async def test_clear_policy_on_logout_drops_timeout(
    identity, credentials, preferences, timers, listener
) -> None:
    manager = SessionManager(
        identity=identity,
        credentials=credentials,
        preferences=preferences,
        timers=timers,
        listener=listener,
        clear_policy_on_logout=True,
    )
    manager.update_timeout_policy(25)
    await manager.login("emilys", "emilyspass")
    manager.logout()

    assert manager.get_timeout_policy().timeout_minutes == preferences.default_minutes


@pytest.mark.asyncio
async def test_idle_scenario_warns_then_logs_out(manager, credentials, timers, listener) -> None:
    manager.update_timeout_policy(1)
    await manager.login("emilys", "emilyspass")

    timers.advance(60)
    assert manager.scheduler_state == SchedulerState.WARNING
    assert manager.seconds_remaining == 60

    timers.advance(60)
    assert manager.scheduler_state == SchedulerState.IDLE
    assert credentials.token is None
    assert credentials.refresh_token is None
    assert credentials.load_user() is None
    assert manager.is_authenticated() is False
    assert manager.session is None
    assert listener.events[-1] == ("logged_out", LogoutReason.INACTIVITY)
    assert listener.names().count("logged_out") == 1


@pytest.mark.asyncio
async def test_activity_at_warning_30_rearms_fresh_window(manager, timers, listener) -> None:
    manager.update_timeout_policy(1)
    await manager.login("emilys", "emilyspass")
    timers.advance(60 + 30)
    assert manager.seconds_remaining == 30

    manager.record_activity(ActivityKind.POINTER_MOVE)

    assert manager.scheduler_state == SchedulerState.ARMED
    assert manager.scheduler.idle_deadline == timers.now() + 60
    timers.advance(59)
    assert manager.scheduler_state == SchedulerState.ARMED
    assert manager.is_authenticated()


@pytest.mark.asyncio
async def test_extend_session_from_warning(manager, timers, listener) -> None:
    manager.update_timeout_policy(1)
    await manager.login("emilys", "emilyspass")
    assert manager.extend_session() is False

    timers.advance(100)
    assert manager.extend_session() is True
    assert manager.scheduler_state == SchedulerState.ARMED
    assert ("extended", None) in listener.events


@pytest.mark.asyncio
@pytest.mark.parametrize("bad", [0, 61])
async def test_update_timeout_out_of_range_leaves_policy_and_timer(manager, timers, bad: int) -> None:
    manager.update_timeout_policy(5)
    await manager.login("emilys", "emilyspass")
    timers.advance(30)
    deadline = manager.scheduler.idle_deadline

    with pytest.raises(ValidationError):
        manager.update_timeout_policy(bad)

    assert manager.get_timeout_policy().timeout_minutes == 5
    assert manager.scheduler.idle_deadline == deadline
    assert len(timers.pending) == 1


@pytest.mark.asyncio
async def test_update_timeout_rearms_immediately(manager, timers) -> None:
    await manager.login("emilys", "emilyspass")
    timers.advance(120)

    policy = manager.update_timeout_policy(3)

    assert policy.timeout_minutes == 3
    assert manager.scheduler.idle_deadline == timers.now() + 180


@pytest.mark.asyncio
async def test_stay_signed_in_while_armed_goes_idle_until_cleared(manager, timers, listener) -> None:
    manager.update_timeout_policy(1)
    await manager.login("emilys", "emilyspass")

    manager.set_stay_signed_in(True)
    assert manager.scheduler_state == SchedulerState.IDLE
    timers.advance(3600)
    manager.record_activity("click")
    timers.advance(3600)
    assert "warning" not in listener.names()

    manager.set_stay_signed_in(False)
    assert manager.scheduler_state == SchedulerState.ARMED
    timers.advance(60)
    assert manager.scheduler_state == SchedulerState.WARNING


@pytest.mark.asyncio
async def test_api_requests_count_as_activity(manager, timers) -> None:
    manager.update_timeout_policy(1)
    await manager.login("emilys", "emilyspass")
    timers.advance(50)

    manager.on_api_request()

    assert manager.scheduler.idle_deadline == timers.now() + 60


@pytest.mark.asyncio
async def test_activity_ignored_without_session(manager, timers) -> None:
    manager.record_activity("keypress")
    manager.on_api_request()
    assert timers.pending == []
    assert manager.scheduler_state == SchedulerState.IDLE


@pytest.mark.asyncio
async def test_signup_forwards_without_session(manager, identity) -> None:
    created = await manager.signup(
        SignupData(username="newbie", password="pw", email="n@x.io", first_name="New", last_name="Bie")
    )
    assert created["username"] == "newbie"
    assert manager.session is None

    with pytest.raises(SignupError):
        await manager.signup(
            SignupData(username="emilys", password="pw", email="e@x.io", first_name="E", last_name="J")
        )


@pytest.mark.asyncio
async def test_restore_session_revalidates_profile(manager, credentials, identity, listener) -> None:
    credentials.save(token="cached", refresh_token="ref", user=EMILY)
    fresh = User(id=1, username="emilys", email="new@x.io", first_name="Emily", last_name="J")
    identity.me_user = fresh

    user = await manager.restore_session()

    assert user == fresh
    assert credentials.load_user() == fresh
    assert manager.scheduler_state == SchedulerState.ARMED
    assert ("logged_in", 1) in listener.events


@pytest.mark.asyncio
async def test_restore_session_keeps_cache_on_network_error(manager, credentials, identity) -> None:
    credentials.save(token="cached", refresh_token="ref", user=EMILY)
    identity.me_error = AuthUnavailableError()

    user = await manager.restore_session()

    assert user == EMILY
    assert manager.is_authenticated()
    assert manager.session is not None
    assert "refresh" not in identity.call_names()


@pytest.mark.asyncio
async def test_restore_session_refreshes_rejected_token(manager, credentials, identity) -> None:
    credentials.save(token="stale", refresh_token="ref", user=EMILY)
    identity.me_error = AuthError("Token Expired!", status_code=401)

    user = await manager.restore_session()

    assert user == EMILY
    assert identity.call_names() == ["me", "refresh", "me"]
    assert credentials.token == "access-1"
    assert credentials.refresh_token == "refresh-2"


@pytest.mark.asyncio
async def test_restore_session_keeps_cache_when_refresh_fails(manager, credentials, identity) -> None:
    credentials.save(token="stale", refresh_token="ref", user=EMILY)
    identity.me_error = AuthError("Token Expired!", status_code=401)
    identity.refresh_error = AuthError("Invalid refresh token", status_code=403)

    user = await manager.restore_session()

    assert user == EMILY
    assert manager.session is not None
    assert credentials.token == "stale"


@pytest.mark.asyncio
async def test_restore_session_without_credentials(manager, identity) -> None:
    assert await manager.restore_session() is None
    assert identity.calls == []
    assert manager.scheduler_state == SchedulerState.IDLE


@pytest.mark.asyncio
async def test_refresh_without_refresh_token_fails(manager) -> None:
    with pytest.raises(AuthError):
        await manager.refresh_access_token()


@pytest.mark.asyncio
async def test_shutdown_stops_timers_but_keeps_credentials(manager, timers) -> None:
    await manager.login("emilys", "emilyspass")
    manager.shutdown()

    assert timers.pending == []
    assert manager.is_authenticated()


@pytest.mark.asyncio
async def test_unavailable_storage_still_logs_in_without_timers(tmp_path, identity, timers) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("x", "utf-8")
    manager = SessionManager(
        identity=identity,
        credentials=CredentialStore(blocker / "credentials.json"),
        preferences=TimeoutPreferenceStore(blocker / "preferences.json"),
        timers=timers,
        listener=RecordingListener(),
    )

    user = await manager.login("emilys", "emilyspass")

    assert user == EMILY
    assert manager.is_authenticated()
    assert manager.scheduler_state == SchedulerState.IDLE
    assert timers.pending == []


@pytest.mark.asyncio
async def test_unavailable_credential_storage_alone_disables_timers(tmp_path, identity, timers, preferences) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("x", "utf-8")
    credentials = CredentialStore(blocker / "credentials.json")
    assert credentials.available is False
    assert preferences.available is True
    manager = SessionManager(
        identity=identity,
        credentials=credentials,
        preferences=preferences,
        timers=timers,
        listener=RecordingListener(),
    )

    await manager.login("emilys", "emilyspass")
    manager.record_activity("keypress")
    manager.update_timeout_policy(1)

    assert manager.is_authenticated()
    assert manager.scheduler_state == SchedulerState.IDLE
    assert timers.pending == []
    timers.advance(3600)
    assert manager.is_authenticated()


@pytest.mark.asyncio
async def test_restore_with_stay_signed_in_stays_idle(manager, credentials, preferences, timers) -> None:
    credentials.save(token="cached", refresh_token="ref", user=EMILY)
    preferences.set_stay_signed_in(True)

    user = await manager.restore_session()

    assert user == EMILY
    assert manager.session is not None and manager.session.persistent is True
    assert manager.scheduler_state == SchedulerState.IDLE
    assert manager.scheduler.active
    assert timers.pending == []


def test_fresh_timers_fixture_is_isolated(timers: FakeTimers) -> None:
    assert timers.pending == []


def test_identity_fake_defaults() -> None:
    assert FakeIdentityApi().user == EMILY
