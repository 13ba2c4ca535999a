# src/taskdesk/session/manager.py

"""
Session facade.

The only public entry point the UI uses for authentication and the inactivity
policy. It owns the one live Session, wires the ActivityMonitor into the
InactivityScheduler, and makes sure that:

- nothing about the session changes until a login network call has succeeded;
- logout is idempotent and always leaves the scheduler IDLE with no timers;
- restoring a session at startup never evicts it because of a transient network error.
"""

from __future__ import annotations

import logging
from typing import Any

from ..auth.credential_store import CredentialStore
from ..auth.preferences import TimeoutPreferenceStore
from ..core.models import LogoutReason, SchedulerState, Session, SignupData, TimeoutPolicy, User
from ..core.ports import IdentityApi, NullSessionListener, SessionListener, Timers
from ..errors import AuthError, NetworkError, TaskdeskError
from .activity import ActivityKind, ActivityMonitor
from .scheduler import WARNING_SECONDS, InactivityScheduler

logger = logging.getLogger(__name__)

SESSION_EXPIRES_MINS = 60
PERSISTENT_SESSION_EXPIRES_MINS = 43200  # 30 days


class SessionManager:
    def __init__(
        self,
        *,
        identity: IdentityApi,
        credentials: CredentialStore,
        preferences: TimeoutPreferenceStore,
        timers: Timers,
        listener: SessionListener | None = None,
        warning_seconds: int = WARNING_SECONDS,
        coalesce_seconds: float = 0.0,
        session_expires_mins: int = SESSION_EXPIRES_MINS,
        persistent_session_expires_mins: int = PERSISTENT_SESSION_EXPIRES_MINS,
        clear_policy_on_logout: bool = False,
    ) -> None:
        self._identity = identity
        self._credentials = credentials
        self._preferences = preferences
        self._listener: SessionListener = listener or NullSessionListener()
        self._session_expires_mins = int(session_expires_mins)
        self._persistent_session_expires_mins = int(persistent_session_expires_mins)
        self._clear_policy_on_logout = clear_policy_on_logout

        self._session: Session | None = None
        self._scheduler = InactivityScheduler(
            preferences,
            timers,
            on_expire=self._on_inactivity_expired,
            listener=self._listener,
            warning_seconds=warning_seconds,
            credentials_available=lambda: credentials.available,
        )
        self._monitor = ActivityMonitor(timers, coalesce_seconds=coalesce_seconds)

    # ---- wiring / introspection ----

    @property
    def listener(self) -> SessionListener:
        return self._listener

    @listener.setter
    def listener(self, listener: SessionListener | None) -> None:
        self._listener = listener or NullSessionListener()
        self._scheduler.listener = self._listener

    @property
    def scheduler(self) -> InactivityScheduler:
        return self._scheduler

    @property
    def monitor(self) -> ActivityMonitor:
        return self._monitor

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def user(self) -> User | None:
        return self._session.user if self._session is not None else None

    @property
    def scheduler_state(self) -> SchedulerState:
        return self._scheduler.state

    @property
    def seconds_remaining(self) -> int:
        return self._scheduler.seconds_remaining

    def is_authenticated(self) -> bool:
        return self._credentials.has_token()

    def token_provider(self) -> str | None:
        """Bearer token for the API clients."""
        if self._session is not None:
            return self._session.access_token
        return self._credentials.token

    def on_api_request(self) -> None:
        """Hook for the API clients: an authenticated request counts as activity."""
        self._monitor.notify(ActivityKind.API_REQUEST)

    def record_activity(self, kind: ActivityKind | str = ActivityKind.KEY_PRESS) -> None:
        self._monitor.notify(kind)

    # ---- session lifecycle ----

    def _begin_session(self) -> None:
        self._monitor.start(self._scheduler.activity)
        self._scheduler.start()

    def _end_session(self) -> None:
        self._monitor.stop()
        self._scheduler.stop()

    def _notify(self, method: str, *args: Any) -> None:
        try:
            getattr(self._listener, method)(*args)
        except Exception:
            logger.exception("Session listener %s failed", method)

    async def login(self, username: str, password: str, stay_signed_in: bool = False) -> User:
        """
        Authenticate and start a session.

        Raises:
            AuthError: bad credentials (AuthUnavailableError when the remote is unreachable).
        On failure nothing about the current session, stores or timers changes.
        """
        username = (username or "").strip()
        if not username or not password:
            raise AuthError("Username and password are required.", code="AUTH_MISSING_CREDENTIALS")

        expires = self._persistent_session_expires_mins if stay_signed_in else self._session_expires_mins
        result = await self._identity.login(username, password, expires_in_mins=expires)

        # Only now, after the network call resolved, touch any state.
        if self._session is not None:
            logger.info("Replacing existing session for user_id=%s", self._session.user.id)
            self._end_session()

        self._credentials.save(token=result.access_token, refresh_token=result.refresh_token, user=result.user)
        self._preferences.set_stay_signed_in(stay_signed_in)
        self._session = Session(
            user=result.user,
            access_token=result.access_token,
            refresh_token=result.refresh_token,
            persistent=stay_signed_in,
        )
        self._begin_session()

        logger.info("Logged in user_id=%s stay_signed_in=%s", result.user.id, stay_signed_in)
        self._notify("on_logged_in", result.user)
        return result.user

    async def signup(self, profile: SignupData) -> dict[str, Any]:
        """Register a new account. Does not sign in."""
        created = await self._identity.signup(profile)
        return created

    def logout(self, reason: LogoutReason = LogoutReason.USER) -> None:
        """Clear credentials and return the scheduler to IDLE. Safe from any state, safe to repeat."""
        had_session = self._session is not None or self._credentials.has_token()

        self._end_session()
        self._credentials.clear()
        if self._clear_policy_on_logout:
            self._preferences.reset()
        else:
            self._preferences.set_stay_signed_in(False)
        self._session = None

        if had_session:
            logger.info("Logged out (reason=%s)", reason.value)
            self._notify("on_logged_out", reason)

    def shutdown(self) -> None:
        """Process exit: stop timers and listeners but keep credentials for restore_session()."""
        self._end_session()

    def _on_inactivity_expired(self) -> None:
        self.logout(LogoutReason.INACTIVITY)

    async def restore_session(self) -> User | None:
        """
        Rebuild the session from cached credentials (call once at startup).

        The cached profile is used immediately; /auth/me only refreshes it.
        Revalidation failures keep the cached session.
        """
        if self._session is not None:
            return self._session.user

        token = self._credentials.token
        cached = self._credentials.load_user()
        if token is None or cached is None:
            return None

        self._session = Session(
            user=cached,
            access_token=token,
            refresh_token=self._credentials.refresh_token or "",
            persistent=self._preferences.get_stay_signed_in(),
        )
        self._begin_session()
        logger.info("Restored cached session for user_id=%s", cached.id)
        self._notify("on_logged_in", cached)

        user = await self._revalidate()
        if user is None or self._session is None:
            return self.user

        self._session.user = user
        self._credentials.update_user(user)
        return user

    async def _revalidate(self) -> User | None:
        try:
            return await self._identity.me()
        except NetworkError:
            logger.warning("Profile revalidation failed (network); keeping cached profile.")
            return None
        except AuthError:
            logger.info("Cached token rejected; trying refresh.")

        try:
            await self.refresh_access_token()
        except TaskdeskError:
            logger.warning("Token refresh failed; keeping cached profile.")
            return None

        try:
            return await self._identity.me()
        except TaskdeskError:
            logger.warning("Profile revalidation failed after refresh; keeping cached profile.")
            return None

    async def refresh_access_token(self) -> str:
        """Exchange the refresh token for a new access token."""
        refresh_token = self._credentials.refresh_token
        if not refresh_token:
            raise AuthError("No refresh token available.", code="AUTH_NO_REFRESH_TOKEN")

        token, new_refresh = await self._identity.refresh(refresh_token, expires_in_mins=self._session_expires_mins)
        if self._session is None and not self._credentials.has_token():
            # Logged out while the refresh was in flight.
            raise AuthError("Session ended during refresh.", code="AUTH_SESSION_ENDED")

        self._credentials.update_token(token, new_refresh)
        if self._session is not None:
            self._session.access_token = token
            if new_refresh:
                self._session.refresh_token = new_refresh
        logger.info("Access token refreshed")
        return token

    # ---- inactivity policy ----

    def get_timeout_policy(self) -> TimeoutPolicy:
        return self._preferences.get_policy()

    def update_timeout_policy(self, minutes: int) -> TimeoutPolicy:
        """
        Persist a new inactivity timeout and re-arm with it.

        Raises:
            ValidationError: minutes outside [1, 60]; nothing changes.
        """
        self._preferences.set_timeout_minutes(minutes)
        self._scheduler.policy_changed()
        return self._preferences.get_policy()

    def set_stay_signed_in(self, flag: bool) -> TimeoutPolicy:
        self._preferences.set_stay_signed_in(flag)
        self._scheduler.policy_changed()
        return self._preferences.get_policy()

    def extend_session(self) -> bool:
        """The "stay logged in" answer to the warning prompt."""
        return self._scheduler.extend()
