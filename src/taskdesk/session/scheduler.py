# src/taskdesk/session/scheduler.py

"""
Inactivity scheduler.

One state machine per process:

    IDLE       --start()-------------> ARMED        (IDLE again if "stay signed in")
    ARMED      --activity------------> ARMED        (fresh idle timer)
    ARMED      --idle timer fires----> WARNING(60)
    WARNING(n) --1s tick-------------> WARNING(n-1)
    WARNING(n) --extend()/activity---> ARMED
    WARNING(0) ----------------------> EXPIRED --forced logout--> IDLE
    any        --stop()--------------> IDLE

Rules:
- every transition cancels the timers of the state being left before scheduling new ones;
- every scheduled callback captures the current epoch, and a callback whose epoch is stale
  is a no-op, so a late-firing timer can never double-fire a warning or a logout;
- the policy is read on every (re)arm; "stay signed in" keeps the scheduler IDLE;
- if either local store (preferences or credentials) cannot persist, no client timers are scheduled at all
  and the remote token lifetime is the only expiry.

Forced logout is a callback (on_expire), never an exception.
"""

from __future__ import annotations

import logging
from typing import Callable

from ..auth.preferences import TimeoutPreferenceStore
from ..core.models import SchedulerState
from ..core.ports import NullSessionListener, SessionListener, TimerHandle, Timers

logger = logging.getLogger(__name__)

WARNING_SECONDS = 60
COUNTDOWN_INTERVAL_SECONDS = 1.0


class InactivityScheduler:
    def __init__(
        self,
        preferences: TimeoutPreferenceStore,
        timers: Timers,
        *,
        on_expire: Callable[[], None],
        listener: SessionListener | None = None,
        warning_seconds: int = WARNING_SECONDS,
        credentials_available: Callable[[], bool] | None = None,
    ) -> None:
        self._preferences = preferences
        self._credentials_available = credentials_available
        self._timers = timers
        self._on_expire = on_expire
        self.listener: SessionListener = listener or NullSessionListener()
        self._warning_seconds = max(1, int(warning_seconds))

        self._state = SchedulerState.IDLE
        self._active = False
        self._seconds_remaining = 0
        self._epoch = 0

        self._idle_handle: TimerHandle | None = None
        self._countdown_handle: TimerHandle | None = None
        self._idle_deadline: float | None = None
        self._last_armed_at: float | None = None
        self._storage_warned = False

    # ---- introspection ----

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def active(self) -> bool:
        """True while a session is bound to the scheduler (even if policy keeps it IDLE)."""
        return self._active

    @property
    def seconds_remaining(self) -> int:
        return self._seconds_remaining if self._state == SchedulerState.WARNING else 0

    @property
    def idle_deadline(self) -> float | None:
        return self._idle_deadline

    @property
    def last_armed_at(self) -> float | None:
        return self._last_armed_at

    @property
    def warning_seconds(self) -> int:
        return self._warning_seconds

    def live_timer_count(self) -> int:
        return int(self._idle_handle is not None) + int(self._countdown_handle is not None)

    # ---- lifecycle ----

    def start(self) -> None:
        """Session became active: IDLE -> ARMED (or stay IDLE per policy)."""
        self._active = True
        self._rearm("session start")

    def stop(self) -> None:
        """Explicit logout (user or forced): any state -> IDLE, nothing left scheduled."""
        self._active = False
        self._cancel_timers()
        self._seconds_remaining = 0
        if self._state != SchedulerState.IDLE:
            logger.debug("Scheduler %s -> idle (stop)", self._state.value)
        self._state = SchedulerState.IDLE

    # ---- inputs ----

    def activity(self) -> None:
        """One logical activity notification from the ActivityMonitor."""
        if not self._active or self._state == SchedulerState.EXPIRED:
            return
        was_warning = self._state == SchedulerState.WARNING
        self._rearm("activity")
        if was_warning:
            self._notify("on_extended")

    def extend(self) -> bool:
        """Explicit "stay logged in" from the warning prompt. Returns False if no warning is showing."""
        if not self._active or self._state != SchedulerState.WARNING:
            return False
        self._rearm("extend")
        self._notify("on_extended")
        return True

    def policy_changed(self) -> None:
        """
        Apply a new TimeoutPolicy.

        ARMED (or IDLE with an active session) re-arms right away with the new policy.
        A running WARNING countdown finishes under the policy it started with.
        """
        if not self._active:
            return
        if self._state == SchedulerState.WARNING:
            logger.info("Policy change deferred until the current warning is resolved.")
            return
        if self._state == SchedulerState.EXPIRED:
            return
        self._rearm("policy change")

    # ---- transitions ----

    def _cancel_timers(self) -> None:
        self._epoch += 1
        if self._idle_handle is not None:
            self._idle_handle.cancel()
            self._idle_handle = None
        if self._countdown_handle is not None:
            self._countdown_handle.cancel()
            self._countdown_handle = None
        self._idle_deadline = None

    def _storage_available(self) -> bool:
        if not self._preferences.available:
            return False
        return self._credentials_available is None or self._credentials_available()

    def _rearm(self, why: str) -> None:
        self._cancel_timers()
        self._seconds_remaining = 0

        if not self._storage_available():
            if not self._storage_warned:
                logger.warning("Local storage unavailable; inactivity timeout disabled for this session.")
                self._storage_warned = True
            self._state = SchedulerState.IDLE
            return

        policy = self._preferences.get_policy()
        if policy.stay_signed_in:
            if self._state != SchedulerState.IDLE:
                logger.info("Stay signed in enabled; inactivity timer off.")
            self._state = SchedulerState.IDLE
            return

        now = self._timers.now()
        delay = policy.timeout_seconds
        epoch = self._epoch
        self._idle_handle = self._timers.call_later(delay, lambda: self._on_idle_timeout(epoch))
        self._idle_deadline = now + delay
        self._last_armed_at = now
        self._state = SchedulerState.ARMED
        logger.debug("Scheduler armed (%s) timeout=%dmin", why, policy.timeout_minutes)

    def _on_idle_timeout(self, epoch: int) -> None:
        if epoch != self._epoch or self._state != SchedulerState.ARMED:
            return
        self._idle_handle = None
        self._cancel_timers()

        self._state = SchedulerState.WARNING
        self._seconds_remaining = self._warning_seconds
        self._schedule_tick()
        logger.info("Inactivity warning: logout in %ds", self._seconds_remaining)
        self._notify("on_warning", self._seconds_remaining)

    def _schedule_tick(self) -> None:
        epoch = self._epoch
        self._countdown_handle = self._timers.call_later(
            COUNTDOWN_INTERVAL_SECONDS, lambda: self._on_tick(epoch)
        )

    def _on_tick(self, epoch: int) -> None:
        if epoch != self._epoch or self._state != SchedulerState.WARNING:
            return
        self._countdown_handle = None
        self._seconds_remaining -= 1

        if self._seconds_remaining <= 0:
            self._expire()
            return

        self._schedule_tick()
        logger.debug("Countdown %ds", self._seconds_remaining)
        self._notify("on_countdown", self._seconds_remaining)

    def _expire(self) -> None:
        self._cancel_timers()
        self._seconds_remaining = 0
        self._state = SchedulerState.EXPIRED
        logger.info("Inactivity countdown reached zero; logging out.")
        try:
            self._on_expire()
        except Exception:
            logger.exception("Forced logout callback failed")
        finally:
            if self._state == SchedulerState.EXPIRED:
                self.stop()

    def _notify(self, method: str, *args: int) -> None:
        try:
            getattr(self.listener, method)(*args)
        except Exception:
            logger.exception("Session listener %s failed", method)
