# src/taskdesk/session/activity.py

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Callable

from ..core.ports import TimerHandle, Timers

logger = logging.getLogger(__name__)

ActivitySink = Callable[[], None]


class ActivityKind(StrEnum):
    """The fixed set of signals that count as user activity."""

    POINTER_DOWN = "pointerdown"
    POINTER_MOVE = "pointermove"
    KEY_PRESS = "keypress"
    SCROLL = "scroll"
    TOUCH_START = "touchstart"
    CLICK = "click"
    # Authenticated outbound request made on the user's behalf.
    API_REQUEST = "api_request"


INTERACTION_KINDS = frozenset(k for k in ActivityKind if k is not ActivityKind.API_REQUEST)


class ActivityMonitor:
    """
    Turns raw interaction signals into "activity occurred" notifications.

    Lifecycle is explicit: start(sink) on login/restore, stop() on logout.
    While stopped every signal is dropped.

    With coalesce_seconds > 0 the first signal in a window is forwarded at once and
    the rest of the window collapses into one trailing forward at its end. The
    forward always happens at or after the last real signal, so an idle deadline
    is never computed from an earlier moment than the user's last action.
    """

    def __init__(self, timers: Timers, *, coalesce_seconds: float = 0.0) -> None:
        self._timers = timers
        self._window = max(0.0, float(coalesce_seconds))
        self._sink: ActivitySink | None = None
        self._last_forward: float | None = None
        self._trailing: TimerHandle | None = None
        self._epoch = 0
        self.forwarded = 0

    @property
    def active(self) -> bool:
        return self._sink is not None

    @property
    def coalesce_seconds(self) -> float:
        return self._window

    def start(self, sink: ActivitySink) -> None:
        self.stop()
        self._sink = sink
        logger.debug("Activity monitor started (coalesce=%.2fs)", self._window)

    def stop(self) -> None:
        self._epoch += 1
        if self._trailing is not None:
            self._trailing.cancel()
            self._trailing = None
        self._last_forward = None
        if self._sink is not None:
            logger.debug("Activity monitor stopped")
        self._sink = None

    def notify(self, kind: ActivityKind | str) -> bool:
        """
        Feed one raw signal. Returns True if it was forwarded immediately.

        Unknown signal kinds are ignored.
        """
        if self._sink is None:
            return False
        try:
            kind = ActivityKind(kind)
        except ValueError:
            logger.debug("Ignoring unknown activity kind %r", kind)
            return False

        if self._window <= 0:
            self._forward()
            return True

        now = self._timers.now()
        if self._last_forward is None or now - self._last_forward >= self._window:
            self._last_forward = now
            self._forward()
            return True

        if self._trailing is None:
            delay = self._last_forward + self._window - now
            epoch = self._epoch
            self._trailing = self._timers.call_later(delay, lambda: self._flush_trailing(epoch))
        return False

    def _flush_trailing(self, epoch: int) -> None:
        if epoch != self._epoch:
            return
        self._trailing = None
        if self._sink is None:
            return
        self._last_forward = self._timers.now()
        self._forward()

    def _forward(self) -> None:
        sink = self._sink
        if sink is None:
            return
        self.forwarded += 1
        try:
            sink()
        except Exception:
            logger.exception("Activity sink failed")
