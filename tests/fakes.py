# tests/fakes.py

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from taskdesk.core.models import LoginResult, LogoutReason, SignupData, User
from taskdesk.errors import AuthError, SignupError, TaskdeskError


@dataclass(slots=True)
class FakeHandle:
    due: float
    seq: int
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeTimers:
    """
    Manual clock implementing the Timers port.

    advance() fires due callbacks in (due, scheduling order), moving the clock to each
    callback's due time first, so callbacks that schedule more callbacks behave like
    they would on a real loop.
    """

    def __init__(self, start: float = 1000.0) -> None:
        self._now = start
        self._seq = 0
        self._queue: list[FakeHandle] = []

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle(due=self._now + max(0.0, delay), seq=self._seq, callback=callback)
        self._seq += 1
        self._queue.append(handle)
        return handle

    @property
    def pending(self) -> list[FakeHandle]:
        return [h for h in self._queue if not h.cancelled]

    def advance(self, seconds: float) -> None:
        target = self._now + seconds
        while True:
            due = [h for h in self._queue if not h.cancelled and h.due <= target]
            if not due:
                break
            handle = min(due, key=lambda h: (h.due, h.seq))
            self._queue.remove(handle)
            self._now = max(self._now, handle.due)
            handle.callback()
        self._now = target
        self._queue = [h for h in self._queue if not h.cancelled]


EMILY = User(
    id=1,
    username="emilys",
    email="emily.johnson@x.dummyjson.com",
    first_name="Emily",
    last_name="Johnson",
    gender="female",
    image="https://dummyjson.com/icon/emilys/128",
)


class FakeIdentityApi:
    """
    Deterministic IdentityApi.

    - one known account (username/password)
    - me_error / refresh_error / login_error let a test inject failures
    - captures calls for assertions
    """

    def __init__(self, user: User = EMILY, password: str = "emilyspass") -> None:
        self.user = user
        self.password = password
        self.login_error: TaskdeskError | None = None
        self.me_error: TaskdeskError | None = None
        self.me_user: User | None = None
        self.refresh_error: TaskdeskError | None = None
        self.signup_error: TaskdeskError | None = None
        self.calls: list[tuple[str, Any]] = []
        self._issued = 0

    async def login(self, username: str, password: str, *, expires_in_mins: int) -> LoginResult:
        self.calls.append(("login", (username, expires_in_mins)))
        if self.login_error is not None:
            raise self.login_error
        if username != self.user.username or password != self.password:
            raise AuthError("Invalid credentials", status_code=400)
        self._issued += 1
        return LoginResult(user=self.user, access_token=f"access-{self._issued}", refresh_token="refresh-1")

    async def me(self) -> User:
        self.calls.append(("me", None))
        if self.me_error is not None:
            raise self.me_error
        return self.me_user or self.user

    async def refresh(self, refresh_token: str, *, expires_in_mins: int) -> tuple[str, str | None]:
        self.calls.append(("refresh", (refresh_token, expires_in_mins)))
        if self.refresh_error is not None:
            raise self.refresh_error
        self._issued += 1
        return f"access-{self._issued}", "refresh-2"

    async def signup(self, data: SignupData) -> dict[str, Any]:
        self.calls.append(("signup", data.username))
        if self.signup_error is not None:
            raise self.signup_error
        if data.username == self.user.username:
            raise SignupError("Username already exists", status_code=400)
        return {"id": 209, "username": data.username}

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


@dataclass(slots=True)
class RecordingListener:
    """SessionListener that records every event as (name, arg)."""

    events: list[tuple[str, Any]] = field(default_factory=list)

    def on_logged_in(self, user: User) -> None:
        self.events.append(("logged_in", user.id))

    def on_warning(self, seconds_remaining: int) -> None:
        self.events.append(("warning", seconds_remaining))

    def on_countdown(self, seconds_remaining: int) -> None:
        self.events.append(("countdown", seconds_remaining))

    def on_extended(self) -> None:
        self.events.append(("extended", None))

    def on_logged_out(self, reason: LogoutReason) -> None:
        self.events.append(("logged_out", reason))

    def names(self) -> list[str]:
        return [name for name, _ in self.events]
