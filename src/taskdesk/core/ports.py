# src/taskdesk/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the session core.

The scheduler and the session manager depend on Protocols instead of concrete
implementations. Timers, the identity API and the UI listener stay swappable,
which is what lets the tests drive a manual clock.
"""

from typing import Any, Callable, Protocol

from .models import LoginResult, LogoutReason, SignupData, User


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Timers(Protocol):
    """Monotonic clock + one-shot callbacks (asyncio loop in production)."""

    def now(self) -> float: ...
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class IdentityApi(Protocol):
    async def login(self, username: str, password: str, *, expires_in_mins: int) -> LoginResult: ...
    async def me(self) -> User: ...
    async def refresh(self, refresh_token: str, *, expires_in_mins: int) -> tuple[str, str | None]: ...
    async def signup(self, data: SignupData) -> dict[str, Any]: ...


class SessionListener(Protocol):
    """
    UI-side port: how the session core tells the user what is happening.

    None of these may raise into the scheduler; the core logs and ignores listener errors.
    """

    def on_logged_in(self, user: User) -> None: ...
    def on_warning(self, seconds_remaining: int) -> None: ...
    def on_countdown(self, seconds_remaining: int) -> None: ...
    def on_extended(self) -> None: ...
    def on_logged_out(self, reason: LogoutReason) -> None: ...


class NullSessionListener:
    def on_logged_in(self, user: User) -> None:
        return

    def on_warning(self, seconds_remaining: int) -> None:
        return

    def on_countdown(self, seconds_remaining: int) -> None:
        return

    def on_extended(self) -> None:
        return

    def on_logged_out(self, reason: LogoutReason) -> None:
        return
