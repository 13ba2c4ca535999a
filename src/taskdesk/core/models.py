# src/taskdesk/core/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

MIN_TIMEOUT_MINUTES = 1
MAX_TIMEOUT_MINUTES = 60


class SchedulerState(StrEnum):
    """
    Inactivity scheduler state.

    WARNING carries its countdown separately (InactivityScheduler.seconds_remaining).
    """

    IDLE = "idle"
    ARMED = "armed"
    WARNING = "warning"
    EXPIRED = "expired"


class LogoutReason(StrEnum):
    USER = "user"
    INACTIVITY = "inactivity"


def _opt_str(raw: Any) -> str:
    return "" if raw is None else str(raw)


@dataclass(slots=True, frozen=True)
class User:
    """Profile returned by /auth/login and /auth/me (tokens are kept separately)."""

    id: int
    username: str
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    gender: str = ""
    image: str = ""

    @property
    def display_name(self) -> str:
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.username

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> User:
        return cls(
            id=int(data["id"]),
            username=_opt_str(data.get("username")),
            email=_opt_str(data.get("email")),
            first_name=_opt_str(data.get("firstName")),
            last_name=_opt_str(data.get("lastName")),
            gender=_opt_str(data.get("gender")),
            image=_opt_str(data.get("image")),
        )

    def to_api(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "gender": self.gender,
            "image": self.image,
        }


@dataclass(slots=True, frozen=True)
class LoginResult:
    user: User
    access_token: str
    refresh_token: str


@dataclass(slots=True, frozen=True)
class SignupData:
    username: str
    password: str
    email: str
    first_name: str
    last_name: str

    def to_api(self) -> dict[str, Any]:
        return {
            "username": self.username,
            "password": self.password,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
        }


@dataclass(slots=True)
class Session:
    """The one live signed-in session of this process."""

    user: User
    access_token: str
    refresh_token: str
    # True when "stay signed in" asked the remote for a long-lived token.
    persistent: bool = False


@dataclass(slots=True, frozen=True)
class TimeoutPolicy:
    timeout_minutes: int
    stay_signed_in: bool = False

    @property
    def timeout_seconds(self) -> float:
        return float(self.timeout_minutes * 60)


def is_valid_timeout(minutes: Any) -> bool:
    # bool is an int subclass; /timeout true must not mean 1 minute.
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        return False
    return MIN_TIMEOUT_MINUTES <= minutes <= MAX_TIMEOUT_MINUTES


@dataclass(slots=True, frozen=True)
class Todo:
    id: int
    todo: str
    completed: bool
    user_id: int

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Todo:
        return cls(
            id=int(data["id"]),
            todo=_opt_str(data.get("todo")),
            completed=bool(data.get("completed", False)),
            user_id=int(data.get("userId") or 0),
        )


@dataclass(slots=True, frozen=True)
class TodoPage:
    todos: list[Todo] = field(default_factory=list)
    total: int = 0
    skip: int = 0
    limit: int = 0

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> TodoPage:
        raw = data.get("todos") or []
        todos = [Todo.from_api(t) for t in raw if isinstance(t, dict)]
        return cls(
            todos=todos,
            total=int(data.get("total", len(todos)) or 0),
            skip=int(data.get("skip", 0) or 0),
            limit=int(data.get("limit", len(todos)) or 0),
        )
