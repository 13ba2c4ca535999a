# src/taskdesk/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .models import Todo

if TYPE_CHECKING:
    from ..api.base import ApiClient
    from ..api.todos import TodoClient
    from ..session.manager import SessionManager


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    session: SessionManager
    todos: TodoClient
    api: ApiClient

    # Last listing shown to the user (the remote does not persist mutations).
    todo_cache: dict[int, Todo] = field(default_factory=dict)
