# src/taskdesk/api/todos.py

from __future__ import annotations

import logging
from typing import Any

from ..core.models import Todo, TodoPage
from ..errors import TodoError, ValidationError
from .base import ApiClient

logger = logging.getLogger(__name__)


class TodoClient:
    """Plain CRUD over /todos. Every call is authenticated, so every call counts as activity."""

    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def _call(self, method: str, path: str, *, json: Any = None, fallback: str) -> Any:
        return await self._api.request(
            method,
            path,
            json=json,
            authenticated=True,
            error_cls=TodoError,
            fallback_message=fallback,
        )

    async def list_user_todos(self, user_id: int) -> TodoPage:
        data = await self._call("GET", f"/todos/user/{int(user_id)}", fallback="Failed to fetch user todos")
        if not isinstance(data, dict):
            raise TodoError("Unexpected todo list response.")
        return TodoPage.from_api(data)

    async def get_todo(self, todo_id: int) -> Todo:
        data = await self._call("GET", f"/todos/{int(todo_id)}", fallback="Failed to fetch todo")
        return Todo.from_api(data)

    async def create_todo(self, text: str, user_id: int) -> Todo:
        text = (text or "").strip()
        if not text:
            raise ValidationError("Todo text must not be empty.")
        data = await self._call(
            "POST",
            "/todos/add",
            json={"todo": text, "completed": False, "userId": int(user_id)},
            fallback="Failed to create todo",
        )
        todo = Todo.from_api(data)
        logger.info("Created todo id=%s", todo.id)
        return todo

    async def update_todo(self, todo_id: int, *, todo: str | None = None, completed: bool | None = None) -> Todo:
        updates: dict[str, Any] = {}
        if todo is not None:
            text = todo.strip()
            if not text:
                raise ValidationError("Todo text must not be empty.")
            updates["todo"] = text
        if completed is not None:
            updates["completed"] = bool(completed)
        if not updates:
            raise ValidationError("Nothing to update.")

        data = await self._call("PUT", f"/todos/{int(todo_id)}", json=updates, fallback="Failed to update todo")
        logger.info("Updated todo id=%s fields=%s", todo_id, sorted(updates))
        return Todo.from_api(data)

    async def set_completed(self, todo_id: int, completed: bool = True) -> Todo:
        return await self.update_todo(todo_id, completed=completed)

    async def delete_todo(self, todo_id: int) -> Todo:
        data = await self._call("DELETE", f"/todos/{int(todo_id)}", fallback="Failed to delete todo")
        logger.info("Deleted todo id=%s", todo_id)
        return Todo.from_api(data)
