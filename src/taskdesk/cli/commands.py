# src/taskdesk/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from ..core.models import MAX_TIMEOUT_MINUTES, MIN_TIMEOUT_MINUTES, SchedulerState, SignupData, Todo
from ..core.state import AppState
from ..session.activity import ActivityKind

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[[AppState, list[str], CommandEmitter | None], Awaitable[str]]

logger = logging.getLogger(__name__)

NOT_SIGNED_IN = "You are not signed in. Use /login <username> <password> [--stay]."


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /login, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return await handler(state, args, emit)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _format_todo(todo: Todo) -> str:
    mark = "x" if todo.completed else " "
    return f"[{mark}] #{todo.id} {todo.todo}"


def _parse_id(raw: str) -> int | None:
    try:
        value = int(raw.lstrip("#"))
    except ValueError:
        return None
    return value if value > 0 else None


async def cmd_help(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


async def cmd_login(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /login <username> <password>          -> 60 min remote token, inactivity timeout on
    /login <username> <password> --stay   -> 30 day remote token, inactivity timeout off
    """
    stay = "--stay" in args
    rest = [a for a in args if a != "--stay"]
    if len(rest) != 2:
        return "Usage: /login <username> <password> [--stay]"

    if emit:
        emit("Signing in...")
    user = await state.session.login(rest[0], rest[1], stay_signed_in=stay)
    state.todo_cache.clear()
    return f"Login successful! Welcome, {user.display_name}."


async def cmd_signup(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if len(args) != 5:
        return "Usage: /signup <username> <password> <email> <first_name> <last_name>"
    username, password, email, first, last = args
    await state.session.signup(
        SignupData(username=username, password=password, email=email, first_name=first, last_name=last)
    )
    return "Signup successful! Please login with your credentials."


async def cmd_logout(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if state.session.user is None and not state.session.is_authenticated():
        return "You are not signed in."
    state.session.logout()
    state.todo_cache.clear()
    return "Logged out."


async def cmd_whoami(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    user = state.session.user
    if user is None:
        return NOT_SIGNED_IN
    return f"{user.display_name} (@{user.username}, id={user.id}, {user.email or 'no email'})"


async def cmd_todos(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    user = state.session.user
    if user is None:
        return NOT_SIGNED_IN
    page = await state.todos.list_user_todos(user.id)
    state.todo_cache = {t.id: t for t in page.todos}
    if not page.todos:
        return "No todos yet. Add one with /add <text>."
    done = sum(1 for t in page.todos if t.completed)
    lines = [f"Todos ({done}/{len(page.todos)} done):"]
    lines.extend(f"  {_format_todo(t)}" for t in page.todos)
    return "\n".join(lines)


async def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    user = state.session.user
    if user is None:
        return NOT_SIGNED_IN
    if not args:
        return "Usage: /add <text>"
    todo = await state.todos.create_todo(" ".join(args), user.id)
    state.todo_cache[todo.id] = todo
    return f"Added {_format_todo(todo)}"


async def _set_completed(state: AppState, args: list[str], completed: bool) -> str:
    if state.session.user is None:
        return NOT_SIGNED_IN
    todo_id = _parse_id(args[0]) if len(args) == 1 else None
    if todo_id is None:
        return f"Usage: /{'done' if completed else 'undo'} <id>"
    todo = await state.todos.set_completed(todo_id, completed)
    state.todo_cache[todo.id] = todo
    return f"Updated {_format_todo(todo)}"


async def cmd_done(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return await _set_completed(state, args, True)


async def cmd_undo(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return await _set_completed(state, args, False)


async def cmd_edit(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if state.session.user is None:
        return NOT_SIGNED_IN
    todo_id = _parse_id(args[0]) if len(args) >= 2 else None
    if todo_id is None:
        return "Usage: /edit <id> <text>"
    todo = await state.todos.update_todo(todo_id, todo=" ".join(args[1:]))
    state.todo_cache[todo.id] = todo
    return f"Updated {_format_todo(todo)}"


async def cmd_rm(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if state.session.user is None:
        return NOT_SIGNED_IN
    todo_id = _parse_id(args[0]) if len(args) == 1 else None
    if todo_id is None:
        return "Usage: /rm <id>"
    todo = await state.todos.delete_todo(todo_id)
    state.todo_cache.pop(todo.id, None)
    return f"Deleted #{todo.id}."


async def cmd_timeout(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /timeout            -> show current inactivity timeout
    /timeout <minutes>  -> set it (1..60)
    """
    if not args:
        policy = state.session.get_timeout_policy()
        if policy.stay_signed_in:
            return f"Inactivity timeout: {policy.timeout_minutes} min (inactive: stay signed in is ON)."
        return f"Inactivity timeout: {policy.timeout_minutes} min."

    try:
        minutes = int(args[0])
    except ValueError:
        return f"Usage: /timeout <minutes> ({MIN_TIMEOUT_MINUTES}-{MAX_TIMEOUT_MINUTES})"

    policy = state.session.update_timeout_policy(minutes)
    return f"Inactivity timeout set to {policy.timeout_minutes} min."


async def cmd_stay(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /stay on   -> never time out for inactivity
    /stay off  -> use the inactivity timeout again
    """
    if not args:
        on = state.session.get_timeout_policy().stay_signed_in
        return f"Stay signed in is {'ON' if on else 'OFF'}. Use /stay on or /stay off."

    arg = args[0].lower()
    if arg in ("on", "1", "true", "yes"):
        state.session.set_stay_signed_in(True)
        return "Stay signed in is ON. You will not be logged out for inactivity."
    if arg in ("off", "0", "false", "no"):
        state.session.set_stay_signed_in(False)
        return "Stay signed in is OFF."
    return "Usage: /stay on or /stay off."


async def cmd_extend(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if state.session.user is None:
        return NOT_SIGNED_IN
    if state.session.extend_session():
        return "Session extended."
    # No warning showing: the console skipped recording this line, so count it here.
    state.session.record_activity(ActivityKind.KEY_PRESS)
    return "Your session is active."


async def cmd_status(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    session = state.session
    policy = session.get_timeout_policy()
    user = session.user
    lines = [
        "Status:",
        f"  Signed in: {user.username if user else 'no'}",
        f"  Inactivity timeout: {policy.timeout_minutes} min",
        f"  Stay signed in: {'ON' if policy.stay_signed_in else 'OFF'}",
        f"  Session timer: {session.scheduler_state.value}",
    ]
    if session.scheduler_state == SchedulerState.WARNING:
        lines.append(f"  Logout in: {session.seconds_remaining}s")
    return "\n".join(lines)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("login", cmd_login, help_text="Sign in: /login <username> <password> [--stay].")
registry.register("signup", cmd_signup, help_text="Create an account: /signup <user> <pass> <email> <first> <last>.")
registry.register("logout", cmd_logout, help_text="Sign out now.")
registry.register("whoami", cmd_whoami, help_text="Show the signed-in user.")
registry.register("todos", cmd_todos, help_text="List your todos.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a todo: /add <text>.")
registry.register("done", cmd_done, help_text="Mark a todo as completed: /done <id>.")
registry.register("undo", cmd_undo, help_text="Mark a todo as not completed: /undo <id>.")
registry.register("edit", cmd_edit, help_text="Change a todo's text: /edit <id> <text>.")
registry.register("rm", cmd_rm, help_text="Delete a todo: /rm <id>.", aliases=["delete"])
registry.register("timeout", cmd_timeout, help_text="Show or set the inactivity timeout: /timeout [1-60].")
registry.register("stay", cmd_stay, help_text="Stay signed in: /stay on | /stay off.")
registry.register("extend", cmd_extend, help_text="Stay logged in when the timeout warning is shown.")
registry.register("status", cmd_status, help_text="Show session and timeout status.")
