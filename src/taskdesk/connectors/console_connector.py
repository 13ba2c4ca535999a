# src/taskdesk/connectors/console_connector.py

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import sys
import threading
from collections.abc import Callable
from datetime import datetime
from typing import TextIO

from ..cli.commands import registry as command_registry
from ..core.models import LogoutReason, User
from ..core.state import AppState
from ..errors import TaskdeskError
from ..session.activity import ActivityKind

logger = logging.getLogger(__name__)

PROMPT = ">>> "


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class ConsoleSessionListener:
    """Renders session events (the timeout warning, forced logout, ...) on the console."""

    def __init__(self, out: Callable[[str], None] = _print_ts) -> None:
        self._out = out

    def on_logged_in(self, user: User) -> None:
        self._out(f"[SESSION] Signed in as {user.display_name}.")

    def on_warning(self, seconds_remaining: int) -> None:
        self._out(
            "[SESSION] Session Timeout Warning: you will be logged out due to inactivity in "
            f"{seconds_remaining} seconds. Type /extend to stay logged in or /logout to log out now."
        )

    def on_countdown(self, seconds_remaining: int) -> None:
        # One line per second would flood the terminal.
        if seconds_remaining % 10 == 0 or seconds_remaining <= 5:
            self._out(f"[SESSION] Logging out in {seconds_remaining}s...")

    def on_extended(self) -> None:
        self._out("[SESSION] Session extended.")

    def on_logged_out(self, reason: LogoutReason) -> None:
        if reason == LogoutReason.INACTIVITY:
            self._out("[SESSION] You have been logged out due to inactivity.")
        else:
            self._out("[SESSION] You have been logged out.")


class ConsoleInput:
    """
    Async line reader for stdin.

    On POSIX the stdin fd is watched by the event loop itself (add_reader), so no
    thread sits blocked in input() and Ctrl+C can end the loop at any time.
    Where the loop cannot watch the fd (Windows proactor loop, regular files) a
    daemon thread reads lines and hands them over with call_soon_threadsafe.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdin
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        encoding = getattr(self._stream, "encoding", None) or "utf-8"
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""
        self._loop: asyncio.AbstractEventLoop | None = None
        self._fd: int | None = None

    def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        try:
            fd = self._stream.fileno()
            self._loop.add_reader(fd, self._on_readable)
        except (NotImplementedError, OSError, ValueError):
            logger.debug("stdin cannot be watched by the loop; using a reader thread.", exc_info=True)
            threading.Thread(target=self._read_in_thread, name="console-stdin", daemon=True).start()
            return
        self._fd = fd

    def close(self) -> None:
        if self._fd is not None and self._loop is not None:
            self._loop.remove_reader(self._fd)
        self._fd = None

    async def readline(self, prompt: str = "") -> str:
        """Next line without its newline. Raises EOFError once stdin is closed."""
        if prompt:
            sys.stdout.write(prompt)
            sys.stdout.flush()
        line = await self._queue.get()
        if line is None:
            # Keep the EOF marker for the next caller.
            self._queue.put_nowait(None)
            raise EOFError
        return line

    def _on_readable(self) -> None:
        assert self._fd is not None
        try:
            chunk = os.read(self._fd, 4096)
        except BlockingIOError:
            return
        except OSError:
            logger.debug("stdin read failed; treating as EOF.", exc_info=True)
            chunk = b""

        if not chunk:
            self.close()
            tail = self._buffer + self._decoder.decode(b"", final=True)
            self._buffer = ""
            if tail:
                self._queue.put_nowait(tail.rstrip("\r"))
            self._queue.put_nowait(None)
            return

        self._buffer += self._decoder.decode(chunk)
        while "\n" in self._buffer:
            line, self._buffer = self._buffer.split("\n", 1)
            self._queue.put_nowait(line.rstrip("\r"))

    def _read_in_thread(self) -> None:
        loop = self._loop
        assert loop is not None
        try:
            for raw in self._stream:
                loop.call_soon_threadsafe(self._queue.put_nowait, raw.rstrip("\r\n"))
            loop.call_soon_threadsafe(self._queue.put_nowait, None)
        except RuntimeError:
            # Loop already closed during shutdown.
            return


async def handle_line(state: AppState, line: str, emit: Callable[[str], None] | None = None) -> str | None:
    """
    Route one console line.

    Every line counts as a key press for the inactivity timer, except /extend:
    it answers the timeout warning itself, and recording it first would dismiss
    the warning before the command could see it.
    """
    parts = line.split(maxsplit=1)
    if not parts or parts[0].lower() != "/extend":
        state.session.record_activity(ActivityKind.KEY_PRESS)

    line = line.strip()
    if not line:
        return None
    if not line.startswith("/"):
        return "Commands start with '/'. Use /help to list them."

    try:
        return await command_registry.handle(state, line, emit=emit)
    except TaskdeskError as e:
        logger.info("Command failed (%s): %s", e.code, e.message)
        return e.message
    except Exception:
        logger.exception("Command handler crashed.")
        return "Internal error while handling a command."


async def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    state.session.listener = ConsoleSessionListener()

    user = await state.session.restore_session()
    if user is not None:
        _print_ts(f"[CONSOLE] Welcome back, {user.display_name}. Use /todos to list your todos.")
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.\n")

    console = ConsoleInput()
    console.start()
    try:
        while True:
            try:
                line = await console.readline(PROMPT)
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break

            if line.strip().lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            reply = await handle_line(state, line, emit=_print_ts)
            if reply is not None:
                _print_ts(reply)
    finally:
        console.close()

    logger.info("Console connector finished.")
