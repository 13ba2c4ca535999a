# src/taskdesk/session/timers.py

from __future__ import annotations

import asyncio
from typing import Callable


class LoopTimers:
    """
    Timers port backed by an asyncio event loop.

    The loop is resolved lazily (first call inside a running loop) so the object
    can be built in the composition root before asyncio.run() starts.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self._get_loop().time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self._get_loop().call_later(max(0.0, float(delay)), callback)
