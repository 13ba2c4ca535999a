# src/taskdesk/storage/local_store.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class LocalStore:
    """
    Small JSON-file key/value store (the client-side equivalent of browser storage).

    - the whole file is one JSON object, loaded once and cached in memory
    - every mutation rewrites the file atomically (tmp + os.replace)
    - the file is chmod 0600 best-effort (it holds tokens and profile data)

    If the file cannot be read or written (read-only home, restricted sandbox, ...)
    the store flips to available=False and keeps working in memory only, so the
    rest of the app does not crash.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._data: dict[str, Any] = {}
        self._available = True
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def available(self) -> bool:
        return self._available

    def _mark_unavailable(self, action: str) -> None:
        if self._available:
            logger.warning("LocalStore unavailable (%s failed) path=%s; keeping values in memory.", action, self._path)
        self._available = False

    def _load(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError:
            logger.debug("mkdir failed for %s", self._path.parent, exc_info=True)
            self._mark_unavailable("mkdir")
            return

        if not self._path.exists():
            return

        try:
            raw = self._path.read_text("utf-8")
        except OSError:
            logger.debug("read failed for %s", self._path, exc_info=True)
            self._mark_unavailable("read")
            return

        try:
            data = json.loads(raw) if raw.strip() else {}
        except json.JSONDecodeError:
            logger.warning("LocalStore file is not valid JSON, starting empty: %s", self._path)
            return

        if isinstance(data, dict):
            self._data = data
        else:
            logger.warning("LocalStore file is not a JSON object, starting empty: %s", self._path)

    def _flush(self) -> None:
        if not self._available:
            return
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        payload = json.dumps(self._data, ensure_ascii=False, indent=2)
        try:
            # A leftover tmp file would keep its old mode; O_CREAT only applies 0600 to new files.
            with contextlib.suppress(FileNotFoundError):
                tmp.unlink()
            fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp, self._path)
        except OSError:
            logger.debug("write failed for %s", self._path, exc_info=True)
            self._mark_unavailable("write")
            return
        with contextlib.suppress(OSError):
            os.chmod(self._path, 0o600)

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._flush()

    def update(self, values: dict[str, Any]) -> None:
        self._data.update(values)
        self._flush()

    def remove(self, *keys: str) -> None:
        changed = False
        for key in keys:
            if key in self._data:
                del self._data[key]
                changed = True
        if changed:
            self._flush()

    def keys(self) -> list[str]:
        return list(self._data.keys())
