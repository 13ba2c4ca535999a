# src/taskdesk/api/base.py

"""
Shared HTTP plumbing for the remote REST API.

- one httpx.AsyncClient per process (connection pooling, explicit timeouts)
- bearer token injected from a token provider for authenticated calls
- every authenticated call is reported to an activity hook before it is sent
- transport failures -> NetworkError (or the caller's "unavailable" variant)
- non-2xx responses -> the caller's domain error, using the remote {"message": ...}
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import httpx

from ..errors import AuthError, NetworkError, TaskdeskError

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]
RequestHook = Callable[[], None]


def _make_timeout(connect_s: float, read_s: float) -> httpx.Timeout:
    return httpx.Timeout(connect=connect_s, read=read_s, write=10.0, pool=connect_s)


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        data = response.json()
    except ValueError:
        return fallback
    if isinstance(data, dict):
        msg = data.get("message") or data.get("error")
        if isinstance(msg, str) and msg.strip():
            return msg.strip()
    return fallback


class ApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        token_provider: TokenProvider | None = None,
        on_authenticated_request: RequestHook | None = None,
        connect_timeout: float = 5.0,
        read_timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token_provider = token_provider
        self.on_authenticated_request = on_authenticated_request
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=_make_timeout(connect_timeout, read_timeout),
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def _auth_headers(self) -> dict[str, str]:
        token = self.token_provider() if self.token_provider is not None else None
        if not token:
            raise AuthError("You are not signed in.", code="AUTH_NO_TOKEN")
        return {"Authorization": f"Bearer {token}"}

    def _report_activity(self) -> None:
        hook = self.on_authenticated_request
        if hook is None:
            return
        try:
            hook()
        except Exception:
            logger.exception("Authenticated request hook failed")

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        authenticated: bool = False,
        error_cls: type[TaskdeskError] = TaskdeskError,
        unavailable_cls: type[NetworkError] = NetworkError,
        fallback_message: str = "Request failed",
    ) -> Any:
        headers: dict[str, str] = {}
        if authenticated:
            headers.update(self._auth_headers())
            self._report_activity()

        try:
            response = await self._client.request(method, path, json=json, headers=headers)
        except httpx.TransportError as e:
            logger.info("%s %s failed: %s", method, path, e.__class__.__name__)
            raise unavailable_cls() from e

        if response.is_error:
            status = response.status_code
            message = _error_message(response, fallback_message)
            logger.info("%s %s -> HTTP %s (%s)", method, path, status, message)
            if authenticated and status in (401, 403):
                raise AuthError(message, code="AUTH_INVALID_TOKEN", status_code=status)
            raise error_cls(message, status_code=status)

        try:
            return response.json()
        except ValueError as e:
            raise error_cls("Unexpected response from server.", status_code=response.status_code) from e
