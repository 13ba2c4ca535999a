# src/taskdesk/errors.py

"""
Error taxonomy shared by the API clients, the stores and the session layer.

Network failures during login/signup use combined classes so callers can catch
them either as the domain error or as a NetworkError.
"""

from __future__ import annotations

from typing import Any, Optional


class TaskdeskError(Exception):
    """Base application error."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class AuthError(TaskdeskError):
    """Bad credentials, expired or invalid token."""

    def __init__(
        self,
        message: str = "Login failed",
        code: str = "AUTH_ERROR",
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message, code, status_code)


class SignupError(TaskdeskError):
    """Remote rejected the registration (validation or conflict)."""

    def __init__(
        self,
        message: str = "Signup failed",
        code: str = "SIGNUP_ERROR",
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message, code, status_code)


class ValidationError(TaskdeskError):
    """Client-side value out of range (e.g. inactivity timeout)."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR") -> None:
        super().__init__(message, code)


class NetworkError(TaskdeskError):
    """Remote unreachable (connect error, timeout, broken transport)."""

    def __init__(self, message: str = "Couldn't reach the server. Please try again.", code: str = "NETWORK_ERROR") -> None:
        super().__init__(message, code)


class TodoError(TaskdeskError):
    """Remote rejected a todo CRUD call."""

    def __init__(
        self,
        message: str = "Todo request failed",
        code: str = "TODO_ERROR",
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message, code, status_code)


class AuthUnavailableError(AuthError, NetworkError):
    """Login/refresh/profile call could not reach the identity API."""

    def __init__(self, message: str = "Couldn't reach the login server. Please try again.") -> None:
        TaskdeskError.__init__(self, message, "AUTH_UNAVAILABLE")


class SignupUnavailableError(SignupError, NetworkError):
    """Signup call could not reach the identity API."""

    def __init__(self, message: str = "Couldn't reach the signup server. Please try again.") -> None:
        TaskdeskError.__init__(self, message, "SIGNUP_UNAVAILABLE")
