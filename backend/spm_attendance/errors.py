"""Attendance error taxonomy.

Each error carries the HTTP status it maps to and any extra fields that go
into the error envelope next to ``message``. The app factory registers a
handler for :class:`AttendanceError`, so views and services can simply raise.
"""
from typing import Any, Dict


class AttendanceError(Exception):
    """Base class for errors that map onto an API response."""

    status_code = 400

    def __init__(self, message: str, status_code: int = None, **extra: Any):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra: Dict[str, Any] = extra


class ValidationError(AttendanceError):
    """A required field is missing or malformed."""

    status_code = 400


class SessionNotFound(AttendanceError):
    """No attendance session has the given code."""

    status_code = 404

    def __init__(self, session_code: str):
        super().__init__(f"Attendance session {session_code} not found", sessionCode=session_code)
        self.session_code = session_code


class SessionExpired(AttendanceError):
    """The session code is valid but its window has closed."""

    status_code = 400

    def __init__(self, session_code: str, expired_at: str):
        super().__init__(
            f"Attendance session {session_code} expired at {expired_at}",
            sessionCode=session_code,
            expiredAt=expired_at
        )
        self.session_code = session_code
        self.expired_at = expired_at


class ActiveSessionConflict(AttendanceError):
    """The lecturer already has an unexpired session."""

    status_code = 400

    def __init__(self, active_session: Dict[str, Any]):
        super().__init__(
            "You already have an active attendance session",
            activeSession=active_session
        )
        self.active_session = active_session


class Forbidden(AttendanceError):
    """Role or ownership check failed."""

    status_code = 403
