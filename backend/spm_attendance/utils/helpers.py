"""Helper functions for the application."""
from datetime import datetime, timezone
from typing import Any, Optional
from flask import jsonify

def handle_error(error, status_code: int):
    """Handle application errors with consistent format."""
    return jsonify({
        'error': True,
        'message': str(error),
        'status_code': status_code
    }), status_code

def success_response(data: Any = None, message: str = "Success", status_code: int = 200):
    """Return consistent success response."""
    response = {
        'error': False,
        'message': message
    }

    if data is not None:
        response['data'] = data

    return jsonify(response), status_code

def error_response(message: str, status_code: int = 400, **extra):
    """Return consistent error response."""
    response = {
        'error': True,
        'message': message,
        'status_code': status_code
    }
    response.update(extra)
    return jsonify(response), status_code

def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Format a naive UTC datetime as ISO-8601 with a ``Z`` suffix."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec='milliseconds') + 'Z'

def truncate_to_millis(value: datetime) -> datetime:
    """Drop sub-millisecond precision, matching what :func:`to_iso` renders."""
    return value.replace(microsecond=value.microsecond // 1000 * 1000)

def parse_iso(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 string into a naive UTC datetime, or None if it can't be parsed."""
    if not value:
        return None
    text = str(value).strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed

def remaining_seconds(expires_at: datetime, now: datetime) -> int:
    """Whole seconds left until ``expires_at``, never negative."""
    return max(0, int((expires_at - now).total_seconds()))
