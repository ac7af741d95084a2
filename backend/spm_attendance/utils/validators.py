"""Validation utilities for the application."""
import re
from typing import Any, Dict, List

from spm_attendance.errors import ValidationError

class Validator:
    """Validation helper class."""

    @staticmethod
    def validate_email(email: str) -> bool:
        """Validate email format."""
        if not email:
            return False
        pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        return bool(re.match(pattern, email))

    @staticmethod
    def validate_password(password: str) -> Dict[str, Any]:
        """Validate password strength."""
        errors = []

        if not password:
            errors.append("Password is required")
        elif len(password) < 6:
            errors.append("Password must be at least 6 characters long")
        elif len(password) > 128:
            errors.append("Password is too long")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def require_fields(data: Dict, required_fields: List[str]) -> None:
        """Raise ValidationError naming the first missing field."""
        for field in required_fields:
            value = data.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError(f"{field} is required")

    @staticmethod
    def parse_duration(value: Any, default: int, maximum: int) -> int:
        """Session duration in minutes, between 1 and ``maximum``."""
        if value is None or value == '':
            return default
        if isinstance(value, bool):
            raise ValidationError("durationMinutes must be a whole number of minutes")
        try:
            minutes = int(value)
        except (TypeError, ValueError):
            raise ValidationError("durationMinutes must be a whole number of minutes")
        if isinstance(value, float) and value != minutes:
            raise ValidationError("durationMinutes must be a whole number of minutes")
        if minutes < 1 or minutes > maximum:
            raise ValidationError(f"durationMinutes must be between 1 and {maximum}")
        return minutes
