"""Session codes and the wall clock."""
import secrets
from datetime import datetime

from spm_attendance.utils.helpers import utcnow

# No 0/O or 1/I, so codes survive being read aloud and typed by hand
CODE_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'
CODE_GROUP_LENGTH = 6


def random_code(length: int = CODE_GROUP_LENGTH) -> str:
    return ''.join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def generate_session_code() -> str:
    """Two random groups joined by a dash, e.g. ``K7PQ2M-XW9D4R``."""
    return f"{random_code()}-{random_code()}"


class Clock:
    """Source of the current time as naive UTC."""

    def now(self) -> datetime:
        return utcnow()
