"""Time-boxed attendance session issued by a lecturer."""
from datetime import datetime
from typing import Any, Dict, Optional
from spm_attendance import db
from spm_attendance.models.base import BaseModel
from spm_attendance.utils.helpers import to_iso, remaining_seconds

class AttendanceSession(BaseModel):
    """Session students check into by scanning its QR code or typing its code.

    Course and lecturer labels are copied at issuance. ``lecturer_id`` is
    missing on legacy rows, so ownership queries match on it or on the
    ``lecturer`` display name.
    """

    __tablename__ = 'attendance_sessions'

    session_code = db.Column(db.String(32), unique=True, nullable=False, index=True)
    course_code = db.Column(db.String(32), nullable=True)
    course_name = db.Column(db.String(255), nullable=True)
    lecturer = db.Column(db.String(255), nullable=True, index=True)
    lecturer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True, index=True)
    issued_at = db.Column(db.DateTime, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)

    def is_expired(self, now: datetime) -> bool:
        """Expired from ``expires_at`` onwards, inclusive."""
        return now >= self.expires_at

    def remaining_seconds(self, now: datetime) -> int:
        return remaining_seconds(self.expires_at, now)

    def to_payload(self) -> Dict[str, Any]:
        """QR payload; the same fields the session is persisted with."""
        return {
            'sessionCode': self.session_code,
            'courseCode': self.course_code,
            'courseName': self.course_name,
            'lecturer': self.lecturer,
            'issuedAt': to_iso(self.issued_at),
            'expiresAt': to_iso(self.expires_at)
        }

    def to_dict(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Convert to dictionary, with live expiry fields when ``now`` is given."""
        data = self.to_payload()
        data['lecturerId'] = self.lecturer_id
        if now is not None:
            data['isExpired'] = self.is_expired(now)
            data['remainingSeconds'] = self.remaining_seconds(now)
        return data

    def __repr__(self):
        return f'<AttendanceSession {self.session_code}>'
