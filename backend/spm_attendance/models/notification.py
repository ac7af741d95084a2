"""Notifications delivered to users by polling."""
from spm_attendance import db
from spm_attendance.models.base import BaseModel
from spm_attendance.utils.helpers import utcnow, to_iso

class NotificationType:
    """Notification type strings."""
    ATTENDANCE_SCAN = 'attendance_scan'
    ATTENDANCE_SESSION_CREATED = 'attendance_session_created'

class Notification(BaseModel):
    """Notification model."""

    __tablename__ = 'notifications'

    recipient_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    recipient_role = db.Column(db.String(20), nullable=False)
    type = db.Column(db.String(50), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)

    related_course_code = db.Column(db.String(32), nullable=True)
    related_session_code = db.Column(db.String(32), nullable=True)
    extra = db.Column(db.JSON, nullable=True)

    read = db.Column(db.Boolean, default=False, nullable=False, index=True)
    read_at = db.Column(db.DateTime, nullable=True)

    action_url = db.Column(db.String(255), nullable=True)
    action_label = db.Column(db.String(100), nullable=True)
    priority = db.Column(db.String(20), default='normal', nullable=False)

    def mark_as_read(self) -> None:
        if not self.read:
            self.read = True
            self.read_at = utcnow()

    def to_dict(self):
        """Convert to dictionary."""
        return {
            'id': self.id,
            'recipientId': self.recipient_id,
            'recipientRole': self.recipient_role,
            'type': self.type,
            'title': self.title,
            'message': self.message,
            'relatedCourseCode': self.related_course_code,
            'relatedSessionCode': self.related_session_code,
            'metadata': self.extra or {},
            'read': self.read,
            'readAt': to_iso(self.read_at),
            'actionUrl': self.action_url,
            'actionLabel': self.action_label,
            'priority': self.priority,
            'createdAt': to_iso(self.created_at)
        }
