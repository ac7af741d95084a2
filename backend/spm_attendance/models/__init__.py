"""Models package with all models."""
from .base import BaseModel
from .user import User, UserRole
from .attendance_session import AttendanceSession
from .attendance_log import AttendanceLog, CheckInMethod
from .notification import Notification, NotificationType

__all__ = [
    'BaseModel', 'User', 'UserRole',
    'AttendanceSession', 'AttendanceLog', 'CheckInMethod',
    'Notification', 'NotificationType'
]
