"""Notification creation and read-state."""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from spm_attendance import db
from spm_attendance.models.notification import Notification, NotificationType
from spm_attendance.utils.helpers import to_iso, utcnow

logger = logging.getLogger(__name__)

class NotificationService:
    """Service for notification operations."""

    @staticmethod
    def create_notification(recipient_id: int, recipient_role: str, type: str, title: str,
                            message: str, related_course_code: str = None,
                            related_session_code: str = None, metadata: dict = None,
                            action_url: str = None, action_label: str = None,
                            priority: str = 'normal') -> Notification:
        """Create a notification for a user."""
        notification = Notification(
            recipient_id=recipient_id,
            recipient_role=recipient_role,
            type=type,
            title=title,
            message=message,
            related_course_code=related_course_code,
            related_session_code=related_session_code,
            extra=metadata or {},
            action_url=action_url,
            action_label=action_label,
            priority=priority
        )
        try:
            db.session.add(notification)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise

        logger.info('Notification created: %s for user %s', type, recipient_id)
        return notification

    @staticmethod
    def notify_attendance_scan(log, lecturer_id: Optional[int]) -> Optional[Notification]:
        """Tell the lecturer a student checked in."""
        if not lecturer_id:
            logger.warning('No lecturer id for attendance scan on %s; notification skipped', log.session_code)
            return None

        return NotificationService.create_notification(
            recipient_id=lecturer_id,
            recipient_role='lecturer',
            type=NotificationType.ATTENDANCE_SCAN,
            title='Student Checked In',
            message=f"{log.student_name or log.student_id} checked in to {log.course_code}",
            related_course_code=log.course_code,
            related_session_code=log.session_code,
            metadata={
                'studentId': log.student_id,
                'studentName': log.student_name,
                'courseCode': log.course_code,
                'courseName': log.course_name,
                'timestamp': to_iso(log.timestamp),
                'centre': log.centre
            },
            action_url='/lecturer/attendance',
            action_label='View Attendance'
        )

    @staticmethod
    def notify_session_created(session, lecturer_id: Optional[int]) -> Optional[Notification]:
        """Confirm a new attendance session to its lecturer."""
        if not lecturer_id:
            return None

        return NotificationService.create_notification(
            recipient_id=lecturer_id,
            recipient_role='lecturer',
            type=NotificationType.ATTENDANCE_SESSION_CREATED,
            title='Attendance Session Created',
            message=f"Session created for {session.course_code} - Code: {session.session_code}",
            related_course_code=session.course_code,
            related_session_code=session.session_code,
            metadata={
                'sessionCode': session.session_code,
                'courseCode': session.course_code,
                'courseName': session.course_name,
                'expiresAt': to_iso(session.expires_at)
            },
            action_url='/lecturer/attendance',
            action_label='View Session'
        )

    @staticmethod
    def list_for_recipient(recipient_id: int, unread_only: bool = False,
                           page: int = 1, per_page: int = 20) -> Tuple[List[Notification], int]:
        query = Notification.query.filter_by(recipient_id=recipient_id)
        if unread_only:
            query = query.filter_by(read=False)
        total = query.count()
        items = query.order_by(Notification.created_at.desc(), Notification.id.desc()) \
            .offset((page - 1) * per_page).limit(per_page).all()
        return items, total

    @staticmethod
    def get_unread_count(recipient_id: int) -> int:
        return Notification.query.filter_by(recipient_id=recipient_id, read=False).count()

    @staticmethod
    def mark_as_read(notification_id: int, recipient_id: int) -> Optional[Notification]:
        """Mark one notification read; None if it doesn't belong to the recipient."""
        notification = Notification.query.filter_by(id=notification_id, recipient_id=recipient_id).first()
        if notification is None:
            return None
        notification.mark_as_read()
        db.session.commit()
        return notification

    @staticmethod
    def mark_all_as_read(recipient_id: int) -> int:
        updated = Notification.query.filter_by(recipient_id=recipient_id, read=False).update(
            {'read': True, 'read_at': utcnow()}, synchronize_session=False
        )
        db.session.commit()
        return updated
