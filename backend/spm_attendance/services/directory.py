"""Read-only user directory used for lecturer attribution and student snapshots."""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from spm_attendance import db
from spm_attendance.models.user import User, UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LecturerIdentity:
    """Who owns a session: stable id when known, display name always when available."""

    id: Optional[int]
    name: Optional[str]

    @property
    def lock_key(self):
        return ('lecturer', self.id) if self.id is not None else ('lecturer-name', self.name)


@dataclass(frozen=True)
class StudentProfile:
    student_id: str
    name: Optional[str]
    centre: Optional[str]


class UserDirectory:
    """Lookups against the users table.

    Lookups answer None rather than raise when the database can't be reached,
    so attribution degrades instead of blocking a check-in.
    """

    def get_lecturer(self, user_id: int) -> Optional[LecturerIdentity]:
        try:
            user = db.session.get(User, user_id)
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning('Lecturer lookup for id %s failed: %s', user_id, e)
            return None
        if user is None or not user.is_lecturer():
            return None
        return LecturerIdentity(id=user.id, name=user.name)

    def find_lecturer_by_name(self, name: str) -> Optional[LecturerIdentity]:
        if not name:
            return None
        try:
            user = User.query.filter(
                User.name == name,
                User.role.in_([UserRole.LECTURER, UserRole.ADMIN])
            ).order_by(User.role.desc(), User.id).first()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning('Lecturer lookup for name %r failed: %s', name, e)
            return None
        if user is None:
            return None
        return LecturerIdentity(id=user.id, name=user.name)

    def get_student(self, student_id: str) -> Optional[StudentProfile]:
        if not student_id:
            return None
        try:
            user = User.query.filter_by(student_id=student_id).first()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning('Student lookup for %s failed: %s', student_id, e)
            return None
        if user is None:
            return None
        return StudentProfile(student_id=user.student_id, name=user.name, centre=user.centre)


def resolve_lecturer(session, directory) -> Optional[int]:
    """Owning lecturer id for a session: its ``lecturer_id``, else a name match, else None."""
    if session.lecturer_id is not None:
        return session.lecturer_id
    if not session.lecturer:
        return None

    lecturer = directory.find_lecturer_by_name(session.lecturer)
    if lecturer is None:
        logger.info('No lecturer matches %r for session %s', session.lecturer, session.session_code)
        return None
    return lecturer.id
