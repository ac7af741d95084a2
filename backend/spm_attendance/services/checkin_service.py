"""Student check-in against an attendance session."""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Union

from spm_attendance.errors import SessionExpired, SessionNotFound, ValidationError
from spm_attendance.models.attendance_log import AttendanceLog, CheckInMethod
from spm_attendance.models.attendance_session import AttendanceSession
from spm_attendance.services.code_service import Clock
from spm_attendance.services.directory import resolve_lecturer
from spm_attendance.storage import Criteria, DuplicateRecordError, RecordStore
from spm_attendance.utils.helpers import to_iso
from spm_attendance.utils.locks import KeyedLock

logger = logging.getLogger(__name__)

# Best-effort post-commit hook, run only for newly recorded entries.
PostCommitHook = Callable[[AttendanceLog, Optional[int]], Any]


@dataclass
class CheckInResult:
    log: AttendanceLog
    session: AttendanceSession
    already_checked_in: bool
    lecturer_id: Optional[int]

    def session_info(self) -> Dict[str, Any]:
        return {
            'sessionCode': self.session.session_code,
            'courseCode': self.session.course_code,
            'courseName': self.session.course_name,
            'lecturer': self.session.lecturer,
            'lecturerId': self.lecturer_id
        }


class CheckInProcessor:
    """Records at most one check-in per (session, student).

    Steps: look the session up, reject it once expired, attribute it to a
    lecturer, return the existing entry if the student already checked in,
    otherwise write a new entry and run the post-commit hooks.
    """

    def __init__(self, sessions: RecordStore, logs: RecordStore, directory,
                 clock: Clock = None, hooks: Iterable[PostCommitHook] = ()):
        self.sessions = sessions
        self.logs = logs
        self.directory = directory
        self.clock = clock or Clock()
        self.hooks = list(hooks)
        self._locks = KeyedLock()

    def check_in(self, student_id: str, session_code: str,
                 method: Union[CheckInMethod, str] = CheckInMethod.QR_SCAN,
                 metadata: Optional[Dict[str, Any]] = None) -> CheckInResult:
        metadata = metadata or {}
        if not student_id:
            raise ValidationError("studentId is required")
        if not session_code:
            raise ValidationError("sessionCode is required")
        try:
            method = CheckInMethod(method.value if isinstance(method, CheckInMethod) else method)
        except ValueError:
            raise ValidationError(f"checkInMethod must be one of {', '.join(m.value for m in CheckInMethod)}")

        session = self.sessions.find_one(Criteria(session_code=session_code))
        if session is None:
            raise SessionNotFound(session_code)

        now = self.clock.now()
        if session.is_expired(now):
            raise SessionExpired(session_code, to_iso(session.expires_at))

        lecturer_id = resolve_lecturer(session, self.directory)
        key = Criteria(session_code=session_code, student_id=student_id)

        with self._locks.hold((session_code, student_id)):
            existing = self.logs.find_one(key)
            if existing is not None:
                logger.info('Student %s already checked in to %s', student_id, session_code)
                return CheckInResult(existing, session, True, lecturer_id)

            entry = self._build_entry(session, student_id, lecturer_id, method, metadata, now)
            try:
                self.logs.create(entry)
            except DuplicateRecordError:
                # Another process won the race; its row stands
                existing = self.logs.find_one(key)
                if existing is None:
                    raise
                return CheckInResult(existing, session, True, lecturer_id)

        logger.info('Student %s checked in to %s via %s', student_id, session_code, method.value)
        self._run_hooks(entry, lecturer_id)

        return CheckInResult(entry, session, False, lecturer_id)

    def _build_entry(self, session, student_id, lecturer_id, method, metadata, now) -> AttendanceLog:
        profile = self.directory.get_student(student_id)

        return AttendanceLog(
            student_id=student_id,
            session_code=session.session_code,
            qr_raw=metadata.get('qrRaw'),
            course_code=session.course_code,
            course_name=session.course_name,
            lecturer=session.lecturer,
            lecturer_id=lecturer_id,
            student_name=(profile.name if profile else None) or metadata.get('studentName'),
            centre=(profile.centre if profile else None) or metadata.get('centre'),
            location=metadata.get('location'),
            check_in_method=method.value,
            timestamp=now
        )

    def _run_hooks(self, entry: AttendanceLog, lecturer_id: Optional[int]) -> None:
        for hook in self.hooks:
            try:
                hook(entry, lecturer_id)
            except Exception as e:
                logger.warning('Check-in hook %s failed for %s/%s: %s',
                               getattr(hook, '__name__', hook), entry.session_code, entry.student_id, e)
