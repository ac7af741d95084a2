"""Attendance session lifecycle: sweep, one-active-session check, issuance."""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, Optional

from spm_attendance.errors import ActiveSessionConflict, ValidationError
from spm_attendance.models.attendance_session import AttendanceSession
from spm_attendance.services.code_service import Clock, generate_session_code
from spm_attendance.services.directory import LecturerIdentity
from spm_attendance.services.qr_service import QRService
from spm_attendance.storage import Criteria, RecordStore, active_sessions, expired_sessions
from spm_attendance.utils.helpers import to_iso, truncate_to_millis
from spm_attendance.utils.locks import KeyedLock

logger = logging.getLogger(__name__)

# Called after a session is persisted; failures are logged, never raised.
SessionIssuedHook = Callable[[AttendanceSession, Optional[int]], Any]


@dataclass
class IssuedSession:
    session: AttendanceSession
    payload: Dict[str, Any]
    qr_data_url: str


class SessionLifecycleManager:
    """Issues attendance sessions and answers which one is active for a lecturer."""

    MAX_CODE_ATTEMPTS = 5

    def __init__(self, sessions: RecordStore, clock: Clock = None,
                 code_generator: Callable[[], str] = generate_session_code,
                 qr_service=QRService, hooks: Iterable[SessionIssuedHook] = ()):
        self.sessions = sessions
        self.clock = clock or Clock()
        self.code_generator = code_generator
        self.qr_service = qr_service
        self.hooks = list(hooks)
        self._locks = KeyedLock()

    def generate_session(self, lecturer: LecturerIdentity, course_code: str,
                         course_name: str, duration_minutes: int) -> IssuedSession:
        """Issue a new session, or raise ActiveSessionConflict if one is still open.

        Calls for the same lecturer are serialized in-process, so two requests
        racing through the active-session check cannot both create a session.
        """
        if lecturer.id is None and not lecturer.name:
            raise ValidationError("lecturer is required")
        if duration_minutes < 1:
            raise ValidationError("durationMinutes must be at least 1")

        with self._locks.hold(lecturer.lock_key):
            # The payload carries millisecond timestamps; store exactly those
            now = truncate_to_millis(self.clock.now())

            # Expired rows must never block a new session
            self.sweep_expired(lecturer, now)

            active = self._find_active(lecturer, now)
            if active is not None:
                logger.info('Lecturer %s already has active session %s',
                            lecturer.id or lecturer.name, active.session_code)
                raise ActiveSessionConflict({
                    'sessionCode': active.session_code,
                    'remainingSeconds': active.remaining_seconds(now),
                    'expiresAt': to_iso(active.expires_at)
                })

            session = AttendanceSession(
                session_code=self._new_code(),
                course_code=course_code,
                course_name=course_name,
                lecturer=lecturer.name,
                lecturer_id=lecturer.id,
                issued_at=now,
                expires_at=now + timedelta(minutes=duration_minutes)
            )
            payload = session.to_payload()
            qr_data_url = self.qr_service.generate_data_url(payload)

            self.sessions.create(session)

        logger.info('Issued session %s for %s (%s) until %s',
                    payload['sessionCode'], lecturer.name, course_code, payload['expiresAt'])
        self._run_hooks(session, lecturer.id)

        return IssuedSession(session=session, payload=payload, qr_data_url=qr_data_url)

    def get_active_session(self, lecturer: LecturerIdentity) -> Optional[AttendanceSession]:
        """Read-only; expired rows are left for the create-time or periodic sweep."""
        return self._find_active(lecturer, self.clock.now())

    def sweep_expired(self, lecturer: LecturerIdentity, now: datetime = None) -> int:
        now = now or self.clock.now()
        deleted = self.sessions.delete_many(expired_sessions(now, lecturer.id, lecturer.name))
        if deleted:
            logger.info('Removed %d expired session(s) for lecturer %s', deleted, lecturer.id or lecturer.name)
        return deleted

    def find_session(self, session_code: str) -> Optional[AttendanceSession]:
        if not session_code:
            return None
        return self.sessions.find_one(Criteria(session_code=session_code))

    def describe(self, session: AttendanceSession) -> Dict[str, Any]:
        """Public view of a session with live expiry fields."""
        return session.to_dict(now=self.clock.now())

    def _find_active(self, lecturer: LecturerIdentity, now: datetime) -> Optional[AttendanceSession]:
        return self.sessions.find_one(
            active_sessions(now, lecturer.id, lecturer.name),
            sort=[('issued_at', 'desc')]
        )

    def _new_code(self) -> str:
        for _ in range(self.MAX_CODE_ATTEMPTS):
            code = self.code_generator()
            if self.sessions.find_one(Criteria(session_code=code)) is None:
                return code
            logger.warning('Session code collision on %s, regenerating', code)
        raise RuntimeError('Could not generate a unique session code')

    def _run_hooks(self, session: AttendanceSession, lecturer_id: Optional[int]) -> None:
        for hook in self.hooks:
            try:
                hook(session, lecturer_id)
            except Exception as e:
                logger.warning('Session issued hook %s failed: %s', getattr(hook, '__name__', hook), e)
