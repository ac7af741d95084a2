"""Periodic removal of expired attendance sessions."""
import atexit
import logging
from datetime import datetime

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.exc import SQLAlchemyError

from spm_attendance.services.code_service import Clock
from spm_attendance.services.directory import LecturerIdentity
from spm_attendance.storage import RecordStore, active_sessions, expired_sessions

logger = logging.getLogger(__name__)


class SessionCleanupService:
    """Sweeps expired sessions on an interval.

    Request-time paths never depend on this running: generation sweeps the
    lecturer's own expired sessions and check-in rejects expired ones.
    """

    JOB_ID = 'attendance_session_cleanup'

    def __init__(self, sessions: RecordStore, clock: Clock = None):
        self.sessions = sessions
        self.clock = clock or Clock()
        self.scheduler = None

    @property
    def is_running(self) -> bool:
        return self.scheduler is not None and self.scheduler.running

    def start(self, app, interval_minutes: int = 5) -> None:
        """Run a sweep now and then every ``interval_minutes`` inside ``app``'s context."""
        if self.is_running:
            logger.warning('Session cleanup already running')
            return

        def job():
            with app.app_context():
                self.run_cleanup()

        self.scheduler = BackgroundScheduler(daemon=True)
        self.scheduler.add_job(
            func=job,
            trigger='interval',
            minutes=interval_minutes,
            id=self.JOB_ID,
            name='Remove expired attendance sessions',
            replace_existing=True,
            next_run_time=datetime.now()
        )
        self.scheduler.start()
        atexit.register(self.stop)
        logger.info('Session cleanup started (every %s minutes)', interval_minutes)

    def stop(self) -> None:
        if self.is_running:
            self.scheduler.shutdown(wait=False)
            logger.info('Session cleanup stopped')
        self.scheduler = None

    def run_cleanup(self) -> int:
        """Delete every expired session; returns the number deleted."""
        now = self.clock.now()
        try:
            deleted = self.sessions.delete_many(expired_sessions(now))
        except SQLAlchemyError as e:
            logger.error('Session cleanup failed: %s', e)
            return 0

        if deleted:
            logger.info('Removed %d expired session(s)', deleted)
        else:
            logger.debug('No expired sessions found')
        return deleted

    def cleanup_for_lecturer(self, lecturer: LecturerIdentity) -> int:
        now = self.clock.now()
        try:
            deleted = self.sessions.delete_many(expired_sessions(now, lecturer.id, lecturer.name))
        except SQLAlchemyError as e:
            logger.error('Session cleanup for lecturer %s failed: %s', lecturer.id, e)
            return 0

        if deleted:
            logger.info('Removed %d expired session(s) for lecturer %s', deleted, lecturer.id)
        return deleted

    def get_expired_count(self) -> int:
        return self.sessions.count(expired_sessions(self.clock.now()))

    def get_active_count(self) -> int:
        return self.sessions.count(active_sessions(self.clock.now()))
