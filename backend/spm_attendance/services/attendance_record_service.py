"""Check-in log queries: listing, lecturer dashboard, reset and export."""
import io
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from spm_attendance.services.code_service import Clock
from spm_attendance.services.directory import LecturerIdentity
from spm_attendance.services.session_service import SessionLifecycleManager
from spm_attendance.storage import Criteria, RecordStore, active_sessions, owned_by
from spm_attendance.utils.helpers import parse_iso

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
RECENT_SESSIONS = 10

EXPORT_FIELDS = [
    'timestamp', 'studentId', 'studentName', 'centre',
    'courseCode', 'courseName', 'lecturer', 'sessionCode'
]

NEWEST_FIRST = [('timestamp', 'desc'), ('id', 'desc')]


def compute_date_range(date: Optional[str], filter_type: str = 'day') -> Tuple[Optional[datetime], Optional[datetime]]:
    """Half-open ``[start, end)`` window around ``date``.

    ``week`` starts on the Monday of that week, ``month`` on the first of the
    month, anything else covers the single day. An unparseable date gives no
    window.
    """
    base = parse_iso(date)
    if base is None:
        return None, None

    start = datetime(base.year, base.month, base.day)
    if filter_type == 'week':
        start -= timedelta(days=start.weekday())
        end = start + timedelta(days=7)
    elif filter_type == 'month':
        start = start.replace(day=1)
        end = (start.replace(year=start.year + 1, month=1) if start.month == 12
               else start.replace(month=start.month + 1))
    else:
        end = start + timedelta(days=1)
    return start, end


def clamp_page(page: Any, limit: Any, default_limit: int = 25) -> Tuple[int, int]:
    try:
        page = max(1, int(page))
    except (TypeError, ValueError):
        page = 1
    try:
        limit = min(MAX_PAGE_SIZE, max(1, int(limit)))
    except (TypeError, ValueError):
        limit = default_limit
    return page, limit


class AttendanceRecordService:
    """Read and reset operations over the session store and check-in log."""

    def __init__(self, sessions: RecordStore, logs: RecordStore,
                 session_manager: SessionLifecycleManager, clock: Clock = None):
        self.sessions = sessions
        self.logs = logs
        self.session_manager = session_manager
        self.clock = clock or Clock()

    def log_criteria(self, course_code: str = None, session_code: str = None,
                     date: str = None, filter_type: str = 'day',
                     lecturer: Optional[LecturerIdentity] = None) -> Criteria:
        criteria = owned_by(lecturer.id, lecturer.name) if lecturer else Criteria()
        if course_code:
            criteria.where('course_code', 'eq', str(course_code))
        if session_code:
            criteria.where('session_code', 'eq', str(session_code))

        start, end = compute_date_range(date, filter_type)
        if start and end:
            criteria.where('timestamp', 'gte', start).where('timestamp', 'lt', end)
        return criteria

    def list_logs(self, course_code: str = None, session_code: str = None, date: str = None,
                  filter_type: str = 'day', page: Any = 1, limit: Any = 25,
                  lecturer: Optional[LecturerIdentity] = None) -> Dict[str, Any]:
        page, limit = clamp_page(page, limit)
        criteria = self.log_criteria(course_code, session_code, date, filter_type, lecturer)

        total = self.logs.count(criteria)
        records = self.logs.find_many(criteria, sort=NEWEST_FIRST, limit=limit, offset=(page - 1) * limit)

        return {
            'logs': [record.to_dict() for record in records],
            'count': len(records),
            'total': total,
            'page': page,
            'limit': limit,
            'totalPages': max(1, -(-total // limit))
        }

    def lecturer_dashboard(self, lecturer: LecturerIdentity, course_code: str = None,
                           session_code: str = None, date: str = None,
                           filter_type: str = 'day', limit: Any = MAX_PAGE_SIZE) -> Dict[str, Any]:
        """Current session, recent sessions, check-ins and totals for one lecturer."""
        _, limit = clamp_page(1, limit, default_limit=MAX_PAGE_SIZE)
        now = self.clock.now()

        current = self.session_manager.get_active_session(lecturer)
        log_criteria = self.log_criteria(course_code, session_code, date, filter_type, lecturer)
        records = self.logs.find_many(log_criteria, sort=NEWEST_FIRST, limit=limit)

        session_criteria = owned_by(lecturer.id, lecturer.name)
        if course_code:
            session_criteria.where('course_code', 'eq', str(course_code))
        recent = self.sessions.find_many(session_criteria, sort=[('issued_at', 'desc')], limit=RECENT_SESSIONS)

        return {
            'lecturer': {'id': lecturer.id, 'name': lecturer.name},
            'currentSession': current.to_dict(now=now) if current else None,
            'records': [record.to_dict() for record in records],
            'recentSessions': [session.to_dict(now=now) for session in recent],
            'stats': {
                'totalRecords': self.logs.count(log_criteria),
                'uniqueStudents': self.logs.count_distinct('student_id', log_criteria),
                'totalSessions': self.sessions.count(session_criteria),
                'activeSessions': self.sessions.count(active_sessions(now, lecturer.id, lecturer.name))
            }
        }

    def reset(self, lecturer: LecturerIdentity, session_code: str = None,
              course_code: str = None) -> Dict[str, int]:
        """Delete the lecturer's sessions and check-ins matching the filters."""
        sessions = owned_by(lecturer.id, lecturer.name)
        logs = owned_by(lecturer.id, lecturer.name)
        for criteria in (sessions, logs):
            if session_code:
                criteria.where('session_code', 'eq', str(session_code))
            if course_code:
                criteria.where('course_code', 'eq', str(course_code))

        deleted = {
            'sessions': self.sessions.delete_many(sessions),
            'logs': self.logs.delete_many(logs)
        }
        logger.warning('Attendance reset for lecturer %s (session=%s, course=%s): %s',
                       lecturer.id or lecturer.name, session_code, course_code, deleted)
        return deleted

    def export_rows(self, **filters) -> List[Dict[str, Any]]:
        records = self.logs.find_many(self.log_criteria(**filters), sort=NEWEST_FIRST)
        rows = []
        for record in records:
            data = record.to_dict()
            rows.append({field: data[field] for field in EXPORT_FIELDS})
        return rows

    def export_csv(self, **filters) -> str:
        frame = pd.DataFrame(self.export_rows(**filters), columns=EXPORT_FIELDS)
        return frame.to_csv(index=False)

    def export_excel(self, **filters) -> bytes:
        frame = pd.DataFrame(self.export_rows(**filters), columns=EXPORT_FIELDS)
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            frame.to_excel(writer, sheet_name='Attendance', index=False)
        return buffer.getvalue()
