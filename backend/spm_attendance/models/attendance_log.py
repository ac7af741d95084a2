"""Check-in log: one row per student per attendance session."""
from enum import Enum
from spm_attendance import db
from spm_attendance.models.base import BaseModel
from spm_attendance.utils.helpers import to_iso

class CheckInMethod(Enum):
    """How the student supplied the session code."""
    QR_SCAN = 'QR_SCAN'
    MANUAL_CODE = 'MANUAL_CODE'

class AttendanceLog(BaseModel):
    """Attendance log entry, immutable once written."""

    __tablename__ = 'attendance_logs'
    __table_args__ = (
        db.UniqueConstraint('session_code', 'student_id', name='uq_attendance_logs_session_student'),
        db.Index('ix_attendance_logs_course_timestamp', 'course_code', 'timestamp'),
    )

    student_id = db.Column(db.String(64), nullable=False, index=True)
    session_code = db.Column(db.String(32), nullable=False, index=True)
    qr_raw = db.Column(db.Text, nullable=True)

    # Snapshot of the session at check-in time
    course_code = db.Column(db.String(32), nullable=True)
    course_name = db.Column(db.String(255), nullable=True)
    lecturer = db.Column(db.String(255), nullable=True, index=True)
    lecturer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True, index=True)

    # Snapshot of the student
    student_name = db.Column(db.String(255), nullable=True)
    centre = db.Column(db.String(120), nullable=True)
    location = db.Column(db.String(255), nullable=True)

    check_in_method = db.Column(db.String(20), nullable=False, default=CheckInMethod.QR_SCAN.value)
    timestamp = db.Column(db.DateTime, nullable=False, index=True)

    def to_dict(self):
        """Convert to dictionary."""
        return {
            'id': self.id,
            'studentId': self.student_id,
            'studentName': self.student_name,
            'sessionCode': self.session_code,
            'courseCode': self.course_code,
            'courseName': self.course_name,
            'lecturer': self.lecturer,
            'lecturerId': self.lecturer_id,
            'centre': self.centre,
            'location': self.location,
            'checkInMethod': self.check_in_method,
            'timestamp': to_iso(self.timestamp)
        }

    def __repr__(self):
        return f'<AttendanceLog {self.session_code}-{self.student_id}>'
