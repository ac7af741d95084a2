"""Attendance API endpoints: sessions, check-in, lecturer dashboard."""
import io
from flask import Blueprint, request, current_app, send_file
from flask_jwt_extended import jwt_required
from spm_attendance import db, limiter
from spm_attendance.errors import AttendanceError, Forbidden, SessionNotFound, ValidationError
from spm_attendance.models.attendance_log import CheckInMethod
from spm_attendance.services import get_services
from spm_attendance.services.directory import LecturerIdentity
from spm_attendance.services.qr_service import QRService
from spm_attendance.utils.decorators import current_actor, lecturer_required, student_required
from spm_attendance.utils.helpers import success_response, error_response, utcnow
from spm_attendance.utils.validators import Validator

attendance_bp = Blueprint('attendance', __name__)

def checkin_rate_limit():
    return current_app.config.get('ATTENDANCE_CHECKIN_RATE_LIMIT', '15 per minute')

def normalize_code(value) -> str:
    return str(value or '').strip().upper()

def request_data() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}

def actor_lecturer(display_name: str = None) -> LecturerIdentity:
    actor = current_actor()
    return LecturerIdentity(id=actor.id, name=(display_name or '').strip() or actor.name)

def lecturer_for_path(lecturer_id: int) -> LecturerIdentity:
    """Lecturer named in the URL; lecturers may only address themselves."""
    actor = current_actor()
    if not actor.is_admin and actor.id != lecturer_id:
        raise Forbidden("You can only access your own attendance records")

    lecturer = get_services().directory.get_lecturer(lecturer_id)
    if lecturer is not None:
        return lecturer
    if actor.id == lecturer_id:
        return LecturerIdentity(id=actor.id, name=actor.name)
    raise AttendanceError(f"Lecturer {lecturer_id} not found", 404)

def wants_confirmation(data: dict) -> bool:
    confirm = data.get('confirmReset')
    return confirm is True or (isinstance(confirm, str) and confirm.lower() == 'true')

@attendance_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Attendance service is running')

@attendance_bp.route('/generate-session', methods=['POST'])
@jwt_required()
@lecturer_required
def generate_session():
    """Issue a time-boxed session code and QR image for the caller."""
    try:
        data = request_data()
        Validator.require_fields(data, ['courseCode', 'courseName'])

        duration = Validator.parse_duration(
            data.get('durationMinutes'),
            current_app.config.get('ATTENDANCE_DEFAULT_DURATION_MINUTES', 30),
            current_app.config.get('ATTENDANCE_MAX_DURATION_MINUTES', 240)
        )

        services = get_services()
        issued = services.session_manager.generate_session(
            actor_lecturer(data.get('lecturer')),
            str(data['courseCode']).strip(),
            str(data['courseName']).strip(),
            duration
        )

        return success_response(
            data={
                'session': services.session_manager.describe(issued.session),
                'qrCode': {
                    'dataUrl': issued.qr_data_url,
                    'payload': issued.payload
                }
            },
            message="Attendance session generated",
            status_code=201
        )

    except AttendanceError:
        raise
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception('generate-session failed')
        return error_response(f"Failed to generate session: {str(e)}", 500)

@attendance_bp.route('/active-session', methods=['GET'])
@jwt_required()
@lecturer_required
def get_active_session():
    """Poll the caller's open session, if any."""
    try:
        manager = get_services().session_manager
        session = manager.get_active_session(actor_lecturer())

        if session is None:
            return success_response(
                data={'hasActiveSession': False},
                message="No active session"
            )

        return success_response(
            data={
                'hasActiveSession': True,
                'session': manager.describe(session)
            },
            message="Active session found"
        )

    except AttendanceError:
        raise
    except Exception as e:
        current_app.logger.exception('active-session failed')
        return error_response(f"Failed to fetch active session: {str(e)}", 500)

def _check_in(data: dict, method: CheckInMethod, session_code: str):
    actor = current_actor()
    student_id = actor.student_id or str(data.get('studentId') or '').strip()
    if not student_id:
        raise ValidationError("studentId is required")

    result = get_services().checkin.check_in(
        student_id,
        session_code,
        method,
        {
            'qrRaw': data.get('qrCode'),
            'centre': data.get('centre'),
            'location': data.get('location'),
            'studentName': actor.name if actor.student_id else data.get('studentName'),
            'timestamp': data.get('timestamp')
        }
    )

    return success_response(
        data={
            'alreadyCheckedIn': result.already_checked_in,
            'log': result.log.to_dict(),
            'session': result.session_info()
        },
        message="Already checked in" if result.already_checked_in else "Attendance marked"
    )

@attendance_bp.route('/check-in', methods=['POST'])
@jwt_required()
@student_required
@limiter.limit(checkin_rate_limit)
def check_in():
    """QR scan check-in; a typed ``sessionCode`` is accepted in place of ``qrCode``."""
    try:
        data = request_data()
        qr_code = data.get('qrCode')
        if qr_code is not None and not isinstance(qr_code, str):
            raise ValidationError("qrCode must be a string")

        if qr_code:
            session_code = normalize_code(data.get('sessionCode') or QRService.extract_session_code(qr_code))
            method = CheckInMethod.QR_SCAN
        else:
            session_code = normalize_code(data.get('sessionCode'))
            method = CheckInMethod.MANUAL_CODE

        if not session_code:
            raise ValidationError("qrCode or sessionCode is required")

        return _check_in(data, method, session_code)

    except AttendanceError:
        raise
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception('check-in failed')
        return error_response(f"Failed to record attendance: {str(e)}", 500)

@attendance_bp.route('/mark', methods=['POST'])
@jwt_required()
@student_required
@limiter.limit(checkin_rate_limit)
def mark_attendance():
    """Manual-code check-in."""
    try:
        data = request_data()
        Validator.require_fields(data, ['sessionCode'])

        return _check_in(data, CheckInMethod.MANUAL_CODE, normalize_code(data['sessionCode']))

    except AttendanceError:
        raise
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception('mark failed')
        return error_response(f"Failed to record attendance: {str(e)}", 500)

@attendance_bp.route('/session/<code>', methods=['GET'])
def validate_session(code):
    """Public lookup so clients can check a code before submitting it."""
    try:
        manager = get_services().session_manager
        session_code = normalize_code(code)
        session = manager.find_session(session_code)

        if session is None:
            raise SessionNotFound(session_code)

        described = manager.describe(session)
        return success_response(
            data={
                'valid': not described['isExpired'],
                'session': described
            },
            message="Session has expired" if described['isExpired'] else "Session is active"
        )

    except AttendanceError:
        raise
    except Exception as e:
        current_app.logger.exception('session lookup failed')
        return error_response(f"Failed to validate session: {str(e)}", 500)

@attendance_bp.route('/lecturer/<int:lecturer_id>', methods=['GET'])
@jwt_required()
@lecturer_required
def lecturer_dashboard(lecturer_id):
    """Current session, recent sessions and check-ins for a lecturer."""
    try:
        lecturer = lecturer_for_path(lecturer_id)

        dashboard = get_services().records.lecturer_dashboard(
            lecturer,
            course_code=request.args.get('courseCode'),
            session_code=normalize_code(request.args.get('sessionCode')) or None,
            date=request.args.get('date'),
            filter_type=request.args.get('filterType', 'day'),
            limit=request.args.get('limit', 100, type=int)
        )

        return success_response(data=dashboard, message="Lecturer attendance loaded")

    except AttendanceError:
        raise
    except Exception as e:
        current_app.logger.exception('lecturer dashboard failed')
        return error_response(f"Failed to load attendance: {str(e)}", 500)

def _reset(lecturer: LecturerIdentity):
    data = request_data()
    if not wants_confirmation(data):
        raise ValidationError("confirmReset must be true to delete attendance data")

    deleted = get_services().records.reset(
        lecturer,
        session_code=normalize_code(data.get('sessionCode')) or None,
        course_code=(data.get('courseCode') or '').strip() or None
    )

    return success_response(
        data={'deleted': deleted},
        message=f"Deleted {deleted['sessions']} session(s) and {deleted['logs']} check-in(s)"
    )

@attendance_bp.route('/reset', methods=['DELETE'])
@jwt_required()
@lecturer_required
def reset_attendance():
    """Delete the caller's sessions and check-ins, optionally narrowed."""
    try:
        return _reset(actor_lecturer())
    except AttendanceError:
        raise
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception('reset failed')
        return error_response(f"Failed to reset attendance: {str(e)}", 500)

@attendance_bp.route('/reset/<int:lecturer_id>', methods=['DELETE'])
@jwt_required()
@lecturer_required
def reset_lecturer_attendance(lecturer_id):
    """Reset for a lecturer by id (admins, or a lecturer on their own id)."""
    try:
        return _reset(lecturer_for_path(lecturer_id))
    except AttendanceError:
        raise
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception('reset failed')
        return error_response(f"Failed to reset attendance: {str(e)}", 500)

@attendance_bp.route('/logs', methods=['GET'])
@jwt_required()
@lecturer_required
def list_logs():
    """Paginated check-in log; lecturers see their own, admins see all."""
    try:
        actor = current_actor()

        result = get_services().records.list_logs(
            course_code=request.args.get('courseCode'),
            session_code=normalize_code(request.args.get('sessionCode')) or None,
            date=request.args.get('date'),
            filter_type=request.args.get('filterType', 'day'),
            page=request.args.get('page', 1, type=int),
            limit=request.args.get('limit', 25, type=int),
            lecturer=None if actor.is_admin else actor_lecturer()
        )

        return success_response(data=result, message="Attendance logs loaded")

    except AttendanceError:
        raise
    except Exception as e:
        current_app.logger.exception('logs failed')
        return error_response(f"Failed to fetch logs: {str(e)}", 500)

@attendance_bp.route('/export', methods=['GET'])
@jwt_required()
@lecturer_required
def export_logs():
    """Download the check-in log as CSV (default) or Excel."""
    try:
        actor = current_actor()
        filters = {
            'course_code': request.args.get('courseCode'),
            'session_code': normalize_code(request.args.get('sessionCode')) or None,
            'date': request.args.get('date'),
            'filter_type': request.args.get('filterType', 'day'),
            'lecturer': None if actor.is_admin else actor_lecturer()
        }
        records = get_services().records
        stamp = utcnow().strftime('%Y%m%d%H%M%S')

        if request.args.get('format', 'csv').lower() == 'xlsx':
            return send_file(
                io.BytesIO(records.export_excel(**filters)),
                as_attachment=True,
                download_name=f"attendance_export_{stamp}.xlsx",
                mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
            )

        return send_file(
            io.BytesIO(records.export_csv(**filters).encode('utf-8')),
            as_attachment=True,
            download_name=f"attendance_export_{stamp}.csv",
            mimetype='text/csv'
        )

    except AttendanceError:
        raise
    except Exception as e:
        current_app.logger.exception('export failed')
        return error_response(f"Failed to export: {str(e)}", 500)
