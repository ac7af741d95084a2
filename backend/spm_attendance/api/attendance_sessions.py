"""Alias routes kept for older lecturer clients (``/api/attendance-sessions``)."""
from flask import Blueprint
from flask_jwt_extended import jwt_required
from spm_attendance.api.attendance import (
    generate_session, lecturer_dashboard, reset_attendance, reset_lecturer_attendance
)
from spm_attendance.utils.decorators import current_actor, lecturer_required

attendance_sessions_bp = Blueprint('attendance_sessions', __name__)

attendance_sessions_bp.add_url_rule('/', 'generate_session', generate_session, methods=['POST'])
attendance_sessions_bp.add_url_rule('/reset', 'reset_attendance', reset_attendance, methods=['DELETE'])
attendance_sessions_bp.add_url_rule(
    '/reset/<int:lecturer_id>', 'reset_lecturer_attendance', reset_lecturer_attendance, methods=['DELETE']
)

@attendance_sessions_bp.route('/', methods=['GET'])
@jwt_required()
@lecturer_required
def own_dashboard():
    """Dashboard for the calling lecturer."""
    return lecturer_dashboard(current_actor().id)
