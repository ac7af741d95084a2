"""Notifications API: a user's inbox and read-state."""
from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from spm_attendance import db
from spm_attendance.services.notification_service import NotificationService
from spm_attendance.utils.decorators import current_actor
from spm_attendance.utils.helpers import success_response, error_response

notifications_bp = Blueprint('notifications', __name__)

@notifications_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Notifications service is running')

@notifications_bp.route('/', methods=['GET'])
@jwt_required()
def get_notifications():
    """Get the caller's notifications, newest first."""
    try:
        actor = current_actor()

        page = max(1, request.args.get('page', 1, type=int))
        per_page = min(100, max(1, request.args.get('per_page', 20, type=int)))
        unread_only = request.args.get('unread_only', 'false').lower() in ('1', 'true', 'yes')

        items, total = NotificationService.list_for_recipient(
            actor.id, unread_only=unread_only, page=page, per_page=per_page
        )

        return success_response(
            data={
                'notifications': [item.to_dict() for item in items],
                'pagination': {
                    'page': page,
                    'per_page': per_page,
                    'total': total,
                    'pages': (total + per_page - 1) // per_page,
                    'has_next': page * per_page < total,
                    'has_prev': page > 1
                },
                'unread_count': NotificationService.get_unread_count(actor.id)
            },
            message=f"Found {len(items)} notifications"
        )

    except Exception as e:
        return error_response(f"Error fetching notifications: {str(e)}", 500)

@notifications_bp.route('/unread-count', methods=['GET'])
@jwt_required()
def get_unread_count():
    try:
        return success_response(
            data={'unread_count': NotificationService.get_unread_count(current_actor().id)}
        )
    except Exception as e:
        return error_response(f"Error counting notifications: {str(e)}", 500)

@notifications_bp.route('/<int:notification_id>/read', methods=['PATCH'])
@jwt_required()
def mark_as_read(notification_id):
    """Mark one of the caller's notifications as read."""
    try:
        notification = NotificationService.mark_as_read(notification_id, current_actor().id)
        if notification is None:
            return error_response("Notification not found", 404)

        return success_response(
            data={'notification': notification.to_dict()},
            message="Notification marked as read"
        )

    except Exception as e:
        db.session.rollback()
        return error_response(f"Error marking notification as read: {str(e)}", 500)

@notifications_bp.route('/read-all', methods=['PATCH'])
@jwt_required()
def mark_all_as_read():
    """Mark all of the caller's notifications as read."""
    try:
        marked_count = NotificationService.mark_all_as_read(current_actor().id)

        return success_response(
            data={'marked_count': marked_count},
            message=f"Marked {marked_count} notifications as read"
        )

    except Exception as e:
        db.session.rollback()
        return error_response(f"Error marking all notifications as read: {str(e)}", 500)
