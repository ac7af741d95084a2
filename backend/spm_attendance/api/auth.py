"""Authentication API: login and current-user profile."""
from flask import Blueprint, request
from flask_jwt_extended import jwt_required, get_jwt_identity
from spm_attendance import limiter
from spm_attendance.services.auth_service import AuthService
from spm_attendance.utils.helpers import success_response, error_response

auth_bp = Blueprint("auth", __name__)

@auth_bp.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint."""
    return success_response(message="Auth service is running")

@auth_bp.route("/login", methods=["POST"])
@limiter.limit("5 per minute")
def login():
    """Exchange email and password for an access token."""
    try:
        data = request.get_json(silent=True)

        if not data:
            return error_response("Request body must be JSON", 400)

        email = str(data.get("email", "")).strip()
        password = data.get("password", "")

        if not email or not password:
            return error_response("Email and password are required", 400)

        result, error = AuthService.login(email, password)

        if error:
            return error_response(error, 401)

        return success_response(
            data=result,
            message="Login successful"
        )

    except Exception as e:
        return error_response(f"Login error: {str(e)}", 500)

@auth_bp.route("/me", methods=["GET"])
@jwt_required()
def get_current_user():
    """Get current user profile."""
    try:
        user = AuthService.get_user_by_id(int(get_jwt_identity()))

        if not user:
            return error_response("User not found", 404)

        return success_response(data=user.to_dict())

    except Exception as e:
        return error_response(f"Profile error: {str(e)}", 500)
