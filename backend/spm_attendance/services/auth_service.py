"""Authentication service for user management."""
from flask_jwt_extended import create_access_token
from sqlalchemy.exc import SQLAlchemyError
from spm_attendance import db
from spm_attendance.models.user import User, UserRole
from spm_attendance.utils.helpers import utcnow
from spm_attendance.utils.validators import Validator

class AuthService:
    @staticmethod
    def create_token(user: User) -> str:
        """Access token whose subject is the user id, with role/name/student_id claims."""
        return create_access_token(identity=str(user.id), additional_claims=user.token_claims())

    @staticmethod
    def login(email: str, password: str) -> tuple[dict, str]:
        """Authenticate user and return a token."""
        try:
            # Validate input
            if not email or not password:
                return None, "Email and password are required"

            if not Validator.validate_email(email):
                return None, "Invalid email format"

            # Find user
            user = User.query.filter_by(email=email.lower().strip()).first()

            if not user or not user.check_password(password):
                return None, "Invalid email or password"

            # Check if account is active
            if not user.is_active:
                return None, "Account is deactivated"

            user.last_login = utcnow()
            db.session.commit()

            return {
                "access_token": AuthService.create_token(user),
                "user": user.to_dict()
            }, None

        except SQLAlchemyError as e:
            db.session.rollback()
            return None, f"Login failed: {str(e)}"

    @staticmethod
    def register(email: str, password: str, name: str, role: str = "student",
                 student_id: str = None, centre: str = None) -> tuple[dict, str]:
        """Register new user."""
        try:
            # Validate input
            if not all([email, password, name]):
                return None, "Email, password and name are required"

            if not Validator.validate_email(email):
                return None, "Invalid email format"

            password_check = Validator.validate_password(password)
            if not password_check["is_valid"]:
                return None, password_check["errors"][0]

            if len(name.strip()) < 2:
                return None, "Name must be at least 2 characters long"

            # Check if email already exists
            email = email.lower().strip()
            if User.query.filter_by(email=email).first():
                return None, "Email already exists"

            # Validate role
            try:
                user_role = UserRole(role.lower())
            except ValueError:
                return None, f"Unknown role: {role}"

            if student_id and User.query.filter_by(student_id=student_id).first():
                return None, "Student ID already exists"

            user = User(
                email=email,
                name=name.strip(),
                role=user_role,
                student_id=student_id,
                centre=centre
            )
            user.set_password(password)
            user.save()

            return user.to_dict(), None

        except SQLAlchemyError as e:
            db.session.rollback()
            return None, f"Registration failed: {str(e)}"

    @staticmethod
    def get_user_by_id(user_id: int) -> User:
        """Get user by ID."""
        return db.session.get(User, user_id)
