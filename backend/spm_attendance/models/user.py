"""User model for authentication and the lecturer/student directory."""
from enum import Enum
from werkzeug.security import generate_password_hash, check_password_hash
from spm_attendance import db
from spm_attendance.models.base import BaseModel

class UserRole(Enum):
    """User roles enumeration."""
    STUDENT = 'student'
    LECTURER = 'lecturer'
    ADMIN = 'admin'

class User(BaseModel):
    """User model for all system users."""

    __tablename__ = 'users'

    # Basic Information
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(255), nullable=False, index=True)
    student_id = db.Column(db.String(64), unique=True, nullable=True, index=True)
    centre = db.Column(db.String(120), nullable=True)

    # Role
    role = db.Column(db.Enum(UserRole), nullable=False, default=UserRole.STUDENT, index=True)

    # Account state
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    last_login = db.Column(db.DateTime, nullable=True)

    def set_password(self, password: str) -> None:
        """Set user password with hashing."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Check if provided password matches user's password."""
        return check_password_hash(self.password_hash, password)

    def is_lecturer(self) -> bool:
        return self.role in [UserRole.LECTURER, UserRole.ADMIN]

    def token_claims(self) -> dict:
        """Claims carried next to the subject in access tokens."""
        return {
            'role': self.role.value,
            'name': self.name,
            'student_id': self.student_id
        }

    def to_dict(self, exclude: list = None) -> dict:
        """Convert to dictionary excluding sensitive data."""
        exclude = (exclude or []) + ['password_hash']

        result = super().to_dict(exclude=exclude)
        result['role'] = self.role.value if self.role else None

        return result

    def __repr__(self) -> str:
        return f'<User {self.email}>'
