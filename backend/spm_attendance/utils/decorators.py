"""Custom decorators for authorization."""
from dataclasses import dataclass
from functools import wraps
from typing import Optional
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request
from spm_attendance.utils.helpers import error_response

@dataclass(frozen=True)
class Actor:
    """The authenticated caller, as carried by the bearer token."""

    id: int
    role: str
    name: Optional[str] = None
    student_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == 'admin'

def current_actor() -> Actor:
    """Build the actor from the current request's JWT."""
    claims = get_jwt()
    return Actor(
        id=int(get_jwt_identity()),
        role=claims.get('role', ''),
        name=claims.get('name'),
        student_id=claims.get('student_id')
    )

def roles_required(*roles):
    """Decorator to require one of the given role strings."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            verify_jwt_in_request()
            role = get_jwt().get('role')

            if role not in roles:
                return error_response(f"{' or '.join(r.title() for r in roles)} access required", 403)

            return f(*args, **kwargs)
        return decorated_function
    return decorator

lecturer_required = roles_required('lecturer', 'admin')
student_required = roles_required('student', 'admin')
