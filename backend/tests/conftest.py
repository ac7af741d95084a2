"""Shared fixtures for the attendance backend tests."""
from datetime import datetime, timedelta

import pytest

from spm_attendance import create_app, db
from spm_attendance.models.user import User, UserRole
from spm_attendance.services.auth_service import AuthService
from spm_attendance.services.code_service import Clock
from spm_attendance.storage import StaticConnectivity

# A Monday morning
T0 = datetime(2025, 3, 3, 9, 0, 0)


class ManualClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = T0):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **delta) -> None:
        self.current += timedelta(**delta)


def make_user(email, name, role, password='password123', student_id=None, centre=None):
    user = User(email=email, name=name, role=role, student_id=student_id, centre=centre)
    user.set_password(password)
    return user.save()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def connectivity():
    return StaticConnectivity(True)


@pytest.fixture
def app(clock, connectivity):
    """Create test app."""
    app = create_app('testing', connectivity=connectivity, clock=clock)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def services(app):
    from spm_attendance.services import get_services
    return get_services()


@pytest.fixture
def lecturer(app):
    return make_user('mensah@example.com', 'Dr. Mensah', UserRole.LECTURER)


@pytest.fixture
def other_lecturer(app):
    return make_user('asante@example.com', 'Dr. Asante', UserRole.LECTURER)


@pytest.fixture
def admin(app):
    return make_user('admin@example.com', 'System Administrator', UserRole.ADMIN)


@pytest.fixture
def student(app):
    return make_user('ama@example.com', 'Ama Owusu', UserRole.STUDENT,
                     student_id='STU-001', centre='Kumasi')


@pytest.fixture
def other_student(app):
    return make_user('kofi@example.com', 'Kofi Boateng', UserRole.STUDENT,
                     student_id='STU-002', centre='Accra')


@pytest.fixture
def auth_headers(app):
    """Bearer header for a user."""
    def _headers(user):
        return {'Authorization': f'Bearer {AuthService.create_token(user)}'}
    return _headers
