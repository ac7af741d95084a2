"""SPM Attendance Backend - Application Factory."""
import logging
import os
import time
import uuid
from flask import Flask, jsonify, request, g
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1500 per 15 minutes"]
)

def create_app(config_name: str = None, connectivity=None, clock=None) -> Flask:
    """Application factory pattern.

    ``connectivity`` and ``clock`` override the attendance storage mode
    provider and the wall clock; tests use them to pin the fallback store
    and to move time forward.
    """
    app = Flask(__name__)

    # Load configuration
    from spm_attendance.config import get_config
    config_class = get_config(config_name)
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)

    # Configure CORS
    CORS(app, origins=app.config.get('CORS_ORIGINS', ["*"]))

    # Setup logging
    setup_logging(app)
    register_request_logging(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Setup database
    setup_database(app)

    # Attendance stores and services
    from spm_attendance.services import init_attendance
    services = init_attendance(app, connectivity=connectivity, clock=clock)

    if app.config.get('SESSION_CLEANUP_ENABLED'):
        services.cleanup.start(app, app.config.get('SESSION_CLEANUP_INTERVAL_MINUTES', 5))

    # Add CLI commands
    register_commands(app)

    # Add health check
    @app.route('/health')
    def health_check():
        return jsonify({
            'status': 'healthy',
            'service': 'SPM Attendance Backend',
            'version': '1.0.0',
            'persistent_storage': services.connectivity.is_connected()
        })

    return app

def register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from spm_attendance.api.auth import auth_bp
    from spm_attendance.api.attendance import attendance_bp
    from spm_attendance.api.attendance_sessions import attendance_sessions_bp
    from spm_attendance.api.notifications import notifications_bp

    # Auth
    app.register_blueprint(auth_bp, url_prefix='/api/auth')

    # Attendance
    app.register_blueprint(attendance_bp, url_prefix='/api/attendance')
    app.register_blueprint(attendance_sessions_bp, url_prefix='/api/attendance-sessions')

    # Notifications
    app.register_blueprint(notifications_bp, url_prefix='/api/notifications')

def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from spm_attendance.errors import AttendanceError
    from spm_attendance.utils.helpers import handle_error, error_response
    from werkzeug.exceptions import HTTPException

    @app.errorhandler(AttendanceError)
    def attendance_error(error):
        return error_response(error.message, error.status_code, **error.extra)

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return handle_error(error, 500)

    @app.errorhandler(HTTPException)
    def handle_exception(e):
        return handle_error(e.description, e.code)

    # JWT error handlers
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({
            'error': True,
            'message': 'Token has expired',
            'status_code': 401
        }), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return jsonify({
            'error': True,
            'message': 'Invalid token',
            'status_code': 401
        }), 401

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return jsonify({
            'error': True,
            'message': 'Authorization token required',
            'status_code': 401
        }), 401

def setup_logging(app: Flask) -> None:
    """Setup application logging."""
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.getLogger('spm_attendance').setLevel(level)

    # APScheduler is chatty at INFO
    logging.getLogger('apscheduler').setLevel(logging.WARNING)

    if not app.debug and not app.testing:
        log_file = app.config.get('LOG_FILE', 'logs/app.log')
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(level)
        app.logger.addHandler(file_handler)
        logging.getLogger('spm_attendance').addHandler(file_handler)

        app.logger.setLevel(level)
        app.logger.info('SPM Attendance Backend startup')

def register_request_logging(app: Flask) -> None:
    """Tag each request with an id and log its start and completion."""

    @app.before_request
    def start_request():
        g.request_id = request.headers.get('X-Request-ID') or str(uuid.uuid4())
        g.request_started = time.perf_counter()
        app.logger.info('request.start id=%s method=%s path=%s ip=%s',
                        g.request_id, request.method, request.path, request.remote_addr)

    @app.after_request
    def complete_request(response):
        request_id = g.get('request_id')
        if request_id:
            response.headers['X-Request-ID'] = request_id
            duration_ms = (time.perf_counter() - g.request_started) * 1000
            app.logger.info('request.complete id=%s status=%s duration_ms=%.2f',
                            request_id, response.status_code, duration_ms)
        return response

def setup_database(app: Flask) -> None:
    """Setup database connections."""
    with app.app_context():
        # Import all models
        from spm_attendance.models import (
            User, UserRole,
            AttendanceSession, AttendanceLog, CheckInMethod,
            Notification
        )

        if app.config.get('AUTO_CREATE_TABLES'):
            db.create_all()

def register_commands(app: Flask) -> None:
    """Register CLI commands."""
    import click

    @app.cli.command('init-db')
    @click.option('--drop', is_flag=True, help='Drop existing tables')
    def init_db(drop):
        """Initialize the database."""
        if drop:
            db.drop_all()
            click.echo('Dropped all tables.')

        db.create_all()
        click.echo('Created all tables.')

        # Create admin
        from spm_attendance.models.user import User, UserRole

        admin = User.query.filter_by(email='admin@university.edu').first()
        if not admin:
            admin = User(
                email='admin@university.edu',
                name='System Administrator',
                role=UserRole.ADMIN
            )
            admin.set_password('admin123456')
            db.session.add(admin)
            db.session.commit()
            click.echo('Created admin user: admin@university.edu / admin123456')

    @app.cli.command('create-user')
    @click.option('--role', type=click.Choice(['student', 'lecturer', 'admin']), default='lecturer')
    def create_user(role):
        """Create a user interactively."""
        email = click.prompt('Email')
        name = click.prompt('Name')
        password = click.prompt('Password', hide_input=True)
        student_id = click.prompt('Student ID', default='') if role == 'student' else None

        from spm_attendance.services.auth_service import AuthService

        user, error = AuthService.register(email, password, name, role, student_id=student_id or None)
        if error:
            click.echo(f'Error creating user: {error}')
        else:
            click.echo(f'{role.title()} user created: {user["email"]}')

    @app.cli.command('seed-db')
    def seed_db():
        """Seed database with a lecturer and two students."""
        from spm_attendance.services.auth_service import AuthService

        users = [
            ('lecturer@university.edu', 'lecturer123', 'Prof. Anyimadu', 'lecturer', None, None),
            ('student1@university.edu', 'student123', 'Ama Mensah', 'student', 'BIT364-001', 'Kumasi'),
            ('student2@university.edu', 'student123', 'Kofi Boateng', 'student', 'BIT364-002', 'Accra'),
        ]
        for email, password, name, role, student_id, centre in users:
            _, error = AuthService.register(email, password, name, role, student_id=student_id, centre=centre)
            if error:
                click.echo(f'Skipped {email}: {error}')
            else:
                click.echo(f'Created {role}: {email} / {password}')

    @app.cli.command('cleanup-sessions')
    @click.option('--lecturer-id', type=int, default=None, help='Only sweep this lecturer')
    def cleanup_sessions(lecturer_id):
        """Delete expired attendance sessions once."""
        from spm_attendance.services import get_services

        services = get_services()
        if lecturer_id is not None:
            lecturer = services.directory.get_lecturer(lecturer_id)
            if lecturer is None:
                click.echo(f'Lecturer {lecturer_id} not found')
                return
            deleted = services.cleanup.cleanup_for_lecturer(lecturer)
        else:
            deleted = services.cleanup.run_cleanup()
        click.echo(f'Removed {deleted} expired session(s)')
