"""Testing configuration."""
from datetime import timedelta

class TestingConfig:
    """Testing configuration class."""

    # Basic Flask config
    DEBUG = False
    TESTING = True
    SECRET_KEY = 'test-secret-key'

    # Database (in-memory SQLite for testing)
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False
    AUTO_CREATE_TABLES = False

    # JWT Configuration
    JWT_SECRET_KEY = 'test-jwt-secret-with-enough-length-for-hs256'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=5)
    JWT_ALGORITHM = 'HS256'

    CORS_ORIGINS = ["*"]

    # Rate Limiting (disabled for testing)
    RATELIMIT_STORAGE_URI = 'memory://'
    RATELIMIT_ENABLED = False

    # Attendance sessions
    ATTENDANCE_DEFAULT_DURATION_MINUTES = 30
    ATTENDANCE_MAX_DURATION_MINUTES = 240
    ATTENDANCE_CHECKIN_RATE_LIMIT = "15 per minute"

    # No background sweep in tests
    SESSION_CLEANUP_ENABLED = False
    SESSION_CLEANUP_INTERVAL_MINUTES = 5

    # Logging
    LOG_LEVEL = 'WARNING'
