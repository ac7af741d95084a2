"""Development configuration."""
import os
from datetime import timedelta

class DevelopmentConfig:
    """Development configuration class."""

    # Basic Flask config
    DEBUG = True
    TESTING = False
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')

    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv('DEV_DATABASE_URL', 'sqlite:///spm_attendance_dev.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False
    AUTO_CREATE_TABLES = True

    # JWT Configuration
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'jwt-secret-key-change-in-production')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=8)
    JWT_ALGORITHM = 'HS256'

    # CORS
    CORS_ORIGINS = [
        r"http://localhost:\d+",
        r"http://127\.0\.0\.1:\d+",
        r"https://spmproject.*\.vercel\.app",
    ]

    # Rate Limiting
    RATELIMIT_STORAGE_URI = os.getenv('REDIS_URL', 'memory://')
    RATELIMIT_ENABLED = True

    # Attendance sessions
    ATTENDANCE_DEFAULT_DURATION_MINUTES = 30
    ATTENDANCE_MAX_DURATION_MINUTES = 240
    ATTENDANCE_CHECKIN_RATE_LIMIT = "15 per minute"

    # Expired session sweep
    SESSION_CLEANUP_ENABLED = True
    SESSION_CLEANUP_INTERVAL_MINUTES = 5

    # Logging
    LOG_LEVEL = 'DEBUG'
