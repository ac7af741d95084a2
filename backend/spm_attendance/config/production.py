"""Production configuration."""
import os
from datetime import timedelta

class ProductionConfig:
    """Production configuration class."""

    # Basic Flask config
    DEBUG = False
    TESTING = False
    SECRET_KEY = os.getenv('SECRET_KEY')  # Must be set in production

    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 280,
    }
    AUTO_CREATE_TABLES = False

    # JWT Configuration
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=2)
    JWT_ALGORITHM = 'HS256'

    # CORS
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv('FRONTEND_ORIGINS', 'https://spmproject-web.vercel.app').split(',')
        if origin.strip()
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
    LOG_LEVEL = 'INFO'
    LOG_FILE = os.getenv('LOG_FILE', 'logs/app.log')
