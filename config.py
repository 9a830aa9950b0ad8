import os
import secrets


class Config:
    """Base configuration"""
    # Generate a temporary key for development if not set
    _secret = os.environ.get('SECRET_KEY')
    if not _secret:
        _secret = secrets.token_hex(32)
        print("WARNING: Using auto-generated SECRET_KEY. Set SECRET_KEY environment variable for production.")
    SECRET_KEY = _secret

    # Database - Handle Heroku's postgres:// -> postgresql:// conversion
    database_url = os.environ.get('DATABASE_URL') or 'postgresql://localhost/workstream'
    if database_url.startswith('postgres://'):
        database_url = database_url.replace('postgres://', 'postgresql://', 1)
    SQLALCHEMY_DATABASE_URI = database_url
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Database Connection Pool Configuration
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': 10,           # Number of persistent connections to keep open
        'max_overflow': 20,        # Additional connections allowed above pool_size
        'pool_pre_ping': True,     # Test connection health before using
        'pool_recycle': 300,       # Recycle connections after 5 minutes
        'pool_timeout': 30,        # Timeout for getting connection from pool
    }

    # Session
    # Use HTTPS cookies on Heroku (detected by DYNO env var) or when FLASK_ENV is production
    SESSION_COOKIE_SECURE = bool(os.environ.get('DYNO')) or os.environ.get('FLASK_ENV') == 'production'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # Error Tracking
    SENTRY_DSN = os.environ.get('SENTRY_DSN')

    # Email Configuration (SendGrid)
    SENDGRID_API_KEY = os.environ.get('SENDGRID_API_KEY')
    MAIL_DEFAULT_SENDER = os.environ.get('MAIL_DEFAULT_SENDER', 'noreply@workstream.app')
    MAIL_DEFAULT_SENDER_NAME = os.environ.get('MAIL_DEFAULT_SENDER_NAME', 'Workstream')

    # Public base URL used in invitation links (<base>/invite/<token>)
    APP_BASE_URL = os.environ.get('APP_BASE_URL', 'http://localhost:3000')

    # Redis (RQ job queue)
    REDIS_URL = os.environ.get('REDIS_URL') or 'redis://localhost:6379/0'

    # Rate limiter storage; rediss:// needs relaxed cert checks on Heroku Redis
    _limiter_url = REDIS_URL
    if _limiter_url.startswith('rediss://'):
        _limiter_url += '?ssl_cert_reqs=none'
    RATELIMIT_STORAGE_URI = _limiter_url

    # Background jobs: 'rq' enqueues on Redis, 'inline' runs in-process
    JOB_DISPATCHER = os.environ.get('JOB_DISPATCHER', 'rq')
    JOB_QUEUE_NAME = os.environ.get('JOB_QUEUE_NAME', 'default')

    # Invitations
    INVITATION_EXPIRY_DAYS = int(os.environ.get('INVITATION_EXPIRY_DAYS', 7))

    # Due date reminders (daily sweep at 13:00 UTC)
    REMINDER_LEAD_DAYS = (1, 2, 3, 7, 14)
    REMINDER_TIMEZONE = os.environ.get('REMINDER_TIMEZONE', 'UTC')

    # Application
    NOTIFICATIONS_PER_PAGE = 50


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    SQLALCHEMY_ECHO = False
    JOB_DISPATCHER = os.environ.get('JOB_DISPATCHER', 'inline')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    SESSION_COOKIE_SECURE = True

    # Add SSL mode for Postgres on Heroku if not already present
    if 'postgresql://' in Config.database_url and 'sslmode' not in Config.database_url:
        SQLALCHEMY_DATABASE_URI = Config.database_url + '?sslmode=require'


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    # Use TEST_DATABASE_URL from environment if set (for CI), otherwise in-memory SQLite
    test_db_url = os.environ.get('TEST_DATABASE_URL') or 'sqlite://'
    if test_db_url.startswith('postgres://'):
        test_db_url = test_db_url.replace('postgres://', 'postgresql://', 1)
    SQLALCHEMY_DATABASE_URI = test_db_url
    SQLALCHEMY_ENGINE_OPTIONS = {}
    WTF_CSRF_ENABLED = False
    RATELIMIT_ENABLED = False  # Disable rate limiting in tests
    RATELIMIT_STORAGE_URI = 'memory://'
    JOB_DISPATCHER = 'inline'  # Run jobs synchronously, no Redis
    SENDGRID_API_KEY = None
    APP_BASE_URL = 'https://workstream.test'


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
