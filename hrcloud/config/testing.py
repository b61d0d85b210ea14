from .base import BaseConfig


class TestingConfig(BaseConfig):
    """
    Testing configuration. In-memory database, inline log writes, no mail.
    """

    ENVIRONMENT = "testing"
    TESTING = True
    DEBUG = False

    SECRET_KEY = "test-secret-key"
    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-length"
    SERVICE_ROLE_KEY = "test-service-role-key"

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    REDIS_URL = None
    CELERY_BROKER_URL = "memory://"
    CELERY_RESULT_BACKEND = "cache+memory://"

    GRACE_PERIOD_DAYS = 7
    TRIAL_FREEZE_AFTER_DAYS = 14
    TRIAL_WARNING_DAYS = [7, 3, 1]
    TRIAL_EXTENSIONS_ALLOWED = True
    TRIAL_MAX_EXTENSIONS = 2
    TRIAL_EXTENSION_MAX_DAYS = 30

    EVENT_SINK_MODE = "direct"

    MAIL_SUPPRESS_SEND = True
    MAIL_DEFAULT_SENDER = "test@example.com"

    LOG_LEVEL = "WARNING"
    SENTRY_DSN = None
