import os


class ConfigurationError(Exception):
    """
    Raised when an invalid or unsupported configuration is requested.
    """
    pass


def _env_bool(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name, default):
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")


def _env_int_list(name, default):
    value = os.getenv(name)
    if not value:
        return list(default)
    try:
        return [int(part) for part in value.split(",") if part.strip()]
    except ValueError:
        raise ConfigurationError(f"{name} must be a comma separated list of integers")


class BaseConfig:
    """
    Base configuration shared by all environments.
    """

    ENVIRONMENT = "base"

    # Flask
    DEBUG = False
    TESTING = False
    SECRET_KEY = os.getenv("SECRET_KEY")
    JSON_SORT_KEYS = False

    # Application
    APP_NAME = os.getenv("APP_NAME", "HR Cloud")
    APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173").rstrip("/")

    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///hrcloud.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Redis (job locks, Celery broker)
    REDIS_URL = os.getenv("REDIS_URL")
    CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", os.getenv("REDIS_URL", "redis://localhost:6379/0"))
    CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", CELERY_BROKER_URL)

    # Auth
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", os.getenv("SECRET_KEY"))
    JWT_TOKEN_LOCATION = ["headers"]
    JWT_HEADER_NAME = "Authorization"
    JWT_HEADER_TYPE = "Bearer"
    JWT_ALGORITHM = "HS256"
    SERVICE_ROLE_KEY = os.getenv("SERVICE_ROLE_KEY")

    # CORS
    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]

    # Subscription lifecycle
    GRACE_PERIOD_DAYS = _env_int("GRACE_PERIOD_DAYS", 7)
    TRIAL_FREEZE_AFTER_DAYS = _env_int("TRIAL_FREEZE_AFTER_DAYS", 14)
    TRIAL_WARNING_DAYS = _env_int_list("TRIAL_WARNING_DAYS", (7, 3, 1))
    TRIAL_EXTENSIONS_ALLOWED = _env_bool("TRIAL_EXTENSIONS_ALLOWED", True)
    TRIAL_MAX_EXTENSIONS = _env_int("TRIAL_MAX_EXTENSIONS", 2)
    TRIAL_EXTENSION_MAX_DAYS = _env_int("TRIAL_EXTENSION_MAX_DAYS", 30)
    SWEEP_LOCK_TTL = _env_int("SWEEP_LOCK_TTL", 900)

    # Audit/billing/security log sink
    EVENT_SINK_MODE = os.getenv("EVENT_SINK_MODE", "queued")
    EVENT_SINK_QUEUE_SIZE = _env_int("EVENT_SINK_QUEUE_SIZE", 1000)
    EVENT_SINK_FLUSH_TIMEOUT = _env_int("EVENT_SINK_FLUSH_TIMEOUT", 30)

    # Mail
    MAIL_SERVER = os.getenv("MAIL_SERVER", "localhost")
    MAIL_PORT = _env_int("MAIL_PORT", 587)
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS", True)
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "noreply@hrcloud.app")
    MAIL_SUPPRESS_SEND = _env_bool("MAIL_SUPPRESS_SEND", False)

    # Observability
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_REQUESTS = _env_bool("LOG_REQUESTS", False)
    SENTRY_DSN = os.getenv("SENTRY_DSN")

    @classmethod
    def validate(cls):
        """Hook for environment specific checks. Raises ConfigurationError."""
        if cls.GRACE_PERIOD_DAYS < 0:
            raise ConfigurationError("GRACE_PERIOD_DAYS cannot be negative")
        if cls.EVENT_SINK_MODE not in ("queued", "direct"):
            raise ConfigurationError(f"Unknown EVENT_SINK_MODE: {cls.EVENT_SINK_MODE}")
