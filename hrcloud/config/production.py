from .base import BaseConfig, ConfigurationError


class ProductionConfig(BaseConfig):
    """
    Production configuration.
    """

    ENVIRONMENT = "production"
    DEBUG = False

    @classmethod
    def validate(cls):
        super().validate()

        # MUST be set via environment variables in real production
        for name in ("SECRET_KEY", "JWT_SECRET_KEY", "SERVICE_ROLE_KEY"):
            if not getattr(cls, name):
                raise ConfigurationError(f"{name} is required in production")

        if cls.SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
            raise ConfigurationError("SQLite is not allowed in production. Use PostgreSQL.")
