from .base import BaseConfig


class DevelopmentConfig(BaseConfig):
    """
    Development configuration.
    """

    ENVIRONMENT = "development"
    DEBUG = True

    SECRET_KEY = BaseConfig.SECRET_KEY or "dev-secret-key"
    JWT_SECRET_KEY = BaseConfig.JWT_SECRET_KEY or "dev-jwt-secret-key"
    SERVICE_ROLE_KEY = BaseConfig.SERVICE_ROLE_KEY or "dev-service-role-key"

    LOG_REQUESTS = True
    MAIL_SUPPRESS_SEND = True
