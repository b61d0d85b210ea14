from .celery_app import celery_app, init_celery
from . import signals  # noqa: F401

__all__ = ["celery_app", "init_celery"]
