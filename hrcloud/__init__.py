"""
Flask application factory for the subscription lifecycle service.
"""

import atexit
import logging
import weakref

import sentry_sdk
from flask import Flask
from sentry_sdk.integrations.flask import FlaskIntegration

from hrcloud.audit.sink import build_event_sink
from hrcloud.config import get_config
from hrcloud.error_handlers import register_error_handlers
from hrcloud.extensions import init_extensions
from hrcloud.logging_config import setup_logging
from hrcloud.middleware import init_request_id_middleware
from hrcloud.routes import register_blueprints
from hrcloud.workers import init_celery

logger = logging.getLogger(__name__)

# Sinks of every live app; drained once at interpreter exit
_event_sinks = weakref.WeakSet()


@atexit.register
def drain_event_sinks():
    for sink in list(_event_sinks):
        sink.drain()


def setup_sentry(app):
    """Initialize Sentry error tracking"""
    sentry_dsn = app.config.get("SENTRY_DSN")

    if sentry_dsn and app.config.get("ENVIRONMENT") == "production":
        sentry_sdk.init(
            dsn=sentry_dsn,
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment="production",
            release=app.config.get("APP_VERSION", "1.0.0"),
            send_default_pii=False,
        )
        logger.info("Sentry error tracking initialized")


def init_event_sink(app):
    sink = build_event_sink(app)
    app.extensions["event_sink"] = sink
    _event_sinks.add(sink)
    logger.info(f"Event sink initialized ({type(sink).__name__})")
    return sink


def create_app(config_name=None):
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))

    setup_logging(app)
    setup_sentry(app)

    init_extensions(app)
    init_request_id_middleware(app)
    register_error_handlers(app)
    register_blueprints(app)

    init_event_sink(app)
    init_celery(app)

    logger.info(f"Application started in {app.config['ENVIRONMENT']} mode")
    return app
