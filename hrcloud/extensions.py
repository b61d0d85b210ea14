# hrcloud/extensions.py
"""
Flask extensions initialization module.
Handles initialization and configuration of all Flask extensions.
"""

import logging

import redis
from flask import jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_mail import Mail
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

# Initialize extensions
db = SQLAlchemy()
jwt = JWTManager()
cors = CORS()
migrate = Migrate()
mail = Mail()
redis_client = None

logger = logging.getLogger(__name__)


def init_extensions(app):
    """Initialize all Flask extensions."""

    # Redis is optional; job locks fall back to the database when absent
    init_redis(app)

    db.init_app(app)
    logger.info("SQLAlchemy initialized")

    migrate.init_app(app, db)
    logger.info("Flask-Migrate initialized")

    jwt.init_app(app)
    setup_jwt_callbacks()
    logger.info("JWT Manager initialized")

    init_cors(app)
    logger.info("CORS initialized")

    mail.init_app(app)
    logger.info("Flask-Mail initialized")

    return app


def init_cors(app):
    """Initialize CORS for the SPA origins."""
    cors.init_app(
        app,
        origins=app.config.get("CORS_ORIGINS") or [],
        methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Service-Key", "X-Request-ID"],
        supports_credentials=False,
        max_age=600,
    )


def init_redis(app):
    """Initialize the Redis connection used for job locks."""
    global redis_client

    redis_url = app.config.get("REDIS_URL")
    if not redis_url:
        redis_client = None
        logger.info("REDIS_URL not set, Redis disabled")
        return None

    try:
        redis_client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_timeout=5,
            socket_connect_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        redis_client.ping()
        logger.info("Redis initialized successfully")
    except redis.RedisError as e:
        logger.error(f"Failed to connect to Redis: {e}")
        if app.config.get("ENVIRONMENT") == "production":
            raise
        redis_client = None

    return redis_client


def get_redis():
    return redis_client


def setup_jwt_callbacks():
    """Render JWT failures with the standard error envelope."""

    @jwt.unauthorized_loader
    def missing_token_callback(reason):
        return jsonify({"error": "Unauthorized", "message": reason}), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(reason):
        return jsonify({"error": "Unauthorized", "message": reason}), 401

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({"error": "Unauthorized", "message": "Token has expired"}), 401
