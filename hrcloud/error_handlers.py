# hrcloud/error_handlers.py
import logging
import traceback

from flask import jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from hrcloud.errors import AppError, JobAlreadyRunning
from hrcloud.extensions import db

logger = logging.getLogger(__name__)

HTTP_TITLES = {
    400: "Validation Error",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
    415: "Validation Error",
    422: "Validation Error",
}


def register_error_handlers(app):
    """Register all error handlers for the application"""

    @app.errorhandler(AppError)
    def handle_app_error(error):
        if error.status_code >= 500:
            logger.error(f"{error.title}: {error.message} - Path: {request.path}")
        else:
            logger.warning(f"{error.title}: {error.message} - Path: {request.path}")
        response = jsonify(error.to_dict())
        response.status_code = error.status_code
        return response

    @app.errorhandler(JobAlreadyRunning)
    def handle_job_running(error):
        logger.warning(f"Job lock held: {error.job_name} - Path: {request.path}")
        return jsonify({"error": "Conflict", "message": str(error)}), 409

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        """
        Handles known HTTP errors (404, 405, malformed JSON, ...)
        """
        title = HTTP_TITLES.get(e.code, e.name)
        if e.code == 404:
            logger.info(f"Not found: {request.path}")
        else:
            logger.warning(f"{title}: {e.description} - Path: {request.path}")
        return jsonify({"error": title, "message": e.description}), e.code

    @app.errorhandler(SQLAlchemyError)
    def handle_store_error(e):
        db.session.rollback()
        logger.error(f"Database error: {e} - Path: {request.path}")
        return jsonify({"error": "Database Error", "message": str(e.__cause__ or e)}), 500

    @app.errorhandler(Exception)
    def handle_exception(e):
        """
        Handles all unexpected server errors.
        Prevents stack trace leakage in responses.
        """
        logger.error(f"Unhandled exception - Path: {request.path}")
        logger.error(traceback.format_exc())
        return jsonify({
            "error": "Internal Server Error",
            "message": "Something went wrong. Please try again later.",
        }), 500
