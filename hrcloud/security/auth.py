import hmac
import logging
from functools import wraps
from typing import Any, Callable

from flask import current_app, request
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from hrcloud.errors import Unauthorized

logger = logging.getLogger(__name__)

SERVICE_KEY_HEADER = "X-Service-Key"


def current_user_id():
    """Identity of the bearer token on the current request."""
    verify_jwt_in_request()
    identity = get_jwt_identity()
    if not identity:
        raise Unauthorized("Invalid or expired token")
    return str(identity)


def _presented_service_key():
    key = request.headers.get(SERVICE_KEY_HEADER)
    if key:
        return key
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth[len("Bearer "):].strip()
    return None


def service_key_required(fn: Callable) -> Callable:
    """
    Decorator for scheduler-invoked endpoints. The caller must present the
    shared service key, either in X-Service-Key or as the bearer token.
    """
    @wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        expected = current_app.config.get("SERVICE_ROLE_KEY")
        presented = _presented_service_key()
        if not expected or not presented or not hmac.compare_digest(presented.encode(), expected.encode()):
            logger.warning(f"Rejected service call to {request.path}")
            raise Unauthorized("A valid service key is required")
        return fn(*args, **kwargs)

    return wrapper
