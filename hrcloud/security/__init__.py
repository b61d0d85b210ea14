from .auth import current_user_id, service_key_required
from .permissions import get_membership, require_membership, require_platform_admin

__all__ = [
    "current_user_id",
    "get_membership",
    "require_membership",
    "require_platform_admin",
    "service_key_required",
]
