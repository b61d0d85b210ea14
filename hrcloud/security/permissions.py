import logging

from hrcloud.errors import Forbidden
from hrcloud.extensions import db
from hrcloud.models import CompanyUser, Profile

logger = logging.getLogger(__name__)

NOT_A_MEMBER = "You are not a member of this company"


def get_membership(user_id, company_id):
    return CompanyUser.query.filter_by(
        company_id=company_id,
        user_id=user_id,
        is_active=True,
    ).first()


def require_membership(user_id, company_id, roles=None, role_error=None):
    """
    Return the caller's active membership in the company, or raise Forbidden.

    ``roles`` restricts which membership roles are accepted.
    """
    membership = get_membership(user_id, company_id)
    if membership is None:
        logger.info(f"User {user_id} is not a member of company {company_id}")
        raise Forbidden(NOT_A_MEMBER)

    if roles is not None and membership.role not in roles:
        logger.info(f"User {user_id} with role {membership.role} denied on company {company_id}")
        raise Forbidden(role_error or "Insufficient permissions for this company")

    return membership


def require_platform_admin(user_id):
    profile = db.session.get(Profile, user_id)
    if profile is None or not profile.is_platform_admin:
        raise Forbidden("Platform admin access required")
    return profile
