from flask import Blueprint, jsonify

from hrcloud.billing.write_gate import TenantAccessState
from hrcloud.errors import NotFound
from hrcloud.extensions import db
from hrcloud.models import Company, CompanySubscription
from hrcloud.security.auth import current_user_id
from hrcloud.security.permissions import require_membership
from hrcloud.utils.timeutils import utcnow

companies_bp = Blueprint("companies", __name__, url_prefix="/api/companies")


@companies_bp.route("/<company_id>/access", methods=["GET"])
def company_access(company_id):
    """Write-gate state for the SPA. Any active member may read it."""
    user_id = current_user_id()
    require_membership(user_id, company_id)

    company = db.session.get(Company, company_id)
    if company is None:
        raise NotFound("Company not found")

    subscription = CompanySubscription.query.filter_by(company_id=company_id).first()
    state = TenantAccessState.from_records(company, subscription, utcnow())
    return jsonify(state.to_dict()), 200
