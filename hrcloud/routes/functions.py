"""
Privileged command endpoints invoked by the SPA (bearer JWT) or the
scheduler (service key).
"""

import logging

from flask import Blueprint, jsonify, request

from hrcloud import services
from hrcloud.errors import ValidationError
from hrcloud.security.auth import current_user_id, service_key_required

logger = logging.getLogger(__name__)

functions_bp = Blueprint("functions", __name__, url_prefix="/functions")


def _json_body():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


@functions_bp.route("/assign-plan", methods=["POST"])
def assign_plan():
    user_id = current_user_id()
    body = _json_body()
    logger.info(f"User {user_id} assigning plan {body.get('plan_id')} to company {body.get('company_id')}")

    result = services.plan_assignment_service().assign(
        user_id,
        body.get("company_id"),
        body.get("plan_id"),
        billing_interval=body.get("billing_interval"),
        stripe_customer_id=body.get("stripe_customer_id"),
        stripe_subscription_id=body.get("stripe_subscription_id"),
    )
    return jsonify(result.to_dict()), 201 if result.created else 200


@functions_bp.route("/freeze-company", methods=["POST"])
def freeze_company():
    user_id = current_user_id()
    body = _json_body()
    logger.info(f"User {user_id} {body.get('action')} company {body.get('company_id')}")

    result = services.freeze_service().apply(
        user_id,
        body.get("company_id"),
        body.get("action"),
        reason=body.get("reason") or None,
    )
    return jsonify(result.to_dict()), 200


@functions_bp.route("/request-trial-extension", methods=["POST"])
def request_trial_extension():
    user_id = current_user_id()
    body = _json_body()

    extension = services.trial_extension_service().request(
        user_id,
        body.get("company_id") or body.get("companyId"),
        body.get("requested_days") or body.get("requestedDays"),
        body.get("reason"),
    )
    return jsonify({
        "success": True,
        "message": "Trial extension request submitted",
        "request": extension.to_dict(),
    }), 201


@functions_bp.route("/check-subscription-health", methods=["POST"])
@service_key_required
def check_subscription_health():
    return jsonify(services.health_sweep().run()), 200


@functions_bp.route("/cron-subscription-health", methods=["POST"])
@service_key_required
def cron_subscription_health():
    return jsonify(services.trial_cron().run()), 200
