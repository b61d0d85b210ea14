from flask import Blueprint, jsonify, request

from hrcloud import services
from hrcloud.errors import ValidationError
from hrcloud.security.auth import current_user_id

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.route("/trial-extensions/<request_id>/review", methods=["POST"])
def review_trial_extension(request_id):
    reviewer_id = current_user_id()
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")

    extension, subscription = services.trial_extension_service().review(
        reviewer_id,
        request_id,
        body.get("decision"),
        notes=body.get("notes"),
    )
    approved = extension.status == "approved"
    return jsonify({
        "success": True,
        "message": "Extension approved and trial extended" if approved else "Extension rejected",
        "request": extension.to_dict(),
        "subscription": subscription.to_dict() if subscription is not None else None,
    }), 200
