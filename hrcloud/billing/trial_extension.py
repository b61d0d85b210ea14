import logging
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError

from hrcloud.audit.events import BillingEvent
from hrcloud.billing.states import (
    PLAN_MANAGER_ROLES,
    BillingEventType,
    ExtensionStatus,
    SubscriptionStatus,
)
from hrcloud.errors import Conflict, Forbidden, NotFound, NotificationError, StoreError, ValidationError
from hrcloud.extensions import db
from hrcloud.models import Company, CompanySubscription, Profile, TrialExtensionRequest
from hrcloud.security.permissions import require_membership, require_platform_admin
from hrcloud.utils.timeutils import isoformat, utcnow

logger = logging.getLogger(__name__)

REVIEW_DECISIONS = ("approve", "reject")

EXTENDABLE_STATUSES = frozenset({SubscriptionStatus.TRIALING.value, SubscriptionStatus.TRIAL_EXPIRED.value})


class TrialExtensionService:
    """
    Tenant admins ask for more trial days; platform admins approve or reject.
    """

    def __init__(self, sink, dispatcher=None, allowed=True, max_extensions=2, max_days=30):
        self.sink = sink
        self.dispatcher = dispatcher
        self.allowed = allowed
        self.max_extensions = max_extensions
        self.max_days = max_days

    def request(self, actor_id, company_id, requested_days, reason):
        if not company_id or not reason or not requested_days:
            raise ValidationError("Missing required fields: company_id, requested_days, reason")
        if not isinstance(requested_days, int) or isinstance(requested_days, bool):
            raise ValidationError("requested_days must be an integer")
        if requested_days < 1 or requested_days > self.max_days:
            raise ValidationError(f"Requested days must be between 1 and {self.max_days}")

        require_membership(
            actor_id, company_id,
            roles=PLAN_MANAGER_ROLES,
            role_error="Only company admins can request trial extensions",
        )

        company = db.session.get(Company, company_id)
        if company is None:
            raise NotFound("Company not found")

        subscription = CompanySubscription.query.filter_by(company_id=company_id).first()
        if subscription is None:
            raise NotFound("No subscription found")
        if subscription.status != SubscriptionStatus.TRIALING.value:
            raise ValidationError("Trial extensions are only available for trialing companies")

        if not self.allowed:
            raise Forbidden("Trial extensions are not allowed")

        pending = TrialExtensionRequest.query.filter_by(
            company_id=company_id, status=ExtensionStatus.PENDING.value
        ).first()
        if pending is not None:
            raise ValidationError("You already have a pending extension request")

        approved_count = TrialExtensionRequest.query.filter_by(
            company_id=company_id, status=ExtensionStatus.APPROVED.value
        ).count()
        if approved_count >= self.max_extensions:
            raise ValidationError(f"Maximum of {self.max_extensions} trial extensions allowed")

        extension = TrialExtensionRequest(
            company_id=company_id,
            requested_by=actor_id,
            requested_days=requested_days,
            reason=reason,
            status=ExtensionStatus.PENDING.value,
            extension_number=approved_count + 1,
        )
        try:
            db.session.add(extension)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error creating extension request: {e}")
            raise StoreError("Failed to create extension request")

        logger.info(f"Created trial extension request {extension.id}")
        self._notify_platform_admins(company, extension)
        return extension

    def review(self, reviewer_id, request_id, decision, notes=None, now=None):
        require_platform_admin(reviewer_id)

        if decision not in REVIEW_DECISIONS:
            raise ValidationError("decision must be 'approve' or 'reject'")

        extension = db.session.get(TrialExtensionRequest, request_id)
        if extension is None:
            raise NotFound("Extension request not found")
        if extension.status != ExtensionStatus.PENDING.value:
            raise Conflict("Extension request has already been reviewed")

        now = now or utcnow()
        approved = decision == "approve"
        subscription = CompanySubscription.query.filter_by(company_id=extension.company_id).first()
        if approved and subscription is None:
            raise NotFound("No subscription found")
        # A tenant that moved to a paid plan meanwhile must not be put back on a trial
        if approved and subscription.status not in EXTENDABLE_STATUSES:
            raise Conflict(f"Subscription is {subscription.status}; the trial can no longer be extended")

        new_end = None
        try:
            extension.status = (ExtensionStatus.APPROVED if approved else ExtensionStatus.REJECTED).value
            extension.reviewed_by = reviewer_id
            extension.reviewed_at = now
            extension.review_notes = notes or None

            if approved:
                base = subscription.trial_ends_at or subscription.current_period_end or now
                new_end = base + timedelta(days=extension.requested_days)
                subscription.trial_ends_at = new_end
                subscription.current_period_end = new_end
                subscription.status = SubscriptionStatus.TRIALING.value
                subscription.trial_total_days = (subscription.trial_total_days or 0) + extension.requested_days
                subscription.updated_at = now
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error reviewing extension request {request_id}: {e}")
            raise StoreError(str(e.__cause__ or e))

        if approved:
            event = BillingEvent(
                company_id=extension.company_id,
                event_type=BillingEventType.TRIAL_EXTENSION_APPROVED.value,
                triggered_by=reviewer_id,
                subscription_id=subscription.id,
                plan_id=subscription.plan_id,
                metadata={
                    "extension_days": extension.requested_days,
                    "new_trial_end": isoformat(new_end),
                    "request_id": extension.id,
                    "request_reason": extension.reason,
                },
            )
        else:
            event = BillingEvent(
                company_id=extension.company_id,
                event_type=BillingEventType.TRIAL_EXTENSION_REJECTED.value,
                triggered_by=reviewer_id,
                subscription_id=subscription.id if subscription else None,
                plan_id=subscription.plan_id if subscription else None,
                metadata={
                    "request_id": extension.id,
                    "request_reason": extension.reason,
                    "rejection_notes": notes,
                },
            )
        self.sink.emit(event)

        logger.info(f"Trial extension request {extension.id} {extension.status} by {reviewer_id}")
        return extension, subscription

    def _notify_platform_admins(self, company, extension):
        if self.dispatcher is None:
            return
        admins = Profile.query.filter_by(is_platform_admin=True).all()
        for admin in admins:
            try:
                self.dispatcher.notify(
                    admin.id,
                    "trial_extension_request",
                    f"Trial Extension Request: {company.name}",
                    f"{company.name} requested {extension.requested_days} more trial days: {extension.reason}",
                    link=f"/platform/companies/{company.id}",
                    company_id=company.id,
                )
            except NotificationError as e:
                logger.warning(f"Failed to notify platform admin {admin.id}: {e}")
