import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from hrcloud.audit.events import AuditEvent, BillingEvent, SecurityEventRecord
from hrcloud.billing.states import (
    AuditAction,
    AuditSeverity,
    BillingEventType,
    CompanyRole,
    FreezeAction,
    SecurityEventType,
    SecuritySeverity,
    SubscriptionStatus,
)
from hrcloud.errors import NotFound, StoreError, ValidationError
from hrcloud.extensions import db
from hrcloud.models import Company, CompanySubscription
from hrcloud.security.permissions import require_membership
from hrcloud.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


@dataclass
class FreezeResult:
    changed: bool
    message: str
    company: dict

    def to_dict(self):
        body = {"success": True, "message": self.message}
        if self.changed:
            body["company"] = self.company
        return body


class CompanyFreezeService:
    """
    Explicit, owner-initiated freeze and unfreeze.

    Re-applying the current state is a successful no-op that writes nothing.
    Unfreezing restores the company flag only; subscription status is left
    for the health sweep to reconcile.
    """

    def __init__(self, sink):
        self.sink = sink

    def apply(self, actor_id, company_id, action, reason=None):
        if not company_id or not isinstance(company_id, str):
            raise ValidationError("Company ID is required")
        try:
            action = FreezeAction(action)
        except ValueError:
            raise ValidationError("Action must be 'freeze' or 'unfreeze'")

        membership = require_membership(
            actor_id, company_id,
            roles={CompanyRole.OWNER.value},
            role_error="Only company owners can freeze/unfreeze",
        )

        company = db.session.get(Company, company_id)
        if company is None:
            raise NotFound("Company not found")

        freezing = action is FreezeAction.FREEZE
        target_active = not freezing
        was_active = company.is_active

        if was_active == target_active:
            return FreezeResult(
                changed=False,
                message=f"Company is already {'active' if target_active else 'frozen'}",
                company=self._summary(company),
            )

        now = utcnow()
        try:
            company.is_active = target_active
            company.updated_at = now
            if freezing:
                subscription = CompanySubscription.query.filter_by(company_id=company_id).first()
                if subscription is not None:
                    subscription.status = SubscriptionStatus.PAUSED.value
                    subscription.updated_at = now
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error updating company {company_id}: {e}")
            raise StoreError(str(e.__cause__ or e))

        verb = "frozen" if freezing else "unfrozen"
        logger.info(f"Company {company_id} {verb} by {actor_id}")
        self._emit_logs(actor_id, membership.role, company_id, freezing, was_active, reason)

        return FreezeResult(
            changed=True,
            message=f"Company {verb} successfully",
            company=self._summary(company),
        )

    def _emit_logs(self, actor_id, actor_role, company_id, freezing, was_active, reason):
        verb = "frozen" if freezing else "unfrozen"
        self.sink.emit(AuditEvent(
            company_id=company_id,
            user_id=actor_id,
            action=AuditAction.UPDATE.value,
            table_name="companies",
            record_id=company_id,
            actor_role=actor_role,
            target_type="company",
            severity=(AuditSeverity.WARN if freezing else AuditSeverity.INFO).value,
            old_values={"is_active": was_active},
            new_values={"is_active": not freezing, "reason": reason},
        ))
        self.sink.emit(SecurityEventRecord(
            company_id=company_id,
            user_id=actor_id,
            event_type=(
                SecurityEventType.COMPANY_FROZEN if freezing else SecurityEventType.COMPANY_UNFROZEN
            ).value,
            severity=(SecuritySeverity.HIGH if freezing else SecuritySeverity.LOW).value,
            description=f"Company {verb}" + (f": {reason}" if reason else ""),
        ))
        self.sink.emit(BillingEvent(
            company_id=company_id,
            event_type=(
                BillingEventType.COMPANY_FROZEN if freezing else BillingEventType.COMPANY_UNFROZEN
            ).value,
            triggered_by=actor_id,
            metadata={"reason": reason, "manual": True},
        ))

    @staticmethod
    def _summary(company):
        return {"id": company.id, "name": company.name, "is_active": company.is_active}
