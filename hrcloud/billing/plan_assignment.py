import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from hrcloud.audit.events import AuditEvent, BillingEvent
from hrcloud.billing.states import (
    PLAN_MANAGER_ROLES,
    AuditAction,
    AuditSeverity,
    BillingEventType,
    BillingInterval,
    SubscriptionStatus,
)
from hrcloud.errors import NotFound, StoreError, ValidationError
from hrcloud.extensions import db
from hrcloud.models import Company, CompanySubscription, Plan
from hrcloud.security.permissions import require_membership
from hrcloud.utils.timeutils import add_months, isoformat, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlanTransition:
    status: str
    trial_ends_at: Optional[object]
    trial_ended: bool
    billing_event: str


def plan_transition(current_status, current_trial_ends_at, plan_is_paid, has_subscription=True):
    """
    Decision table for a plan change.

    A paid target always ends any trial. A free target keeps a running trial
    (and its end date) untouched. Everything else lands on active.
    """
    if not has_subscription:
        return PlanTransition(
            status=SubscriptionStatus.ACTIVE.value,
            trial_ends_at=None,
            trial_ended=False,
            billing_event=BillingEventType.SUBSCRIPTION_CREATED.value,
        )

    was_trialing = current_status == SubscriptionStatus.TRIALING.value

    if plan_is_paid:
        return PlanTransition(
            status=SubscriptionStatus.ACTIVE.value,
            trial_ends_at=None,
            trial_ended=was_trialing,
            billing_event=(
                BillingEventType.SUBSCRIPTION_CREATED.value if was_trialing
                else BillingEventType.SUBSCRIPTION_UPGRADED.value
            ),
        )

    if was_trialing and current_trial_ends_at is not None:
        return PlanTransition(
            status=SubscriptionStatus.TRIALING.value,
            trial_ends_at=current_trial_ends_at,
            trial_ended=False,
            billing_event=BillingEventType.SUBSCRIPTION_DOWNGRADED.value,
        )

    return PlanTransition(
        status=SubscriptionStatus.ACTIVE.value,
        trial_ends_at=None,
        trial_ended=False,
        billing_event=BillingEventType.SUBSCRIPTION_DOWNGRADED.value,
    )


@dataclass
class PlanAssignmentResult:
    created: bool
    trial_ended: bool
    message: str
    subscription: dict

    def to_dict(self):
        return {
            "success": True,
            "message": self.message,
            "trial_ended": self.trial_ended,
            "subscription": self.subscription,
        }


class PlanAssignmentService:

    def __init__(self, sink):
        self.sink = sink

    def assign(self, actor_id, company_id, plan_id, billing_interval=None,
               stripe_customer_id=None, stripe_subscription_id=None, now=None):
        if not company_id or not isinstance(company_id, str):
            raise ValidationError("Company ID is required")
        if not plan_id or not isinstance(plan_id, str):
            raise ValidationError("Plan ID is required")

        interval = billing_interval or BillingInterval.MONTHLY.value
        try:
            interval = BillingInterval(interval)
        except ValueError:
            raise ValidationError("billing_interval must be 'monthly' or 'yearly'")

        membership = require_membership(
            actor_id, company_id, roles=PLAN_MANAGER_ROLES, role_error="Only admins can change plans"
        )

        if db.session.get(Company, company_id) is None:
            raise NotFound("Company not found")

        plan = db.session.get(Plan, plan_id)
        if plan is None or not plan.is_active:
            raise NotFound("Plan not found or inactive")

        now = now or utcnow()
        period_end = add_months(now, interval.months)
        subscription = CompanySubscription.query.filter_by(company_id=company_id).first()

        if subscription is None:
            return self._create(actor_id, membership, company_id, plan, interval, now, period_end,
                                stripe_customer_id, stripe_subscription_id)
        return self._update(actor_id, membership, subscription, plan, interval, now, period_end,
                            stripe_customer_id, stripe_subscription_id)

    def _create(self, actor_id, membership, company_id, plan, interval, now, period_end,
                stripe_customer_id, stripe_subscription_id):
        transition = plan_transition(None, None, plan.is_paid, has_subscription=False)
        subscription = CompanySubscription(
            company_id=company_id,
            plan_id=plan.id,
            status=transition.status,
            billing_interval=interval.value,
            current_period_start=now,
            current_period_end=period_end,
            trial_ends_at=None,
            stripe_customer_id=stripe_customer_id or None,
            stripe_subscription_id=stripe_subscription_id or None,
        )
        self._commit(subscription)
        logger.info(f"New subscription created for company {company_id}")

        self.sink.emit(AuditEvent(
            company_id=company_id,
            user_id=actor_id,
            action=AuditAction.CREATE.value,
            table_name="company_subscriptions",
            record_id=subscription.id,
            actor_role=membership.role,
            target_type="subscription",
            severity=AuditSeverity.INFO.value,
            new_values={"plan_id": plan.id, "status": transition.status},
            metadata={"is_paid_upgrade": plan.is_paid, "trial_ended": False},
        ))
        self.sink.emit(BillingEvent(
            company_id=company_id,
            event_type=transition.billing_event,
            triggered_by=actor_id,
            subscription_id=subscription.id,
            plan_id=plan.id,
            metadata={"billing_interval": interval.value},
        ))

        return PlanAssignmentResult(
            created=True,
            trial_ended=False,
            message="Plan assigned successfully",
            subscription=self._summary(subscription, plan),
        )

    def _update(self, actor_id, membership, subscription, plan, interval, now, period_end,
                stripe_customer_id, stripe_subscription_id):
        previous = {
            "plan_id": subscription.plan_id,
            "status": subscription.status,
            "trial_ends_at": isoformat(subscription.trial_ends_at),
        }
        transition = plan_transition(subscription.status, subscription.trial_ends_at, plan.is_paid)

        subscription.plan_id = plan.id
        subscription.status = transition.status
        subscription.billing_interval = interval.value
        subscription.current_period_start = now
        subscription.current_period_end = period_end
        subscription.trial_ends_at = transition.trial_ends_at
        subscription.stripe_customer_id = stripe_customer_id or subscription.stripe_customer_id
        subscription.stripe_subscription_id = stripe_subscription_id or subscription.stripe_subscription_id
        subscription.updated_at = now
        self._commit(subscription)

        logger.info(
            f"Subscription updated for company {subscription.company_id} "
            f"to plan {plan.name}, status: {transition.status}"
        )

        self.sink.emit(AuditEvent(
            company_id=subscription.company_id,
            user_id=actor_id,
            action=AuditAction.UPDATE.value,
            table_name="company_subscriptions",
            record_id=subscription.id,
            actor_role=membership.role,
            target_type="subscription",
            severity=AuditSeverity.INFO.value,
            old_values=previous,
            new_values={
                "plan_id": plan.id,
                "status": transition.status,
                "trial_ends_at": isoformat(transition.trial_ends_at),
            },
            metadata={"is_paid_upgrade": plan.is_paid, "trial_ended": transition.trial_ended},
        ))
        self.sink.emit(BillingEvent(
            company_id=subscription.company_id,
            event_type=transition.billing_event,
            triggered_by=actor_id,
            subscription_id=subscription.id,
            plan_id=plan.id,
            previous_plan_id=previous["plan_id"],
            metadata={"billing_interval": interval.value, "trial_ended": transition.trial_ended},
        ))

        message = (
            f"Upgraded to {plan.name}. Your trial has ended."
            if transition.trial_ended
            else "Plan updated successfully"
        )
        return PlanAssignmentResult(
            created=False,
            trial_ended=transition.trial_ended,
            message=message,
            subscription=self._summary(subscription, plan),
        )

    @staticmethod
    def _commit(subscription):
        try:
            db.session.add(subscription)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error saving subscription: {e}")
            raise StoreError(str(e.__cause__ or e))

    @staticmethod
    def _summary(subscription, plan):
        return {
            "id": subscription.id,
            "plan_id": plan.id,
            "plan_name": plan.name,
            "status": subscription.status,
            "billing_interval": subscription.billing_interval,
            "current_period_end": isoformat(subscription.current_period_end),
            "trial_ends_at": isoformat(subscription.trial_ends_at),
        }
