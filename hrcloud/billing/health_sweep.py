"""
Scheduled subscription health sweep.

Re-evaluates every tenant subscription against the lifecycle rule and
applies the resulting freezes and unfreezes as two bulk updates. Log
emission is best-effort per tenant; a failure is counted in ``errors`` and
the run carries on. Re-running with no intervening change is a no-op.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from hrcloud.audit.events import AuditEvent, BillingEvent, SecurityEventRecord
from hrcloud.billing.lifecycle import DEFAULT_GRACE_PERIOD_DAYS, SubscriptionSnapshot, evaluate
from hrcloud.billing.states import (
    AuditAction,
    AuditSeverity,
    BillingEventType,
    SecurityEventType,
    SecuritySeverity,
    SubscriptionStatus,
)
from hrcloud.errors import MalformedSubscription
from hrcloud.extensions import db
from hrcloud.models import Company, CompanySubscription
from hrcloud.observability.metrics import record_transition
from hrcloud.utils.redis_lock import DEFAULT_TTL, job_lock
from hrcloud.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

JOB_NAME = "check-subscription-health"


class SubscriptionHealthSweep:

    def __init__(self, sink, grace_period_days=DEFAULT_GRACE_PERIOD_DAYS, lock_ttl=DEFAULT_TTL):
        self.sink = sink
        self.grace_period_days = grace_period_days
        self.lock_ttl = lock_ttl

    def run(self, now=None):
        with job_lock(JOB_NAME, ttl=self.lock_ttl):
            return self._run(now or utcnow())

    def _run(self, now):
        rows = (
            db.session.query(CompanySubscription, Company.is_active)
            .join(Company, Company.id == CompanySubscription.company_id)
            .all()
        )

        details = []
        to_freeze = []
        to_unfreeze = []
        skipped = 0
        errors = 0

        for subscription, is_active in rows:
            snapshot = SubscriptionSnapshot.from_row(subscription, is_active)
            try:
                decision = evaluate(snapshot, now, self.grace_period_days)
            except MalformedSubscription as e:
                skipped += 1
                logger.warning(
                    "Data integrity: skipping subscription",
                    extra={"company_id": e.company_id, "reason": e.reason, "job": JOB_NAME},
                )
                continue

            details.append({
                "company_id": snapshot.company_id,
                "status": snapshot.status,
                "days_past_due": decision.days_past_due,
                "should_freeze": decision.should_freeze,
                "decision": decision.label,
            })

            # Already frozen tenants are excluded, which keeps re-runs idempotent
            if decision.should_freeze and snapshot.is_active:
                to_freeze.append(snapshot.company_id)
            elif decision.should_unfreeze:
                to_unfreeze.append(snapshot.company_id)

        frozen = 0
        if to_freeze:
            if self._apply_freeze(to_freeze, now):
                frozen = len(to_freeze)
                for company_id in to_freeze:
                    errors += self._emit_freeze_logs(company_id)
            else:
                errors += 1

        unfrozen = 0
        if to_unfreeze:
            if self._apply_unfreeze(to_unfreeze, now):
                unfrozen = len(to_unfreeze)
                for company_id in to_unfreeze:
                    errors += self._emit_unfreeze_logs(company_id)
            else:
                errors += 1

        record_transition(JOB_NAME, "freeze", frozen)
        record_transition(JOB_NAME, "unfreeze", unfrozen)

        summary = {
            "success": True,
            "checked": len(details),
            "frozen": frozen,
            "unfrozen": unfrozen,
            "skipped": skipped,
            "errors": errors,
            "details": details,
        }
        logger.info(
            "Subscription health sweep completed",
            extra={k: v for k, v in summary.items() if k != "details"},
        )
        return summary

    def _apply_freeze(self, company_ids, now):
        try:
            Company.query.filter(Company.id.in_(company_ids)).update(
                {Company.is_active: False, Company.updated_at: now},
                synchronize_session=False,
            )
            CompanySubscription.query.filter(CompanySubscription.company_id.in_(company_ids)).update(
                {
                    CompanySubscription.status: SubscriptionStatus.PAUSED.value,
                    CompanySubscription.updated_at: now,
                },
                synchronize_session=False,
            )
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error freezing companies: {e}")
            return False
        return True

    def _apply_unfreeze(self, company_ids, now):
        try:
            Company.query.filter(Company.id.in_(company_ids)).update(
                {Company.is_active: True, Company.updated_at: now},
                synchronize_session=False,
            )
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error unfreezing companies: {e}")
            return False
        return True

    def _emit_freeze_logs(self, company_id):
        events = (
            AuditEvent(
                company_id=company_id,
                user_id=None,
                action=AuditAction.UPDATE.value,
                table_name="companies",
                record_id=company_id,
                actor_role="system",
                target_type="company",
                severity=AuditSeverity.WARN.value,
                old_values={"is_active": True},
                new_values={"is_active": False},
                metadata={"action": "auto_freeze", "reason": "subscription_past_due"},
            ),
            SecurityEventRecord(
                company_id=company_id,
                user_id=None,
                event_type=SecurityEventType.COMPANY_FROZEN.value,
                severity=SecuritySeverity.HIGH.value,
                description="Company automatically frozen due to past-due subscription",
                metadata={"reason": "subscription_past_due", "auto_action": True},
            ),
            BillingEvent(
                company_id=company_id,
                event_type=BillingEventType.COMPANY_FROZEN.value,
                metadata={"reason": "subscription_past_due", "auto_action": True},
            ),
        )
        return self._emit_all(events)

    def _emit_unfreeze_logs(self, company_id):
        events = (
            AuditEvent(
                company_id=company_id,
                user_id=None,
                action=AuditAction.UPDATE.value,
                table_name="companies",
                record_id=company_id,
                actor_role="system",
                target_type="company",
                severity=AuditSeverity.INFO.value,
                old_values={"is_active": False},
                new_values={"is_active": True},
                metadata={"action": "auto_unfreeze", "reason": "subscription_restored"},
            ),
            BillingEvent(
                company_id=company_id,
                event_type=BillingEventType.COMPANY_UNFROZEN.value,
                metadata={"reason": "subscription_restored", "auto_action": True},
            ),
        )
        return self._emit_all(events)

    def _emit_all(self, events):
        failures = 0
        for event in events:
            if not self.sink.emit(event):
                failures += 1
        return failures
