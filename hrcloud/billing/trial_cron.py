"""
Daily trial lifecycle cron.

1. Lapsed trials move to ``trial_expired``; long-lapsed ones also freeze the company.
2. Owners and admins are warned 7, 3 and 1 days before their trial ends.
3. Tenants whose trial expired in the last 24 hours get a one-off notice.

Warnings and notices are de-duplicated against ``trial_email_logs`` so the
cron can run several times a day without re-sending.
"""

import logging
from datetime import timedelta

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from hrcloud.audit.events import AuditEvent, BillingEvent, SecurityEventRecord
from hrcloud.billing.states import (
    PLAN_MANAGER_ROLES,
    AuditAction,
    AuditSeverity,
    BillingEventType,
    SecurityEventType,
    SecuritySeverity,
    SubscriptionStatus,
    TrialEmailType,
)
from hrcloud.errors import NotificationError
from hrcloud.extensions import db
from hrcloud.models import Company, CompanySubscription, CompanyUser, Profile, TrialEmailLog
from hrcloud.notifications.email_templates import EmailTemplates
from hrcloud.observability.metrics import record_transition
from hrcloud.utils.redis_lock import DEFAULT_TTL, job_lock
from hrcloud.utils.timeutils import days_remaining, isoformat, utcnow, whole_days_between

logger = logging.getLogger(__name__)

JOB_NAME = "cron-subscription-health"
BILLING_LINK = "/app/settings/billing"


class TrialLifecycleCron:

    def __init__(self, sink, dispatcher, freeze_after_days=14, warning_days=(7, 3, 1),
                 frontend_url="", lock_ttl=DEFAULT_TTL):
        self.sink = sink
        self.dispatcher = dispatcher
        self.freeze_after_days = freeze_after_days
        self.warning_days = tuple(warning_days)
        self.frontend_url = frontend_url.rstrip("/")
        self.lock_ttl = lock_ttl

    def run(self, now=None):
        with job_lock(JOB_NAME, ttl=self.lock_ttl):
            return self._run(now or utcnow())

    def _run(self, now):
        results = {
            "trialsExpired": 0,
            "trialWarningsSent": 0,
            "trialExpiredNoticesSent": 0,
            "companiesFrozen": 0,
            "errors": 0,
        }

        self._expire_trials(now, results)
        self._send_warnings(now, results)
        self._send_expired_notices(now, results)

        record_transition(JOB_NAME, "trial_expired", results["trialsExpired"])
        record_transition(JOB_NAME, "freeze", results["companiesFrozen"])

        logger.info("Subscription health cron completed", extra=results)
        return {"success": True, **results}

    # Step 1

    def _expire_trials(self, now, results):
        rows = (
            db.session.query(CompanySubscription, Company)
            .join(Company, Company.id == CompanySubscription.company_id)
            .filter(
                CompanySubscription.status == SubscriptionStatus.TRIALING.value,
                CompanySubscription.trial_ends_at.isnot(None),
                CompanySubscription.trial_ends_at < now,
            )
            .all()
        )

        for subscription, company in rows:
            company_id = company.id
            trial_ended_at = subscription.trial_ends_at
            days_expired = whole_days_between(trial_ended_at, now)
            freeze = (
                self.freeze_after_days > 0
                and days_expired >= self.freeze_after_days
                and company.is_active
            )

            try:
                subscription.status = SubscriptionStatus.TRIAL_EXPIRED.value
                subscription.trial_ends_at = None
                subscription.updated_at = now
                if freeze:
                    company.is_active = False
                    company.updated_at = now
                db.session.commit()
            except SQLAlchemyError as e:
                db.session.rollback()
                logger.error(f"Error expiring trial for company {company_id}: {e}")
                results["errors"] += 1
                continue

            logger.info(f"Processed {company.name}: {'frozen' if freeze else 'trial_expired'}")
            if freeze:
                results["companiesFrozen"] += 1
            else:
                results["trialsExpired"] += 1

            events = [BillingEvent(
                company_id=company_id,
                event_type=BillingEventType.TRIAL_EXPIRED.value,
                subscription_id=subscription.id,
                metadata={
                    "trial_ended_at": isoformat(trial_ended_at),
                    "days_expired": days_expired,
                    "auto_processed": True,
                },
            )]
            if freeze:
                events.extend(self._freeze_events(company_id, days_expired))
            for event in events:
                if not self.sink.emit(event):
                    results["errors"] += 1

    def _freeze_events(self, company_id, days_expired):
        return [
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
                metadata={"action": "auto_freeze", "reason": "trial_expired"},
            ),
            SecurityEventRecord(
                company_id=company_id,
                user_id=None,
                event_type=SecurityEventType.COMPANY_FROZEN.value,
                severity=SecuritySeverity.HIGH.value,
                description=f"Company automatically frozen {days_expired} days after trial expiry",
                metadata={"reason": "trial_expired", "auto_action": True},
            ),
            BillingEvent(
                company_id=company_id,
                event_type=BillingEventType.COMPANY_FROZEN.value,
                metadata={"reason": "trial_expired", "auto_action": True},
            ),
        ]

    # Step 2

    def _send_warnings(self, now, results):
        if not self.warning_days:
            return

        horizon = now + timedelta(days=max(self.warning_days))
        rows = (
            db.session.query(CompanySubscription, Company)
            .join(Company, Company.id == CompanySubscription.company_id)
            .filter(
                Company.is_active.is_(True),
                CompanySubscription.status == SubscriptionStatus.TRIALING.value,
                CompanySubscription.trial_ends_at.isnot(None),
                CompanySubscription.trial_ends_at > now,
                CompanySubscription.trial_ends_at <= horizon,
            )
            .all()
        )

        today = now.date()
        for subscription, company in rows:
            remaining = days_remaining(subscription.trial_ends_at, now)
            if remaining not in self.warning_days:
                continue

            email_type = TrialEmailType.for_days_remaining(remaining)
            if self._already_sent(company.id, email_type, since=today):
                logger.info(f"Warning already sent today for {company.name}")
                continue

            urgency = "⚠️ URGENT: " if remaining == 1 else "⏰ " if remaining == 3 else "📅 "
            plural = "" if remaining == 1 else "s"
            if remaining == 1:
                message = f"Your {company.name} trial ends today! Upgrade now to avoid losing access."
            else:
                message = (
                    f"Your {company.name} trial expires on "
                    f"{subscription.trial_ends_at.strftime('%B %d, %Y')}. "
                    f"Upgrade to continue using all features."
                )

            sent, failed = self._notify_managers(
                company,
                email_type=email_type,
                notification_type="trial_expiring",
                title=f"{urgency}Your trial expires in {remaining} day{plural}",
                message=message,
                email=EmailTemplates.trial_expiring(
                    company.name, remaining, subscription.trial_ends_at, self._billing_url()
                ),
                days=remaining,
                today=today,
            )
            results["trialWarningsSent"] += sent
            results["errors"] += failed

    # Step 3

    def _send_expired_notices(self, now, results):
        rows = (
            db.session.query(CompanySubscription, Company)
            .join(Company, Company.id == CompanySubscription.company_id)
            .filter(
                CompanySubscription.status == SubscriptionStatus.TRIAL_EXPIRED.value,
                CompanySubscription.updated_at >= now - timedelta(hours=24),
            )
            .all()
        )

        today = now.date()
        window_start = (now - timedelta(days=1)).date()
        email_type = TrialEmailType.EXPIRED.value
        for subscription, company in rows:
            if self._already_sent(company.id, email_type, since=window_start):
                continue

            sent, failed = self._notify_managers(
                company,
                email_type=email_type,
                notification_type="trial_expired",
                title="🚫 Trial Expired",
                message=f"Your {company.name} trial has expired. Upgrade to restore full access.",
                email=EmailTemplates.trial_expired(company.name, self._billing_url()),
                days=0,
                today=today,
            )
            results["trialExpiredNoticesSent"] += sent
            results["errors"] += failed

    # Helpers

    def _billing_url(self):
        return f"{self.frontend_url}{BILLING_LINK}"

    def _already_sent(self, company_id, email_type, since):
        return TrialEmailLog.query.filter(
            TrialEmailLog.company_id == company_id,
            TrialEmailLog.email_type == email_type,
            TrialEmailLog.sent_date >= since,
        ).first() is not None

    def _recipients(self, company_id):
        return (
            db.session.query(CompanyUser.user_id, Profile.email)
            .join(Profile, Profile.id == CompanyUser.user_id)
            .filter(
                CompanyUser.company_id == company_id,
                CompanyUser.is_active.is_(True),
                CompanyUser.role.in_(sorted(PLAN_MANAGER_ROLES)),
            )
            .all()
        )

    def _notify_managers(self, company, email_type, notification_type, title, message, email,
                         days, today):
        sent = 0
        failed = 0
        for user_id, address in self._recipients(company.id):
            try:
                self.dispatcher.notify(
                    user_id,
                    notification_type,
                    title,
                    message,
                    link=BILLING_LINK,
                    company_id=company.id,
                    email=email,
                )
            except NotificationError as e:
                logger.error(f"Failed to send {email_type} notification to {user_id}: {e}")
                failed += 1
                continue

            sent += 1
            self._record_sent(company.id, email_type, address, days, today)
        return sent, failed

    def _record_sent(self, company_id, email_type, recipient_email, days, today):
        try:
            db.session.add(TrialEmailLog(
                company_id=company_id,
                email_type=email_type,
                recipient_email=recipient_email,
                days_remaining=days,
                sent_date=today,
            ))
            db.session.commit()
        except IntegrityError:
            # Another run already recorded this delivery today
            db.session.rollback()
            logger.info(f"{email_type} for {company_id} already recorded for {recipient_email}")
