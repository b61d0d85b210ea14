"""
Read-only mirror of the tenant write gate.

Clients use this to disable editing affordances and pick a banner message.
It has no authority; the server-side predicate is
``hrcloud.billing.lifecycle.can_write_action``.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from hrcloud.billing.lifecycle import can_write_action, effective_status, is_write_blocking
from hrcloud.billing.states import SubscriptionStatus
from hrcloud.utils.timeutils import days_remaining, isoformat

FROZEN_MESSAGE = "Account frozen. Update billing to make changes."
TRIAL_EXPIRED_MESSAGE = "Trial expired. Upgrade to continue."
PAST_DUE_MESSAGE = "Payment past due. Update billing to make changes."
PAUSED_MESSAGE = "Subscription paused. Reactivate to make changes."
CANCELED_MESSAGE = "Subscription canceled. Subscribe to make changes."
GENERIC_MESSAGE = "You cannot make changes at this time."


@dataclass(frozen=True)
class TenantAccessState:
    company_id: str
    is_active: bool
    status: Optional[str]
    trial_ends_at: Optional[datetime]
    now: datetime

    @classmethod
    def from_records(cls, company, subscription, now):
        return cls(
            company_id=company.id,
            is_active=company.is_active,
            status=subscription.status if subscription is not None else None,
            trial_ends_at=subscription.trial_ends_at if subscription is not None else None,
            now=now,
        )

    @property
    def is_frozen(self):
        return not self.is_active

    @property
    def effective_status(self):
        if self.status is None:
            return None
        return effective_status(self.status, self.trial_ends_at, self.now)

    @property
    def is_trial_expired(self):
        return self.effective_status == SubscriptionStatus.TRIAL_EXPIRED.value

    @property
    def is_trialing(self):
        return self.effective_status == SubscriptionStatus.TRIALING.value

    @property
    def is_past_due(self):
        return self.status == SubscriptionStatus.PAST_DUE.value

    @property
    def trial_days_remaining(self):
        if not self.is_trialing or self.trial_ends_at is None:
            return 0
        return max(0, days_remaining(self.trial_ends_at, self.now))

    @property
    def can_write(self):
        return not self.is_frozen and not self.is_trial_expired and not is_write_blocking(self.status)

    @property
    def blocked_message(self):
        """Banner text for a blocked tenant, None when writes are allowed."""
        if self.can_write:
            return None
        if self.is_frozen:
            return FROZEN_MESSAGE
        if self.is_trial_expired:
            return TRIAL_EXPIRED_MESSAGE
        if self.is_past_due:
            return PAST_DUE_MESSAGE
        if self.effective_status == SubscriptionStatus.PAUSED.value:
            return PAUSED_MESSAGE
        if self.effective_status == SubscriptionStatus.CANCELED.value:
            return CANCELED_MESSAGE
        return GENERIC_MESSAGE

    def to_dict(self):
        return {
            "company_id": self.company_id,
            "is_frozen": self.is_frozen,
            "subscription_status": self.status,
            "effective_status": self.effective_status,
            "is_trialing": self.is_trialing,
            "is_trial_expired": self.is_trial_expired,
            "is_past_due": self.is_past_due,
            "trial_ends_at": isoformat(self.trial_ends_at),
            "trial_days_remaining": self.trial_days_remaining,
            "can_write": self.can_write,
            "blocked_message": self.blocked_message,
            "server_can_write": can_write_action(self.is_active, self.status, self.trial_ends_at, self.now),
        }
