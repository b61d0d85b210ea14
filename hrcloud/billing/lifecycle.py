"""
Subscription lifecycle rules.

Pure functions over a subscription snapshot and a clock reading. Nothing in
this module touches the database; callers decide what to do with a
decision.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from hrcloud.billing.states import (
    RESTORABLE_STATUSES,
    WRITE_BLOCKING_STATUSES,
    SubscriptionStatus,
)
from hrcloud.errors import MalformedSubscription
from hrcloud.utils.timeutils import to_naive_utc, whole_days_between

DEFAULT_GRACE_PERIOD_DAYS = 7


@dataclass(frozen=True)
class SubscriptionSnapshot:
    company_id: str
    status: str
    current_period_end: Optional[datetime]
    trial_ends_at: Optional[datetime]
    is_active: bool

    @classmethod
    def from_row(cls, subscription, is_active):
        return cls(
            company_id=subscription.company_id,
            status=subscription.status,
            current_period_end=subscription.current_period_end,
            trial_ends_at=subscription.trial_ends_at,
            is_active=bool(is_active),
        )


@dataclass(frozen=True)
class LifecycleDecision:
    should_freeze: bool
    should_unfreeze: bool
    days_past_due: int

    @property
    def label(self):
        if self.should_freeze:
            return "freeze"
        if self.should_unfreeze:
            return "unfreeze"
        return "none"


def days_past_due(snapshot: SubscriptionSnapshot, now: datetime) -> int:
    """
    Whole days the tenant is overdue.

    A lapsed billing period wins over an overdue trial; a trial end in the
    past only counts when the period itself is still current. Never negative.
    """
    now = to_naive_utc(now)
    status = snapshot.status
    period_end = to_naive_utc(snapshot.current_period_end)
    trial_end = to_naive_utc(snapshot.trial_ends_at)

    if period_end is None and status != SubscriptionStatus.TRIALING.value:
        raise MalformedSubscription(snapshot.company_id, "current_period_end is null")

    if status == SubscriptionStatus.PAST_DUE.value or (period_end is not None and period_end < now):
        return max(0, whole_days_between(period_end, now))

    if status == SubscriptionStatus.TRIALING.value and trial_end is not None and trial_end < now:
        return max(0, whole_days_between(trial_end, now))

    return 0


def evaluate(snapshot: SubscriptionSnapshot, now: datetime,
             grace_period_days: int = DEFAULT_GRACE_PERIOD_DAYS) -> LifecycleDecision:
    overdue = days_past_due(snapshot, now)
    should_freeze = overdue > grace_period_days
    should_unfreeze = (
        not should_freeze
        and not snapshot.is_active
        and snapshot.status in RESTORABLE_STATUSES
    )
    return LifecycleDecision(
        should_freeze=should_freeze,
        should_unfreeze=should_unfreeze,
        days_past_due=overdue,
    )


def trial_has_lapsed(status, trial_ends_at, now):
    if status != SubscriptionStatus.TRIALING.value or trial_ends_at is None:
        return False
    return to_naive_utc(trial_ends_at) < to_naive_utc(now)


def effective_status(status, trial_ends_at, now):
    """A trialing subscription whose trial end has passed reads as trial_expired."""
    if trial_has_lapsed(status, trial_ends_at, now):
        return SubscriptionStatus.TRIAL_EXPIRED.value
    return status


def can_write_action(is_active, status, trial_ends_at, now):
    """
    Server-side write predicate: the tenant is active and holds a subscription
    that is either active, or trialing with an open-ended or unexpired trial.
    """
    if not is_active or status is None:
        return False
    if status == SubscriptionStatus.ACTIVE.value:
        return True
    if status == SubscriptionStatus.TRIALING.value:
        return trial_ends_at is None or to_naive_utc(trial_ends_at) >= to_naive_utc(now)
    return False


def is_write_blocking(status):
    return status in WRITE_BLOCKING_STATUSES
