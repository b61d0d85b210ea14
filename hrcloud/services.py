"""Builds lifecycle services from the current app's configuration."""

from flask import current_app

from hrcloud.audit.sink import get_event_sink
from hrcloud.billing import (
    CompanyFreezeService,
    PlanAssignmentService,
    SubscriptionHealthSweep,
    TrialExtensionService,
    TrialLifecycleCron,
)
from hrcloud.notifications import NotificationDispatcher


def plan_assignment_service():
    return PlanAssignmentService(get_event_sink())


def freeze_service():
    return CompanyFreezeService(get_event_sink())


def health_sweep():
    config = current_app.config
    return SubscriptionHealthSweep(
        get_event_sink(),
        grace_period_days=config["GRACE_PERIOD_DAYS"],
        lock_ttl=config["SWEEP_LOCK_TTL"],
    )


def trial_cron():
    config = current_app.config
    return TrialLifecycleCron(
        get_event_sink(),
        NotificationDispatcher(),
        freeze_after_days=config["TRIAL_FREEZE_AFTER_DAYS"],
        warning_days=config["TRIAL_WARNING_DAYS"],
        frontend_url=config["FRONTEND_URL"],
        lock_ttl=config["SWEEP_LOCK_TTL"],
    )


def trial_extension_service():
    config = current_app.config
    return TrialExtensionService(
        get_event_sink(),
        dispatcher=NotificationDispatcher(),
        allowed=config["TRIAL_EXTENSIONS_ALLOWED"],
        max_extensions=config["TRIAL_MAX_EXTENSIONS"],
        max_days=config["TRIAL_EXTENSION_MAX_DAYS"],
    )
