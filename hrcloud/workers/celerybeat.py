from celery.schedules import crontab

CELERY_BEAT_SCHEDULE = {
    "check-subscription-health-hourly": {
        "task": "hrcloud.workers.subscription_health.check_subscription_health",
        "schedule": crontab(minute=0),
    },
    "cron-subscription-health-daily": {
        "task": "hrcloud.workers.trial_cron.cron_subscription_health",
        "schedule": crontab(minute=0, hour=6),
    },
}
