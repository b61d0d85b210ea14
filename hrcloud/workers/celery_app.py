# hrcloud/workers/celery_app.py
from celery import Celery, Task
from kombu import Queue

from hrcloud.workers.celerybeat import CELERY_BEAT_SCHEDULE


class ContextTask(Task):
    """Runs every task inside the application context of the bound Flask app."""

    abstract = True

    def __call__(self, *args, **kwargs):
        flask_app = getattr(self.app, "flask_app", None)
        if flask_app is None:
            return super().__call__(*args, **kwargs)
        with flask_app.app_context():
            return super().__call__(*args, **kwargs)


celery_app = Celery(
    "hrcloud",
    task_cls=ContextTask,
    include=[
        "hrcloud.workers.subscription_health",
        "hrcloud.workers.trial_cron",
    ],
)


def init_celery(app):
    """Bind the Celery app to a Flask app and load its settings."""
    celery_app.conf.update(
        broker_url=app.config["CELERY_BROKER_URL"],
        result_backend=app.config["CELERY_RESULT_BACKEND"],

        # Serialization
        task_serializer="json",
        result_serializer="json",
        accept_content=["json"],

        # Timezone
        timezone="UTC",
        enable_utc=True,

        # Reliability settings
        task_acks_late=True,
        worker_prefetch_multiplier=1,
        task_reject_on_worker_lost=True,

        # Routing
        task_default_queue="default",
        task_queues=(
            Queue("default"),
            Queue("critical"),
        ),

        # Time limits
        task_time_limit=app.config["SWEEP_LOCK_TTL"],
        task_soft_time_limit=max(app.config["SWEEP_LOCK_TTL"] - 60, 30),

        beat_schedule=CELERY_BEAT_SCHEDULE,
    )

    celery_app.flask_app = app
    app.extensions["celery"] = celery_app
    return celery_app
