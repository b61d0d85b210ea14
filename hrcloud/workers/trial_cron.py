from celery import shared_task
from celery.utils.log import get_task_logger

from hrcloud import services
from hrcloud.workers.base_tasks import run_lifecycle_job

logger = get_task_logger(__name__)

TASK_NAME = "hrcloud.workers.trial_cron.cron_subscription_health"


@shared_task(name=TASK_NAME)
def cron_subscription_health():
    result = run_lifecycle_job(TASK_NAME, services.trial_cron)
    if result.get("skipped"):
        return result

    logger.info(
        f"Trial cron expired {result['trialsExpired']}, froze {result['companiesFrozen']}, "
        f"sent {result['trialWarningsSent']} warnings, errors {result['errors']}"
    )
    return result
