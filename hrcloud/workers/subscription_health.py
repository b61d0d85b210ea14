from celery import shared_task
from celery.utils.log import get_task_logger

from hrcloud import services
from hrcloud.workers.base_tasks import run_lifecycle_job

logger = get_task_logger(__name__)

TASK_NAME = "hrcloud.workers.subscription_health.check_subscription_health"


@shared_task(name=TASK_NAME)
def check_subscription_health():
    result = run_lifecycle_job(TASK_NAME, services.health_sweep)
    if result.get("skipped"):
        return result

    logger.info(
        f"Health sweep checked {result['checked']}, froze {result['frozen']}, "
        f"unfroze {result['unfrozen']}, errors {result['errors']}"
    )
    return result
