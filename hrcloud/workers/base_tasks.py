# hrcloud/workers/base_tasks.py
from celery.utils.log import get_task_logger
from flask import current_app

from hrcloud.audit.sink import get_event_sink
from hrcloud.errors import JobAlreadyRunning
from hrcloud.observability.metrics import record_task

logger = get_task_logger(__name__)


def run_lifecycle_job(task_name, build):
    """
    Run a lifecycle job inside a task and wait for its log events.

    Queued events that failed to write in the background during the run are added to
    the summary's ``errors``. A held job lock turns into a skipped run.
    """
    sink = get_event_sink()
    failures_before = sink.unreported_failures

    try:
        result = build().run()
    except JobAlreadyRunning as e:
        logger.info(f"Skipping run: {e}")
        record_task(task_name, "skipped")
        return {"success": False, "skipped": True, "reason": str(e)}
    except Exception:
        record_task(task_name, "failure")
        logger.exception(f"{task_name} failed")
        raise

    timeout = current_app.config.get("EVENT_SINK_FLUSH_TIMEOUT", 30)
    if not sink.flush(timeout=timeout):
        logger.warning(f"Event sink not flushed after {timeout}s, {sink.pending} events pending")
    result["errors"] += sink.unreported_failures - failures_before

    record_task(task_name, "success")
    return result
