# hrcloud/workers/signals.py
import logging

from celery.signals import task_postrun, worker_process_shutdown

from hrcloud.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


def _bound_sink():
    flask_app = getattr(celery_app, "flask_app", None)
    if flask_app is None:
        return None, None
    return flask_app, flask_app.extensions.get("event_sink")


@task_postrun.connect
def flush_event_sink(sender=None, task_id=None, **kwargs):
    """Wait for the events a task emitted before the child can be recycled."""
    flask_app, sink = _bound_sink()
    if sink is None:
        return
    timeout = flask_app.config.get("EVENT_SINK_FLUSH_TIMEOUT", 30)
    if not sink.flush(timeout=timeout):
        logger.warning(f"Event sink still has {sink.pending} events after task {task_id}")


@worker_process_shutdown.connect
def drain_event_sink(**kwargs):
    flask_app, sink = _bound_sink()
    if sink is None:
        return
    if not sink.drain(timeout=flask_app.config.get("EVENT_SINK_FLUSH_TIMEOUT", 30)):
        logger.error(f"Worker exiting with {sink.pending} undelivered events")
