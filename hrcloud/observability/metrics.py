"""
Prometheus counters for lifecycle jobs, the event sink and Celery tasks.
"""

from flask import Blueprint, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, generate_latest

lifecycle_transitions_total = Counter(
    "lifecycle_transitions_total",
    "Tenant lifecycle transitions applied by scheduled jobs",
    ["job", "transition"],
)

event_sink_events_total = Counter(
    "event_sink_events_total",
    "Audit, security and billing events by sink outcome",
    ["outcome"],
)

task_executions_total = Counter(
    "task_executions_total",
    "Total background task executions",
    ["task_name", "status"],
)

metrics_bp = Blueprint("metrics", __name__)


def record_transition(job, transition, count=1):
    if count:
        lifecycle_transitions_total.labels(job=job, transition=transition).inc(count)


def record_sink_event(outcome):
    event_sink_events_total.labels(outcome=outcome).inc()


def record_task(task_name, status):
    task_executions_total.labels(task_name=task_name, status=status).inc()


@metrics_bp.route("/metrics", methods=["GET"])
def metrics():
    return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)
