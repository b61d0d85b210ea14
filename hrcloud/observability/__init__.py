from .metrics import metrics_bp, record_sink_event, record_task, record_transition

__all__ = ["metrics_bp", "record_sink_event", "record_task", "record_transition"]
