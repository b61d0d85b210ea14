from .events import AuditEvent, BillingEvent, SecurityEventRecord
from .sink import DirectEventSink, EventSink, QueuedEventSink, SinkStats, build_event_sink, get_event_sink
from .writer import DatabaseEventWriter

__all__ = [
    "AuditEvent",
    "BillingEvent",
    "DatabaseEventWriter",
    "DirectEventSink",
    "EventSink",
    "QueuedEventSink",
    "SecurityEventRecord",
    "SinkStats",
    "build_event_sink",
    "get_event_sink",
]
