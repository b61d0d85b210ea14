import pytest
from unittest.mock import Mock, patch

from sqlalchemy.exc import OperationalError

from hrcloud.audit import AuditEvent, BillingEvent, DirectEventSink, QueuedEventSink, SecurityEventRecord
from hrcloud.audit.sink import build_event_sink
from hrcloud.audit.writer import DatabaseEventWriter
from hrcloud.errors import ImmutableRecordError
from hrcloud.extensions import db
from hrcloud.models import AuditLog, BillingLog, SecurityEvent


def billing_event(company_id="company-1"):
    return BillingEvent(company_id=company_id, event_type="company_frozen", metadata={"reason": "test"})


def test_direct_sink_writes_each_kind(app):
    """Test the direct sink persists audit, security and billing events"""
    sink = DirectEventSink()

    assert sink.emit(AuditEvent(company_id="c", user_id=None, action="update", table_name="companies")) is True
    assert sink.emit(SecurityEventRecord(
        company_id="c", user_id=None, event_type="company_frozen", severity="high", description="Company frozen"
    )) is True
    assert sink.emit(billing_event("c")) is True

    assert AuditLog.query.count() == 1
    assert SecurityEvent.query.count() == 1
    assert BillingLog.query.one().meta == {"reason": "test"}
    assert sink.stats.to_dict() == {"emitted": 3, "written": 3, "failed": 0, "dropped": 0}


def test_direct_sink_swallows_write_failures(app):
    """Test a failing writer is counted and reported, never raised"""
    writer = Mock()
    writer.write.side_effect = OperationalError("INSERT", {}, Exception("connection lost"))
    sink = DirectEventSink(writer=writer)

    assert sink.emit(billing_event()) is False
    assert sink.stats.failed == 1
    assert sink.stats.written == 0


def test_writer_rolls_back_on_failure(app):
    """Test the database writer leaves the session usable after an error"""
    session = Mock()
    session.commit.side_effect = OperationalError("INSERT", {}, Exception("boom"))

    with pytest.raises(OperationalError):
        DatabaseEventWriter(session=session).write(billing_event())

    session.rollback.assert_called_once()


def test_queued_sink_writes_in_background(app):
    """Test queued events are written by the worker thread"""
    writer = Mock()
    sink = QueuedEventSink(app=app, writer=writer, maxsize=10)

    for i in range(5):
        assert sink.emit(billing_event(f"company-{i}")) is True

    assert sink.flush(timeout=5) is True
    assert writer.write.call_count == 5
    assert sink.stats.written == 5
    assert sink.pending == 0
    sink.drain(timeout=5)


def test_queued_sink_drops_when_full():
    """Test emit reports a drop instead of blocking on a full queue"""
    writer = Mock()
    sink = QueuedEventSink(writer=writer, maxsize=1)

    with patch.object(QueuedEventSink, "_ensure_worker"):
        assert sink.emit(billing_event()) is True
        assert sink.emit(billing_event()) is False

    assert sink.stats.dropped == 1
    assert sink.stats.emitted == 1
    writer.write.assert_not_called()


def test_queued_sink_rejects_after_drain(app):
    """Test a drained sink drops further events"""
    writer = Mock()
    sink = QueuedEventSink(app=app, writer=writer)
    sink.emit(billing_event())

    assert sink.drain(timeout=5) is True
    assert sink.emit(billing_event()) is False
    assert writer.write.call_count == 1
    assert sink.stats.dropped == 1


def test_queued_sink_counts_background_failures(app):
    """Test failures in the worker are tallied without killing it"""
    writer = Mock()
    writer.write.side_effect = [RuntimeError("disk full"), None]
    sink = QueuedEventSink(app=app, writer=writer)

    sink.emit(billing_event())
    sink.emit(billing_event())
    sink.flush(timeout=5)

    assert sink.stats.failed == 1
    assert sink.stats.written == 1
    sink.drain(timeout=5)


def test_sink_mode_follows_config(app):
    """Test the configured mode picks the sink implementation"""
    assert isinstance(app.extensions["event_sink"], DirectEventSink)

    app.config["EVENT_SINK_MODE"] = "queued"
    assert isinstance(build_event_sink(app), QueuedEventSink)


def test_log_tables_are_append_only(app):
    """Test persisted log rows cannot be updated or deleted"""
    DirectEventSink().emit(billing_event())
    row = BillingLog.query.one()

    row.event_type = "company_unfrozen"
    with pytest.raises(ImmutableRecordError):
        db.session.flush()
    db.session.rollback()

    db.session.delete(BillingLog.query.one())
    with pytest.raises(ImmutableRecordError):
        db.session.flush()
    db.session.rollback()

    assert BillingLog.query.one().event_type == "company_frozen"
