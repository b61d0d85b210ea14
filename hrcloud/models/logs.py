import uuid

from sqlalchemy import event

from hrcloud.errors import ImmutableRecordError
from hrcloud.extensions import db
from hrcloud.utils.timeutils import isoformat, utcnow


def _uuid():
    return str(uuid.uuid4())


class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    company_id = db.Column(db.String(36), nullable=True)
    user_id = db.Column(db.String(36), nullable=True)
    action = db.Column(db.String(50), nullable=False)
    table_name = db.Column(db.String(100), nullable=False)
    record_id = db.Column(db.String(36), nullable=True)
    actor_role = db.Column(db.String(30), nullable=True)
    target_type = db.Column(db.String(50), nullable=True)
    severity = db.Column(db.String(10), nullable=False, default="info")
    old_values = db.Column(db.JSON, nullable=True)
    new_values = db.Column(db.JSON, nullable=True)
    meta = db.Column("metadata", db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        db.Index("idx_audit_company_created", "company_id", "created_at"),
        db.Index("idx_audit_user_action", "user_id", "action"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "company_id": self.company_id,
            "user_id": self.user_id,
            "action": self.action,
            "table_name": self.table_name,
            "record_id": self.record_id,
            "severity": self.severity,
            "old_values": self.old_values,
            "new_values": self.new_values,
            "metadata": self.meta or {},
            "created_at": isoformat(self.created_at),
        }


class SecurityEvent(db.Model):
    __tablename__ = "security_events"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    company_id = db.Column(db.String(36), nullable=True)
    user_id = db.Column(db.String(36), nullable=True)
    event_type = db.Column(db.String(50), nullable=False)
    severity = db.Column(db.String(10), nullable=False, default="low")
    description = db.Column(db.Text, nullable=True)
    meta = db.Column("metadata", db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        db.Index("idx_security_company_created", "company_id", "created_at"),
        db.Index("idx_security_event_type", "event_type"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "company_id": self.company_id,
            "user_id": self.user_id,
            "event_type": self.event_type,
            "severity": self.severity,
            "description": self.description,
            "metadata": self.meta or {},
            "created_at": isoformat(self.created_at),
        }


class BillingLog(db.Model):
    __tablename__ = "billing_logs"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    company_id = db.Column(db.String(36), nullable=False)
    event_type = db.Column(db.String(50), nullable=False)
    subscription_id = db.Column(db.String(36), nullable=True)
    plan_id = db.Column(db.String(36), nullable=True)
    previous_plan_id = db.Column(db.String(36), nullable=True)
    triggered_by = db.Column(db.String(36), nullable=True)
    meta = db.Column("metadata", db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        db.Index("idx_billing_company_created", "company_id", "created_at"),
        db.Index("idx_billing_event_type", "event_type"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "company_id": self.company_id,
            "event_type": self.event_type,
            "subscription_id": self.subscription_id,
            "plan_id": self.plan_id,
            "previous_plan_id": self.previous_plan_id,
            "triggered_by": self.triggered_by,
            "metadata": self.meta or {},
            "created_at": isoformat(self.created_at),
        }


class TrialEmailLog(db.Model):
    """One row per (company, email type, recipient, day) actually dispatched."""

    __tablename__ = "trial_email_logs"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    company_id = db.Column(db.String(36), nullable=False)
    email_type = db.Column(db.String(50), nullable=False)
    recipient_email = db.Column(db.String(255), nullable=False)
    days_remaining = db.Column(db.Integer, nullable=True)
    sent_date = db.Column(db.Date, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint(
            "company_id", "email_type", "recipient_email", "sent_date",
            name="uq_trial_email_logs_daily",
        ),
        db.Index("idx_trial_email_company_type_date", "company_id", "email_type", "sent_date"),
    )


APPEND_ONLY_MODELS = (AuditLog, SecurityEvent, BillingLog, TrialEmailLog)


def _reject_mutation(mapper, connection, target):
    raise ImmutableRecordError(f"{target.__tablename__} rows are append-only")


for _model in APPEND_ONLY_MODELS:
    event.listen(_model, "before_update", _reject_mutation)
    event.listen(_model, "before_delete", _reject_mutation)
