from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from hrcloud.models import AuditLog, BillingLog, SecurityEvent


@dataclass(frozen=True)
class AuditEvent:
    company_id: Optional[str]
    user_id: Optional[str]
    action: str
    table_name: str
    record_id: Optional[str] = None
    actor_role: Optional[str] = None
    target_type: Optional[str] = None
    severity: str = "info"
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    kind = "audit"

    def to_model(self):
        return AuditLog(
            company_id=self.company_id,
            user_id=self.user_id,
            action=self.action,
            table_name=self.table_name,
            record_id=self.record_id,
            actor_role=self.actor_role,
            target_type=self.target_type,
            severity=self.severity,
            old_values=self.old_values,
            new_values=self.new_values,
            meta=dict(self.metadata) or None,
        )


@dataclass(frozen=True)
class SecurityEventRecord:
    company_id: Optional[str]
    user_id: Optional[str]
    event_type: str
    severity: str
    description: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    kind = "security"

    def to_model(self):
        return SecurityEvent(
            company_id=self.company_id,
            user_id=self.user_id,
            event_type=self.event_type,
            severity=self.severity,
            description=self.description,
            meta=dict(self.metadata) or None,
        )


@dataclass(frozen=True)
class BillingEvent:
    company_id: str
    event_type: str
    triggered_by: Optional[str] = None
    subscription_id: Optional[str] = None
    plan_id: Optional[str] = None
    previous_plan_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    kind = "billing"

    def to_model(self):
        return BillingLog(
            company_id=self.company_id,
            event_type=self.event_type,
            triggered_by=self.triggered_by,
            subscription_id=self.subscription_id,
            plan_id=self.plan_id,
            previous_plan_id=self.previous_plan_id,
            meta=dict(self.metadata),
        )
