from .freeze import CompanyFreezeService
from .health_sweep import SubscriptionHealthSweep
from .lifecycle import LifecycleDecision, SubscriptionSnapshot, can_write_action, effective_status, evaluate
from .plan_assignment import PlanAssignmentService, plan_transition
from .trial_cron import TrialLifecycleCron
from .trial_extension import TrialExtensionService
from .write_gate import TenantAccessState

__all__ = [
    "CompanyFreezeService",
    "LifecycleDecision",
    "PlanAssignmentService",
    "SubscriptionHealthSweep",
    "SubscriptionSnapshot",
    "TenantAccessState",
    "TrialExtensionService",
    "TrialLifecycleCron",
    "can_write_action",
    "effective_status",
    "evaluate",
    "plan_transition",
]
