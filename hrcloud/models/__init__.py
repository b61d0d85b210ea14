from .company import Company, CompanyUser, Profile
from .logs import APPEND_ONLY_MODELS, AuditLog, BillingLog, SecurityEvent, TrialEmailLog
from .notification import Notification
from .subscription import CompanySubscription, Plan
from .trial_extension import TrialExtensionRequest

__all__ = [
    "APPEND_ONLY_MODELS",
    "AuditLog",
    "BillingLog",
    "Company",
    "CompanySubscription",
    "CompanyUser",
    "Notification",
    "Plan",
    "Profile",
    "SecurityEvent",
    "TrialEmailLog",
    "TrialExtensionRequest",
]
