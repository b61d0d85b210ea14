from enum import Enum


class SubscriptionStatus(str, Enum):
    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    PAUSED = "paused"
    CANCELED = "canceled"
    TRIAL_EXPIRED = "trial_expired"


# Statuses under which a frozen tenant is eligible for automatic restoration
RESTORABLE_STATUSES = frozenset({SubscriptionStatus.ACTIVE.value, SubscriptionStatus.TRIALING.value})

# Statuses that block writes regardless of the freeze flag
WRITE_BLOCKING_STATUSES = frozenset({
    SubscriptionStatus.PAST_DUE.value,
    SubscriptionStatus.PAUSED.value,
    SubscriptionStatus.CANCELED.value,
    SubscriptionStatus.TRIAL_EXPIRED.value,
})


class BillingInterval(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @property
    def months(self):
        return 12 if self is BillingInterval.YEARLY else 1


class CompanyRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    HR_MANAGER = "hr_manager"
    MANAGER = "manager"
    EMPLOYEE = "employee"


PLAN_MANAGER_ROLES = frozenset({CompanyRole.OWNER.value, CompanyRole.ADMIN.value})


class FreezeAction(str, Enum):
    FREEZE = "freeze"
    UNFREEZE = "unfreeze"


class AuditAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"


class AuditSeverity(str, Enum):
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class SecurityEventType(str, Enum):
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILURE = "login_failure"
    PERMISSION_DENIED = "permission_denied"
    SUSPICIOUS_ACTIVITY = "suspicious_activity"
    COMPANY_FROZEN = "company_frozen"
    COMPANY_UNFROZEN = "company_unfrozen"


class SecuritySeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class BillingEventType(str, Enum):
    SUBSCRIPTION_CREATED = "subscription_created"
    SUBSCRIPTION_UPGRADED = "subscription_upgraded"
    SUBSCRIPTION_DOWNGRADED = "subscription_downgraded"
    COMPANY_FROZEN = "company_frozen"
    COMPANY_UNFROZEN = "company_unfrozen"
    TRIAL_EXPIRED = "trial_expired"
    TRIAL_EXTENSION_APPROVED = "trial_extension_approved"
    TRIAL_EXTENSION_REJECTED = "trial_extension_rejected"


class ExtensionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class TrialEmailType(str, Enum):
    EXPIRING_7_DAYS = "trial_expiring_7_days"
    EXPIRING_3_DAYS = "trial_expiring_3_days"
    EXPIRING_1_DAY = "trial_expiring_1_day"
    EXPIRED = "trial_expired"

    @classmethod
    def for_days_remaining(cls, days):
        return f"trial_expiring_{days}_day{'' if days == 1 else 's'}"
