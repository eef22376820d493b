"""Enumerated column values shared by models, validators and schemas."""
from enum import Enum
from typing import Tuple


class TenantStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    TERMINATED = "TERMINATED"


class LicenseType(str, Enum):
    CLOUD_FLEX = "CLOUD_FLEX"


class LicenseStatus(str, Enum):
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    SUSPENDED = "SUSPENDED"
    PENDING_PAYMENT = "PENDING_PAYMENT"


class ContractualStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    TERMINATED = "TERMINATED"


class LeaveType(str, Enum):
    PARENTAL = "PARENTAL"
    MEDICAL = "MEDICAL"
    TECHNICAL = "TECHNICAL"
    SABBATICAL = "SABBATICAL"
    OTHER = "OTHER"


class BillingStatus(str, Enum):
    """Computed billing status of one employee license."""
    BILLABLE = "BILLABLE"
    GRACE_PERIOD = "GRACE_PERIOD"
    NON_BILLABLE = "NON_BILLABLE"
    TERMINATED = "TERMINATED"


class BillingCycleStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    OVERDUE = "OVERDUE"


class PaymentStatus(str, Enum):
    """Status of a payment transaction or of a license adjustment payment."""
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class DetectionType(str, Enum):
    SUSPICIOUS_LEAVE_PATTERN = "SUSPICIOUS_LEAVE_PATTERN"
    MASS_DEACTIVATION = "MASS_DEACTIVATION"
    UNUSUAL_ACTIVITY = "UNUSUAL_ACTIVITY"
    PRE_RENEWAL_MANIPULATION = "PRE_RENEWAL_MANIPULATION"
    EXCESSIVE_TECHNICAL_LEAVE = "EXCESSIVE_TECHNICAL_LEAVE"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class ActivityStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPICIOUS = "SUSPICIOUS"


def values(enum_cls) -> Tuple[str, ...]:
    """Return the stored string values of an enum class, in declaration order."""
    return tuple(member.value for member in enum_cls)
