from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .common import Payload, Record


class GlobalLicenseBase(Payload):
    tenant: Optional[int] = None
    license_type: Optional[str] = None
    billing_cycle_months: Optional[int] = None
    base_price_usd: Optional[Decimal] = None
    minimum_seats: Optional[int] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    next_renewal_date: Optional[datetime] = None
    total_seats_purchased: Optional[int] = None
    license_status: Optional[str] = None


class GlobalLicenseCreate(GlobalLicenseBase):
    pass


class GlobalLicenseUpdate(GlobalLicenseBase):
    pass


class GlobalLicense(Record):
    tenant: int
    license_type: str
    billing_cycle_months: int
    base_price_usd: float
    minimum_seats: int
    current_period_start: datetime
    current_period_end: datetime
    next_renewal_date: datetime
    total_seats_purchased: Optional[int] = None
    license_status: str


class GlobalLicenseRenewal(Payload):
    months: Optional[int] = None


class EmployeeLicenseBase(Payload):
    global_license: Optional[int] = None
    employee: Optional[str] = None
    employee_code: Optional[str] = None
    activation_date: Optional[datetime] = None
    deactivation_date: Optional[datetime] = None
    last_activity_date: Optional[datetime] = None
    contractual_status: Optional[str] = None
    declared_long_leave: Optional[bool] = None
    long_leave_declared_by: Optional[str] = None
    long_leave_declared_at: Optional[datetime] = None
    long_leave_type: Optional[str] = None
    long_leave_reason: Optional[str] = None
    computed_billing_status: Optional[str] = None
    grace_period_start: Optional[datetime] = None
    grace_period_end: Optional[datetime] = None


class EmployeeLicenseCreate(EmployeeLicenseBase):
    pass


class EmployeeLicenseUpdate(EmployeeLicenseBase):
    pass


class EmployeeLicense(Record):
    global_license: int
    employee: str
    employee_code: str
    activation_date: datetime
    deactivation_date: Optional[datetime] = None
    last_activity_date: Optional[datetime] = None
    contractual_status: str
    declared_long_leave: bool
    long_leave_declared_by: Optional[str] = None
    long_leave_declared_at: Optional[datetime] = None
    long_leave_type: Optional[str] = None
    long_leave_reason: Optional[str] = None
    computed_billing_status: str
    grace_period_start: Optional[datetime] = None
    grace_period_end: Optional[datetime] = None


class LongLeaveDeclaration(Payload):
    declared_by: Optional[str] = None
    leave_type: Optional[str] = None
    reason: Optional[str] = None


class LicenseAdjustmentBase(Payload):
    global_license: Optional[int] = None
    adjustment_date: Optional[datetime] = None
    employees_added_count: Optional[int] = None
    months_remaining: Optional[Decimal] = None
    price_per_employee_usd: Optional[Decimal] = None
    subtotal_usd: Optional[Decimal] = None
    tax_amount_usd: Optional[Decimal] = None
    total_amount_usd: Optional[Decimal] = None
    billing_currency_code: Optional[str] = None
    exchange_rate_used: Optional[Decimal] = None
    subtotal_local: Optional[Decimal] = None
    tax_amount_local: Optional[Decimal] = None
    total_amount_local: Optional[Decimal] = None
    tax_rules_applied: Optional[List[Dict[str, Any]]] = None
    payment_status: Optional[str] = None
    payment_due_immediately: Optional[bool] = None
    invoice_sent_at: Optional[datetime] = None
    payment_completed_at: Optional[datetime] = None


class LicenseAdjustmentCreate(LicenseAdjustmentBase):
    pass


class LicenseAdjustmentUpdate(LicenseAdjustmentBase):
    pass


class LicenseAdjustment(Record):
    global_license: int
    adjustment_date: datetime
    employees_added_count: int
    months_remaining: float
    price_per_employee_usd: float
    subtotal_usd: float
    tax_amount_usd: float
    total_amount_usd: float
    billing_currency_code: str
    exchange_rate_used: float
    subtotal_local: float
    tax_amount_local: float
    total_amount_local: float
    tax_rules_applied: Optional[List[Dict[str, Any]]] = None
    payment_status: str
    payment_due_immediately: bool
    invoice_sent_at: Optional[datetime] = None
    payment_completed_at: Optional[datetime] = None
