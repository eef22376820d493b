from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from .base import Base, GuidMixin, TABLE_AP, check_in, now_utc
from ..enums import (
    BillingStatus,
    ContractualStatus,
    LeaveType,
    LicenseStatus,
    LicenseType,
    PaymentStatus,
    values,
)


class GlobalLicense(GuidMixin, Base):
    __tablename__ = f'{TABLE_AP}_global_license'
    tenant = Column(Integer, ForeignKey(f'{TABLE_AP}_tenant.id'), nullable=False)
    license_type = Column(String(20), nullable=False, default=LicenseType.CLOUD_FLEX.value)
    billing_cycle_months = Column(Integer, nullable=False, default=1)
    base_price_usd = Column(Numeric(10, 2), nullable=False, default=3.00)
    minimum_seats = Column(Integer, nullable=False, default=5)
    current_period_start = Column(DateTime(timezone=True), nullable=False)
    current_period_end = Column(DateTime(timezone=True), nullable=False)
    next_renewal_date = Column(DateTime(timezone=True), nullable=False)
    total_seats_purchased = Column(Integer, nullable=True)
    license_status = Column(String(20), nullable=False, default=LicenseStatus.ACTIVE.value)

    employee_licenses = relationship("EmployeeLicense", back_populates="license")

    __table_args__ = (
        Index('idx_xa_global_license_tenant', 'tenant'),
        Index('idx_xa_global_license_status', 'license_status'),
        Index('idx_xa_global_license_next_renewal_date', 'next_renewal_date'),
        CheckConstraint(check_in('license_type', values(LicenseType)), name='ck_xa_global_license_type'),
        CheckConstraint(check_in('license_status', values(LicenseStatus)), name='ck_xa_global_license_status'),
        CheckConstraint('billing_cycle_months in (1,3,6,12)', name='ck_xa_global_license_cycle_months'),
    )


class EmployeeLicense(GuidMixin, Base):
    __tablename__ = f'{TABLE_AP}_employee_license'
    global_license = Column(Integer, ForeignKey(f'{TABLE_AP}_global_license.id'), nullable=False)
    employee = Column(String(128), nullable=False)
    employee_code = Column(String(50), nullable=False)
    activation_date = Column(DateTime(timezone=True), nullable=False, default=now_utc)
    deactivation_date = Column(DateTime(timezone=True), nullable=True)
    last_activity_date = Column(DateTime(timezone=True), nullable=True)
    contractual_status = Column(String(20), nullable=False, default=ContractualStatus.ACTIVE.value)
    declared_long_leave = Column(Boolean, nullable=False, default=False)
    long_leave_declared_by = Column(String(255), nullable=True)
    long_leave_declared_at = Column(DateTime(timezone=True), nullable=True)
    long_leave_type = Column(String(20), nullable=True)
    long_leave_reason = Column(String(500), nullable=True)
    computed_billing_status = Column(String(20), nullable=False, default=BillingStatus.BILLABLE.value)
    grace_period_start = Column(DateTime(timezone=True), nullable=True)
    grace_period_end = Column(DateTime(timezone=True), nullable=True)

    license = relationship("GlobalLicense", back_populates="employee_licenses")

    __table_args__ = (
        Index('idx_xa_employee_license_global_license', 'global_license'),
        Index('idx_xa_employee_license_employee', 'employee'),
        Index('idx_xa_employee_license_billing_status', 'computed_billing_status'),
        CheckConstraint(check_in('contractual_status', values(ContractualStatus)), name='ck_xa_employee_license_contractual_status'),
        CheckConstraint(check_in('computed_billing_status', values(BillingStatus)), name='ck_xa_employee_license_billing_status'),
        CheckConstraint(
            'long_leave_type is null or ' + check_in('long_leave_type', values(LeaveType)),
            name='ck_xa_employee_license_leave_type',
        ),
    )


class LicenseAdjustment(GuidMixin, Base):
    __tablename__ = f'{TABLE_AP}_license_adjustment'
    global_license = Column(Integer, ForeignKey(f'{TABLE_AP}_global_license.id'), nullable=False)
    adjustment_date = Column(DateTime(timezone=True), nullable=False, default=now_utc)
    employees_added_count = Column(Integer, nullable=False)
    months_remaining = Column(Numeric(4, 2), nullable=False)
    price_per_employee_usd = Column(Numeric(10, 2), nullable=False)
    subtotal_usd = Column(Numeric(12, 2), nullable=False)
    tax_amount_usd = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount_usd = Column(Numeric(12, 2), nullable=False)
    billing_currency_code = Column(String(3), nullable=False)
    exchange_rate_used = Column(Numeric(12, 6), nullable=False)
    subtotal_local = Column(Numeric(12, 2), nullable=False)
    tax_amount_local = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount_local = Column(Numeric(12, 2), nullable=False)
    tax_rules_applied = Column(JSONB, nullable=True)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    payment_due_immediately = Column(Boolean, nullable=False, default=True)
    invoice_sent_at = Column(DateTime(timezone=True), nullable=True)
    payment_completed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index('idx_xa_license_adjustment_global_license', 'global_license'),
        Index('idx_xa_license_adjustment_payment_status', 'payment_status'),
        CheckConstraint(check_in('payment_status', values(PaymentStatus)), name='ck_xa_license_adjustment_payment_status'),
        CheckConstraint('employees_added_count >= 1', name='ck_xa_license_adjustment_employees_added'),
    )
