from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import JSONB

from .base import Base, GuidMixin, TABLE_AP, check_in, now_utc
from ..enums import BillingCycleStatus, PaymentStatus, values


class BillingCycle(GuidMixin, Base):
    __tablename__ = f'{TABLE_AP}_billing_cycle'
    global_license = Column(Integer, ForeignKey(f'{TABLE_AP}_global_license.id'), nullable=False)
    period_start = Column(DateTime(timezone=True), nullable=False)
    period_end = Column(DateTime(timezone=True), nullable=False)
    base_employee_count = Column(Integer, nullable=False)
    final_employee_count = Column(Integer, nullable=False)
    base_amount_usd = Column(Numeric(12, 2), nullable=False)
    adjustments_amount_usd = Column(Numeric(12, 2), nullable=False, default=0)
    subtotal_usd = Column(Numeric(12, 2), nullable=False)
    tax_amount_usd = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount_usd = Column(Numeric(12, 2), nullable=False)
    billing_currency_code = Column(String(3), nullable=False)
    exchange_rate_used = Column(Numeric(12, 6), nullable=False)
    base_amount_local = Column(Numeric(12, 2), nullable=False)
    adjustments_amount_local = Column(Numeric(12, 2), nullable=False, default=0)
    subtotal_local = Column(Numeric(12, 2), nullable=False)
    tax_amount_local = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount_local = Column(Numeric(12, 2), nullable=False)
    tax_rules_applied = Column(JSONB, nullable=True)
    billing_status = Column(String(20), nullable=False, default=BillingCycleStatus.PENDING.value)
    invoice_generated_at = Column(DateTime(timezone=True), nullable=True)
    payment_due_date = Column(DateTime(timezone=True), nullable=False)
    payment_completed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index('idx_xa_billing_cycle_global_license', 'global_license'),
        Index('idx_xa_billing_cycle_status', 'billing_status'),
        Index('idx_xa_billing_cycle_period', 'period_start', 'period_end'),
        CheckConstraint(check_in('billing_status', values(BillingCycleStatus)), name='ck_xa_billing_cycle_status'),
        CheckConstraint('period_start < period_end', name='ck_xa_billing_cycle_period_order'),
    )


class PaymentMethod(GuidMixin, Base):
    __tablename__ = f'{TABLE_AP}_payment_method'
    code = Column(String(20), nullable=False, unique=True)
    name = Column(String(50), nullable=False)
    method_type = Column(String(20), nullable=False)
    supported_currencies = Column(JSONB, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    processing_fee_rate = Column(Numeric(6, 4), nullable=False, default=0)
    min_amount_usd = Column(Numeric(10, 2), nullable=False, default=1.00)
    max_amount_usd = Column(Numeric(10, 2), nullable=True)

    __table_args__ = (
        Index('idx_xa_payment_method_type', 'method_type'),
        Index('idx_xa_payment_method_active', 'active'),
    )


class PaymentTransaction(GuidMixin, Base):
    __tablename__ = f'{TABLE_AP}_payment_transaction'
    billing_cycle = Column(Integer, ForeignKey(f'{TABLE_AP}_billing_cycle.id'), nullable=True)
    adjustment = Column(Integer, ForeignKey(f'{TABLE_AP}_license_adjustment.id'), nullable=True)
    payment_method = Column(Integer, ForeignKey(f'{TABLE_AP}_payment_method.id'), nullable=False)
    amount_usd = Column(Numeric(12, 2), nullable=False)
    amount_local = Column(Numeric(12, 2), nullable=False)
    currency_code = Column(String(3), nullable=False)
    exchange_rate_used = Column(Numeric(12, 6), nullable=False)
    payment_reference = Column(String(100), nullable=False, unique=True)
    transaction_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    initiated_at = Column(DateTime(timezone=True), nullable=False, default=now_utc)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    failed_at = Column(DateTime(timezone=True), nullable=True)
    failure_reason = Column(String(500), nullable=True)

    __table_args__ = (
        Index('idx_xa_payment_transaction_billing_cycle', 'billing_cycle'),
        Index('idx_xa_payment_transaction_adjustment', 'adjustment'),
        Index('idx_xa_payment_transaction_status', 'transaction_status'),
        CheckConstraint(check_in('transaction_status', values(PaymentStatus)), name='ck_xa_payment_transaction_status'),
    )
