"""billing initial schema

Revision ID: 0001_billing_initial
Revises:
Create Date: 2025-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_billing_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _guid_columns():
    return [
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('guid', sa.Integer(), nullable=False, unique=True),
    ]


def _timestamps():
    return [
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    # Reference data
    op.create_table(
        'xf_currency',
        *_guid_columns(),
        sa.Column('code', sa.String(3), nullable=False, unique=True),
        sa.Column('name', sa.String(128), nullable=False),
        sa.Column('symbol', sa.String(10), nullable=False),
        sa.Column('decimal_places', sa.Integer(), nullable=False, server_default='2'),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint('decimal_places >= 0 AND decimal_places <= 10', name='ck_xf_currency_decimal_places'),
    )
    op.create_index('idx_xf_currency_active', 'xf_currency', ['active'])

    op.create_table(
        'xf_language',
        *_guid_columns(),
        sa.Column('code', sa.String(2), nullable=False, unique=True),
        sa.Column('name_en', sa.String(50), nullable=False),
        sa.Column('name_local', sa.String(50), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('idx_xf_language_active', 'xf_language', ['active'])

    op.create_table(
        'xf_country',
        *_guid_columns(),
        sa.Column('code', sa.String(2), nullable=False, unique=True),
        sa.Column('name_en', sa.String(128), nullable=False),
        sa.Column('name_local', sa.String(128), nullable=True),
        sa.Column('default_currency_code', sa.String(3), nullable=False),
        sa.Column('default_language_code', sa.String(2), nullable=False),
        sa.Column('timezone_default', sa.String(64), nullable=False, server_default='UTC'),
        sa.Column('phone_prefix', sa.String(6), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('idx_xf_country_default_currency_code', 'xf_country', ['default_currency_code'])
    op.create_index('idx_xf_country_default_language_code', 'xf_country', ['default_language_code'])
    op.create_index('idx_xf_country_timezone_default', 'xf_country', ['timezone_default'])
    op.create_index('idx_xf_country_active', 'xf_country', ['active'])

    op.create_table(
        'xf_exchange_rate',
        *_guid_columns(),
        sa.Column('from_currency_code', sa.String(3), sa.ForeignKey('xf_currency.code'), nullable=False),
        sa.Column('to_currency_code', sa.String(3), sa.ForeignKey('xf_currency.code'), nullable=False),
        sa.Column('exchange_rate', sa.Numeric(12, 6), nullable=False),
        sa.Column('current', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_by', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('exchange_rate > 0', name='ck_xf_exchange_rate_positive'),
        sa.CheckConstraint('from_currency_code <> to_currency_code', name='ck_xf_exchange_rate_distinct_pair'),
    )
    op.create_index('idx_xf_exchange_rate_pair', 'xf_exchange_rate', ['from_currency_code', 'to_currency_code'])
    op.create_index('idx_xf_exchange_rate_current', 'xf_exchange_rate', ['current'])

    op.create_table(
        'xf_tax_rule',
        *_guid_columns(),
        sa.Column('country_code', sa.String(2), sa.ForeignKey('xf_country.code'), nullable=False),
        sa.Column('tax_type', sa.String(20), nullable=False),
        sa.Column('tax_name', sa.String(50), nullable=False),
        sa.Column('tax_rate', sa.Numeric(6, 4), nullable=False),
        sa.Column('applies_to', sa.String(20), nullable=False, server_default='license_fee'),
        sa.Column('required_tax_number', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('effective_date', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('expiry_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint('tax_rate >= 0 AND tax_rate <= 1', name='ck_xf_tax_rule_rate_range'),
    )
    op.create_index('idx_xf_tax_rule_country_code', 'xf_tax_rule', ['country_code'])
    op.create_index('idx_xf_tax_rule_tax_type', 'xf_tax_rule', ['tax_type'])
    op.create_index('idx_xf_tax_rule_applies_to', 'xf_tax_rule', ['applies_to'])
    op.create_index('idx_xf_tax_rule_active', 'xf_tax_rule', ['active'])

    # Tenant scope
    op.create_table(
        'xa_tenant',
        *_guid_columns(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('key', sa.String(100), nullable=False, unique=True),
        sa.Column('country_code', sa.String(2), sa.ForeignKey('xf_country.code'), nullable=False),
        sa.Column('primary_currency_code', sa.String(3), sa.ForeignKey('xf_currency.code'), nullable=False),
        sa.Column('preferred_language_code', sa.String(2), sa.ForeignKey('xf_language.code'), nullable=False, server_default='en'),
        sa.Column('timezone', sa.String(64), nullable=False, server_default='UTC'),
        sa.Column('tax_number', sa.String(50), nullable=True),
        sa.Column('tax_exempt', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('billing_email', sa.String(255), nullable=False),
        sa.Column('billing_address', sa.Text(), nullable=True),
        sa.Column('billing_phone', sa.String(20), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='ACTIVE'),
        sa.Column('subdomain', sa.String(255), nullable=True, unique=True),
        sa.Column('database_name', sa.String(128), nullable=True),
        sa.Column('database_username', sa.String(128), nullable=True),
        sa.Column('database_password', sa.String(255), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("status in ('ACTIVE','SUSPENDED','TERMINATED')", name='ck_xa_tenant_status'),
    )
    op.create_index('idx_xa_tenant_country_code', 'xa_tenant', ['country_code'])
    op.create_index('idx_xa_tenant_primary_currency_code', 'xa_tenant', ['primary_currency_code'])
    op.create_index('idx_xa_tenant_status', 'xa_tenant', ['status'])

    op.create_table(
        'xa_global_license',
        *_guid_columns(),
        sa.Column('tenant', sa.Integer(), sa.ForeignKey('xa_tenant.id'), nullable=False),
        sa.Column('license_type', sa.String(20), nullable=False, server_default='CLOUD_FLEX'),
        sa.Column('billing_cycle_months', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('base_price_usd', sa.Numeric(10, 2), nullable=False, server_default='3.00'),
        sa.Column('minimum_seats', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('current_period_start', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('current_period_end', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('next_renewal_date', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('total_seats_purchased', sa.Integer(), nullable=True),
        sa.Column('license_status', sa.String(20), nullable=False, server_default='ACTIVE'),
        *_timestamps(),
        sa.CheckConstraint("license_type in ('CLOUD_FLEX')", name='ck_xa_global_license_type'),
        sa.CheckConstraint(
            "license_status in ('ACTIVE','EXPIRED','SUSPENDED','PENDING_PAYMENT')",
            name='ck_xa_global_license_status',
        ),
        sa.CheckConstraint('billing_cycle_months in (1,3,6,12)', name='ck_xa_global_license_cycle_months'),
    )
    op.create_index('idx_xa_global_license_tenant', 'xa_global_license', ['tenant'])
    op.create_index('idx_xa_global_license_status', 'xa_global_license', ['license_status'])
    op.create_index('idx_xa_global_license_next_renewal_date', 'xa_global_license', ['next_renewal_date'])

    op.create_table(
        'xa_employee_license',
        *_guid_columns(),
        sa.Column('global_license', sa.Integer(), sa.ForeignKey('xa_global_license.id'), nullable=False),
        sa.Column('employee', sa.String(128), nullable=False),
        sa.Column('employee_code', sa.String(50), nullable=False),
        sa.Column('activation_date', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('deactivation_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('last_activity_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('contractual_status', sa.String(20), nullable=False, server_default='ACTIVE'),
        sa.Column('declared_long_leave', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('long_leave_declared_by', sa.String(255), nullable=True),
        sa.Column('long_leave_declared_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('long_leave_type', sa.String(20), nullable=True),
        sa.Column('long_leave_reason', sa.String(500), nullable=True),
        sa.Column('computed_billing_status', sa.String(20), nullable=False, server_default='BILLABLE'),
        sa.Column('grace_period_start', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('grace_period_end', sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "contractual_status in ('ACTIVE','SUSPENDED','TERMINATED')",
            name='ck_xa_employee_license_contractual_status',
        ),
        sa.CheckConstraint(
            "computed_billing_status in ('BILLABLE','GRACE_PERIOD','NON_BILLABLE','TERMINATED')",
            name='ck_xa_employee_license_billing_status',
        ),
        sa.CheckConstraint(
            "long_leave_type is null or long_leave_type in ('PARENTAL','MEDICAL','TECHNICAL','SABBATICAL','OTHER')",
            name='ck_xa_employee_license_leave_type',
        ),
    )
    op.create_index('idx_xa_employee_license_global_license', 'xa_employee_license', ['global_license'])
    op.create_index('idx_xa_employee_license_employee', 'xa_employee_license', ['employee'])
    op.create_index('idx_xa_employee_license_billing_status', 'xa_employee_license', ['computed_billing_status'])

    op.create_table(
        'xa_billing_cycle',
        *_guid_columns(),
        sa.Column('global_license', sa.Integer(), sa.ForeignKey('xa_global_license.id'), nullable=False),
        sa.Column('period_start', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('period_end', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('base_employee_count', sa.Integer(), nullable=False),
        sa.Column('final_employee_count', sa.Integer(), nullable=False),
        sa.Column('base_amount_usd', sa.Numeric(12, 2), nullable=False),
        sa.Column('adjustments_amount_usd', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('subtotal_usd', sa.Numeric(12, 2), nullable=False),
        sa.Column('tax_amount_usd', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('total_amount_usd', sa.Numeric(12, 2), nullable=False),
        sa.Column('billing_currency_code', sa.String(3), nullable=False),
        sa.Column('exchange_rate_used', sa.Numeric(12, 6), nullable=False),
        sa.Column('base_amount_local', sa.Numeric(12, 2), nullable=False),
        sa.Column('adjustments_amount_local', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('subtotal_local', sa.Numeric(12, 2), nullable=False),
        sa.Column('tax_amount_local', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('total_amount_local', sa.Numeric(12, 2), nullable=False),
        sa.Column('tax_rules_applied', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('billing_status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('invoice_generated_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('payment_due_date', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('payment_completed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "billing_status in ('PENDING','PROCESSING','COMPLETED','FAILED','CANCELLED','OVERDUE')",
            name='ck_xa_billing_cycle_status',
        ),
        sa.CheckConstraint('period_start < period_end', name='ck_xa_billing_cycle_period_order'),
    )
    op.create_index('idx_xa_billing_cycle_global_license', 'xa_billing_cycle', ['global_license'])
    op.create_index('idx_xa_billing_cycle_status', 'xa_billing_cycle', ['billing_status'])
    op.create_index('idx_xa_billing_cycle_period', 'xa_billing_cycle', ['period_start', 'period_end'])

    op.create_table(
        'xa_payment_method',
        *_guid_columns(),
        sa.Column('code', sa.String(20), nullable=False, unique=True),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('method_type', sa.String(20), nullable=False),
        sa.Column('supported_currencies', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('processing_fee_rate', sa.Numeric(6, 4), nullable=False, server_default='0'),
        sa.Column('min_amount_usd', sa.Numeric(10, 2), nullable=False, server_default='1.00'),
        sa.Column('max_amount_usd', sa.Numeric(10, 2), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_xa_payment_method_type', 'xa_payment_method', ['method_type'])
    op.create_index('idx_xa_payment_method_active', 'xa_payment_method', ['active'])

    op.create_table(
        'xa_license_adjustment',
        *_guid_columns(),
        sa.Column('global_license', sa.Integer(), sa.ForeignKey('xa_global_license.id'), nullable=False),
        sa.Column('adjustment_date', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('employees_added_count', sa.Integer(), nullable=False),
        sa.Column('months_remaining', sa.Numeric(4, 2), nullable=False),
        sa.Column('price_per_employee_usd', sa.Numeric(10, 2), nullable=False),
        sa.Column('subtotal_usd', sa.Numeric(12, 2), nullable=False),
        sa.Column('tax_amount_usd', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('total_amount_usd', sa.Numeric(12, 2), nullable=False),
        sa.Column('billing_currency_code', sa.String(3), nullable=False),
        sa.Column('exchange_rate_used', sa.Numeric(12, 6), nullable=False),
        sa.Column('subtotal_local', sa.Numeric(12, 2), nullable=False),
        sa.Column('tax_amount_local', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('total_amount_local', sa.Numeric(12, 2), nullable=False),
        sa.Column('tax_rules_applied', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('payment_status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('payment_due_immediately', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('invoice_sent_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('payment_completed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "payment_status in ('PENDING','PROCESSING','COMPLETED','FAILED','CANCELLED','REFUNDED')",
            name='ck_xa_license_adjustment_payment_status',
        ),
        sa.CheckConstraint('employees_added_count >= 1', name='ck_xa_license_adjustment_employees_added'),
    )
    op.create_index('idx_xa_license_adjustment_global_license', 'xa_license_adjustment', ['global_license'])
    op.create_index('idx_xa_license_adjustment_payment_status', 'xa_license_adjustment', ['payment_status'])

    op.create_table(
        'xa_payment_transaction',
        *_guid_columns(),
        sa.Column('billing_cycle', sa.Integer(), sa.ForeignKey('xa_billing_cycle.id'), nullable=True),
        sa.Column('adjustment', sa.Integer(), sa.ForeignKey('xa_license_adjustment.id'), nullable=True),
        sa.Column('payment_method', sa.Integer(), sa.ForeignKey('xa_payment_method.id'), nullable=False),
        sa.Column('amount_usd', sa.Numeric(12, 2), nullable=False),
        sa.Column('amount_local', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency_code', sa.String(3), nullable=False),
        sa.Column('exchange_rate_used', sa.Numeric(12, 6), nullable=False),
        sa.Column('payment_reference', sa.String(100), nullable=False, unique=True),
        sa.Column('transaction_status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('initiated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('completed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('failed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('failure_reason', sa.String(500), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "transaction_status in ('PENDING','PROCESSING','COMPLETED','FAILED','CANCELLED','REFUNDED')",
            name='ck_xa_payment_transaction_status',
        ),
    )
    op.create_index('idx_xa_payment_transaction_billing_cycle', 'xa_payment_transaction', ['billing_cycle'])
    op.create_index('idx_xa_payment_transaction_adjustment', 'xa_payment_transaction', ['adjustment'])
    op.create_index('idx_xa_payment_transaction_status', 'xa_payment_transaction', ['transaction_status'])

    op.create_table(
        'xa_fraud_detection_log',
        *_guid_columns(),
        sa.Column('tenant', sa.Integer(), sa.ForeignKey('xa_tenant.id'), nullable=False),
        sa.Column('detection_type', sa.String(40), nullable=False),
        sa.Column('employee_licenses_affected', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('detection_criteria', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('risk_level', sa.String(10), nullable=False),
        sa.Column('action_taken', sa.String(1024), nullable=True),
        sa.Column('resolved_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('resolved_by', sa.Integer(), nullable=True),
        sa.Column('notes', sa.String(1024), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "detection_type in ('SUSPICIOUS_LEAVE_PATTERN','MASS_DEACTIVATION','UNUSUAL_ACTIVITY',"
            "'PRE_RENEWAL_MANIPULATION','EXCESSIVE_TECHNICAL_LEAVE')",
            name='ck_xa_fraud_detection_log_type',
        ),
        sa.CheckConstraint("risk_level in ('LOW','MEDIUM','HIGH','CRITICAL')", name='ck_xa_fraud_detection_log_risk'),
    )
    op.create_index('idx_xa_fraud_detection_log_tenant', 'xa_fraud_detection_log', ['tenant'])
    op.create_index('idx_xa_fraud_detection_log_type', 'xa_fraud_detection_log', ['detection_type'])
    op.create_index('idx_xa_fraud_detection_log_risk', 'xa_fraud_detection_log', ['risk_level'])

    op.create_table(
        'xa_activity_monitoring',
        *_guid_columns(),
        sa.Column('employee_license', sa.Integer(), sa.ForeignKey('xa_employee_license.id'), nullable=False),
        sa.Column('monitoring_date', sa.Date(), nullable=False),
        sa.Column('last_punch_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('punch_count_7_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('punch_count_30_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('consecutive_absent_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status_at_date', sa.String(20), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('employee_license', 'monitoring_date', name='uq_xa_activity_monitoring_license_date'),
        sa.CheckConstraint("status_at_date in ('ACTIVE','INACTIVE','SUSPICIOUS')", name='ck_xa_activity_monitoring_status'),
        sa.CheckConstraint(
            'punch_count_7_days >= 0 AND punch_count_30_days >= 0 AND consecutive_absent_days >= 0',
            name='ck_xa_activity_monitoring_counts',
        ),
    )
    op.create_index('idx_xa_activity_monitoring_status', 'xa_activity_monitoring', ['status_at_date'])


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        'xa_activity_monitoring',
        'xa_fraud_detection_log',
        'xa_payment_transaction',
        'xa_license_adjustment',
        'xa_payment_method',
        'xa_billing_cycle',
        'xa_employee_license',
        'xa_global_license',
        'xa_tenant',
        'xf_tax_rule',
        'xf_exchange_rate',
        'xf_country',
        'xf_language',
        'xf_currency',
    ):
        op.drop_table(table)
