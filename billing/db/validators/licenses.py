"""
Validation rules for global licenses, employee licenses and license
adjustments.

Row-level rules compare amounts with a tolerance of one cent
(:data:`~billing.db.validators.common.TOLERANCE`).
"""
from __future__ import annotations

import re
from datetime import datetime
from decimal import Decimal
from typing import Optional

from billing.errors import ValidationError
from ..enums import BillingStatus, ContractualStatus, LeaveType, LicenseStatus, LicenseType, PaymentStatus, values
from .common import (
    CURRENCY_CODE_RE,
    as_utc,
    check_bool,
    check_choice,
    check_decimal_range,
    check_int_range,
    check_length,
    check_pattern,
    check_tax_rules,
    close_enough,
    require,
    strip_strings,
    upper,
)

BILLING_CYCLE_MONTHS = (1, 3, 6, 12)
EMPLOYEE_RE = re.compile(r"^[a-zA-Z0-9_]{1,128}$")
EMPLOYEE_CODE_RE = re.compile(r"^[a-zA-Z0-9_]{1,50}$")
DECLARED_BY_RE = re.compile(r"^[a-zA-Z0-9_]{1,255}$")

PRICE_MAX = Decimal("99999999.99")
AMOUNT_MAX = Decimal("9999999999.99")
RATE_MIN = Decimal("0.000001")
RATE_MAX = Decimal("999999.999999")


def _amount(data: dict, field: str, maximum: Decimal = AMOUNT_MAX, *, required: bool = True) -> Optional[Decimal]:
    if required:
        require(data, field, f"{field} is required")
    return check_decimal_range(
        data.get(field), Decimal("0"), maximum,
        f"{field} must be a non-negative amount with at most 2 decimals",
        places=2,
    )


# Global license

def clean_global_license(data: dict) -> dict:
    cleaned = dict(data)
    upper(cleaned, "license_type", "license_status")
    return cleaned


def validate_global_license(data: dict, *, creating: bool = False, now: Optional[datetime] = None) -> None:
    require(data, "tenant", "tenant is required")
    check_int_range(data.get("tenant"), 1, None, "tenant must be a positive id")
    check_choice(data.get("license_type"), values(LicenseType), "license_type must be CLOUD_FLEX")
    months = data.get("billing_cycle_months")
    if months is not None and (isinstance(months, bool) or months not in BILLING_CYCLE_MONTHS):
        raise ValidationError("billing_cycle_months must be one of 1, 3, 6, 12")
    check_decimal_range(
        data.get("base_price_usd"), Decimal("0"), PRICE_MAX,
        "base_price_usd must be a non-negative amount with at most 2 decimals",
        places=2,
    )
    check_int_range(data.get("minimum_seats"), 1, 65535, "minimum_seats must be between 1 and 65535")
    check_int_range(data.get("total_seats_purchased"), 0, None, "total_seats_purchased must be >= 0")
    check_choice(
        data.get("license_status"), values(LicenseStatus),
        "license_status must be one of ACTIVE, EXPIRED, SUSPENDED, PENDING_PAYMENT",
    )

    start = as_utc(require(data, "current_period_start", "current_period_start is required"))
    end = as_utc(require(data, "current_period_end", "current_period_end is required"))
    renewal = as_utc(require(data, "next_renewal_date", "next_renewal_date is required"))
    if end <= start:
        raise ValidationError("current_period_end must be after current_period_start")
    if renewal < start:
        raise ValidationError("next_renewal_date must not be before current_period_start")
    if creating:
        now = as_utc(now) or datetime.now(start.tzinfo)
        if start > now:
            raise ValidationError("current_period_start cannot be in the future")
        if end < now:
            raise ValidationError("current_period_end cannot be in the past")
        if renewal < now:
            raise ValidationError("next_renewal_date cannot be in the past")


# Employee license

def clean_employee_license(data: dict) -> dict:
    cleaned = dict(data)
    strip_strings(cleaned, "employee", "employee_code", "long_leave_declared_by", "long_leave_reason")
    upper(cleaned, "contractual_status", "long_leave_type", "computed_billing_status")
    return cleaned


def validate_employee_license(data: dict) -> None:
    require(data, "global_license", "global_license is required")
    check_int_range(data.get("global_license"), 1, None, "global_license must be a positive id")
    employee = require(data, "employee", "employee is required")
    check_pattern(employee, EMPLOYEE_RE, "employee must be 1-128 letters, digits or underscores")
    code = require(data, "employee_code", "employee_code is required")
    check_pattern(code, EMPLOYEE_CODE_RE, "employee_code must be 1-50 letters, digits or underscores")

    activation = as_utc(data.get("activation_date"))
    deactivation = as_utc(data.get("deactivation_date"))
    as_utc(data.get("last_activity_date"))
    if activation and deactivation and deactivation < activation:
        raise ValidationError("deactivation_date cannot be before activation_date")

    check_choice(
        data.get("contractual_status"), values(ContractualStatus),
        "contractual_status must be one of ACTIVE, SUSPENDED, TERMINATED",
    )
    check_bool(data.get("declared_long_leave"), "declared_long_leave must be a boolean value")
    check_pattern(
        data.get("long_leave_declared_by"), DECLARED_BY_RE,
        "long_leave_declared_by must be 1-255 letters, digits or underscores",
    )
    as_utc(data.get("long_leave_declared_at"))
    check_choice(
        data.get("long_leave_type"), values(LeaveType),
        "long_leave_type must be one of PARENTAL, MEDICAL, TECHNICAL, SABBATICAL, OTHER",
    )
    check_length(data.get("long_leave_reason"), 0, 500, "long_leave_reason must be at most 500 characters")
    if data.get("declared_long_leave"):
        for field in ("long_leave_type", "long_leave_declared_by", "long_leave_declared_at"):
            require(data, field, f"{field} is required when a long leave is declared")

    check_choice(
        data.get("computed_billing_status"), values(BillingStatus),
        "computed_billing_status must be one of BILLABLE, GRACE_PERIOD, NON_BILLABLE, TERMINATED",
    )
    grace_start = as_utc(data.get("grace_period_start"))
    grace_end = as_utc(data.get("grace_period_end"))
    if grace_start and grace_end and grace_end <= grace_start:
        raise ValidationError("grace_period_end must be after grace_period_start")


# License adjustment

def clean_license_adjustment(data: dict) -> dict:
    cleaned = dict(data)
    upper(cleaned, "billing_currency_code", "payment_status")
    return cleaned


def validate_license_adjustment(data: dict) -> None:
    require(data, "global_license", "global_license is required")
    check_int_range(data.get("global_license"), 1, None, "global_license must be a positive id")
    require(data, "employees_added_count", "employees_added_count is required")
    check_int_range(data.get("employees_added_count"), 1, None, "employees_added_count must be an integer >= 1")
    require(data, "months_remaining", "months_remaining is required")
    months = check_decimal_range(
        data["months_remaining"], Decimal("0"), Decimal("99.99"),
        "months_remaining must be between 0 and 99.99",
        places=2,
    )
    price = _amount(data, "price_per_employee_usd", PRICE_MAX)

    subtotal_usd = _amount(data, "subtotal_usd")
    tax_usd = _amount(data, "tax_amount_usd", required=False) or Decimal("0")
    total_usd = _amount(data, "total_amount_usd")

    currency = require(data, "billing_currency_code", "billing_currency_code is required")
    check_pattern(currency, CURRENCY_CODE_RE, "billing_currency_code must be exactly 3 uppercase letters (ISO 4217)")
    require(data, "exchange_rate_used", "exchange_rate_used is required")
    rate = check_decimal_range(
        data["exchange_rate_used"], Decimal("0"), RATE_MAX,
        "exchange_rate_used must be between 0 and 999999.999999",
        places=6,
    )
    subtotal_local = _amount(data, "subtotal_local")
    tax_local = _amount(data, "tax_amount_local", required=False) or Decimal("0")
    total_local = _amount(data, "total_amount_local")

    check_tax_rules(data.get("tax_rules_applied"), bounded=True, non_empty=True)
    check_choice(
        data.get("payment_status"), values(PaymentStatus),
        "payment_status must be one of PENDING, PROCESSING, COMPLETED, FAILED, CANCELLED, REFUNDED",
    )
    check_bool(data.get("payment_due_immediately"), "payment_due_immediately must be a boolean value")

    count = Decimal(data["employees_added_count"])
    if not close_enough(count * months * price, subtotal_usd):
        raise ValidationError(
            "Subtotal calculation error: employees_added_count * months_remaining * "
            "price_per_employee_usd must equal subtotal_usd (±0.01)"
        )
    if not close_enough(subtotal_usd + tax_usd, total_usd):
        raise ValidationError("Total calculation error: subtotal_usd + tax_amount_usd must equal total_amount_usd (±0.01)")
    if not close_enough(subtotal_local + tax_local, total_local):
        raise ValidationError(
            "Total calculation error: subtotal_local + tax_amount_local must equal total_amount_local (±0.01)"
        )
    for usd, local, label in (
        (subtotal_usd, subtotal_local, "subtotal"),
        (tax_usd, tax_local, "tax"),
        (total_usd, total_local, "total"),
    ):
        if not close_enough(usd * rate, local):
            raise ValidationError(
                f"Local {label} inconsistency: USD amount * exchange_rate_used must equal the local amount (±0.01)"
            )

    adjusted = as_utc(data.get("adjustment_date"))
    invoiced = as_utc(data.get("invoice_sent_at"))
    completed = as_utc(data.get("payment_completed_at"))
    if completed and adjusted and completed < adjusted:
        raise ValidationError("payment_completed_at cannot be before adjustment_date")
    if completed and invoiced and completed < invoiced:
        raise ValidationError("payment_completed_at cannot be before invoice_sent_at")
