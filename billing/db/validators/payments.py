"""
Validation rules for billing cycles, payment methods and payment
transactions.
"""
from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from billing.errors import ValidationError
from ..enums import BillingCycleStatus, PaymentStatus, values
from .common import (
    CURRENCY_CODE_RE,
    IDENTIFIER_RE,
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

logger = logging.getLogger(__name__)

AMOUNT_MAX = Decimal("9999999999.99")
METHOD_AMOUNT_MAX = Decimal("99999999.99")
RATE_MIN = Decimal("0.000001")
RATE_MAX = Decimal("999999.999999")
FEE_RATE_MAX = Decimal("99.9999")


def _amount(data: dict, field: str, *, required: bool = True, maximum: Decimal = AMOUNT_MAX) -> Optional[Decimal]:
    if required:
        require(data, field, f"{field} is required")
    return check_decimal_range(
        data.get(field), Decimal("0"), maximum,
        f"{field} must be a non-negative amount with at most 2 decimals",
        places=2,
    )


def _rate(data: dict, field: str = "exchange_rate_used") -> Decimal:
    require(data, field, f"{field} is required")
    return check_decimal_range(
        data[field], RATE_MIN, RATE_MAX,
        f"{field} must be between 0.000001 and 999999.999999",
        places=6,
    )


# Billing cycle

def clean_billing_cycle(data: dict) -> dict:
    cleaned = dict(data)
    upper(cleaned, "billing_currency_code", "billing_status")
    return cleaned


def validate_billing_cycle(data: dict, *, now: Optional[datetime] = None) -> None:
    require(data, "global_license", "global_license is required")
    check_int_range(data.get("global_license"), 1, None, "global_license must be a positive id")

    start = as_utc(require(data, "period_start", "period_start is required"))
    end = as_utc(require(data, "period_end", "period_end is required"))
    if start >= end:
        raise ValidationError("Period start must be before period end")

    for field in ("base_employee_count", "final_employee_count"):
        require(data, field, f"{field} is required")
        check_int_range(data.get(field), 1, None, f"{field} must be an integer >= 1")

    base_usd = _amount(data, "base_amount_usd")
    adjustments_usd = _amount(data, "adjustments_amount_usd", required=False) or Decimal("0")
    subtotal_usd = _amount(data, "subtotal_usd")
    tax_usd = _amount(data, "tax_amount_usd", required=False) or Decimal("0")
    total_usd = _amount(data, "total_amount_usd")

    currency = require(data, "billing_currency_code", "billing_currency_code is required")
    check_pattern(currency, CURRENCY_CODE_RE, "billing_currency_code must be exactly 3 uppercase letters (ISO 4217)")
    rate = _rate(data)

    base_local = _amount(data, "base_amount_local")
    adjustments_local = _amount(data, "adjustments_amount_local", required=False) or Decimal("0")
    subtotal_local = _amount(data, "subtotal_local")
    tax_local = _amount(data, "tax_amount_local", required=False) or Decimal("0")
    total_local = _amount(data, "total_amount_local")

    check_tax_rules(data.get("tax_rules_applied"))
    check_choice(
        data.get("billing_status"), values(BillingCycleStatus),
        "billing_status must be one of PENDING, PROCESSING, COMPLETED, FAILED, CANCELLED, OVERDUE",
    )

    if currency == "USD" and rate != Decimal("1"):
        raise ValidationError("Exchange rate must be 1 when billing currency is USD")
    if not close_enough(base_usd * rate, base_local):
        raise ValidationError("Base amount local currency inconsistent with USD amount and exchange rate")
    if not close_enough(base_usd + adjustments_usd, subtotal_usd):
        raise ValidationError("USD subtotal must equal base amount + adjustments")
    if not close_enough(subtotal_usd + tax_usd, total_usd):
        raise ValidationError("USD total amount must equal subtotal + tax amount")
    if not close_enough(base_local + adjustments_local, subtotal_local):
        raise ValidationError("Local subtotal must equal base amount + adjustments")
    if not close_enough(subtotal_local + tax_local, total_local):
        raise ValidationError("Local total amount must equal subtotal + tax amount")

    due = as_utc(require(data, "payment_due_date", "payment_due_date is required"))
    if due <= end:
        raise ValidationError("Payment due date must be after period end")
    invoiced = as_utc(data.get("invoice_generated_at"))
    completed = as_utc(data.get("payment_completed_at"))

    status = data.get("billing_status")
    if status == BillingCycleStatus.COMPLETED.value:
        if not invoiced:
            raise ValidationError("Invoice generated date is required for completed billing cycles")
        if not completed:
            raise ValidationError("Payment completed date is required for completed billing cycles")
    if status == BillingCycleStatus.OVERDUE.value:
        now = as_utc(now) or datetime.now(due.tzinfo)
        if due >= now:
            raise ValidationError("Billing cycle can only be OVERDUE if payment due date has passed")
    if completed and completed > due:
        logger.warning("billing_cycle_paid_late: completed_at=%s due=%s", completed.isoformat(), due.isoformat())


# Payment method

def clean_payment_method(data: dict) -> dict:
    cleaned = dict(data)
    strip_strings(cleaned, "name")
    upper(cleaned, "code", "method_type")
    currencies = cleaned.get("supported_currencies")
    if isinstance(currencies, list):
        cleaned["supported_currencies"] = [c.strip().upper() if isinstance(c, str) else c for c in currencies]
    return cleaned


def validate_payment_method(data: dict) -> None:
    code = require(data, "code", "Payment method code is required")
    check_pattern(code, IDENTIFIER_RE, "Payment method code must be 1-20 letters, digits or underscores")
    name = require(data, "name", "Payment method name is required")
    check_length(name, 2, 50, "Payment method name must be between 2 and 50 characters")
    method_type = require(data, "method_type", "Payment method type is required")
    check_pattern(method_type, IDENTIFIER_RE, "Payment method type must be 1-20 letters, digits or underscores")

    currencies = data.get("supported_currencies")
    if currencies is not None:
        if not isinstance(currencies, list):
            raise ValidationError("supported_currencies must be an array of ISO 4217 codes")
        for currency in currencies:
            check_pattern(currency, CURRENCY_CODE_RE, f"Invalid currency code in supported_currencies: {currency!r}")
            if currency is None:
                raise ValidationError("supported_currencies cannot contain null")

    check_bool(data.get("active"), "Active must be a boolean value")
    check_decimal_range(
        data.get("processing_fee_rate"), Decimal("0"), FEE_RATE_MAX,
        "processing_fee_rate must be between 0 and 99.9999 (4 decimals max)",
        places=4,
    )
    minimum = _amount(data, "min_amount_usd", required=False, maximum=METHOD_AMOUNT_MAX)
    maximum = _amount(data, "max_amount_usd", required=False, maximum=METHOD_AMOUNT_MAX)
    if minimum is not None and maximum is not None and maximum < minimum:
        raise ValidationError("max_amount_usd must be greater than or equal to min_amount_usd")


# Payment transaction

def clean_payment_transaction(data: dict) -> dict:
    cleaned = dict(data)
    strip_strings(cleaned, "payment_reference", "failure_reason")
    upper(cleaned, "currency_code", "transaction_status")
    return cleaned


def validate_payment_transaction(data: dict) -> None:
    cycle = data.get("billing_cycle")
    adjustment = data.get("adjustment")
    if (cycle is None) == (adjustment is None):
        raise ValidationError("Exactly one of billing_cycle or adjustment is required")
    check_int_range(cycle, 1, None, "billing_cycle must be a positive id")
    check_int_range(adjustment, 1, None, "adjustment must be a positive id")
    require(data, "payment_method", "payment_method is required")
    check_int_range(data.get("payment_method"), 1, None, "payment_method must be a positive id")

    amount_usd = _amount(data, "amount_usd")
    amount_local = _amount(data, "amount_local")
    currency = require(data, "currency_code", "currency_code is required")
    check_pattern(currency, CURRENCY_CODE_RE, "currency_code must be exactly 3 uppercase letters (ISO 4217)")
    rate = _rate(data)
    if not close_enough(amount_usd * rate, amount_local):
        raise ValidationError("Amount inconsistency: amount_usd * exchange_rate_used must equal amount_local (±0.01)")

    reference = require(data, "payment_reference", "payment_reference is required")
    check_length(reference, 1, 100, "payment_reference must be between 1 and 100 characters")

    status = data.get("transaction_status")
    check_choice(
        status, values(PaymentStatus),
        "transaction_status must be one of PENDING, PROCESSING, COMPLETED, FAILED, CANCELLED, REFUNDED",
    )
    initiated = as_utc(data.get("initiated_at"))
    completed = as_utc(data.get("completed_at"))
    failed = as_utc(data.get("failed_at"))
    if initiated and completed and completed < initiated:
        raise ValidationError("completed_at must be after initiated_at")
    if initiated and failed and failed < initiated:
        raise ValidationError("failed_at must be after initiated_at")

    check_length(data.get("failure_reason"), 1, 500, "failure_reason must be between 1 and 500 characters")
    if status == PaymentStatus.FAILED.value:
        require(data, "failure_reason", "failure_reason is required when transaction_status is FAILED")
