"""Billing cycles, payment methods and payment transactions."""
from __future__ import annotations

from datetime import datetime, UTC
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from billing.db import schemas
from billing.db.enums import BillingCycleStatus, PaymentStatus
from billing.db.models import TABLE_AP
from billing.db.repositories import base as repo
from billing.db.validators import payments as rules
from billing.errors import ValidationError
from .base import DomainObject
from .licenses import GLOBAL_LICENSE_TABLE, LICENSE_ADJUSTMENT_TABLE

BILLING_CYCLE_TABLE = f"{TABLE_AP}_billing_cycle"
PAYMENT_METHOD_TABLE = f"{TABLE_AP}_payment_method"
PAYMENT_TRANSACTION_TABLE = f"{TABLE_AP}_payment_transaction"

CENT = Decimal("0.01")
FINAL_PAYMENT_STATES = (PaymentStatus.COMPLETED.value, PaymentStatus.FAILED.value,
                        PaymentStatus.CANCELLED.value, PaymentStatus.REFUNDED.value)
# Cycles a completed transaction settles
OPEN_CYCLE_STATES = (BillingCycleStatus.PENDING.value, BillingCycleStatus.PROCESSING.value,
                     BillingCycleStatus.OVERDUE.value)


class BillingCycle(DomainObject):
    table = BILLING_CYCLE_TABLE
    label = "Billing cycle"
    schema = schemas.BillingCycle
    key_field = "global_license"
    name_field = "billing_status"
    lookup_fields = ()
    unique_fields = ()
    active_field = None
    references = (("global_license", GLOBAL_LICENSE_TABLE, "id"),)
    clean = staticmethod(rules.clean_billing_cycle)
    validate = staticmethod(rules.validate_billing_cycle)

    @classmethod
    def export_conditions(cls):
        return {}

    @property
    def is_open(self) -> bool:
        return self.get("billing_status") in OPEN_CYCLE_STATES

    def mark_completed(self, at: Optional[datetime] = None) -> "BillingCycle":
        status = self.get("billing_status")
        if status in (BillingCycleStatus.COMPLETED.value, BillingCycleStatus.CANCELLED.value):
            raise ValidationError(f"Billing cycle is already {status.lower()}")
        at = at or datetime.now(UTC)
        return self.set(
            billing_status=BillingCycleStatus.COMPLETED.value,
            invoice_generated_at=self.get("invoice_generated_at") or at,
            payment_completed_at=at,
        ).save()


class PaymentMethod(DomainObject):
    table = PAYMENT_METHOD_TABLE
    label = "Payment method"
    schema = schemas.PaymentMethod
    clean = staticmethod(rules.clean_payment_method)
    validate = staticmethod(rules.validate_payment_method)

    @classmethod
    def key_variants(cls, value):
        return (value.upper(),)

    def supports(self, currency_code: str) -> bool:
        currencies = self.get("supported_currencies")
        # No list means every currency is accepted
        return not currencies or currency_code.upper() in currencies

    def accepts_amount(self, amount_usd) -> bool:
        amount = Decimal(str(amount_usd))
        minimum = self.get("min_amount_usd")
        maximum = self.get("max_amount_usd")
        if minimum is not None and amount < Decimal(str(minimum)):
            return False
        if maximum is not None and amount > Decimal(str(maximum)):
            return False
        return True

    def processing_fee(self, amount_usd) -> Decimal:
        """Fee for ``amount_usd``; the rate is a percentage."""
        rate = Decimal(str(self.get("processing_fee_rate") or 0))
        return (Decimal(str(amount_usd)) * rate / 100).quantize(CENT, rounding=ROUND_HALF_UP)


class PaymentTransaction(DomainObject):
    table = PAYMENT_TRANSACTION_TABLE
    label = "Payment transaction"
    schema = schemas.PaymentTransaction
    key_field = "payment_reference"
    name_field = "transaction_status"
    lookup_fields = ("payment_reference",)
    unique_fields = ("payment_reference",)
    active_field = None
    references = (
        ("billing_cycle", BILLING_CYCLE_TABLE, "id"),
        ("adjustment", LICENSE_ADJUSTMENT_TABLE, "id"),
        ("payment_method", PAYMENT_METHOD_TABLE, "id"),
    )
    clean = staticmethod(rules.clean_payment_transaction)
    validate = staticmethod(rules.validate_payment_transaction)

    @classmethod
    def export_conditions(cls):
        return {}

    def prepare(self, data: dict, creating: bool) -> dict:
        if creating and not data.get("payment_reference"):
            data["payment_reference"] = repo.time_based_token(self.db, self.model(), prefix="PAY")
        if creating and data.get("payment_method") and data.get("currency_code"):
            method = PaymentMethod.load(self.db, id=data["payment_method"])
            if method is not None:
                if not method.get("active"):
                    raise ValidationError(f"Payment method {method.get('code')} is not active")
                if not method.supports(data["currency_code"]):
                    raise ValidationError(
                        f"Payment method {method.get('code')} does not support {data['currency_code']}"
                    )
                if data.get("amount_usd") is not None and not method.accepts_amount(data["amount_usd"]):
                    raise ValidationError(f"Amount is outside the limits of payment method {method.get('code')}")
        return data

    def _ensure_open(self):
        if self.get("transaction_status") in FINAL_PAYMENT_STATES:
            raise ValidationError(f"Transaction is already {self.get('transaction_status')}")

    def mark_completed(self, at: Optional[datetime] = None) -> "PaymentTransaction":
        """Complete the transaction and, in the same commit, its billing cycle when still open."""
        self._ensure_open()
        at = at or datetime.now(UTC)
        cycle = None
        if self.get("billing_cycle"):
            cycle = BillingCycle.load(self.db, id=self.get("billing_cycle"))
            if cycle is not None and not cycle.is_open:
                cycle = None
        self.set(transaction_status=PaymentStatus.COMPLETED.value, completed_at=at).save(commit=cycle is None)
        if cycle is not None:
            try:
                cycle.mark_completed(at)
            except ValidationError:
                self.db.rollback()
                raise
        return self

    def mark_failed(self, reason: str, at: Optional[datetime] = None) -> "PaymentTransaction":
        self._ensure_open()
        return self.set(
            transaction_status=PaymentStatus.FAILED.value,
            failed_at=at or datetime.now(UTC),
            failure_reason=reason,
        ).save()
