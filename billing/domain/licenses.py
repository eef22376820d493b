"""Global licenses, employee licenses and license adjustments."""
from __future__ import annotations

import calendar
from datetime import datetime, UTC
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from billing.db import schemas
from billing.db.enums import BillingStatus, ContractualStatus, LicenseStatus
from billing.db.models import TABLE_AP
from billing.db.repositories import base as repo
from billing.db.validators import licenses as rules
from billing.db.validators.common import as_utc
from billing.errors import ValidationError
from .base import DomainObject
from .reference import TaxRule
from .tenants import TENANT_TABLE, Tenant

GLOBAL_LICENSE_TABLE = f"{TABLE_AP}_global_license"
EMPLOYEE_LICENSE_TABLE = f"{TABLE_AP}_employee_license"
LICENSE_ADJUSTMENT_TABLE = f"{TABLE_AP}_license_adjustment"

CENT = Decimal("0.01")


def add_months(moment: datetime, months: int) -> datetime:
    """Same day ``months`` later, clamped to the end of shorter months."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


class GlobalLicense(DomainObject):
    table = GLOBAL_LICENSE_TABLE
    label = "Global license"
    schema = schemas.GlobalLicense
    key_field = "tenant"
    name_field = "license_type"
    lookup_fields = ()
    unique_fields = ()
    active_field = None
    references = (("tenant", TENANT_TABLE, "id"),)
    clean = staticmethod(rules.clean_global_license)
    validate = staticmethod(rules.validate_global_license)

    @classmethod
    def export_conditions(cls):
        return {"license_status": LicenseStatus.ACTIVE.value}

    def validation_options(self, creating: bool) -> dict:
        return {"creating": creating}

    def billable_seats(self) -> int:
        """Billable employee licenses, never below the license minimum."""
        employee_model = EmployeeLicense.model()
        billable = repo.count(
            self.db,
            employee_model,
            {"global_license": self.id, "computed_billing_status": BillingStatus.BILLABLE.value},
        )
        return max(billable, self.get("minimum_seats") or 0)

    def period_amount_usd(self) -> Decimal:
        price = Decimal(str(self.get("base_price_usd")))
        amount = price * self.billable_seats() * self.get("billing_cycle_months")
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)

    def renew(self, months: Optional[int] = None) -> "GlobalLicense":
        """Roll the license into its next period."""
        if self.get("license_status") in (LicenseStatus.SUSPENDED.value, LicenseStatus.EXPIRED.value):
            raise ValidationError(f"Cannot renew a {self.get('license_status')} license")
        months = months or self.get("billing_cycle_months")
        if months not in rules.BILLING_CYCLE_MONTHS:
            raise ValidationError("billing_cycle_months must be one of 1, 3, 6, 12")
        start = as_utc(self.get("current_period_end"))
        end = add_months(start, months)
        return self.set(
            current_period_start=start,
            current_period_end=end,
            next_renewal_date=end,
            billing_cycle_months=months,
            license_status=LicenseStatus.ACTIVE.value,
        ).save()


class EmployeeLicense(DomainObject):
    table = EMPLOYEE_LICENSE_TABLE
    label = "Employee license"
    schema = schemas.EmployeeLicense
    key_field = "employee_code"
    name_field = "employee"
    lookup_fields = ("employee_code",)
    unique_fields = ()
    active_field = None
    references = (("global_license", GLOBAL_LICENSE_TABLE, "id"),)
    clean = staticmethod(rules.clean_employee_license)
    validate = staticmethod(rules.validate_employee_license)

    @classmethod
    def export_conditions(cls):
        return {"contractual_status": ContractualStatus.ACTIVE.value}

    def compute_billing_status(self, now: Optional[datetime] = None) -> str:
        now = as_utc(now) or datetime.now(UTC)
        if self.get("contractual_status") == ContractualStatus.TERMINATED.value:
            return BillingStatus.TERMINATED.value
        if self.get("declared_long_leave"):
            return BillingStatus.NON_BILLABLE.value
        grace_start = as_utc(self.get("grace_period_start"))
        grace_end = as_utc(self.get("grace_period_end"))
        if grace_start and grace_end and grace_start <= now <= grace_end:
            return BillingStatus.GRACE_PERIOD.value
        if self.get("contractual_status") == ContractualStatus.SUSPENDED.value:
            return BillingStatus.NON_BILLABLE.value
        return BillingStatus.BILLABLE.value

    def refresh_billing_status(self, now: Optional[datetime] = None) -> "EmployeeLicense":
        return self.set(computed_billing_status=self.compute_billing_status(now)).save()

    def declare_long_leave(self, declared_by: str, leave_type: str, reason: Optional[str] = None,
                           at: Optional[datetime] = None) -> "EmployeeLicense":
        if self.get("contractual_status") == ContractualStatus.TERMINATED.value:
            raise ValidationError("Cannot declare a long leave on a terminated license")
        if self.get("declared_long_leave"):
            raise ValidationError("A long leave is already declared")
        self.set(
            declared_long_leave=True,
            long_leave_declared_by=declared_by,
            long_leave_declared_at=at or datetime.now(UTC),
            long_leave_type=(leave_type or "").upper() or None,
            long_leave_reason=reason,
        )
        return self.refresh_billing_status()

    def end_long_leave(self) -> "EmployeeLicense":
        if not self.get("declared_long_leave"):
            raise ValidationError("No long leave is declared")
        self.set(
            declared_long_leave=False,
            long_leave_declared_by=None,
            long_leave_declared_at=None,
            long_leave_type=None,
            long_leave_reason=None,
        )
        return self.refresh_billing_status()

    def terminate(self, at: Optional[datetime] = None) -> "EmployeeLicense":
        if self.get("contractual_status") == ContractualStatus.TERMINATED.value:
            raise ValidationError("Employee license is already terminated")
        self.set(
            contractual_status=ContractualStatus.TERMINATED.value,
            deactivation_date=at or datetime.now(UTC),
        )
        return self.refresh_billing_status()


class LicenseAdjustment(DomainObject):
    table = LICENSE_ADJUSTMENT_TABLE
    label = "License adjustment"
    schema = schemas.LicenseAdjustment
    key_field = "global_license"
    name_field = "employees_added_count"
    lookup_fields = ()
    unique_fields = ()
    active_field = None
    references = (("global_license", GLOBAL_LICENSE_TABLE, "id"),)
    clean = staticmethod(rules.clean_license_adjustment)
    validate = staticmethod(rules.validate_license_adjustment)

    @classmethod
    def export_conditions(cls):
        return {}

    def applicable_tax_rules(self):
        """Active license-fee tax rules of the tenant's country; none for tax-exempt tenants."""
        parent = GlobalLicense.load(self.db, id=self.get("global_license"))
        tenant = Tenant.load(self.db, id=parent.get("tenant")) if parent is not None else None
        if tenant is None or tenant.get("tax_exempt"):
            return []
        conditions = {"country_code": tenant.get("country_code"), "applies_to": "license_fee", "active": True}
        return TaxRule.list(self.db, conditions)

    def compute_amounts(self, tax_rules=()) -> "LicenseAdjustment":
        """Fill USD and local amounts from count, months, price, rate and tax rules.

        ``tax_rules`` are :class:`~billing.domain.reference.TaxRule` objects.
        """
        count = Decimal(self.get("employees_added_count"))
        months = Decimal(str(self.get("months_remaining")))
        price = Decimal(str(self.get("price_per_employee_usd")))
        rate = Decimal(str(self.get("exchange_rate_used")))
        tax_rate = sum((Decimal(str(rule.get("tax_rate"))) for rule in tax_rules), Decimal("0"))

        subtotal_usd = (count * months * price).quantize(CENT, rounding=ROUND_HALF_UP)
        tax_usd = (subtotal_usd * tax_rate).quantize(CENT, rounding=ROUND_HALF_UP)
        total_usd = subtotal_usd + tax_usd
        subtotal_local = (subtotal_usd * rate).quantize(CENT, rounding=ROUND_HALF_UP)
        tax_local = (tax_usd * rate).quantize(CENT, rounding=ROUND_HALF_UP)
        return self.set(
            subtotal_usd=subtotal_usd,
            tax_amount_usd=tax_usd,
            total_amount_usd=total_usd,
            subtotal_local=subtotal_local,
            tax_amount_local=tax_local,
            total_amount_local=subtotal_local + tax_local,
            tax_rules_applied=[rule.as_applied() for rule in tax_rules] or None,
        )
