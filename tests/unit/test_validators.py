from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from billing.db.validators import common, licenses, monitoring, payments, reference, tenants
from billing.errors import ValidationError

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


# common

def test_check_decimal_range_enforces_places_and_bounds():
    assert common.check_decimal_range("12.50", Decimal("0"), Decimal("100"), "bad", places=2) == Decimal("12.50")
    with pytest.raises(ValidationError):
        common.check_decimal_range("12.505", Decimal("0"), Decimal("100"), "bad", places=2)
    with pytest.raises(ValidationError):
        common.check_decimal_range("-1", Decimal("0"), None, "bad")
    assert common.check_decimal_range(None, Decimal("0"), None, "bad") is None


@pytest.mark.parametrize("raw", [True, "abc", "NaN", "Infinity"])
def test_to_decimal_rejects_non_numbers(raw):
    with pytest.raises(ValidationError):
        common.to_decimal(raw, "bad")


def test_check_int_range_rejects_booleans():
    with pytest.raises(ValidationError):
        common.check_int_range(True, 0, None, "bad")
    common.check_int_range(3, 1, 5, "bad")


def test_as_utc_normalizes_inputs():
    assert common.as_utc("2025-01-02T03:04:05Z") == datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert common.as_utc(datetime(2025, 1, 2)).tzinfo is timezone.utc
    assert common.as_utc(date(2025, 1, 2)) == datetime(2025, 1, 2, tzinfo=timezone.utc)
    with pytest.raises(ValidationError):
        common.as_utc("yesterday")


def test_check_tax_rules_shapes():
    common.check_tax_rules([{"rate": 0.2}, {"rate": 0}])
    with pytest.raises(ValidationError):
        common.check_tax_rules({"rate": 0.2})
    with pytest.raises(ValidationError):
        common.check_tax_rules([{"name": "VAT"}])
    with pytest.raises(ValidationError):
        common.check_tax_rules([{"rate": 1.5}], bounded=True)
    common.check_tax_rules([])
    common.check_tax_rules(None, non_empty=True)
    with pytest.raises(ValidationError, match="at least one"):
        common.check_tax_rules([], non_empty=True)


# reference data

def _country(**overrides):
    data = {
        "code": "FR",
        "name_en": "France",
        "default_currency_code": "EUR",
        "default_language_code": "fr",
        "phone_prefix": "+33",
        "timezone_default": "Europe/Paris",
    }
    data.update(overrides)
    return data


def test_clean_country_normalizes_case():
    cleaned = reference.clean_country({"code": " fr ", "default_currency_code": "eur", "default_language_code": "FR"})
    assert cleaned["code"] == "FR"
    assert cleaned["default_currency_code"] == "EUR"
    assert cleaned["default_language_code"] == "fr"


@pytest.mark.parametrize("overrides", [
    {"code": "FRA"},
    {"name_en": "F"},
    {"default_currency_code": "EURO"},
    {"phone_prefix": "33"},
    {"timezone_default": "paris"},
    {"active": "yes"},
])
def test_validate_country_rejects(overrides):
    with pytest.raises(ValidationError):
        reference.validate_country(_country(**overrides))


@pytest.mark.parametrize("timezone_name", ["UTC", "UTC+2", "UTC-03:30", "America/New_York"])
def test_validate_country_accepts_timezones(timezone_name):
    reference.validate_country(_country(timezone_default=timezone_name))


def test_validate_exchange_rate_rules():
    rate = {"from_currency_code": "USD", "to_currency_code": "EUR", "exchange_rate": "0.912345", "created_by": 1}
    reference.validate_exchange_rate(rate)
    with pytest.raises(ValidationError, match="cannot be the same"):
        reference.validate_exchange_rate({**rate, "to_currency_code": "USD"})
    with pytest.raises(ValidationError):
        reference.validate_exchange_rate({**rate, "exchange_rate": "0.0000001"})
    with pytest.raises(ValidationError):
        reference.validate_exchange_rate({**rate, "created_by": 0})


def test_validate_tax_rule_dates_and_rate():
    rule = {"country_code": "FR", "tax_type": "VAT", "tax_name": "TVA", "tax_rate": "0.2", "applies_to": "license_fee"}
    reference.validate_tax_rule(rule)
    with pytest.raises(ValidationError):
        reference.validate_tax_rule({**rule, "tax_rate": "1.5"})
    with pytest.raises(ValidationError, match="Expiry date"):
        reference.validate_tax_rule({**rule, "effective_date": NOW, "expiry_date": NOW - timedelta(days=1)})


# tenants

@pytest.mark.parametrize("name,expected", [
    ("Acme Corp.", "acme-corp"),
    ("  Société Générale ", "societe-generale"),
    ("R&D -- Lab 42", "r-d-lab-42"),
])
def test_slugify_key(name, expected):
    assert tenants.slugify_key(name) == expected


@pytest.mark.parametrize("password", ["short1A", "alllowercase1", "ALLUPPERCASE1", "NoDigitsHere"])
def test_check_password_strength_rejects_weak(password):
    with pytest.raises(ValidationError):
        tenants.check_password_strength(password)


def _tenant(**overrides):
    data = {
        "name": "Acme",
        "key": "acme",
        "country_code": "FR",
        "primary_currency_code": "EUR",
        "preferred_language_code": "fr",
        "billing_email": "billing@acme.example",
    }
    data.update(overrides)
    return data


def test_validate_tenant_phone_requires_international_prefix():
    tenants.validate_tenant(_tenant(billing_phone="+33 1 23 45 67 89"))
    with pytest.raises(ValidationError, match="international prefix"):
        tenants.validate_tenant(_tenant(billing_phone="01 23 45 67 89"))


def test_validate_tenant_status_and_email():
    with pytest.raises(ValidationError):
        tenants.validate_tenant(_tenant(status="DELETED"))
    with pytest.raises(ValidationError):
        tenants.validate_tenant(_tenant(billing_email="not-an-email"))


def test_validate_tenant_provisioning_requires_database_fields():
    tenants.validate_tenant(_tenant())
    with pytest.raises(ValidationError, match="subdomain is required"):
        tenants.validate_tenant(_tenant(), provisioning=True)


# licenses

def _global_license(**overrides):
    data = {
        "tenant": 1,
        "current_period_start": NOW - timedelta(days=1),
        "current_period_end": NOW + timedelta(days=29),
        "next_renewal_date": NOW + timedelta(days=29),
        "billing_cycle_months": 1,
    }
    data.update(overrides)
    return data


def test_validate_global_license_creation_dates():
    licenses.validate_global_license(_global_license(), creating=True, now=NOW)
    with pytest.raises(ValidationError, match="future"):
        licenses.validate_global_license(
            _global_license(current_period_start=NOW + timedelta(days=1)), creating=True, now=NOW
        )
    # past periods are fine once the license exists
    licenses.validate_global_license(
        _global_license(current_period_end=NOW - timedelta(hours=1), next_renewal_date=NOW - timedelta(hours=1)),
        now=NOW,
    )


@pytest.mark.parametrize("months", [0, 2, 24, True])
def test_validate_global_license_cycle_months(months):
    with pytest.raises(ValidationError, match="billing_cycle_months"):
        licenses.validate_global_license(_global_license(billing_cycle_months=months))


def test_validate_employee_license_long_leave_requires_declaration():
    seat = {"global_license": 1, "employee": "jdoe", "employee_code": "EMP001"}
    licenses.validate_employee_license(seat)
    with pytest.raises(ValidationError, match="required when a long leave"):
        licenses.validate_employee_license({**seat, "declared_long_leave": True, "long_leave_type": "MEDICAL"})
    with pytest.raises(ValidationError):
        licenses.validate_employee_license({**seat, "employee_code": "EMP-001"})


def _adjustment(**overrides):
    data = {
        "global_license": 1,
        "employees_added_count": 2,
        "months_remaining": Decimal("1.5"),
        "price_per_employee_usd": Decimal("3.00"),
        "subtotal_usd": Decimal("9.00"),
        "tax_amount_usd": Decimal("1.80"),
        "total_amount_usd": Decimal("10.80"),
        "billing_currency_code": "EUR",
        "exchange_rate_used": Decimal("0.9"),
        "subtotal_local": Decimal("8.10"),
        "tax_amount_local": Decimal("1.62"),
        "total_amount_local": Decimal("9.72"),
    }
    data.update(overrides)
    return data


def test_validate_license_adjustment_amounts():
    licenses.validate_license_adjustment(_adjustment())
    # one cent tolerance
    licenses.validate_license_adjustment(_adjustment(subtotal_usd=Decimal("9.01"), total_amount_usd=Decimal("10.81")))
    with pytest.raises(ValidationError, match="Subtotal calculation"):
        licenses.validate_license_adjustment(_adjustment(subtotal_usd=Decimal("9.50"), total_amount_usd=Decimal("11.30")))
    with pytest.raises(ValidationError, match="Local subtotal"):
        licenses.validate_license_adjustment(_adjustment(subtotal_local=Decimal("9.00"), total_amount_local=Decimal("10.62")))
    with pytest.raises(ValidationError, match="at least one"):
        licenses.validate_license_adjustment(_adjustment(tax_rules_applied=[]))


# payments

def _cycle(**overrides):
    data = {
        "global_license": 1,
        "period_start": NOW - timedelta(days=30),
        "period_end": NOW - timedelta(days=1),
        "payment_due_date": NOW + timedelta(days=14),
        "base_employee_count": 10,
        "final_employee_count": 10,
        "base_amount_usd": Decimal("30"),
        "subtotal_usd": Decimal("30"),
        "total_amount_usd": Decimal("30"),
        "billing_currency_code": "USD",
        "exchange_rate_used": Decimal("1"),
        "base_amount_local": Decimal("30"),
        "subtotal_local": Decimal("30"),
        "total_amount_local": Decimal("30"),
    }
    data.update(overrides)
    return data


def test_validate_billing_cycle_rules():
    payments.validate_billing_cycle(_cycle(), now=NOW)
    with pytest.raises(ValidationError, match="must be 1"):
        payments.validate_billing_cycle(_cycle(exchange_rate_used=Decimal("1.1")), now=NOW)
    with pytest.raises(ValidationError, match="after period end"):
        payments.validate_billing_cycle(_cycle(payment_due_date=NOW - timedelta(days=2)), now=NOW)
    with pytest.raises(ValidationError, match="Invoice generated"):
        payments.validate_billing_cycle(_cycle(billing_status="COMPLETED"), now=NOW)
    with pytest.raises(ValidationError, match="OVERDUE"):
        payments.validate_billing_cycle(_cycle(billing_status="OVERDUE"), now=NOW)


def test_validate_payment_method_limits():
    method = {"code": "CARD", "name": "Card", "method_type": "CARD", "supported_currencies": ["USD", "EUR"]}
    payments.validate_payment_method(method)
    with pytest.raises(ValidationError):
        payments.validate_payment_method({**method, "supported_currencies": ["usd"]})
    with pytest.raises(ValidationError, match="greater than or equal"):
        payments.validate_payment_method({**method, "min_amount_usd": "10", "max_amount_usd": "5"})


def _transaction(**overrides):
    data = {
        "billing_cycle": 1,
        "payment_method": 1,
        "amount_usd": Decimal("30"),
        "amount_local": Decimal("27"),
        "currency_code": "EUR",
        "exchange_rate_used": Decimal("0.9"),
        "payment_reference": "PAY-1",
    }
    data.update(overrides)
    return data


def test_validate_payment_transaction_rules():
    payments.validate_payment_transaction(_transaction())
    with pytest.raises(ValidationError, match="Exactly one"):
        payments.validate_payment_transaction(_transaction(adjustment=2))
    with pytest.raises(ValidationError, match="Exactly one"):
        payments.validate_payment_transaction(_transaction(billing_cycle=None))
    with pytest.raises(ValidationError, match="inconsistency"):
        payments.validate_payment_transaction(_transaction(amount_local=Decimal("30")))
    with pytest.raises(ValidationError, match="failure_reason"):
        payments.validate_payment_transaction(_transaction(transaction_status="FAILED"))


# monitoring

def test_criteria_match_type():
    assert monitoring.criteria_match_type("MASS_DEACTIVATION", {"deactivation_count": 12, "time_window": "24h"})
    assert not monitoring.criteria_match_type("MASS_DEACTIVATION", {"deactivation_count": 12})
    assert not monitoring.criteria_match_type("MASS_DEACTIVATION", {"deactivation_count": "12", "time_window": "1d"})
    assert monitoring.criteria_match_type("UNUSUAL_ACTIVITY", {"frequency_deviation": 2})
    assert not monitoring.criteria_match_type("UNUSUAL_ACTIVITY", {"other": 1})


def test_risk_is_consistent():
    assert not monitoring.risk_is_consistent("MASS_DEACTIVATION", "LOW", 51)
    assert not monitoring.risk_is_consistent("MASS_DEACTIVATION", "HIGH", 101)
    assert monitoring.risk_is_consistent("MASS_DEACTIVATION", "CRITICAL", 101)
    assert not monitoring.risk_is_consistent("PRE_RENEWAL_MANIPULATION", "LOW", 1)
    assert monitoring.risk_is_consistent("UNUSUAL_ACTIVITY", "LOW", 500)


def test_validate_fraud_detection_log_resolution_pairs():
    log = {
        "tenant": 1,
        "detection_type": "UNUSUAL_ACTIVITY",
        "employee_licenses_affected": ["EMP001"],
        "detection_criteria": {"activity_type": "login"},
        "risk_level": "LOW",
    }
    monitoring.validate_fraud_detection_log(log)
    with pytest.raises(ValidationError, match="resolved_by is required"):
        monitoring.validate_fraud_detection_log({**log, "resolved_at": NOW})
    with pytest.raises(ValidationError, match="non-empty array"):
        monitoring.validate_fraud_detection_log({**log, "employee_licenses_affected": []})


def test_validate_activity_monitoring_counts():
    snapshot = {"employee_license": 1, "monitoring_date": date(2025, 6, 1), "status_at_date": "ACTIVE",
                "punch_count_7_days": 3, "punch_count_30_days": 10}
    monitoring.validate_activity_monitoring(snapshot)
    with pytest.raises(ValidationError, match="cannot exceed"):
        monitoring.validate_activity_monitoring({**snapshot, "punch_count_7_days": 11})
