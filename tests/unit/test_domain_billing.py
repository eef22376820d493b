from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from billing.domain.licenses import EmployeeLicense, GlobalLicense, add_months
from billing.domain.monitoring import FraudDetectionLog
from billing.domain.payments import BillingCycle
from billing.errors import AlreadyExistsError, ValidationError


def utcnow():
    return datetime.now(timezone.utc)


@pytest.mark.parametrize("start,months,expected", [
    (datetime(2025, 1, 31), 1, datetime(2025, 2, 28)),
    (datetime(2024, 1, 31), 1, datetime(2024, 2, 29)),
    (datetime(2025, 11, 15), 3, datetime(2026, 2, 15)),
    (datetime(2025, 6, 30), 12, datetime(2026, 6, 30)),
])
def test_add_months_clamps_to_month_end(start, months, expected):
    assert add_months(start, months) == expected


# Global licenses

def test_global_license_defaults(global_license_factory):
    global_license = global_license_factory()
    assert global_license.get("license_type") == "CLOUD_FLEX"
    assert global_license.get("license_status") == "ACTIVE"
    assert global_license.get("minimum_seats") == 5


def test_global_license_cannot_start_in_the_future(global_license_factory):
    start = utcnow() + timedelta(days=2)
    with pytest.raises(ValidationError, match="future"):
        global_license_factory(current_period_start=start, current_period_end=start + timedelta(days=30))


def test_billable_seats_never_below_minimum(global_license_factory, employee_license_factory):
    global_license = global_license_factory(base_price_usd=Decimal("3.00"), billing_cycle_months=3)
    for index in range(3):
        employee_license_factory(global_license, code=f"EMP{index}")
    assert global_license.billable_seats() == 5
    assert global_license.period_amount_usd() == Decimal("45.00")

    for index in range(3, 7):
        employee_license_factory(global_license, code=f"EMP{index}")
    terminated = employee_license_factory(global_license, code="GONE")
    terminated.terminate()
    assert global_license.billable_seats() == 7


def test_renew_rolls_into_next_period(global_license_factory):
    global_license = global_license_factory()
    previous_end = global_license.get("current_period_end")
    global_license.renew(months=3)
    assert global_license.get("billing_cycle_months") == 3
    assert global_license.get("current_period_start").replace(tzinfo=None) == previous_end.replace(tzinfo=None)
    assert global_license.get("next_renewal_date") == global_license.get("current_period_end")


def test_renew_refuses_suspended_licenses(global_license_factory):
    global_license = global_license_factory(license_status="SUSPENDED")
    with pytest.raises(ValidationError, match="SUSPENDED"):
        global_license.renew()


# Employee licenses

def test_billing_status_follows_lifecycle(employee_license_factory):
    seat = employee_license_factory()
    assert seat.get("computed_billing_status") == "BILLABLE"

    seat.declare_long_leave("manager_1", "medical", "Surgery")
    assert seat.get("declared_long_leave") is True
    assert seat.get("long_leave_type") == "MEDICAL"
    assert seat.get("computed_billing_status") == "NON_BILLABLE"

    with pytest.raises(ValidationError, match="already declared"):
        seat.declare_long_leave("manager_1", "OTHER")

    seat.end_long_leave()
    assert seat.get("long_leave_type") is None
    assert seat.get("computed_billing_status") == "BILLABLE"

    seat.terminate()
    assert seat.get("contractual_status") == "TERMINATED"
    assert seat.get("deactivation_date") is not None
    assert seat.get("computed_billing_status") == "TERMINATED"
    with pytest.raises(ValidationError):
        seat.declare_long_leave("manager_1", "OTHER")


def test_grace_period_and_suspension(employee_license_factory):
    now = utcnow()
    seat = employee_license_factory(grace_period_start=now - timedelta(days=1), grace_period_end=now + timedelta(days=6))
    assert seat.compute_billing_status(now) == "GRACE_PERIOD"
    assert seat.compute_billing_status(now + timedelta(days=7)) == "BILLABLE"

    seat.set(contractual_status="SUSPENDED")
    assert seat.compute_billing_status(now + timedelta(days=7)) == "NON_BILLABLE"


def test_employee_license_requires_existing_global_license(db_session):
    with pytest.raises(ValidationError, match="global_license '999' does not exist"):
        EmployeeLicense(db_session).set(global_license=999, employee="jdoe", employee_code="E1").save()


# License adjustments

def test_adjustment_recalculation_applies_country_tax(reference_data, license_adjustment_factory, tax_rule_factory):
    tax_rule_factory("FR", "VAT", "0.2")
    tax_rule_factory("FR", "SVC", "0.05", applies_to="services")
    tax_rule_factory("US", "SALES", "0.07")

    adjustment = license_adjustment_factory()
    rules = adjustment.applicable_tax_rules()
    assert [rule.get("tax_type") for rule in rules] == ["VAT"]

    adjustment.compute_amounts(rules).save()
    assert Decimal(str(adjustment.get("tax_amount_usd"))) == Decimal("1.80")
    assert Decimal(str(adjustment.get("total_amount_usd"))) == Decimal("10.80")
    assert Decimal(str(adjustment.get("tax_amount_local"))) == Decimal("1.62")
    assert Decimal(str(adjustment.get("total_amount_local"))) == Decimal("9.72")
    assert adjustment.get("tax_rules_applied")[0]["tax_type"] == "VAT"


def test_tax_exempt_tenant_has_no_applicable_rules(tenant_factory, global_license_factory,
                                                   license_adjustment_factory, tax_rule_factory):
    tax_rule_factory("FR", "VAT", "0.2")
    global_license = global_license_factory(tenant_factory("Exempt Org", tax_exempt=True))
    adjustment = license_adjustment_factory(global_license)
    assert adjustment.applicable_tax_rules() == []


def test_adjustment_rejects_inconsistent_subtotal(license_adjustment_factory):
    with pytest.raises(ValidationError, match="Subtotal calculation"):
        license_adjustment_factory(subtotal_usd=Decimal("12.00"), total_amount_usd=Decimal("12.00"))


# Billing cycles and payments

def test_billing_cycle_completion(billing_cycle_factory):
    cycle = billing_cycle_factory()
    assert cycle.is_open

    cycle.mark_completed()
    assert not cycle.is_open
    assert cycle.get("billing_status") == "COMPLETED"
    assert cycle.get("invoice_generated_at") is not None
    with pytest.raises(ValidationError, match="already completed"):
        cycle.mark_completed()


def test_payment_method_quote_helpers(payment_method_factory):
    method = payment_method_factory(
        "SEPA", supported_currencies=["eur"], processing_fee_rate=Decimal("2.5"),
        min_amount_usd=Decimal("5"), max_amount_usd=Decimal("1000"),
    )
    assert method.get("supported_currencies") == ["EUR"]
    assert method.supports("eur") is True
    assert method.supports("USD") is False
    assert method.accepts_amount("4.99") is False
    assert method.accepts_amount("1000") is True
    assert method.processing_fee("100") == Decimal("2.50")
    assert method.processing_fee("0.10") == Decimal("0.00")


def test_payment_transaction_reference_is_generated(payment_transaction_factory):
    transaction = payment_transaction_factory()
    assert transaction.get("payment_reference").startswith("PAY-")
    assert transaction.get("transaction_status") == "PENDING"


def test_payment_transaction_checks_its_method(payment_method_factory, payment_transaction_factory):
    inactive = payment_method_factory("OLD", active=False)
    with pytest.raises(ValidationError, match="not active"):
        payment_transaction_factory(payment_method=inactive)

    euro_only = payment_method_factory("SEPA", supported_currencies=["EUR"])
    with pytest.raises(ValidationError, match="does not support USD"):
        payment_transaction_factory(payment_method=euro_only)


def test_completing_a_transaction_completes_its_cycle(db_session, billing_cycle_factory, payment_transaction_factory):
    cycle = billing_cycle_factory()
    transaction = payment_transaction_factory(billing_cycle=cycle)
    transaction.mark_completed()
    assert transaction.get("transaction_status") == "COMPLETED"

    reloaded = BillingCycle.load(db_session, guid=cycle.guid)
    assert reloaded.get("billing_status") == "COMPLETED"
    assert reloaded.get("payment_completed_at") is not None


def test_failed_transaction_is_final(payment_transaction_factory):
    transaction = payment_transaction_factory()
    transaction.mark_failed("Card declined")
    assert transaction.get("failure_reason") == "Card declined"
    with pytest.raises(ValidationError, match="already FAILED"):
        transaction.mark_completed()


def test_transaction_for_an_adjustment(license_adjustment_factory, payment_transaction_factory):
    adjustment = license_adjustment_factory()
    transaction = payment_transaction_factory(
        adjustment=adjustment.id, amount="9.00", amount_local=Decimal("8.10"),
        currency_code="EUR", exchange_rate_used=Decimal("0.9"),
    )
    assert transaction.get("billing_cycle") is None
    assert transaction.get("adjustment") == adjustment.id


# Monitoring

def test_fraud_log_resolution(fraud_log_factory):
    log = fraud_log_factory()
    assert log.is_resolved is False
    log.resolve(7, "Reviewed with customer", notes="False positive")
    assert log.is_resolved is True
    assert log.get("resolved_by") == 7
    with pytest.raises(ValidationError, match="already resolved"):
        log.resolve(7, "Again")


def test_unresolved_listing(db_session, fraud_log_factory, tenant_factory):
    tenant = tenant_factory()
    fraud_log_factory(tenant)
    fraud_log_factory(tenant).resolve(1, "Blocked")
    assert len(FraudDetectionLog.list_unresolved(db_session)) == 1


def test_mass_deactivation_risk_must_match_scale(fraud_log_factory):
    affected = [f"EMP{index}" for index in range(60)]
    with pytest.raises(ValidationError, match="inconsistent"):
        fraud_log_factory(
            detection_type="MASS_DEACTIVATION",
            employee_licenses_affected=affected,
            detection_criteria={"deactivation_count": 60, "time_window": "24h"},
            risk_level="LOW",
        )


def test_one_activity_snapshot_per_day(employee_license_factory, activity_factory):
    seat = employee_license_factory()
    activity_factory(seat, monitoring_date=date(2025, 6, 1))
    activity_factory(seat, monitoring_date="2025-06-02")
    with pytest.raises(AlreadyExistsError):
        activity_factory(seat, monitoring_date="2025-06-01")


@pytest.mark.parametrize("week,month,absent,suspicious", [
    (5, 20, 0, False),
    (1, 20, 0, True),
    (5, 20, 14, True),
    (0, 0, 3, False),
])
def test_activity_suspicion(activity_factory, week, month, absent, suspicious):
    snapshot = activity_factory(punch_count_7_days=week, punch_count_30_days=month, consecutive_absent_days=absent)
    assert snapshot.is_suspicious() is suspicious


def test_global_license_lookup_by_tenant(db_session, tenant_factory, global_license_factory):
    tenant = tenant_factory()
    global_license_factory(tenant)
    global_license_factory(tenant)
    assert len(GlobalLicense.list(db_session, {"tenant": tenant.id})) == 2
