import os

# Force the in-memory sqlite engine before billing.db.database is imported
os.environ.setdefault("PYTEST_RUNNING", "1")
os.environ.setdefault("NODE_ENV", "test")

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from billing.api.main import app
from billing.db import models
from billing.db.database import SessionLocal, engine, ensure_sqlite_schema
from billing.db.registry import TableInitializer
from billing.domain.licenses import EmployeeLicense, GlobalLicense, LicenseAdjustment
from billing.domain.monitoring import ActivityMonitoring, FraudDetectionLog
from billing.domain.payments import BillingCycle, PaymentMethod, PaymentTransaction
from billing.domain.reference import Country, Currency, ExchangeRate, Language, TaxRule
from billing.domain.tenants import Tenant
from billing.utils.feature_flags import refresh_feature_flag_cache

_FLAG_ENV = ("FEATURE_TENANT_PROVISIONING_ENABLED", "FEATURE_INVERSE_RATE_LOOKUP_ENABLED")

ensure_sqlite_schema()
TableInitializer.initialize(engine)


def utcnow():
    return datetime.now(timezone.utc)


@pytest.fixture(autouse=True)
def clean_data():
    """Delete every row between tests without dropping the schema."""
    with engine.begin() as connection:
        for table in reversed(models.Base.metadata.sorted_tables):
            connection.execute(table.delete())
    yield


@pytest.fixture(autouse=True)
def reset_feature_flags(monkeypatch):
    for env_name in _FLAG_ENV:
        monkeypatch.delenv(env_name, raising=False)
    refresh_feature_flag_cache()
    yield
    refresh_feature_flag_cache()


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def db(db_session):
    return db_session


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


# Factories: every row goes through its domain object so GUIDs and rules apply

@pytest.fixture
def currency_factory(db_session: Session):
    def _create(code: str = "USD", name: str = None, symbol: str = "$", **values):
        return Currency(db_session).set(code=code, name=name or f"{code} currency", symbol=symbol, **values).save()
    return _create


@pytest.fixture
def language_factory(db_session: Session):
    def _create(code: str = "en", name_en: str = "English", name_local: str = None, **values):
        return Language(db_session).set(code=code, name_en=name_en, name_local=name_local or name_en, **values).save()
    return _create


@pytest.fixture
def country_factory(db_session: Session):
    def _create(code: str = "FR", name_en: str = "France", currency: str = "EUR", language: str = "fr",
                phone_prefix: str = "+33", **values):
        return Country(db_session).set(
            code=code,
            name_en=name_en,
            default_currency_code=currency,
            default_language_code=language,
            phone_prefix=phone_prefix,
            **values,
        ).save()
    return _create


@pytest.fixture
def reference_data(currency_factory, language_factory, country_factory):
    """USD/EUR, English/French, France and the United States."""
    currency_factory("USD", "US Dollar", "$")
    currency_factory("EUR", "Euro", "€")
    language_factory("en", "English")
    language_factory("fr", "French", "Français")
    country_factory("FR", "France", "EUR", "fr", "+33", timezone_default="Europe/Paris")
    country_factory("US", "United States", "USD", "en", "+1", timezone_default="America/New_York")


@pytest.fixture
def exchange_rate_factory(db_session: Session):
    def _create(source: str = "USD", target: str = "EUR", rate="0.9", **values):
        values.setdefault("created_by", 1)
        return ExchangeRate(db_session).set(
            from_currency_code=source, to_currency_code=target, exchange_rate=Decimal(str(rate)), **values
        ).save()
    return _create


@pytest.fixture
def tax_rule_factory(db_session: Session):
    def _create(country: str = "FR", tax_type: str = "VAT", rate="0.2", **values):
        values.setdefault("tax_name", f"{tax_type} {country}")
        return TaxRule(db_session).set(
            country_code=country, tax_type=tax_type, tax_rate=Decimal(str(rate)), **values
        ).save()
    return _create


@pytest.fixture
def tenant_factory(db_session: Session, reference_data):
    def _create(name: str = "Acme Corp", **values):
        values.setdefault("country_code", "FR")
        values.setdefault("primary_currency_code", "EUR")
        values.setdefault("preferred_language_code", "fr")
        values.setdefault("billing_email", "billing@acme.example")
        return Tenant(db_session).set(name=name, **values).save()
    return _create


@pytest.fixture
def global_license_factory(db_session: Session, tenant_factory):
    def _create(tenant=None, **values):
        tenant = tenant or tenant_factory()
        now = utcnow()
        values.setdefault("current_period_start", now - timedelta(days=1))
        values.setdefault("current_period_end", now + timedelta(days=29))
        values.setdefault("next_renewal_date", values["current_period_end"])
        return GlobalLicense(db_session).set(tenant=tenant.id, **values).save()
    return _create


@pytest.fixture
def employee_license_factory(db_session: Session, global_license_factory):
    def _create(global_license=None, code: str = "EMP001", **values):
        global_license = global_license or global_license_factory()
        values.setdefault("employee", f"employee_{code.lower()}")
        return EmployeeLicense(db_session).set(global_license=global_license.id, employee_code=code, **values).save()
    return _create


@pytest.fixture
def billing_cycle_factory(db_session: Session, global_license_factory):
    def _create(global_license=None, amount="30.00", **values):
        global_license = global_license or global_license_factory()
        now = utcnow()
        amount = Decimal(amount)
        defaults = {
            "period_start": now - timedelta(days=30),
            "period_end": now - timedelta(days=1),
            "payment_due_date": now + timedelta(days=14),
            "base_employee_count": 10,
            "final_employee_count": 10,
            "base_amount_usd": amount,
            "subtotal_usd": amount,
            "total_amount_usd": amount,
            "billing_currency_code": "USD",
            "exchange_rate_used": Decimal("1"),
            "base_amount_local": amount,
            "subtotal_local": amount,
            "total_amount_local": amount,
        }
        defaults.update(values)
        return BillingCycle(db_session).set(global_license=global_license.id, **defaults).save()
    return _create


@pytest.fixture
def license_adjustment_factory(db_session: Session, global_license_factory):
    def _create(global_license=None, **values):
        global_license = global_license or global_license_factory()
        # 2 seats * 1.5 months * 3.00 USD, billed in EUR at 0.9
        defaults = {
            "employees_added_count": 2,
            "months_remaining": Decimal("1.5"),
            "price_per_employee_usd": Decimal("3.00"),
            "subtotal_usd": Decimal("9.00"),
            "total_amount_usd": Decimal("9.00"),
            "billing_currency_code": "EUR",
            "exchange_rate_used": Decimal("0.9"),
            "subtotal_local": Decimal("8.10"),
            "total_amount_local": Decimal("8.10"),
        }
        defaults.update(values)
        return LicenseAdjustment(db_session).set(global_license=global_license.id, **defaults).save()
    return _create


@pytest.fixture
def payment_method_factory(db_session: Session):
    def _create(code: str = "CARD", **values):
        values.setdefault("name", f"{code.title()} payments")
        values.setdefault("method_type", "CARD")
        return PaymentMethod(db_session).set(code=code, **values).save()
    return _create


@pytest.fixture
def payment_transaction_factory(db_session: Session, billing_cycle_factory, payment_method_factory):
    def _create(billing_cycle=None, payment_method=None, amount="30.00", **values):
        if "adjustment" not in values:
            billing_cycle = billing_cycle or billing_cycle_factory(amount=amount)
            values["billing_cycle"] = billing_cycle.id
        payment_method = payment_method or payment_method_factory()
        values.setdefault("amount_usd", Decimal(amount))
        values.setdefault("amount_local", Decimal(amount))
        values.setdefault("currency_code", "USD")
        values.setdefault("exchange_rate_used", Decimal("1"))
        return PaymentTransaction(db_session).set(payment_method=payment_method.id, **values).save()
    return _create


@pytest.fixture
def fraud_log_factory(db_session: Session, tenant_factory):
    def _create(tenant=None, **values):
        tenant = tenant or tenant_factory()
        values.setdefault("detection_type", "UNUSUAL_ACTIVITY")
        values.setdefault("employee_licenses_affected", ["EMP001"])
        values.setdefault("detection_criteria", {"activity_type": "login", "frequency_deviation": 3.5})
        values.setdefault("risk_level", "MEDIUM")
        return FraudDetectionLog(db_session).set(tenant=tenant.id, **values).save()
    return _create


@pytest.fixture
def activity_factory(db_session: Session, employee_license_factory):
    def _create(employee_license=None, **values):
        employee_license = employee_license or employee_license_factory()
        values.setdefault("monitoring_date", utcnow().date())
        values.setdefault("punch_count_7_days", 5)
        values.setdefault("punch_count_30_days", 20)
        values.setdefault("status_at_date", "ACTIVE")
        return ActivityMonitoring(db_session).set(employee_license=employee_license.id, **values).save()
    return _create
