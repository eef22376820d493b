"""
Domain-split SQLAlchemy models with an aggregator.

Exposes `Base`, `now_utc` and every ORM class of the billing schema.
"""

from .base import Base, GuidMixin, now_utc, TABLE_AP, TABLE_CONF  # re-export

# Reference data
from .reference import Country, Currency, ExchangeRate, Language, TaxRule
# Tenant scope
from .tenants import Tenant
from .licenses import GlobalLicense, EmployeeLicense, LicenseAdjustment
from .payments import BillingCycle, PaymentMethod, PaymentTransaction
from .monitoring import FraudDetectionLog, ActivityMonitoring

__all__ = [
    # base
    "Base",
    "GuidMixin",
    "now_utc",
    "TABLE_AP",
    "TABLE_CONF",
    # reference
    "Country",
    "Currency",
    "ExchangeRate",
    "Language",
    "TaxRule",
    # tenants/licenses
    "Tenant",
    "GlobalLicense",
    "EmployeeLicense",
    "LicenseAdjustment",
    # payments
    "BillingCycle",
    "PaymentMethod",
    "PaymentTransaction",
    # monitoring
    "FraudDetectionLog",
    "ActivityMonitoring",
]
