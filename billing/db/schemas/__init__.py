"""
Domain-split Pydantic schemas with an aggregator.

``<Entity>Create`` / ``<Entity>Update`` are request bodies, ``<Entity>``
is the serialized row returned by the API.
"""

from .common import Payload, Record
from .reference import (
    CountryCreate,
    CountryUpdate,
    Country,
    CurrencyCreate,
    CurrencyUpdate,
    Currency,
    ExchangeRateCreate,
    ExchangeRateUpdate,
    ExchangeRate,
    LanguageCreate,
    LanguageUpdate,
    Language,
    TaxRuleCreate,
    TaxRuleUpdate,
    TaxRule,
)
from .tenants import TenantCreate, TenantUpdate, Tenant
from .licenses import (
    GlobalLicenseCreate,
    GlobalLicenseUpdate,
    GlobalLicense,
    GlobalLicenseRenewal,
    EmployeeLicenseCreate,
    EmployeeLicenseUpdate,
    EmployeeLicense,
    LongLeaveDeclaration,
    LicenseAdjustmentCreate,
    LicenseAdjustmentUpdate,
    LicenseAdjustment,
)
from .payments import (
    BillingCycleCreate,
    BillingCycleUpdate,
    BillingCycle,
    PaymentMethodCreate,
    PaymentMethodUpdate,
    PaymentMethod,
    PaymentTransactionCreate,
    PaymentTransactionUpdate,
    PaymentTransaction,
    PaymentFailure,
)
from .monitoring import (
    FraudDetectionLogCreate,
    FraudDetectionLogUpdate,
    FraudDetectionLog,
    FraudResolution,
    ActivityMonitoringCreate,
    ActivityMonitoringUpdate,
    ActivityMonitoring,
)
