from datetime import datetime
from decimal import Decimal
from typing import Optional

from .common import Payload, Record


class CountryBase(Payload):
    code: Optional[str] = None
    name_en: Optional[str] = None
    name_local: Optional[str] = None
    default_currency_code: Optional[str] = None
    default_language_code: Optional[str] = None
    timezone_default: Optional[str] = None
    phone_prefix: Optional[str] = None
    active: Optional[bool] = None


class CountryCreate(CountryBase):
    pass


class CountryUpdate(CountryBase):
    pass


class Country(Record):
    code: str
    name_en: str
    name_local: Optional[str] = None
    default_currency_code: str
    default_language_code: str
    timezone_default: str
    phone_prefix: str
    active: bool


class CurrencyBase(Payload):
    code: Optional[str] = None
    name: Optional[str] = None
    symbol: Optional[str] = None
    decimal_places: Optional[int] = None
    active: Optional[bool] = None


class CurrencyCreate(CurrencyBase):
    pass


class CurrencyUpdate(CurrencyBase):
    pass


class Currency(Record):
    code: str
    name: str
    symbol: str
    decimal_places: int
    active: bool


class ExchangeRateBase(Payload):
    from_currency_code: Optional[str] = None
    to_currency_code: Optional[str] = None
    exchange_rate: Optional[Decimal] = None
    current: Optional[bool] = None
    created_by: Optional[int] = None


class ExchangeRateCreate(ExchangeRateBase):
    pass


class ExchangeRateUpdate(ExchangeRateBase):
    pass


class ExchangeRate(Record):
    from_currency_code: str
    to_currency_code: str
    exchange_rate: float
    current: bool
    created_by: int


class LanguageBase(Payload):
    code: Optional[str] = None
    name_en: Optional[str] = None
    name_local: Optional[str] = None
    active: Optional[bool] = None


class LanguageCreate(LanguageBase):
    pass


class LanguageUpdate(LanguageBase):
    pass


class Language(Record):
    code: str
    name_en: str
    name_local: str
    active: bool


class TaxRuleBase(Payload):
    country_code: Optional[str] = None
    tax_type: Optional[str] = None
    tax_name: Optional[str] = None
    tax_rate: Optional[Decimal] = None
    applies_to: Optional[str] = None
    required_tax_number: Optional[bool] = None
    effective_date: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    active: Optional[bool] = None


class TaxRuleCreate(TaxRuleBase):
    pass


class TaxRuleUpdate(TaxRuleBase):
    pass


class TaxRule(Record):
    country_code: str
    tax_type: str
    tax_name: str
    tax_rate: float
    applies_to: str
    required_tax_number: bool
    effective_date: datetime
    expiry_date: Optional[datetime] = None
    active: bool
