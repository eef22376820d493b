"""Reference data: countries, currencies, exchange rates, languages, tax rules."""
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from billing.db import schemas
from billing.db.models import TABLE_CONF
from billing.db.validators import reference as rules
from billing.errors import ValidationError
from .base import DomainObject

COUNTRY_TABLE = f"{TABLE_CONF}_country"
CURRENCY_TABLE = f"{TABLE_CONF}_currency"
EXCHANGE_RATE_TABLE = f"{TABLE_CONF}_exchange_rate"
LANGUAGE_TABLE = f"{TABLE_CONF}_language"
TAX_RULE_TABLE = f"{TABLE_CONF}_tax_rule"


class Country(DomainObject):
    table = COUNTRY_TABLE
    label = "Country"
    schema = schemas.Country
    name_field = "name_en"
    clean = staticmethod(rules.clean_country)
    validate = staticmethod(rules.validate_country)

    @classmethod
    def key_variants(cls, value):
        return (value.upper(),)


class Currency(DomainObject):
    table = CURRENCY_TABLE
    label = "Currency"
    schema = schemas.Currency
    clean = staticmethod(rules.clean_currency)
    validate = staticmethod(rules.validate_currency)

    @classmethod
    def key_variants(cls, value):
        return (value.upper(),)


class Language(DomainObject):
    table = LANGUAGE_TABLE
    label = "Language"
    schema = schemas.Language
    name_field = "name_en"
    clean = staticmethod(rules.clean_language)
    validate = staticmethod(rules.validate_language)

    @classmethod
    def key_variants(cls, value):
        return (value.lower(),)


class ExchangeRate(DomainObject):
    table = EXCHANGE_RATE_TABLE
    label = "Exchange rate"
    schema = schemas.ExchangeRate
    key_field = None
    name_field = None
    lookup_fields = ()
    unique_fields = ()
    active_field = None
    references = (
        ("from_currency_code", CURRENCY_TABLE, "code"),
        ("to_currency_code", CURRENCY_TABLE, "code"),
    )
    clean = staticmethod(rules.clean_exchange_rate)
    validate = staticmethod(rules.validate_exchange_rate)

    @classmethod
    def export_conditions(cls):
        return {"current": True}

    def summary(self) -> dict:
        return {"guid": self.guid, "currency_pair": self.currency_pair}

    @property
    def currency_pair(self) -> str:
        return f"{self.get('from_currency_code')}/{self.get('to_currency_code')}"

    @property
    def rate(self) -> Decimal:
        return Decimal(str(self.get("exchange_rate")))

    def inverse_rate(self) -> Decimal:
        return (Decimal(1) / self.rate).quantize(Decimal("0.000001"), rounding=ROUND_HALF_UP)

    def convert(self, amount, *, inverse: bool = False) -> Decimal:
        rate = self.inverse_rate() if inverse else self.rate
        return (Decimal(str(amount)) * rate).quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)

    @classmethod
    def list_by_pair(cls, db: Session, source: str, target: str, *, current_only: bool = False, offset=None, limit=None):
        conditions = {"from_currency_code": source.upper(), "to_currency_code": target.upper()}
        if current_only:
            conditions["current"] = True
        return cls.list(db, conditions, offset=offset, limit=limit)

    @classmethod
    def list_by_currency(cls, db: Session, code: str, *, current_only: bool = False, offset=None, limit=None):
        model = cls.model()
        code = code.upper()
        criteria = [or_(model.from_currency_code == code, model.to_currency_code == code)]
        return cls.list(db, {"current": True} if current_only else None, criteria=criteria, offset=offset, limit=limit)

    @classmethod
    def find_current(cls, db: Session, source: str, target: str) -> Optional["ExchangeRate"]:
        """Latest current rate for the pair (highest id wins)."""
        model = cls.model()
        row = (
            db.query(model)
            .filter(
                model.from_currency_code == source.upper(),
                model.to_currency_code == target.upper(),
                model.current.is_(True),
            )
            .order_by(model.id.desc())
            .first()
        )
        return cls._wrap(db, row)


class TaxRule(DomainObject):
    table = TAX_RULE_TABLE
    label = "Tax rule"
    schema = schemas.TaxRule
    key_field = "tax_type"
    name_field = "tax_name"
    lookup_fields = ()
    unique_fields = ()
    references = (("country_code", COUNTRY_TABLE, "code"),)
    clean = staticmethod(rules.clean_tax_rule)
    validate = staticmethod(rules.validate_tax_rule)

    def summary(self) -> dict:
        return {
            "guid": self.guid,
            "country_code": self.get("country_code"),
            "tax_type": self.get("tax_type"),
            "tax_name": self.get("tax_name"),
        }

    def tax_amount(self, amount) -> Decimal:
        if not self.get("active"):
            raise ValidationError(f"Tax rule {self.guid} is not active")
        rate = Decimal(str(self.get("tax_rate")))
        return (Decimal(str(amount)) * rate).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    def as_applied(self) -> dict:
        """Snapshot stored in ``tax_rules_applied`` columns."""
        return {
            "guid": self.guid,
            "country_code": self.get("country_code"),
            "tax_type": self.get("tax_type"),
            "tax_name": self.get("tax_name"),
            "rate": float(self.get("tax_rate")),
        }
