"""
Validation and cleanup rules for reference data: countries, currencies,
exchange rates, languages and tax rules.
"""
from __future__ import annotations

import re
from decimal import Decimal

from billing.errors import ValidationError
from .common import (
    COUNTRY_CODE_RE,
    CURRENCY_CODE_RE,
    IDENTIFIER_RE,
    LANGUAGE_CODE_RE,
    TIMEZONE_RE,
    as_utc,
    check_bool,
    check_decimal_range,
    check_int_range,
    check_length,
    check_pattern,
    lower,
    require,
    strip_strings,
    upper,
)

PHONE_PREFIX_RE = re.compile(r"^\+\d{1,5}$")

EXCHANGE_RATE_MIN = Decimal("0.000001")
EXCHANGE_RATE_MAX = Decimal("999999.999999")


# Country

def clean_country(data: dict) -> dict:
    cleaned = dict(data)
    strip_strings(cleaned, "name_en", "name_local", "timezone_default", "phone_prefix")
    upper(cleaned, "code", "default_currency_code")
    lower(cleaned, "default_language_code")
    return cleaned


def validate_country(data: dict) -> None:
    code = require(data, "code", "Country code is required")
    check_pattern(code, COUNTRY_CODE_RE, "Country code must be exactly 2 uppercase letters (ISO 3166-1 alpha-2)")
    name_en = require(data, "name_en", "Country name (English) is required")
    check_length(name_en, 2, 128, "Country name (English) must be between 2 and 128 characters")
    check_length(data.get("name_local"), 2, 128, "Country name (local) must be between 2 and 128 characters")
    currency = require(data, "default_currency_code", "Default currency code is required")
    check_pattern(currency, CURRENCY_CODE_RE, "Default currency code must be exactly 3 uppercase letters (ISO 4217)")
    language = require(data, "default_language_code", "Default language code is required")
    check_pattern(language, LANGUAGE_CODE_RE, "Default language code must be exactly 2 lowercase letters (ISO 639-1)")
    check_pattern(
        data.get("timezone_default"),
        TIMEZONE_RE,
        "Invalid timezone format. Use Continent/City or UTC±offset format",
    )
    prefix = require(data, "phone_prefix", "Phone prefix is required")
    check_pattern(prefix, PHONE_PREFIX_RE, "Phone prefix must start with + followed by 1 to 5 digits")
    check_bool(data.get("active"), "Active must be a boolean value")


# Currency

def clean_currency(data: dict) -> dict:
    cleaned = dict(data)
    strip_strings(cleaned, "name", "symbol")
    upper(cleaned, "code")
    return cleaned


def validate_currency(data: dict) -> None:
    code = require(data, "code", "Currency code is required")
    check_pattern(code, CURRENCY_CODE_RE, "Currency code must be exactly 3 uppercase letters (ISO 4217)")
    name = require(data, "name", "Currency name is required")
    check_length(name, 2, 128, "Currency name must be between 2 and 128 characters")
    symbol = require(data, "symbol", "Currency symbol is required")
    check_length(symbol, 1, 10, "Currency symbol must be between 1 and 10 characters")
    check_int_range(data.get("decimal_places"), 0, 10, "Decimal places must be an integer between 0 and 10")
    check_bool(data.get("active"), "Active must be a boolean value")


# Exchange rate

def clean_exchange_rate(data: dict) -> dict:
    cleaned = dict(data)
    upper(cleaned, "from_currency_code", "to_currency_code")
    return cleaned


def validate_exchange_rate(data: dict) -> None:
    source = require(data, "from_currency_code", "from_currency_code is required")
    check_pattern(source, CURRENCY_CODE_RE, "from_currency_code must be exactly 3 uppercase letters (ISO 4217)")
    target = require(data, "to_currency_code", "to_currency_code is required")
    check_pattern(target, CURRENCY_CODE_RE, "to_currency_code must be exactly 3 uppercase letters (ISO 4217)")
    if source == target:
        raise ValidationError("From and to currency cannot be the same")
    require(data, "exchange_rate", "exchange_rate is required")
    check_decimal_range(
        data["exchange_rate"],
        EXCHANGE_RATE_MIN,
        EXCHANGE_RATE_MAX,
        "exchange_rate must be a positive number with at most 6 decimals (max 999999.999999)",
        places=6,
    )
    check_bool(data.get("current"), "current must be a boolean value")
    require(data, "created_by", "created_by is required")
    check_int_range(data.get("created_by"), 1, None, "created_by must be a positive user id")


# Language

def clean_language(data: dict) -> dict:
    cleaned = dict(data)
    strip_strings(cleaned, "name_en", "name_local")
    lower(cleaned, "code")
    return cleaned


def validate_language(data: dict) -> None:
    code = require(data, "code", "Language code is required")
    check_pattern(code, LANGUAGE_CODE_RE, "Language code must be exactly 2 lowercase letters (ISO 639-1)")
    name_en = require(data, "name_en", "Language name (English) is required")
    check_length(name_en, 2, 50, "Language name (English) must be between 2 and 50 characters")
    name_local = require(data, "name_local", "Language name (local) is required")
    check_length(name_local, 2, 50, "Language name (local) must be between 2 and 50 characters")
    check_bool(data.get("active"), "Active must be a boolean value")


# Tax rule

def clean_tax_rule(data: dict) -> dict:
    cleaned = dict(data)
    strip_strings(cleaned, "tax_type", "tax_name", "applies_to")
    upper(cleaned, "country_code")
    return cleaned


def validate_tax_rule(data: dict) -> None:
    country = require(data, "country_code", "Country code is required")
    check_pattern(country, COUNTRY_CODE_RE, "Country code must be exactly 2 uppercase letters (ISO 3166-1 alpha-2)")
    tax_type = require(data, "tax_type", "Tax type is required")
    check_pattern(tax_type, IDENTIFIER_RE, "Tax type must be alphanumeric with underscores (1-20 characters)")
    tax_name = require(data, "tax_name", "Tax name is required")
    check_length(tax_name, 2, 50, "Tax name must be between 2 and 50 characters")
    if data.get("tax_rate") is None:
        raise ValidationError("Tax rate is required")
    check_decimal_range(
        data["tax_rate"], Decimal("0"), Decimal("1"),
        "Tax rate must be a valid decimal between 0 and 1 (4 decimals max)",
        places=4,
    )
    check_pattern(data.get("applies_to"), IDENTIFIER_RE, "Applies to must be alphanumeric with underscores (1-20 characters)")
    check_bool(data.get("required_tax_number"), "Required tax number must be a boolean value")
    check_bool(data.get("active"), "Active must be a boolean value")
    effective = as_utc(data.get("effective_date"))
    expiry = as_utc(data.get("expiry_date"))
    if effective and expiry and expiry <= effective:
        raise ValidationError("Expiry date must be after effective date")
