"""Tenant validation and cleanup."""
from __future__ import annotations

import re
import unicodedata

from billing.errors import ValidationError
from ..enums import TenantStatus, values
from .common import (
    COUNTRY_CODE_RE,
    CURRENCY_CODE_RE,
    EMAIL_RE,
    LANGUAGE_CODE_RE,
    TIMEZONE_RE,
    check_bool,
    check_choice,
    check_length,
    check_pattern,
    lower,
    require,
    strip_strings,
    upper,
)

TAX_NUMBER_RE = re.compile(r"^[A-Za-z0-9_-]{2,50}$")
PHONE_RE = re.compile(r"^[0-9+\-\s()]+$")
SUBDOMAIN_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
DATABASE_IDENTIFIER_RE = re.compile(r"^[a-z0-9_]+(?:-[a-z0-9_]+)*$")

PROVISIONING_FIELDS = ("key", "subdomain", "database_name", "database_username", "database_password")


def slugify_key(name: str) -> str:
    """Derive a tenant key from its display name (``"Acme Corp."`` -> ``"acme-corp"``)."""
    ascii_name = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_name.lower()).strip("-")
    return slug[:100]


def check_password_strength(password) -> None:
    """Plain-text database password rules, applied before hashing."""
    if not isinstance(password, str) or not (8 <= len(password) <= 255):
        raise ValidationError("Database password must be between 8 and 255 characters")
    if not re.search(r"[a-z]", password) or not re.search(r"[A-Z]", password) or not re.search(r"\d", password):
        raise ValidationError("Database password must contain a lowercase letter, an uppercase letter and a digit")


def clean_tenant(data: dict) -> dict:
    cleaned = dict(data)
    strip_strings(cleaned, "name", "key", "timezone", "tax_number", "billing_address", "billing_phone")
    upper(cleaned, "country_code", "primary_currency_code", "status")
    lower(cleaned, "preferred_language_code", "billing_email", "subdomain", "database_name", "database_username")
    return cleaned


def validate_tenant(data: dict, *, provisioning: bool = False) -> None:
    """Validate a full tenant row.

    ``database_password`` is expected to be hashed already and is not
    inspected here; see :func:`check_password_strength`.
    """
    name = require(data, "name", "Tenant name is required")
    check_length(name, 2, 255, "Tenant name must be between 2 and 255 characters")
    key = require(data, "key", "Tenant key is required")
    check_length(key, 2, 100, "Tenant key must be between 2 and 100 characters")

    country = require(data, "country_code", "Country code is required")
    check_pattern(country, COUNTRY_CODE_RE, "Country code must be exactly 2 uppercase letters (ISO 3166-1 alpha-2)")
    currency = require(data, "primary_currency_code", "Primary currency code is required")
    check_pattern(currency, CURRENCY_CODE_RE, "Primary currency code must be exactly 3 uppercase letters (ISO 4217)")
    check_pattern(
        data.get("preferred_language_code"),
        LANGUAGE_CODE_RE,
        "Preferred language code must be exactly 2 lowercase letters (ISO 639-1)",
    )
    check_pattern(data.get("timezone"), TIMEZONE_RE, "Invalid timezone format. Use Continent/City or UTC±offset format")
    check_pattern(data.get("tax_number"), TAX_NUMBER_RE, "Tax number must be 2-50 letters, digits, dashes or underscores")
    check_bool(data.get("tax_exempt"), "Tax exempt must be a boolean value")

    email = require(data, "billing_email", "Billing email is required")
    check_length(email, 5, 255, "Billing email must be between 5 and 255 characters")
    check_pattern(email, EMAIL_RE, "Billing email must be a valid email address")

    phone = data.get("billing_phone")
    if phone is not None:
        check_length(phone, 2, 20, "Billing phone must be between 2 and 20 characters")
        check_pattern(phone, PHONE_RE, "Billing phone may only contain digits, spaces, +, - and parentheses")
        if "+" not in phone:
            raise ValidationError("Billing phone must include the international prefix (+)")

    check_choice(data.get("status"), values(TenantStatus), "Status must be one of ACTIVE, SUSPENDED, TERMINATED")

    check_pattern(data.get("subdomain"), SUBDOMAIN_RE, "Subdomain must be lowercase letters and digits separated by dashes")
    check_length(data.get("subdomain"), 1, 255, "Subdomain must be at most 255 characters")
    for field in ("database_name", "database_username"):
        check_pattern(data.get(field), DATABASE_IDENTIFIER_RE, f"{field} must be lowercase letters, digits, underscores or dashes")
        check_length(data.get(field), 1, 128, f"{field} must be at most 128 characters")

    if provisioning:
        for field in PROVISIONING_FIELDS:
            require(data, field, f"{field} is required when tenant provisioning is enabled")
