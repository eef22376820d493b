"""
Field-level helpers shared by the per-entity validation modules.

Every validator works on a plain ``dict`` holding the full row (persisted
values merged with pending changes) and raises
:class:`billing.errors.ValidationError` with a human readable message.
"""
from __future__ import annotations

import re
from datetime import date, datetime, UTC
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional

from billing.errors import ValidationError

# Amount reconciliation tolerance (currency units)
TOLERANCE = Decimal("0.01")

COUNTRY_CODE_RE = re.compile(r"^[A-Z]{2}$")
CURRENCY_CODE_RE = re.compile(r"^[A-Z]{3}$")
LANGUAGE_CODE_RE = re.compile(r"^[a-z]{2}$")
TIMEZONE_RE = re.compile(r"^([A-Z][a-z]+/[A-Za-z_]+|UTC[+-]\d{1,2}(:\d{2})?|UTC)$")
IDENTIFIER_RE = re.compile(r"^[a-zA-Z0-9_]{1,20}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def require(data: Mapping[str, Any], field: str, message: str) -> Any:
    value = data.get(field)
    if is_blank(value):
        raise ValidationError(message)
    return value


def check_pattern(value: Any, pattern: re.Pattern, message: str) -> None:
    if value is None:
        return
    if not isinstance(value, str) or not pattern.fullmatch(value):
        raise ValidationError(message)


def check_length(value: Any, minimum: int, maximum: int, message: str) -> None:
    if value is None:
        return
    if not isinstance(value, str) or not (minimum <= len(value) <= maximum):
        raise ValidationError(message)


def check_choice(value: Any, choices: Iterable[str], message: str) -> None:
    if value is None:
        return
    if value not in tuple(choices):
        raise ValidationError(message)


def check_bool(value: Any, message: str) -> None:
    if value is not None and not isinstance(value, bool):
        raise ValidationError(message)


def check_int_range(value: Any, minimum: Optional[int], maximum: Optional[int], message: str) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(message)
    if minimum is not None and value < minimum:
        raise ValidationError(message)
    if maximum is not None and value > maximum:
        raise ValidationError(message)


def to_decimal(value: Any, message: str) -> Optional[Decimal]:
    """Coerce numbers and numeric strings to Decimal; None passes through."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(message)
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(message)
    if not result.is_finite():
        raise ValidationError(message)
    return result


def check_decimal_range(
    value: Any,
    minimum: Optional[Decimal],
    maximum: Optional[Decimal],
    message: str,
    *,
    places: Optional[int] = None,
) -> Optional[Decimal]:
    amount = to_decimal(value, message)
    if amount is None:
        return None
    if minimum is not None and amount < minimum:
        raise ValidationError(message)
    if maximum is not None and amount > maximum:
        raise ValidationError(message)
    if places is not None and -amount.as_tuple().exponent > places:
        raise ValidationError(message)
    return amount


def as_utc(value: Any) -> Optional[datetime]:
    """Return an aware UTC datetime; naive values are taken as UTC."""
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(f"Invalid datetime value: {value!r}")
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    raise ValidationError(f"Invalid datetime value: {value!r}")


def close_enough(left: Decimal, right: Decimal, tolerance: Decimal = TOLERANCE) -> bool:
    return abs(left - right) <= tolerance


def check_tax_rules(value: Any, field: str = "tax_rules_applied", *, bounded: bool = False,
                    non_empty: bool = False) -> None:
    """A tax rules snapshot is a list of objects each carrying a numeric ``rate``."""
    if value is None:
        return
    if not isinstance(value, list):
        raise ValidationError(f"{field} must be an array of tax rule objects")
    if non_empty and not value:
        raise ValidationError(f"{field} must contain at least one tax rule when set")
    for index, rule in enumerate(value):
        if not isinstance(rule, dict) or "rate" not in rule:
            raise ValidationError(f"{field}[{index}] must be an object with a numeric rate")
        rate = rule["rate"]
        if isinstance(rate, bool) or not isinstance(rate, (int, float, Decimal)):
            raise ValidationError(f"{field}[{index}].rate must be a number")
        if bounded and not (0 <= rate <= 1):
            raise ValidationError(f"{field}[{index}].rate must be between 0 and 1")


def strip_strings(data: dict, *fields: str) -> None:
    for field in fields:
        value = data.get(field)
        if isinstance(value, str):
            data[field] = value.strip()


def upper(data: dict, *fields: str) -> None:
    for field in fields:
        value = data.get(field)
        if isinstance(value, str):
            data[field] = value.strip().upper()


def lower(data: dict, *fields: str) -> None:
    for field in fields:
        value = data.get(field)
        if isinstance(value, str):
            data[field] = value.strip().lower()
