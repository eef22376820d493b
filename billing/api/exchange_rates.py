"""
Exchange rates API endpoints (``/master/exchange-rate``).

Besides the standard routes: lookups by pair and by currency, the
current/historical split and amount conversion with the current rate.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from billing.api.entity_router import (
    EntityRoutes,
    add_collection_routes,
    add_filter_route,
    add_item_routes,
    filter_flag,
    filter_upper,
    parse_amount,
)
from billing.api.pagination import Pagination, get_pagination, parse_flag
from billing.api.responses import ApiError, bad_request, success
from billing.db import schemas
from billing.db.database import get_db
from billing.db.validators.common import CURRENCY_CODE_RE
from billing.domain.reference import ExchangeRate
from billing.utils.feature_flags import inverse_rate_lookup_enabled

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/master/exchange-rate", tags=["exchange-rate"])

ROUTES = EntityRoutes(
    domain=ExchangeRate,
    entity="exchange_rate",
    plural="exchange_rates",
    create_schema=schemas.ExchangeRateCreate,
    update_schema=schemas.ExchangeRateUpdate,
    required=(
        ("from_currency_code", "Source currency code is required"),
        ("to_currency_code", "Target currency code is required"),
        ("exchange_rate", "Exchange rate is required"),
        ("created_by", "Creator is required"),
    ),
    list_filters={
        "from_currency_code": filter_upper,
        "to_currency_code": filter_upper,
        "current": filter_flag,
    },
    has_active=False,
)

FOUR_PLACES = Decimal("0.0001")


def _currency_code(raw: str) -> str:
    code = raw.strip().upper()
    if not CURRENCY_CODE_RE.fullmatch(code):
        raise bad_request("invalid_currency_code", "Currency codes must be exactly 3 letters (ISO 4217)")
    return code


def _pair(source: str, target: str):
    source, target = _currency_code(source), _currency_code(target)
    if source == target:
        raise bad_request("same_currency_pair", "From and to currency cannot be the same")
    return source, target


add_collection_routes(router, ROUTES)


@router.get("/last-modification")
def last_modification(db: Session = Depends(get_db)):
    modified = ExchangeRate.last_modification(db)
    return success({
        "last_modification": modified.isoformat() if modified else None,
        "checked_at": datetime.now(timezone.utc).isoformat(),
    })


add_filter_route(router, ROUTES, "/current/{value}", "current", parser=filter_flag)


@router.get("/pair/{from_currency}/{to_currency}")
def rates_for_pair(
    from_currency: str,
    to_currency: str,
    current_only: str = "",
    db: Session = Depends(get_db),
    page: Pagination = Depends(get_pagination),
):
    source, target = _pair(from_currency, to_currency)
    only_current = parse_flag(current_only)
    items = ExchangeRate.list_by_pair(db, source, target, current_only=only_current,
                                      offset=page.offset, limit=page.limit)
    return success(ROUTES.listing(items, page, currency_pair=f"{source}/{target}", current_only=only_current))


@router.get("/currency/{currency_code}")
def rates_for_currency(
    currency_code: str,
    current_only: str = "",
    db: Session = Depends(get_db),
    page: Pagination = Depends(get_pagination),
):
    code = _currency_code(currency_code)
    only_current = parse_flag(current_only)
    items = ExchangeRate.list_by_currency(db, code, current_only=only_current, offset=page.offset, limit=page.limit)
    return success(ROUTES.listing(items, page, currency_code=code, current_only=only_current))


@router.get("/convert/{amount}/{from_currency}/{to_currency}")
def convert(amount: str, from_currency: str, to_currency: str, db: Session = Depends(get_db)):
    value = parse_amount(amount)
    source, target = _currency_code(from_currency), _currency_code(to_currency)

    if source == target:
        return success({
            "from_currency": source,
            "to_currency": target,
            "original_amount": value,
            "converted_amount": value,
            "exchange_rate": 1,
            "currency_pair": f"{source}/{target}",
            "conversion_note": "Same currency conversion",
        })

    inverse = False
    rate = ExchangeRate.find_current(db, source, target)
    if rate is None and inverse_rate_lookup_enabled():
        rate = ExchangeRate.find_current(db, target, source)
        inverse = rate is not None
    if rate is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "exchange_rate_not_found",
                       f"Current exchange rate not found for pair {source}/{target}")
    if inverse:
        logger.info("exchange_rate_inverse_used: pair=%s/%s rate_guid=%s", source, target, rate.guid)

    return success({
        "from_currency": source,
        "to_currency": target,
        "original_amount": value,
        "converted_amount": rate.convert(value, inverse=inverse).quantize(FOUR_PLACES, rounding=ROUND_HALF_UP),
        "exchange_rate": rate.inverse_rate() if inverse else rate.rate,
        "currency_pair": rate.currency_pair,
        "inverse": inverse,
        "rate_guid": rate.guid,
        "conversion_timestamp": datetime.now(timezone.utc).isoformat(),
    })


add_item_routes(router, ROUTES)
