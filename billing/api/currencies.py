"""Currencies API endpoints (``/master/currency``)."""
from fastapi import APIRouter

from billing.api.entity_router import EntityRoutes, add_collection_routes, add_item_routes, filter_flag
from billing.db import schemas
from billing.db.validators.common import CURRENCY_CODE_RE
from billing.domain.reference import Currency

router = APIRouter(prefix="/master/currency", tags=["currency"])

ROUTES = EntityRoutes(
    domain=Currency,
    entity="currency",
    plural="currencies",
    create_schema=schemas.CurrencyCreate,
    update_schema=schemas.CurrencyUpdate,
    required=(
        ("code", "Currency code is required"),
        ("name", "Currency name is required"),
        ("symbol", "Currency symbol is required"),
    ),
    list_filters={"active": filter_flag},
    code_pattern=CURRENCY_CODE_RE,
    code_message="Currency code must be exactly 3 letters (ISO 4217)",
    code_error="invalid_code",
)

add_collection_routes(router, ROUTES)
add_item_routes(router, ROUTES)
