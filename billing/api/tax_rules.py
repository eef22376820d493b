"""
Tax rules API endpoints (``/master/tax-rule``).

The ``/search/*`` lookups answer 404 ``tax_rules_not_found`` when nothing
matches, unlike the other listings which return an empty page.
"""
from fastapi import APIRouter

from billing.api.entity_router import (
    EntityRoutes,
    add_collection_routes,
    add_filter_route,
    add_item_routes,
    filter_flag,
    filter_text,
    filter_upper,
)
from billing.db import schemas
from billing.db.validators.common import COUNTRY_CODE_RE, IDENTIFIER_RE
from billing.domain.reference import TaxRule

router = APIRouter(prefix="/master/tax-rule", tags=["tax-rule"])

ROUTES = EntityRoutes(
    domain=TaxRule,
    entity="tax_rule",
    plural="tax_rules",
    create_schema=schemas.TaxRuleCreate,
    update_schema=schemas.TaxRuleUpdate,
    required=(
        ("country_code", "Country code is required"),
        ("tax_type", "Tax type is required"),
        ("tax_name", "Tax name is required"),
        ("tax_rate", "Tax rate is required"),
        ("applies_to", "Applies-to is required"),
    ),
    list_filters={
        "country_code": filter_upper,
        "tax_type": filter_text,
        "applies_to": filter_text,
        "active": filter_flag,
    },
)

NOT_FOUND = "tax_rules_not_found"


def country_code(raw: str) -> str:
    code = raw.strip().upper()
    if not COUNTRY_CODE_RE.fullmatch(code):
        raise ValueError(raw)
    return code


def identifier(raw: str) -> str:
    value = raw.strip()
    if not IDENTIFIER_RE.fullmatch(value):
        raise ValueError(raw)
    return value


add_collection_routes(router, ROUTES)
add_filter_route(router, ROUTES, "/search/country/{value}", "country_code", parser=country_code,
                 invalid_code="invalid_country_code_format", empty_code=NOT_FOUND)
add_filter_route(router, ROUTES, "/search/type/{value}", "tax_type", parser=identifier,
                 invalid_code="invalid_tax_type_format", empty_code=NOT_FOUND)
add_filter_route(router, ROUTES, "/search/applies-to/{value}", "applies_to", parser=identifier,
                 invalid_code="invalid_applies_to_format", empty_code=NOT_FOUND)
add_filter_route(router, ROUTES, "/search/tax-number-required/{value}", "required_tax_number",
                 parser=filter_flag, empty_code=NOT_FOUND)
add_item_routes(router, ROUTES)
