"""
Countries API endpoints.

Reference data under ``/master/country``: export, revision, listing,
CRUD and lookups by timezone, default currency and default language.
"""
from fastapi import APIRouter

from billing.api.entity_router import (
    EntityRoutes,
    add_collection_routes,
    add_filter_route,
    add_item_routes,
    filter_flag,
    filter_lower,
    filter_text,
    filter_upper,
)
from billing.db import schemas
from billing.db.validators.common import COUNTRY_CODE_RE
from billing.domain.reference import Country

router = APIRouter(prefix="/master/country", tags=["country"])

ROUTES = EntityRoutes(
    domain=Country,
    entity="country",
    plural="countries",
    create_schema=schemas.CountryCreate,
    update_schema=schemas.CountryUpdate,
    required=(
        ("code", "Country code is required"),
        ("name_en", "English name is required"),
        ("default_currency_code", "Default currency code is required"),
        ("default_language_code", "Default language code is required"),
        ("phone_prefix", "Phone prefix is required"),
    ),
    list_filters={
        "timezone_default": filter_text,
        "default_currency_code": filter_upper,
        "default_language_code": filter_lower,
        "active": filter_flag,
    },
    code_pattern=COUNTRY_CODE_RE,
    code_message="Country code must be exactly 2 letters (ISO 3166-1 alpha-2)",
    code_error="invalid_code",
)

add_collection_routes(router, ROUTES)
# Timezones contain slashes (Europe/Paris)
add_filter_route(router, ROUTES, "/timezone/{value:path}", "timezone_default", echo="timezone")
add_filter_route(router, ROUTES, "/currency/{value}", "default_currency_code", parser=filter_upper, echo="currency_code")
add_filter_route(router, ROUTES, "/language/{value}", "default_language_code", parser=filter_lower, echo="language_code")
add_item_routes(router, ROUTES)
