"""
Tenants API endpoints.

Listing by locale (country, currency, language, timezone), by tax
exemption and by status, plus single lookups by key and subdomain.
``/{identifier}`` tries id, GUID, key then subdomain.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

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
from billing.api.responses import not_found, success
from billing.db import schemas
from billing.db.database import get_db
from billing.db.enums import TenantStatus, values
from billing.domain.tenants import Tenant

router = APIRouter(prefix="/tenant", tags=["tenant"])

ROUTES = EntityRoutes(
    domain=Tenant,
    entity="tenant",
    plural="tenants",
    create_schema=schemas.TenantCreate,
    update_schema=schemas.TenantUpdate,
    required=(
        ("name", "Tenant name is required"),
        ("country_code", "Country code is required"),
        ("primary_currency_code", "Primary currency code is required"),
        ("billing_email", "Billing email is required"),
    ),
    list_filters={
        "status": filter_upper,
        "country_code": filter_upper,
        "primary_currency_code": filter_upper,
        "preferred_language_code": filter_lower,
        "timezone": filter_text,
        "tax_exempt": filter_flag,
    },
    has_active=False,
)

add_collection_routes(router, ROUTES)
add_filter_route(router, ROUTES, "/country/{value}", "country_code", parser=filter_upper)
add_filter_route(router, ROUTES, "/currency/{value}", "primary_currency_code", parser=filter_upper,
                 echo="currency_code")
add_filter_route(router, ROUTES, "/language/{value}", "preferred_language_code", parser=filter_lower,
                 echo="language_code")
add_filter_route(router, ROUTES, "/timezone/{value:path}", "timezone")
add_filter_route(router, ROUTES, "/tax-exempt/{value}", "tax_exempt", parser=filter_flag)
add_filter_route(router, ROUTES, "/status/{value}", "status", parser=filter_upper,
                 choices=values(TenantStatus), invalid_code="invalid_status")


@router.get("/search/key/{key}")
def tenant_by_key(key: str, db: Session = Depends(get_db)):
    tenant = Tenant.load(db, key=key.strip())
    if tenant is None:
        raise not_found("tenant", f"Tenant with key '{key}' not found")
    return success(tenant.to_json())


@router.get("/search/subdomain/{subdomain}")
def tenant_by_subdomain(subdomain: str, db: Session = Depends(get_db)):
    tenant = Tenant.find_by_subdomain(db, subdomain.strip().lower())
    if tenant is None:
        raise not_found("tenant", f"Tenant with subdomain '{subdomain}' not found")
    return success(tenant.to_json())


add_item_routes(router, ROUTES)
