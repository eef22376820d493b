"""
License adjustments API endpoints.

Mid-period seat additions. ``POST /{guid}/recalculate`` recomputes every
amount from the seat count, remaining months, unit price, exchange rate
and the tax rules that apply to the tenant.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from billing.api.entity_router import (
    EntityRoutes,
    add_collection_routes,
    add_filter_route,
    add_item_routes,
    apply_transition,
    filter_id,
    filter_upper,
)
from billing.db import schemas
from billing.db.database import get_db
from billing.db.enums import PaymentStatus, values
from billing.domain.licenses import LicenseAdjustment

router = APIRouter(prefix="/license-adjustment", tags=["license-adjustment"])

ROUTES = EntityRoutes(
    domain=LicenseAdjustment,
    entity="license_adjustment",
    plural="license_adjustments",
    create_schema=schemas.LicenseAdjustmentCreate,
    update_schema=schemas.LicenseAdjustmentUpdate,
    required=(
        ("global_license", "Global license is required"),
        ("employees_added_count", "Number of added employees is required"),
        ("months_remaining", "Remaining months are required"),
        ("price_per_employee_usd", "Price per employee is required"),
        ("billing_currency_code", "Billing currency code is required"),
        ("exchange_rate_used", "Exchange rate is required"),
    ),
    list_filters={
        "global_license": filter_id,
        "payment_status": filter_upper,
        "billing_currency_code": filter_upper,
    },
    has_active=False,
)

add_collection_routes(router, ROUTES)
add_filter_route(router, ROUTES, "/global-license/{value}", "global_license", parser=filter_id,
                 echo="global_license_id")
add_filter_route(router, ROUTES, "/status/{value}", "payment_status", parser=filter_upper,
                 choices=values(PaymentStatus), invalid_code="invalid_status")


@router.post("/{guid}/recalculate")
def recalculate(guid: str, db: Session = Depends(get_db)):
    def run(adjustment):
        adjustment.compute_amounts(adjustment.applicable_tax_rules()).save()

    return apply_transition(ROUTES, db, guid, run, "recalculation_failed")


add_item_routes(router, ROUTES)
