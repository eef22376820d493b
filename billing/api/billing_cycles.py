"""Billing cycles API endpoints (``/billing-cycle``)."""
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
from billing.db.enums import BillingCycleStatus, values
from billing.domain.payments import BillingCycle

router = APIRouter(prefix="/billing-cycle", tags=["billing-cycle"])

ROUTES = EntityRoutes(
    domain=BillingCycle,
    entity="billing_cycle",
    plural="billing_cycles",
    create_schema=schemas.BillingCycleCreate,
    update_schema=schemas.BillingCycleUpdate,
    required=(
        ("global_license", "Global license is required"),
        ("period_start", "Period start is required"),
        ("period_end", "Period end is required"),
        ("base_employee_count", "Base employee count is required"),
        ("final_employee_count", "Final employee count is required"),
        ("base_amount_usd", "Base amount (USD) is required"),
        ("billing_currency_code", "Billing currency code is required"),
        ("exchange_rate_used", "Exchange rate is required"),
        ("payment_due_date", "Payment due date is required"),
    ),
    list_filters={
        "global_license": filter_id,
        "billing_status": filter_upper,
        "billing_currency_code": filter_upper,
    },
    has_active=False,
)

add_collection_routes(router, ROUTES)
add_filter_route(router, ROUTES, "/global-license/{value}", "global_license", parser=filter_id,
                 echo="global_license_id")
add_filter_route(router, ROUTES, "/status/{value}", "billing_status", parser=filter_upper,
                 choices=values(BillingCycleStatus), invalid_code="invalid_status")


@router.post("/{guid}/complete")
def complete_cycle(guid: str, db: Session = Depends(get_db)):
    return apply_transition(ROUTES, db, guid, lambda cycle: cycle.mark_completed(), "completion_failed")


add_item_routes(router, ROUTES)
