"""
Global licenses API endpoints.

One license per tenant subscription. ``POST /{guid}/renew`` rolls the
license into its next billing period; ``GET /{guid}/billing`` reports the
billable seat count and the amount due for one period.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from billing.api.entity_router import (
    PUT_GUID_RE,
    EntityRoutes,
    add_collection_routes,
    add_filter_route,
    add_item_routes,
    apply_transition,
    filter_id,
    filter_upper,
    load_or_404,
)
from billing.api.responses import bad_request, success
from billing.db import schemas
from billing.db.database import get_db
from billing.db.enums import LicenseStatus, values
from billing.domain.licenses import GlobalLicense

router = APIRouter(prefix="/global-license", tags=["global-license"])

ROUTES = EntityRoutes(
    domain=GlobalLicense,
    entity="global_license",
    plural="global_licenses",
    create_schema=schemas.GlobalLicenseCreate,
    update_schema=schemas.GlobalLicenseUpdate,
    required=(
        ("tenant", "Tenant is required"),
        ("current_period_start", "Current period start is required"),
        ("current_period_end", "Current period end is required"),
        ("next_renewal_date", "Next renewal date is required"),
    ),
    list_filters={
        "tenant": filter_id,
        "license_status": filter_upper,
        "license_type": filter_upper,
    },
    has_active=False,
)

add_collection_routes(router, ROUTES)
add_filter_route(router, ROUTES, "/tenant/{value}", "tenant", parser=filter_id, echo="tenant_id")
add_filter_route(router, ROUTES, "/status/{value}", "license_status", parser=filter_upper,
                 choices=values(LicenseStatus), invalid_code="invalid_status")


@router.get("/{guid}/billing")
def license_billing(guid: str, db: Session = Depends(get_db)):
    if not PUT_GUID_RE.fullmatch(guid):
        raise bad_request("invalid_guid", "GUID must be a 6-digit number")
    global_license = load_or_404(ROUTES, db, guid)
    return success({
        "guid": global_license.guid,
        "billable_seats": global_license.billable_seats(),
        "billing_cycle_months": global_license.get("billing_cycle_months"),
        "base_price_usd": global_license.get("base_price_usd"),
        "period_amount_usd": global_license.period_amount_usd(),
    })


@router.post("/{guid}/renew")
def renew_license(guid: str, payload: schemas.GlobalLicenseRenewal, db: Session = Depends(get_db)):
    return apply_transition(ROUTES, db, guid, lambda record: record.renew(payload.months), "renewal_failed")


add_item_routes(router, ROUTES)
