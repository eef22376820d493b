"""
Employee licenses API endpoints.

Seats attached to a global license. Besides CRUD, a seat can be put on
and taken off long leave, terminated, and have its billing status
recomputed.
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
    require_fields,
)
from billing.db import schemas
from billing.db.database import get_db
from billing.db.enums import BillingStatus, ContractualStatus, values
from billing.db.validators.licenses import EMPLOYEE_CODE_RE
from billing.domain.licenses import EmployeeLicense

router = APIRouter(prefix="/employee-license", tags=["employee-license"])

ROUTES = EntityRoutes(
    domain=EmployeeLicense,
    entity="employee_license",
    plural="employee_licenses",
    create_schema=schemas.EmployeeLicenseCreate,
    update_schema=schemas.EmployeeLicenseUpdate,
    required=(
        ("global_license", "Global license is required"),
        ("employee", "Employee is required"),
        ("employee_code", "Employee code is required"),
    ),
    list_filters={
        "global_license": filter_id,
        "contractual_status": filter_upper,
        "computed_billing_status": filter_upper,
    },
    code_pattern=EMPLOYEE_CODE_RE,
    code_message="Employee code must be 1-50 letters, digits or underscores",
    has_active=False,
)

add_collection_routes(router, ROUTES)
add_filter_route(router, ROUTES, "/global-license/{value}", "global_license", parser=filter_id,
                 echo="global_license_id")
add_filter_route(router, ROUTES, "/billing-status/{value}", "computed_billing_status", parser=filter_upper,
                 echo="billing_status", choices=values(BillingStatus), invalid_code="invalid_status")
add_filter_route(router, ROUTES, "/contractual-status/{value}", "contractual_status", parser=filter_upper,
                 choices=values(ContractualStatus), invalid_code="invalid_status")


@router.post("/{guid}/long-leave")
def declare_long_leave(guid: str, payload: schemas.LongLeaveDeclaration, db: Session = Depends(get_db)):
    require_fields(payload.model_dump(), (
        ("declared_by", "Declaring user is required"),
        ("leave_type", "Leave type is required"),
    ))
    return apply_transition(
        ROUTES, db, guid,
        lambda seat: seat.declare_long_leave(payload.declared_by, payload.leave_type, payload.reason),
        "long_leave_failed",
    )


@router.delete("/{guid}/long-leave")
def end_long_leave(guid: str, db: Session = Depends(get_db)):
    return apply_transition(ROUTES, db, guid, lambda seat: seat.end_long_leave(), "long_leave_failed")


@router.post("/{guid}/terminate")
def terminate(guid: str, db: Session = Depends(get_db)):
    return apply_transition(ROUTES, db, guid, lambda seat: seat.terminate(), "termination_failed")


@router.post("/{guid}/billing-status")
def refresh_billing_status(guid: str, db: Session = Depends(get_db)):
    return apply_transition(ROUTES, db, guid, lambda seat: seat.refresh_billing_status(), "billing_status_failed")


add_item_routes(router, ROUTES)
