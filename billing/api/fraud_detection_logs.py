"""
Fraud detection logs API endpoints.

The export lists unresolved logs only. ``POST /{guid}/resolve`` closes a
log with the reviewer, the action taken and optional notes.
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
from billing.api.pagination import Pagination, get_pagination
from billing.api.responses import success
from billing.db import schemas
from billing.db.database import get_db
from billing.db.enums import DetectionType, RiskLevel, values
from billing.domain.monitoring import FraudDetectionLog

router = APIRouter(prefix="/fraud-detection-log", tags=["fraud-detection-log"])

ROUTES = EntityRoutes(
    domain=FraudDetectionLog,
    entity="fraud_detection_log",
    plural="fraud_detection_logs",
    create_schema=schemas.FraudDetectionLogCreate,
    update_schema=schemas.FraudDetectionLogUpdate,
    required=(
        ("tenant", "Tenant is required"),
        ("detection_type", "Detection type is required"),
        ("employee_licenses_affected", "Affected employee licenses are required"),
        ("detection_criteria", "Detection criteria are required"),
        ("risk_level", "Risk level is required"),
    ),
    list_filters={
        "tenant": filter_id,
        "detection_type": filter_upper,
        "risk_level": filter_upper,
    },
    has_active=False,
)

add_collection_routes(router, ROUTES)
add_filter_route(router, ROUTES, "/tenant/{value}", "tenant", parser=filter_id, echo="tenant_id")
add_filter_route(router, ROUTES, "/risk/{value}", "risk_level", parser=filter_upper,
                 choices=values(RiskLevel), invalid_code="invalid_risk_level")
add_filter_route(router, ROUTES, "/type/{value}", "detection_type", parser=filter_upper,
                 choices=values(DetectionType), invalid_code="invalid_detection_type")


@router.get("/unresolved")
def unresolved(db: Session = Depends(get_db), page: Pagination = Depends(get_pagination)):
    items = FraudDetectionLog.list_unresolved(db, offset=page.offset, limit=page.limit)
    return success(ROUTES.listing(items, page, resolved=False))


@router.post("/{guid}/resolve")
def resolve(guid: str, payload: schemas.FraudResolution, db: Session = Depends(get_db)):
    require_fields(payload.model_dump(), (
        ("resolved_by", "Resolving user is required"),
        ("action_taken", "Action taken is required"),
    ))
    return apply_transition(
        ROUTES, db, guid,
        lambda log: log.resolve(payload.resolved_by, payload.action_taken, payload.notes),
        "resolution_failed",
    )


add_item_routes(router, ROUTES)
