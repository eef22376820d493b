"""Activity monitoring API endpoints (``/activity-monitoring``)."""
from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from billing.api.entity_router import (
    EntityRoutes,
    add_collection_routes,
    add_filter_route,
    add_item_routes,
    filter_id,
    filter_upper,
)
from billing.api.pagination import Pagination, get_pagination
from billing.api.responses import success
from billing.db import schemas
from billing.db.database import get_db
from billing.db.enums import ActivityStatus, values
from billing.domain.monitoring import ActivityMonitoring

router = APIRouter(prefix="/activity-monitoring", tags=["activity-monitoring"])

ROUTES = EntityRoutes(
    domain=ActivityMonitoring,
    entity="activity_monitoring",
    plural="activity_monitoring",
    create_schema=schemas.ActivityMonitoringCreate,
    update_schema=schemas.ActivityMonitoringUpdate,
    required=(
        ("employee_license", "Employee license is required"),
        ("monitoring_date", "Monitoring date is required"),
        ("status_at_date", "Status at date is required"),
    ),
    list_filters={
        "employee_license": filter_id,
        "status_at_date": filter_upper,
        "monitoring_date": date.fromisoformat,
    },
    has_active=False,
)

add_collection_routes(router, ROUTES)
add_filter_route(router, ROUTES, "/employee-license/{value}", "employee_license", parser=filter_id,
                 echo="employee_license_id")
add_filter_route(router, ROUTES, "/status/{value}", "status_at_date", parser=filter_upper, echo="status",
                 choices=values(ActivityStatus), invalid_code="invalid_status")
add_filter_route(router, ROUTES, "/date/{value}", "monitoring_date", parser=date.fromisoformat,
                 echo="monitoring_date", invalid_code="invalid_date")


@router.get("/suspicious")
def suspicious(db: Session = Depends(get_db), page: Pagination = Depends(get_pagination)):
    """Snapshots whose punch pattern looks suspicious, whatever their stored status."""
    items = [item for item in ActivityMonitoring.list(db) if item.is_suspicious()]
    window = items[page.offset or 0:]
    if page.limit:
        window = window[:page.limit]
    return success(ROUTES.listing(window, page))


add_item_routes(router, ROUTES)
