"""Fraud detection logs and daily activity monitoring snapshots."""
from __future__ import annotations

from datetime import date, datetime, UTC
from typing import Optional

from sqlalchemy.orm import Session

from billing.db import schemas
from billing.db.models import TABLE_AP
from billing.db.validators import monitoring as rules
from billing.db.repositories import base as repo
from billing.errors import AlreadyExistsError, ValidationError
from .base import DomainObject
from .licenses import EMPLOYEE_LICENSE_TABLE
from .tenants import TENANT_TABLE

FRAUD_DETECTION_LOG_TABLE = f"{TABLE_AP}_fraud_detection_log"
ACTIVITY_MONITORING_TABLE = f"{TABLE_AP}_activity_monitoring"

# Thresholds for flagging a snapshot as suspicious
SUSPICIOUS_ABSENT_DAYS = 14
SUSPICIOUS_PUNCH_RATIO = 0.1


class FraudDetectionLog(DomainObject):
    table = FRAUD_DETECTION_LOG_TABLE
    label = "Fraud detection log"
    schema = schemas.FraudDetectionLog
    key_field = "detection_type"
    name_field = "risk_level"
    lookup_fields = ()
    unique_fields = ()
    active_field = None
    references = (("tenant", TENANT_TABLE, "id"),)
    clean = staticmethod(rules.clean_fraud_detection_log)
    validate = staticmethod(rules.validate_fraud_detection_log)

    @classmethod
    def export_conditions(cls):
        return {"resolved_at": None}

    @property
    def is_resolved(self) -> bool:
        return self.get("resolved_at") is not None

    def resolve(self, resolved_by: int, action_taken: str, notes: Optional[str] = None,
                at: Optional[datetime] = None) -> "FraudDetectionLog":
        if self.is_resolved:
            raise ValidationError("Fraud detection log is already resolved")
        values = {
            "resolved_by": resolved_by,
            "action_taken": action_taken,
            "resolved_at": at or datetime.now(UTC),
        }
        if notes is not None:
            values["notes"] = notes
        return self.set(**values).save()

    @classmethod
    def list_unresolved(cls, db: Session, *, offset=None, limit=None):
        return cls.list(db, {"resolved_at": None}, offset=offset, limit=limit)


class ActivityMonitoring(DomainObject):
    table = ACTIVITY_MONITORING_TABLE
    label = "Activity monitoring"
    schema = schemas.ActivityMonitoring
    key_field = "employee_license"
    name_field = "monitoring_date"
    lookup_fields = ()
    unique_fields = ()
    active_field = None
    references = (("employee_license", EMPLOYEE_LICENSE_TABLE, "id"),)
    clean = staticmethod(rules.clean_activity_monitoring)
    validate = staticmethod(rules.validate_activity_monitoring)

    @classmethod
    def export_conditions(cls):
        return {}

    def prepare(self, data: dict, creating: bool) -> dict:
        if isinstance(data.get("monitoring_date"), str):
            try:
                data["monitoring_date"] = date.fromisoformat(data["monitoring_date"])
            except ValueError:
                raise ValidationError("monitoring_date must be a YYYY-MM-DD date")
        if creating and data.get("employee_license") and data.get("monitoring_date"):
            conditions = {"employee_license": data["employee_license"], "monitoring_date": data["monitoring_date"]}
            if repo.exists(self.db, self.model(), **conditions):
                raise AlreadyExistsError(
                    f"Activity monitoring for employee license {data['employee_license']} "
                    f"on {data['monitoring_date']} already exists"
                )
        return data

    def is_suspicious(self) -> bool:
        absent = self.get("consecutive_absent_days") or 0
        week = self.get("punch_count_7_days") or 0
        month = self.get("punch_count_30_days") or 0
        if absent >= SUSPICIOUS_ABSENT_DAYS:
            return True
        # A month of activity collapsing to almost nothing this week
        return month > 0 and week / month < SUSPICIOUS_PUNCH_RATIO and week < 2
