from datetime import date, datetime
from typing import Any, Dict, List, Optional

from .common import Payload, Record


class FraudDetectionLogBase(Payload):
    tenant: Optional[int] = None
    detection_type: Optional[str] = None
    employee_licenses_affected: Optional[List[str]] = None
    detection_criteria: Optional[Dict[str, Any]] = None
    risk_level: Optional[str] = None
    action_taken: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[int] = None
    notes: Optional[str] = None


class FraudDetectionLogCreate(FraudDetectionLogBase):
    pass


class FraudDetectionLogUpdate(FraudDetectionLogBase):
    pass


class FraudDetectionLog(Record):
    tenant: int
    detection_type: str
    employee_licenses_affected: List[str]
    detection_criteria: Dict[str, Any]
    risk_level: str
    action_taken: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[int] = None
    notes: Optional[str] = None


class FraudResolution(Payload):
    resolved_by: Optional[int] = None
    action_taken: Optional[str] = None
    notes: Optional[str] = None


class ActivityMonitoringBase(Payload):
    employee_license: Optional[int] = None
    monitoring_date: Optional[date] = None
    last_punch_date: Optional[datetime] = None
    punch_count_7_days: Optional[int] = None
    punch_count_30_days: Optional[int] = None
    consecutive_absent_days: Optional[int] = None
    status_at_date: Optional[str] = None


class ActivityMonitoringCreate(ActivityMonitoringBase):
    pass


class ActivityMonitoringUpdate(ActivityMonitoringBase):
    pass


class ActivityMonitoring(Record):
    employee_license: int
    monitoring_date: date
    last_punch_date: Optional[datetime] = None
    punch_count_7_days: int
    punch_count_30_days: int
    consecutive_absent_days: int
    status_at_date: str
