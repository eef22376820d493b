"""
Validation rules for fraud detection logs and daily activity snapshots.
"""
from __future__ import annotations

import re
from typing import Any

from billing.errors import ValidationError
from ..enums import ActivityStatus, DetectionType, RiskLevel, values
from .common import (
    as_utc,
    check_choice,
    check_int_range,
    check_length,
    require,
    strip_strings,
    upper,
)

EMPLOYEE_RE = re.compile(r"^[a-zA-Z0-9_]{1,128}$")

# detection_type -> (keys, all_required)
CRITERIA_KEYS = {
    DetectionType.SUSPICIOUS_LEAVE_PATTERN.value: (("leave_frequency", "leave_duration", "timing_pattern"), False),
    DetectionType.MASS_DEACTIVATION.value: (("deactivation_count", "time_window"), True),
    DetectionType.UNUSUAL_ACTIVITY.value: (("activity_type", "frequency_deviation"), False),
    DetectionType.PRE_RENEWAL_MANIPULATION.value: (("days_before_renewal", "manipulation_type"), False),
    DetectionType.EXCESSIVE_TECHNICAL_LEAVE.value: (("leave_duration", "threshold_exceeded"), True),
}


def criteria_match_type(detection_type: str, criteria: Any) -> bool:
    if not isinstance(criteria, dict):
        return False
    rule = CRITERIA_KEYS.get(detection_type)
    if rule is None:
        return True
    keys, all_required = rule
    if all_required:
        if not all(key in criteria for key in keys):
            return False
    elif not any(key in criteria for key in keys):
        return False
    if detection_type == DetectionType.MASS_DEACTIVATION.value:
        count = criteria["deactivation_count"]
        return isinstance(count, (int, float)) and not isinstance(count, bool)
    return True


def risk_is_consistent(detection_type: str, risk_level: str, affected: int) -> bool:
    if detection_type == DetectionType.MASS_DEACTIVATION.value:
        if affected > 50 and risk_level == RiskLevel.LOW.value:
            return False
        if affected > 100 and risk_level != RiskLevel.CRITICAL.value:
            return False
    elif detection_type == DetectionType.PRE_RENEWAL_MANIPULATION.value:
        if risk_level == RiskLevel.LOW.value:
            return False
    elif detection_type == DetectionType.EXCESSIVE_TECHNICAL_LEAVE.value:
        if affected > 20 and risk_level == RiskLevel.LOW.value:
            return False
    return True


def clean_fraud_detection_log(data: dict) -> dict:
    cleaned = dict(data)
    strip_strings(cleaned, "action_taken", "notes")
    upper(cleaned, "detection_type", "risk_level")
    affected = cleaned.get("employee_licenses_affected")
    if isinstance(affected, list):
        cleaned["employee_licenses_affected"] = [a.strip() if isinstance(a, str) else a for a in affected]
    return cleaned


def validate_fraud_detection_log(data: dict) -> None:
    require(data, "tenant", "tenant is required")
    check_int_range(data.get("tenant"), 1, None, "tenant must be a positive id")
    detection_type = require(data, "detection_type", "detection_type is required")
    check_choice(detection_type, values(DetectionType), f"Invalid detection type: {detection_type}")

    affected = data.get("employee_licenses_affected")
    if not isinstance(affected, list) or not affected:
        raise ValidationError("employee_licenses_affected must be a non-empty array")
    for license_ref in affected:
        if not isinstance(license_ref, str) or not EMPLOYEE_RE.fullmatch(license_ref):
            raise ValidationError("employee_licenses_affected entries must be 1-128 letters, digits or underscores")

    criteria = data.get("detection_criteria")
    if not isinstance(criteria, dict) or not criteria:
        raise ValidationError("detection_criteria must be a non-empty object")
    if not criteria_match_type(detection_type, criteria):
        raise ValidationError(f"detection_criteria does not match expected format for {detection_type}")

    risk_level = require(data, "risk_level", "risk_level is required")
    check_choice(risk_level, values(RiskLevel), "Invalid risk level")
    if not risk_is_consistent(detection_type, risk_level, len(affected)):
        raise ValidationError(
            f"risk_level {risk_level} is inconsistent with {detection_type} affecting {len(affected)} employees"
        )

    check_length(data.get("action_taken"), 1, 1024, "action_taken must be between 1 and 1024 characters")
    check_length(data.get("notes"), 1, 1024, "notes must be between 1 and 1024 characters")
    check_int_range(data.get("resolved_by"), 1, None, "resolved_by must be a positive user id")

    resolved_at = as_utc(data.get("resolved_at"))
    resolved_by = data.get("resolved_by")
    if resolved_at is not None and resolved_by is None:
        raise ValidationError("resolved_by is required when resolved_at is set")
    if resolved_by is not None and resolved_at is None:
        raise ValidationError("resolved_at is required when resolved_by is set")
    if resolved_at is not None:
        require(data, "action_taken", "action_taken is required when incident is resolved")
        created_at = as_utc(data.get("created_at"))
        if created_at and resolved_at < created_at:
            raise ValidationError("resolved_at must be after created_at")


def clean_activity_monitoring(data: dict) -> dict:
    cleaned = dict(data)
    upper(cleaned, "status_at_date")
    return cleaned


def validate_activity_monitoring(data: dict) -> None:
    require(data, "employee_license", "employee_license is required")
    check_int_range(data.get("employee_license"), 1, None, "employee_license must be a positive id")
    require(data, "monitoring_date", "monitoring_date is required")
    as_utc(data.get("monitoring_date"))
    as_utc(data.get("last_punch_date"))
    for field in ("punch_count_7_days", "punch_count_30_days", "consecutive_absent_days"):
        check_int_range(data.get(field), 0, None, f"{field} must be an integer >= 0")
    week = data.get("punch_count_7_days") or 0
    month = data.get("punch_count_30_days") or 0
    if week > month:
        raise ValidationError("punch_count_7_days cannot exceed punch_count_30_days")
    status = require(data, "status_at_date", "status_at_date is required")
    check_choice(status, values(ActivityStatus), "status_at_date must be one of ACTIVE, INACTIVE, SUSPICIOUS")
