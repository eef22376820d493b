from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB

from .base import Base, GuidMixin, TABLE_AP, check_in
from ..enums import ActivityStatus, DetectionType, RiskLevel, values


class FraudDetectionLog(GuidMixin, Base):
    __tablename__ = f'{TABLE_AP}_fraud_detection_log'
    tenant = Column(Integer, ForeignKey(f'{TABLE_AP}_tenant.id'), nullable=False)
    detection_type = Column(String(40), nullable=False)
    employee_licenses_affected = Column(JSONB, nullable=False)
    detection_criteria = Column(JSONB, nullable=False)
    risk_level = Column(String(10), nullable=False)
    action_taken = Column(String(1024), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    resolved_by = Column(Integer, nullable=True)
    notes = Column(String(1024), nullable=True)

    __table_args__ = (
        Index('idx_xa_fraud_detection_log_tenant', 'tenant'),
        Index('idx_xa_fraud_detection_log_type', 'detection_type'),
        Index('idx_xa_fraud_detection_log_risk', 'risk_level'),
        CheckConstraint(check_in('detection_type', values(DetectionType)), name='ck_xa_fraud_detection_log_type'),
        CheckConstraint(check_in('risk_level', values(RiskLevel)), name='ck_xa_fraud_detection_log_risk'),
    )


class ActivityMonitoring(GuidMixin, Base):
    __tablename__ = f'{TABLE_AP}_activity_monitoring'
    employee_license = Column(Integer, ForeignKey(f'{TABLE_AP}_employee_license.id'), nullable=False)
    monitoring_date = Column(Date, nullable=False)
    last_punch_date = Column(DateTime(timezone=True), nullable=True)
    punch_count_7_days = Column(Integer, nullable=False, default=0)
    punch_count_30_days = Column(Integer, nullable=False, default=0)
    consecutive_absent_days = Column(Integer, nullable=False, default=0)
    status_at_date = Column(String(20), nullable=False)

    __table_args__ = (
        UniqueConstraint('employee_license', 'monitoring_date', name='uq_xa_activity_monitoring_license_date'),
        Index('idx_xa_activity_monitoring_status', 'status_at_date'),
        CheckConstraint(check_in('status_at_date', values(ActivityStatus)), name='ck_xa_activity_monitoring_status'),
        CheckConstraint(
            'punch_count_7_days >= 0 AND punch_count_30_days >= 0 AND consecutive_absent_days >= 0',
            name='ck_xa_activity_monitoring_counts',
        ),
    )
