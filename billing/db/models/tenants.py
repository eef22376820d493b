from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Index, String, Text

from .base import Base, GuidMixin, TABLE_AP, TABLE_CONF, check_in
from ..enums import TenantStatus, values


class Tenant(GuidMixin, Base):
    __tablename__ = f'{TABLE_AP}_tenant'
    name = Column(String(255), nullable=False)
    key = Column(String(100), nullable=False, unique=True)
    country_code = Column(String(2), ForeignKey(f'{TABLE_CONF}_country.code'), nullable=False)
    primary_currency_code = Column(String(3), ForeignKey(f'{TABLE_CONF}_currency.code'), nullable=False)
    preferred_language_code = Column(String(2), ForeignKey(f'{TABLE_CONF}_language.code'), nullable=False, default='en')
    timezone = Column(String(64), nullable=False, default='UTC')
    tax_number = Column(String(50), nullable=True)
    tax_exempt = Column(Boolean, nullable=False, default=False)
    billing_email = Column(String(255), nullable=False)
    billing_address = Column(Text, nullable=True)
    billing_phone = Column(String(20), nullable=True)
    status = Column(String(20), nullable=False, default=TenantStatus.ACTIVE.value)
    # Provisioning: dedicated subdomain and database credentials
    subdomain = Column(String(255), nullable=True, unique=True)
    database_name = Column(String(128), nullable=True)
    database_username = Column(String(128), nullable=True)
    database_password = Column(String(255), nullable=True)

    __table_args__ = (
        Index('idx_xa_tenant_country_code', 'country_code'),
        Index('idx_xa_tenant_primary_currency_code', 'primary_currency_code'),
        Index('idx_xa_tenant_status', 'status'),
        CheckConstraint(check_in('status', values(TenantStatus)), name='ck_xa_tenant_status'),
    )
