from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Numeric, String

from .base import Base, GuidMixin, TABLE_CONF, now_utc


class Country(GuidMixin, Base):
    __tablename__ = f'{TABLE_CONF}_country'
    code = Column(String(2), nullable=False, unique=True)
    name_en = Column(String(128), nullable=False)
    name_local = Column(String(128), nullable=True)
    default_currency_code = Column(String(3), nullable=False)
    default_language_code = Column(String(2), nullable=False)
    timezone_default = Column(String(64), nullable=False, default='UTC')
    phone_prefix = Column(String(6), nullable=False)
    active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index('idx_xf_country_default_currency_code', 'default_currency_code'),
        Index('idx_xf_country_default_language_code', 'default_language_code'),
        Index('idx_xf_country_timezone_default', 'timezone_default'),
        Index('idx_xf_country_active', 'active'),
    )


class Currency(GuidMixin, Base):
    __tablename__ = f'{TABLE_CONF}_currency'
    code = Column(String(3), nullable=False, unique=True)
    name = Column(String(128), nullable=False)
    symbol = Column(String(10), nullable=False)
    decimal_places = Column(Integer, nullable=False, default=2)
    active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index('idx_xf_currency_active', 'active'),
        CheckConstraint('decimal_places >= 0 AND decimal_places <= 10', name='ck_xf_currency_decimal_places'),
    )


class ExchangeRate(GuidMixin, Base):
    __tablename__ = f'{TABLE_CONF}_exchange_rate'
    from_currency_code = Column(String(3), ForeignKey(f'{TABLE_CONF}_currency.code'), nullable=False)
    to_currency_code = Column(String(3), ForeignKey(f'{TABLE_CONF}_currency.code'), nullable=False)
    exchange_rate = Column(Numeric(12, 6), nullable=False)
    current = Column(Boolean, nullable=False, default=True)
    created_by = Column(Integer, nullable=False)

    __table_args__ = (
        Index('idx_xf_exchange_rate_pair', 'from_currency_code', 'to_currency_code'),
        Index('idx_xf_exchange_rate_current', 'current'),
        CheckConstraint('exchange_rate > 0', name='ck_xf_exchange_rate_positive'),
        CheckConstraint('from_currency_code <> to_currency_code', name='ck_xf_exchange_rate_distinct_pair'),
    )


class Language(GuidMixin, Base):
    __tablename__ = f'{TABLE_CONF}_language'
    code = Column(String(2), nullable=False, unique=True)
    name_en = Column(String(50), nullable=False)
    name_local = Column(String(50), nullable=False)
    active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index('idx_xf_language_active', 'active'),
    )


class TaxRule(GuidMixin, Base):
    __tablename__ = f'{TABLE_CONF}_tax_rule'
    country_code = Column(String(2), ForeignKey(f'{TABLE_CONF}_country.code'), nullable=False)
    tax_type = Column(String(20), nullable=False)
    tax_name = Column(String(50), nullable=False)
    tax_rate = Column(Numeric(6, 4), nullable=False)
    applies_to = Column(String(20), nullable=False, default='license_fee')
    required_tax_number = Column(Boolean, nullable=False, default=True)
    effective_date = Column(DateTime(timezone=True), nullable=False, default=now_utc)
    expiry_date = Column(DateTime(timezone=True), nullable=True)
    active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index('idx_xf_tax_rule_country_code', 'country_code'),
        Index('idx_xf_tax_rule_tax_type', 'tax_type'),
        Index('idx_xf_tax_rule_applies_to', 'applies_to'),
        Index('idx_xf_tax_rule_active', 'active'),
        CheckConstraint('tax_rate >= 0 AND tax_rate <= 1', name='ck_xf_tax_rule_rate_range'),
    )
