"""
Shared SQLAlchemy base and column helpers.
"""
from datetime import datetime, UTC

from sqlalchemy import Column, DateTime, Integer
from sqlalchemy.orm import declarative_base

# Registers sqlite compilers for PostgreSQL-only types used by the models
from .. import sqlite_compiler_shims  # noqa: F401

# Table name prefixes: reference ("conf") data and application data
TABLE_CONF = "xf"
TABLE_AP = "xa"


def now_utc():
    """Return an aware UTC datetime for default/updated timestamps."""
    return datetime.now(UTC)


Base = declarative_base()


class GuidMixin:
    """Numeric primary key, 6-digit public GUID and audit timestamps."""

    id = Column(Integer, primary_key=True, autoincrement=True)
    guid = Column(Integer, nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=now_utc)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=now_utc, onupdate=now_utc)


def check_in(column: str, values) -> str:
    """Render a CHECK constraint expression restricting a column to values."""
    quoted = ",".join(f"'{value}'" for value in values)
    return f"{column} in ({quoted})"
