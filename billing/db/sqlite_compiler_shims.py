"""SQLite compilation shims for PostgreSQL-specific SQLAlchemy types.

Tests substitute an in-memory SQLite database; these compilers only let
`Base.metadata.create_all()` succeed there. JSONB operators are not emulated.

Usage: imported for side-effects by billing.db.models.
"""
from __future__ import annotations

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(element, compiler, **kw):  # pragma: no cover - trivial
    # JSON is stored as TEXT by SQLite
    return "JSON"
