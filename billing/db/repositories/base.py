"""
Generic persistence primitives shared by every billing entity.

All functions take the SQLAlchemy session and the ORM model explicitly, so
one implementation serves the fourteen tables. Rows are always returned in
primary-key order.
"""
from __future__ import annotations

import logging
from datetime import datetime, UTC
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from billing.db.validators.common import as_utc
from billing.errors import AlreadyExistsError, GuidGenerationError, ValidationError
from billing.utils.runtime import guid_max_attempts

logger = logging.getLogger(__name__)

GUID_LENGTH = 6
DEFAULT_REVISION = "202501010000"


def _filtered(db: Session, model, conditions: Optional[Dict[str, Any]] = None, criteria: Iterable = ()):
    q = db.query(model)
    for column, value in (conditions or {}).items():
        q = q.filter(getattr(model, column) == value)
    for criterion in criteria:
        q = q.filter(criterion)
    return q


def find_one(db: Session, model, **conditions):
    return _filtered(db, model, conditions).first()


def find_all(
    db: Session,
    model,
    conditions: Optional[Dict[str, Any]] = None,
    *,
    criteria: Iterable = (),
    offset: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[Any]:
    q = _filtered(db, model, conditions, criteria).order_by(model.id.asc())
    if offset:
        q = q.offset(offset)
    if limit:
        q = q.limit(limit)
    return q.all()


def count(db: Session, model, conditions: Optional[Dict[str, Any]] = None, *, criteria: Iterable = ()) -> int:
    return _filtered(db, model, conditions, criteria).count()


def exists(db: Session, model, **conditions) -> bool:
    return db.query(_filtered(db, model, conditions).exists()).scalar()


def next_guid(db: Session, model, length: int = GUID_LENGTH, attempt: int = 0) -> int:
    """Public identifier: ``10**(length-1) + max(id) + 1`` (plus the retry index)."""
    if length < 3:
        raise GuidGenerationError(f"GUID length {length} is not allowed (minimum 3)")
    max_id = db.query(func.max(model.id)).scalar() or 0
    return 10 ** (length - 1) + max_id + 1 + attempt


def time_based_token(db: Session, model, prefix: str = "A", divider: str = "-", length: int = 3) -> str:
    """``<prefix>-YYYYMMDDHHMMSS-<guid>`` token for human-facing references."""
    stamp = datetime.now(UTC).strftime("%Y%m%d%H%M%S")
    return f"{prefix}{divider}{stamp}{divider}{next_guid(db, model, length)}"


def _integrity_message(exc: IntegrityError) -> str:
    return str(getattr(exc, "orig", exc) or exc)


def _translate_integrity_error(model, exc: IntegrityError) -> Exception:
    message = _integrity_message(exc)
    lowered = message.lower()
    if "unique" in lowered or "duplicate" in lowered:
        return AlreadyExistsError(f"{model.__tablename__} already exists: {message}")
    return ValidationError(f"{model.__tablename__} violates a database constraint: {message}")


def insert_one(db: Session, model, values: Dict[str, Any]):
    """Insert a row, allocating its GUID.

    A unique violation on ``guid`` (concurrent allocation) rolls back and
    retries with the next candidate, up to ``GUID_MAX_ATTEMPTS`` times.
    """
    attempts = guid_max_attempts()
    for attempt in range(attempts):
        row = model(**values)
        row.guid = next_guid(db, model, attempt=attempt)
        db.add(row)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if "guid" in _integrity_message(exc).lower():
                logger.warning(
                    "guid_collision: table=%s guid=%s attempt=%d/%d",
                    model.__tablename__, row.guid, attempt + 1, attempts,
                )
                continue
            raise _translate_integrity_error(model, exc) from exc
        db.refresh(row)
        return row
    raise GuidGenerationError(f"Could not allocate a GUID for {model.__tablename__} after {attempts} attempts")


def update_one(db: Session, row, values: Dict[str, Any], *, commit: bool = True):
    """Apply ``values`` to ``row``; with ``commit=False`` the change is only flushed."""
    for key, value in values.items():
        setattr(row, key, value)
    try:
        if commit:
            db.commit()
        else:
            db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise _translate_integrity_error(type(row), exc) from exc
    db.refresh(row)
    return row


def delete_one(db: Session, row):
    try:
        db.delete(row)
        db.commit()
        return row
    except Exception as e:
        db.rollback()
        raise RuntimeError(f"Failed to delete {type(row).__tablename__} {row.guid}: {str(e)}")


def last_modification(db: Session, model) -> Optional[datetime]:
    return as_utc(db.query(func.max(model.updated_at)).scalar())


def revision(db: Session, model) -> str:
    """``max(updated_at)`` as UTC ``YYYYMMDDHHMM``."""
    last = last_modification(db, model)
    if last is None:
        return DEFAULT_REVISION
    return last.strftime("%Y%m%d%H%M")
