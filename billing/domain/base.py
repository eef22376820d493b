"""
Domain object base class.

A domain object wraps one row of one table. Values are staged with
``set(...)`` and written by ``save()``, which cleans, defaults and validates
the complete row, checks foreign references and business-key uniqueness,
then inserts (allocating the GUID) or updates through
:mod:`billing.db.repositories.base`.

Usage::

    currency = Currency(db).set(code="eur", name="Euro", symbol="€").save()
    Currency.load(db, guid=currency.guid).to_json()
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from billing.db.registry import TableInitializer
from billing.db.repositories import base as repo
from billing.errors import AlreadyExistsError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Columns managed by the persistence layer, never written from input
MANAGED_COLUMNS = ("id", "guid", "created_at", "updated_at")
# Largest value an INTEGER id or guid column holds
MAX_INTEGER = 2**31 - 1


def pagination_block(items: list, offset: Optional[int], limit: Optional[int]) -> dict:
    return {
        "pagination": {
            "offset": offset or 0,
            "limit": limit or len(items),
            "count": len(items),
        },
        "items": items,
    }


def column_defaults(model) -> Dict[str, Any]:
    """Evaluate the Python-side column defaults of a model."""
    defaults: Dict[str, Any] = {}
    for column in model.__table__.columns:
        default = column.default
        if default is None or column.name in MANAGED_COLUMNS:
            continue
        if default.is_scalar:
            defaults[column.name] = default.arg
        elif default.is_callable:
            defaults[column.name] = default.arg(None)
    return defaults


class DomainObject:
    table: str = ""
    label: str = "Record"
    schema = None
    # Business key used by load(key=...) and in delete summaries
    key_field: Optional[str] = "code"
    name_field: Optional[str] = "name"
    # Fields tried in order when resolving a non-numeric identifier
    lookup_fields: Tuple[str, ...] = ("code",)
    unique_fields: Tuple[str, ...] = ("code",)
    active_field: Optional[str] = "active"
    # (field, table, column) pairs that must resolve to an existing row
    references: Tuple[Tuple[str, str, str], ...] = ()

    clean: Callable[[dict], dict] = staticmethod(lambda data: dict(data))
    validate: Callable[..., None] = staticmethod(lambda data, **kwargs: None)

    def __init__(self, db: Session, row=None):
        self.db = db
        self._row = row
        self._values: Dict[str, Any] = {}

    def __repr__(self):
        return f"<{type(self).__name__} guid={self.guid}>"

    @classmethod
    def model(cls):
        return TableInitializer.get_model(cls.table)

    # -- values -----------------------------------------------------------

    def set(self, **values) -> "DomainObject":
        self._values.update(values)
        return self

    def get(self, field: Optional[str], default: Any = None) -> Any:
        if not field:
            return default
        if field in self._values:
            return self._values[field]
        if self._row is not None:
            return getattr(self._row, field, default)
        return default

    @property
    def row(self):
        return self._row

    @property
    def id(self) -> Optional[int]:
        return self._row.id if self._row is not None else None

    @property
    def guid(self) -> Optional[int]:
        return self._row.guid if self._row is not None else None

    @property
    def is_new(self) -> bool:
        return self._row is None

    def snapshot(self) -> Dict[str, Any]:
        """Full row as a dict: persisted values overlaid with staged ones."""
        data: Dict[str, Any] = {}
        if self._row is not None:
            for column in self.model().__table__.columns:
                data[column.name] = getattr(self._row, column.name)
        data.update(self._values)
        return data

    # -- hooks ------------------------------------------------------------

    def prepare(self, data: dict, creating: bool) -> dict:
        """Entity hook run after cleanup and defaults, before validation."""
        return data

    def validation_options(self, creating: bool) -> dict:
        return {}

    # -- persistence ------------------------------------------------------

    def save(self, *, commit: bool = True) -> "DomainObject":
        """Validate and write the row. ``commit=False`` leaves an update in the open transaction."""
        model = self.model()
        creating = self.is_new
        data = self.snapshot()
        if creating:
            data = {**column_defaults(model), **{k: v for k, v in data.items() if v is not None}}
        data = self.prepare(self.clean(data), creating)
        self.validate(data, **self.validation_options(creating))
        self._check_references(data)
        self._check_unique(data)

        columns = {c.name for c in model.__table__.columns} - set(MANAGED_COLUMNS)
        if creating:
            payload = {k: v for k, v in data.items() if k in columns}
            self._row = repo.insert_one(self.db, model, payload)
            logger.info("%s_created: %s", self.table, self.summary())
        else:
            payload = {k: v for k, v in data.items() if k in columns and getattr(self._row, k) != v}
            repo.update_one(self.db, self._row, payload, commit=commit)
            logger.info("%s_updated: guid=%s fields=%s", self.table, self.guid, sorted(payload))
        self._values = {}
        return self

    def delete(self) -> dict:
        if self._row is None:
            raise NotFoundError(f"{self.label} is not loaded")
        summary = self.summary()
        repo.delete_one(self.db, self._row)
        logger.info("%s_deleted: guid=%s", self.table, summary["guid"])
        self._row = None
        return summary

    def summary(self) -> dict:
        data = {"guid": self.guid}
        for field in (self.key_field, self.name_field):
            if field:
                data[field] = self.get(field)
        return data

    def _check_references(self, data: dict) -> None:
        for field, table, column in self.references:
            value = data.get(field)
            if value is None:
                continue
            if isinstance(value, int) and value > MAX_INTEGER:
                raise ValidationError(f"{field} '{value}' does not exist")
            target = TableInitializer.get_model(table)
            if not repo.exists(self.db, target, **{column: value}):
                raise ValidationError(f"{field} '{value}' does not exist")

    def _check_unique(self, data: dict) -> None:
        model = self.model()
        for field in self.unique_fields:
            value = data.get(field)
            if value is None:
                continue
            criteria = [getattr(model, field) == value]
            if self._row is not None:
                criteria.append(model.id != self._row.id)
            if repo.count(self.db, model, criteria=criteria):
                raise AlreadyExistsError(f"{self.label} with {field} '{value}' already exists")

    # -- loading ----------------------------------------------------------

    @classmethod
    def _wrap(cls, db: Session, row):
        return cls(db, row) if row is not None else None

    @classmethod
    def load(cls, db: Session, *, id: Optional[int] = None, guid: Optional[int] = None, key: Optional[str] = None):
        if any(value is not None and value > MAX_INTEGER for value in (id, guid)):
            return None
        if id is not None:
            return cls._wrap(db, repo.find_one(db, cls.model(), id=id))
        if guid is not None:
            return cls._wrap(db, repo.find_one(db, cls.model(), guid=guid))
        if key is not None and cls.key_field:
            return cls._wrap(db, repo.find_one(db, cls.model(), **{cls.key_field: key}))
        return None

    @classmethod
    def lookup(cls, db: Session, identifier: str):
        """Numeric identifiers are tried as id then guid; others as business keys."""
        if identifier.isdigit():
            value = int(identifier)
            return cls.load(db, id=value) or cls.load(db, guid=value)
        for field in cls.lookup_fields:
            for candidate in cls.key_variants(identifier):
                row = repo.find_one(db, cls.model(), **{field: candidate})
                if row is not None:
                    return cls(db, row)
        return None

    @classmethod
    def key_variants(cls, value: str) -> Sequence[str]:
        return (value,)

    @classmethod
    def list(
        cls,
        db: Session,
        conditions: Optional[Dict[str, Any]] = None,
        *,
        criteria: Iterable = (),
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List["DomainObject"]:
        rows = repo.find_all(db, cls.model(), conditions, criteria=criteria, offset=offset, limit=limit)
        return [cls(db, row) for row in rows]

    @classmethod
    def list_by_active_status(cls, db: Session, active: bool, *, offset=None, limit=None):
        if not cls.active_field:
            raise ValidationError(f"{cls.label} has no active status")
        return cls.list(db, {cls.active_field: active}, offset=offset, limit=limit)

    @classmethod
    def export_conditions(cls) -> Dict[str, Any]:
        return {cls.active_field: True} if cls.active_field else {}

    @classmethod
    def exportable(cls, db: Session, *, offset=None, limit=None) -> dict:
        items = cls.list(db, cls.export_conditions(), offset=offset, limit=limit)
        return {"revision": cls.revision(db), **pagination_block([i.to_json() for i in items], offset, limit)}

    @classmethod
    def revision(cls, db: Session) -> str:
        return repo.revision(db, cls.model())

    @classmethod
    def last_modification(cls, db: Session):
        return repo.last_modification(db, cls.model())

    # -- serialization ----------------------------------------------------

    def to_json(self) -> dict:
        return self.schema.model_validate(self._row).model_dump(mode="json")
