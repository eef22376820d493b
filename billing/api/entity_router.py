"""
Standard REST routes shared by every billing entity.

Each entity module builds its ``APIRouter`` in three steps::

    router = APIRouter(prefix="/master/currency", tags=["currency"])
    add_collection_routes(router, ROUTES)   # /, /revision, /list, /active/{status}
    ... entity-specific routes ...
    add_item_routes(router, ROUTES)         # POST, PUT, DELETE, /search/code, /{identifier}

``/{identifier}`` is registered last so that fixed single-segment paths
(``/list``, ``/unresolved``...) win.
"""
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Optional, Pattern, Sequence, Tuple

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.requests import Request

from billing.api.pagination import Pagination, get_pagination, parse_flag
from billing.api.responses import ApiError, created, not_found, success
from billing.db.database import get_db
from billing.db.validators.common import is_blank
from billing.db.validators.payments import AMOUNT_MAX
from billing.domain.base import MAX_INTEGER
from billing.errors import AlreadyExistsError, GuidGenerationError, ValidationError

logger = logging.getLogger(__name__)

PUT_GUID_RE = re.compile(r"^\d{6}$")
DELETE_GUID_RE = re.compile(r"^\d+$")


@dataclass
class EntityRoutes:
    domain: Any
    entity: str
    plural: str
    create_schema: Any
    update_schema: Any
    # (field, message) pairs checked on POST, reported as <field>_required
    required: Sequence[Tuple[str, str]] = ()
    # query parameter -> parser, for GET /list
    list_filters: Dict[str, Callable[[str], Any]] = field(default_factory=dict)
    code_pattern: Optional[Pattern] = None
    code_message: str = ""
    # error code used when a validation message is about the business code
    code_error: Optional[str] = None
    has_active: bool = True

    @property
    def label(self) -> str:
        return self.domain.label

    def validation_code(self, message: str, fallback: str) -> str:
        if self.code_error and "code" in message.lower():
            return self.code_error
        return fallback

    def listing(self, items, page: Pagination, **extra) -> dict:
        return {self.plural: {**extra, **page.block([item.to_json() for item in items])}}


def filter_flag(raw: str) -> bool:
    return parse_flag(raw)


def filter_upper(raw: str) -> str:
    return raw.strip().upper()


def filter_lower(raw: str) -> str:
    return raw.strip().lower()


def filter_text(raw: str) -> str:
    return raw.strip()


def filter_id(raw: str) -> int:
    value = int(raw)
    if value < 1 or value > MAX_INTEGER:
        raise ValueError(raw)
    return value


def parse_amount(raw: str) -> Decimal:
    """Positive decimal amount from a path segment, capped like stored USD amounts."""
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        value = None
    if value is None or not value.is_finite() or not (0 < value <= AMOUNT_MAX):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "invalid_amount", f"Amount must be a positive number up to {AMOUNT_MAX}")
    return value


def _add_root(router: APIRouter, endpoint, methods, **kwargs) -> None:
    """Serve a collection root both with and without the trailing slash."""
    router.add_api_route("", endpoint, methods=methods, **kwargs)
    router.add_api_route("/", endpoint, methods=methods, include_in_schema=False, **kwargs)


def load_or_404(routes: EntityRoutes, db: Session, guid: str):
    obj = routes.domain.load(db, guid=int(guid))
    if obj is None:
        raise not_found(routes.entity, f"{routes.label} not found")
    return obj


def apply_transition(routes: EntityRoutes, db: Session, guid: str, action: Callable[[Any], Any], error_code: str):
    """Load ``guid``, run a state change on it and answer with the saved row."""
    if not PUT_GUID_RE.fullmatch(guid):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "invalid_guid", "GUID must be a 6-digit number")
    obj = load_or_404(routes, db, guid)
    try:
        action(obj)
    except ValidationError as exc:
        raise ApiError(status.HTTP_400_BAD_REQUEST, error_code, str(exc))
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("%s_%s", routes.entity, error_code)
        raise ApiError(status.HTTP_400_BAD_REQUEST, error_code, str(exc))
    return success(obj.to_json())


def require_fields(data: dict, required: Sequence[Tuple[str, str]]) -> None:
    for name, message in required:
        if is_blank(data.get(name)):
            raise ApiError(status.HTTP_400_BAD_REQUEST, f"{name}_required", message)


def add_filter_route(
    router: APIRouter,
    routes: EntityRoutes,
    path: str,
    field: str,
    *,
    parser: Callable[[str], Any] = filter_text,
    echo: Optional[str] = None,
    choices: Optional[Sequence[str]] = None,
    invalid_code: Optional[str] = None,
    empty_code: Optional[str] = None,
) -> None:
    """GET ``path`` lists the rows whose ``field`` equals the ``{value}`` path segment.

    ``parser`` normalizes the segment and may raise ``ValueError``; with
    ``choices`` the parsed value must be one of them. Both failures are 400
    ``invalid_code``. With ``empty_code`` an empty result is a 404.
    """
    echo = echo or field
    invalid_code = invalid_code or f"invalid_{echo}"

    def list_by_value(value: str, db: Session = Depends(get_db), page: Pagination = Depends(get_pagination)):
        try:
            parsed = parser(value)
        except ValueError:
            raise ApiError(status.HTTP_400_BAD_REQUEST, invalid_code, f"Invalid {echo}: '{value}'")
        if choices is not None and parsed not in choices:
            raise ApiError(status.HTTP_400_BAD_REQUEST, invalid_code, f"{echo} must be one of: {', '.join(choices)}")
        items = routes.domain.list(db, {field: parsed}, offset=page.offset, limit=page.limit)
        if not items and empty_code:
            raise ApiError(status.HTTP_404_NOT_FOUND, empty_code, f"No {routes.label.lower()} found for {echo} '{parsed}'")
        return success(routes.listing(items, page, **{echo: parsed}))

    router.add_api_route(path, list_by_value, methods=["GET"], name=f"{routes.plural}_by_{echo}")


def add_collection_routes(router: APIRouter, routes: EntityRoutes) -> None:
    def export(db: Session = Depends(get_db), page: Pagination = Depends(get_pagination)):
        try:
            data = routes.domain.exportable(db, offset=page.offset, limit=page.limit)
        except SQLAlchemyError as exc:
            logger.exception("%s_export_failed", routes.entity)
            raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "export_failed", f"Failed to export {routes.plural}: {exc}")
        return success({routes.plural: data})

    _add_root(router, export, ["GET"], name=f"export_{routes.plural}")

    @router.get("/revision", name=f"{routes.entity}_revision")
    def revision(db: Session = Depends(get_db)):
        return success({
            "revision": routes.domain.revision(db),
            "checked_at": datetime.now(timezone.utc).isoformat(),
        })

    @router.get("/list", name=f"list_{routes.plural}")
    def list_entities(request: Request, db: Session = Depends(get_db), page: Pagination = Depends(get_pagination)):
        conditions = {}
        for name, parser in routes.list_filters.items():
            raw = request.query_params.get(name)
            if not raw:
                continue
            try:
                conditions[name] = parser(raw)
            except ValueError:
                raise ApiError(status.HTTP_400_BAD_REQUEST, f"invalid_{name}", f"Invalid {name}: '{raw}'")
        items = routes.domain.list(db, conditions, offset=page.offset, limit=page.limit)
        return success(routes.listing(items, page))

    if routes.has_active:
        @router.get("/active/{active_status}", name=f"{routes.plural}_by_active_status")
        def by_active_status(active_status: str, db: Session = Depends(get_db),
                             page: Pagination = Depends(get_pagination)):
            active = parse_flag(active_status)
            items = routes.domain.list_by_active_status(db, active, offset=page.offset, limit=page.limit)
            return success(routes.listing(items, page, active=active))


def add_item_routes(router: APIRouter, routes: EntityRoutes) -> None:
    def create(payload: routes.create_schema, db: Session = Depends(get_db)):
        data = payload.model_dump(exclude_unset=True)
        require_fields(data, routes.required)
        try:
            obj = routes.domain(db).set(**data).save()
        except AlreadyExistsError as exc:
            raise ApiError(status.HTTP_409_CONFLICT, f"{routes.entity}_already_exists", str(exc))
        except ValidationError as exc:
            message = str(exc)
            raise ApiError(status.HTTP_400_BAD_REQUEST, routes.validation_code(message, "validation_failed"), message)
        except GuidGenerationError as exc:
            raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "guid_generation_failed", str(exc))
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("%s_creation_failed", routes.entity)
            raise ApiError(status.HTTP_400_BAD_REQUEST, "creation_failed", str(exc))
        return created(obj.to_json())

    _add_root(router, create, ["POST"], name=f"create_{routes.entity}", status_code=status.HTTP_201_CREATED)

    @router.put("/{guid}", name=f"update_{routes.entity}")
    def update(guid: str, payload: routes.update_schema, db: Session = Depends(get_db)):
        if not PUT_GUID_RE.fullmatch(guid):
            raise ApiError(status.HTTP_400_BAD_REQUEST, "invalid_guid", "GUID must be a 6-digit number")
        obj = load_or_404(routes, db, guid)
        try:
            obj.set(**payload.model_dump(exclude_unset=True)).save()
        except AlreadyExistsError as exc:
            raise ApiError(status.HTTP_409_CONFLICT, f"{routes.entity}_already_exists", str(exc))
        except ValidationError as exc:
            message = str(exc)
            raise ApiError(status.HTTP_400_BAD_REQUEST, routes.validation_code(message, "update_failed"), message)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("%s_update_failed", routes.entity)
            raise ApiError(status.HTTP_400_BAD_REQUEST, "update_failed", str(exc))
        return success(obj.to_json())

    @router.delete("/{guid}", name=f"delete_{routes.entity}")
    def delete(guid: str, db: Session = Depends(get_db)):
        if not DELETE_GUID_RE.fullmatch(guid):
            raise ApiError(status.HTTP_400_BAD_REQUEST, "invalid_guid", "GUID must be a positive integer")
        obj = load_or_404(routes, db, guid)
        try:
            summary = obj.delete()
        except (RuntimeError, SQLAlchemyError) as exc:
            logger.error("%s_deletion_failed: guid=%s error=%s", routes.entity, guid, exc)
            raise ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, "deletion_failed", str(exc))
        return success({"message": f"{routes.label} deleted successfully", **summary})

    if routes.code_pattern is not None:
        @router.get("/search/code/{code}", name=f"{routes.entity}_by_code")
        def search_code(code: str, db: Session = Depends(get_db)):
            key = routes.domain.key_variants(code.strip())[0]
            if not routes.code_pattern.fullmatch(key):
                raise ApiError(status.HTTP_400_BAD_REQUEST, "invalid_code_format", routes.code_message)
            obj = routes.domain.load(db, key=key)
            if obj is None:
                raise not_found(routes.entity, f"{routes.label} with code '{key}' not found")
            return success(obj.to_json())

    @router.get("/{identifier}", name=f"get_{routes.entity}")
    def get_by_identifier(identifier: str, db: Session = Depends(get_db)):
        obj = routes.domain.lookup(db, identifier)
        if obj is None:
            raise not_found(routes.entity, f"{routes.label} with identifier '{identifier}' not found")
        return success(obj.to_json())
