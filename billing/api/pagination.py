"""
Query-string pagination.

``offset`` and ``limit`` are parsed leniently: leading digits are used
(``"10abc"`` -> 10) and out-of-range values are ignored rather than
rejected. ``limit`` is capped at :data:`MAX_LIMIT`.
"""
import re
from dataclasses import dataclass
from typing import Optional

from starlette.requests import Request

from billing.domain.base import MAX_INTEGER, pagination_block  # re-export

MAX_LIMIT = 1000
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class Pagination:
    offset: Optional[int] = None
    limit: Optional[int] = None

    def block(self, items: list) -> dict:
        return pagination_block(items, self.offset, self.limit)


def parse_int(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    match = _LEADING_INT.match(raw)
    return int(match.group(1)) if match else None


def parse_pagination(offset_raw: Optional[str], limit_raw: Optional[str]) -> Pagination:
    offset = parse_int(offset_raw)
    limit = parse_int(limit_raw)
    if offset is not None and not (0 <= offset <= MAX_INTEGER):
        offset = None
    if limit is not None and not (0 < limit <= MAX_LIMIT):
        limit = None
    return Pagination(offset=offset, limit=limit)


def get_pagination(request: Request) -> Pagination:
    """FastAPI dependency reading ``offset``/``limit`` from the query string."""
    params = request.query_params
    return parse_pagination(params.get("offset"), params.get("limit"))


def parse_flag(raw: str) -> bool:
    """Path/query booleans: ``true`` or ``1`` (case-insensitive) mean true."""
    return str(raw).strip().lower() in ("true", "1")
