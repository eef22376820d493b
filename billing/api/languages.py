"""Languages API endpoints (``/master/language``)."""
from fastapi import APIRouter

from billing.api.entity_router import EntityRoutes, add_collection_routes, add_item_routes, filter_flag
from billing.db import schemas
from billing.db.validators.common import LANGUAGE_CODE_RE
from billing.domain.reference import Language

router = APIRouter(prefix="/master/language", tags=["language"])

ROUTES = EntityRoutes(
    domain=Language,
    entity="language",
    plural="languages",
    create_schema=schemas.LanguageCreate,
    update_schema=schemas.LanguageUpdate,
    required=(
        ("code", "Language code is required"),
        ("name_en", "English name is required"),
        ("name_local", "Local name is required"),
    ),
    list_filters={"active": filter_flag},
    code_pattern=LANGUAGE_CODE_RE,
    code_message="Language code must be exactly 2 lowercase letters (ISO 639-1)",
    code_error="invalid_code",
)

add_collection_routes(router, ROUTES)
add_item_routes(router, ROUTES)
