"""
Payment methods API endpoints.

``GET /{code}/quote/{amount}/{currency}`` tells whether a method can take
an amount in a currency and what it would cost in processing fees.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from billing.api.entity_router import (
    EntityRoutes,
    add_collection_routes,
    add_filter_route,
    add_item_routes,
    filter_flag,
    filter_upper,
    parse_amount,
)
from billing.api.responses import bad_request, not_found, success
from billing.db import schemas
from billing.db.database import get_db
from billing.db.validators.common import CURRENCY_CODE_RE, IDENTIFIER_RE
from billing.domain.payments import PaymentMethod

router = APIRouter(prefix="/payment-method", tags=["payment-method"])

ROUTES = EntityRoutes(
    domain=PaymentMethod,
    entity="payment_method",
    plural="payment_methods",
    create_schema=schemas.PaymentMethodCreate,
    update_schema=schemas.PaymentMethodUpdate,
    required=(
        ("code", "Payment method code is required"),
        ("name", "Payment method name is required"),
        ("method_type", "Payment method type is required"),
    ),
    list_filters={"method_type": filter_upper, "active": filter_flag},
    code_pattern=IDENTIFIER_RE,
    code_message="Payment method code must be 1-20 letters, digits or underscores",
    code_error="invalid_code",
)

add_collection_routes(router, ROUTES)
add_filter_route(router, ROUTES, "/type/{value}", "method_type", parser=filter_upper)


@router.get("/{identifier}/quote/{amount}/{currency}")
def quote(identifier: str, amount: str, currency: str, db: Session = Depends(get_db)):
    method = PaymentMethod.lookup(db, identifier)
    if method is None:
        raise not_found("payment_method", f"Payment method with identifier '{identifier}' not found")
    value = parse_amount(amount)
    code = currency.strip().upper()
    if not CURRENCY_CODE_RE.fullmatch(code):
        raise bad_request("invalid_currency_code", "Currency code must be exactly 3 letters (ISO 4217)")
    return success({
        "payment_method": method.get("code"),
        "amount_usd": value,
        "currency_code": code,
        "active": method.get("active"),
        "currency_supported": method.supports(code),
        "amount_accepted": method.accepts_amount(value),
        "processing_fee_usd": method.processing_fee(value),
    })


add_item_routes(router, ROUTES)
