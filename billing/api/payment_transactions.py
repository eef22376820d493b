"""
Payment transactions API endpoints.

A transaction settles either a billing cycle or a license adjustment.
Completing a transaction also completes its billing cycle.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from billing.api.entity_router import (
    EntityRoutes,
    add_collection_routes,
    add_filter_route,
    add_item_routes,
    apply_transition,
    filter_id,
    filter_upper,
    require_fields,
)
from billing.api.responses import not_found, success
from billing.db import schemas
from billing.db.database import get_db
from billing.db.enums import PaymentStatus, values
from billing.domain.payments import PaymentTransaction

router = APIRouter(prefix="/payment-transaction", tags=["payment-transaction"])

ROUTES = EntityRoutes(
    domain=PaymentTransaction,
    entity="payment_transaction",
    plural="payment_transactions",
    create_schema=schemas.PaymentTransactionCreate,
    update_schema=schemas.PaymentTransactionUpdate,
    required=(
        ("payment_method", "Payment method is required"),
        ("amount_usd", "Amount (USD) is required"),
        ("amount_local", "Local amount is required"),
        ("currency_code", "Currency code is required"),
        ("exchange_rate_used", "Exchange rate is required"),
    ),
    list_filters={
        "billing_cycle": filter_id,
        "adjustment": filter_id,
        "payment_method": filter_id,
        "transaction_status": filter_upper,
        "currency_code": filter_upper,
    },
    has_active=False,
)

add_collection_routes(router, ROUTES)
add_filter_route(router, ROUTES, "/billing-cycle/{value}", "billing_cycle", parser=filter_id,
                 echo="billing_cycle_id")
add_filter_route(router, ROUTES, "/adjustment/{value}", "adjustment", parser=filter_id, echo="adjustment_id")
add_filter_route(router, ROUTES, "/status/{value}", "transaction_status", parser=filter_upper,
                 choices=values(PaymentStatus), invalid_code="invalid_status")


@router.get("/search/reference/{reference}")
def transaction_by_reference(reference: str, db: Session = Depends(get_db)):
    transaction = PaymentTransaction.load(db, key=reference.strip())
    if transaction is None:
        raise not_found("payment_transaction", f"Payment transaction with reference '{reference}' not found")
    return success(transaction.to_json())


@router.post("/{guid}/complete")
def complete_transaction(guid: str, db: Session = Depends(get_db)):
    return apply_transition(ROUTES, db, guid, lambda transaction: transaction.mark_completed(), "completion_failed")


@router.post("/{guid}/fail")
def fail_transaction(guid: str, payload: schemas.PaymentFailure, db: Session = Depends(get_db)):
    require_fields(payload.model_dump(), (("reason", "Failure reason is required"),))
    return apply_transition(ROUTES, db, guid, lambda transaction: transaction.mark_failed(payload.reason), "status_change_failed")


add_item_routes(router, ROUTES)
