from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .common import Payload, Record


class BillingCycleBase(Payload):
    global_license: Optional[int] = None
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    base_employee_count: Optional[int] = None
    final_employee_count: Optional[int] = None
    base_amount_usd: Optional[Decimal] = None
    adjustments_amount_usd: Optional[Decimal] = None
    subtotal_usd: Optional[Decimal] = None
    tax_amount_usd: Optional[Decimal] = None
    total_amount_usd: Optional[Decimal] = None
    billing_currency_code: Optional[str] = None
    exchange_rate_used: Optional[Decimal] = None
    base_amount_local: Optional[Decimal] = None
    adjustments_amount_local: Optional[Decimal] = None
    subtotal_local: Optional[Decimal] = None
    tax_amount_local: Optional[Decimal] = None
    total_amount_local: Optional[Decimal] = None
    tax_rules_applied: Optional[List[Dict[str, Any]]] = None
    billing_status: Optional[str] = None
    invoice_generated_at: Optional[datetime] = None
    payment_due_date: Optional[datetime] = None
    payment_completed_at: Optional[datetime] = None


class BillingCycleCreate(BillingCycleBase):
    pass


class BillingCycleUpdate(BillingCycleBase):
    pass


class BillingCycle(Record):
    global_license: int
    period_start: datetime
    period_end: datetime
    base_employee_count: int
    final_employee_count: int
    base_amount_usd: float
    adjustments_amount_usd: float
    subtotal_usd: float
    tax_amount_usd: float
    total_amount_usd: float
    billing_currency_code: str
    exchange_rate_used: float
    base_amount_local: float
    adjustments_amount_local: float
    subtotal_local: float
    tax_amount_local: float
    total_amount_local: float
    tax_rules_applied: Optional[List[Dict[str, Any]]] = None
    billing_status: str
    invoice_generated_at: Optional[datetime] = None
    payment_due_date: datetime
    payment_completed_at: Optional[datetime] = None


class PaymentMethodBase(Payload):
    code: Optional[str] = None
    name: Optional[str] = None
    method_type: Optional[str] = None
    supported_currencies: Optional[List[str]] = None
    active: Optional[bool] = None
    processing_fee_rate: Optional[Decimal] = None
    min_amount_usd: Optional[Decimal] = None
    max_amount_usd: Optional[Decimal] = None


class PaymentMethodCreate(PaymentMethodBase):
    pass


class PaymentMethodUpdate(PaymentMethodBase):
    pass


class PaymentMethod(Record):
    code: str
    name: str
    method_type: str
    supported_currencies: Optional[List[str]] = None
    active: bool
    processing_fee_rate: float
    min_amount_usd: float
    max_amount_usd: Optional[float] = None


class PaymentTransactionBase(Payload):
    billing_cycle: Optional[int] = None
    adjustment: Optional[int] = None
    payment_method: Optional[int] = None
    amount_usd: Optional[Decimal] = None
    amount_local: Optional[Decimal] = None
    currency_code: Optional[str] = None
    exchange_rate_used: Optional[Decimal] = None
    payment_reference: Optional[str] = None
    transaction_status: Optional[str] = None
    initiated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    failure_reason: Optional[str] = None


class PaymentTransactionCreate(PaymentTransactionBase):
    pass


class PaymentTransactionUpdate(PaymentTransactionBase):
    pass


class PaymentTransaction(Record):
    billing_cycle: Optional[int] = None
    adjustment: Optional[int] = None
    payment_method: int
    amount_usd: float
    amount_local: float
    currency_code: str
    exchange_rate_used: float
    payment_reference: str
    transaction_status: str
    initiated_at: datetime
    completed_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    failure_reason: Optional[str] = None


class PaymentFailure(Payload):
    reason: Optional[str] = None
