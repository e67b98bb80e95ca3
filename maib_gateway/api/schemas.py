"""Response models shared by the checkout and payment endpoints."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from maib_gateway.audit.messenger import Messenger
from maib_gateway.models.payment import Payment


class PaymentDetail(BaseModel):
    id: str
    order_id: str
    gateway_id: str
    amount: Decimal
    currency_code: str
    state: str
    remote_id: str
    remote_state: Optional[str]
    refunded_amount: Optional[Decimal]
    created_at: Optional[str]
    updated_at: Optional[str]


class MessageOut(BaseModel):
    type: str
    text: str


class OperationResponse(BaseModel):
    payment: Optional[PaymentDetail] = None
    messages: list[MessageOut] = []


def payment_to_detail(p: Payment) -> PaymentDetail:
    return PaymentDetail(
        id=p.id,
        order_id=p.order_id,
        gateway_id=p.gateway_id,
        amount=p.amount,
        currency_code=p.currency_code,
        state=p.state,
        remote_id=p.remote_id,
        remote_state=p.remote_state,
        refunded_amount=p.refunded_amount,
        created_at=p.created_at.isoformat() if p.created_at else None,
        updated_at=p.updated_at.isoformat() if p.updated_at else None,
    )


def operation_response(messenger: Messenger, payment: Optional[Payment] = None) -> OperationResponse:
    return OperationResponse(
        payment=payment_to_detail(payment) if payment is not None else None,
        messages=[MessageOut(type=m.type, text=m.text) for m in messenger.messages],
    )
