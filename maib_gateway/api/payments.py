"""
Payment query and operation endpoints.

GET  /payments/{id}          — Payment details.
GET  /payments/{id}/trace    — Full audit trail for a payment.
POST /payments/{id}/capture  — Capture an authorization (optional amount).
POST /payments/{id}/void     — Void an authorization (payment is deleted).
POST /payments/{id}/refund   — Refund a completed payment (optional amount).
POST /gateway/close-day      — Close the MAIB business day.
"""

import json
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from maib_gateway.api.deps import get_gateway_client, get_gateway_config
from maib_gateway.api.schemas import OperationResponse, PaymentDetail, operation_response, payment_to_detail
from maib_gateway.audit.messenger import Messenger
from maib_gateway.config import GatewayConfiguration
from maib_gateway.database import get_session
from maib_gateway.engine.operations import capture_payment, close_business_day, refund_payment, void_payment
from maib_gateway.models.payment import AuditLog, Payment
from maib_gateway.providers.base import GatewayClient

router = APIRouter(tags=["payments"])


class AmountRequest(BaseModel):
    amount: Optional[Decimal] = None
    currency_code: Optional[str] = None


class AuditEntry(BaseModel):
    id: int
    action: str
    details: Optional[dict] = None
    timestamp: Optional[str]


class PaymentTrace(BaseModel):
    payment: PaymentDetail
    audit_trail: list[AuditEntry]


async def _load_payment(session: AsyncSession, payment_id: str) -> Payment:
    payment = await session.get(Payment, payment_id)
    if not payment:
        raise HTTPException(status_code=404, detail=f"Payment not found: {payment_id}")
    return payment


@router.get("/payments/{payment_id}", response_model=PaymentDetail)
async def get_payment(payment_id: str, session: AsyncSession = Depends(get_session)):
    return payment_to_detail(await _load_payment(session, payment_id))


@router.get("/payments/{payment_id}/trace", response_model=PaymentTrace)
async def get_payment_trace(payment_id: str, session: AsyncSession = Depends(get_session)):
    """Payment details plus every audit log entry, oldest first."""
    payment = await _load_payment(session, payment_id)

    result = await session.execute(
        select(AuditLog)
        .where(AuditLog.payment_id == payment_id)
        .order_by(AuditLog.timestamp.asc(), AuditLog.id.asc())
    )

    audit_trail = []
    for log in result.scalars().all():
        details = None
        if log.details:
            try:
                details = json.loads(log.details)
            except (json.JSONDecodeError, TypeError):
                details = {"raw": log.details}

        audit_trail.append(AuditEntry(
            id=log.id,
            action=log.action,
            details=details,
            timestamp=log.timestamp.isoformat() if log.timestamp else None,
        ))

    return PaymentTrace(payment=payment_to_detail(payment), audit_trail=audit_trail)


@router.post("/payments/{payment_id}/capture", response_model=OperationResponse)
async def capture(
    payment_id: str,
    body: Optional[AmountRequest] = None,
    session: AsyncSession = Depends(get_session),
    client: GatewayClient = Depends(get_gateway_client),
    config: GatewayConfiguration = Depends(get_gateway_config),
):
    body = body or AmountRequest()
    payment = await _load_payment(session, payment_id)
    messenger = Messenger()
    payment = await capture_payment(
        session, client, config, payment, messenger,
        amount=body.amount, currency_code=body.currency_code,
    )
    return operation_response(messenger, payment)


@router.post("/payments/{payment_id}/void", response_model=OperationResponse)
async def void(
    payment_id: str,
    session: AsyncSession = Depends(get_session),
    client: GatewayClient = Depends(get_gateway_client),
):
    payment = await _load_payment(session, payment_id)
    messenger = Messenger()
    await void_payment(session, client, payment, messenger)
    return operation_response(messenger)


@router.post("/payments/{payment_id}/refund", response_model=OperationResponse)
async def refund(
    payment_id: str,
    body: Optional[AmountRequest] = None,
    session: AsyncSession = Depends(get_session),
    client: GatewayClient = Depends(get_gateway_client),
):
    body = body or AmountRequest()
    payment = await _load_payment(session, payment_id)
    messenger = Messenger()
    payment = await refund_payment(
        session, client, payment, messenger,
        amount=body.amount, currency_code=body.currency_code,
    )
    return operation_response(messenger, payment)


@router.post("/gateway/close-day", response_model=OperationResponse)
async def close_day(
    session: AsyncSession = Depends(get_session),
    client: GatewayClient = Depends(get_gateway_client),
):
    messenger = Messenger()
    await close_business_day(session, client, messenger)
    return operation_response(messenger)
