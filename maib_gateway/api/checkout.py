"""
Checkout endpoints.

POST /orders                 — Create an order to pay for.
GET  /orders/{id}            — Order with its balance.
POST /checkout/{order_id}    — Register a MAIB transaction, get the redirect URL.
GET  /checkout/return        — MAIB return URL (?trans_id=...), reconciles the payment.
POST /checkout/return        — Same, with trans_id posted as a form field by the bank.
GET  /checkout/cancel        — MAIB cancel URL (also accepts POST).

The return and cancel URLs are the ones to hand to the bank; they are the
same for every order, which is why the return callback finds the payment
by transaction id alone.
"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from maib_gateway.api.deps import get_gateway_client, get_gateway_config, get_gateway_ids
from maib_gateway.api.schemas import OperationResponse, PaymentDetail, operation_response, payment_to_detail
from maib_gateway.audit.messenger import Messenger
from maib_gateway.config import GatewayConfiguration, settings
from maib_gateway.database import get_session
from maib_gateway.engine.operations import start_checkout
from maib_gateway.engine.reconciliation import on_cancel, reconcile_return
from maib_gateway.models.payment import Order
from maib_gateway.providers.base import GatewayClient

router = APIRouter(tags=["checkout"])


class OrderCreate(BaseModel):
    total_amount: Decimal = Field(gt=0)
    currency_code: str = Field(default="MDL", min_length=3, max_length=3)
    ip_address: Optional[str] = None


class OrderDetail(BaseModel):
    id: str
    currency_code: str
    total_amount: Decimal
    paid_amount: Decimal
    balance: Decimal
    ip_address: str


class CheckoutResponse(BaseModel):
    redirect_url: str
    payment: PaymentDetail


def _order_to_detail(o: Order) -> OrderDetail:
    return OrderDetail(
        id=o.id,
        currency_code=o.currency_code,
        total_amount=o.total_amount,
        paid_amount=o.paid_amount,
        balance=o.balance,
        ip_address=o.ip_address,
    )


@router.post("/orders", response_model=OrderDetail, status_code=201)
async def create_order(
    body: OrderCreate,
    request: Request,
    session: AsyncSession = Depends(get_session),
):
    """Create an order; the customer's IP defaults to the caller's address."""
    ip_address = body.ip_address or (request.client.host if request.client else "127.0.0.1")
    order = Order(
        total_amount=body.total_amount,
        paid_amount=Decimal("0"),
        currency_code=body.currency_code.upper(),
        ip_address=ip_address,
    )
    session.add(order)
    await session.commit()
    return _order_to_detail(order)


@router.get("/orders/{order_id}", response_model=OrderDetail)
async def get_order(order_id: str, session: AsyncSession = Depends(get_session)):
    order = await session.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail=f"Order not found: {order_id}")
    return _order_to_detail(order)


@router.post("/checkout/{order_id}", response_model=CheckoutResponse)
async def checkout(
    order_id: str,
    session: AsyncSession = Depends(get_session),
    client: GatewayClient = Depends(get_gateway_client),
    config: GatewayConfiguration = Depends(get_gateway_config),
):
    order = await session.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail=f"Order not found: {order_id}")

    redirect = await start_checkout(session, client, config, order, settings.maib_gateway_id)
    return CheckoutResponse(
        redirect_url=redirect.redirect_url,
        payment=payment_to_detail(redirect.payment),
    )


@router.api_route("/checkout/return", methods=["GET", "POST"], response_model=OperationResponse)
async def checkout_return(
    request: Request,
    session: AsyncSession = Depends(get_session),
    client: GatewayClient = Depends(get_gateway_client),
    config: GatewayConfiguration = Depends(get_gateway_config),
    gateway_ids: list[str] = Depends(get_gateway_ids),
):
    # MAIB posts trans_id back as a form field; a GET carries it on the query string.
    trans_id = request.query_params.get("trans_id")
    if not trans_id and request.method == "POST":
        form = await request.form()
        trans_id = form.get("trans_id")

    messenger = Messenger()
    payment = await reconcile_return(session, client, config, trans_id, gateway_ids, messenger)
    return operation_response(messenger, payment)


@router.api_route("/checkout/cancel", methods=["GET", "POST"], response_model=OperationResponse)
async def checkout_cancel():
    messenger = Messenger()
    on_cancel(messenger)
    return operation_response(messenger)
