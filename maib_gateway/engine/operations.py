"""
Merchant-initiated payment operations.

Each operation follows the same shape:

  1. Precondition checks (payment state, amount bounds), all before the
     remote call
  2. One MAIB command
  3. Explicit error field → RemoteRejection; RESULT not OK → RemoteResultNotOK,
     both after a `<operation>_rejected` audit event is committed
  4. On OK, mutate the payment, record an audit event, commit

Nothing is retried. A capture or reversal that may have reached the bank
is checked by hand, not resent.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional
from urllib.parse import urlencode

from sqlalchemy.ext.asyncio import AsyncSession

from maib_gateway.audit.logger import log_event
from maib_gateway.audit.messenger import Messenger
from maib_gateway.config import GatewayConfiguration
from maib_gateway.currencies import numeric_code
from maib_gateway.engine.errors import (
    InvalidPaymentAmount,
    InvalidPaymentState,
    MaibError,
    RemoteRejection,
    RemoteResultNotOK,
)
from maib_gateway.engine.locks import TransactionLocks, transaction_locks
from maib_gateway.models.enums import PaymentState, RemoteResultCode
from maib_gateway.models.payment import Order, Payment
from maib_gateway.providers.base import GatewayClient, RemoteResult
from maib_gateway.repository import PaymentRepository

@dataclass
class CheckoutRedirect:
    payment: Payment
    redirect_url: str


def assert_payment_state(payment: Payment, states: Iterable[PaymentState]) -> None:
    allowed = {s.value for s in states}
    if payment.state not in allowed:
        raise InvalidPaymentState(f'The provided payment is in an invalid state ("{payment.state}").')


def _resolve_amount(
    payment: Payment,
    amount: Optional[Decimal],
    currency_code: Optional[str],
    limit: Decimal,
) -> Decimal:
    if currency_code and currency_code.upper() != payment.currency_code:
        raise InvalidPaymentAmount(
            f"Amount currency {currency_code} does not match payment currency {payment.currency_code}"
        )
    amount = Decimal(amount) if amount is not None else limit
    if amount <= 0:
        raise InvalidPaymentAmount(f"Invalid amount: {amount}")
    if amount > limit:
        raise InvalidPaymentAmount(
            f"Can't process {amount} {payment.currency_code}, only {limit} {payment.currency_code} is available."
        )
    return amount


async def _check_result(
    session: AsyncSession,
    result: RemoteResult,
    operation: str,
    payment: Optional[Payment] = None,
) -> None:
    """Record a failed command and raise; the audit row is committed first."""
    if result.is_ok and not result.has_error:
        return
    await log_event(session, f"{operation}_rejected", payment, details=result.payload, level=logging.ERROR)
    await session.commit()
    if result.has_error:
        raise RemoteRejection(f"MAIB error: {result.error}", payload=result.payload)
    raise RemoteResultNotOK(f"MAIB result not OK: {result.payload}", payload=result.payload)


async def start_checkout(
    session: AsyncSession,
    client: GatewayClient,
    config: GatewayConfiguration,
    order: Order,
    gateway_id: str,
) -> CheckoutRedirect:
    """
    Register a MAIB transaction for the order's balance and store a new payment.

    The payment exists before the customer leaves, so the return callback
    can find it by the transaction id MAIB assigned here.
    """
    amount = order.balance
    if amount <= 0:
        raise InvalidPaymentAmount(f"Order {order.id} has nothing left to pay")

    result = await client.register_transaction(
        amount=amount,
        currency=numeric_code(order.currency_code),
        client_ip=order.ip_address,
        description=f"Order #{order.id}",
        language=config.language,
        intent=config.intent,
    )
    if result.has_error:
        raise RemoteRejection(f"MAIB error: {result.error}", payload=result.payload)
    if not result.transaction_id:
        raise RemoteResultNotOK(f"MAIB returned no TRANSACTION_ID: {result.payload}", payload=result.payload)

    payment = await PaymentRepository(session).create_payment(
        order=order,
        amount=amount,
        currency_code=order.currency_code,
        gateway_id=gateway_id,
        transaction_id=result.transaction_id,
        initial_remote_state=RemoteResultCode.CREATED.value,
    )
    await log_event(session, "payment_registered", payment, details={
        "intent": config.intent.value,
        "amount": amount,
        "currency": order.currency_code,
    })
    await session.commit()

    redirect_url = f"{config.redirect_url}?{urlencode({'trans_id': result.transaction_id})}"
    return CheckoutRedirect(payment=payment, redirect_url=redirect_url)


async def capture_payment(
    session: AsyncSession,
    client: GatewayClient,
    config: GatewayConfiguration,
    payment: Payment,
    messenger: Messenger,
    amount: Optional[Decimal] = None,
    currency_code: Optional[str] = None,
    locks: TransactionLocks = transaction_locks,
) -> Payment:
    """
    Capture an authorized payment (second message of a DMS transaction).

    Captures the full payment amount unless a smaller amount is given.
    """
    repo = PaymentRepository(session)
    async with locks.hold(payment.remote_id):
        payment = await repo.reload_payment(payment)
        assert_payment_state(payment, [PaymentState.AUTHORIZATION])
        amount = _resolve_amount(payment, amount, currency_code, Decimal(payment.amount))

        order = await repo.get_order(payment.order_id)
        client_ip = order.ip_address if order is not None else ""

        result = await client.authorize_and_capture(
            transaction_id=payment.remote_id,
            amount=amount,
            currency=numeric_code(payment.currency_code),
            client_ip=client_ip,
            description=f"Order #{payment.order_id}",
            language=config.language,
        )
        await _check_result(session, result, "capture", payment)

        payment.state = PaymentState.COMPLETED.value
        payment.remote_state = result.result
        payment.amount = amount
        await repo.save(payment)
        await repo.record_paid(payment, amount)
        await log_event(session, "payment_captured", payment, details={
            "amount": amount,
            "currency": payment.currency_code,
            "result": result.payload,
        })
        await session.commit()

    messenger.add_status(f"Payment captured: {amount} {payment.currency_code}.")
    return payment


async def void_payment(
    session: AsyncSession,
    client: GatewayClient,
    payment: Payment,
    messenger: Messenger,
    locks: TransactionLocks = transaction_locks,
) -> None:
    """Reverse an authorization; the payment is deleted on success."""
    repo = PaymentRepository(session)
    async with locks.hold(payment.remote_id):
        payment = await repo.reload_payment(payment)
        assert_payment_state(payment, [PaymentState.AUTHORIZATION])

        result = await client.reverse_transaction(payment.remote_id, Decimal(payment.amount))
        await _check_result(session, result, "void", payment)

        await log_event(session, "payment_voided", payment, details=result.payload)
        await repo.delete(payment)
        await session.commit()

    messenger.add_status("Payment voided.")


async def refund_payment(
    session: AsyncSession,
    client: GatewayClient,
    payment: Payment,
    messenger: Messenger,
    amount: Optional[Decimal] = None,
    currency_code: Optional[str] = None,
    locks: TransactionLocks = transaction_locks,
) -> Payment:
    """
    Refund a completed payment.

    MAIB only supports reversing the full amount; smaller amounts pass the
    local bound check and are sent as requested.
    """
    repo = PaymentRepository(session)
    async with locks.hold(payment.remote_id):
        payment = await repo.reload_payment(payment)
        try:
            assert_payment_state(payment, [PaymentState.COMPLETED])
            amount = _resolve_amount(payment, amount, currency_code, payment.balance)
        except MaibError as e:
            raise type(e)(f"Refund error: {e}") from e

        result = await client.reverse_transaction(payment.remote_id, amount)
        await _check_result(session, result, "refund", payment)

        payment.state = PaymentState.REFUNDED.value
        payment.refunded_amount = Decimal(payment.refunded_amount or 0) + amount
        await repo.save(payment)
        await repo.record_paid(payment, -amount)
        await log_event(session, "payment_refunded", payment, details={
            "amount": amount,
            "currency": payment.currency_code,
            "result": result.payload,
        })
        await session.commit()

    messenger.add_status(f"Payment refunded: {amount} {payment.currency_code}.")
    return payment


async def close_business_day(
    session: AsyncSession,
    client: GatewayClient,
    messenger: Messenger,
) -> RemoteResult:
    """Close the merchant's business day at MAIB (required once a day)."""
    result = await client.close_day()
    await _check_result(session, result, "close_day")

    await log_event(session, "business_day_closed", details=result.payload)
    await session.commit()
    messenger.add_status("Business day closed.")
    return result
