"""
Return-callback reconciliation: the payment state machine.

When the customer comes back from the MAIB client handler, the bank only
tells us the transaction id. The flow for each callback:

  1. Locate the local payment by remote transaction id
  2. Query MAIB for the transaction result
  3. Decide the transition from the RESULT field and the gateway intent
  4. Apply it (save or delete), record an audit event, tell the customer

Transitions:
  - OK, intent authorize        → authorization
  - OK, intent capture / unset  → completed
  - PENDING                     → pending (check again later)
  - anything else               → payment deleted, PaymentFailed raised

A payment that becomes completed counts towards the order's paid total.

A payment the callback has already settled (authorization, completed,
refunded) is returned as is: no remote query, no second notification.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from maib_gateway.audit.logger import log_event
from maib_gateway.audit.messenger import Messenger
from maib_gateway.config import GatewayConfiguration
from maib_gateway.engine.errors import (
    MissingTransactionId,
    PaymentFailed,
    PaymentNotFound,
    RemoteRejection,
)
from maib_gateway.engine.locks import TransactionLocks, transaction_locks
from maib_gateway.models.enums import RECONCILED_STATES, PaymentIntent, PaymentState
from maib_gateway.models.payment import Payment
from maib_gateway.providers.base import GatewayClient, RemoteResult
from maib_gateway.repository import PaymentRepository

logger = logging.getLogger("maib_gateway.reconciliation")

SUCCESS_MESSAGE = "Your transaction was successful."
PENDING_MESSAGE = "Your transaction is still being processed. Please check its status later."
CANCEL_MESSAGE = (
    "You have canceled checkout at MAIB but may resume the checkout process here when you are ready."
)


@dataclass
class Transition:
    """The decision for one remote result."""

    action: str  # "authorized", "completed", "pending", "failed"
    state: Optional[PaymentState]  # None when the payment is to be deleted

    @property
    def deletes_payment(self) -> bool:
        return self.state is None


def decide_transition(result: RemoteResult, intent: Optional[PaymentIntent]) -> Transition:
    """Map a MAIB transaction result to the next local payment state."""
    if result.is_ok:
        if intent == PaymentIntent.AUTHORIZE:
            return Transition(action="authorized", state=PaymentState.AUTHORIZATION)
        return Transition(action="completed", state=PaymentState.COMPLETED)

    if result.is_pending:
        return Transition(action="pending", state=PaymentState.PENDING)

    return Transition(action="failed", state=None)


async def reconcile_return(
    session: AsyncSession,
    client: GatewayClient,
    config: GatewayConfiguration,
    transaction_id: Optional[str],
    gateway_ids: Sequence[str],
    messenger: Messenger,
    locks: TransactionLocks = transaction_locks,
) -> Payment:
    """
    Reconcile a local payment with MAIB after the customer's return.

    Args:
        session: Database session.
        client: MAIB client.
        config: Gateway configuration (intent decides authorize vs. capture).
        transaction_id: The trans_id MAIB put on the return URL.
        gateway_ids: Gateway instances whose payments may match.
        messenger: Sink for customer-facing messages.

    Returns:
        The updated payment.

    Raises:
        MissingTransactionId: The callback carried no transaction id.
        PaymentNotFound: No local payment matches the transaction id.
        TransportError: MAIB could not be reached.
        RemoteRejection: MAIB answered with an error.
        PaymentFailed: The transaction failed; the payment was deleted.
    """
    if not transaction_id:
        raise MissingTransactionId("MAIB return redirect error: Missing TRANSACTION_ID")

    repo = PaymentRepository(session)

    async with locks.hold(transaction_id):
        payment = await repo.find_payment_by_remote_id(transaction_id, gateway_ids)
        if payment is None:
            raise PaymentNotFound(
                f"MAIB error: failed to locate payment for TRANSACTION_ID {transaction_id}"
            )

        if payment.state in {s.value for s in RECONCILED_STATES}:
            logger.info(
                "Payment %s (trans %s) already reconciled as %s, skipping",
                payment.id,
                transaction_id,
                payment.state,
            )
            return payment

        order = await repo.get_order(payment.order_id)
        if order is None:
            raise PaymentNotFound(f"MAIB error: order {payment.order_id} for payment {payment.id} not found")

        result = await client.get_transaction_status(transaction_id, order.ip_address)

        if result.has_error:
            await log_event(session, "remote_rejected", payment, details=result.payload, level=logging.ERROR)
            await session.commit()
            raise RemoteRejection(f"MAIB error: {result.error}", payload=result.payload)

        transition = decide_transition(result, config.intent)

        if transition.deletes_payment:
            messenger.add_error(f"Your transaction was cancelled. Remote status: {result.result}")
            await log_event(session, "payment_failed", payment, details=result.payload, level=logging.ERROR)
            await repo.delete(payment)
            await session.commit()
            raise PaymentFailed(result.result, result.result_code, payload=result.payload)

        payment.state = transition.state.value
        payment.remote_state = result.result
        await repo.save(payment)
        if transition.state == PaymentState.COMPLETED:
            await repo.record_paid(payment, Decimal(payment.amount))

        if transition.state == PaymentState.PENDING:
            messenger.add_status(PENDING_MESSAGE)
        else:
            messenger.add_status(SUCCESS_MESSAGE)
        await log_event(session, f"payment_{transition.action}", payment, details=result.payload)
        await session.commit()

    return payment


def on_cancel(messenger: Messenger) -> None:
    """The customer abandoned the MAIB page; nothing changes locally."""
    messenger.add_status(CANCEL_MESSAGE)
