"""Data access for orders and payments."""

from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from maib_gateway.engine.errors import InvalidPaymentAmount, PaymentNotFound
from maib_gateway.models.enums import PaymentState
from maib_gateway.models.payment import Order, Payment


class PaymentRepository:
    """Lookup, creation and mutation of payment records."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_order(self, order_id: str) -> Optional[Order]:
        return await self.session.get(Order, order_id)

    async def get_payment(self, payment_id: str) -> Optional[Payment]:
        return await self.session.get(Payment, payment_id)

    async def reload_payment(self, payment: Payment) -> Payment:
        """Read the payment row again, discarding what the session holds."""
        current = await self.session.get(Payment, payment.id, populate_existing=True)
        if current is None:
            raise PaymentNotFound(f"Payment {payment.id} (trans {payment.remote_id}) no longer exists")
        return current

    async def find_payment_by_remote_id(
        self,
        transaction_id: str,
        gateway_ids: Iterable[str],
    ) -> Optional[Payment]:
        """Find the payment MAIB knows under `transaction_id`, limited to our gateways."""
        result = await self.session.execute(
            select(Payment)
            .where(Payment.remote_id == transaction_id)
            .where(Payment.gateway_id.in_(list(gateway_ids)))
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def create_payment(
        self,
        order: Order,
        amount: Decimal,
        currency_code: str,
        gateway_id: str,
        transaction_id: str,
        initial_remote_state: str,
    ) -> Payment:
        if currency_code != order.currency_code:
            raise InvalidPaymentAmount(
                f"Payment currency {currency_code} does not match order currency {order.currency_code}"
            )
        payment = Payment(
            order_id=order.id,
            gateway_id=gateway_id,
            amount=amount,
            currency_code=currency_code,
            state=PaymentState.NEW.value,
            remote_id=transaction_id,
            remote_state=initial_remote_state,
        )
        self.session.add(payment)
        await self.session.flush()
        return payment

    async def record_paid(self, payment: Payment, delta: Decimal) -> Optional[Order]:
        """Move the order's paid total by `delta` (negative for refunds)."""
        await self.session.execute(
            update(Order)
            .where(Order.id == payment.order_id)
            .values(paid_amount=Order.paid_amount + delta)
        )
        return await self.session.get(Order, payment.order_id, populate_existing=True)

    async def save(self, payment: Payment) -> Payment:
        self.session.add(payment)
        await self.session.flush()
        return payment

    async def delete(self, payment: Payment) -> None:
        await self.session.delete(payment)
        await self.session.flush()
