"""Shared test fixtures."""

from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from maib_gateway.config import GatewayConfiguration
from maib_gateway.database import build_engine, build_sessionmaker, close_db, init_db
from maib_gateway.models.enums import PaymentIntent
from maib_gateway.models.payment import Order, Payment
from maib_gateway.providers.mock_provider import MockMaibClient

GATEWAY_ID = "maib_redirect"


@pytest_asyncio.fixture
async def db_session():
    """Create a fresh in-memory database for each test."""
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    await init_db(engine)

    async with build_sessionmaker(engine)() as session:
        yield session

    await close_db(engine)


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """File-backed database shared by several sessions, like concurrent requests."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'gateway.db'}")
    await init_db(engine)

    yield build_sessionmaker(engine)

    await close_db(engine)


@pytest_asyncio.fixture
async def order(db_session: AsyncSession) -> Order:
    order = Order(
        id="ORD-1",
        total_amount=Decimal("150.00"),
        paid_amount=Decimal("0"),
        currency_code="MDL",
        ip_address="10.0.0.7",
    )
    db_session.add(order)
    await db_session.commit()
    return order


@pytest.fixture
def make_payment(db_session: AsyncSession, order: Order):
    """Factory for payments of the test order in a given state."""

    async def _make(
        state: str,
        remote_id: str = "TX123",
        amount: str = "150.00",
        refunded_amount: str | None = None,
    ) -> Payment:
        payment = Payment(
            order_id=order.id,
            gateway_id=GATEWAY_ID,
            amount=Decimal(amount),
            currency_code="MDL",
            state=state,
            remote_id=remote_id,
            remote_state="CREATED",
            refunded_amount=Decimal(refunded_amount) if refunded_amount else None,
        )
        db_session.add(payment)
        await db_session.commit()
        return payment

    return _make


@pytest.fixture
def mock_client() -> MockMaibClient:
    return MockMaibClient()


@pytest.fixture
def capture_config() -> GatewayConfiguration:
    return GatewayConfiguration(intent=PaymentIntent.CAPTURE)


@pytest.fixture
def authorize_config() -> GatewayConfiguration:
    return GatewayConfiguration(intent=PaymentIntent.AUTHORIZE)
