"""SQLAlchemy models for the MAIB gateway."""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


class Order(Base):
    """
    The host commerce order a payment is taken for.

    Only the fields the gateway needs are modelled: currency, totals and
    the customer's IP address (MAIB requires it on every command).
    """

    __tablename__ = "orders"

    id = Column(String(12), primary_key=True, default=_new_id)
    currency_code = Column(String(3), nullable=False, default="MDL")
    total_amount = Column(Numeric(12, 2), nullable=False)
    paid_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    ip_address = Column(String(45), nullable=False, default="127.0.0.1")
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    @property
    def balance(self) -> Decimal:
        return Decimal(self.total_amount) - Decimal(self.paid_amount or 0)


class Payment(Base):
    """
    One attempt to charge an order through MAIB.

    Created in state "new" once MAIB has assigned a transaction id, before
    the customer is redirected. remote_id is the join key with the bank.
    Failed, cancelled and voided payments are deleted, not archived.
    """

    __tablename__ = "payments"

    id = Column(String(12), primary_key=True, default=_new_id)
    order_id = Column(String(12), nullable=False, index=True)
    gateway_id = Column(String(50), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    currency_code = Column(String(3), nullable=False)
    state = Column(String(20), nullable=False, default="new")
    remote_id = Column(String(100), nullable=False, unique=True)
    remote_state = Column(String(30), nullable=True)  # Last MAIB RESULT value
    refunded_amount = Column(Numeric(12, 2), nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    @property
    def balance(self) -> Decimal:
        """Captured amount not yet refunded."""
        return Decimal(self.amount) - Decimal(self.refunded_amount or 0)


class AuditLog(Base):
    """
    Immutable audit trail entry.

    Holds plain ids rather than foreign keys so that the trail of a
    payment outlives the payment row itself.
    """

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    payment_id = Column(String(12), nullable=True, index=True)
    order_id = Column(String(12), nullable=True, index=True)
    remote_id = Column(String(100), nullable=True, index=True)
    action = Column(String(50), nullable=False)
    details = Column(Text, nullable=True)
    timestamp = Column(DateTime(timezone=True), default=_utcnow)
