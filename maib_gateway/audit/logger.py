"""
Immutable audit trail for gateway operations.

Every terminal outcome gets an append-only audit log entry with:
  - Transaction ID (MAIB's id for the payment)
  - Order ID and Payment ID
  - Action (what happened)
  - Details (the remote payload, amounts, error messages)
  - Timestamp (UTC)

Entries are keyed by plain ids so they survive the deletion of a voided
or failed payment.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from maib_gateway.models.payment import AuditLog, Payment

logger = logging.getLogger("maib_gateway.audit")


async def log_event(
    session: AsyncSession,
    action: str,
    payment: Optional[Payment] = None,
    details: Optional[dict[str, Any]] = None,
    level: int = logging.INFO,
) -> AuditLog:
    """
    Create an immutable audit log entry.

    Args:
        session: Database session.
        action: What happened (e.g. "payment_completed", "payment_voided").
        payment: The payment the event relates to, if any.
        details: Arbitrary context (serialized to JSON).
        level: Log level for the mirrored log line.

    Returns:
        The created AuditLog record.
    """
    entry = AuditLog(
        payment_id=payment.id if payment is not None else None,
        order_id=payment.order_id if payment is not None else None,
        remote_id=payment.remote_id if payment is not None else None,
        action=action,
        details=json.dumps(details, default=str) if details else None,
        timestamp=datetime.now(timezone.utc),
    )
    session.add(entry)
    logger.log(
        level,
        "AUDIT | trans=%s order=%s payment=%s action=%s | %s",
        entry.remote_id or "-",
        entry.order_id or "-",
        entry.payment_id or "-",
        action,
        entry.details[:200] if entry.details else "",
    )
    return entry
