"""
Per-transaction mutual exclusion.

Reconciliation and merchant operations read a payment, call MAIB and write
the payment back. Two such sequences on the same transaction id (a double
return callback, a double-clicked refund) must not interleave, or the bank
sees two captures or two reversals. Locks are held in-process only; a
multi-process deployment needs the host to serialize per order.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class TransactionLocks:
    """asyncio locks keyed by MAIB transaction id, dropped when unused."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, transaction_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(transaction_id, asyncio.Lock())
        self._waiters[transaction_id] = self._waiters.get(transaction_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[transaction_id] -= 1
            if not self._waiters[transaction_id]:
                del self._waiters[transaction_id]
                del self._locks[transaction_id]

    def __len__(self) -> int:
        return len(self._locks)


transaction_locks = TransactionLocks()
