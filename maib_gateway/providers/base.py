"""
Abstract MAIB gateway client interface.

The bank's merchant handler exposes a handful of commands, each a single
request/response over mutual TLS. Implementations never retry: repeating
a status query is harmless, repeating a capture or a reversal is not, so
the decision is left to the caller.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

from maib_gateway.models.enums import PaymentIntent, RemoteResultCode

RESULT = "RESULT"
RESULT_CODE = "RESULT_CODE"
TRANSACTION_ID = "TRANSACTION_ID"
ERROR = "error"


@dataclass
class RemoteResult:
    """The bank's answer to one command."""

    result: Optional[str]  # "OK", "PENDING", "FAILED", ...
    result_code: Optional[str] = None  # Reason code, e.g. "000", "116"
    error: Optional[str] = None
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "RemoteResult":
        return cls(
            result=payload.get(RESULT),
            result_code=payload.get(RESULT_CODE),
            error=payload.get(ERROR) or None,
            payload=dict(payload),
        )

    @property
    def is_ok(self) -> bool:
        return self.result == RemoteResultCode.OK.value

    @property
    def is_pending(self) -> bool:
        return self.result == RemoteResultCode.PENDING.value

    @property
    def has_error(self) -> bool:
        return bool(self.error)

    @property
    def transaction_id(self) -> Optional[str]:
        return self.payload.get(TRANSACTION_ID)


class GatewayClient(ABC):
    """Abstract base class for MAIB merchant handler clients."""

    @abstractmethod
    async def register_transaction(
        self,
        amount: Decimal,
        currency: str,
        client_ip: str,
        description: str,
        language: str,
        intent: PaymentIntent,
    ) -> RemoteResult:
        """
        Register a new transaction before redirecting the customer.

        Intent capture registers a single-message (SMS) transaction, intent
        authorize a dual-message (DMS) one that has to be captured later.

        Raises:
            TransportError: On network or TLS failure.
        """
        ...

    @abstractmethod
    async def get_transaction_status(self, transaction_id: str, client_ip: str) -> RemoteResult:
        """Query the current result of a transaction."""
        ...

    @abstractmethod
    async def authorize_and_capture(
        self,
        transaction_id: str,
        amount: Decimal,
        currency: str,
        client_ip: str,
        description: str,
        language: str,
    ) -> RemoteResult:
        """Execute the second message of a DMS transaction (capture)."""
        ...

    @abstractmethod
    async def reverse_transaction(self, transaction_id: str, amount: Decimal) -> RemoteResult:
        """Reverse a transaction. Used for both void and refund."""
        ...

    @abstractmethod
    async def close_day(self) -> RemoteResult:
        """Close the merchant's business day."""
        ...
