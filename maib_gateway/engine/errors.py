"""
Domain errors raised by the gateway.

Every failure is raised up to the request boundary; nothing here is
recovered or retried. Each error carries the HTTP status the API answers
with and, where the bank answered, the raw remote payload.
"""

from typing import Any, Optional


class MaibError(Exception):
    """Base exception for gateway errors."""

    http_status = 400

    def __init__(self, message: str, payload: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.payload = payload


class TransportError(MaibError):
    """Network or TLS failure while talking to MAIB."""

    http_status = 502


class RemoteRejection(MaibError):
    """MAIB answered with an explicit error field."""

    http_status = 502


class RemoteResultNotOK(MaibError):
    """The call went through but the RESULT field was not OK."""

    http_status = 502


class PaymentFailed(RemoteResultNotOK):
    """The customer's transaction was declined, cancelled or timed out."""

    http_status = 402

    def __init__(self, status: Optional[str], reason: Optional[str], payload: Optional[dict[str, Any]] = None):
        super().__init__(
            f"Payment failed. Remote status: {status}. Remote reason: {reason}.",
            payload=payload,
        )
        self.status = status
        self.reason = reason


class InvalidPaymentState(MaibError):
    """The payment is not in the state the operation requires."""

    http_status = 409


class InvalidPaymentAmount(MaibError):
    """The requested amount or its currency does not fit the payment."""

    http_status = 422


class PaymentNotFound(MaibError):
    http_status = 404


class MissingTransactionId(MaibError):
    http_status = 400
