"""Enumerations for the MAIB gateway domain model."""

from enum import Enum


class PaymentState(str, Enum):
    """Lifecycle states for a local payment record."""

    NEW = "new"
    PENDING = "pending"
    AUTHORIZATION = "authorization"
    COMPLETED = "completed"
    REFUNDED = "refunded"


class PaymentIntent(str, Enum):
    """Whether an approved payment is captured at once or only authorized."""

    CAPTURE = "capture"
    AUTHORIZE = "authorize"


class GatewayMode(str, Enum):
    TEST = "test"
    LIVE = "live"


class RemoteResultCode(str, Enum):
    """Values of the RESULT field returned by the MAIB merchant handler."""

    OK = "OK"
    PENDING = "PENDING"
    CREATED = "CREATED"
    FAILED = "FAILED"
    DECLINED = "DECLINED"
    REVERSED = "REVERSED"
    AUTOREVERSED = "AUTOREVERSED"
    TIMEOUT = "TIMEOUT"


# States the return callback has already settled; re-entry leaves them alone.
RECONCILED_STATES = frozenset(
    {PaymentState.AUTHORIZATION, PaymentState.COMPLETED, PaymentState.REFUNDED}
)
