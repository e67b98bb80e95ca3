from maib_gateway.models.enums import GatewayMode, PaymentIntent, PaymentState, RemoteResultCode
from maib_gateway.models.payment import AuditLog, Base, Order, Payment

__all__ = [
    "Base",
    "Order",
    "Payment",
    "AuditLog",
    "PaymentState",
    "PaymentIntent",
    "GatewayMode",
    "RemoteResultCode",
]
