"""
MAIB ECOMM merchant handler client.

Every command is a form-encoded POST to the merchant handler, authenticated
with the merchant's client certificate. Answers are plain text, one
"KEY: value" pair per line, e.g.

    RESULT: OK
    RESULT_CODE: 000
    RRN: 123456789012

or a single "error: <message>" line. Amounts travel in minor units.
"""

import logging
import ssl
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

import httpx

from maib_gateway.config import GatewayConfiguration
from maib_gateway.engine.errors import TransportError
from maib_gateway.models.enums import PaymentIntent
from maib_gateway.providers.base import ERROR, GatewayClient, RemoteResult

logger = logging.getLogger("maib_gateway.providers.maib")


def minor_units(amount: Decimal) -> str:
    """Convert a decimal amount to the integer minor-unit string MAIB expects."""
    return str(int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)))


def parse_response(body: str) -> dict[str, str]:
    body = body.strip()
    if body[:6].lower() == "error:":
        return {ERROR: body[6:].strip()}

    payload: dict[str, str] = {}
    for line in body.splitlines():
        key, sep, value = line.partition(":")
        if sep:
            payload[key.strip()] = value.strip()
    return payload


class MaibClient(GatewayClient):
    """
    httpx-based client for the MAIB merchant handler.

    A fresh connection is opened per command with the TLS identity from the
    gateway configuration. `transport` replaces the network stack entirely
    (tests pass an httpx.MockTransport) and skips certificate loading.
    """

    def __init__(
        self,
        config: GatewayConfiguration,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._config = config
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        if self._transport is not None:
            return httpx.AsyncClient(transport=self._transport, timeout=self._config.timeout)
        return httpx.AsyncClient(
            verify=self._config.transport.ssl_context(),
            timeout=self._config.timeout,
        )

    async def _command(self, data: dict[str, Any]) -> RemoteResult:
        command = data["command"]
        try:
            async with self._client() as client:
                response = await client.post(self._config.base_uri, data=data)
                response.raise_for_status()
        except (httpx.HTTPError, ssl.SSLError, OSError) as e:
            logger.error("MAIB command %s failed: %s", command, e)
            raise TransportError(f"MAIB error: {e}") from e

        payload = parse_response(response.text)
        logger.debug("MAIB command %s answered %s", command, payload)
        return RemoteResult.from_payload(payload)

    async def register_transaction(
        self,
        amount: Decimal,
        currency: str,
        client_ip: str,
        description: str,
        language: str,
        intent: PaymentIntent,
    ) -> RemoteResult:
        sms = intent == PaymentIntent.CAPTURE
        return await self._command({
            "command": "v" if sms else "a",
            "amount": minor_units(amount),
            "currency": currency,
            "client_ip_addr": client_ip,
            "description": description,
            "language": language,
            "msg_type": "SMS" if sms else "DMS",
        })

    async def get_transaction_status(self, transaction_id: str, client_ip: str) -> RemoteResult:
        return await self._command({
            "command": "c",
            "trans_id": transaction_id,
            "client_ip_addr": client_ip,
        })

    async def authorize_and_capture(
        self,
        transaction_id: str,
        amount: Decimal,
        currency: str,
        client_ip: str,
        description: str,
        language: str,
    ) -> RemoteResult:
        return await self._command({
            "command": "t",
            "trans_id": transaction_id,
            "amount": minor_units(amount),
            "currency": currency,
            "client_ip_addr": client_ip,
            "description": description,
            "language": language,
            "msg_type": "DMS",
        })

    async def reverse_transaction(self, transaction_id: str, amount: Decimal) -> RemoteResult:
        return await self._command({
            "command": "r",
            "trans_id": transaction_id,
            "amount": minor_units(amount),
        })

    async def close_day(self) -> RemoteResult:
        return await self._command({"command": "b"})
