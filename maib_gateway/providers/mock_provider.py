"""
Mock MAIB client for local development and tests.

Answers like the real merchant handler but from memory:
  - Default answers are successful ("RESULT: OK")
  - Answers can be scripted per command, consumed in order
  - Any command can be made to raise (e.g. a TransportError)
  - Every call is recorded so tests can assert on remote traffic
"""

import asyncio
import base64
import os
from collections import defaultdict, deque
from decimal import Decimal
from typing import Any

from maib_gateway.models.enums import PaymentIntent
from maib_gateway.providers.base import GatewayClient, RemoteResult

DEFAULT_ANSWERS: dict[str, dict[str, str]] = {
    "get_transaction_status": {"RESULT": "OK", "RESULT_PS": "FINISHED", "RESULT_CODE": "000"},
    "authorize_and_capture": {"RESULT": "OK", "RESULT_CODE": "000"},
    "reverse_transaction": {"RESULT": "OK", "RESULT_CODE": "400"},
    "close_day": {"RESULT": "OK", "RESULT_CODE": "500"},
}


def _fake_transaction_id() -> str:
    # MAIB ids are 28 base64 characters
    return base64.b64encode(os.urandom(21)).decode()


class MockMaibClient(GatewayClient):
    """In-memory stand-in for the MAIB merchant handler."""

    def __init__(self, latency_ms: int = 0):
        self._latency_ms = latency_ms
        self._scripted: dict[str, deque] = defaultdict(deque)
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def script(self, command: str, answer: Any) -> "MockMaibClient":
        """Queue an answer (a payload dict or an exception) for the next call of `command`."""
        self._scripted[command].append(answer)
        return self

    def calls_to(self, command: str) -> list[dict[str, Any]]:
        return [args for name, args in self.calls if name == command]

    async def _answer(self, command: str, default: dict[str, str], **kwargs: Any) -> RemoteResult:
        self.calls.append((command, kwargs))
        if self._latency_ms > 0:
            await asyncio.sleep(self._latency_ms / 1000)

        answer: Any = default
        if self._scripted[command]:
            answer = self._scripted[command].popleft()
        if isinstance(answer, Exception):
            raise answer
        return RemoteResult.from_payload(answer)

    async def register_transaction(
        self,
        amount: Decimal,
        currency: str,
        client_ip: str,
        description: str,
        language: str,
        intent: PaymentIntent,
    ) -> RemoteResult:
        return await self._answer(
            "register_transaction",
            {"TRANSACTION_ID": _fake_transaction_id()},
            amount=amount,
            currency=currency,
            client_ip=client_ip,
            description=description,
            language=language,
            intent=intent,
        )

    async def get_transaction_status(self, transaction_id: str, client_ip: str) -> RemoteResult:
        return await self._answer(
            "get_transaction_status",
            DEFAULT_ANSWERS["get_transaction_status"],
            transaction_id=transaction_id,
            client_ip=client_ip,
        )

    async def authorize_and_capture(
        self,
        transaction_id: str,
        amount: Decimal,
        currency: str,
        client_ip: str,
        description: str,
        language: str,
    ) -> RemoteResult:
        return await self._answer(
            "authorize_and_capture",
            DEFAULT_ANSWERS["authorize_and_capture"],
            transaction_id=transaction_id,
            amount=amount,
            currency=currency,
            client_ip=client_ip,
            description=description,
            language=language,
        )

    async def reverse_transaction(self, transaction_id: str, amount: Decimal) -> RemoteResult:
        return await self._answer(
            "reverse_transaction",
            DEFAULT_ANSWERS["reverse_transaction"],
            transaction_id=transaction_id,
            amount=amount,
        )

    async def close_day(self) -> RemoteResult:
        return await self._answer("close_day", DEFAULT_ANSWERS["close_day"])
