"""Shared FastAPI dependencies."""

from fastapi import Depends

from maib_gateway.config import GatewayConfiguration, settings
from maib_gateway.providers.base import GatewayClient
from maib_gateway.providers.maib import MaibClient
from maib_gateway.providers.mock_provider import MockMaibClient

_mock_client = MockMaibClient()


def get_gateway_config() -> GatewayConfiguration:
    return settings.gateway_configuration()


def get_gateway_client(config: GatewayConfiguration = Depends(get_gateway_config)) -> GatewayClient:
    """The MAIB client, or the in-memory mock when MAIB_USE_MOCK is set."""
    if settings.maib_use_mock:
        return _mock_client
    return MaibClient(config)


def get_gateway_ids() -> list[str]:
    return [settings.maib_gateway_id]
