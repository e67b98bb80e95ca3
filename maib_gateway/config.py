"""Application and gateway configuration via environment variables."""

import ssl
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel
from pydantic_settings import BaseSettings

from maib_gateway.models.enums import GatewayMode, PaymentIntent

# MAIB ECOMM endpoints. Merchant handler takes server-to-server commands,
# client handler is where the customer is redirected to enter card details.
MAIB_TEST_BASE_URI = "https://maib.ecommerce.md:21440/ecomm/MerchantHandler"
MAIB_TEST_REDIRECT_URL = "https://maib.ecommerce.md:21443/ecomm/ClientHandler"
MAIB_LIVE_BASE_URI = "https://maib.ecommerce.md:11440/ecomm01/MerchantHandler"
MAIB_LIVE_REDIRECT_URL = "https://maib.ecommerce.md:443/ecomm01/ClientHandler"


@dataclass
class TransportConfig:
    """Client identity and peer checks for the mutually-authenticated channel."""

    cert_path: str
    key_path: str
    key_password: Optional[str] = None
    verify_peer: bool = True
    verify_host: bool = True

    def ssl_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context()
        if not self.verify_host:
            context.check_hostname = False
        if not self.verify_peer:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        context.load_cert_chain(
            certfile=self.cert_path,
            keyfile=self.key_path,
            password=self.key_password or None,
        )
        return context


class GatewayConfiguration(BaseModel):
    """Per-gateway settings loaded when the gateway is configured."""

    private_key_path: str = ""
    private_key_password: str = ""
    public_key_path: str = ""
    intent: PaymentIntent = PaymentIntent.CAPTURE
    mode: GatewayMode = GatewayMode.TEST
    language: str = "en"
    timeout: float = 30.0
    verify_peer: bool = True
    verify_host: bool = True

    @property
    def base_uri(self) -> str:
        if self.mode == GatewayMode.TEST:
            return MAIB_TEST_BASE_URI
        return MAIB_LIVE_BASE_URI

    @property
    def redirect_url(self) -> str:
        if self.mode == GatewayMode.TEST:
            return MAIB_TEST_REDIRECT_URL
        return MAIB_LIVE_REDIRECT_URL

    @property
    def transport(self) -> TransportConfig:
        return TransportConfig(
            cert_path=self.public_key_path,
            key_path=self.private_key_path,
            key_password=self.private_key_password,
            verify_peer=self.verify_peer,
            verify_host=self.verify_host,
        )


def merge_configuration(
    current: GatewayConfiguration,
    submitted: dict[str, Any],
) -> GatewayConfiguration:
    """
    Apply a configuration form submission on top of the stored configuration.

    The password field is never echoed back to the form, so an empty value
    means "keep what is stored" rather than "clear it".

    This service reads its configuration from the environment and has no
    settings form of its own; a host application that stores gateway
    settings and edits them through a form calls this on each submission.
    """
    values = current.model_dump()
    values.update({k: v for k, v in submitted.items() if k in values})
    if not submitted.get("private_key_password"):
        values["private_key_password"] = current.private_key_password
    return GatewayConfiguration(**values)


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./maib_gateway.db"
    log_level: str = "INFO"

    maib_gateway_id: str = "maib_redirect"
    maib_mode: GatewayMode = GatewayMode.TEST
    maib_intent: PaymentIntent = PaymentIntent.CAPTURE
    maib_private_key_path: str = ""
    maib_private_key_password: str = ""
    maib_public_key_path: str = ""
    maib_language: str = "en"
    maib_timeout: float = 30.0  # Seconds per remote call
    maib_verify_peer: bool = True  # Disable only against a bank test host with a private CA
    maib_verify_host: bool = True
    maib_use_mock: bool = False  # Local development without bank certificates

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def gateway_configuration(self) -> GatewayConfiguration:
        return GatewayConfiguration(
            private_key_path=self.maib_private_key_path,
            private_key_password=self.maib_private_key_password,
            public_key_path=self.maib_public_key_path,
            intent=self.maib_intent,
            mode=self.maib_mode,
            language=self.maib_language,
            timeout=self.maib_timeout,
            verify_peer=self.maib_verify_peer,
            verify_host=self.maib_verify_host,
        )


settings = Settings()
