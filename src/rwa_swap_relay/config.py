"""Application settings."""

import json
from typing import Annotated

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = "RWA Swap Relay"
    api_prefix: str = ""
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "info"
    clearnode_ws_url: str = "wss://clearnet-sandbox.yellow.com/ws"
    main_private_key: SecretStr | None = None
    application_name: str = "RWA Swap Protocol"
    auth_scope: str = "test.app"
    allowance_asset: str = "ytest.usd"
    allowance_amount: int = 1_000_000_000
    session_expiry_seconds: int = 3600
    request_timeout_seconds: float = 20.0
    connect_timeout_seconds: float = 10.0
    background_methods: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["bu", "assets", "cu"]
    )
    payment_asset: str = "usdc"
    app_protocol: str = "NitroRPC/0.4"
    connect_on_startup: bool = False

    @field_validator("background_methods", mode="before")
    @classmethod
    def parse_csv_list(cls, value: object) -> object:
        """Support comma-separated env var values in addition to JSON arrays."""

        if not isinstance(value, str):
            return value
        if value.strip().startswith("["):
            return json.loads(value)
        return [item.strip() for item in value.split(",") if item.strip()]

    @model_validator(mode="after")
    def validate_node_settings(self) -> "Settings":
        """Ensure node client settings are usable."""

        if not self.clearnode_ws_url.strip():
            raise ValueError("RWA_SWAP_CLEARNODE_WS_URL must not be empty.")
        if not self.clearnode_ws_url.startswith(("ws://", "wss://")):
            raise ValueError("RWA_SWAP_CLEARNODE_WS_URL must be a ws:// or wss:// URL.")
        if self.request_timeout_seconds <= 0:
            raise ValueError("RWA_SWAP_REQUEST_TIMEOUT_SECONDS must be > 0.")
        if self.connect_timeout_seconds <= 0:
            raise ValueError("RWA_SWAP_CONNECT_TIMEOUT_SECONDS must be > 0.")
        if self.session_expiry_seconds <= 0:
            raise ValueError("RWA_SWAP_SESSION_EXPIRY_SECONDS must be > 0.")
        if self.allowance_amount < 0:
            raise ValueError("RWA_SWAP_ALLOWANCE_AMOUNT must be >= 0.")
        if not self.application_name.strip():
            raise ValueError("RWA_SWAP_APPLICATION_NAME must not be empty.")
        return self

    model_config = SettingsConfigDict(env_prefix="RWA_SWAP_", extra="ignore")


__all__ = ["Settings"]
