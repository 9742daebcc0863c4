"""
Configuration management using pydantic-settings.

Every field can be set from the environment with the CARDANO_CONNECTOR_
prefix, e.g. CARDANO_CONNECTOR_PAGE_SIZE=50.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConnectorConfig(BaseSettings):
    """Behaviour of Wallet and ConnectedWallet."""

    model_config = SettingsConfigDict(env_prefix="CARDANO_CONNECTOR_", case_sensitive=False)

    log_level: str = "INFO"

    # signData checks
    verify_signatures: bool = True
    require_address_match: bool = True

    # When set, all_utxos() without an explicit page walks pages of this size
    page_size: int | None = Field(default=None, ge=1, le=1000)
    # Upper bound on the pages all_utxos() walks
    max_pages: int = Field(default=100, ge=1)

    # When set, network_id() warns if the wallet reports another network
    expected_network: int | None = Field(default=None, ge=0, le=0xFF)


def get_config() -> ConnectorConfig:
    return ConnectorConfig()
