"""
Wallet discovery and enabling.
"""

from __future__ import annotations

from loguru import logger

from cardanowallet.config import ConnectorConfig, get_config
from cardanowallet.connected import ConnectedWallet
from cardanowallet.errors import APIError
from cardanowallet.models import Extension
from cardanowallet.provider import (
    Cip30Api,
    WalletHandle,
    WalletProvider,
    host_call,
    parse_extensions,
)


class Wallet:
    """A wallet listed by the host, not yet enabled."""

    def __init__(self, wallet_id: str, handle: WalletHandle, config: ConnectorConfig | None = None):
        self.wallet_id = wallet_id
        self.handle = handle
        self.config = config or get_config()

    @property
    def name(self) -> str:
        return self.handle.name

    @property
    def version(self) -> str:
        return self.handle.api_version

    @property
    def icon(self) -> str:
        return self.handle.icon

    @property
    def supported_extensions(self) -> list[Extension]:
        return parse_extensions(self.handle.supported_extensions)

    async def enabled(self) -> bool:
        """Whether the user already authorised this dApp."""
        result = await host_call(self.handle.is_enabled())
        if not isinstance(result, bool):
            raise APIError.internal(f"Unexpected isEnabled result: {result!r}")
        return result

    async def enable_api(self, extensions: list[Extension] | None = None) -> Cip30Api:
        logger.info(f"Enabling wallet {self.name} ({self.wallet_id})")
        return await host_call(self.handle.enable(extensions))

    async def enable(self, extensions: list[Extension] | None = None) -> ConnectedWallet:
        """
        Request access to the wallet.

        Raises:
            APIError: REFUSED if the user declines
        """
        api = await self.enable_api(extensions)
        return ConnectedWallet(self, api, self.config)

    def __repr__(self) -> str:
        return f"Wallet(id={self.wallet_id!r}, name={self.name!r}, version={self.version!r})"


def wallets(provider: WalletProvider, config: ConnectorConfig | None = None) -> list[Wallet]:
    """
    List the wallets the host exposes.

    A host without a wallet registry yields an empty list.
    """
    registry = provider.list_wallets()
    if registry is None:
        logger.debug("No CIP-30 wallet registry on this host")
        return []

    found = [Wallet(wallet_id, handle, config) for wallet_id, handle in registry.items()]
    logger.debug(f"Found {len(found)} wallet(s): {', '.join(w.wallet_id for w in found)}")
    return found
