"""
Host wallet interfaces.

A provider is whatever exposes the CIP-30 registry (`window.cardano` in a
browser, a bridge process, or a fake in tests). Values cross this boundary
exactly as the host produces them: hex strings, numbers, plain dicts. Host
rejections are raised as HostCallError carrying the raw rejection value.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Mapping
from typing import Any, TypeVar

from pydantic import ValidationError

from cardanowallet.errors import APIError, HostCallError, decode_host_error
from cardanowallet.models import Extension, Paginate

T = TypeVar("T")


class Cip30Api(ABC):
    """The API object returned by enabling a wallet."""

    @abstractmethod
    async def get_extensions(self) -> Any:
        """List of {cip: number} objects"""

    @abstractmethod
    async def get_network_id(self) -> Any:
        """Network id number"""

    @abstractmethod
    async def get_utxos(self, amount: str | None, paginate: Paginate | None) -> Any:
        """List of hex CBOR UTxOs covering `amount` (hex CBOR value), or None"""

    @abstractmethod
    async def get_balance(self) -> Any:
        """Hex CBOR value"""

    @abstractmethod
    async def get_used_addresses(self, paginate: Paginate | None) -> Any:
        """List of hex addresses"""

    @abstractmethod
    async def get_unused_addresses(self) -> Any:
        """List of hex addresses"""

    @abstractmethod
    async def get_change_address(self) -> Any:
        """Hex address"""

    @abstractmethod
    async def get_reward_addresses(self) -> Any:
        """List of hex addresses"""

    @abstractmethod
    async def sign_tx(self, tx_hex: str, partial_sign: bool) -> Any:
        """Hex CBOR witness set"""

    @abstractmethod
    async def sign_data(self, address_hex: str, payload_hex: str) -> Any:
        """{key, signature} hex object"""

    @abstractmethod
    async def submit_tx(self, tx_hex: str) -> Any:
        """Hex transaction id"""


class WalletHandle(ABC):
    """One wallet entry of the host registry, before it is enabled."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Display name"""

    @property
    @abstractmethod
    def api_version(self) -> str:
        """Implemented CIP-30 version"""

    @property
    @abstractmethod
    def icon(self) -> str:
        """Icon as a data URI"""

    @property
    @abstractmethod
    def supported_extensions(self) -> Any:
        """List of {cip: number} objects"""

    @abstractmethod
    async def is_enabled(self) -> Any:
        """Whether the dApp is already authorised"""

    @abstractmethod
    async def enable(self, extensions: list[Extension] | None = None) -> Cip30Api:
        """Ask the user to authorise access; may raise HostCallError"""


class WalletProvider(ABC):
    """Host registry of injected wallets."""

    @abstractmethod
    def list_wallets(self) -> Mapping[str, WalletHandle] | None:
        """Wallets keyed by registry id, or None if the host has no registry"""


async def host_call(call: Awaitable[T]) -> T:
    """
    Await a host call, converting a rejection into APIError or PaginateError.
    """
    try:
        return await call
    except HostCallError as e:
        error = decode_host_error(e.payload)
        raise error from e


def parse_extensions(raw: Any) -> list[Extension]:
    """
    Validate a host list of {cip: number} objects.

    Raises:
        APIError: INTERNAL_ERROR if the list is malformed
    """
    if not isinstance(raw, list):
        raise APIError.internal(f"Expected a list of extensions, got {type(raw).__name__}")
    try:
        return [Extension.model_validate(item) for item in raw]
    except ValidationError as e:
        raise APIError.internal(f"Invalid extension: {e}") from e
