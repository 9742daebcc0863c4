"""
cardanowallet - CIP-30 wallet connector

Discovers host wallets, enables them and converts their hex/CBOR payloads
into cardanocore types.
"""

__version__ = "0.4.0"

from cardanowallet.config import ConnectorConfig, get_config
from cardanowallet.connected import ConnectedWallet
from cardanowallet.errors import (
    APIError,
    APIErrorCode,
    DataSignError,
    DataSignErrorCode,
    HostCallError,
    PaginateError,
    decode_host_error,
)
from cardanowallet.models import Address, DataSignature, Extension, NetworkId, Paginate
from cardanowallet.provider import Cip30Api, WalletHandle, WalletProvider
from cardanowallet.wallet import Wallet, wallets

__all__ = [
    "APIError",
    "APIErrorCode",
    "Address",
    "Cip30Api",
    "ConnectedWallet",
    "ConnectorConfig",
    "DataSignError",
    "DataSignErrorCode",
    "DataSignature",
    "Extension",
    "HostCallError",
    "NetworkId",
    "Paginate",
    "PaginateError",
    "Wallet",
    "WalletHandle",
    "WalletProvider",
    "decode_host_error",
    "get_config",
    "wallets",
]
