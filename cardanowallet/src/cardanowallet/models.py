"""
Data models exchanged with CIP-30 wallets.
"""

from __future__ import annotations

from dataclasses import dataclass
from pydantic import BaseModel, Field

from cardanowallet import encoding

BYRON_ADDRESS_TYPE = 8
REWARD_ADDRESS_TYPES = (14, 15)


@dataclass(frozen=True)
class NetworkId:
    """
    Network tag as reported by the wallet or found in an address header.

    0 is any test network (pre-production or preview), 1 is mainnet; other
    values are kept as-is and reported as unknown.
    """

    value: int

    def __post_init__(self) -> None:
        if not 0 <= self.value <= 0xFF:
            raise ValueError(f"Network id out of range: {self.value}")

    @property
    def is_mainnet(self) -> bool:
        return self.value == 1

    @property
    def is_testing(self) -> bool:
        return self.value == 0

    @property
    def is_known(self) -> bool:
        return self.value in (0, 1)

    def __str__(self) -> str:
        if self.is_mainnet:
            return "mainnet"
        if self.is_testing:
            return "testing"
        return f"unknown-network-id(0x{self.value:02x})"


@dataclass(frozen=True)
class Address:
    """An address as the wallet hands it over: hex-encoded raw bytes."""

    hex: str

    @classmethod
    def from_bytes(cls, raw: bytes) -> Address:
        return cls(raw.hex())

    @classmethod
    def from_bech32(cls, text: str) -> Address:
        _, payload = encoding.decode(text)
        return cls.from_bytes(payload)

    def to_bytes(self) -> bytes:
        """
        Raises:
            ValueError: if the hex is invalid or empty
        """
        raw = bytes.fromhex(self.hex)
        if not raw:
            raise ValueError("Empty address")
        return raw

    @property
    def header_type(self) -> int:
        return self.to_bytes()[0] >> 4

    @property
    def network_id(self) -> NetworkId:
        return NetworkId(self.to_bytes()[0] & 0x0F)

    @property
    def is_reward(self) -> bool:
        return self.header_type in REWARD_ADDRESS_TYPES

    def to_bech32(self) -> str:
        """
        Render a Shelley address with its CIP-19 prefix.

        Raises:
            ValueError: for Byron addresses, which are base58 encoded
        """
        if self.header_type == BYRON_ADDRESS_TYPE:
            raise ValueError("Byron addresses have no bech32 form")
        prefix = "stake" if self.is_reward else "addr"
        if not self.network_id.is_mainnet:
            prefix += "_test"
        return encoding.encode(prefix, self.to_bytes())

    def __str__(self) -> str:
        return self.hex


class Extension(BaseModel):
    """A CIP-30 extension, identified by its CIP number."""

    cip: int = Field(..., ge=0)


class Paginate(BaseModel):
    page: int = Field(default=0, ge=0)
    limit: int = Field(..., ge=1)


class DataSignature(BaseModel):
    """Raw signData result: hex COSE_Key and hex COSE_Sign1."""

    key: str = Field(..., min_length=2)
    signature: str = Field(..., min_length=2)
