"""
Test configuration for cardanocore tests.
"""

from __future__ import annotations

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from cardanocore.cbor import CborWriter
from cardanocore.cose import build_sig_structure
from cardanocore.crypto import key_hash
from cardanocore.models import LegacyTransactionOutput, TransactionInput, Utxo
from cardanocore.value import Coin, Multiasset

POLICY_A = bytes.fromhex("aa" * 28)
POLICY_B = bytes.fromhex("bb" * 28)


class CoseFactory:
    """Builds signData results the way a CIP-30 wallet would."""

    def __init__(self, private_key: Ed25519PrivateKey):
        self.private_key = private_key
        self.public_key = private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
        # Enterprise address, mainnet, payment key hash credential
        self.address = bytes([0x61]) + key_hash(self.public_key)

    def key(self, x: bytes | None = None, include_x: bool = True) -> bytes:
        """COSE_Key: {1: 1 (OKP), 3: -8 (EdDSA), -1: 6 (Ed25519), -2: x}"""
        writer = CborWriter()
        writer.write_map_header(4 if include_x else 3)
        writer.write_int(1)
        writer.write_int(1)
        writer.write_int(3)
        writer.write_int(-8)
        writer.write_int(-1)
        writer.write_int(6)
        if include_x:
            writer.write_int(-2)
            writer.write_bytes(self.public_key if x is None else x)
        return writer.to_bytes()

    def protected(self, address: bytes | None = None, include_address: bool = True) -> bytes:
        writer = CborWriter()
        writer.write_map_header(2 if include_address else 1)
        writer.write_int(1)
        writer.write_int(-8)
        if include_address:
            writer.write_text("address")
            writer.write_bytes(self.address if address is None else address)
        return writer.to_bytes()

    def sign(self, protected: bytes, payload: bytes) -> bytes:
        return self.private_key.sign(build_sig_structure(protected, payload))

    def sign1(
        self,
        payload: bytes = b"hello cardano",
        protected: bytes | None = None,
        signature: bytes | None = None,
        tagged: bool = False,
        indefinite: bool = False,
    ) -> bytes:
        if protected is None:
            protected = self.protected()
        if signature is None:
            signature = self.sign(protected, payload)

        writer = CborWriter()
        if tagged:
            writer.write_tag(18)
        if indefinite:
            writer.write_raw(b"\x9f")
        else:
            writer.write_array_header(4)
        writer.write_bytes(protected)
        writer.write_map_header(1)
        writer.write_text("hashed")
        writer.write_raw(b"\xf4")
        writer.write_bytes(payload)
        writer.write_bytes(signature)
        if indefinite:
            writer.write_raw(b"\xff")
        return writer.to_bytes()


@pytest.fixture
def private_key() -> Ed25519PrivateKey:
    """Deterministic signing key (not for production use!)."""
    return Ed25519PrivateKey.from_private_bytes(bytes(range(32)))


@pytest.fixture
def cose(private_key: Ed25519PrivateKey) -> CoseFactory:
    return CoseFactory(private_key)


@pytest.fixture
def policy_a() -> bytes:
    return POLICY_A


@pytest.fixture
def policy_b() -> bytes:
    return POLICY_B


@pytest.fixture
def make_utxo():
    """Factory for UTxOs with a legacy output holding the given value."""

    def _make(index: int, coin: int, assets: dict[bytes, dict[bytes, int]] | None = None) -> Utxo:
        value = Multiasset(coin, assets) if assets else Coin(coin)
        return Utxo(
            input=TransactionInput(bytes([index]) * 32, index),
            output=LegacyTransactionOutput(address=bytes([0x61]) + bytes(28), value=value),
        )

    return _make
