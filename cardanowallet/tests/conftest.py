"""
Test configuration for cardanowallet tests.

FakeProvider stands in for the host registry. Each FakeApi method returns
whatever is stored in `responses`, or raises HostCallError with the payload
stored in `failures`.
"""

from __future__ import annotations

from typing import Any

import pytest
from cardanocore.cbor import CborWriter
from cardanocore.cose import build_sig_structure
from cardanocore.crypto import key_hash
from cardanocore.models import PostAlonzoTransactionOutput, TransactionInput, Utxo
from cardanocore.value import Coin, Multiasset
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from cardanowallet.config import ConnectorConfig
from cardanowallet.errors import HostCallError
from cardanowallet.models import Extension, Paginate
from cardanowallet.provider import Cip30Api, WalletHandle, WalletProvider
from cardanowallet.wallet import Wallet

POLICY = bytes.fromhex("cc" * 28)


class FakeApi(Cip30Api):
    def __init__(self, responses: dict[str, Any] | None = None):
        self.responses: dict[str, Any] = responses or {}
        self.failures: dict[str, Any] = {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def _respond(self, method: str, *args: Any) -> Any:
        self.calls.append((method, args))
        if method in self.failures:
            raise HostCallError(self.failures[method])
        response = self.responses.get(method)
        if callable(response):
            return response(*args)
        return response

    async def get_extensions(self) -> Any:
        return self._respond("get_extensions")

    async def get_network_id(self) -> Any:
        return self._respond("get_network_id")

    async def get_utxos(self, amount: str | None, paginate: Paginate | None) -> Any:
        return self._respond("get_utxos", amount, paginate)

    async def get_balance(self) -> Any:
        return self._respond("get_balance")

    async def get_used_addresses(self, paginate: Paginate | None) -> Any:
        return self._respond("get_used_addresses", paginate)

    async def get_unused_addresses(self) -> Any:
        return self._respond("get_unused_addresses")

    async def get_change_address(self) -> Any:
        return self._respond("get_change_address")

    async def get_reward_addresses(self) -> Any:
        return self._respond("get_reward_addresses")

    async def sign_tx(self, tx_hex: str, partial_sign: bool) -> Any:
        return self._respond("sign_tx", tx_hex, partial_sign)

    async def sign_data(self, address_hex: str, payload_hex: str) -> Any:
        return self._respond("sign_data", address_hex, payload_hex)

    async def submit_tx(self, tx_hex: str) -> Any:
        return self._respond("submit_tx", tx_hex)


class FakeHandle(WalletHandle):
    def __init__(self, api: FakeApi, name: str = "Fakelace"):
        self.api = api
        self._name = name
        self.enabled = False
        self.enable_failure: Any = None
        self.enable_calls = 0
        self.extensions: Any = [{"cip": 95}]

    @property
    def name(self) -> str:
        return self._name

    @property
    def api_version(self) -> str:
        return "0.1.0"

    @property
    def icon(self) -> str:
        return "data:image/svg+xml;base64,PHN2Zy8+"

    @property
    def supported_extensions(self) -> Any:
        return self.extensions

    async def is_enabled(self) -> Any:
        return self.enabled

    async def enable(self, extensions: list[Extension] | None = None) -> Cip30Api:
        self.enable_calls += 1
        if self.enable_failure is not None:
            raise HostCallError(self.enable_failure)
        self.enabled = True
        return self.api


class FakeProvider(WalletProvider):
    def __init__(self, handles: dict[str, WalletHandle] | None):
        self.handles = handles

    def list_wallets(self) -> dict[str, WalletHandle] | None:
        return self.handles


class SignDataFactory:
    """Produces signData results signed by a fixed key."""

    def __init__(self) -> None:
        self.private_key = Ed25519PrivateKey.from_private_bytes(b"\x07" * 32)
        self.public_key = self.private_key.public_key().public_bytes(
            Encoding.Raw, PublicFormat.Raw
        )
        self.address = bytes([0x61]) + key_hash(self.public_key)

    def key(self) -> bytes:
        writer = CborWriter()
        writer.write_map_header(2)
        writer.write_int(1)
        writer.write_int(1)
        writer.write_int(-2)
        writer.write_bytes(self.public_key)
        return writer.to_bytes()

    def sign1(self, payload: bytes, address: bytes | None = None, tamper: bool = False) -> bytes:
        protected_writer = CborWriter()
        protected_writer.write_map_header(1)
        protected_writer.write_text("address")
        protected_writer.write_bytes(self.address if address is None else address)
        protected = protected_writer.to_bytes()

        signature = self.private_key.sign(build_sig_structure(protected, payload))
        if tamper:
            signature = bytes([signature[0] ^ 0xFF]) + signature[1:]

        writer = CborWriter()
        writer.write_array_header(4)
        writer.write_bytes(protected)
        writer.write_map_header(0)
        writer.write_bytes(payload)
        writer.write_bytes(signature)
        return writer.to_bytes()

    def result(self, payload: bytes, **kwargs: Any) -> dict[str, str]:
        return {"key": self.key().hex(), "signature": self.sign1(payload, **kwargs).hex()}


def make_utxo_hex(index: int, coin: int, tokens: int = 0) -> str:
    value = Multiasset(coin, {POLICY: {b"tok": tokens}}) if tokens else Coin(coin)
    utxo = Utxo(
        input=TransactionInput(bytes([index]) * 32, index),
        output=PostAlonzoTransactionOutput(address=bytes([0x61]) + bytes(28), value=value),
    )
    return utxo.to_cbor().hex()


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi(
        {
            "get_extensions": [{"cip": 95}],
            "get_network_id": 1,
            "get_change_address": "01" + "ab" * 56,
            "get_used_addresses": ["61" + "01" * 28],
            "get_unused_addresses": [],
            "get_reward_addresses": ["e1" + "02" * 28],
        }
    )


@pytest.fixture
def fake_handle(fake_api: FakeApi) -> FakeHandle:
    return FakeHandle(fake_api)


@pytest.fixture
def provider(fake_handle: FakeHandle) -> FakeProvider:
    return FakeProvider({"fakelace": fake_handle})


@pytest.fixture
def config() -> ConnectorConfig:
    return ConnectorConfig()


@pytest.fixture
def wallet(fake_handle: FakeHandle, config: ConnectorConfig) -> Wallet:
    return Wallet("fakelace", fake_handle, config)


@pytest.fixture
def sign_data_factory() -> SignDataFactory:
    return SignDataFactory()


@pytest.fixture
def utxo_hex():
    return make_utxo_hex


@pytest.fixture
def empty_provider() -> FakeProvider:
    """A host without a wallet registry."""
    return FakeProvider(None)
