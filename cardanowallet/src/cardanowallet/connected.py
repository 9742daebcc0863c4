"""
An enabled CIP-30 wallet.

Every value the wallet returns is untrusted: hex strings are decoded, CBOR
is parsed with cardanocore, and anything malformed surfaces as
APIError(INTERNAL_ERROR) chained to the underlying decode error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from cardanocore.cbor import CborReader
from cardanocore.consolidate import Consolidation, group_utxos
from cardanocore.constants import MAJOR_MAP, TRANSACTION_ID_LENGTH
from cardanocore.cose import SignedData, decode_signed_data
from cardanocore.errors import DecodeError, SignatureVerificationError
from cardanocore.models import TransactionInput, Utxo
from cardanocore.value import Value, value_from_cbor, value_to_cbor
from loguru import logger
from pydantic import ValidationError

from cardanowallet.config import ConnectorConfig, get_config
from cardanowallet.errors import APIError, HostCallError, PaginateError, decode_data_sign_error
from cardanowallet.models import Address, DataSignature, Extension, NetworkId, Paginate
from cardanowallet.provider import Cip30Api, host_call, parse_extensions

if TYPE_CHECKING:
    from cardanowallet.wallet import Wallet


def _decode_hex(raw: Any, what: str) -> bytes:
    if not isinstance(raw, str):
        raise APIError.internal(f"Expected hex {what}, got {type(raw).__name__}")
    try:
        return bytes.fromhex(raw)
    except ValueError as e:
        raise APIError.internal(f"Invalid hex {what}: {e}") from e


def _decode_address(raw: Any) -> Address:
    data = _decode_hex(raw, "address")
    if not data:
        raise APIError.internal("Empty address")
    return Address.from_bytes(data)


def _decode_address_list(raw: Any) -> list[Address]:
    if not isinstance(raw, list):
        raise APIError.internal(f"Expected a list of addresses, got {type(raw).__name__}")
    return [_decode_address(item) for item in raw]


class ConnectedWallet:
    """
    Wallet API access after the user authorised the dApp.

    After an ACCOUNT_CHANGE error the wallet must be re-enabled with enable().
    """

    def __init__(self, wallet: Wallet, api: Cip30Api, config: ConnectorConfig | None = None):
        self.wallet = wallet
        self.api = api
        self.config = config or get_config()

    @property
    def name(self) -> str:
        return self.wallet.name

    @property
    def version(self) -> str:
        return self.wallet.version

    @property
    def icon(self) -> str:
        return self.wallet.icon

    @property
    def supported_extensions(self) -> list[Extension]:
        return self.wallet.supported_extensions

    async def enabled_extensions(self) -> list[Extension]:
        return parse_extensions(await host_call(self.api.get_extensions()))

    async def enable(self, extensions: list[Extension] | None = None) -> None:
        """Re-enable the wallet, e.g. after the user switched accounts."""
        self.api = await self.wallet.enable_api(extensions)

    async def network_id(self) -> NetworkId:
        raw = await host_call(self.api.get_network_id())
        # JS numbers may arrive as whole floats
        if isinstance(raw, float) and raw.is_integer():
            raw = int(raw)
        if isinstance(raw, bool) or not isinstance(raw, int) or not 0 <= raw <= 0xFF:
            raise APIError.internal(f"Invalid network id: {raw!r}")
        network = NetworkId(raw)

        expected = self.config.expected_network
        if expected is not None and raw != expected:
            logger.warning(f"Wallet {self.name} is on {network}, expected {NetworkId(expected)}")
        return network

    async def balance(self) -> Value:
        data = _decode_hex(await host_call(self.api.get_balance()), "balance")
        try:
            return value_from_cbor(data, strict=False)
        except DecodeError as e:
            raise APIError.internal(f"Invalid balance: {e}") from e

    async def used_addresses(self, paginate: Paginate | None = None) -> list[Address]:
        return _decode_address_list(await host_call(self.api.get_used_addresses(paginate)))

    async def unused_addresses(self) -> list[Address]:
        return _decode_address_list(await host_call(self.api.get_unused_addresses()))

    async def change_address(self) -> Address:
        return _decode_address(await host_call(self.api.get_change_address()))

    async def reward_addresses(self) -> list[Address]:
        return _decode_address_list(await host_call(self.api.get_reward_addresses()))

    async def _fetch_utxos(self, amount: str | None, paginate: Paginate | None) -> list[Utxo]:
        try:
            raw = await host_call(self.api.get_utxos(amount, paginate))
        except PaginateError as e:
            logger.debug(f"UTxO page out of range (max size {e.max_size})")
            return []

        # null means the requested amount cannot be covered
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise APIError.internal(f"Expected a list of UTxOs, got {type(raw).__name__}")

        utxos = []
        for item in raw:
            data = _decode_hex(item, "utxo")
            try:
                utxos.append(Utxo.from_cbor(data))
            except (DecodeError, ValueError) as e:
                raise APIError.internal(f"Invalid UTxO: {e}") from e
        return utxos

    async def select_utxos(self, value: Value, paginate: Paginate | None = None) -> list[Utxo]:
        """UTxOs covering `value`; empty if the wallet cannot cover it."""
        return await self._fetch_utxos(value_to_cbor(value).hex(), paginate)

    async def all_utxos(self, paginate: Paginate | None = None) -> list[Utxo]:
        """
        Every UTxO the wallet controls.

        With an explicit page only that page is fetched. Without one, and with
        page_size configured, pages are fetched until a short or empty page.

        Raises:
            APIError: the wallet repeated a UTxO across pages or returned more
                than max_pages full pages
        """
        page_size = self.config.page_size
        if paginate is not None or page_size is None:
            return await self._fetch_utxos(None, paginate)

        utxos: list[Utxo] = []
        seen: set[TransactionInput] = set()
        page = 0
        while True:
            if page >= self.config.max_pages:
                raise APIError.internal(
                    f"Wallet returned more than {self.config.max_pages} full UTxO pages"
                )
            batch = await self._fetch_utxos(None, Paginate(page=page, limit=page_size))
            for utxo in batch:
                if utxo.input in seen:
                    raise APIError.internal(
                        f"Wallet repeated UTxO {utxo.input} on page {page}; pagination ignored"
                    )
                seen.add(utxo.input)
            utxos.extend(batch)
            if len(batch) < page_size:
                break
            page += 1
        logger.debug(f"Fetched {len(utxos)} UTxOs over {page + 1} page(s)")
        return utxos

    async def sign_tx(self, tx: bytes, partial_sign: bool = False) -> bytes:
        """
        Ask the wallet to sign a transaction.

        Returns:
            CBOR encoded transaction witness set
        """
        data = _decode_hex(
            await host_call(self.api.sign_tx(tx.hex(), partial_sign)), "witness set"
        )
        reader = CborReader(data, stage="witness set")
        try:
            if reader.peek_major_type() != MAJOR_MAP:
                raise APIError.internal("Witness set is not a CBOR map")
            reader.skip()
            reader.expect_end()
        except DecodeError as e:
            raise APIError.internal(f"Invalid witness set: {e}") from e
        return data

    async def submit_tx(self, tx: bytes) -> bytes:
        """Submit a signed transaction; returns its 32-byte id."""
        tx_id = _decode_hex(await host_call(self.api.submit_tx(tx.hex())), "transaction id")
        if len(tx_id) != TRANSACTION_ID_LENGTH:
            raise APIError.internal(
                f"Transaction id must be {TRANSACTION_ID_LENGTH} bytes, got {len(tx_id)}"
            )
        logger.info(f"Submitted transaction {tx_id.hex()} via {self.name}")
        return tx_id

    async def sign_data(self, address: Address, payload: bytes) -> SignedData:
        """
        Ask the wallet to prove control of `address` by signing `payload`.

        Returns:
            SignedData, already verified unless verify_signatures is off

        Raises:
            DataSignError: the wallet refused or failed to sign
            APIError: the wallet returned a malformed proof
            SignatureVerificationError: the proof is well formed but does
                not match the request or does not verify
        """
        try:
            raw = await self.api.sign_data(address.hex, payload.hex())
        except HostCallError as e:
            raise decode_data_sign_error(e.payload) from e

        try:
            result = DataSignature.model_validate(raw)
        except ValidationError as e:
            raise APIError.internal(f"Invalid signData result: {e}") from e

        key_bytes = _decode_hex(result.key, "COSE key")
        signature_bytes = _decode_hex(result.signature, "COSE_Sign1")
        try:
            signed = decode_signed_data(key_bytes, signature_bytes)
        except DecodeError as e:
            raise APIError.internal(f"Invalid signData result: {e}") from e

        if self.config.require_address_match and signed.address != address.to_bytes():
            raise SignatureVerificationError(
                f"Wallet signed for address {signed.address.hex()}, requested {address.hex}"
            )
        if self.config.verify_signatures:
            if signed.payload != payload:
                raise SignatureVerificationError("Signed payload differs from the request")
            signed.verify_or_raise()

        logger.info(f"Verified signData proof for {address.hex} from {self.name}")
        return signed

    async def consolidate(self, fee: int, destination: Address | None = None) -> Consolidation:
        """
        Gather every UTxO into one output, paying `fee` from its coin.

        The destination defaults to the wallet's change address.
        """
        utxos = await self.all_utxos()
        if destination is None:
            destination = await self.change_address()
        network = await self.network_id()

        consolidation = group_utxos(utxos, fee, destination.to_bytes(), network.value)
        logger.info(
            f"Consolidated {len(consolidation.inputs)} UTxOs into one output "
            f"of {consolidation.output.value.amount} lovelace"
        )
        return consolidation
