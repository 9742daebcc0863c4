"""
Ledger records handed over by CIP-30 wallets: inputs, outputs and UTxOs.

Transaction outputs exist in two historical encodings:

    legacy_output      = [address, value, ? datum_hash]
    post_alonzo_output = { 0: address, 1: value, ? 2: datum_option, ? 3: script_ref }

Both expose the same projection (address, value); aggregation only ever
looks at that projection.
"""

from __future__ import annotations

from dataclasses import dataclass

from cardanocore.cbor import CborReader, CborWriter
from cardanocore.constants import (
    MAJOR_ARRAY,
    MAJOR_MAP,
    TAG_ENCODED_CBOR,
    TRANSACTION_ID_LENGTH,
)
from cardanocore.errors import MalformedEncodingError
from cardanocore.value import Value, read_value, write_value

DATUM_HASH_LENGTH = 32

OUTPUT_KEY_ADDRESS = 0
OUTPUT_KEY_VALUE = 1
OUTPUT_KEY_DATUM = 2
OUTPUT_KEY_SCRIPT_REF = 3


@dataclass(frozen=True)
class TransactionInput:
    transaction_id: bytes
    index: int

    def __post_init__(self) -> None:
        if len(self.transaction_id) != TRANSACTION_ID_LENGTH:
            raise ValueError(
                f"transaction id must be {TRANSACTION_ID_LENGTH} bytes, "
                f"got {len(self.transaction_id)}"
            )
        if self.index < 0:
            raise ValueError(f"output index cannot be negative: {self.index}")

    def __str__(self) -> str:
        return f"{self.transaction_id.hex()}#{self.index}"


@dataclass(frozen=True)
class LegacyTransactionOutput:
    address: bytes
    value: Value
    datum_hash: bytes | None = None


@dataclass(frozen=True)
class PostAlonzoTransactionOutput:
    address: bytes
    value: Value
    # Raw CBOR items, kept opaque
    datum_option: bytes | None = None
    script_ref: bytes | None = None


TransactionOutput = LegacyTransactionOutput | PostAlonzoTransactionOutput


@dataclass(frozen=True)
class Utxo:
    """An unspent output together with the input that references it."""

    input: TransactionInput
    output: TransactionOutput

    @property
    def transaction_id(self) -> bytes:
        return self.input.transaction_id

    @property
    def index(self) -> int:
        return self.input.index

    @property
    def amount(self) -> int:
        """Coin component of the output's value."""
        return self.output.value.amount

    @property
    def address(self) -> bytes:
        return self.output.address

    @property
    def value(self) -> Value:
        return self.output.value

    @classmethod
    def from_cbor(cls, data: bytes) -> Utxo:
        reader = CborReader(data, stage="utxo")
        utxo = read_utxo(reader)
        reader.expect_end()
        return utxo

    def to_cbor(self) -> bytes:
        writer = CborWriter()
        writer.write_array_header(2)
        write_transaction_input(writer, self.input)
        write_transaction_output(writer, self.output)
        return writer.to_bytes()


def _read_fixed_array(reader: CborReader, allowed: tuple[int, ...], what: str) -> int | None:
    start = reader.offset
    count = reader.read_array_header()
    if count is not None and count not in allowed:
        raise MalformedEncodingError(
            reader.stage, start, f"{what} must have {' or '.join(map(str, allowed))} items"
        )
    return count


def read_transaction_input(reader: CborReader) -> TransactionInput:
    count = _read_fixed_array(reader, (2,), "transaction input")
    id_offset = reader.offset
    transaction_id = reader.read_bytes()
    if len(transaction_id) != TRANSACTION_ID_LENGTH:
        raise MalformedEncodingError(
            reader.stage, id_offset, f"transaction id must be {TRANSACTION_ID_LENGTH} bytes"
        )
    index = reader.read_uint()
    if count is None:
        reader.read_break()
    return TransactionInput(transaction_id, index)


def write_transaction_input(writer: CborWriter, tx_input: TransactionInput) -> None:
    writer.write_array_header(2)
    writer.write_bytes(tx_input.transaction_id)
    writer.write_uint(tx_input.index)


def read_transaction_output(reader: CborReader) -> TransactionOutput:
    start = reader.offset
    major = reader.peek_major_type()
    if major == MAJOR_ARRAY:
        return _read_legacy_output(reader)
    if major == MAJOR_MAP:
        return _read_post_alonzo_output(reader)
    raise MalformedEncodingError(reader.stage, start, "transaction output must be array or map")


def _read_legacy_output(reader: CborReader) -> LegacyTransactionOutput:
    count = _read_fixed_array(reader, (2, 3), "legacy output")
    address = reader.read_bytes()
    value = read_value(reader, strict=False)

    datum_hash = None
    if count == 3 or (count is None and not reader.peek_is_break()):
        hash_offset = reader.offset
        datum_hash = reader.read_bytes()
        if len(datum_hash) != DATUM_HASH_LENGTH:
            raise MalformedEncodingError(
                reader.stage, hash_offset, f"datum hash must be {DATUM_HASH_LENGTH} bytes"
            )
    if count is None:
        reader.read_break()

    return LegacyTransactionOutput(address=address, value=value, datum_hash=datum_hash)


def _read_post_alonzo_output(reader: CborReader) -> PostAlonzoTransactionOutput:
    start = reader.offset
    count = reader.read_map_header()

    address: bytes | None = None
    value: Value | None = None
    datum_option: bytes | None = None
    script_ref: bytes | None = None
    seen: set[int] = set()

    index = 0
    while reader.has_more(count, index):
        key_offset = reader.offset
        key = reader.read_uint()
        if key in seen:
            raise MalformedEncodingError(reader.stage, key_offset, f"duplicate output key {key}")
        seen.add(key)

        if key == OUTPUT_KEY_ADDRESS:
            address = reader.read_bytes()
        elif key == OUTPUT_KEY_VALUE:
            value = read_value(reader, strict=True)
        elif key == OUTPUT_KEY_DATUM:
            datum_option = _read_datum_option(reader)
        elif key == OUTPUT_KEY_SCRIPT_REF:
            script_ref = _read_script_ref(reader)
        else:
            raise MalformedEncodingError(reader.stage, key_offset, f"unknown output key {key}")
        index += 1

    if count is None:
        reader.read_break()

    if address is None or value is None:
        raise MalformedEncodingError(reader.stage, start, "output is missing address or value")

    return PostAlonzoTransactionOutput(
        address=address, value=value, datum_option=datum_option, script_ref=script_ref
    )


def _read_datum_option(reader: CborReader) -> bytes:
    """datum_option = [0, datum_hash] / [1, #6.24(bytes)]"""
    start = reader.offset
    raw = reader.read_raw()
    inner = CborReader(raw, stage=reader.stage)
    if inner.read_array_header() != 2:
        raise MalformedEncodingError(reader.stage, start, "datum option must have 2 items")
    kind = inner.read_uint()
    if kind == 0:
        if len(inner.read_bytes()) != DATUM_HASH_LENGTH:
            raise MalformedEncodingError(reader.stage, start, "invalid datum hash")
    elif kind == 1:
        if inner.read_tag() != TAG_ENCODED_CBOR:
            raise MalformedEncodingError(reader.stage, start, "inline datum must be tag 24")
        inner.read_bytes()
    else:
        raise MalformedEncodingError(reader.stage, start, f"unknown datum option {kind}")
    return raw


def _read_script_ref(reader: CborReader) -> bytes:
    """script_ref = #6.24(bytes)"""
    start = reader.offset
    raw = reader.read_raw()
    inner = CborReader(raw, stage=reader.stage)
    if inner.read_tag() != TAG_ENCODED_CBOR:
        raise MalformedEncodingError(reader.stage, start, "script reference must be tag 24")
    inner.read_bytes()
    return raw


def write_transaction_output(writer: CborWriter, output: TransactionOutput) -> None:
    if isinstance(output, LegacyTransactionOutput):
        writer.write_array_header(2 if output.datum_hash is None else 3)
        writer.write_bytes(output.address)
        write_value(writer, output.value)
        if output.datum_hash is not None:
            writer.write_bytes(output.datum_hash)
        return

    entries = 2 + (output.datum_option is not None) + (output.script_ref is not None)
    writer.write_map_header(entries)
    writer.write_uint(OUTPUT_KEY_ADDRESS)
    writer.write_bytes(output.address)
    writer.write_uint(OUTPUT_KEY_VALUE)
    write_value(writer, output.value)
    if output.datum_option is not None:
        writer.write_uint(OUTPUT_KEY_DATUM)
        writer.write_raw(output.datum_option)
    if output.script_ref is not None:
        writer.write_uint(OUTPUT_KEY_SCRIPT_REF)
        writer.write_raw(output.script_ref)


def output_to_cbor(output: TransactionOutput) -> bytes:
    writer = CborWriter()
    write_transaction_output(writer, output)
    return writer.to_bytes()


def output_from_cbor(data: bytes) -> TransactionOutput:
    reader = CborReader(data, stage="transaction output")
    output = read_transaction_output(reader)
    reader.expect_end()
    return output


def read_utxo(reader: CborReader) -> Utxo:
    count = _read_fixed_array(reader, (2,), "utxo")
    tx_input = read_transaction_input(reader)
    output = read_transaction_output(reader)
    if count is None:
        reader.read_break()
    return Utxo(input=tx_input, output=output)
