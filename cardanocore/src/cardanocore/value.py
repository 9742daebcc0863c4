"""
Multi-asset values and their aggregation.

A value is either a plain coin amount or a coin amount plus native assets,
keyed by policy id then asset name. Wire format (ledger CDDL):

    value = coin / [coin, multiasset<uint>]
    multiasset<a> = { * policy_id => { * asset_name => a } }
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Protocol

from cardanocore.cbor import CborReader, CborWriter
from cardanocore.constants import (
    MAJOR_ARRAY,
    MAX_AMOUNT,
    MAX_ASSET_NAME_LENGTH,
    POLICY_ID_LENGTH,
)
from cardanocore.errors import MalformedEncodingError, ValueOverflowError

AssetMap = dict[bytes, dict[bytes, int]]


def _check_amount(amount: int, what: str) -> None:
    if not 0 <= amount <= MAX_AMOUNT:
        raise ValueError(f"{what} must be between 0 and {MAX_AMOUNT}, got {amount}")


@dataclass(frozen=True)
class Coin:
    amount: int

    def __post_init__(self) -> None:
        _check_amount(self.amount, "coin")


@dataclass(frozen=True)
class Multiasset:
    """
    Coin plus at least one native asset.

    Never holds an empty asset mapping, an empty policy, or a zero quantity;
    use ValueAccumulator or normalize_value to build one from arbitrary data.
    """

    amount: int
    assets: AssetMap = field(default_factory=dict)

    # Holds nested dicts
    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        _check_amount(self.amount, "coin")
        object.__setattr__(
            self, "assets", {policy_id: dict(names) for policy_id, names in self.assets.items()}
        )
        if not self.assets:
            raise ValueError("Multiasset requires at least one policy; use Coin instead")
        for policy_id, names in self.assets.items():
            if len(policy_id) != POLICY_ID_LENGTH:
                raise ValueError(
                    f"policy id must be {POLICY_ID_LENGTH} bytes, got {len(policy_id)}"
                )
            if not names:
                raise ValueError(f"policy {policy_id.hex()} has no assets")
            for name, quantity in names.items():
                if len(name) > MAX_ASSET_NAME_LENGTH:
                    raise ValueError(f"asset name longer than {MAX_ASSET_NAME_LENGTH} bytes")
                if quantity <= 0 or quantity > MAX_AMOUNT:
                    raise ValueError(f"asset quantity must be positive, got {quantity}")

    def quantity_of(self, policy_id: bytes, asset_name: bytes) -> int:
        return self.assets.get(policy_id, {}).get(asset_name, 0)


Value = Coin | Multiasset


class HasValue(Protocol):
    """Anything exposing a ledger value, e.g. either transaction output encoding."""

    @property
    def value(self) -> Value: ...


def assets_of(value: Value) -> Mapping[bytes, Mapping[bytes, int]]:
    if isinstance(value, Multiasset):
        return value.assets
    return {}


class ValueAccumulator:
    """
    Running total of coin and per-asset quantities.

    Intermediate state may hold zero quantities; they are pruned by finish().
    All additions are checked against the unsigned 64-bit ceiling.
    """

    def __init__(self) -> None:
        self.coin = 0
        self.assets: AssetMap = {}

    def add_coin(self, amount: int) -> None:
        total = self.coin + amount
        if total > MAX_AMOUNT:
            raise ValueOverflowError("coin total", MAX_AMOUNT)
        self.coin = total

    def add_asset(self, policy_id: bytes, asset_name: bytes, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"asset quantity cannot be negative, got {amount}")
        per_policy = self.assets.setdefault(policy_id, {})
        total = per_policy.get(asset_name, 0) + amount
        if total > MAX_AMOUNT:
            raise ValueOverflowError(f"asset {policy_id.hex()}.{asset_name.hex()}", MAX_AMOUNT)
        per_policy[asset_name] = total

    def add_value(self, value: Value) -> None:
        self.add_coin(value.amount)
        for policy_id, names in assets_of(value).items():
            for asset_name, amount in names.items():
                self.add_asset(policy_id, asset_name, amount)

    def finish(self) -> Value:
        """Prune zero quantities and empty policies, then emit a canonical value."""
        return normalize_value(self.coin, self.assets)


def normalize_value(coin: int, assets: Mapping[bytes, Mapping[bytes, int]]) -> Value:
    pruned: AssetMap = {}
    for policy_id in sorted(assets):
        names = {name: qty for name, qty in sorted(assets[policy_id].items()) if qty != 0}
        if names:
            pruned[policy_id] = names

    if not pruned:
        return Coin(coin)
    return Multiasset(coin, pruned)


def sumup(outputs: Iterable[HasValue]) -> Value:
    """
    Sum the values of the given outputs into one value.

    Order does not matter. An empty sequence yields Coin(0).

    Raises:
        ValueOverflowError: if the coin or any asset total exceeds 2**64 - 1
    """
    accumulator = ValueAccumulator()
    for output in outputs:
        accumulator.add_value(output.value)
    return accumulator.finish()


def write_value(writer: CborWriter, value: Value) -> None:
    if isinstance(value, Coin):
        writer.write_uint(value.amount)
        return

    writer.write_array_header(2)
    writer.write_uint(value.amount)
    writer.write_map_header(len(value.assets))
    for policy_id in sorted(value.assets):
        names = value.assets[policy_id]
        writer.write_bytes(policy_id)
        writer.write_map_header(len(names))
        for asset_name in sorted(names):
            writer.write_bytes(asset_name)
            writer.write_uint(names[asset_name])


def value_to_cbor(value: Value) -> bytes:
    writer = CborWriter()
    write_value(writer, value)
    return writer.to_bytes()


def read_value(reader: CborReader, *, strict: bool = True) -> Value:
    """
    Decode a value.

    In strict mode (post-Alonzo encodings) zero quantities and empty maps are
    rejected as the ledger does. Otherwise (legacy encodings) they are
    accepted and pruned.
    """
    start = reader.offset
    if reader.peek_major_type() != MAJOR_ARRAY:
        return Coin(reader.read_uint())

    length = reader.read_array_header()
    if length != 2:
        raise MalformedEncodingError(reader.stage, start, "value array must have 2 items")

    accumulator = ValueAccumulator()
    accumulator.add_coin(reader.read_uint())
    _read_multiasset(reader, accumulator, strict)
    return accumulator.finish()


def _read_multiasset(reader: CborReader, accumulator: ValueAccumulator, strict: bool) -> None:
    start = reader.offset
    policies = reader.read_map_header()
    if strict and policies == 0:
        raise MalformedEncodingError(reader.stage, start, "empty multiasset")

    seen_policies: set[bytes] = set()
    index = 0
    while reader.has_more(policies, index):
        key_offset = reader.offset
        policy_id = reader.read_bytes()
        if len(policy_id) != POLICY_ID_LENGTH:
            raise MalformedEncodingError(
                reader.stage, key_offset, f"policy id must be {POLICY_ID_LENGTH} bytes"
            )
        if policy_id in seen_policies:
            raise MalformedEncodingError(reader.stage, key_offset, "duplicate policy id")
        seen_policies.add(policy_id)
        _read_assets(reader, accumulator, policy_id, strict)
        index += 1

    if policies is None:
        reader.read_break()


def _read_assets(
    reader: CborReader, accumulator: ValueAccumulator, policy_id: bytes, strict: bool
) -> None:
    start = reader.offset
    count = reader.read_map_header()
    if strict and count == 0:
        raise MalformedEncodingError(reader.stage, start, "policy without assets")

    seen_names: set[bytes] = set()
    index = 0
    while reader.has_more(count, index):
        key_offset = reader.offset
        asset_name = reader.read_bytes()
        if len(asset_name) > MAX_ASSET_NAME_LENGTH:
            raise MalformedEncodingError(
                reader.stage, key_offset, f"asset name longer than {MAX_ASSET_NAME_LENGTH} bytes"
            )
        if asset_name in seen_names:
            raise MalformedEncodingError(reader.stage, key_offset, "duplicate asset name")
        seen_names.add(asset_name)

        amount_offset = reader.offset
        amount = reader.read_uint()
        if strict and amount == 0:
            raise MalformedEncodingError(reader.stage, amount_offset, "zero asset quantity")
        accumulator.add_asset(policy_id, asset_name, amount)
        index += 1

    if count is None:
        reader.read_break()


def value_from_cbor(data: bytes, *, strict: bool = True) -> Value:
    reader = CborReader(data, stage="value")
    value = read_value(reader, strict=strict)
    reader.expect_end()
    return value
