"""
Consolidation of many UTxOs into a single output.

Sums every input's value, deducts a flat fee from the coin component and
addresses the remainder to one destination.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

from loguru import logger

from cardanocore.errors import InsufficientFundsError
from cardanocore.models import PostAlonzoTransactionOutput, TransactionInput, Utxo
from cardanocore.value import Value, sumup


@dataclass(frozen=True)
class Consolidation:
    """Everything a transaction builder needs: what to spend and what to create."""

    output: PostAlonzoTransactionOutput
    inputs: list[TransactionInput]
    fee: int
    # Supplied by the caller and carried through as-is: nothing here checks it
    # against the destination address or the consumed outputs.
    network_id: int


def deduct_fee(value: Value, fee: int) -> Value:
    """
    Subtract a flat fee from the coin component, leaving assets untouched.

    Raises:
        InsufficientFundsError: if the fee is larger than the available coin
    """
    if fee < 0:
        raise ValueError(f"fee cannot be negative: {fee}")
    available = value.amount
    if fee > available:
        raise InsufficientFundsError(fee=fee, available=available)
    return replace(value, amount=available - fee)


def group_utxos(
    utxos: Iterable[Utxo],
    fee: int,
    destination: bytes,
    network_id: int,
) -> Consolidation:
    """
    Group the given UTxOs into one output paying to `destination`.

    Args:
        utxos: UTxOs to spend, at least one
        fee: Flat fee in lovelace deducted from the summed coin
        destination: Raw address bytes of the new output
        network_id: Network the resulting transaction targets

    Returns:
        Consolidation with the new output and the consumed inputs, in order

    Raises:
        ValueError: if no UTxO is given
        ValueOverflowError: if summing overflows an unsigned 64-bit amount
        InsufficientFundsError: if the fee exceeds the summed coin
    """
    utxos = list(utxos)
    if not utxos:
        raise ValueError("At least one UTxO is required to build a consolidated output")

    inputs = [utxo.input for utxo in utxos]
    total = sumup(utxo.output for utxo in utxos)
    value = deduct_fee(total, fee)

    logger.debug(
        f"Consolidating {len(inputs)} UTxOs: total {total.amount} lovelace, "
        f"fee {fee}, remaining {value.amount}"
    )

    output = PostAlonzoTransactionOutput(address=destination, value=value)
    return Consolidation(output=output, inputs=inputs, fee=fee, network_id=network_id)
