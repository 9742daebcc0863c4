"""
Cardano connector CLI - Offline UTxO aggregation, consolidation and signData verification.
"""

from __future__ import annotations

import sys

import typer
from cardanocore.consolidate import group_utxos
from cardanocore.cose import decode_signed_data
from cardanocore.errors import CardanoCoreError
from cardanocore.models import Utxo, output_to_cbor
from cardanocore.value import Value, assets_of, sumup, value_to_cbor
from loguru import logger

from cardanowallet.config import get_config
from cardanowallet.models import Address

app = typer.Typer(
    name="cardano-connector",
    help="Cardano wallet connector tools",
    add_completion=False,
)


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def _from_hex(text: str, what: str) -> bytes:
    try:
        return bytes.fromhex(text)
    except ValueError:
        logger.error(f"Invalid hex for {what}: {text!r}")
        raise typer.Exit(1)


def _parse_utxos(utxo_hex: list[str]) -> list[Utxo]:
    utxos = []
    for i, text in enumerate(utxo_hex):
        try:
            utxos.append(Utxo.from_cbor(_from_hex(text, f"UTxO #{i}")))
        except CardanoCoreError as e:
            logger.error(f"Failed to decode UTxO #{i}: {e}")
            raise typer.Exit(1)
    return utxos


def _print_value(value: Value) -> None:
    print(f"Coin: {value.amount:,} lovelace")
    for policy_id, names in assets_of(value).items():
        for name, quantity in names.items():
            print(f"  {policy_id.hex()}.{name.hex()}: {quantity:,}")


@app.command("verify-data")
def verify_data(
    key_hex: str = typer.Argument(..., help="COSE_Key returned by signData (hex)"),
    signature_hex: str = typer.Argument(..., help="COSE_Sign1 returned by signData (hex)"),
    address: str | None = typer.Option(
        None, "--address", "-a", help="Address the proof must be for (hex)"
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", "-l", help="Log level (default: CARDANO_CONNECTOR_LOG_LEVEL or INFO)"
    ),
) -> None:
    """Decode and verify a CIP-30 signData proof."""
    setup_logging(log_level or get_config().log_level)

    key_bytes = _from_hex(key_hex, "COSE key")
    signature_bytes = _from_hex(signature_hex, "COSE_Sign1")
    try:
        signed = decode_signed_data(key_bytes, signature_bytes)
    except CardanoCoreError as e:
        logger.error(f"Failed to decode signData result: {e}")
        raise typer.Exit(1)

    print(f"Address:          {signed.address.hex()}")
    print(f"Verification key: {signed.verification_key.hex()}")
    print(f"Payload:          {signed.payload.hex()}")
    print(f"Key owns address: {'yes' if signed.key_matches_address() else 'no'}")

    if address is not None and signed.address != _from_hex(address, "address"):
        logger.error(f"Proof is for {signed.address.hex()}, not {address}")
        raise typer.Exit(1)

    if not signed.verify():
        logger.error("Signature is INVALID")
        raise typer.Exit(1)
    print("Signature: valid")


@app.command("sum-utxos")
def sum_utxos(
    utxo_hex: list[str] = typer.Argument(..., help="CBOR encoded UTxOs (hex)"),
    log_level: str | None = typer.Option(
        None, "--log-level", "-l", help="Log level (default: CARDANO_CONNECTOR_LOG_LEVEL or INFO)"
    ),
) -> None:
    """Sum the values of the given UTxOs."""
    setup_logging(log_level or get_config().log_level)

    utxos = _parse_utxos(utxo_hex)
    try:
        total = sumup(utxos)
    except CardanoCoreError as e:
        logger.error(f"Failed to sum UTxOs: {e}")
        raise typer.Exit(1)

    print(f"UTxOs: {len(utxos)}")
    _print_value(total)
    print(f"Value: {value_to_cbor(total).hex()}")


@app.command()
def consolidate(
    utxo_hex: list[str] = typer.Argument(..., help="CBOR encoded UTxOs (hex)"),
    fee: int = typer.Option(..., "--fee", min=0, help="Flat fee in lovelace"),
    to: str = typer.Option(..., "--to", help="Destination address (hex or bech32)"),
    network_id: int = typer.Option(1, "--network-id", min=0, max=255, help="Target network"),
    log_level: str | None = typer.Option(
        None, "--log-level", "-l", help="Log level (default: CARDANO_CONNECTOR_LOG_LEVEL or INFO)"
    ),
) -> None:
    """Build the single output consolidating the given UTxOs."""
    setup_logging(log_level or get_config().log_level)

    try:
        destination = Address(to) if _is_hex(to) else Address.from_bech32(to)
        destination_bytes = destination.to_bytes()
    except ValueError as e:
        logger.error(f"Invalid destination address {to!r}: {e}")
        raise typer.Exit(1)

    utxos = _parse_utxos(utxo_hex)
    try:
        consolidation = group_utxos(utxos, fee, destination_bytes, network_id)
    except (CardanoCoreError, ValueError) as e:
        logger.error(f"Failed to consolidate: {e}")
        raise typer.Exit(1)

    print(f"Inputs ({len(consolidation.inputs)}):")
    for tx_input in consolidation.inputs:
        print(f"  {tx_input}")
    _print_value(consolidation.output.value)
    print(f"Fee: {consolidation.fee:,} lovelace")
    print(f"Output: {output_to_cbor(consolidation.output).hex()}")


def _is_hex(text: str) -> bool:
    try:
        bytes.fromhex(text)
        return True
    except ValueError:
        return False


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
