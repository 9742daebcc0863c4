"""
Tests for the cardano-connector CLI
"""

import pytest
from loguru import logger
from typer.testing import CliRunner

from cardanowallet.cli import app
from cardanowallet.models import Address

runner = CliRunner()

DESTINATION = "61" + "0f" * 28


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    # Drop the sink bound to the runner's temporary stderr
    logger.remove()


class TestVerifyData:
    def test_valid_proof(self, sign_data_factory):
        result = sign_data_factory.result(b"hello")
        outcome = runner.invoke(app, ["verify-data", result["key"], result["signature"]])
        assert outcome.exit_code == 0
        assert "Signature: valid" in outcome.stdout
        assert "Key owns address: yes" in outcome.stdout
        assert sign_data_factory.address.hex() in outcome.stdout

    def test_invalid_signature(self, sign_data_factory):
        result = sign_data_factory.result(b"hello", tamper=True)
        outcome = runner.invoke(app, ["verify-data", result["key"], result["signature"]])
        assert outcome.exit_code == 1
        assert "Signature: valid" not in outcome.stdout

    def test_address_mismatch(self, sign_data_factory):
        result = sign_data_factory.result(b"hello")
        outcome = runner.invoke(
            app,
            ["verify-data", result["key"], result["signature"], "--address", "61" + "00" * 28],
        )
        assert outcome.exit_code == 1

    def test_malformed_input(self):
        outcome = runner.invoke(app, ["verify-data", "a0", "80"])
        assert outcome.exit_code == 1

    def test_bad_hex(self):
        outcome = runner.invoke(app, ["verify-data", "nothex", "80"])
        assert outcome.exit_code == 1


class TestSumUtxos:
    def test_sum(self, utxo_hex):
        outcome = runner.invoke(app, ["sum-utxos", utxo_hex(1, 1500), utxo_hex(2, 500, tokens=3)])
        assert outcome.exit_code == 0
        assert "UTxOs: 2" in outcome.stdout
        assert "Coin: 2,000 lovelace" in outcome.stdout
        assert "cc" * 28 + ".746f6b: 3" in outcome.stdout

    def test_malformed_utxo(self):
        outcome = runner.invoke(app, ["sum-utxos", "8200"])
        assert outcome.exit_code == 1


class TestConsolidateCommand:
    def test_consolidate(self, utxo_hex):
        outcome = runner.invoke(
            app,
            ["consolidate", utxo_hex(1, 100), utxo_hex(2, 50), "--fee", "30", "--to", DESTINATION],
        )
        assert outcome.exit_code == 0
        assert "Inputs (2):" in outcome.stdout
        assert f"{'01' * 32}#1" in outcome.stdout
        assert "Coin: 120 lovelace" in outcome.stdout
        assert "Output: a200581d" + DESTINATION in outcome.stdout

    def test_bech32_destination(self, utxo_hex):
        bech32 = Address(DESTINATION).to_bech32()
        outcome = runner.invoke(
            app, ["consolidate", utxo_hex(1, 100), "--fee", "1", "--to", bech32]
        )
        assert outcome.exit_code == 0
        assert "Coin: 99 lovelace" in outcome.stdout

    def test_insufficient_funds(self, utxo_hex):
        outcome = runner.invoke(
            app, ["consolidate", utxo_hex(1, 100), "--fee", "150", "--to", DESTINATION]
        )
        assert outcome.exit_code == 1

    def test_invalid_destination(self, utxo_hex):
        outcome = runner.invoke(
            app, ["consolidate", utxo_hex(1, 100), "--fee", "1", "--to", "addr1invalid"]
        )
        assert outcome.exit_code == 1


class TestLogLevel:
    def test_level_from_environment(self, utxo_hex, monkeypatch):
        monkeypatch.setenv("CARDANO_CONNECTOR_LOG_LEVEL", "DEBUG")
        outcome = runner.invoke(
            app, ["consolidate", utxo_hex(1, 100), "--fee", "1", "--to", DESTINATION]
        )
        assert outcome.exit_code == 0
        assert "DEBUG" in outcome.output

    def test_option_overrides_environment(self, utxo_hex, monkeypatch):
        monkeypatch.setenv("CARDANO_CONNECTOR_LOG_LEVEL", "DEBUG")
        outcome = runner.invoke(
            app,
            ["consolidate", utxo_hex(1, 100), "--fee", "1", "--to", DESTINATION, "-l", "ERROR"],
        )
        assert outcome.exit_code == 0
        assert "DEBUG" not in outcome.output
