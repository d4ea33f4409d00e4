from pathlib import Path

import pytest
import respx
import yaml
from typer.testing import CliRunner

from kangaroo import __version__
from kangaroo.cli.app import app

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.delenv("KANGAROO_CONFIG", raising=False)
    monkeypatch.delenv("KANGAROO_USER", raising=False)
    path = tmp_path / "kangaroo.yaml"
    path.write_text(yaml.safe_dump({
        "storage": {"db_path": str(tmp_path / "kangaroo.db")},
        "logging": {"level": "WARNING"},
        "network": {
            "backend": "simulated",
            "simulated": {
                "balances": {"alice": {"ETH": "1"}},
                "activated": ["alice"],
                "prices": {"ETH": "3000", "DAI": "1"},
            },
        },
    }))
    return path


def run_cli(config_file: Path, *args: str, user: str = "alice", exit_code: int = 0) -> str:
    result = runner.invoke(app, ["--config", str(config_file), "--user", user, *args])
    assert result.exit_code == exit_code, result.output
    return result.output


def test_help_command(config_file):
    output = run_cli(config_file, "help")
    assert "Introduction to Kangaroo" in output
    assert "The Basics" in output


def test_tokens(config_file):
    output = run_cli(config_file, "tokens")
    assert "ETH | Ethereum" in output
    assert "DAI | Dai" in output


def test_balances(config_file):
    output = run_cli(config_file, "balance")
    assert "All Balances" in output
    assert "1.0 ETH - $3000.00" in output
    assert "DAI" not in output


def test_balance_of_unfunded_token(config_file):
    output = run_cli(config_file, "balance", "dai")
    assert "0.0 DAI - $0.00" in output


def test_empty_wallet(config_file):
    output = run_cli(config_file, "balance", user="carol")
    assert "You don't have any tokens :(" in output


def test_send_preview(config_file):
    output = run_cli(config_file, "send", "0.2", "eth", "@bob")
    assert "Transfer tokens" in output
    assert "/send 0.2 ETH @bob confirm" in output


def test_send_confirm(config_file):
    output = run_cli(config_file, "send", "0.2", "eth", "bob", "confirm")
    assert "Sent: 0.2 ETH - $600.00" in output


def test_send_over_balance_is_a_user_error(config_file):
    output = run_cli(config_file, "send", "5", "ETH", "bob", "confirm")
    assert "Transaction failed" in output


def test_invalid_amount_exits_zero(config_file):
    output = run_cli(config_file, "send", "pizza", "ETH", "bob")
    assert "Invalid amount" in output


def test_confirm_word_is_checked(config_file):
    run_cli(config_file, "send", "0.2", "ETH", "bob", "nope", exit_code=2)


def test_unlock_states(config_file):
    assert "Wallet already unlocked" in run_cli(config_file, "unlock")
    assert "Unlocking Your Wallet" in run_cli(config_file, "unlock", user="carol")
    assert "Unlock with DAI" in run_cli(config_file, "unlock", "dai", user="carol")
    assert "Transaction failed" in run_cli(config_file, "unlock", "dai", "confirm", user="carol")


def test_address_is_stable(config_file):
    first = run_cli(config_file, "address")
    second = run_cli(config_file, "address")
    assert "0x" in first
    assert first == second


def test_add_token(config_file):
    output = run_cli(config_file, "add-token", "usdc", "USD Coin", "--decimals", "6")
    assert "USDC | USD Coin" in output
    assert "USDC | USD Coin" in run_cli(config_file, "tokens")


def test_unreachable_network_exits_one(tmp_path, monkeypatch):
    monkeypatch.delenv("KANGAROO_CONFIG", raising=False)
    path = tmp_path / "kangaroo.yaml"
    path.write_text(yaml.safe_dump({
        "storage": {"db_path": str(tmp_path / "kangaroo.db")},
        "logging": {"level": "CRITICAL"},
        "network": {"backend": "rpc", "rpc_url": "http://l2.test/jsrpc"},
    }))
    with respx.mock:
        respx.post("http://l2.test/jsrpc").respond(500)
        output = run_cli(path, "balance", "eth", exit_code=1)
    assert "Server Error." in output


def test_init_writes_config(tmp_path):
    target = tmp_path / "conf" / "kangaroo.yaml"
    result = runner.invoke(app, ["init", "--path", str(target), "--backend", "rpc"])
    assert result.exit_code == 0, result.output
    data = yaml.safe_load(target.read_text())
    assert data["network"]["backend"] == "rpc"
    assert [t["ticker"] for t in data["tokens"]] == ["ETH", "DAI"]

    again = runner.invoke(app, ["init", "--path", str(target)])
    assert again.exit_code == 1


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output
