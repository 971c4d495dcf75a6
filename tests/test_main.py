import json

import pytest
from typer.testing import CliRunner

from cryptfolio import main
from cryptfolio.chains import ChainId
from cryptfolio.domain import FetchFailure, PortfolioView
from cryptfolio.pipeline import run as run_module
from cryptfolio.pipeline.context import PipelineContext
from cryptfolio.settings import FetchMode

EVM_WALLET = "0x742d35Cc6634C0532925a3b844Bc454e4438f44e"
SOL_WALLET = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_env(tmp_path, monkeypatch):
    monkeypatch.setenv("CRYPTFOLIO_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setattr(main, "setup_logging", lambda log_level=None: None)


@pytest.fixture
def fake_run(monkeypatch, asset_factory):
    calls = []

    async def _run_portfolio(state, wallets, store=None, fetch=None):
        calls.append({"state": state, "wallets": wallets, "store": store})
        ctx = PipelineContext(state=state, wallets=list(wallets))
        ctx.view = PortfolioView(
            assets=[asset_factory("ETH", 3000.0, balance=1.5)],
            total_value=3000.0,
            failures=[
                FetchFailure(address=SOL_WALLET, chain=ChainId.SOLANA, reason="rpc down")
            ]
            if len(wallets) > 1
            else [],
            wallet_count=len(wallets),
        )
        return ctx

    monkeypatch.setattr(run_module, "run_portfolio", _run_portfolio)
    return calls


def test_parse_wallet_ref():
    assert main.parse_wallet_ref(f"Ethereum:{EVM_WALLET}") == (EVM_WALLET, ChainId.ETHEREUM)


def test_default_command_prints_json(fake_run):
    result = runner.invoke(
        main.app,
        [
            "--wallet",
            f"ethereum:{EVM_WALLET}",
            "-w",
            f"solana:{SOL_WALLET}",
            "--sequential",
            "--top",
            "5",
            "--no-snapshot",
            "--json",
        ],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["totalValue"] == 3000.0
    assert payload["assets"][0]["symbol"] == "ETH"
    assert payload["failures"] == [
        {"address": SOL_WALLET, "chain": "solana", "reason": "rpc down"}
    ]
    assert payload["snapshot"] is None

    [call] = fake_run
    assert call["wallets"] == [(EVM_WALLET, ChainId.ETHEREUM), (SOL_WALLET, ChainId.SOLANA)]
    assert call["store"] is None
    assert call["state"].settings.fetch_mode is FetchMode.SEQUENTIAL
    assert call["state"].settings.top_n == 5


def test_default_command_uses_wallet_book_and_snapshot_store(fake_run):
    runner.invoke(main.app, ["wallets", "add", "ethereum", EVM_WALLET])

    result = runner.invoke(main.app, [])

    assert result.exit_code == 0, result.output
    assert "Top Holdings" in result.stdout
    [call] = fake_run
    assert call["wallets"] == [(EVM_WALLET, ChainId.ETHEREUM)]
    assert call["store"] is not None


def test_default_command_without_wallets_is_rejected(fake_run):
    result = runner.invoke(main.app, [])

    assert result.exit_code == 2
    assert fake_run == []


@pytest.mark.parametrize(
    "ref",
    ["ethereum", f"fantom:{EVM_WALLET}", "ethereum:0x123"],
)
def test_bad_wallet_refs_are_rejected(fake_run, ref):
    result = runner.invoke(main.app, ["--wallet", ref])

    assert result.exit_code == 2
    assert fake_run == []


def test_show_config_redacts_secrets(monkeypatch):
    monkeypatch.setenv("CRYPTFOLIO_COINGECKO_API_KEY", "cg-secret")

    result = runner.invoke(main.app, ["--show-config", "--min-token-value", "2.5"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["coingecko_api_key"] == "***redacted***"
    assert payload["min_token_value"] == 2.5


def test_wallets_add_list_remove():
    added = runner.invoke(main.app, ["wallets", "add", "solana", SOL_WALLET, "-l", "phantom"])
    assert added.exit_code == 0, added.output

    listed = runner.invoke(main.app, ["wallets", "list", "--json"])
    [wallet] = json.loads(listed.stdout)
    assert (wallet["chain"], wallet["address"], wallet["label"]) == (
        "solana",
        SOL_WALLET,
        "phantom",
    )

    duplicate = runner.invoke(main.app, ["wallets", "add", "solana", SOL_WALLET])
    assert duplicate.exit_code == 2

    removed = runner.invoke(main.app, ["wallets", "remove", wallet["id"]])
    assert removed.exit_code == 0
    assert json.loads(runner.invoke(main.app, ["wallets", "list", "--json"]).stdout) == []

    missing = runner.invoke(main.app, ["wallets", "remove", wallet["id"]])
    assert missing.exit_code == 2


def test_export_and_import_round_trip(tmp_path):
    runner.invoke(main.app, ["wallets", "add", "ethereum", EVM_WALLET])
    export_path = tmp_path / "export.json"

    exported = runner.invoke(main.app, ["export", "-o", str(export_path)])
    assert exported.exit_code == 0
    runner.invoke(main.app, ["wallets", "remove", json.loads(export_path.read_text())["wallets"][0]["id"]])

    imported = runner.invoke(main.app, ["import", str(export_path)])

    assert imported.exit_code == 0, imported.output
    [wallet] = json.loads(runner.invoke(main.app, ["wallets", "list", "--json"]).stdout)
    assert wallet["address"] == EVM_WALLET


def test_import_rejects_garbage(tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("nope")

    result = runner.invoke(main.app, ["import", str(bad)])

    assert result.exit_code == 2
