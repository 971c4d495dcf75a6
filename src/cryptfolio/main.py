"""CLI entrypoint for cryptfolio."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from datetime import timedelta
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from .chains import ChainId, to_chain_id
from .errors import CryptfolioError
from .logger import setup_logging
from .processors import validate_wallets
from .report import format_portfolio_table
from .settings import CryptfolioSettings, FetchMode
from .state import AppState
from .storage import JsonSnapshotStore, WalletBook, export_portfolio, import_portfolio

app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Multi-chain crypto portfolio balances.",
)
wallets_app = typer.Typer(help="Manage tracked wallets.", no_args_is_help=True)
app.add_typer(wallets_app, name="wallets")


def _build_logger() -> logging.Logger:
    """Build a logger instance."""
    return logging.getLogger("cryptfolio")


def _state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if not isinstance(state, AppState):
        raise RuntimeError("CLI state was not initialized by the root callback")
    return state


def parse_wallet_ref(value: str) -> tuple[str, ChainId]:
    """Parse a ``chain:address`` reference.

    Raises:
        typer.BadParameter: If the reference is malformed or the chain is unknown
    """
    chain, sep, address = value.partition(":")
    if not sep or not chain or not address:
        raise typer.BadParameter(
            f"Expected chain:address, got {value!r}", param_hint="--wallet"
        )
    try:
        return address.strip(), to_chain_id(chain)
    except CryptfolioError as e:
        raise typer.BadParameter(str(e), param_hint="--wallet") from e


@app.callback(invoke_without_command=True)
def portfolio(
    ctx: typer.Context,
    wallet: Annotated[
        list[str] | None,
        typer.Option(
            "--wallet",
            "-w",
            help="Wallet as chain:address (repeatable). Defaults to the wallet book.",
        ),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [cryptfolio] table).",
        ),
    ] = None,
    sequential: Annotated[
        bool | None,
        typer.Option(
            "--sequential/--concurrent",
            help="Fetch wallets one at a time instead of all at once.",
        ),
    ] = None,
    top: Annotated[
        int | None,
        typer.Option("--top", "-n", help="Number of holdings to show."),
    ] = None,
    min_token_value: Annotated[
        float | None,
        typer.Option(
            "--min-token-value",
            help="Drop tokens worth less than this many USD. Native assets are kept.",
        ),
    ] = None,
    snapshot: Annotated[
        bool,
        typer.Option(
            "--snapshot/--no-snapshot",
            help="Record a portfolio snapshot when the value moved enough.",
        ),
    ] = True,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the portfolio as JSON."),
    ] = False,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective config (with secrets redacted) and exit.",
        ),
    ] = False,
):
    """Aggregate balances across wallets and print the top holdings.

    This is the default command. It loads configuration, resolves the
    wallets to query and executes the portfolio pipeline.
    """
    if config_path:
        os.environ["CRYPTFOLIO_CONFIG"] = str(config_path)

    init_kwargs: dict[str, FetchMode | int | float | str] = {}
    if sequential is not None:
        init_kwargs["fetch_mode"] = (
            FetchMode.SEQUENTIAL if sequential else FetchMode.CONCURRENT
        )
    if top is not None:
        init_kwargs["top_n"] = top
    if min_token_value is not None:
        init_kwargs["min_token_value"] = min_token_value
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()

    settings = CryptfolioSettings(**init_kwargs)

    setup_logging(settings.log_level)
    state = AppState(settings=settings, logger=_build_logger())
    ctx.obj = state

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    if ctx.invoked_subcommand is not None:
        return

    refs: list[tuple[str, ChainId | str]] = [parse_wallet_ref(w) for w in wallet or []]
    if not refs:
        refs = [(w.address, w.chain) for w in WalletBook(settings.wallets_path).load()]
    if not refs:
        raise typer.BadParameter(
            "No wallets given and the wallet book is empty.",
            param_hint=["--wallet", "cryptfolio wallets add"],
        )
    try:
        validate_wallets(refs)
    except CryptfolioError as e:
        raise typer.BadParameter(str(e), param_hint="--wallet") from e

    store = (
        JsonSnapshotStore(
            settings.snapshots_path,
            retention=timedelta(days=settings.snapshot_retention_days),
        )
        if snapshot
        else None
    )

    from .pipeline.run import run_portfolio

    result = asyncio.run(run_portfolio(state, refs, store))
    view = result.view_required

    if as_json:
        payload = view.to_dict()
        payload["snapshot"] = (
            result.snapshot.to_dict() if result.snapshot is not None else None
        )
        typer.echo(json.dumps(payload, indent=2))
    else:
        format_portfolio_table(view, result.snapshot, result.snapshot_created)

    if view.failures and len(view.failures) == view.wallet_count:
        raise typer.Exit(code=1)


@wallets_app.command("add")
def wallets_add(
    ctx: typer.Context,
    chain: Annotated[str, typer.Argument(help="Chain id, e.g. ethereum or solana.")],
    address: Annotated[str, typer.Argument(help="Wallet address.")],
    label: Annotated[
        str | None, typer.Option("--label", "-l", help="Display label.")
    ] = None,
):
    """Track a wallet."""
    book = WalletBook(_state(ctx).settings.wallets_path)
    try:
        added = book.add(address, chain, label)
    except CryptfolioError as e:
        raise typer.BadParameter(str(e)) from e
    typer.echo(f"Added {added.chain.value}:{added.address} ({added.id})")


@wallets_app.command("remove")
def wallets_remove(
    ctx: typer.Context,
    wallet_id: Annotated[str, typer.Argument(help="Wallet id from `wallets list`.")],
):
    """Stop tracking a wallet."""
    book = WalletBook(_state(ctx).settings.wallets_path)
    before = len(book.load())
    remaining = book.remove(wallet_id)
    if len(remaining) == before:
        raise typer.BadParameter(f"No wallet with id {wallet_id!r}")
    typer.echo(f"Removed {wallet_id}")


@wallets_app.command("list")
def wallets_list(
    ctx: typer.Context,
    as_json: Annotated[bool, typer.Option("--json", help="Print as JSON.")] = False,
):
    """List tracked wallets."""
    wallets = WalletBook(_state(ctx).settings.wallets_path).load()
    if as_json:
        typer.echo(json.dumps([w.to_dict() for w in wallets], indent=2))
        return

    table = Table(title="Tracked Wallets")
    table.add_column("ID", style="dim")
    table.add_column("Chain", style="bold")
    table.add_column("Address", style="cyan")
    table.add_column("Label")
    for w in wallets:
        table.add_row(w.id, w.chain.value, w.address, w.label or "")
    Console().print(table)


@app.command("export")
def export_command(
    ctx: typer.Context,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write to this file instead of stdout."),
    ] = None,
):
    """Export tracked wallets and snapshot history as JSON."""
    settings = _state(ctx).settings
    document = export_portfolio(
        WalletBook(settings.wallets_path), JsonSnapshotStore(settings.snapshots_path)
    )
    if output is None:
        typer.echo(document)
    else:
        output.write_text(document, encoding="utf-8")


@app.command("import")
def import_command(
    ctx: typer.Context,
    source: Annotated[Path, typer.Argument(help="File produced by `export`.")],
):
    """Replace tracked wallets and snapshots with an exported document."""
    settings = _state(ctx).settings
    try:
        import_portfolio(
            source.read_text(encoding="utf-8"),
            WalletBook(settings.wallets_path),
            JsonSnapshotStore(settings.snapshots_path),
        )
    except (OSError, ValueError) as e:
        raise typer.BadParameter(str(e), param_hint="SOURCE") from e
    typer.echo(f"Imported {source}")


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
