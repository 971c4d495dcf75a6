"""Rich console formatter for portfolio views."""

from __future__ import annotations

from datetime import datetime, timezone

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..chains import resolve
from ..domain import PortfolioSnapshot, PortfolioView


def _format_usd(value: float) -> str:
    return f"${value:,.2f}"


def _format_balance(balance: float) -> str:
    if balance >= 1:
        return f"{balance:,.4f}"
    return f"{balance:.8f}".rstrip("0").rstrip(".") or "0"


def _truncate_address(address: str) -> str:
    """Truncate address for display."""
    if len(address) <= 14:
        return address
    return f"{address[:6]}...{address[-4:]}"


def _format_timestamp(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).strftime(
        "%Y-%m-%d %H:%M UTC"
    )


def build_assets_table(view: PortfolioView) -> Table:
    table = Table(title="Top Holdings", title_style="bold", expand=True)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Asset", style="bold cyan")
    table.add_column("Chain")
    table.add_column("Balance", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Value", justify="right", style="green")
    table.add_column("Share", justify="right", style="dim")

    for rank, asset in enumerate(view.assets, start=1):
        chain = resolve(asset.chain)
        share = asset.value / view.total_value * 100 if view.total_value > 0 else 0.0
        table.add_row(
            str(rank),
            f"{asset.symbol} [dim]{asset.name}[/]",
            f"{chain.logo} {chain.name}",
            _format_balance(asset.balance),
            _format_usd(asset.price),
            _format_usd(asset.value),
            f"{share:.1f}%",
        )
    return table


def build_summary_panel(
    view: PortfolioView,
    snapshot: PortfolioSnapshot | None = None,
    snapshot_created: bool = False,
) -> Panel:
    summary_table = Table(show_header=False, box=None, padding=(0, 1))
    summary_table.add_column("Key", style="dim")
    summary_table.add_column("Value", style="green")
    summary_table.add_row("Total Value", _format_usd(view.total_value))
    summary_table.add_row("Wallets", str(view.wallet_count))
    summary_table.add_row("Holdings", str(len(view.assets)))
    if snapshot is not None:
        status = "recorded" if snapshot_created else "reused"
        summary_table.add_row(
            "Snapshot", f"{_format_timestamp(snapshot.timestamp)} ({status})"
        )
    return Panel(summary_table, title="[bold]Portfolio[/]", border_style="green")


def build_failures_panel(view: PortfolioView) -> Panel | None:
    if not view.failures:
        return None
    lines = Text()
    for failure in view.failures:
        lines.append(f"{failure.chain.value} ", style="bold")
        lines.append(_truncate_address(failure.address), style="cyan")
        lines.append(f": {failure.reason}\n", style="dim")
    return Panel(lines, title="[bold]Failed Wallets[/]", border_style="red")


def format_portfolio_table(
    view: PortfolioView,
    snapshot: PortfolioSnapshot | None = None,
    snapshot_created: bool = False,
    console: Console | None = None,
) -> None:
    """Print the portfolio dashboard to stdout.

    Args:
        view: Aggregated portfolio
        snapshot: Snapshot recorded or reused for this run, if any
        snapshot_created: Whether ``snapshot`` was newly recorded
        console: Console to print to (defaults to a new stdout console)
    """
    console = console or Console()
    parts = [
        build_summary_panel(view, snapshot, snapshot_created),
        build_assets_table(view),
    ]
    failures = build_failures_panel(view)
    if failures is not None:
        parts.append(failures)
    console.print(Group(*parts))
