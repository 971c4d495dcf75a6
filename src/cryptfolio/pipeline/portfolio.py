"""Balance collection across wallets."""

from __future__ import annotations

from ..adapters.balance_adapters import BalanceFetcher, with_retries
from ..domain import FetchCallable
from ..processors import MERGE_KEYS, aggregate_portfolio
from .context import PipelineContext


def build_fetch(ctx: PipelineContext) -> FetchCallable:
    """Wallet fetch callable honoring the configured retry budget."""
    s = ctx.state.settings
    fetcher = BalanceFetcher(s)
    return with_retries(fetcher.fetch_wallet, s.fetch_retries)


async def collect_portfolio(
    ctx: PipelineContext, fetch: FetchCallable | None = None
) -> None:
    """Aggregate balances for the context's wallets.

    Sets the portfolio view in the context.
    """
    s = ctx.state.settings
    log = ctx.state.logger

    fetch = fetch or build_fetch(ctx)
    ctx.view = await aggregate_portfolio(
        ctx.wallets,
        fetch,
        mode=s.fetch_mode,
        merge_key=MERGE_KEYS[s.merge_key],
        top_n=s.top_n,
    )

    if ctx.view.failures:
        log.warning(
            "%d of %d wallet fetches failed",
            len(ctx.view.failures),
            ctx.view.wallet_count,
        )
    log.info("Portfolio total: $%.2f", ctx.view.total_value)
