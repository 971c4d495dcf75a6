"""High-level pipeline orchestration."""

from __future__ import annotations

from typing import Sequence

from ..chains import ChainId
from ..domain import FetchCallable
from ..state import AppState
from ..storage import SnapshotStore
from .context import PipelineContext
from .portfolio import collect_portfolio
from .snapshots import snapshot_portfolio


async def run_portfolio(
    state: AppState,
    wallets: Sequence[tuple[str, ChainId | str]],
    store: SnapshotStore | None = None,
    fetch: FetchCallable | None = None,
) -> PipelineContext:
    """Execute the portfolio pipeline.

    This is a thin orchestrator that sequences the pipeline steps:
    1. Balance collection, merge and ranking
    2. Snapshot recording (only when a store is given)

    Args:
        state: Application state containing settings and logger
        wallets: (address, chain) pairs to aggregate
        store: Optional snapshot persistence
        fetch: Optional wallet fetch override

    Returns:
        The populated pipeline context
    """
    log = state.logger
    log.info("Starting portfolio run", extra={"wallets": len(wallets)})

    ctx = PipelineContext(state=state, wallets=list(wallets))
    await collect_portfolio(ctx, fetch)
    if store is not None:
        await snapshot_portfolio(ctx, store)

    log.info("Portfolio run completed", extra={"assets": len(ctx.view_required.assets)})
    return ctx
