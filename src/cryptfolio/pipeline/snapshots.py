"""Snapshot recording on top of the debounce policy."""

from __future__ import annotations

from datetime import timedelta
from typing import Sequence

from ..domain import Asset, PortfolioSnapshot
from ..logger import get_logger
from ..processors.snapshot_policy import build_snapshot, now_ms, should_snapshot
from ..settings import CryptfolioSettings
from ..storage import SnapshotStore
from .context import PipelineContext

logger = get_logger(__name__)


def record_snapshot(
    store: SnapshotStore,
    assets: Sequence[Asset],
    settings: CryptfolioSettings,
    now: int | None = None,
    total_value: float | None = None,
) -> tuple[PortfolioSnapshot, bool]:
    """Persist a snapshot when the policy allows it.

    Returns:
        The snapshot to display and whether it was newly created. When the
        policy suppresses a new point, the most recent stored snapshot is
        returned instead.
    """
    now = now_ms() if now is None else now
    snapshot = build_snapshot(assets, now)
    if total_value is not None:
        snapshot = PortfolioSnapshot(
            timestamp=snapshot.timestamp,
            total_value=total_value,
            asset_values=snapshot.asset_values,
        )

    recent = store.latest_within(
        timedelta(days=settings.snapshot_retention_days), now=now
    )

    if recent is None or should_snapshot(
        snapshot.total_value,
        [recent],
        now=now,
        min_interval=timedelta(minutes=settings.snapshot_interval_minutes),
        min_change_pct=settings.snapshot_change_pct,
    ):
        store.append(snapshot)
        logger.info("Recorded portfolio snapshot: $%.2f", snapshot.total_value)
        return snapshot, True

    logger.info("Using recent snapshot from %d", recent.timestamp)
    return recent, False


async def snapshot_portfolio(ctx: PipelineContext, store: SnapshotStore) -> None:
    view = ctx.view_required
    ctx.snapshot, ctx.snapshot_created = record_snapshot(
        store, view.assets, ctx.state.settings, total_value=view.total_value
    )
