"""Debounce policy for the portfolio value time series."""

from __future__ import annotations

import time
from datetime import timedelta
from typing import Sequence

from ..domain import Asset, PortfolioSnapshot

MIN_SNAPSHOT_INTERVAL = timedelta(minutes=30)
MIN_CHANGE_PCT = 0.5
RETENTION_WINDOW = timedelta(days=7)


def now_ms() -> int:
    return int(time.time() * 1000)


def _ms(delta: timedelta) -> int:
    return int(delta.total_seconds() * 1000)


def latest_snapshot(history: Sequence[PortfolioSnapshot]) -> PortfolioSnapshot | None:
    """Most recent snapshot by timestamp, regardless of list order."""
    if not history:
        return None
    return max(history, key=lambda snapshot: snapshot.timestamp)


def percent_change(current_value: float, last_value: float) -> float:
    """Absolute percent change from ``last_value``. A zero baseline counts as no change."""
    if last_value <= 0:
        return 0.0
    return abs(current_value - last_value) / last_value * 100


def should_snapshot(
    current_value: float,
    history: Sequence[PortfolioSnapshot],
    now: int | None = None,
    min_interval: timedelta = MIN_SNAPSHOT_INTERVAL,
    min_change_pct: float = MIN_CHANGE_PCT,
) -> bool:
    """Decide whether ``current_value`` deserves a new history point.

    True for the first observation, once ``min_interval`` has elapsed since
    the latest snapshot, or when the value moved by ``min_change_pct`` percent
    or more. Otherwise the caller should reuse the latest snapshot.
    """
    last = latest_snapshot(history)
    if last is None:
        return True

    now = now_ms() if now is None else now
    if now - last.timestamp >= _ms(min_interval):
        return True

    return percent_change(current_value, last.total_value) >= min_change_pct


def build_snapshot(assets: Sequence[Asset], now: int | None = None) -> PortfolioSnapshot:
    return PortfolioSnapshot(
        timestamp=now_ms() if now is None else now,
        total_value=sum(asset.value for asset in assets),
        asset_values=tuple((asset.symbol, asset.value) for asset in assets),
    )


def prune_snapshots(
    history: Sequence[PortfolioSnapshot],
    now: int | None = None,
    retention: timedelta = RETENTION_WINDOW,
) -> list[PortfolioSnapshot]:
    """Keep snapshots strictly newer than the retention cutoff, oldest first."""
    cutoff = (now_ms() if now is None else now) - _ms(retention)
    kept = [snapshot for snapshot in history if snapshot.timestamp > cutoff]
    return sorted(kept, key=lambda snapshot: snapshot.timestamp)
