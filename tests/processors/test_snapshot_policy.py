from datetime import timedelta

import pytest

from cryptfolio.domain import PortfolioSnapshot
from cryptfolio.processors.snapshot_policy import (
    build_snapshot,
    latest_snapshot,
    percent_change,
    prune_snapshots,
    should_snapshot,
)

MINUTE_MS = 60_000
DAY_MS = 24 * 60 * MINUTE_MS
NOW = 1_700_000_000_000


def snap(timestamp: int, total: float) -> PortfolioSnapshot:
    return PortfolioSnapshot(timestamp=timestamp, total_value=total, asset_values=())


def test_first_snapshot_is_always_taken():
    assert should_snapshot(1000.0, [], now=NOW) is True


def test_small_change_within_interval_is_suppressed():
    history = [snap(NOW - 10 * MINUTE_MS, 1000.0)]

    assert should_snapshot(1004.0, history, now=NOW) is False


def test_change_at_threshold_triggers_snapshot():
    history = [snap(NOW - 10 * MINUTE_MS, 1000.0)]

    assert should_snapshot(1005.0, history, now=NOW) is True
    assert should_snapshot(995.0, history, now=NOW) is True


def test_elapsed_interval_triggers_snapshot_without_change():
    history = [snap(NOW - 30 * MINUTE_MS, 1000.0)]

    assert should_snapshot(1000.0, history, now=NOW) is True


def test_latest_snapshot_is_chosen_by_timestamp_not_position():
    history = [snap(NOW - 5 * MINUTE_MS, 1000.0), snap(NOW - 60 * MINUTE_MS, 1000.0)]

    assert latest_snapshot(history).timestamp == NOW - 5 * MINUTE_MS
    assert should_snapshot(1001.0, history, now=NOW) is False


def test_zero_baseline_counts_as_no_change():
    history = [snap(NOW - MINUTE_MS, 0.0)]

    assert percent_change(500.0, 0.0) == 0.0
    assert should_snapshot(500.0, history, now=NOW) is False


def test_custom_thresholds():
    history = [snap(NOW - 2 * MINUTE_MS, 1000.0)]

    assert should_snapshot(
        1000.0, history, now=NOW, min_interval=timedelta(minutes=1)
    )
    assert should_snapshot(1002.0, history, now=NOW, min_change_pct=0.1)


def test_build_snapshot_sums_asset_values(asset_factory):
    assets = [asset_factory("ETH", 3000.0), asset_factory("USDC", 500.0)]

    snapshot = build_snapshot(assets, now=NOW)

    assert snapshot.timestamp == NOW
    assert snapshot.total_value == 3500.0
    assert snapshot.asset_values == (("ETH", 3000.0), ("USDC", 500.0))


def test_prune_drops_snapshots_at_or_before_cutoff():
    cutoff = NOW - 7 * DAY_MS
    history = [
        snap(NOW, 3.0),
        snap(cutoff, 1.0),
        snap(cutoff + 1, 2.0),
        snap(cutoff - DAY_MS, 0.0),
    ]

    kept = prune_snapshots(history, now=NOW)

    assert [s.timestamp for s in kept] == [cutoff + 1, NOW]


@pytest.mark.parametrize("days", [1, 3])
def test_prune_honors_custom_retention(days):
    history = [snap(NOW - 2 * DAY_MS, 1.0)]

    kept = prune_snapshots(history, now=NOW, retention=timedelta(days=days))

    assert len(kept) == (1 if days == 3 else 0)
