from __future__ import annotations

from .normalizer import (
    apply_value_floor,
    combine_assets,
    dedupe_assets,
    passes_value_floor,
    to_asset,
)
from .portfolio_aggregator import (
    MERGE_KEYS,
    aggregate,
    aggregate_portfolio,
    fetch_all_concurrent,
    fetch_all_sequential,
    merge_assets,
    rank_assets,
    symbol_chain_contract_key,
    symbol_chain_key,
    validate_wallets,
)
from .snapshot_policy import (
    build_snapshot,
    latest_snapshot,
    prune_snapshots,
    should_snapshot,
)

__all__ = [
    "MERGE_KEYS",
    "aggregate",
    "aggregate_portfolio",
    "apply_value_floor",
    "build_snapshot",
    "combine_assets",
    "dedupe_assets",
    "fetch_all_concurrent",
    "fetch_all_sequential",
    "latest_snapshot",
    "merge_assets",
    "passes_value_floor",
    "prune_snapshots",
    "rank_assets",
    "should_snapshot",
    "symbol_chain_contract_key",
    "symbol_chain_key",
    "to_asset",
    "validate_wallets",
]
