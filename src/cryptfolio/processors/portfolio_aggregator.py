from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Callable, Hashable, Sequence

from ..chains import ChainId, require_valid_address
from ..domain import (
    Asset,
    FetchCallable,
    FetchFailure,
    FetchResult,
    PortfolioView,
)
from ..logger import get_logger
from ..settings import FetchMode, MergeKey
from .normalizer import combine_assets

logger = get_logger(__name__)

DEFAULT_TOP_N = 10

WalletRef = tuple[str, ChainId | str]
MergeKeyFn = Callable[[Asset], Hashable]


def symbol_chain_key(asset: Asset) -> Hashable:
    """Default merge key. Distinct tokens sharing a ticker on one chain collapse together."""
    return (asset.symbol.upper(), asset.chain)


def symbol_chain_contract_key(asset: Asset) -> Hashable:
    """Merge key that keeps same-ticker tokens with different contracts apart."""
    return (asset.symbol.upper(), asset.chain, (asset.contract_address or "").lower())


MERGE_KEYS: dict[MergeKey, MergeKeyFn] = {
    MergeKey.SYMBOL_CHAIN: symbol_chain_key,
    MergeKey.SYMBOL_CHAIN_CONTRACT: symbol_chain_contract_key,
}


def merge_assets(assets: Sequence[Asset], key: MergeKeyFn = symbol_chain_key) -> list[Asset]:
    """Merge assets sharing a key by summing balances and values.

    The first asset of each group keeps its price, name, decimals and
    contract. Groups are returned in first-seen order.
    """
    merged: dict[Hashable, Asset] = {}
    for asset in assets:
        group = key(asset)
        existing = merged.get(group)
        merged[group] = (
            replace(asset) if existing is None else combine_assets(existing, asset)
        )
    return list(merged.values())


def rank_assets(assets: Sequence[Asset], limit: int = DEFAULT_TOP_N) -> list[Asset]:
    """Sort descending by value (stable, so ties keep merge order) and truncate."""
    return sorted(assets, key=lambda asset: asset.value, reverse=True)[:limit]


def validate_wallets(wallets: Sequence[WalletRef]) -> list[tuple[str, ChainId]]:
    """Resolve chains and check address formats before any network call.

    Raises:
        UnknownChainError: If a chain is not registered
        InvalidAddressFormatError: If an address is malformed for its chain
    """
    return [
        (address, require_valid_address(address, chain_id).id)
        for address, chain_id in wallets
    ]


def _as_result(
    address: str, chain_id: ChainId, result: FetchResult | BaseException
) -> FetchResult:
    if isinstance(result, BaseException):
        logger.error(
            "Unexpected error fetching %s wallet %s: %s", chain_id.value, address, result
        )
        return FetchFailure(address=address, chain=chain_id, reason=repr(result))
    return result


async def fetch_all_concurrent(
    wallets: Sequence[tuple[str, ChainId]], fetch: FetchCallable
) -> list[FetchResult]:
    """Fan out all wallet fetches and wait for every one of them.

    One wallet raising does not abort its siblings. Results keep wallet order.
    """
    results = await asyncio.gather(
        *[fetch(address, chain_id) for address, chain_id in wallets],
        return_exceptions=True,
    )
    return [
        _as_result(address, chain_id, result)
        for (address, chain_id), result in zip(wallets, results)
    ]


async def fetch_all_sequential(
    wallets: Sequence[tuple[str, ChainId]], fetch: FetchCallable
) -> list[FetchResult]:
    """Fetch wallets one at a time, for rate-limited or remote sources."""
    results: list[FetchResult] = []
    for address, chain_id in wallets:
        try:
            result = await fetch(address, chain_id)
        except Exception as e:
            result = _as_result(address, chain_id, e)
        results.append(result)
    return results


FETCH_STRATEGIES = {
    FetchMode.CONCURRENT: fetch_all_concurrent,
    FetchMode.SEQUENTIAL: fetch_all_sequential,
}


async def aggregate_portfolio(
    wallets: Sequence[WalletRef],
    fetch: FetchCallable,
    *,
    mode: FetchMode = FetchMode.CONCURRENT,
    merge_key: MergeKeyFn = symbol_chain_key,
    top_n: int = DEFAULT_TOP_N,
) -> PortfolioView:
    """Fetch, merge and rank assets across wallets.

    Failed fetches still contribute any partial assets and are listed in
    ``PortfolioView.failures``.
    """
    resolved = validate_wallets(wallets)
    logger.info("Fetching balances for %d wallets (%s)", len(resolved), mode.value)

    results = await FETCH_STRATEGIES[mode](resolved, fetch)

    all_assets: list[Asset] = []
    failures: list[FetchFailure] = []
    for result in results:
        all_assets.extend(result.assets)
        if isinstance(result, FetchFailure):
            logger.warning(
                "Wallet %s on %s failed: %s",
                result.address,
                result.chain.value,
                result.reason,
            )
            failures.append(result)

    merged = merge_assets(all_assets, merge_key)
    top_assets = rank_assets(merged, top_n)
    logger.info(
        "Returning top %d holdings (from %d total assets)",
        len(top_assets),
        len(merged),
    )

    return PortfolioView(
        assets=top_assets,
        total_value=sum(asset.value for asset in merged),
        failures=failures,
        wallet_count=len(resolved),
    )


async def aggregate(
    wallets: Sequence[WalletRef],
    fetch: FetchCallable,
    *,
    mode: FetchMode = FetchMode.CONCURRENT,
    merge_key: MergeKeyFn = symbol_chain_key,
    top_n: int = DEFAULT_TOP_N,
) -> list[Asset]:
    """Ranked, merged assets across wallets."""
    view = await aggregate_portfolio(
        wallets, fetch, mode=mode, merge_key=merge_key, top_n=top_n
    )
    return view.assets
