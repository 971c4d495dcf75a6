"""Canonical asset construction and noise filtering."""

from __future__ import annotations

from dataclasses import replace

from ..chains import resolve
from ..domain import Asset, RawHolding
from ..logger import get_logger

logger = get_logger(__name__)

DEFAULT_MIN_TOKEN_VALUE = 10.0


def to_asset(
    holding: RawHolding,
    price: float,
    symbol: str | None = None,
    name: str | None = None,
) -> Asset:
    """Build the canonical asset for a priced holding.

    Symbol and name default to the holding's own metadata, then to the
    chain's native asset for native holdings.
    """
    chain = resolve(holding.chain)
    resolved_symbol = symbol or holding.symbol
    resolved_name = name or holding.name
    if holding.is_native:
        resolved_symbol = resolved_symbol or chain.symbol
        resolved_name = resolved_name or chain.name
    resolved_symbol = (resolved_symbol or "UNKNOWN").upper()
    balance = holding.balance

    return Asset(
        symbol=resolved_symbol,
        name=resolved_name or f"Token {resolved_symbol}",
        balance=balance,
        decimals=holding.decimals,
        price=price,
        value=balance * price,
        chain=holding.chain,
        contract_address=holding.contract_address,
    )


def passes_value_floor(
    asset: Asset, min_value: float = DEFAULT_MIN_TOKEN_VALUE
) -> bool:
    """Native assets always pass; tokens need ``value >= min_value``."""
    return asset.is_native or asset.value >= min_value


def apply_value_floor(
    assets: list[Asset], min_value: float = DEFAULT_MIN_TOKEN_VALUE
) -> list[Asset]:
    kept: list[Asset] = []
    for asset in assets:
        if passes_value_floor(asset, min_value):
            kept.append(asset)
        else:
            logger.debug(
                "Skipping %s - value $%.2f is below $%.2f threshold",
                asset.symbol,
                asset.value,
                min_value,
            )
    return kept


def combine_assets(existing: Asset, other: Asset) -> Asset:
    """Sum balances and values into ``existing``. Price is not re-averaged."""
    return replace(
        existing,
        balance=existing.balance + other.balance,
        value=existing.value + other.value,
    )


def dedupe_assets(assets: list[Asset]) -> list[Asset]:
    """Collapse repeated entries for the same contract on the same chain.

    A Solana owner may hold one mint across several token accounts, so the
    repeats are summed rather than dropped. First occurrence keeps its slot.
    """
    unique: dict[tuple[str, str], Asset] = {}
    for asset in assets:
        identity = (
            asset.chain.value,
            (asset.contract_address or "").lower() or f"native:{asset.symbol}",
        )
        if identity in unique:
            logger.debug("Combining repeated %s entry on %s", asset.symbol, asset.chain.value)
            unique[identity] = combine_assets(unique[identity], asset)
        else:
            unique[identity] = asset
    return list(unique.values())
