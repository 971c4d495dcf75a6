from __future__ import annotations

from .coingecko import SYMBOL_TO_COINGECKO_ID, CoinGeckoAdapter, coingecko_id
from .dexscreener import DexScreenerAdapter
from .resolver import PriceResolver

PRICE_ADAPTERS = [
    CoinGeckoAdapter,
    DexScreenerAdapter,
]

__all__ = [
    "PRICE_ADAPTERS",
    "SYMBOL_TO_COINGECKO_ID",
    "CoinGeckoAdapter",
    "DexScreenerAdapter",
    "PriceResolver",
    "coingecko_id",
]
