from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping

from ...errors import SourceUnavailableError
from ...logger import get_logger
from ...settings import CryptfolioSettings
from ..http import get_json
from .base import BasePriceAdapter

logger = get_logger(__name__)

# Ticker -> CoinGecko coin id
SYMBOL_TO_COINGECKO_ID: Mapping[str, str] = MappingProxyType(
    {
        "BTC": "bitcoin",
        "ETH": "ethereum",
        "SOL": "solana",
        "MATIC": "matic-network",
        "POLYGON": "matic-network",
        "BNB": "binancecoin",
        "AVAX": "avalanche-2",
        "USDC": "usd-coin",
        "USDT": "tether",
        "DAI": "dai",
        "WETH": "weth",
        "WBTC": "wrapped-bitcoin",
        "LINK": "chainlink",
        "UNI": "uniswap",
        "AAVE": "aave",
        "CRV": "curve-dao-token",
        "MKR": "maker",
        "SNX": "havven",
        "COMP": "compound-governance-token",
        "SUSHI": "sushi",
    }
)


def coingecko_id(symbol: str) -> str:
    """CoinGecko id for a ticker; unknown tickers map to their lowercased form."""
    return SYMBOL_TO_COINGECKO_ID.get(symbol.upper(), symbol.lower())


class CoinGeckoAdapter(BasePriceAdapter):
    """Symbol-based USD prices from the CoinGecko ``simple/price`` endpoint."""

    def __init__(self, config: CryptfolioSettings):
        super().__init__(config)
        self.api_base_url = config.coingecko_api_url.rstrip("/")
        self.timeout = config.price_timeout

    @property
    def adapter_name(self) -> str:
        return "coingecko"

    def _headers(self) -> dict[str, str] | None:
        if self.config.coingecko_api_key is None:
            return None
        return {"x-cg-demo-api-key": self.config.coingecko_api_key.get_secret_value()}

    async def fetch_prices(self, symbols: list[str]) -> dict[str, dict[str, float]]:
        """Batch lookup of USD prices keyed by CoinGecko id.

        Ids missing from the response are simply absent. Any failure returns
        an empty mapping.
        """
        ids = list(dict.fromkeys(coingecko_id(symbol) for symbol in symbols))
        if not ids:
            return {}

        try:
            data = await get_json(
                f"{self.api_base_url}/simple/price",
                source=self.adapter_name,
                timeout=self.timeout,
                params={
                    "ids": ",".join(ids),
                    "vs_currencies": "usd",
                    "include_24hr_change": "true",
                },
                headers=self._headers(),
            )
        except SourceUnavailableError as e:
            logger.warning("Error fetching prices for %s: %s", ids, e)
            return {}

        if not isinstance(data, dict):
            logger.warning("Unexpected CoinGecko response: %r", data)
            return {}

        prices: dict[str, dict[str, float]] = {}
        for coin_id, entry in data.items():
            if not isinstance(entry, dict):
                continue
            prices[coin_id] = self._parse_entry(entry)
        return prices

    @staticmethod
    def _parse_entry(entry: dict[str, Any]) -> dict[str, float]:
        parsed: dict[str, float] = {}
        for key in ("usd", "usd_24h_change"):
            raw = entry.get(key)
            if raw is None:
                continue
            try:
                parsed[key] = float(raw)
            except (TypeError, ValueError):
                logger.debug("Ignoring non-numeric %s: %r", key, raw)
        return parsed

    async def fetch_price(self, symbol: str) -> float:
        """USD price for one ticker, or 0.0 when unknown or unavailable."""
        prices = await self.fetch_prices([symbol])
        return prices.get(coingecko_id(symbol), {}).get("usd", 0.0)
