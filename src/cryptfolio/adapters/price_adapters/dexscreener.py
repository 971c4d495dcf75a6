from __future__ import annotations

import asyncio
from typing import Any

from ...chains import ChainId, resolve
from ...domain import TokenQuote
from ...errors import SourceUnavailableError, UnknownChainError
from ...logger import get_logger
from ...settings import CryptfolioSettings
from ..http import get_json
from .base import BasePriceAdapter

logger = get_logger(__name__)


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_text(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _liquidity_usd(pair: dict[str, Any]) -> float:
    liquidity = _as_dict(pair.get("liquidity"))
    try:
        return float(liquidity.get("usd") or 0)
    except (TypeError, ValueError):
        return 0.0


def select_best_pair(pairs: list[Any], dex_chain_id: str) -> dict[str, Any] | None:
    """Highest-liquidity pair on the target chain, or None.

    Ties keep the first pair in response order.
    """
    candidates = [
        pair
        for pair in pairs
        if isinstance(pair, dict) and pair.get("chainId") == dex_chain_id
    ]
    if not candidates:
        return None
    return max(candidates, key=_liquidity_usd)


def quote_from_pair(pair: dict[str, Any]) -> TokenQuote:
    """Build a quote from one pair; malformed fields fall back to defaults."""
    base_token = _as_dict(pair.get("baseToken"))
    try:
        price = float(pair.get("priceUsd") or 0)
    except (TypeError, ValueError):
        price = 0.0
    return TokenQuote(
        price=price,
        symbol=_as_text(base_token.get("symbol")) or "UNKNOWN",
        name=_as_text(base_token.get("name")) or "Unknown Token",
    )


class DexScreenerAdapter(BasePriceAdapter):
    """Contract-address prices from DexScreener trading pairs.

    The authoritative price is taken from the pair with the largest
    reported USD liquidity on the requested chain.
    """

    def __init__(self, config: CryptfolioSettings):
        super().__init__(config)
        self.api_base_url = config.dexscreener_api_url.rstrip("/")
        self.timeout = config.dex_timeout
        self.request_delay = config.dex_request_delay

    @property
    def adapter_name(self) -> str:
        return "dexscreener"

    async def fetch_token_quote(
        self, token_address: str, chain_id: ChainId | str
    ) -> TokenQuote | None:
        """Quote a token on one chain. Returns None when no pair exists there."""
        try:
            dex_chain_id = resolve(chain_id).dex_chain_id
        except UnknownChainError:
            return None
        if dex_chain_id is None:
            return None

        logger.debug(
            "Fetching price from DexScreener for %s on %s", token_address, dex_chain_id
        )
        try:
            data = await get_json(
                f"{self.api_base_url}/tokens/{token_address}",
                source=self.adapter_name,
                timeout=self.timeout,
            )
        except SourceUnavailableError as e:
            logger.warning("Error fetching DexScreener quote for %s: %s", token_address, e)
            return None

        pairs = data.get("pairs") if isinstance(data, dict) else None
        if not pairs:
            logger.debug("No pairs found on DexScreener for %s", token_address)
            return None

        best_pair = select_best_pair(pairs, dex_chain_id)
        if best_pair is None:
            logger.debug("No %s pairs for %s", dex_chain_id, token_address)
            return None

        quote = quote_from_pair(best_pair)
        logger.debug("DexScreener price for %s: $%s", quote.symbol, quote.price)
        return quote

    async def fetch_token_quotes(
        self, token_addresses: list[str], chain_id: ChainId | str
    ) -> dict[str, TokenQuote]:
        """Quote tokens one at a time with a fixed delay between requests.

        Unresolved tokens are left out of the result.
        """
        quotes: dict[str, TokenQuote] = {}
        for index, token_address in enumerate(token_addresses):
            if index and self.request_delay > 0:
                await asyncio.sleep(self.request_delay)
            quote = await self.fetch_token_quote(token_address, chain_id)
            if quote is not None:
                quotes[token_address] = quote
        return quotes
