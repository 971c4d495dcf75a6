"""USD pricing facade over the symbol and contract price sources."""

from __future__ import annotations

from ...chains import ChainId, resolve
from ...domain import TokenQuote
from ...settings import CryptfolioSettings
from .coingecko import CoinGeckoAdapter
from .dexscreener import DexScreenerAdapter


class PriceResolver:
    """Routes native assets to the symbol source and tokens to the DEX source.

    The two strategies are not interchangeable: tickers are ambiguous for
    tokens, and DEX pairs do not exist for chain-native coins.
    """

    def __init__(
        self,
        config: CryptfolioSettings,
        symbol_source: CoinGeckoAdapter | None = None,
        contract_source: DexScreenerAdapter | None = None,
    ):
        self.config = config
        self.symbol_source = symbol_source or CoinGeckoAdapter(config)
        self.contract_source = contract_source or DexScreenerAdapter(config)

    async def price_for_symbol(self, symbol: str) -> float:
        return await self.symbol_source.fetch_price(symbol)

    async def native_price(self, chain_id: ChainId | str) -> float:
        return await self.price_for_symbol(resolve(chain_id).symbol)

    async def token_quote(
        self, token_address: str, chain_id: ChainId | str
    ) -> TokenQuote | None:
        return await self.contract_source.fetch_token_quote(token_address, chain_id)

    async def token_quotes(
        self, token_addresses: list[str], chain_id: ChainId | str
    ) -> dict[str, TokenQuote]:
        return await self.contract_source.fetch_token_quotes(token_addresses, chain_id)
