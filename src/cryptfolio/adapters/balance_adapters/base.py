from __future__ import annotations

from abc import ABC, abstractmethod

from ...chains import Chain, ChainFamily, ChainId
from ...domain import Asset, FetchResult, RawHolding
from ...logger import get_logger
from ...processors.normalizer import apply_value_floor, dedupe_assets, to_asset
from ...settings import CryptfolioSettings
from ..price_adapters import PriceResolver

logger = get_logger(__name__)


class BaseBalanceAdapter(ABC):
    """Abstract base class for per-chain-family balance adapters.

    ``fetch`` never raises for source failures. It returns a
    ``FetchFailure`` (possibly carrying partial assets) instead.
    """

    def __init__(self, config: CryptfolioSettings, prices: PriceResolver):
        """Initialize the adapter with configuration.

        Args:
            config: Application settings
            prices: Price resolver used to value raw holdings
        """
        self.config = config
        self.prices = prices

    @property
    @abstractmethod
    def adapter_name(self) -> str:
        """Return the name of this adapter."""
        ...

    @property
    @abstractmethod
    def family(self) -> ChainFamily:
        """Chain family this adapter serves."""
        ...

    @abstractmethod
    async def fetch(self, address: str, chain_id: ChainId) -> FetchResult:
        """Fetch priced assets held by ``address`` on ``chain_id``."""
        ...

    def rpc_url(self, chain: Chain) -> str | None:
        return self.config.rpc_url_for(chain.id.value, chain.rpc_url)

    async def native_asset(self, chain: Chain, raw_amount: int, decimals: int) -> Asset | None:
        """Price a native balance. Zero balances produce no asset."""
        holding = RawHolding(chain=chain.id, raw_amount=raw_amount, decimals=decimals)
        if holding.balance <= 0:
            return None
        price = await self.prices.native_price(chain.id)
        return to_asset(holding, price)

    async def token_assets(self, chain: Chain, holdings: list[RawHolding]) -> list[Asset]:
        """Price token holdings by contract and drop noise below the value floor.

        Symbol and name come from the balance source when it has them,
        then from the DEX quote, then from the truncated contract address
        (name becomes ``Token <SYMBOL>``).
        """
        holdings = [h for h in holdings if h.balance > 0 and h.contract_address]
        if not holdings:
            return []

        contract_addresses = list(
            dict.fromkeys(h.contract_address for h in holdings if h.contract_address)
        )
        quotes = await self.prices.token_quotes(contract_addresses, chain.id)

        assets: list[Asset] = []
        for holding in holdings:
            address = holding.contract_address or ""
            quote = quotes.get(address)
            symbol = holding.symbol or (quote.symbol if quote else None) or address[:8]
            name = holding.name or (quote.name if quote else None)
            price = quote.price if quote else 0.0
            asset = to_asset(holding, price, symbol=symbol, name=name)
            logger.debug(
                "%s token %s: balance=%s price=$%s value=$%.2f",
                chain.name,
                asset.symbol,
                asset.balance,
                asset.price,
                asset.value,
            )
            assets.append(asset)

        return apply_value_floor(dedupe_assets(assets), self.config.min_token_value)
