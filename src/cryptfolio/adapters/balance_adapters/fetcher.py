from __future__ import annotations

from ...chains import ChainFamily, ChainId, require_valid_address, resolve
from ...domain import FetchResult
from ...logger import get_logger
from ...settings import CryptfolioSettings
from ..price_adapters import PriceResolver
from .base import BaseBalanceAdapter

logger = get_logger(__name__)


class BalanceFetcher:
    """Validates a wallet and dispatches it to the adapter for its chain family."""

    def __init__(
        self,
        config: CryptfolioSettings,
        prices: PriceResolver | None = None,
        adapters: dict[ChainFamily, BaseBalanceAdapter] | None = None,
    ):
        self.config = config
        self.prices = prices or PriceResolver(config)
        if adapters is None:
            # Imported here to avoid a cycle with the package __init__.
            from . import ADAPTER_REGISTRY

            adapters = {
                family: adapter_cls(config, self.prices)
                for family, adapter_cls in ADAPTER_REGISTRY.items()
            }
        self.adapters: dict[ChainFamily, BaseBalanceAdapter] = adapters

    def adapter_for(self, chain_id: ChainId | str) -> BaseBalanceAdapter:
        chain = resolve(chain_id)
        return self.adapters[chain.family]

    async def fetch_wallet(self, address: str, chain_id: ChainId | str) -> FetchResult:
        """Fetch one wallet.

        Raises:
            UnknownChainError: If the chain is not registered
            InvalidAddressFormatError: If the address is malformed for the chain
        """
        chain = require_valid_address(address, chain_id)
        adapter = self.adapters[chain.family]
        result = await adapter.fetch(address, chain.id)
        logger.debug(
            "Adapter '%s' returned %d assets for %s wallet %s",
            adapter.adapter_name,
            len(result.assets),
            chain.id.value,
            address,
        )
        return result

    __call__ = fetch_wallet
