from __future__ import annotations

from ...chains import ChainFamily, ChainId, resolve
from ...domain import FetchFailure, FetchResult, FetchSuccess
from ...errors import SourceUnavailableError
from ...logger import get_logger
from ..http import get_text
from .base import BaseBalanceAdapter

logger = get_logger(__name__)

SATOSHI_DECIMALS = 8


class BitcoinBalanceAdapter(BaseBalanceAdapter):
    """Address balance from the blockchain.info query API. No token concept."""

    @property
    def adapter_name(self) -> str:
        return "bitcoin"

    @property
    def family(self) -> ChainFamily:
        return ChainFamily.BITCOIN

    async def fetch_satoshis(self, address: str) -> int:
        """Confirmed balance in satoshis.

        Raises:
            SourceUnavailableError: If the call fails or the body is not an integer
        """
        base_url = self.config.bitcoin_api_url.rstrip("/")
        body = await get_text(
            f"{base_url}/q/addressbalance/{address}",
            source="bitcoin balance api",
            timeout=self.config.bitcoin_timeout,
        )
        try:
            return int(body.strip())
        except ValueError as e:
            raise SourceUnavailableError("bitcoin balance api", f"non-integer balance {body!r}") from e

    async def fetch(self, address: str, chain_id: ChainId) -> FetchResult:
        chain = resolve(chain_id)
        try:
            satoshis = await self.fetch_satoshis(address)
        except SourceUnavailableError as e:
            logger.error("Error fetching Bitcoin balance for %s: %s", address, e)
            return FetchFailure(address=address, chain=chain.id, reason=str(e))

        asset = await self.native_asset(chain, satoshis, SATOSHI_DECIMALS)
        return FetchSuccess(
            address=address,
            chain=chain.id,
            assets=[asset] if asset is not None else [],
        )
