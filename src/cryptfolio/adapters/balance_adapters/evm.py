from __future__ import annotations

import asyncio
from typing import Any

import requests
from web3 import Web3
from web3.exceptions import Web3Exception

from ...chains import Chain, ChainFamily, ChainId, resolve
from ...domain import Asset, FetchFailure, FetchResult, FetchSuccess, RawHolding
from ...errors import SourceUnavailableError
from ...logger import get_logger
from ...settings import CryptfolioSettings
from ..http import get_json
from ..price_adapters import PriceResolver
from .base import BaseBalanceAdapter

logger = get_logger(__name__)

NATIVE_DECIMALS = 18
DEFAULT_TOKEN_DECIMALS = 18


def parse_token_list(chain_id: ChainId, tokens: list[Any]) -> list[RawHolding]:
    """Convert Blockscout ``tokenlist`` entries into raw holdings.

    Malformed entries are logged and skipped.
    """
    holdings: list[RawHolding] = []
    for token in tokens:
        try:
            contract_address = token["contractAddress"]
            decimals = int(token.get("decimals") or DEFAULT_TOKEN_DECIMALS)
            raw_amount = int(token.get("balance") or 0)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning("Skipping malformed token entry %r: %s", token, e)
            continue

        name = token.get("name") or None
        symbol = token.get("symbol") or (name[:6] if name else None) or "UNKNOWN"
        # explorer metadata only; DEX names are not used for EVM tokens
        name = name or f"Token {symbol}"
        holdings.append(
            RawHolding(
                chain=chain_id,
                raw_amount=raw_amount,
                decimals=decimals,
                contract_address=contract_address,
                symbol=symbol,
                name=name,
            )
        )
    return holdings


class EVMBalanceAdapter(BaseBalanceAdapter):
    """Native balance over JSON-RPC plus ERC-20 holdings from a Blockscout explorer."""

    _web3_clients: dict[str, Web3]

    def __init__(self, config: CryptfolioSettings, prices: PriceResolver):
        super().__init__(config, prices)
        self._web3_clients = {}

    @property
    def adapter_name(self) -> str:
        return "evm"

    @property
    def family(self) -> ChainFamily:
        return ChainFamily.EVM

    def _web3(self, rpc_url: str) -> Web3:
        w3 = self._web3_clients.get(rpc_url)
        if w3 is None:
            w3 = Web3(
                Web3.HTTPProvider(
                    rpc_url, request_kwargs={"timeout": self.config.rpc_timeout}
                )
            )
            self._web3_clients[rpc_url] = w3
        return w3

    async def fetch_native_balance(self, chain: Chain, address: str) -> int:
        """Native balance in wei.

        Raises:
            SourceUnavailableError: If the chain has no RPC or the call fails
        """
        rpc_url = self.rpc_url(chain)
        if not rpc_url:
            raise SourceUnavailableError(f"{chain.id.value} rpc", "no RPC endpoint configured")
        w3 = self._web3(rpc_url)
        try:
            checksum_address = Web3.to_checksum_address(address)
            balance = await asyncio.to_thread(w3.eth.get_balance, checksum_address)
        except (requests.exceptions.RequestException, Web3Exception, ValueError, OSError) as e:
            raise SourceUnavailableError(f"{chain.id.value} rpc", e) from e
        return int(balance)

    async def fetch_token_list(self, chain: Chain, address: str) -> list[Any]:
        """Raw token entries from the chain's explorer.

        Raises:
            SourceUnavailableError: If the explorer call fails or is malformed
        """
        if not chain.token_api_url:
            return []
        data = await get_json(
            chain.token_api_url,
            source=f"{chain.id.value} explorer",
            timeout=self.config.explorer_timeout,
            params={"module": "account", "action": "tokenlist", "address": address},
        )
        result = data.get("result") if isinstance(data, dict) else None
        if result is None:
            return []
        if not isinstance(result, list):
            raise SourceUnavailableError(
                f"{chain.id.value} explorer", f"unexpected result: {result!r}"
            )
        return result

    async def fetch(self, address: str, chain_id: ChainId) -> FetchResult:
        chain = resolve(chain_id)
        logger.debug("Fetching %s balance for %s", chain.id.value, address)

        try:
            wei = await self.fetch_native_balance(chain, address)
        except SourceUnavailableError as e:
            logger.error("Error fetching %s balance for %s: %s", chain.id.value, address, e)
            return FetchFailure(address=address, chain=chain.id, reason=str(e))

        assets: list[Asset] = []
        native = await self.native_asset(chain, wei, NATIVE_DECIMALS)
        if native is not None:
            assets.append(native)

        warnings: list[str] = []
        if not chain.token_api_url:
            logger.debug("No token API for %s, skipping ERC-20 tokens", chain.id.value)
            return FetchSuccess(address=address, chain=chain.id, assets=assets)

        try:
            tokens = await self.fetch_token_list(chain, address)
        except SourceUnavailableError as e:
            logger.warning(
                "Token API not available for %s, skipping ERC-20 tokens: %s",
                chain.id.value,
                e,
            )
            warnings.append(str(e))
            tokens = []

        logger.debug("Found %d ERC-20 tokens on %s", len(tokens), chain.id.value)
        assets.extend(await self.token_assets(chain, parse_token_list(chain.id, tokens)))

        return FetchSuccess(
            address=address, chain=chain.id, assets=assets, warnings=warnings
        )
