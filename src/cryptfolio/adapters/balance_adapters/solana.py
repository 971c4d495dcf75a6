from __future__ import annotations

import itertools
from decimal import Decimal, InvalidOperation
from typing import Any

from ...chains import Chain, ChainFamily, ChainId, resolve
from ...domain import Asset, FetchFailure, FetchResult, FetchSuccess, RawHolding
from ...errors import SourceUnavailableError
from ...logger import get_logger
from ..http import post_json
from .base import BaseBalanceAdapter

logger = get_logger(__name__)

LAMPORT_DECIMALS = 9
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"


def parse_token_accounts(chain_id: ChainId, accounts: list[Any]) -> list[RawHolding]:
    """Convert ``jsonParsed`` token accounts into raw holdings keyed by mint.

    Malformed accounts are logged and skipped.
    """
    holdings: list[RawHolding] = []
    for account in accounts:
        try:
            info = account["account"]["data"]["parsed"]["info"]
            mint = info["mint"]
            token_amount = info["tokenAmount"]
            decimals = int(token_amount["decimals"])
            ui_amount = Decimal(str(token_amount.get("uiAmountString") or "0"))
            raw_amount = int(ui_amount.scaleb(decimals))
        except (KeyError, TypeError, ValueError, InvalidOperation) as e:
            logger.warning("Skipping malformed SPL token account: %s", e)
            continue
        holdings.append(
            RawHolding(
                chain=chain_id,
                raw_amount=raw_amount,
                decimals=decimals,
                contract_address=mint,
            )
        )
    return holdings


class SolanaBalanceAdapter(BaseBalanceAdapter):
    """SOL balance and SPL token accounts over Solana JSON-RPC."""

    _request_ids = itertools.count(1)

    @property
    def adapter_name(self) -> str:
        return "solana"

    @property
    def family(self) -> ChainFamily:
        return ChainFamily.SOLANA

    async def rpc_call(self, chain: Chain, method: str, params: list[Any]) -> Any:
        """Invoke a JSON-RPC method and return its ``result`` member.

        Raises:
            SourceUnavailableError: On transport failure or a JSON-RPC error
        """
        rpc_url = self.rpc_url(chain)
        if not rpc_url:
            raise SourceUnavailableError(f"{chain.id.value} rpc", "no RPC endpoint configured")
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._request_ids),
            "method": method,
            "params": params,
        }
        data = await post_json(
            rpc_url,
            payload,
            source=f"{chain.id.value} rpc {method}",
            timeout=self.config.rpc_timeout,
        )
        if not isinstance(data, dict):
            raise SourceUnavailableError(f"{chain.id.value} rpc {method}", f"unexpected response: {data!r}")
        if data.get("error"):
            raise SourceUnavailableError(f"{chain.id.value} rpc {method}", data["error"])
        return data.get("result")

    async def fetch_lamports(self, chain: Chain, address: str) -> int:
        result = await self.rpc_call(chain, "getBalance", [address])
        value = result.get("value", 0) if isinstance(result, dict) else 0
        try:
            return int(value or 0)
        except (TypeError, ValueError) as e:
            raise SourceUnavailableError(f"{chain.id.value} rpc getBalance", e) from e

    async def fetch_token_accounts(self, chain: Chain, address: str) -> list[Any]:
        result = await self.rpc_call(
            chain,
            "getTokenAccountsByOwner",
            [address, {"programId": TOKEN_PROGRAM_ID}, {"encoding": "jsonParsed"}],
        )
        accounts = result.get("value") if isinstance(result, dict) else None
        return accounts if isinstance(accounts, list) else []

    async def fetch(self, address: str, chain_id: ChainId) -> FetchResult:
        chain = resolve(chain_id)
        logger.debug("Fetching Solana balance for %s", address)

        assets: list[Asset] = []
        try:
            lamports = await self.fetch_lamports(chain, address)
        except SourceUnavailableError as e:
            logger.error("Error fetching Solana balance for %s: %s", address, e)
            return FetchFailure(address=address, chain=chain.id, reason=str(e))

        native = await self.native_asset(chain, lamports, LAMPORT_DECIMALS)
        if native is not None:
            assets.append(native)

        try:
            accounts = await self.fetch_token_accounts(chain, address)
        except SourceUnavailableError as e:
            logger.error("Error fetching SPL tokens for %s: %s", address, e)
            return FetchFailure(
                address=address, chain=chain.id, reason=str(e), assets=assets
            )

        logger.debug("Found %d SPL token accounts", len(accounts))
        assets.extend(await self.token_assets(chain, parse_token_accounts(chain.id, accounts)))
        logger.debug("Found %d total Solana assets for %s", len(assets), address)

        return FetchSuccess(address=address, chain=chain.id, assets=assets)
