"""Static chain registry and structural address validation."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from .errors import InvalidAddressFormatError, UnknownChainError


class ChainId(str, Enum):
    ETHEREUM = "ethereum"
    BITCOIN = "bitcoin"
    SOLANA = "solana"
    POLYGON = "polygon"
    BSC = "bsc"
    ARBITRUM = "arbitrum"
    OPTIMISM = "optimism"
    AVALANCHE = "avalanche"
    BASE = "base"


class ChainFamily(str, Enum):
    EVM = "evm"
    BITCOIN = "bitcoin"
    SOLANA = "solana"


@dataclass(frozen=True)
class Chain:
    """Network metadata for one supported chain."""

    id: ChainId
    name: str
    symbol: str  # native asset ticker
    family: ChainFamily
    explorer_url: str
    logo: str
    rpc_url: str | None = None
    token_api_url: str | None = None  # Blockscout-compatible tokenlist API
    dex_chain_id: str | None = None  # DexScreener chain id


def _evm(
    chain_id: ChainId,
    name: str,
    symbol: str,
    rpc_url: str,
    explorer_url: str,
    logo: str,
    token_api_url: str | None = None,
) -> Chain:
    return Chain(
        id=chain_id,
        name=name,
        symbol=symbol,
        family=ChainFamily.EVM,
        explorer_url=explorer_url,
        logo=logo,
        rpc_url=rpc_url,
        token_api_url=token_api_url,
        dex_chain_id=chain_id.value,
    )


CHAINS: Mapping[ChainId, Chain] = MappingProxyType(
    {
        ChainId.ETHEREUM: _evm(
            ChainId.ETHEREUM,
            "Ethereum",
            "ETH",
            "https://eth.llamarpc.com",
            "https://etherscan.io",
            "⟠",
            token_api_url="https://eth.blockscout.com/api",
        ),
        ChainId.BITCOIN: Chain(
            id=ChainId.BITCOIN,
            name="Bitcoin",
            symbol="BTC",
            family=ChainFamily.BITCOIN,
            explorer_url="https://blockchain.info",
            logo="₿",
        ),
        ChainId.SOLANA: Chain(
            id=ChainId.SOLANA,
            name="Solana",
            symbol="SOL",
            family=ChainFamily.SOLANA,
            explorer_url="https://solscan.io",
            logo="◎",
            rpc_url="https://api.mainnet-beta.solana.com",
            dex_chain_id="solana",
        ),
        ChainId.POLYGON: _evm(
            ChainId.POLYGON,
            "Polygon",
            "MATIC",
            "https://polygon-rpc.com",
            "https://polygonscan.com",
            "⬡",
            token_api_url="https://polygon.blockscout.com/api",
        ),
        ChainId.BSC: _evm(
            ChainId.BSC,
            "BNB Smart Chain",
            "BNB",
            "https://bsc-dataseed.binance.org",
            "https://bscscan.com",
            "●",
        ),
        ChainId.ARBITRUM: _evm(
            ChainId.ARBITRUM,
            "Arbitrum",
            "ETH",
            "https://arb1.arbitrum.io/rpc",
            "https://arbiscan.io",
            "🔷",
            token_api_url="https://arbitrum.blockscout.com/api",
        ),
        ChainId.OPTIMISM: _evm(
            ChainId.OPTIMISM,
            "Optimism",
            "ETH",
            "https://mainnet.optimism.io",
            "https://optimistic.etherscan.io",
            "🔴",
            token_api_url="https://optimism.blockscout.com/api",
        ),
        ChainId.AVALANCHE: _evm(
            ChainId.AVALANCHE,
            "Avalanche",
            "AVAX",
            "https://api.avax.network/ext/bc/C/rpc",
            "https://snowtrace.io",
            "🔺",
        ),
        ChainId.BASE: _evm(
            ChainId.BASE,
            "Base",
            "ETH",
            "https://mainnet.base.org",
            "https://basescan.org",
            "🔵",
            token_api_url="https://base.blockscout.com/api",
        ),
    }
)

ADDRESS_PATTERNS: Mapping[ChainFamily, tuple[re.Pattern[str], ...]] = MappingProxyType(
    {
        ChainFamily.EVM: (re.compile(r"^0x[a-fA-F0-9]{40}$"),),
        ChainFamily.BITCOIN: (
            # legacy / P2SH
            re.compile(r"^[13][a-km-zA-HJ-NP-Z1-9]{25,34}$"),
            # bech32
            re.compile(r"^bc1[a-z0-9]{39,59}$"),
        ),
        ChainFamily.SOLANA: (re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$"),),
    }
)


def to_chain_id(chain_id: ChainId | str) -> ChainId:
    """Coerce a chain id or its (case-insensitive) string value to ``ChainId``.

    Raises:
        UnknownChainError: If the id is not registered
    """
    if isinstance(chain_id, ChainId):
        return chain_id
    try:
        return ChainId(str(chain_id).strip().lower())
    except ValueError:
        raise UnknownChainError(chain_id) from None


def resolve(chain_id: ChainId | str) -> Chain:
    """Look up a chain by id.

    Raises:
        UnknownChainError: If the id is not registered
    """
    resolved = to_chain_id(chain_id)
    chain = CHAINS.get(resolved)
    if chain is None:
        raise UnknownChainError(chain_id)
    return chain


def all_chains() -> list[Chain]:
    return list(CHAINS.values())


def validate_address(address: str, chain_id: ChainId | str) -> bool:
    """Structural address check for the chain's family. No checksum validation."""
    chain = resolve(chain_id)
    return any(
        pattern.fullmatch(address) for pattern in ADDRESS_PATTERNS[chain.family]
    )


def require_valid_address(address: str, chain_id: ChainId | str) -> Chain:
    """Resolve the chain and reject malformed addresses before any network call."""
    chain = resolve(chain_id)
    if not validate_address(address, chain.id):
        raise InvalidAddressFormatError(address, chain.id.value)
    return chain
