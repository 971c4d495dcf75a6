from __future__ import annotations

from ...chains import ChainFamily
from .base import BaseBalanceAdapter
from .bitcoin import BitcoinBalanceAdapter
from .evm import EVMBalanceAdapter
from .fetcher import BalanceFetcher
from .retry import with_retries
from .solana import SolanaBalanceAdapter

ADAPTER_REGISTRY: dict[ChainFamily, type[BaseBalanceAdapter]] = {
    ChainFamily.EVM: EVMBalanceAdapter,
    ChainFamily.BITCOIN: BitcoinBalanceAdapter,
    ChainFamily.SOLANA: SolanaBalanceAdapter,
}

BALANCE_ADAPTERS: list[type[BaseBalanceAdapter]] = list(ADAPTER_REGISTRY.values())


def get_adapter_class(family: ChainFamily | str) -> type[BaseBalanceAdapter]:
    """Get adapter class by chain family.

    Args:
        family: Chain family (case-insensitive when given as a string)

    Returns:
        Adapter class

    Raises:
        ValueError: If family is not recognized
    """
    try:
        resolved = ChainFamily(str(getattr(family, "value", family)).lower())
    except ValueError:
        raise ValueError(
            f"Unknown chain family '{family}'. "
            f"Available: {', '.join(f.value for f in ADAPTER_REGISTRY)}"
        ) from None
    return ADAPTER_REGISTRY[resolved]


__all__ = [
    "ADAPTER_REGISTRY",
    "BALANCE_ADAPTERS",
    "BalanceFetcher",
    "BaseBalanceAdapter",
    "BitcoinBalanceAdapter",
    "EVMBalanceAdapter",
    "SolanaBalanceAdapter",
    "get_adapter_class",
    "with_retries",
]
