"""Domain models for the portfolio aggregator."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Awaitable, Callable, Union

from ..chains import ChainId


@dataclass(frozen=True)
class RawHolding:
    """Chain-specific balance before pricing, in the smallest unit."""

    chain: ChainId
    raw_amount: int
    decimals: int
    contract_address: str | None = None
    symbol: str | None = None
    name: str | None = None

    @property
    def balance(self) -> float:
        if self.raw_amount == 0:
            return 0.0
        return float(Decimal(self.raw_amount) / (Decimal(10) ** self.decimals))

    @property
    def is_native(self) -> bool:
        return self.contract_address is None


@dataclass(frozen=True)
class Asset:
    """Canonical priced holding. ``value`` is always ``balance * price``."""

    symbol: str
    name: str
    balance: float
    decimals: int
    price: float
    value: float
    chain: ChainId
    contract_address: str | None = None

    @property
    def is_native(self) -> bool:
        return self.contract_address is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "balance": self.balance,
            "decimals": self.decimals,
            "price": self.price,
            "value": self.value,
            "chain": self.chain.value,
            "contractAddress": self.contract_address,
        }


@dataclass(frozen=True)
class TokenQuote:
    """Price and metadata for a token, taken from its most liquid DEX pair."""

    price: float
    symbol: str
    name: str


@dataclass(frozen=True)
class FetchSuccess:
    address: str
    chain: ChainId
    assets: list[Asset]
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class FetchFailure:
    """A wallet fetch that failed. ``assets`` holds anything built before the failure."""

    address: str
    chain: ChainId
    reason: str
    assets: list[Asset] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return False


FetchResult = Union[FetchSuccess, FetchFailure]

FetchCallable = Callable[[str, ChainId], Awaitable[FetchResult]]


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Wallet:
    address: str
    chain: ChainId
    label: str | None = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    added_at: int = field(default_factory=_now_ms)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "address": self.address,
            "chain": self.chain.value,
            "label": self.label,
            "addedAt": self.added_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Wallet":
        return cls(
            id=str(data["id"]),
            address=str(data["address"]),
            chain=ChainId(data["chain"]),
            label=data.get("label"),
            added_at=int(data.get("addedAt", 0)),
        )


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Point-in-time portfolio total with its per-asset breakdown."""

    timestamp: int  # epoch milliseconds
    total_value: float
    asset_values: tuple[tuple[str, float], ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "totalValue": self.total_value,
            "assetValues": [
                {"symbol": symbol, "value": value}
                for symbol, value in self.asset_values
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PortfolioSnapshot":
        return cls(
            timestamp=int(data["timestamp"]),
            total_value=float(data["totalValue"]),
            asset_values=tuple(
                (str(item["symbol"]), float(item["value"]))
                for item in data.get("assetValues", [])
            ),
        )


@dataclass(frozen=True)
class PortfolioView:
    """Ranked portfolio plus the wallet fetches that failed along the way."""

    assets: list[Asset]
    total_value: float
    failures: list[FetchFailure] = field(default_factory=list)
    wallet_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "assets": [asset.to_dict() for asset in self.assets],
            "totalValue": self.total_value,
            "walletCount": self.wallet_count,
            "failures": [
                {
                    "address": failure.address,
                    "chain": failure.chain.value,
                    "reason": failure.reason,
                }
                for failure in self.failures
            ],
        }
