"""JSON-file persistence for tracked wallets and portfolio snapshots."""

from __future__ import annotations

import json
import time
from datetime import timedelta
from pathlib import Path
from typing import Any, Protocol

from .chains import ChainId, require_valid_address
from .domain import PortfolioSnapshot, Wallet
from .errors import WalletExistsError
from .logger import get_logger
from .processors.snapshot_policy import RETENTION_WINDOW, latest_snapshot, prune_snapshots

logger = get_logger(__name__)


def _read_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    tmp_path.replace(path)


class SnapshotStore(Protocol):
    def append(self, snapshot: PortfolioSnapshot) -> None: ...

    def all(self) -> list[PortfolioSnapshot]: ...

    def latest_within(
        self, window: timedelta, now: int | None = None
    ) -> PortfolioSnapshot | None: ...


class WalletBook:
    """Tracked wallets, unique by (lowercased address, chain)."""

    def __init__(self, path: Path):
        self.path = path

    def load(self) -> list[Wallet]:
        return [Wallet.from_dict(item) for item in _read_json(self.path, [])]

    def save(self, wallets: list[Wallet]) -> None:
        _write_json(self.path, [wallet.to_dict() for wallet in wallets])

    def add(
        self, address: str, chain_id: ChainId | str, label: str | None = None
    ) -> Wallet:
        """Validate and track a wallet.

        Raises:
            UnknownChainError: If the chain is not registered
            InvalidAddressFormatError: If the address is malformed
            WalletExistsError: If the wallet is already tracked
        """
        chain = require_valid_address(address, chain_id)
        wallets = self.load()
        if any(
            w.address.lower() == address.lower() and w.chain == chain.id
            for w in wallets
        ):
            raise WalletExistsError(f"Wallet already exists: {chain.id.value}:{address}")

        wallet = Wallet(address=address, chain=chain.id, label=label)
        wallets.append(wallet)
        self.save(wallets)
        logger.info("Added %s wallet %s", chain.id.value, address)
        return wallet

    def remove(self, wallet_id: str) -> list[Wallet]:
        wallets = [w for w in self.load() if w.id != wallet_id]
        self.save(wallets)
        return wallets

    def update_label(self, wallet_id: str, label: str) -> list[Wallet]:
        wallets = [
            Wallet(
                id=w.id,
                address=w.address,
                chain=w.chain,
                label=label if w.id == wallet_id else w.label,
                added_at=w.added_at,
            )
            for w in self.load()
        ]
        self.save(wallets)
        return wallets


class JsonSnapshotStore:
    """Snapshot history in a JSON file, pruned to the retention window on write."""

    def __init__(self, path: Path, retention: timedelta = RETENTION_WINDOW):
        self.path = path
        self.retention = retention

    def all(self) -> list[PortfolioSnapshot]:
        return [PortfolioSnapshot.from_dict(item) for item in _read_json(self.path, [])]

    def replace_all(self, snapshots: list[PortfolioSnapshot]) -> None:
        _write_json(self.path, [snapshot.to_dict() for snapshot in snapshots])

    def append(self, snapshot: PortfolioSnapshot) -> None:
        snapshots = self.all()
        snapshots.append(snapshot)
        self.replace_all(prune_snapshots(snapshots, now=snapshot.timestamp, retention=self.retention))

    def latest_within(
        self, window: timedelta, now: int | None = None
    ) -> PortfolioSnapshot | None:
        # same strict cutoff as pruning
        return latest_snapshot(prune_snapshots(self.all(), now=now, retention=window))

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()


def export_portfolio(wallets: WalletBook, snapshots: JsonSnapshotStore) -> str:
    return json.dumps(
        {
            "wallets": [wallet.to_dict() for wallet in wallets.load()],
            "snapshots": [snapshot.to_dict() for snapshot in snapshots.all()],
            "exportedAt": int(time.time() * 1000),
        },
        indent=2,
    )


def import_portfolio(
    data: str, wallets: WalletBook, snapshots: JsonSnapshotStore
) -> None:
    """Replace stored wallets and snapshots with an exported document.

    Raises:
        ValueError: If the document cannot be parsed
    """
    try:
        portfolio = json.loads(data)
        imported_wallets = [Wallet.from_dict(item) for item in portfolio.get("wallets") or []]
        imported_snapshots = [
            PortfolioSnapshot.from_dict(item) for item in portfolio.get("snapshots") or []
        ]
    except (json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError) as e:
        raise ValueError("Invalid portfolio data") from e

    if imported_wallets:
        wallets.save(imported_wallets)
    if imported_snapshots:
        snapshots.replace_all(imported_snapshots)
