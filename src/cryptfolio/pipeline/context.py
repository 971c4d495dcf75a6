from __future__ import annotations

from dataclasses import dataclass

from ..chains import ChainId
from ..domain import PortfolioSnapshot, PortfolioView
from ..state import AppState


@dataclass
class PipelineContext:
    state: AppState
    wallets: list[tuple[str, ChainId | str]]
    view: PortfolioView | None = None
    snapshot: PortfolioSnapshot | None = None
    snapshot_created: bool = False

    @property
    def view_required(self) -> PortfolioView:
        if self.view is None:
            raise RuntimeError(
                "Portfolio has not been aggregated. Ensure collect_portfolio() is called before accessing this property."
            )
        return self.view
