from __future__ import annotations

from .formatter import format_portfolio_table

__all__ = [
    "format_portfolio_table",
]
