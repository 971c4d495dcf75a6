from __future__ import annotations

from abc import ABC, abstractmethod

from ...settings import CryptfolioSettings


class BasePriceAdapter(ABC):
    """Abstract base class for price adapters.

    Price adapters never raise for source failures: they report a zero
    price or a missing quote instead.
    """

    def __init__(self, config: CryptfolioSettings):
        """Initialize the adapter with configuration."""
        self.config = config

    @property
    @abstractmethod
    def adapter_name(self) -> str:
        """Return the name of this adapter."""
        ...
