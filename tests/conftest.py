from __future__ import annotations

import pytest

from cryptfolio.chains import ChainId
from cryptfolio.domain import Asset, TokenQuote
from cryptfolio.settings import CryptfolioSettings


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep local config files and CRYPTFOLIO_* variables out of tests."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("CRYPTFOLIO_CONFIG", raising=False)
    monkeypatch.delenv("CRYPTFOLIO_COINGECKO_API_KEY", raising=False)


@pytest.fixture
def config(tmp_path):
    return CryptfolioSettings(data_dir=tmp_path / "data", dex_request_delay=0)


class StubPrices:
    """In-memory stand-in for PriceResolver."""

    def __init__(
        self,
        native: dict[str, float] | None = None,
        quotes: dict[str, TokenQuote] | None = None,
    ):
        self.native = native or {}
        self.quotes = quotes or {}
        self.quote_requests: list[list[str]] = []

    async def native_price(self, chain_id) -> float:
        return self.native.get(ChainId(chain_id).value, 0.0)

    async def token_quotes(self, token_addresses, chain_id):
        self.quote_requests.append(list(token_addresses))
        return {a: self.quotes[a] for a in token_addresses if a in self.quotes}


@pytest.fixture
def stub_prices():
    return StubPrices


def make_asset(
    symbol: str,
    value: float,
    chain: ChainId = ChainId.ETHEREUM,
    balance: float = 1.0,
    contract_address: str | None = None,
) -> Asset:
    return Asset(
        symbol=symbol,
        name=f"{symbol} Token",
        balance=balance,
        decimals=18,
        price=value / balance if balance else 0.0,
        value=value,
        chain=chain,
        contract_address=contract_address,
    )


@pytest.fixture
def asset_factory():
    return make_asset
