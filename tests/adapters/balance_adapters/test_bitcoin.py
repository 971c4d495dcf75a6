import pytest

from cryptfolio.adapters.balance_adapters import bitcoin
from cryptfolio.adapters.balance_adapters.bitcoin import BitcoinBalanceAdapter
from cryptfolio.chains import ChainId
from cryptfolio.domain import FetchFailure, FetchSuccess
from cryptfolio.errors import SourceUnavailableError

WALLET = "bc1qar0srrr7xfkvy5l643lydnw9re59gtzzwf5mdq"


@pytest.fixture
def adapter(config, stub_prices):
    return BitcoinBalanceAdapter(config, stub_prices(native={"bitcoin": 60_000.0}))


def stub_body(monkeypatch, body):
    urls = []

    async def _get_text(url, **kwargs):
        urls.append(url)
        if isinstance(body, Exception):
            raise body
        return body

    monkeypatch.setattr(bitcoin, "get_text", _get_text)
    return urls


@pytest.mark.asyncio
async def test_fetch_converts_satoshis(monkeypatch, adapter):
    urls = stub_body(monkeypatch, "25000000\n")

    result = await adapter.fetch(WALLET, ChainId.BITCOIN)

    assert isinstance(result, FetchSuccess)
    assert urls == [f"https://blockchain.info/q/addressbalance/{WALLET}"]
    [asset] = result.assets
    assert (asset.symbol, asset.name, asset.balance, asset.value) == (
        "BTC",
        "Bitcoin",
        0.25,
        15_000.0,
    )
    assert asset.decimals == 8


@pytest.mark.asyncio
async def test_zero_balance_yields_no_assets(monkeypatch, adapter):
    stub_body(monkeypatch, "0")

    result = await adapter.fetch(WALLET, ChainId.BITCOIN)

    assert isinstance(result, FetchSuccess)
    assert result.assets == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        "Checksum does not validate",
        SourceUnavailableError("bitcoin balance api", "HTTP 500"),
    ],
)
async def test_failures_become_fetch_failure(monkeypatch, adapter, body):
    stub_body(monkeypatch, body)

    result = await adapter.fetch(WALLET, ChainId.BITCOIN)

    assert isinstance(result, FetchFailure)
    assert result.chain is ChainId.BITCOIN
    assert result.assets == []
