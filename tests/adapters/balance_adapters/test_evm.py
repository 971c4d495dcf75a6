from types import SimpleNamespace

import pytest
import requests

from cryptfolio.adapters.balance_adapters import evm
from cryptfolio.adapters.balance_adapters.evm import EVMBalanceAdapter, parse_token_list
from cryptfolio.chains import ChainId, resolve
from cryptfolio.domain import FetchFailure, FetchSuccess, TokenQuote
from cryptfolio.errors import SourceUnavailableError
from cryptfolio.settings import CryptfolioSettings

WALLET = "0x742d35Cc6634C0532925a3b844Bc454e4438f44e"
ONE = 10**18


def token_entry(contract, balance, symbol=None, name=None, decimals="18"):
    return {
        "contractAddress": contract,
        "balance": str(balance),
        "decimals": decimals,
        "symbol": symbol,
        "name": name,
        "type": "ERC-20",
    }


@pytest.fixture
def prices(stub_prices):
    return stub_prices(
        native={"ethereum": 2000.0, "bsc": 600.0},
        quotes={
            "0xlink": TokenQuote(price=10.0, symbol="LINK", name="ChainLink Token"),
            "0xdust": TokenQuote(price=1.0, symbol="DUST", name="Dust"),
        },
    )


@pytest.fixture
def adapter(config, prices):
    return EVMBalanceAdapter(config, prices)


def stub_sources(monkeypatch, adapter, wei=None, tokens=None, native_error=None, token_error=None):
    token_calls = []

    async def _native(chain, address):
        if native_error is not None:
            raise native_error
        return wei

    async def _tokens(chain, address):
        token_calls.append(chain.id)
        if token_error is not None:
            raise token_error
        return tokens or []

    monkeypatch.setattr(adapter, "fetch_native_balance", _native)
    monkeypatch.setattr(adapter, "fetch_token_list", _tokens)
    return token_calls


def test_parse_token_list_fallbacks_and_malformed_entries():
    holdings = parse_token_list(
        ChainId.ETHEREUM,
        [
            token_entry("0xaaa", 10, symbol="AAA", decimals="6"),
            token_entry("0xbbb", 5, name="LongTokenName"),
            token_entry("0xccc", 1, decimals=None),
            {"balance": "1"},
            token_entry("0xddd", "not-a-number"),
        ],
    )

    assert [(h.contract_address, h.symbol, h.name, h.decimals) for h in holdings] == [
        ("0xaaa", "AAA", "Token AAA", 6),
        ("0xbbb", "LongTo", "LongTokenName", 18),
        ("0xccc", "UNKNOWN", "Token UNKNOWN", 18),
    ]


@pytest.mark.asyncio
async def test_fetch_prices_native_and_filters_dust_tokens(monkeypatch, adapter):
    stub_sources(
        monkeypatch,
        adapter,
        wei=3 * ONE // 2,
        tokens=[
            token_entry("0xlink", 5 * ONE, symbol="LINK", name="ChainLink Token"),
            token_entry("0xdust", 5 * ONE, symbol="DUST", name="Dust"),
        ],
    )

    result = await adapter.fetch(WALLET, ChainId.ETHEREUM)

    assert isinstance(result, FetchSuccess)
    assert [(a.symbol, a.balance, a.value) for a in result.assets] == [
        ("ETH", 1.5, 3000.0),
        ("LINK", 5.0, 50.0),
    ]
    assert result.assets[1].contract_address == "0xlink"


@pytest.mark.asyncio
async def test_unpriced_tokens_are_dropped(monkeypatch, adapter):
    stub_sources(
        monkeypatch,
        adapter,
        wei=0,
        tokens=[token_entry("0xunknown", 1000 * ONE, symbol="NOPE")],
    )

    result = await adapter.fetch(WALLET, ChainId.ETHEREUM)

    assert result.assets == []


@pytest.mark.asyncio
async def test_token_name_ignores_dex_quote(monkeypatch, adapter):
    stub_sources(
        monkeypatch,
        adapter,
        wei=0,
        tokens=[{"contractAddress": "0xlink", "balance": str(2 * ONE), "decimals": "18"}],
    )

    result = await adapter.fetch(WALLET, ChainId.ETHEREUM)

    assert [(a.symbol, a.name, a.value) for a in result.assets] == [
        ("UNKNOWN", "Token UNKNOWN", 20.0)
    ]


@pytest.mark.asyncio
async def test_native_failure_returns_fetch_failure(monkeypatch, adapter):
    token_calls = stub_sources(
        monkeypatch,
        adapter,
        native_error=SourceUnavailableError("ethereum rpc", "timeout"),
    )

    result = await adapter.fetch(WALLET, ChainId.ETHEREUM)

    assert isinstance(result, FetchFailure)
    assert "timeout" in result.reason
    assert result.assets == []
    assert token_calls == []


@pytest.mark.asyncio
async def test_token_api_failure_keeps_native(monkeypatch, adapter):
    stub_sources(
        monkeypatch,
        adapter,
        wei=ONE,
        token_error=SourceUnavailableError("ethereum explorer", "HTTP 503"),
    )

    result = await adapter.fetch(WALLET, ChainId.ETHEREUM)

    assert isinstance(result, FetchSuccess)
    assert [a.symbol for a in result.assets] == ["ETH"]
    assert "HTTP 503" in result.warnings[0]


@pytest.mark.asyncio
async def test_chain_without_token_api_returns_native_only(monkeypatch, adapter):
    token_calls = stub_sources(monkeypatch, adapter, wei=2 * ONE)

    result = await adapter.fetch(WALLET, ChainId.BSC)

    assert [(a.symbol, a.value) for a in result.assets] == [("BNB", 1200.0)]
    assert token_calls == []


@pytest.mark.asyncio
async def test_fetch_token_list_queries_blockscout(monkeypatch, adapter):
    calls = []

    async def _get_json(url, **kwargs):
        calls.append((url, kwargs["params"]))
        return {"status": "1", "result": [token_entry("0xlink", ONE)]}

    monkeypatch.setattr(evm, "get_json", _get_json)

    tokens = await adapter.fetch_token_list(resolve("base"), WALLET)

    assert len(tokens) == 1
    assert calls == [
        (
            "https://base.blockscout.com/api",
            {"module": "account", "action": "tokenlist", "address": WALLET},
        )
    ]


@pytest.mark.asyncio
async def test_fetch_token_list_handles_missing_and_malformed_result(monkeypatch, adapter):
    payloads = [{"result": None}, {"status": "0", "result": "Max rate limit reached"}]

    async def _get_json(url, **kwargs):
        return payloads.pop(0)

    monkeypatch.setattr(evm, "get_json", _get_json)
    chain = resolve("ethereum")

    assert await adapter.fetch_token_list(chain, WALLET) == []
    with pytest.raises(SourceUnavailableError):
        await adapter.fetch_token_list(chain, WALLET)


@pytest.mark.asyncio
async def test_fetch_native_balance_wraps_rpc_errors(monkeypatch, adapter):
    def _get_balance(address):
        raise requests.exceptions.ConnectionError("connection refused")

    monkeypatch.setattr(
        adapter, "_web3", lambda rpc_url: SimpleNamespace(eth=SimpleNamespace(get_balance=_get_balance))
    )

    with pytest.raises(SourceUnavailableError, match="connection refused"):
        await adapter.fetch_native_balance(resolve("ethereum"), WALLET)


@pytest.mark.asyncio
async def test_fetch_native_balance_uses_rpc_override(tmp_path, monkeypatch, prices):
    config = CryptfolioSettings(
        data_dir=tmp_path, rpc_overrides={"ethereum": "https://rpc.example"}
    )
    adapter = EVMBalanceAdapter(config, prices)
    seen = []

    def _web3(rpc_url):
        seen.append(rpc_url)
        return SimpleNamespace(eth=SimpleNamespace(get_balance=lambda address: ONE))

    monkeypatch.setattr(adapter, "_web3", _web3)

    assert await adapter.fetch_native_balance(resolve("ethereum"), WALLET) == ONE
    assert seen == ["https://rpc.example"]
