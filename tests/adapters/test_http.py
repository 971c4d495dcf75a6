from unittest.mock import Mock

import pytest
import requests

from cryptfolio.adapters import http
from cryptfolio.errors import SourceUnavailableError


def fake_response(status=200, payload=None, text="", json_error=None):
    response = Mock()
    response.status_code = status
    response.text = text
    if status >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"HTTP {status}")
    else:
        response.raise_for_status.return_value = None
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


@pytest.mark.asyncio
async def test_get_json_passes_params_and_timeout(monkeypatch):
    get = Mock(return_value=fake_response(payload={"ok": True}))
    monkeypatch.setattr(http.requests, "get", get)

    data = await http.get_json(
        "https://api.example/x", source="example", timeout=3, params={"a": "1"}
    )

    assert data == {"ok": True}
    get.assert_called_once_with(
        "https://api.example/x", params={"a": "1"}, headers=None, timeout=3
    )


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "behaviour",
    [
        {"side_effect": requests.exceptions.Timeout("read timed out")},
        {"return_value": fake_response(status=429)},
        {"return_value": fake_response(json_error=ValueError("Expecting value"))},
    ],
)
async def test_get_json_wraps_failures(monkeypatch, behaviour):
    monkeypatch.setattr(http.requests, "get", Mock(**behaviour))

    with pytest.raises(SourceUnavailableError) as exc_info:
        await http.get_json("https://api.example/x", source="example", timeout=1)

    assert exc_info.value.source == "example"


@pytest.mark.asyncio
async def test_post_json_sends_payload(monkeypatch):
    post = Mock(return_value=fake_response(payload={"result": 1}))
    monkeypatch.setattr(http.requests, "post", post)

    data = await http.post_json(
        "https://rpc.example", {"method": "getBalance"}, source="rpc", timeout=30
    )

    assert data == {"result": 1}
    post.assert_called_once_with(
        "https://rpc.example", json={"method": "getBalance"}, timeout=30
    )


@pytest.mark.asyncio
async def test_get_text_returns_body_and_wraps_http_errors(monkeypatch):
    monkeypatch.setattr(http.requests, "get", Mock(return_value=fake_response(text="123")))
    assert await http.get_text("https://btc.example", source="btc", timeout=1) == "123"

    monkeypatch.setattr(http.requests, "get", Mock(return_value=fake_response(status=500)))
    with pytest.raises(SourceUnavailableError, match="HTTP 500"):
        await http.get_text("https://btc.example", source="btc", timeout=1)
