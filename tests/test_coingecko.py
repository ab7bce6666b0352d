import asyncio
import types

import aiohttp
import pytest

from scanner.coingecko import Coin, CoinGeckoClient, extract_price, filter_by_network, parse_coins
from scanner.errors import CoinListUnavailable, PriceUnavailable
from scanner.networks import Network


class FakeResponse:
    def __init__(self, status, payload, json_error=None):
        self.status = status
        self._payload = payload
        self._json_error = json_error

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def json(self):
        if self._json_error is not None:
            raise self._json_error
        return self._payload

    async def text(self):
        return str(self._payload)


class FakeSession:
    closed = False

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None):
        self.calls.append((url, params))
        resp = self.responses.pop(0)
        if isinstance(resp, Exception):
            raise resp
        return resp

    async def close(self):
        self.closed = True


@pytest.fixture
def no_sleep(monkeypatch):
    async def _sleep(*_a, **_k):
        return None

    monkeypatch.setattr(asyncio, "sleep", _sleep)


def test_filter_by_network_keeps_order():
    coins = [
        Coin(id="a", symbol="a", platforms={"solana": "x"}),
        Coin(id="b", symbol="b", platforms={"the-open-network": "y"}),
        Coin(id="c", symbol="c", platforms={}),
        Coin(id="d", symbol="d", platforms={"the-open-network": None, "solana": "z"}),
    ]
    assert [c.id for c in filter_by_network(coins, Network.TON)] == ["b", "d"]
    assert [c.id for c in filter_by_network(coins, "solana")] == ["a", "d"]


def test_extract_price():
    assert extract_price({"ton": {"usd": 5.1}}, "ton") == 5.1
    assert extract_price({"ton": {"usd": 3}}, "ton") == 3.0
    for payload in ({}, {"ton": {}}, {"ton": {"usd": "1.0"}}, {"ton": {"usd": True}}, []):
        with pytest.raises(PriceUnavailable):
            extract_price(payload, "ton")


def test_fetch_price_ok():
    session = FakeSession(FakeResponse(200, {"notcoin": {"usd": 0.0071}}))
    client = CoinGeckoClient("https://example.test/api/v3/", session=session)
    assert asyncio.run(client.fetch_price("notcoin")) == pytest.approx(0.0071)
    url, params = session.calls[0]
    assert url == "https://example.test/api/v3/simple/price"
    assert params == {"ids": "notcoin", "vs_currencies": "usd"}


def test_fetch_price_rate_limited():
    client = CoinGeckoClient(session=FakeSession(FakeResponse(429, "slow down")))
    with pytest.raises(PriceUnavailable) as exc:
        asyncio.run(client.fetch_price("ton"))
    assert exc.value.reason == "rate limited"


def test_fetch_price_unknown_coin():
    client = CoinGeckoClient(session=FakeSession(FakeResponse(200, {})))
    with pytest.raises(PriceUnavailable):
        asyncio.run(client.fetch_price("ghost"))


def test_fetch_price_transport_failure(no_sleep):
    err = aiohttp.ClientConnectionError("boom")
    client = CoinGeckoClient(session=FakeSession(err, err, err))
    with pytest.raises(PriceUnavailable):
        asyncio.run(client.fetch_price("ton"))


def test_fetch_price_recovers_after_retry(no_sleep):
    session = FakeSession(aiohttp.ClientConnectionError("boom"), FakeResponse(200, {"ton": {"usd": 2.0}}))
    client = CoinGeckoClient(session=session)
    assert asyncio.run(client.fetch_price("ton")) == 2.0
    assert len(session.calls) == 2


def test_list_network_coins():
    payload = [
        {"id": "the-open-network", "symbol": "ton", "name": "Toncoin", "platforms": {"the-open-network": "EQ"}},
        {"id": "bitcoin", "symbol": "btc", "name": "Bitcoin", "platforms": {}},
    ]
    client = CoinGeckoClient(session=FakeSession(FakeResponse(200, payload)))
    coins = asyncio.run(client.list_network_coins(Network.TON))
    assert [c.symbol for c in coins] == ["ton"]


def test_fetch_all_coins_error_status():
    client = CoinGeckoClient(session=FakeSession(FakeResponse(500, "oops")))
    with pytest.raises(CoinListUnavailable) as exc:
        asyncio.run(client.fetch_all_coins())
    assert exc.value.status == 500


def test_close_leaves_injected_session_open():
    session = FakeSession()
    asyncio.run(CoinGeckoClient(session=session).close())
    assert session.closed is False


def _html_error():
    info = types.SimpleNamespace(real_url="https://example.test/api/v3/simple/price")
    return aiohttp.ContentTypeError(info, (), message="text/html")


def test_fetch_price_html_body_is_unavailable():
    session = FakeSession(FakeResponse(200, "<html>", json_error=_html_error()))
    client = CoinGeckoClient(session=session)
    with pytest.raises(PriceUnavailable) as exc:
        asyncio.run(client.fetch_price("notcoin"))
    assert exc.value.token_id == "notcoin"
    assert "unreadable response" in exc.value.reason


def test_fetch_price_bad_json_is_unavailable():
    session = FakeSession(FakeResponse(200, None, json_error=ValueError("Expecting value")))
    with pytest.raises(PriceUnavailable):
        asyncio.run(CoinGeckoClient(session=session).fetch_price("ton"))


def test_fetch_all_coins_malformed_item():
    client = CoinGeckoClient(session=FakeSession(FakeResponse(200, [{"id": "x"}])))
    with pytest.raises(CoinListUnavailable) as exc:
        asyncio.run(client.fetch_all_coins())
    assert exc.value.status == 200


def test_fetch_all_coins_html_body():
    client = CoinGeckoClient(session=FakeSession(FakeResponse(200, "<html>", json_error=_html_error())))
    with pytest.raises(CoinListUnavailable):
        asyncio.run(client.fetch_all_coins())


def test_parse_coins_rejects_non_list():
    with pytest.raises(CoinListUnavailable):
        parse_coins({"error": "busy"})
    with pytest.raises(CoinListUnavailable):
        parse_coins(["bitcoin"])
    assert [c.id for c in parse_coins([{"id": "ton", "symbol": "ton"}])] == ["ton"]
