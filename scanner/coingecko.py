from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List

import aiohttp
from pydantic import BaseModel, ValidationError

from scanner.errors import CoinListUnavailable, PriceUnavailable
from scanner.networks import Network
from utils.retry import RetryError, async_retry_rest

logger = logging.getLogger(__name__)

COINGECKO_API = "https://api.coingecko.com/api/v3"


class Coin(BaseModel):
    id: str
    symbol: str
    name: str = ""
    platforms: Dict[str, str | None] = {}


def filter_by_network(coins: Iterable[Coin], network: Network | str) -> List[Coin]:
    """Return coins deployed on ``network``, keeping the API order."""
    platform = Network.parse(network).platform
    out = [c for c in coins if platform in c.platforms]
    logger.debug("Found %d coins for platform %s", len(out), platform)
    return out


def parse_coins(payload: Any, status: int = 200) -> List[Coin]:
    """Validate a ``/coins/list`` payload into :class:`Coin` models."""
    if not isinstance(payload, list):
        raise CoinListUnavailable(status, f"expected a list, got {type(payload).__name__}")
    try:
        return [Coin(**item) for item in payload]
    except (ValidationError, TypeError) as exc:
        raise CoinListUnavailable(status, f"malformed coin entry: {exc}") from exc


def extract_price(payload: Any, coin_id: str) -> float:
    """Pull ``payload[coin_id]["usd"]`` out of a ``/simple/price`` response."""
    if not isinstance(payload, dict) or coin_id not in payload:
        raise PriceUnavailable(coin_id, "coin not found in response")
    entry = payload[coin_id]
    value = entry.get("usd") if isinstance(entry, dict) else None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PriceUnavailable(coin_id, "usd price missing")
    return float(value)


class CoinGeckoClient:
    """Async CoinGecko REST client for coin listing and spot prices."""

    def __init__(
        self,
        base_url: str = COINGECKO_API,
        timeout: float = 30.0,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "CoinGeckoClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    @async_retry_rest()
    async def _get(self, path: str, params: Dict[str, str]) -> tuple[int, Any]:
        session = await self._get_session()
        async with session.get(f"{self.base_url}{path}", params=params) as resp:
            if resp.status != 200:
                return resp.status, await resp.text()
            return resp.status, await resp.json()

    async def fetch_all_coins(self) -> List[Coin]:
        logger.debug("Fetching all coins from CoinGecko")
        try:
            status, data = await self._get("/coins/list", {"include_platform": "true"})
        except RetryError as exc:
            raise CoinListUnavailable(0, str(exc.__cause__ or exc)) from exc
        except (aiohttp.ClientError, ValueError) as exc:
            raise CoinListUnavailable(0, f"unreadable response: {exc}") from exc
        if status != 200:
            logger.error("Failed to fetch coins data. Status: %s, Body: %s", status, data)
            raise CoinListUnavailable(status, str(data))
        coins = parse_coins(data, status)
        logger.debug("Fetched %d coins", len(coins))
        return coins

    async def list_network_coins(self, network: Network | str) -> List[Coin]:
        return filter_by_network(await self.fetch_all_coins(), network)

    async def fetch_price(self, coin_id: str) -> float:
        logger.debug("Fetching price for coin: %s", coin_id)
        try:
            status, data = await self._get("/simple/price", {"ids": coin_id, "vs_currencies": "usd"})
        except RetryError as exc:
            raise PriceUnavailable(coin_id, f"transport error: {exc.__cause__!r}") from exc
        except (aiohttp.ClientError, ValueError) as exc:
            raise PriceUnavailable(coin_id, f"unreadable response: {exc!r}") from exc
        if status == 429:
            raise PriceUnavailable(coin_id, "rate limited")
        if status != 200:
            raise PriceUnavailable(coin_id, f"HTTP {status}")
        price = extract_price(data, coin_id)
        logger.debug("Price for %s: %s", coin_id, price)
        return price
