from __future__ import annotations

import asyncio
import logging
from typing import List

from scanner.classifier import classify
from scanner.coingecko import Coin, CoinGeckoClient
from scanner.config import Settings
from scanner.engine import IndicatorEngine
from scanner.errors import CoinListUnavailable, InvalidPrice, OutOfOrderSample, PriceUnavailable
from scanner.reporter import Reporter, SignalEvent

logger = logging.getLogger(__name__)


class TokenScanner:
    """Drive the indicator engine once per tick over every token of a network."""

    def __init__(
        self,
        settings: Settings,
        client: CoinGeckoClient,
        engine: IndicatorEngine | None = None,
        reporter: Reporter | None = None,
    ) -> None:
        self.settings = settings
        self.network = settings.scanner.network
        self.client = client
        ind = settings.indicators
        self.engine = engine or IndicatorEngine(ind.fast_period, ind.slow_period, ind.signal_period)
        self.reporter = reporter or Reporter()
        self.coins: List[Coin] = []
        self.ticks = 0
        self._stop = asyncio.Event()

    def stop(self) -> None:
        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    async def _sleep(self, seconds: float) -> None:
        if seconds <= 0:
            await asyncio.sleep(0)
            return
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def load_coins(self) -> List[Coin]:
        coins = await self.client.list_network_coins(self.network)
        limit = self.settings.scanner.max_tokens
        if limit and len(coins) > limit:
            logger.info("Tracking first %d of %d coins on %s", limit, len(coins), self.network.value)
            coins = coins[:limit]
        self.coins = coins
        logger.info("Found %d coins on %s", len(coins), self.network.value)
        return coins

    async def refresh_coins(self) -> None:
        """Re-enumerate the network and drop state of tokens no longer listed."""
        try:
            await self.load_coins()
        except CoinListUnavailable as exc:
            logger.warning("Coin list refresh failed, keeping %d coins: %s", len(self.coins), exc)
            return
        dropped = self.engine.retain(c.id for c in self.coins)
        if dropped:
            logger.info("Dropped state of %d delisted tokens", len(dropped))

    def process_price(self, coin: Coin, price: float, ts: float | None = None) -> SignalEvent | None:
        try:
            snap = self.engine.update(coin.id, price, ts)
        except (InvalidPrice, OutOfOrderSample) as exc:
            logger.warning("Skipping %s this tick: %s", coin.symbol, exc)
            return None
        signal, relationship = classify(self.engine.last_relationship(coin.id), snap.macd, snap.signal_ema)
        self.engine.store_relationship(coin.id, relationship)
        return SignalEvent(
            token_id=coin.id,
            symbol=coin.symbol,
            price=snap.price,
            macd=snap.macd,
            signal_ema=snap.signal_ema,
            signal=signal,
        )

    async def tick(self) -> List[SignalEvent]:
        events: List[SignalEvent] = []
        delay = self.settings.scanner.request_delay
        for coin in list(self.coins):
            if self.stopped:
                break
            try:
                price = await self.client.fetch_price(coin.id)
            except PriceUnavailable as exc:
                logger.debug("No price data for %s: %s", coin.id, exc.reason)
            else:
                event = self.process_price(coin, price)
                if event is not None:
                    await self.reporter.report(event)
                    events.append(event)
            await self._sleep(delay)
        self.ticks += 1
        return events

    async def run(self, max_ticks: int | None = None) -> None:
        """Tick until :meth:`stop` is called (or ``max_ticks`` ticks ran)."""
        cfg = self.settings.scanner
        await self._sleep(cfg.startup_delay)
        if not self.coins:
            await self.load_coins()
        while not self.stopped:
            if cfg.coin_refresh_ticks and self.ticks and self.ticks % cfg.coin_refresh_ticks == 0:
                await self.refresh_coins()
            await self.tick()
            if max_ticks is not None and self.ticks >= max_ticks:
                break
            await self._sleep(cfg.wick_seconds)
        logger.info("Scanner stopped after %d ticks", self.ticks)
