from __future__ import annotations

import logging
from dataclasses import dataclass

from scanner.classifier import Signal
from scanner.notifier import TelegramNotifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignalEvent:
    """Indicator values and classified signal of one token for one tick."""

    token_id: str
    symbol: str
    price: float
    macd: float
    signal_ema: float
    signal: Signal

    @property
    def actionable(self) -> bool:
        return self.signal is not Signal.HOLD

    def to_dict(self) -> dict:
        return {
            "token_id": self.token_id,
            "symbol": self.symbol,
            "price": self.price,
            "macd": self.macd,
            "signal_ema": self.signal_ema,
            "signal": self.signal.value,
        }


class Reporter:
    """Log every event; forward buy/sell events to Telegram when configured."""

    def __init__(self, notifier: TelegramNotifier | None = None) -> None:
        self.notifier = notifier

    async def report(self, event: SignalEvent) -> None:
        logger.info(
            "%s price=%.10g macd=%.6g signal=%.6g action=%s",
            event.symbol,
            event.price,
            event.macd,
            event.signal_ema,
            event.signal.value,
        )
        if event.actionable and self.notifier is not None:
            emoji = "\U0001F7E2" if event.signal is Signal.BUY else "\U0001F534"
            await self.notifier.notify(
                f"{emoji} {event.signal.value.upper()} signal for {event.symbol}\n"
                f"Price: {event.price:.10g} USD\n"
                f"MACD: {event.macd:.6g} / Signal: {event.signal_ema:.6g}"
            )
