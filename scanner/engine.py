from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Iterable

from scanner.classifier import Relationship
from scanner.errors import InvalidPrice, OutOfOrderSample
from scanner.indicators import ema_step, is_valid_price

logger = logging.getLogger(__name__)

MACD_HISTORY_LEN = 9


@dataclass
class TokenIndicatorState:
    """Running EMA/MACD state of a single token."""

    fast_ema: float | None = None
    slow_ema: float | None = None
    macd_history: deque[float] = field(default_factory=lambda: deque(maxlen=MACD_HISTORY_LEN))
    signal_ema: float | None = None
    last_relationship: Relationship | None = None
    samples: int = 0
    last_ts: float | None = None

    def copy(self) -> "TokenIndicatorState":
        return replace(self, macd_history=deque(self.macd_history, maxlen=self.macd_history.maxlen))


@dataclass(frozen=True)
class IndicatorSnapshot:
    token_id: str
    price: float
    fast_ema: float
    slow_ema: float
    macd: float
    signal_ema: float
    has_prior_signal: bool


class IndicatorEngine:
    """Keyed store of :class:`TokenIndicatorState` updated one price at a time.

    State for a token is created the first time a valid price is seen for it.
    ``update`` never awaits, so under a single asyncio loop two updates for the
    same token cannot interleave.
    """

    def __init__(self, fast_period: int = 12, slow_period: int = 26, signal_period: int = 9) -> None:
        if min(fast_period, slow_period, signal_period) < 1:
            raise ValueError("EMA periods must be ≥1")
        if fast_period >= slow_period:
            raise ValueError("fast_period must be shorter than slow_period")
        self.fast_period = fast_period
        self.slow_period = slow_period
        self.signal_period = signal_period
        self._states: dict[str, TokenIndicatorState] = {}

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, token_id: object) -> bool:
        return token_id in self._states

    def tokens(self) -> list[str]:
        return list(self._states)

    def state(self, token_id: str) -> TokenIndicatorState | None:
        return self._states.get(token_id)

    def update(self, token_id: str, price: float, ts: float | None = None) -> IndicatorSnapshot:
        """Fold one price sample into ``token_id``'s state.

        Raises :class:`InvalidPrice` for NaN, infinite or negative prices and
        :class:`OutOfOrderSample` when ``ts`` does not advance; in both cases the
        stored state is not touched.
        """
        if not token_id:
            raise ValueError("token_id must be non-empty")
        if not is_valid_price(price):
            raise InvalidPrice(token_id, price)
        price = float(price)

        prev = self._states.get(token_id)
        if ts is not None and prev is not None and prev.last_ts is not None and ts <= prev.last_ts:
            raise OutOfOrderSample(token_id, ts, prev.last_ts)

        st = prev.copy() if prev is not None else TokenIndicatorState()
        has_prior = st.samples > 0

        st.fast_ema = ema_step(st.fast_ema, price, self.fast_period)
        st.slow_ema = ema_step(st.slow_ema, price, self.slow_period)
        macd = st.fast_ema - st.slow_ema
        st.macd_history.append(macd)
        st.signal_ema = ema_step(st.signal_ema, macd, self.signal_period)
        st.samples += 1
        if ts is not None:
            st.last_ts = ts

        self._states[token_id] = st
        return IndicatorSnapshot(
            token_id=token_id,
            price=price,
            fast_ema=st.fast_ema,
            slow_ema=st.slow_ema,
            macd=macd,
            signal_ema=st.signal_ema,
            has_prior_signal=has_prior,
        )

    def last_relationship(self, token_id: str) -> Relationship | None:
        st = self._states.get(token_id)
        return st.last_relationship if st is not None else None

    def store_relationship(self, token_id: str, relationship: Relationship) -> None:
        st = self._states.get(token_id)
        if st is None:
            raise KeyError(token_id)
        st.last_relationship = relationship

    def discard(self, token_id: str) -> bool:
        return self._states.pop(token_id, None) is not None

    def retain(self, token_ids: Iterable[str]) -> list[str]:
        """Drop state of every token not in ``token_ids``; return the dropped ids."""
        keep = set(token_ids)
        stale = [t for t in self._states if t not in keep]
        for t in stale:
            del self._states[t]
        if stale:
            logger.debug("Evicted %d stale tokens", len(stale))
        return stale
