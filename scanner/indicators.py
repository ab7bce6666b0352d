"""EMA / MACD helpers.

``ema_step`` is the scalar rule the incremental engine applies per sample.
``ema_series`` and ``macd_series`` compute the same values over a whole price
array with NumPy and serve as the batch reference for the engine.
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np

__all__ = [
    "smoothing_factor",
    "ema_step",
    "is_valid_price",
    "ema_series",
    "macd_series",
]

_BLOCK_DECADES = 12


def smoothing_factor(period: int) -> float:
    """Return ``k = 2 / (N + 1)`` for an ``N``-period EMA."""
    if period < 1:
        raise ValueError("period must be ≥1")
    return 2.0 / (period + 1.0)


def ema_step(prev: float | None, value: float, period: int) -> float:
    """Advance an EMA by one observation; the first observation seeds it."""
    if prev is None:
        return float(value)
    k = smoothing_factor(period)
    return value * k + prev * (1.0 - k)


def is_valid_price(price: float) -> bool:
    try:
        price = float(price)
    except (TypeError, ValueError):
        return False
    return math.isfinite(price) and price >= 0.0


def ema_series(values: Sequence[float] | np.ndarray, period: int) -> np.ndarray:
    """Vectorised EMA seeded with ``values[0]``.

    Uses the closed form ``ema_t = w^t * (seed + sum_i(k * x_i / w^i))`` with
    ``w = 1 - k``, evaluated in blocks short enough that ``w^i`` stays above
    ``10**-_BLOCK_DECADES``. Each block is seeded with the last value of the
    previous one, so arbitrarily long series stay finite.
    """
    arr = np.asarray(values, dtype=float)
    if arr.ndim != 1:
        raise ValueError("values must be 1-D")
    if arr.size == 0:
        return arr.copy()
    k = smoothing_factor(period)
    w = 1.0 - k
    if w == 0.0:
        return arr.copy()
    block = max(1, int(_BLOCK_DECADES / -math.log10(w)))
    out = np.empty_like(arr)
    seed = arr[0]
    for start in range(0, arr.size, block):
        chunk = arr[start:start + block]
        pow_ = np.power(w, np.arange(1, chunk.size + 1))
        out[start:start + chunk.size] = pow_ * (seed + np.cumsum(chunk * k / pow_))
        seed = out[start + chunk.size - 1]
    return out


def macd_series(
    prices: Sequence[float] | np.ndarray,
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``(macd_line, signal_line)`` for a full price array."""
    fast = ema_series(prices, fast_period)
    slow = ema_series(prices, slow_period)
    macd_line = fast - slow
    return macd_line, ema_series(macd_line, signal_period)
