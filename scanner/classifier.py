from __future__ import annotations

from enum import Enum
from typing import Tuple


class Relationship(Enum):
    """Position of the MACD line relative to the signal line."""

    GREATER = "greater"
    LESS = "less"
    EQUAL = "equal"


class Signal(Enum):
    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


def compare(macd: float, signal: float) -> Relationship:
    if macd > signal:
        return Relationship.GREATER
    if macd < signal:
        return Relationship.LESS
    return Relationship.EQUAL


def classify(
    prev_relationship: Relationship | None, macd: float, signal: float
) -> Tuple[Signal, Relationship]:
    """Return the trading signal for this tick and the relationship to store.

    A crossover needs a strict sign change of ``macd - signal`` between two
    consecutive ticks; touching equality on either side is a hold.
    """
    current = compare(macd, signal)
    if prev_relationship is None:
        return Signal.HOLD, current
    if Relationship.EQUAL in (prev_relationship, current):
        return Signal.HOLD, current
    if prev_relationship is Relationship.LESS and current is Relationship.GREATER:
        return Signal.BUY, current
    if prev_relationship is Relationship.GREATER and current is Relationship.LESS:
        return Signal.SELL, current
    return Signal.HOLD, current
