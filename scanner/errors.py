from __future__ import annotations


class ScannerError(Exception):
    """Base class for scanner errors."""


class InvalidPrice(ScannerError, ValueError):
    def __init__(self, token_id: str, price: float) -> None:
        self.token_id = token_id
        self.price = price
        super().__init__(f"{token_id}: invalid price {price!r}")


class OutOfOrderSample(ScannerError):
    def __init__(self, token_id: str, ts: float, last_ts: float) -> None:
        self.token_id = token_id
        self.ts = ts
        self.last_ts = last_ts
        super().__init__(f"{token_id}: sample ts={ts} is not after last ts={last_ts}")


class PriceUnavailable(ScannerError):
    """Price could not be obtained for a token this tick."""

    def __init__(self, token_id: str, reason: str) -> None:
        self.token_id = token_id
        self.reason = reason
        super().__init__(f"{token_id}: price unavailable ({reason})")


class NetworkUnsupported(ScannerError, ValueError):
    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"unsupported network: {value!r}")


class CoinListUnavailable(ScannerError):
    def __init__(self, status: int, body: str = "") -> None:
        self.status = status
        self.body = body
        super().__init__(f"failed to fetch coin list: status={status} body={body[:200]}")
