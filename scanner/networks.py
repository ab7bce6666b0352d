from __future__ import annotations

from enum import Enum

from scanner.errors import NetworkUnsupported


class Network(str, Enum):
    """Networks the scanner can enumerate tokens for."""

    SOLANA = "solana"
    BSC = "binance-smart-chain"
    TON = "ton"

    @property
    def platform(self) -> str:
        """CoinGecko platform key used in ``/coins/list?include_platform=true``."""
        return _PLATFORMS[self]

    @classmethod
    def parse(cls, value: "str | Network") -> "Network":
        if isinstance(value, Network):
            return value
        key = str(value).strip().lower()
        for net in cls:
            if key in (net.value, net.platform):
                return net
        raise NetworkUnsupported(str(value))


_PLATFORMS = {
    Network.SOLANA: "solana",
    Network.BSC: "binance-smart-chain",
    Network.TON: "the-open-network",
}
