import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from scanner.coingecko import Coin
from scanner.config import ScannerSettings, Settings
from scanner.networks import Network


@pytest.fixture
def ton_coins():
    return [
        Coin(id="the-open-network", symbol="ton", platforms={"the-open-network": "EQ..."}),
        Coin(id="notcoin", symbol="not", platforms={"the-open-network": "EQAv..."}),
        Coin(id="dogs-2", symbol="dogs", platforms={"the-open-network": "EQCv..."}),
    ]


@pytest.fixture
def fast_settings():
    """Settings with every delay zeroed so ticks run back to back."""
    return Settings(
        scanner=ScannerSettings(
            network=Network.TON,
            wick_seconds=0,
            request_delay=0,
            startup_delay=0,
        )
    )
