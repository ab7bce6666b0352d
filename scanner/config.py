"""Settings loaded from ``settings.toml``.

Every section is optional; missing keys fall back to the defaults below.
``scanner.network`` is checked against :class:`~scanner.networks.Network` while
loading, so an unknown network fails before any request is made.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Dict

from pydantic import BaseModel

from scanner.networks import Network

DEFAULT_SETTINGS_FILE = Path(__file__).resolve().parent.parent / "settings.toml"


class ScannerSettings(BaseModel):
    network: Network = Network.TON
    wick_seconds: float = 60.0
    request_delay: float = 1.0
    startup_delay: float = 1.0
    coin_refresh_ticks: int = 0  # 0 disables re-enumeration
    max_tokens: int = 0  # 0 = track every listed token


class IndicatorSettings(BaseModel):
    fast_period: int = 12
    slow_period: int = 26
    signal_period: int = 9


class CoinGeckoSettings(BaseModel):
    base_url: str = "https://api.coingecko.com/api/v3"
    timeout: float = 30.0


class LoggingSettings(BaseModel):
    level: str = "INFO"
    file: str = "scanner.log"


class TelegramSettings(BaseModel):
    bot_token: str
    chat_id: str
    min_interval: float = 1.0


class Settings(BaseModel):
    scanner: ScannerSettings = ScannerSettings()
    indicators: IndicatorSettings = IndicatorSettings()
    coingecko: CoinGeckoSettings = CoinGeckoSettings()
    logging: LoggingSettings = LoggingSettings()
    telegram: TelegramSettings | None = None


def load_settings(path: str | Path | None = None, network: str | None = None) -> Settings:
    """Read settings from ``path`` (default ``settings.toml``).

    ``network`` overrides ``scanner.network`` from the file. Raises
    :class:`~scanner.errors.NetworkUnsupported` for an unknown network and
    ``RuntimeError`` when the file is not valid TOML.
    """
    path = Path(path) if path is not None else DEFAULT_SETTINGS_FILE
    raw: Dict[str, Any] = {}
    if path.exists():
        try:
            with open(path, "rb") as f:
                raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise RuntimeError(f"Failed to parse {path}: {exc}") from exc
    elif path != DEFAULT_SETTINGS_FILE:
        raise FileNotFoundError(f"Settings file not found: {path}")

    scanner_raw = dict(raw.pop("scanner", {}))
    scanner_raw["network"] = Network.parse(network or scanner_raw.get("network", Network.TON))
    log_raw = dict(raw.pop("logging", {}))
    if os.getenv("LOG_LEVEL"):
        log_raw["level"] = os.environ["LOG_LEVEL"]
    return Settings(scanner=ScannerSettings(**scanner_raw), logging=LoggingSettings(**log_raw), **raw)
