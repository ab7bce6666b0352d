#!/usr/bin/env python3
"""List the CoinGecko tokens a scan of one network would track.

Examples
--------
Show every token on TON::

    python -m utils.list_coins --network ton

Use the network and API settings from a config file::

    python -m utils.list_coins --config settings.toml
"""

from __future__ import annotations

import argparse
import sys

import requests
from pydantic import ValidationError

from scanner.coingecko import Coin, filter_by_network, parse_coins
from scanner.config import load_settings
from scanner.errors import CoinListUnavailable, NetworkUnsupported
from utils.retry import RetryError, retry_rest


@retry_rest()
def _get_coins(session: requests.Session, base_url: str, timeout: float) -> list[dict]:
    resp = session.get(
        f"{base_url.rstrip('/')}/coins/list",
        params={"include_platform": "true"},
        timeout=timeout,
    )
    if resp.status_code != 200:
        raise CoinListUnavailable(resp.status_code, resp.text)
    try:
        return resp.json()
    except ValueError as exc:
        raise CoinListUnavailable(resp.status_code, f"unreadable response: {exc}") from exc


def collect(
    network: str,
    base_url: str,
    session: requests.Session | None = None,
    *,
    timeout: float = 30.0,
) -> list[Coin]:
    """Fetch the full coin list and keep the coins deployed on ``network``."""
    session = session or requests.Session()
    try:
        payload = _get_coins(session, base_url, timeout)
    except RetryError as exc:
        raise CoinListUnavailable(0, str(exc.__cause__ or exc)) from exc
    coins = parse_coins(payload)
    return filter_by_network(coins, network)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="List CoinGecko tokens on a network")
    p.add_argument("--network", help="solana | binance-smart-chain | ton")
    p.add_argument("--config", help="Settings TOML (default: settings.toml)")
    p.add_argument("--limit", type=int, default=0, help="Print at most N tokens")
    return p.parse_args(argv)


def main(argv: list[str] | None = None, session: requests.Session | None = None) -> int:
    args = _parse_args(argv)
    try:
        settings = load_settings(args.config, network=args.network)
    except (NetworkUnsupported, ValidationError, FileNotFoundError, RuntimeError) as exc:
        print(exc, file=sys.stderr)
        return 1
    try:
        coins = collect(
            settings.scanner.network.value,
            settings.coingecko.base_url,
            session,
            timeout=settings.coingecko.timeout,
        )
    except CoinListUnavailable as exc:
        print(exc, file=sys.stderr)
        return 1
    if args.limit:
        coins = coins[: args.limit]
    for coin in coins:
        print(f"{coin.id}\t{coin.symbol}")
    print(f"{len(coins)} coins on {settings.scanner.network.value}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
