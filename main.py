import argparse
import asyncio
import logging
import signal
import sys

from pydantic import ValidationError

from scanner.coingecko import CoinGeckoClient
from scanner.config import Settings, load_settings
from scanner.errors import CoinListUnavailable, NetworkUnsupported
from scanner.logging_config import setup_logging
from scanner.notifier import TelegramNotifier
from scanner.reporter import Reporter
from scanner.runner import TokenScanner

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Scan a network's tokens for MACD crossovers")
    p.add_argument("--config", help="Path to settings TOML (default: settings.toml)")
    p.add_argument("--network", help="solana | binance-smart-chain | ton")
    p.add_argument("--log-level", help="Override logging level")
    return p.parse_args(argv)


async def run(settings: Settings) -> int:
    notifier = TelegramNotifier(settings.telegram)
    client = CoinGeckoClient(settings.coingecko.base_url, settings.coingecko.timeout)
    scanner = TokenScanner(settings, client, reporter=Reporter(notifier))

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, scanner.stop)
        except NotImplementedError:  # pragma: no cover - Windows
            pass

    try:
        await notifier.notify(f"\U0001F680 Scanner started on {settings.scanner.network.value}")
        await scanner.run()
    except CoinListUnavailable as exc:
        logger.error("Error fetching all coins: %s", exc)
        await notifier.notify(f"❌ Scanner failed to start: {exc}")
        return 1
    finally:
        await client.close()
        await notifier.close()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        settings = load_settings(args.config, network=args.network)
    except (NetworkUnsupported, ValidationError, FileNotFoundError, RuntimeError) as exc:
        setup_logging(args.log_level, log_file=None)
        logger.error("%s", exc)
        return 1
    setup_logging(args.log_level or settings.logging.level, settings.logging.file)
    logger.info("Scanning network=%s wick=%ss", settings.scanner.network.value, settings.scanner.wick_seconds)
    return asyncio.run(run(settings))


if __name__ == "__main__":
    sys.exit(main())
