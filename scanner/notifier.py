import asyncio
import logging
import re

import aiohttp

from scanner.config import TelegramSettings

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Queue of outgoing Telegram messages drained by one background worker."""

    def __init__(self, settings: TelegramSettings | None) -> None:
        self.settings = settings
        self._session: aiohttp.ClientSession | None = None
        self._queue: asyncio.Queue[tuple[str, int]] | None = None
        self._worker_task: asyncio.Task | None = None

    @property
    def enabled(self) -> bool:
        return self.settings is not None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        if self._worker_task is not None:
            await self._queue.join()
            self._worker_task.cancel()
            try:
                await self._worker_task
            except asyncio.CancelledError:
                pass
            self._worker_task = None
        if self._session is not None and not self._session.closed:
            await self._session.close()

    async def _send(self, msg: str, max_retries: int) -> None:
        url = f"https://api.telegram.org/bot{self.settings.bot_token}/sendMessage"
        payload = {"chat_id": self.settings.chat_id, "text": msg, "parse_mode": "HTML"}
        min_interval = self.settings.min_interval

        backoff = 1.0
        for attempt in range(max_retries):
            try:
                session = await self._get_session()
                async with session.post(url, json=payload, timeout=aiohttp.ClientTimeout(total=10)) as response:
                    if response.status == 200:
                        result = await response.json()
                        if result.get("ok"):
                            logger.info("Telegram message sent: %s...", msg[:50])
                            await asyncio.sleep(min_interval)
                            return
                        desc = result.get("description", "")
                        match = re.search(r"retry after (\d+)", desc)
                        if match:
                            wait = int(match.group(1))
                            logger.warning("Rate limited. Retry after %s s", wait)
                            await asyncio.sleep(wait)
                            continue
                    else:
                        logger.warning("Telegram HTTP error: %s", response.status)
                        if response.status == 429:
                            data = await response.json()
                            wait = data.get("parameters", {}).get("retry_after")
                            if wait:
                                logger.warning("Retry after %s s", wait)
                                await asyncio.sleep(float(wait))
                                continue
            except asyncio.TimeoutError:
                logger.warning("Telegram timeout (attempt %s/%s)", attempt + 1, max_retries)
            except aiohttp.ClientError as e:
                logger.warning("Telegram error (attempt %s/%s): %s", attempt + 1, max_retries, e)

            await asyncio.sleep(backoff)
            backoff *= 2

        logger.error("Telegram message dropped after %s attempts: %s...", max_retries, msg[:50])

    async def _worker(self) -> None:
        while True:
            msg, retries = await self._queue.get()
            try:
                await self._send(msg, retries)
            finally:
                self._queue.task_done()

    def _ensure_worker(self) -> None:
        if self._queue is None:
            self._queue = asyncio.Queue()
        if self._worker_task is None or self._worker_task.done():
            self._worker_task = asyncio.create_task(self._worker())

    async def notify(self, msg: str, max_retries: int = 3) -> None:
        """Queue a message; a no-op when Telegram is not configured."""
        if not self.enabled:
            logger.debug("Telegram not configured; message skipped")
            return
        self._ensure_worker()
        await self._queue.put((msg, max_retries))
