import asyncio
import functools
import http.client
import logging
import time

import aiohttp
import requests
import urllib3

RETRYABLE = (
    requests.ReadTimeout,
    requests.ConnectionError,
    urllib3.exceptions.ProtocolError,
    http.client.RemoteDisconnected,
)

ASYNC_RETRYABLE = (
    aiohttp.ClientConnectionError,
    aiohttp.ClientPayloadError,
    asyncio.TimeoutError,
)


class RetryError(RuntimeError):
    """Raised once every attempt failed with a retryable error."""


def retry_rest(max_tries: int = 3, backoff: float = 2.0):
    def outer(func):
        @functools.wraps(func)
        def inner(*a, **kw):
            last_exc = None
            for attempt in range(1, max_tries + 1):
                try:
                    return func(*a, **kw)
                except RETRYABLE as exc:
                    last_exc = exc
                    if attempt == max_tries:
                        break
                    wait = backoff * attempt
                    logging.warning("%s: %s → retry in %ss (%s/%s)", func.__name__, exc, wait, attempt, max_tries)
                    time.sleep(wait)
            raise RetryError(f"{func.__name__} failed after {max_tries} retries") from last_exc
        return inner
    return outer


def async_retry_rest(max_tries: int = 3, backoff: float = 2.0):
    """Asynchronous variant of :func:`retry_rest` for ``aiohttp`` calls."""

    def outer(func):
        @functools.wraps(func)
        async def inner(*a, **kw):
            last_exc = None
            for attempt in range(1, max_tries + 1):
                try:
                    return await func(*a, **kw)
                except ASYNC_RETRYABLE as exc:
                    last_exc = exc
                    if attempt == max_tries:
                        break
                    wait = backoff * attempt
                    logging.warning(
                        "%s: %r → retry in %ss (%s/%s)",
                        func.__name__,
                        exc,
                        wait,
                        attempt,
                        max_tries,
                    )
                    await asyncio.sleep(wait)
            raise RetryError(
                f"{func.__name__} failed after {max_tries} retries"
            ) from last_exc

        return inner

    return outer
