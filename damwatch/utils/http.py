"""HTTP utilities providing bounded retry/backoff semantics."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

import httpx

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RetryConfig:
    """How many times to attempt a request and how long to wait in between.

    ``attempts=1`` performs a single request with no retry.
    """

    attempts: int = 1
    backoff_seconds: float = 1.0
    retry_statuses: frozenset[int] = frozenset({429, 502, 503, 504})


def _is_retryable(exc: httpx.HTTPError, config: RetryConfig) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in config.retry_statuses
    return isinstance(exc, httpx.TransportError)


async def request_with_retry(
    func: Callable[..., Awaitable[httpx.Response]],
    *args,
    retry_config: RetryConfig | None = None,
    **kwargs,
) -> httpx.Response:
    """Await ``func`` and raise for error statuses, retrying transient failures."""
    config = retry_config or RetryConfig()
    attempt = 0

    while True:
        attempt += 1
        try:
            response = await func(*args, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPError as exc:
            if attempt >= config.attempts or not _is_retryable(exc, config):
                raise
            logger.warning(
                "HTTP request failed (attempt %d/%d): %s",
                attempt,
                config.attempts,
                exc,
            )
            await asyncio.sleep(config.backoff_seconds * attempt)


__all__ = ["RetryConfig", "request_with_retry"]
