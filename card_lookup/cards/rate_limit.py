"""Minimum-interval pacing for calls to the card database."""

import asyncio
import logging
import time
from typing import Awaitable, Callable

_log = logging.getLogger(__name__)

DEFAULT_MIN_INTERVAL_SECONDS = 0.1


class RateLimiter:
    """
    Enforces a floor between consecutive calls. One instance is shared by every
    resolver in the process; wait() holds a lock across the sleep so two lookups
    issued back to back cannot share a wait window.
    """

    def __init__(
        self,
        min_interval_seconds: float = DEFAULT_MIN_INTERVAL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.min_interval = min_interval_seconds
        self._clock = clock
        self._sleep = sleep
        self._last_call: float | None = None
        self._lock = asyncio.Lock()

    @property
    def last_call(self) -> float | None:
        return self._last_call

    async def wait(self) -> None:
        """Suspend until the floor has elapsed since the previous call, then record this call."""
        async with self._lock:
            if self._last_call is not None:
                elapsed = self._clock() - self._last_call
                if elapsed < self.min_interval:
                    delay = self.min_interval - elapsed
                    _log.debug("Card database pacing: waiting %.3fs", delay)
                    await self._sleep(delay)
            self._last_call = self._clock()


_rate_limiter: RateLimiter | None = None


def get_rate_limiter() -> RateLimiter:
    """Process-wide limiter, built from config on first use."""
    global _rate_limiter
    if _rate_limiter is None:
        from card_lookup.core.config import get_config

        _rate_limiter = RateLimiter(get_config().card_db_min_interval_ms / 1000.0)
    return _rate_limiter
