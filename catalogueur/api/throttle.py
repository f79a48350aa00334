"""
Request pacing for catalogs and storefront crawls

RequestDelay paces sequential page crawls with a random delay between
requests. ThrottleManager implements a sliding window rate limit with
backoff for metered JSON APIs.
"""

import asyncio
import logging
import random
import time
from collections import deque
from dataclasses import dataclass
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class RequestDelay:
    """
    Uniform random delay between two requests.

    Example:
        delay = RequestDelay(min_delay_ms=500, max_delay_ms=2000)
        await delay.wait()  # sleeps 0.5s - 2s
    """

    def __init__(self, min_delay_ms: int = 0, max_delay_ms: int = 0, rng: Optional[random.Random] = None):
        """
        Initialize request delay

        Args:
            min_delay_ms: Lower bound of the delay in milliseconds
            max_delay_ms: Upper bound of the delay in milliseconds; below 1
                disables the delay entirely
            rng: Random source (tests pass a seeded one)
        """
        if min_delay_ms < 0:
            raise ValueError(f"min_delay_ms must not be negative: {min_delay_ms}")
        if max_delay_ms >= 1 and max_delay_ms < min_delay_ms:
            raise ValueError(f"max_delay_ms ({max_delay_ms}) is below min_delay_ms ({min_delay_ms})")

        self.min_delay_ms = min_delay_ms
        self.max_delay_ms = max_delay_ms
        self.rng = rng or random.Random()

    @property
    def enabled(self) -> bool:
        return self.max_delay_ms >= 1

    def next_delay(self) -> float:
        """Draw the next delay in seconds (0.0 when disabled)."""
        if not self.enabled:
            return 0.0
        return self.rng.uniform(self.min_delay_ms, self.max_delay_ms) / 1000.0

    async def wait(self) -> float:
        """
        Sleep for a freshly drawn delay.

        Returns:
            Seconds slept
        """
        delay = self.next_delay()
        if delay > 0:
            logger.debug(f"Waiting {delay:.2f}s before next request")
            await asyncio.sleep(delay)
        return delay


@dataclass
class RateLimit:
    """Rate limit configuration"""
    calls: int          # Maximum calls per window
    window_seconds: int # Time window in seconds


class ThrottleManager:
    """
    Sliding window rate limiting with backoff on 429 responses

    Example:
        # GiantBomb: 200 requests per resource per hour
        throttle = ThrottleManager(RateLimit(calls=200, window_seconds=3600))

        await throttle.wait_if_needed('search')
        response = await client.get(...)
        if response.status_code == 429:
            throttle.handle_rate_limit('search', retry_after=60)
    """

    DEFAULT_BACKOFF_SECONDS = 60

    def __init__(self, default_limit: RateLimit):
        """
        Initialize throttle manager

        Args:
            default_limit: Rate limit applied to every endpoint
        """
        self.default_limit = default_limit
        self.call_history: Dict[str, deque] = {}
        self.backoff_until: Dict[str, float] = {}
        self.consecutive_429s: Dict[str, int] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def _get_lock(self, endpoint: str) -> asyncio.Lock:
        if endpoint not in self._locks:
            self._locks[endpoint] = asyncio.Lock()
            self.call_history.setdefault(endpoint, deque())
            self.consecutive_429s.setdefault(endpoint, 0)
        return self._locks[endpoint]

    async def wait_if_needed(self, endpoint: str) -> float:
        """
        Wait if the rate limit would be exceeded, then record the call

        Args:
            endpoint: Endpoint name

        Returns:
            Seconds waited (0 if no wait needed)
        """
        async with self._get_lock(endpoint):
            waited = 0.0

            # Backoff after a 429 takes precedence
            backoff_until = self.backoff_until.get(endpoint)
            if backoff_until is not None:
                remaining = backoff_until - time.time()
                if remaining > 0:
                    logger.warning(f"Rate limit backoff for {endpoint}: waiting {remaining:.1f}s")
                    await asyncio.sleep(remaining)
                    waited += remaining
                del self.backoff_until[endpoint]

            history = self.call_history[endpoint]
            now = time.time()
            window_start = now - self.default_limit.window_seconds
            while history and history[0] < window_start:
                history.popleft()

            if len(history) >= self.default_limit.calls:
                wait_time = history[0] + self.default_limit.window_seconds - now
                if wait_time > 0:
                    logger.debug(f"Rate limit throttle for {endpoint}: waiting {wait_time:.1f}s")
                    await asyncio.sleep(wait_time)
                    waited += wait_time
                history.popleft()

            history.append(time.time())
            return waited

    def handle_rate_limit(self, endpoint: str, retry_after: Optional[int] = None) -> None:
        """
        Handle a 429 response

        Consecutive 429s increase the backoff: 1x -> 1.5x -> 2x -> 3x, with
        +-10% jitter.

        Args:
            endpoint: Endpoint that returned 429
            retry_after: Retry-After header value in seconds (optional)
        """
        self._get_lock(endpoint)

        if retry_after is None:
            retry_after = self.DEFAULT_BACKOFF_SECONDS

        self.consecutive_429s[endpoint] += 1
        multipliers = [1.0, 1.5, 2.0, 3.0]
        index = min(self.consecutive_429s[endpoint] - 1, len(multipliers) - 1)
        backoff = retry_after * multipliers[index] * random.uniform(0.9, 1.1)

        self.backoff_until[endpoint] = time.time() + backoff
        self.call_history[endpoint].clear()

        logger.warning(
            f"Rate limit hit for {endpoint}: backing off for {backoff:.1f}s "
            f"(consecutive_429s={self.consecutive_429s[endpoint]})"
        )

    def reset_backoff(self, endpoint: str) -> None:
        """Reset the backoff multiplier after a successful request"""
        if self.consecutive_429s.get(endpoint):
            logger.info(f"Resetting backoff for {endpoint}")
            self.consecutive_429s[endpoint] = 0
