"""Sliding-window rate limiting backed by the shared key-value store.

The window is approximated with two fixed-window counters: the count for the
current window plus the previous window's count weighted by how much of it
still overlaps the trailing window.  Keys live under ``ratelimit:`` so they
never collide with session keys.
"""

import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from address_verifier.core.kv_store import KeyValueStore

RATE_LIMIT_KEY_PREFIX = "ratelimit:"


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of a rate limit check."""

    allowed: bool
    limit: int
    remaining: int
    reset_after_seconds: float


class SlidingWindowRateLimiter:
    """Per-key sliding-window request quota.

    Args:
        store: Shared key-value store.
        limit: Requests allowed per window.
        window_seconds: Window length.
        clock: Time source returning epoch seconds (injectable for tests).
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if limit <= 0 or window_seconds <= 0:
            msg = "limit and window_seconds must be positive"
            raise ValueError(msg)
        self._store = store
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock

    def _key(self, window_index: int, key: str) -> str:
        return f"{RATE_LIMIT_KEY_PREFIX}{window_index}:{key}"

    async def check(self, key: str) -> RateLimitDecision:
        """Decide whether one more request for ``key`` fits the quota.

        Only allowed requests are counted, so a rejected client regains
        capacity as its earlier requests slide out of the window.  The read
        and the increment are separate store calls; concurrent requests from
        one key can overshoot the limit slightly.

        Args:
            key: Caller identity (client IP).

        Returns:
            RateLimitDecision for this request.
        """
        now = self._clock()
        window_index = int(now // self.window_seconds)
        elapsed_fraction = (now % self.window_seconds) / self.window_seconds

        current_key = self._key(window_index, key)
        current_raw = await self._store.get(current_key)
        previous_raw = await self._store.get(self._key(window_index - 1, key))
        current = int(current_raw) if current_raw else 0
        previous = int(previous_raw) if previous_raw else 0

        weighted = current + math.floor(previous * (1 - elapsed_fraction))
        reset_after = self.window_seconds * (1 - elapsed_fraction)
        if weighted >= self.limit:
            return RateLimitDecision(
                allowed=False,
                limit=self.limit,
                remaining=0,
                reset_after_seconds=reset_after,
            )

        current = await self._store.incr(current_key, ttl_seconds=self.window_seconds * 2)
        weighted = current + math.floor(previous * (1 - elapsed_fraction))
        return RateLimitDecision(
            allowed=True,
            limit=self.limit,
            remaining=max(0, self.limit - weighted),
            reset_after_seconds=reset_after,
        )
