from __future__ import annotations

import time
from typing import Callable

from cachetools import TTLCache

from caprep.domain.ports.otp_store import RateLimiterPort


class SlidingWindowRateLimiter(RateLimiterPort):
    """At most ``limit`` events per key within a rolling ``window_seconds``."""

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: float,
        maxsize: int = 10_000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        # a bucket expires one window after its last accepted event
        self._events: TTLCache = TTLCache(maxsize=maxsize, ttl=window_seconds, timer=clock)

    def hit(self, key: str) -> bool:
        now = self._clock()
        recent = [t for t in self._events.get(key, ()) if now - t < self.window_seconds]
        if len(recent) >= self.limit:
            return False
        recent.append(now)
        self._events[key] = recent
        return True

    def clear(self, key: str) -> None:
        self._events.pop(key, None)

    def sweep(self) -> int:
        return len(self._events.expire())
