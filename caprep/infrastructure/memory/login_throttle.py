from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from cachetools import TTLCache

from caprep.domain.ports.login_throttle import LoginThrottlePort


@dataclass
class _Attempts:
    count: int = 0
    blocked_until: float = 0.0


class InMemoryLoginThrottle(LoginThrottlePort):
    """
    Consecutive failed logins per ``email:ip`` key with a lockout window.

    A key is forgotten ``lockout_seconds`` after its last failure, which
    also ends any lockout it carried.
    """

    def __init__(
        self,
        *,
        max_attempts: int = 5,
        lockout_seconds: float = 15 * 60,
        maxsize: int = 10_000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_attempts = max_attempts
        self.lockout_seconds = lockout_seconds
        self._clock = clock
        self._attempts: TTLCache = TTLCache(maxsize=maxsize, ttl=lockout_seconds, timer=clock)

    def blocked_for(self, key: str) -> float:
        data = self._attempts.get(key)
        if data is None or not data.blocked_until:
            return 0.0
        remaining = data.blocked_until - self._clock()
        return remaining if remaining > 0 else 0.0

    def record_failure(self, key: str) -> int:
        now = self._clock()
        data = self._attempts.get(key) or _Attempts()
        data.count += 1
        if data.count >= self.max_attempts:
            data.blocked_until = now + self.lockout_seconds
        self._attempts[key] = data
        return data.count

    def record_success(self, key: str) -> None:
        self._attempts.pop(key, None)

    def sweep(self) -> int:
        return len(self._attempts.expire())
