from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Sequence

from cachetools import TLRUCache

from caprep.domain.ports.response_cache import CacheEntry, ResponseCachePort

logger = logging.getLogger(__name__)


def _entry_expiry(_key: tuple[str, str], entry: CacheEntry, now: float) -> float:
    return now + entry.ttl_seconds


class InMemoryResponseCache(ResponseCachePort):
    """
    Process-local response cache keyed by ``(identity, url)``.

    Each entry lives for the TTL of the route that stored it. Expired
    entries are never returned and are dropped in bulk by ``sweep()``,
    which the background sweeper calls on a fixed interval.
    """

    def __init__(
        self, *, maxsize: int = 10_000, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self._clock = clock
        self._entries: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_entry_expiry, timer=clock)

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, identity: str, url: str) -> Optional[CacheEntry]:
        return self._entries.get((identity, url))

    def store(
        self,
        identity: str,
        url: str,
        *,
        body: bytes,
        media_type: str | None,
        status_code: int,
        ttl_seconds: float,
    ) -> None:
        if ttl_seconds <= 0:
            return
        self._entries[(identity, url)] = CacheEntry(
            body=body,
            media_type=media_type,
            status_code=status_code,
            stored_at=self._clock(),
            ttl_seconds=ttl_seconds,
        )
        logger.debug("cache set", extra={"identity": identity, "url": url, "ttl": ttl_seconds})

    def invalidate(self, prefixes: str | Sequence[str]) -> int:
        if isinstance(prefixes, str):
            prefixes = (prefixes,)
        prefixes = tuple(p for p in prefixes if isinstance(p, str) and p)
        if not prefixes:
            return 0
        doomed = [key for key in self._entries.keys() if key[1].startswith(prefixes)]
        for key in doomed:
            self._entries.pop(key, None)
        if doomed:
            logger.debug(
                "cache invalidated", extra={"prefixes": list(prefixes), "count": len(doomed)}
            )
        return len(doomed)

    def invalidate_all(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        logger.info("cache flushed", extra={"count": count})
        return count

    def sweep(self) -> int:
        return len(self._entries.expire())
