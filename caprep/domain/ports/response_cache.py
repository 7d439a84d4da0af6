from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

GUEST = "guest"


@dataclass(frozen=True)
class CacheEntry:
    body: bytes
    media_type: str | None
    status_code: int
    stored_at: float
    ttl_seconds: float

    def is_expired(self, now: float) -> bool:
        return now >= self.stored_at + self.ttl_seconds


class ResponseCachePort(Protocol):
    def lookup(self, identity: str, url: str) -> Optional[CacheEntry]:
        """Return a live entry for (identity, url), or None on miss."""

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
        """Insert or replace the entry for (identity, url)."""

    def invalidate(self, prefixes: str | Sequence[str]) -> int:
        """Drop every entry whose url starts with any prefix, for all identities."""

    def invalidate_all(self) -> int:
        """Drop everything, returns the number of entries removed."""

    def sweep(self) -> int:
        """Remove expired entries, returns how many were removed."""
