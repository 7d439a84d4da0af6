from __future__ import annotations

import time
from typing import Callable, Optional

from cachetools import TTLCache

from caprep.domain.ports.otp_store import OtpPurpose, OtpRecord, OtpStorePort


class InMemoryOtpStore(OtpStorePort):
    """
    Active OTP per ``(purpose, email)``.

    ``retention_seconds`` must outlive the code TTL so a late verify still
    finds the record and can report it as expired rather than missing.
    """

    def __init__(
        self,
        *,
        retention_seconds: float = 30 * 60,
        maxsize: int = 10_000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._records: TTLCache = TTLCache(maxsize=maxsize, ttl=retention_seconds, timer=clock)

    def put(self, purpose: OtpPurpose, email: str, record: OtpRecord) -> None:
        self._records[(purpose, email)] = record

    def get(self, purpose: OtpPurpose, email: str) -> Optional[OtpRecord]:
        return self._records.get((purpose, email))

    def delete(self, purpose: OtpPurpose, email: str) -> None:
        self._records.pop((purpose, email), None)

    def sweep(self) -> int:
        return len(self._records.expire())
