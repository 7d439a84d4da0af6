from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol


class OtpPurpose(str, Enum):
    REGISTRATION = "registration"
    PASSWORD_RESET = "password_reset"


@dataclass
class OtpRecord:
    salt_b64: str
    digest_b64: str
    created_at: float
    expires_at: float
    attempts: int = 0

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class OtpStorePort(Protocol):
    def put(self, purpose: OtpPurpose, email: str, record: OtpRecord) -> None:
        """Store ``record``, replacing any active code for (purpose, email)."""

    def get(self, purpose: OtpPurpose, email: str) -> Optional[OtpRecord]:
        """Active record or None. Expiry is not checked here."""

    def delete(self, purpose: OtpPurpose, email: str) -> None:
        """Forget the code for (purpose, email)."""

    def sweep(self) -> int:
        """Remove expired records."""


class RateLimiterPort(Protocol):
    def hit(self, key: str) -> bool:
        """Record an event for ``key``; False (and nothing recorded) when over the limit."""

    def clear(self, key: str) -> None:
        """Reset the window for ``key``."""

    def sweep(self) -> int:
        """Drop keys with no events inside the window."""
