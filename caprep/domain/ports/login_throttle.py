from typing import Protocol


class LoginThrottlePort(Protocol):
    def blocked_for(self, key: str) -> float:
        """Seconds left in the lockout for ``key``, 0 when not blocked."""

    def record_failure(self, key: str) -> int:
        """Count a failed attempt, returns the consecutive failure count."""

    def record_success(self, key: str) -> None:
        """Clear the counter after a good login."""

    def sweep(self) -> int:
        """Purge entries whose window has passed."""
