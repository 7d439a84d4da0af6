from typing import Protocol


class VerifiedEmailStorePort(Protocol):
    def mark(self, email: str) -> None:
        """Record that ``email`` passed OTP verification, durably."""

    def is_verified(self, email: str) -> bool:
        """True if a non-expired mark exists."""

    def remove(self, email: str) -> None:
        """Consume the mark once the email has been used."""

    def sweep(self) -> int:
        """Drop marks older than the retention window."""
