from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class SendResult:
    success: bool
    message_id: str | None = None
    error_kind: str | None = None
    error: str | None = None


class EmailPort(Protocol):
    async def send(
        self,
        *,
        to: str,
        subject: str,
        html: str,
        text: str = "",
    ) -> SendResult:
        """Send an email. Provider failures are reported, not raised."""
