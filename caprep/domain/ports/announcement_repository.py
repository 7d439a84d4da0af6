from __future__ import annotations

from typing import Protocol

from caprep.domain.entities import Announcement, Notification


class AnnouncementRepositoryPort(Protocol):
    async def create(self, announcement: Announcement) -> Announcement:
        """Insert and return the announcement with its id set."""

    async def list_active(self, limit: int = 10) -> list[Announcement]:
        """Announcements still valid, highest priority and newest first."""


class NotificationRepositoryPort(Protocol):
    async def create_many(self, notifications: list[Notification]) -> int:
        """Bulk insert, returns the number of rows written."""

    async def list_for_user(self, user_id: str, limit: int = 20) -> list[Notification]:
        """Newest first."""
