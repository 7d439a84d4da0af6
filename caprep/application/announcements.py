from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from caprep.domain.entities import Announcement, Notification
from caprep.domain.errors import ValidationError
from caprep.domain.ports.unit_of_work import UnitOfWorkPort

logger = logging.getLogger(__name__)


async def create_announcement(
    uow: UnitOfWorkPort, announcement: Announcement
) -> Announcement:
    if not announcement.title or not announcement.content:
        raise ValidationError("Title and content are required")
    if announcement.valid_until is None:
        announcement.valid_until = datetime.now(timezone.utc) + timedelta(days=7)
    async with uow as tx:
        created = await tx.announcements.create(announcement)
        await tx.commit()
    return created


async def list_announcements(uow: UnitOfWorkPort, limit: int = 10) -> list[Announcement]:
    async with uow as tx:
        return await tx.announcements.list_active(limit=max(1, min(limit, 50)))


async def notify_all_users(
    uow_factory: Callable[[], UnitOfWorkPort], announcement: Announcement
) -> int:
    """
    Fan an announcement out as one notification per account.

    Runs after the response has been sent; failures are logged here and
    never reach the request that triggered it.
    """
    try:
        async with uow_factory() as tx:
            user_ids = await tx.users.list_ids()
            written = await tx.notifications.create_many(
                [
                    Notification(
                        user_id=uid,
                        title=announcement.title,
                        message=announcement.content[:200],
                        announcement_id=announcement.id,
                    )
                    for uid in user_ids
                ]
            )
            await tx.commit()
    except Exception:
        logger.exception(
            "notification fan-out failed", extra={"announcement_id": announcement.id}
        )
        return 0
    logger.info(
        "notifications created",
        extra={"announcement_id": announcement.id, "count": written},
    )
    return written


async def list_notifications(uow: UnitOfWorkPort, user_id: str) -> list[Notification]:
    async with uow as tx:
        return await tx.notifications.list_for_user(user_id)
