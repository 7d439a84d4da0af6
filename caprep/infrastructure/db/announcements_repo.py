from __future__ import annotations

import psycopg

from caprep.domain.entities import Announcement, Notification
from caprep.domain.ports.announcement_repository import (
    AnnouncementRepositoryPort,
    NotificationRepositoryPort,
)


class PgAnnouncementRepository(AnnouncementRepositoryPort):
    def __init__(self, conn: psycopg.AsyncConnection) -> None:
        self._conn = conn

    async def create(self, announcement: Announcement) -> Announcement:
        sql = """
        INSERT INTO announcements (title, content, priority, valid_until, created_by)
        VALUES (%s, %s, %s, %s, %s::uuid)
        RETURNING id, created_at
        """
        async with self._conn.cursor() as cur:
            await cur.execute(
                sql,
                (
                    announcement.title,
                    announcement.content,
                    announcement.priority,
                    announcement.valid_until,
                    announcement.created_by,
                ),
            )
            row = await cur.fetchone()
        announcement.id, announcement.created_at = str(row[0]), row[1]
        return announcement

    async def list_active(self, limit: int = 10) -> list[Announcement]:
        sql = """
        SELECT id, title, content, priority, valid_until, created_by, created_at
        FROM announcements
        WHERE valid_until >= now()
        ORDER BY priority DESC, created_at DESC
        LIMIT %s
        """
        async with self._conn.cursor() as cur:
            await cur.execute(sql, (limit,))
            rows = await cur.fetchall()
        return [
            Announcement(
                id=str(r[0]),
                title=r[1],
                content=r[2],
                priority=r[3],
                valid_until=r[4],
                created_by=str(r[5]) if r[5] else None,
                created_at=r[6],
            )
            for r in rows
        ]


class PgNotificationRepository(NotificationRepositoryPort):
    def __init__(self, conn: psycopg.AsyncConnection) -> None:
        self._conn = conn

    async def create_many(self, notifications: list[Notification]) -> int:
        if not notifications:
            return 0
        sql = """
        INSERT INTO notifications (user_id, title, message, announcement_id)
        VALUES (%s::uuid, %s, %s, %s::uuid)
        """
        async with self._conn.cursor() as cur:
            await cur.executemany(
                sql,
                [(n.user_id, n.title, n.message, n.announcement_id) for n in notifications],
            )
        return len(notifications)

    async def list_for_user(self, user_id: str, limit: int = 20) -> list[Notification]:
        sql = """
        SELECT id, user_id, title, message, announcement_id, read, created_at
        FROM notifications
        WHERE user_id::text = %s
        ORDER BY created_at DESC
        LIMIT %s
        """
        async with self._conn.cursor() as cur:
            await cur.execute(sql, (user_id, limit))
            rows = await cur.fetchall()
        return [
            Notification(
                id=str(r[0]),
                user_id=str(r[1]),
                title=r[2],
                message=r[3],
                announcement_id=str(r[4]) if r[4] else None,
                read=r[5],
                created_at=r[6],
            )
            for r in rows
        ]
