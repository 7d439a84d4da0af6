from __future__ import annotations

from typing import Any, Optional, Type

import psycopg
from psycopg_pool import AsyncConnectionPool

from caprep.domain.ports.unit_of_work import UnitOfWorkPort
from caprep.infrastructure.db.announcements_repo import (
    PgAnnouncementRepository,
    PgNotificationRepository,
)
from caprep.infrastructure.db.questions_repo import PgQuestionRepository
from caprep.infrastructure.db.users_repo import PgUserRepository


class PgUnitOfWork(UnitOfWorkPort):
    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool
        self._conn_cm: Optional[Any] = None
        self._conn: Optional[psycopg.AsyncConnection] = None
        self._committed: bool = False
        self.users: PgUserRepository
        self.questions: PgQuestionRepository
        self.announcements: PgAnnouncementRepository
        self.notifications: PgNotificationRepository

    async def __aenter__(self) -> "PgUnitOfWork":
        self._conn_cm = self._pool.connection()
        self._conn = await self._conn_cm.__aenter__()
        self.users = PgUserRepository(self._conn)
        self.questions = PgQuestionRepository(self._conn)
        self.announcements = PgAnnouncementRepository(self._conn)
        self.notifications = PgNotificationRepository(self._conn)
        self._committed = False
        return self

    async def __aexit__(
        self,
        exc_type: Type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: Any,
    ) -> None:
        try:
            if self._conn:
                if exc_value or not self._committed:
                    try:
                        await self._conn.rollback()
                    except psycopg.Error:
                        pass
        finally:
            if self._conn_cm:
                await self._conn_cm.__aexit__(exc_type, exc_value, traceback)
            self._conn = None
            self._conn_cm = None
            self._committed = False

    async def commit(self) -> None:
        if not self._conn:
            raise RuntimeError("No connection available to commit")
        await self._conn.commit()
        self._committed = True

    async def rollback(self) -> None:
        if self._conn:
            await self._conn.rollback()
        self._committed = False
