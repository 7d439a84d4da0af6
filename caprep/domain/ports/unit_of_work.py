from __future__ import annotations

from dataclasses import dataclass
from types import TracebackType
from typing import Protocol, Type

from caprep.domain.ports.announcement_repository import (
    AnnouncementRepositoryPort,
    NotificationRepositoryPort,
)
from caprep.domain.ports.question_repository import QuestionRepositoryPort
from caprep.domain.ports.user_repository import UserRepositoryPort


@dataclass
class UnitOfWorkPort(Protocol):
    """
    Transaction boundary.

    Usage:
        async with uow as tx:
            user = await tx.users.create(User(email=..., ...))
            await tx.commit()
    """

    users: UserRepositoryPort
    questions: QuestionRepositoryPort
    announcements: AnnouncementRepositoryPort
    notifications: NotificationRepositoryPort

    async def __aenter__(self) -> "UnitOfWorkPort":
        """Begin a new transaction. Code here runs before code in the context manager."""

    async def __aexit__(
        self,
        exc_type: Type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        """End the transaction. Code here runs after code in the context manager."""

    async def commit(self) -> None:
        """Commit the transaction."""

    async def rollback(self) -> None:
        """Rollback the transaction."""
