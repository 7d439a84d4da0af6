from __future__ import annotations

from typing import Optional, Protocol

from caprep.domain.entities import User


class UserRepositoryPort(Protocol):
    async def create(self, user: User) -> User:
        """Insert a new account and return it with its id set."""

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Return None if not found."""

    async def get_by_email(self, email: str) -> Optional[User]:
        """Case-insensitive lookup including password and reset fields."""

    async def exists_by_email(self, email: str) -> bool:
        """True if an account uses this email."""

    async def save_password_reset(self, user: User) -> None:
        """Persist password hash and reset token/expiry fields of ``user``."""

    async def list_ids(self) -> list[str]:
        """Ids of every account, used for notification fan-out."""

    async def add_bookmark(self, user_id: str, question_id: str) -> None:
        """Bookmark a question for a user (idempotent)."""
