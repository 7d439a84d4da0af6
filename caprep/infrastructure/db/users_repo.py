from __future__ import annotations

from typing import Optional

import psycopg

from caprep.domain.entities import User
from caprep.domain.ports.user_repository import UserRepositoryPort

_USER_COLUMNS = """
    u.id, u.email, u.full_name, u.role, u.password_hash,
    u.reset_password_token, u.reset_password_expires, u.reset_password_attempts,
    u.created_at,
    COALESCE(
        (SELECT array_agg(b.question_id::text) FROM bookmarks b WHERE b.user_id = u.id),
        '{}'
    )
"""


def _row_to_user(row: tuple) -> User:
    (
        id_,
        email,
        full_name,
        role,
        password_hash,
        reset_token,
        reset_expires,
        reset_attempts,
        created_at,
        bookmarks,
    ) = row
    return User(
        id=str(id_),
        email=str(email),
        full_name=full_name or "",
        role=role,
        password_hash=password_hash,
        reset_password_token=reset_token,
        reset_password_expires=reset_expires,
        reset_password_attempts=reset_attempts or 0,
        created_at=created_at,
        bookmarked_question_ids=list(bookmarks or []),
    )


class PgUserRepository(UserRepositoryPort):
    """
    Postgres implementation of UserRepositoryPort.

    NOTE:
    - This repo is constructed with an *active async connection* supplied by the UoW.
    - It does not commit; the UnitOfWork controls the transaction boundary.
    """

    def __init__(self, conn: psycopg.AsyncConnection) -> None:
        self._conn = conn

    async def create(self, user: User) -> User:
        sql = """
        INSERT INTO users (email, full_name, role, password_hash)
        VALUES (LOWER(TRIM(%s)), %s, %s, %s)
        RETURNING id, created_at
        """
        async with self._conn.cursor() as cur:
            await cur.execute(sql, (user.email, user.full_name, user.role, user.password_hash))
            row = await cur.fetchone()
        if not row:
            raise RuntimeError("insert into users returned no row")
        user.id, user.created_at = str(row[0]), row[1]
        return user

    async def get_by_id(self, user_id: str) -> Optional[User]:
        sql = f"SELECT {_USER_COLUMNS} FROM users u WHERE u.id::text = %s"
        async with self._conn.cursor() as cur:
            await cur.execute(sql, (user_id,))
            row = await cur.fetchone()
        return _row_to_user(row) if row else None

    async def get_by_email(self, email: str) -> Optional[User]:
        sql = f"SELECT {_USER_COLUMNS} FROM users u WHERE u.email = LOWER(TRIM(%s))"
        async with self._conn.cursor() as cur:
            await cur.execute(sql, (email,))
            row = await cur.fetchone()
        return _row_to_user(row) if row else None

    async def exists_by_email(self, email: str) -> bool:
        sql = "SELECT 1 FROM users WHERE email = LOWER(TRIM(%s))"
        async with self._conn.cursor() as cur:
            await cur.execute(sql, (email,))
            return await cur.fetchone() is not None

    async def save_password_reset(self, user: User) -> None:
        sql = """
        UPDATE users
        SET password_hash = %s,
            reset_password_token = %s,
            reset_password_expires = %s,
            reset_password_attempts = %s,
            updated_at = now()
        WHERE id::text = %s
        """
        async with self._conn.cursor() as cur:
            await cur.execute(
                sql,
                (
                    user.password_hash,
                    user.reset_password_token,
                    user.reset_password_expires,
                    user.reset_password_attempts,
                    user.id,
                ),
            )

    async def list_ids(self) -> list[str]:
        async with self._conn.cursor() as cur:
            await cur.execute("SELECT id FROM users ORDER BY created_at")
            rows = await cur.fetchall()
        return [str(r[0]) for r in rows]

    async def add_bookmark(self, user_id: str, question_id: str) -> None:
        sql = """
        INSERT INTO bookmarks (user_id, question_id)
        VALUES (%s::uuid, %s::uuid)
        ON CONFLICT DO NOTHING
        """
        async with self._conn.cursor() as cur:
            await cur.execute(sql, (user_id, question_id))
