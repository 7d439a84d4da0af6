from __future__ import annotations

from typing import Optional

import psycopg

from caprep.domain.entities import Question
from caprep.domain.ports.question_repository import QuestionRepositoryPort

_COLUMNS = (
    "id, subject, paper_type, year, month, exam_stage, "
    "question_number, question_text, answer_text"
)


def _row_to_question(row: tuple) -> Question:
    id_, subject, paper_type, year, month, stage, number, text, answer = row
    return Question(
        id=str(id_),
        subject=subject,
        paper_type=paper_type,
        year=year,
        month=month,
        exam_stage=stage,
        question_number=number,
        question_text=text or "",
        answer_text=answer or "",
    )


class PgQuestionRepository(QuestionRepositoryPort):
    def __init__(self, conn: psycopg.AsyncConnection) -> None:
        self._conn = conn

    def _values(self, q: Question) -> tuple:
        return (
            q.subject,
            q.paper_type,
            q.year,
            q.month,
            q.exam_stage,
            q.question_number,
            q.question_text,
            q.answer_text,
        )

    async def create(self, question: Question) -> Question:
        sql = f"""
        INSERT INTO questions (subject, paper_type, year, month, exam_stage,
                               question_number, question_text, answer_text)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING {_COLUMNS}
        """
        async with self._conn.cursor() as cur:
            await cur.execute(sql, self._values(question))
            row = await cur.fetchone()
        return _row_to_question(row)

    async def update(self, question: Question) -> Optional[Question]:
        sql = f"""
        UPDATE questions
        SET subject = %s, paper_type = %s, year = %s, month = %s, exam_stage = %s,
            question_number = %s, question_text = %s, answer_text = %s,
            updated_at = now()
        WHERE id::text = %s
        RETURNING {_COLUMNS}
        """
        async with self._conn.cursor() as cur:
            await cur.execute(sql, (*self._values(question), question.id))
            row = await cur.fetchone()
        return _row_to_question(row) if row else None

    async def delete(self, question_id: str) -> bool:
        async with self._conn.cursor() as cur:
            await cur.execute("DELETE FROM questions WHERE id::text = %s", (question_id,))
            return cur.rowcount > 0

    async def get(self, question_id: str) -> Optional[Question]:
        async with self._conn.cursor() as cur:
            await cur.execute(
                f"SELECT {_COLUMNS} FROM questions WHERE id::text = %s", (question_id,)
            )
            row = await cur.fetchone()
        return _row_to_question(row) if row else None

    async def search(
        self,
        *,
        subject: str | None = None,
        year: str | None = None,
        only_ids: list[str] | None = None,
    ) -> list[Question]:
        clauses: list[str] = []
        params: list = []
        if subject:
            clauses.append("subject = %s")
            params.append(subject)
        if year:
            clauses.append("year = %s")
            params.append(year)
        if only_ids is not None:
            clauses.append("id::text = ANY(%s)")
            params.append(only_ids)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        sql = f"SELECT {_COLUMNS} FROM questions {where} ORDER BY year DESC, question_number"
        async with self._conn.cursor() as cur:
            await cur.execute(sql, params)
            rows = await cur.fetchall()
        return [_row_to_question(r) for r in rows]

    async def count(self) -> int:
        async with self._conn.cursor() as cur:
            await cur.execute("SELECT count(*) FROM questions")
            row = await cur.fetchone()
        return int(row[0])
