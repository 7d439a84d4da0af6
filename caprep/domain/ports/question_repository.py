from __future__ import annotations

from typing import Optional, Protocol

from caprep.domain.entities import Question


class QuestionRepositoryPort(Protocol):
    async def create(self, question: Question) -> Question:
        """Insert and return the question with its id set."""

    async def update(self, question: Question) -> Optional[Question]:
        """Replace fields of an existing question, None if missing."""

    async def delete(self, question_id: str) -> bool:
        """True if a row was removed."""

    async def get(self, question_id: str) -> Optional[Question]:
        """Return None if not found."""

    async def search(
        self,
        *,
        subject: str | None = None,
        year: str | None = None,
        only_ids: list[str] | None = None,
    ) -> list[Question]:
        """Filtered listing; ``only_ids`` restricts to the given ids."""

    async def count(self) -> int:
        """Total number of questions."""
