from __future__ import annotations

import logging

from caprep.domain.entities import Question
from caprep.domain.errors import NotFoundError, ValidationError
from caprep.domain.ports.unit_of_work import UnitOfWorkPort

logger = logging.getLogger(__name__)

_REQUIRED = ("subject", "paper_type", "year", "month", "exam_stage", "question_number")


def _validate(question: Question) -> None:
    missing = [name for name in _REQUIRED if not getattr(question, name)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


async def create_question(uow: UnitOfWorkPort, question: Question) -> Question:
    _validate(question)
    async with uow as tx:
        created = await tx.questions.create(question)
        await tx.commit()
    logger.info("question created", extra={"question_id": created.id})
    return created


async def update_question(uow: UnitOfWorkPort, question: Question) -> Question:
    _validate(question)
    async with uow as tx:
        updated = await tx.questions.update(question)
        if updated is None:
            raise NotFoundError("Question not found")
        await tx.commit()
    return updated


async def delete_question(uow: UnitOfWorkPort, question_id: str) -> None:
    async with uow as tx:
        if not await tx.questions.delete(question_id):
            raise NotFoundError("Question not found")
        await tx.commit()


async def list_questions(
    uow: UnitOfWorkPort,
    *,
    user_id: str,
    subject: str | None = None,
    year: str | None = None,
    bookmarked: bool = False,
) -> list[Question]:
    async with uow as tx:
        only_ids = None
        if bookmarked:
            user = await tx.users.get_by_id(user_id)
            only_ids = list(user.bookmarked_question_ids) if user else []
        return await tx.questions.search(subject=subject, year=year, only_ids=only_ids)


async def count_questions(uow: UnitOfWorkPort) -> int:
    async with uow as tx:
        return await tx.questions.count()


async def bookmark_question(uow: UnitOfWorkPort, user_id: str, question_id: str) -> None:
    async with uow as tx:
        if await tx.questions.get(question_id) is None:
            raise NotFoundError("Question not found")
        await tx.users.add_bookmark(user_id, question_id)
        await tx.commit()
