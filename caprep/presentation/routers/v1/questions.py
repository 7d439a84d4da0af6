from typing import Annotated

from fastapi import APIRouter, Depends, Query

from caprep.application.questions import (
    bookmark_question,
    count_questions,
    create_question,
    delete_question,
    list_questions,
    update_question,
)
from caprep.domain.entities import Question
from caprep.domain.ports.response_cache import ResponseCachePort
from caprep.domain.ports.unit_of_work import UnitOfWorkPort
from caprep.presentation.caching import CachingRoute, cached
from caprep.presentation.dependencies import (
    AdminUser,
    CurrentUser,
    get_response_cache,
    get_uow,
)
from caprep.schemas.requests import QuestionIn
from caprep.schemas.responses import CountOut, MessageOut, QuestionOut, QuestionsOut

PREFIX = "/questions"
# absolute prefix as stored in the response cache
CACHE_PREFIX = "/v1" + PREFIX

router = APIRouter(prefix=PREFIX, tags=["Questions"], route_class=CachingRoute)

Uow = Annotated[UnitOfWorkPort, Depends(get_uow)]
Cache = Annotated[ResponseCachePort, Depends(get_response_cache)]


def _out(question: Question) -> QuestionOut:
    return QuestionOut(
        id=question.id,
        subject=question.subject,
        paper_type=question.paper_type,
        year=question.year,
        month=question.month,
        exam_stage=question.exam_stage,
        question_number=question.question_number,
        question_text=question.question_text,
        answer_text=question.answer_text,
    )


def _entity(body: QuestionIn, question_id: str | None = None) -> Question:
    return Question(id=question_id, **body.model_dump())


@router.get("", response_model=QuestionsOut)
@cached(ttl_seconds=300)
async def get_questions(
    user: CurrentUser,
    uow: Uow,
    subject: str | None = None,
    year: str | None = None,
    bookmarked: Annotated[bool, Query()] = False,
):
    questions = await list_questions(
        uow, user_id=user.id, subject=subject, year=year, bookmarked=bookmarked
    )
    return QuestionsOut(count=len(questions), data=[_out(q) for q in questions])


@router.get("/count", response_model=CountOut)
@cached(ttl_seconds=3600)
async def get_questions_count(uow: Uow):
    return CountOut(count=await count_questions(uow))


@router.post("", status_code=201, response_model=QuestionOut)
async def post_question(body: QuestionIn, admin: AdminUser, uow: Uow, cache: Cache):
    created = await create_question(uow, _entity(body))
    cache.invalidate(CACHE_PREFIX)
    return _out(created)


@router.put("/{question_id}", response_model=QuestionOut)
async def put_question(
    question_id: str, body: QuestionIn, admin: AdminUser, uow: Uow, cache: Cache
):
    updated = await update_question(uow, _entity(body, question_id))
    cache.invalidate(CACHE_PREFIX)
    return _out(updated)


@router.delete("/{question_id}", response_model=MessageOut)
async def remove_question(question_id: str, admin: AdminUser, uow: Uow, cache: Cache):
    await delete_question(uow, question_id)
    cache.invalidate(CACHE_PREFIX)
    return MessageOut(message="Question deleted")


@router.post("/{question_id}/bookmark", response_model=MessageOut)
async def post_bookmark(question_id: str, user: CurrentUser, uow: Uow, cache: Cache):
    await bookmark_question(uow, user.id, question_id)
    cache.invalidate(CACHE_PREFIX)
    return MessageOut(message="Question bookmarked")
