from typing import Annotated, Callable

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from caprep.application.announcements import (
    create_announcement,
    list_announcements,
    notify_all_users,
)
from caprep.domain.entities import Announcement
from caprep.domain.ports.response_cache import ResponseCachePort
from caprep.domain.ports.unit_of_work import UnitOfWorkPort
from caprep.presentation.caching import CachingRoute, cached
from caprep.presentation.dependencies import (
    AdminUser,
    get_response_cache,
    get_uow,
    get_uow_factory,
)
from caprep.schemas.requests import AnnouncementIn
from caprep.schemas.responses import AnnouncementOut, AnnouncementsOut

PREFIX = "/announcements"
CACHE_PREFIX = "/v1" + PREFIX

router = APIRouter(prefix=PREFIX, tags=["Announcements"], route_class=CachingRoute)


def _out(a: Announcement) -> AnnouncementOut:
    return AnnouncementOut(
        id=a.id,
        title=a.title,
        content=a.content,
        priority=a.priority,
        valid_until=a.valid_until,
        created_at=a.created_at,
    )


@router.get("", response_model=AnnouncementsOut)
@cached(ttl_seconds=300)
async def get_announcements(
    uow: Annotated[UnitOfWorkPort, Depends(get_uow)],
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
):
    items = await list_announcements(uow, limit=limit)
    return AnnouncementsOut(data=[_out(a) for a in items])


@router.post("", status_code=201, response_model=AnnouncementOut)
async def post_announcement(
    body: AnnouncementIn,
    admin: AdminUser,
    background: BackgroundTasks,
    uow: Annotated[UnitOfWorkPort, Depends(get_uow)],
    uow_factory: Annotated[Callable[[], UnitOfWorkPort], Depends(get_uow_factory)],
    cache: Annotated[ResponseCachePort, Depends(get_response_cache)],
):
    created = await create_announcement(
        uow,
        Announcement(
            title=body.title,
            content=body.content,
            priority=body.priority,
            valid_until=body.valid_until,
            created_by=admin.id,
        ),
    )
    cache.invalidate(CACHE_PREFIX)
    background.add_task(notify_all_users, uow_factory, created)
    return _out(created)
