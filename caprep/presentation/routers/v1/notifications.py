from typing import Annotated

from fastapi import APIRouter, Depends

from caprep.application.announcements import list_notifications
from caprep.domain.ports.unit_of_work import UnitOfWorkPort
from caprep.presentation.dependencies import CurrentUser, get_uow
from caprep.schemas.responses import NotificationOut, NotificationsOut

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationsOut)
async def get_notifications(
    user: CurrentUser, uow: Annotated[UnitOfWorkPort, Depends(get_uow)]
):
    items = await list_notifications(uow, user.id)
    return NotificationsOut(
        data=[
            NotificationOut(
                id=n.id,
                title=n.title,
                message=n.message,
                announcement_id=n.announcement_id,
                read=n.read,
                created_at=n.created_at,
            )
            for n in items
        ]
    )
