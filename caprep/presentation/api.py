from fastapi import APIRouter

from caprep.presentation.routers.v1.admin import router as admin_router
from caprep.presentation.routers.v1.announcements import router as announcements_router
from caprep.presentation.routers.v1.auth import router as auth_router
from caprep.presentation.routers.v1.notifications import router as notifications_router
from caprep.presentation.routers.v1.questions import router as questions_router

api = APIRouter()

# Add all v1 routers here
routers = (
    auth_router,
    questions_router,
    announcements_router,
    notifications_router,
    admin_router,
)
for router in routers:
    api.include_router(router, prefix="/v1")
