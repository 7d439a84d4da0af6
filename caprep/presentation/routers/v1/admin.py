import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from caprep.domain.ports.response_cache import ResponseCachePort
from caprep.presentation.dependencies import AdminUser, get_response_cache
from caprep.schemas.responses import ClearCacheOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/clear-cache", response_model=ClearCacheOut)
async def post_clear_cache(
    admin: AdminUser,
    cache: Annotated[ResponseCachePort, Depends(get_response_cache)],
):
    cleared = cache.invalidate_all()
    logger.info("cache cleared by admin", extra={"user_id": admin.id, "count": cleared})
    return ClearCacheOut(cleared=cleared)
