from fastapi import APIRouter

from caprep.presentation.rate_limits import limiter

router = APIRouter()


@router.get("/healthz")
@limiter.exempt
def healthz() -> dict:
    return {"status": "ok"}
