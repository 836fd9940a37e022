from typing import Literal

from fastapi import APIRouter, Depends, Header, Query

from app.core.security import check_api_key
from app.analytics import db as analytics_db

router = APIRouter()

RunStatus = Literal["success", "failed", "empty"]


def require_api_key(x_api_key: str | None = Header(default=None, alias="X-API-Key")) -> None:
    check_api_key(x_api_key)


@router.get("/analytics/summary", dependencies=[Depends(require_api_key)])
def generation_summary():
    return analytics_db.get_summary()


@router.get("/analytics/latest", dependencies=[Depends(require_api_key)])
def latest_generation_runs(
    limit: int = Query(default=20, ge=1, le=200),
    status: RunStatus | None = Query(default=None),
):
    return analytics_db.get_latest(limit=limit, status=status)
