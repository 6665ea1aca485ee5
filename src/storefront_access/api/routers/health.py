"""
storefront_access.api.routers.health

Liveness and readiness probes.

Responsibilities:
- `/healthz`: the process serves HTTP.
- `/readyz`: the profile store answers and its schema is applied; otherwise
  503 naming the missing tables.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from starlette.responses import JSONResponse
from starlette.status import HTTP_503_SERVICE_UNAVAILABLE

from storefront_access.api.deps import engine_from_app
from storefront_access.db.init_db import missing_tables
from storefront_access.observability.logging import get_logger

log = get_logger(__name__)

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz", response_model=None)
async def readyz(engine: AsyncEngine = Depends(engine_from_app)) -> dict[str, Any] | JSONResponse:
    try:
        missing = await missing_tables(engine)
    except SQLAlchemyError as e:
        log.warning("readyz.db_unreachable", error=str(e))
        return JSONResponse(
            {"status": "not_ready", "reason": "database unreachable"},
            status_code=HTTP_503_SERVICE_UNAVAILABLE,
        )
    if missing:
        return JSONResponse(
            {"status": "not_ready", "reason": "schema not applied", "missing_tables": missing},
            status_code=HTTP_503_SERVICE_UNAVAILABLE,
        )
    return {"status": "ready"}
