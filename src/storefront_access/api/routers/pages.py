"""
storefront_access.api.routers.pages

Server-rendered page entry points protected by route guards.

Responsibilities:
- `/admin`: admin dashboard, guarded by role.
- `/unauthorized` and `/login`: redirect targets for denied visitors.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse
from starlette.status import HTTP_403_FORBIDDEN

from storefront_access.api.deps import require_admin
from storefront_access.auth.models import Principal

router = APIRouter(tags=["pages"])


@router.get("/admin")
async def admin_dashboard(principal: Principal = Depends(require_admin())) -> dict[str, Any]:
    return {"page": "admin-dashboard", "user": principal.as_dict()}


@router.get("/unauthorized")
async def unauthorized() -> JSONResponse:
    return JSONResponse(
        {"page": "unauthorized", "message": "You do not have access to this page."},
        status_code=HTTP_403_FORBIDDEN,
    )


@router.get("/login")
async def login(redirect: str | None = None) -> dict[str, Any]:
    return {"page": "login", "redirect": redirect}
