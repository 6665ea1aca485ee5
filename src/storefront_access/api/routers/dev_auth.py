from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from starlette.status import HTTP_404_NOT_FOUND

from storefront_access.api.deps import settings_dep
from storefront_access.auth.jwt import issue_token
from storefront_access.auth.models import Role
from storefront_access.security.services import jwt_config
from storefront_access.settings import Settings

router = APIRouter(prefix="/v1/dev", tags=["dev"])


class DevTokenRequest(BaseModel):
    subject: str = Field(min_length=1, max_length=256)
    email: str = Field(default="", max_length=320)
    role: Role = Role.customer
    first_name: str = Field(default="", max_length=50)
    last_name: str = Field(default="", max_length=50)
    ttl_minutes: int = Field(default=60, ge=1, le=24 * 60)


class DevTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


@router.post("/token", response_model=DevTokenResponse)
async def mint_dev_token(
    body: DevTokenRequest,
    settings: Settings = Depends(settings_dep),
) -> DevTokenResponse:
    if settings.env == "prod":
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Not found")

    token = issue_token(
        cfg=jwt_config(settings),
        subject=body.subject,
        email=body.email,
        user_metadata={
            "role": body.role.value,
            "first_name": body.first_name,
            "last_name": body.last_name,
        },
        ttl=timedelta(minutes=body.ttl_minutes),
    )
    return DevTokenResponse(access_token=token)
