from __future__ import annotations

import json

import httpx
import pytest
from fastapi import Depends, FastAPI, Request
from starlette.responses import RedirectResponse

from storefront_access.api.deps import require_customer, require_permissions
from storefront_access.auth.models import Role
from storefront_access.auth.rbac import Permission
from storefront_access.auth.resolver import PrincipalResolver
from storefront_access.security.guards import GuardOptions, GuardRedirect, GuardResult, RouteGuard


class ExplodingTransport:
    def client_for(self, request):
        raise RuntimeError("session store unreachable")


class ExplodingResolver(PrincipalResolver):
    async def resolve_or_none(self, request, *, action):
        raise RuntimeError("resolver bug")


@pytest.mark.asyncio
async def test_unauthenticated_visitors_go_to_login(security, anonymous) -> None:
    result = await security.guard.guard_route(anonymous)
    assert result == GuardResult(
        allowed=False, redirect_to="/login", error="Authentication required"
    )

    custom = await security.guard.guard_route(anonymous, GuardOptions(redirect_to="/sign-in"))
    assert custom.redirect_to == "/sign-in"


@pytest.mark.asyncio
async def test_public_pages_allow_anonymous_visitors(security, anonymous, as_user) -> None:
    result = await security.guard.guard_route(anonymous, GuardOptions(require_auth=False))
    assert result == GuardResult(allowed=True)

    signed_in = await security.guard.preset(as_user("u1"), "public")
    assert signed_in.allowed and signed_in.principal is not None


@pytest.mark.asyncio
async def test_insufficient_role_goes_to_unauthorized(security, as_user) -> None:
    result = await security.guard.guard_route(
        as_user("c1", "customer"), GuardOptions(required_role=Role.admin)
    )
    assert not result.allowed
    assert result.redirect_to == "/unauthorized"
    assert result.principal is not None and result.principal.id == "c1"

    result = await security.guard.guard_route(
        as_user("a1", "admin"), GuardOptions(required_role=Role.moderator)
    )
    assert result.allowed and result.principal.role is Role.admin


@pytest.mark.asyncio
async def test_allowed_roles_and_permissions(security, as_user) -> None:
    only_mods = GuardOptions(allowed_roles=(Role.moderator,))
    assert (await security.guard.guard_route(as_user("m1", "moderator"), only_mods)).allowed
    denied = await security.guard.guard_route(as_user("a1", "admin"), only_mods)
    assert not denied.allowed and denied.redirect_to == "/unauthorized"

    needs_delete = GuardOptions(required_permissions=(Permission.products_delete,))
    assert not (await security.guard.guard_route(as_user("m1", "moderator"), needs_delete)).allowed
    assert (await security.guard.guard_route(as_user("a1", "admin"), needs_delete)).allowed


@pytest.mark.asyncio
async def test_presets(security, as_user) -> None:
    assert (await security.guard.preset(as_user("m1", "moderator"), "moderator_or_admin")).allowed
    assert not (await security.guard.preset(as_user("c1", "customer"), "product_management")).allowed
    assert (await security.guard.preset(as_user("m1", "moderator"), "order_management")).allowed
    assert not (await security.guard.preset(as_user("m1", "moderator"), "user_management")).allowed

    assert await security.guard.can_access_admin(as_user("a1", "admin"))
    assert not await security.guard.can_access_admin(as_user("m1", "moderator"))
    assert await security.guard.can_access_moderator(as_user("m1", "moderator"))
    assert not await security.guard.can_access_moderator(as_user("c1", "customer"))


@pytest.mark.asyncio
async def test_malformed_session_is_treated_as_anonymous(security, make_token, request_with) -> None:
    request = request_with(headers={"authorization": f"Bearer {make_token('u1', 'root')}"})
    result = await security.guard.guard_route(request)
    assert not result.allowed
    assert result.redirect_to == "/login"


@pytest.mark.asyncio
async def test_session_backend_outage_is_treated_as_anonymous(anonymous) -> None:
    guard = RouteGuard(resolver=PrincipalResolver(transport=ExplodingTransport()))
    result = await guard.guard_route(anonymous)
    assert result == GuardResult(
        allowed=False, redirect_to="/login", error="Authentication required"
    )


@pytest.mark.asyncio
async def test_unexpected_failures_redirect_to_error_page(anonymous) -> None:
    guard = RouteGuard(resolver=ExplodingResolver(transport=ExplodingTransport()))
    result = await guard.guard_route(anonymous)
    assert result == GuardResult(allowed=False, redirect_to="/error", error="Route guard error")


@pytest.mark.asyncio
async def test_api_route_guard_builds_json_denials(security, anonymous, as_user) -> None:
    result, response = await security.guard.api_route_guard(anonymous)
    assert not result.allowed
    assert response.status_code == 401
    assert json.loads(response.body) == {"error": "Authentication required", "code": "UNAUTHORIZED"}

    admin_only = GuardOptions(required_role=Role.admin)
    result, response = await security.guard.api_route_guard(as_user("c1"), admin_only)
    assert response.status_code == 403
    assert json.loads(response.body)["code"] == "FORBIDDEN"

    result, response = await security.guard.api_route_guard(as_user("a1", "admin"), admin_only)
    assert result.allowed and response is None


@pytest.mark.asyncio
async def test_page_dependencies_redirect(security, make_token) -> None:
    app = FastAPI()
    app.state.security = security

    @app.exception_handler(GuardRedirect)
    async def _redirect(_: Request, exc: GuardRedirect) -> RedirectResponse:
        return RedirectResponse(exc.location, status_code=302)

    @app.get("/catalog/edit")
    async def edit(principal=Depends(require_permissions([Permission.products_write]))):
        return {"user": principal.id}

    @app.get("/account")
    async def account(principal=Depends(require_customer())):
        return {"role": principal.role}

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        r = await client.get("/account")
        assert (r.status_code, r.headers["location"]) == (302, "/login")

        customer = {"authorization": f"Bearer {make_token('c1', 'customer')}"}
        assert (await client.get("/account", headers=customer)).json() == {"role": "customer"}
        r = await client.get("/catalog/edit", headers=customer)
        assert (r.status_code, r.headers["location"]) == (302, "/unauthorized")

        moderator = {"authorization": f"Bearer {make_token('m1', 'moderator')}"}
        assert (await client.get("/catalog/edit", headers=moderator)).json() == {"user": "m1"}
