"""
tests.test_smoke

End-to-end checks against the assembled FastAPI app.

Responsibilities:
- Ensure the app boots, serves probes and sets edge headers.
- Exercise the dev token -> session API -> guarded page flow over HTTP.
- Cover the CSRF-protected profile update end to end.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
import pytest
from fastapi import FastAPI

from storefront_access.api.app import create_app
from storefront_access.db.repositories.customers import CustomerRepo
from storefront_access.settings import Settings


@asynccontextmanager
async def running(settings: Settings) -> AsyncIterator[tuple[httpx.AsyncClient, FastAPI]]:
    app = create_app(settings=settings)

    # httpx ASGITransport does not manage lifespan automatically; do it explicitly.
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            yield client, app


async def _token(client: httpx.AsyncClient, subject: str, role: str, **extra: str) -> str:
    r = await client.post("/v1/dev/token", json={"subject": subject, "role": role, **extra})
    assert r.status_code == 200
    return r.json()["access_token"]


@pytest.mark.asyncio
async def test_health_endpoints(settings: Settings) -> None:
    async with running(settings) as (client, _):
        r = await client.get("/healthz")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"

        r = await client.get("/readyz")
        assert r.status_code == 200
        assert r.json()["status"] == "ready"


@pytest.mark.asyncio
async def test_edge_headers(settings: Settings) -> None:
    async with running(settings) as (client, _):
        r = await client.get("/healthz", headers={"x-request-id": "req-123"})
        assert r.headers["x-request-id"] == "req-123"
        assert r.headers["x-frame-options"] == "DENY"
        assert r.headers["x-content-type-options"] == "nosniff"
        assert r.headers["referrer-policy"] == "strict-origin-when-cross-origin"

        r = await client.get("/healthz")
        assert r.headers["x-request-id"]


@pytest.mark.asyncio
async def test_session_api(settings: Settings) -> None:
    async with running(settings) as (client, _):
        r = await client.get("/api/auth/session")
        assert r.status_code == 401
        assert r.json()["code"] == "NOT_AUTHENTICATED"

        token = await _token(
            client, "u1", "moderator", email="mo@example.com", first_name="Mo", last_name="Dee"
        )
        r = await client.get("/api/auth/session", headers={"authorization": f"Bearer {token}"})
        assert r.status_code == 200
        assert r.json() == {
            "user": {
                "id": "u1",
                "email": "mo@example.com",
                "role": "moderator",
                "firstName": "Mo",
                "lastName": "Dee",
                "avatarUrl": None,
            }
        }

        r = await client.post("/api/auth/session", headers={"authorization": f"Bearer {token}"})
        assert r.status_code == 405


@pytest.mark.asyncio
async def test_profile_names_come_from_the_customers_table(settings: Settings) -> None:
    async with running(settings) as (client, app):
        async with app.state.sessionmaker() as session:
            await CustomerRepo(session).upsert_names(
                customer_id="u2", email="u2@example.com", first_name="Grace", last_name="Hopper"
            )
            await session.commit()

        token = await _token(client, "u2", "customer", first_name="G")
        r = await client.get(
            "/api/auth/session", headers={"cookie": f"{settings.session_cookie_name}={token}"}
        )
        assert r.status_code == 200
        user = r.json()["user"]
        assert (user["firstName"], user["lastName"]) == ("Grace", "Hopper")


PROFILE = {
    "firstName": "Ada",
    "lastName": "Lovelace",
    "addressLine1": "12 Analytical Row",
    "city": "London",
    "state": "Greater London",
    "postalCode": "N1 9GU",
    "country": "UK",
    "phoneNumber": "+441234567890",
}


@pytest.mark.asyncio
async def test_profile_update_requires_a_matching_csrf_token(settings: Settings) -> None:
    async with running(settings) as (client, _):
        r = await client.get("/api/profile/csrf")
        assert r.status_code == 200
        csrf = r.json()["csrfToken"]
        assert f"{settings.csrf_cookie_name}={csrf}" in r.headers["set-cookie"]
        client.cookies.clear()

        r = await client.put("/api/profile", json=PROFILE)
        assert (r.status_code, r.json()["code"]) == (401, "NOT_AUTHENTICATED")

        token = await _token(client, "u3", "customer", first_name="A")
        signed_in = {"authorization": f"Bearer {token}"}
        r = await client.put("/api/profile", json=PROFILE, headers=signed_in)
        assert (r.status_code, r.json()["code"]) == (403, "INVALID_CSRF_TOKEN")

        r = await client.put(
            "/api/profile",
            json=PROFILE,
            headers={
                **signed_in,
                "cookie": f"{settings.csrf_cookie_name}={csrf}",
                settings.csrf_header_name: csrf,
            },
        )
        assert r.status_code == 200
        assert r.json()["profile"]["city"] == "London"

        r = await client.get("/api/auth/session", headers=signed_in)
        user = r.json()["user"]
        assert (user["firstName"], user["lastName"]) == ("Ada", "Lovelace")


@pytest.mark.asyncio
async def test_admin_page_guard(settings: Settings) -> None:
    async with running(settings) as (client, _):
        r = await client.get("/admin")
        assert r.status_code == 302
        assert r.headers["location"] == "/login?redirect=%2Fadmin"

        customer = await _token(client, "c1", "customer")
        r = await client.get("/admin", headers={"authorization": f"Bearer {customer}"})
        assert r.status_code == 302
        assert r.headers["location"] == "/unauthorized"

        admin = await _token(client, "a1", "admin")
        r = await client.get("/admin", headers={"authorization": f"Bearer {admin}"})
        assert r.status_code == 200
        body = r.json()
        assert body["page"] == "admin-dashboard"
        assert body["user"]["id"] == "a1"
        assert body["user"]["role"] == "admin"


@pytest.mark.asyncio
async def test_prod_mode(tmp_path) -> None:
    settings = Settings(
        env="prod",
        jwt_secret="test-secret",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'prod.db'}",
    )
    async with running(settings) as (client, _):
        r = await client.post("/v1/dev/token", json={"subject": "u1"})
        assert r.status_code == 404

        # No auto-created tables outside dev/test: readiness reports the gap.
        r = await client.get("/readyz")
        assert r.status_code == 503
        assert r.json()["missing_tables"] == ["customers"]


# --- Module Notes -----------------------------------------------------------
# Pipeline edge cases are covered against small ad-hoc apps in test_api_routes.py.
