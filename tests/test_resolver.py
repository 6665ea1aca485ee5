from __future__ import annotations

import time
from datetime import timedelta

import jwt as pyjwt
import pytest

from storefront_access.auth.jwt import JwtConfig, issue_token
from storefront_access.auth.models import Principal, Role
from storefront_access.auth.profiles import CustomerProfile, SqlProfileLookup
from storefront_access.auth.resolver import PrincipalResolver
from storefront_access.auth.session import JwtSessionTransport
from storefront_access.db.init_db import init_db
from storefront_access.db.repositories.customers import CustomerRepo
from storefront_access.db.session import create_engine, create_sessionmaker
from storefront_access.security.errors import SessionTransportError


@pytest.fixture
def transport(jwt_cfg: JwtConfig, settings) -> JwtSessionTransport:
    return JwtSessionTransport(cfg=jwt_cfg, cookie_name=settings.session_cookie_name)


@pytest.fixture
def resolver(transport) -> PrincipalResolver:
    return PrincipalResolver(transport=transport)


def _bearer(request_with, token: str):
    return request_with(headers={"authorization": f"Bearer {token}"})


@pytest.mark.asyncio
async def test_bearer_token_resolves_principal(resolver, make_token, request_with) -> None:
    token = make_token(
        "u1",
        "moderator",
        user_metadata={"first_name": "Mona", "avatar_url": "https://cdn/x.png"},
    )
    principal = await resolver.resolve(_bearer(request_with, token))
    assert principal == Principal(
        id="u1",
        email="u1@example.com",
        role=Role.moderator,
        first_name="Mona",
        last_name="",
        avatar_url="https://cdn/x.png",
    )


@pytest.mark.asyncio
async def test_role_falls_back_to_app_metadata_then_customer(
    resolver, make_token, request_with
) -> None:
    token = make_token("u2", None, app_metadata={"role": "admin"})
    principal = await resolver.resolve(_bearer(request_with, token))
    assert principal is not None and principal.role is Role.admin

    token = make_token("u3", None)
    principal = await resolver.resolve(_bearer(request_with, token))
    assert principal is not None and principal.role is Role.customer


@pytest.mark.asyncio
async def test_session_cookie_is_read(resolver, make_token, request_with, settings) -> None:
    request = request_with(cookies={settings.session_cookie_name: make_token("u9", "customer")})
    principal = await resolver.resolve(request)
    assert principal is not None and principal.id == "u9"


@pytest.mark.asyncio
async def test_missing_or_invalid_sessions_resolve_to_none(
    resolver, make_token, request_with, anonymous
) -> None:
    assert await resolver.resolve(None) is None
    assert await resolver.resolve(anonymous) is None
    assert await resolver.resolve(request_with(headers={"authorization": "Basic abc"})) is None

    expired = make_token("u1", "admin", ttl=timedelta(seconds=-30))
    assert await resolver.resolve(_bearer(request_with, expired)) is None

    forged = issue_token(
        cfg=JwtConfig(alg="HS256", issuer="storefront-auth", audience="authenticated", secret="x"),
        subject="u1",
        user_metadata={"role": "admin"},
    )
    assert await resolver.resolve(_bearer(request_with, forged)) is None


@pytest.mark.asyncio
async def test_malformed_sessions_raise_and_are_denied_by_default(
    resolver, jwt_cfg, make_token, request_with
) -> None:
    now = int(time.time())
    broken = pyjwt.encode(
        {
            "iss": jwt_cfg.issuer,
            "aud": jwt_cfg.audience,
            "sub": "u1",
            "iat": now,
            "exp": now + 300,
            "user_metadata": ["role", "admin"],
        },
        jwt_cfg.secret,
        algorithm=jwt_cfg.alg,
    )

    with pytest.raises(SessionTransportError):
        await resolver.resolve(_bearer(request_with, broken))
    assert await resolver.resolve_or_none(_bearer(request_with, broken), action="t") is None

    unknown_role = make_token("u1", "superuser")
    with pytest.raises(SessionTransportError):
        await resolver.resolve(_bearer(request_with, unknown_role))
    assert await resolver.resolve_or_none(_bearer(request_with, unknown_role), action="t") is None


class FailingClient:
    async def get_user(self):
        raise TimeoutError("identity provider timed out")


class FailingTransport:
    def client_for(self, request):
        return FailingClient()


@pytest.mark.asyncio
async def test_transport_failures_resolve_to_none(make_token, request_with) -> None:
    resolver = PrincipalResolver(transport=FailingTransport())
    request = _bearer(request_with, make_token("u1", "admin"))

    with pytest.raises(TimeoutError):
        await resolver.resolve(request)
    assert await resolver.resolve_or_none(request, action="catalog.list") is None


@pytest.mark.asyncio
async def test_profile_names_augment_the_principal(
    transport, stub_profiles, make_token, request_with
) -> None:
    stub_profiles.profiles["u1"] = CustomerProfile(first_name="Ada", last_name="Lovelace")
    resolver = PrincipalResolver(transport=transport, profiles=stub_profiles)

    principal = await resolver.resolve(_bearer(request_with, make_token("u1")))
    assert principal is not None
    assert (principal.first_name, principal.last_name) == ("Ada", "Lovelace")

    principal = await resolver.resolve(_bearer(request_with, make_token("u2")))
    assert principal is not None
    assert (principal.first_name, principal.last_name) == ("", "")
    assert stub_profiles.calls == ["u1", "u2"]


@pytest.mark.asyncio
async def test_sql_profile_lookup(settings) -> None:
    engine = create_engine(settings)
    try:
        lookup = SqlProfileLookup(create_sessionmaker(engine))
        # No tables yet: the lookup degrades to "no profile".
        assert await lookup.get("u1") is None

        await init_db(engine)
        async with create_sessionmaker(engine)() as session:
            await CustomerRepo(session).upsert_names(
                customer_id="u1", email="u1@example.com", first_name="Grace", last_name="Hopper"
            )
            await session.commit()

        assert await lookup.get("u1") == CustomerProfile(first_name="Grace", last_name="Hopper")
        assert await lookup.get("u2") is None
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_session_client_reports_why_there_is_no_user(
    transport, make_token, request_with, anonymous
) -> None:
    result = await transport.client_for(anonymous).get_user()
    assert (result.user, result.error) == (None, "Auth session missing")

    expired = make_token("u1", ttl=timedelta(minutes=-5))
    result = await transport.client_for(_bearer(request_with, expired)).get_user()
    assert result.error == "Session expired"

    result = await transport.client_for(_bearer(request_with, "not.a.jwt")).get_user()
    assert result.error is not None and result.error.startswith("Invalid session token")

    result = await transport.client_for(_bearer(request_with, make_token("u1"))).get_user()
    assert result.error is None and result.user is not None and result.user.id == "u1"
