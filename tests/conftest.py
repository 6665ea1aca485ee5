"""
tests.conftest

Shared fixtures for the access-layer test suite.

Responsibilities:
- Settings pointing at a throwaway SQLite file.
- Real session tokens (PyJWT) and request stand-ins carrying them.
- A controllable millisecond clock for rate-limit windows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

import pytest

from storefront_access.auth.jwt import JwtConfig, issue_token
from storefront_access.auth.profiles import CustomerProfile
from storefront_access.security.services import SecurityServices, build_security_services, jwt_config
from storefront_access.settings import Settings


@dataclass
class FakeRequest:
    headers: dict[str, str] = field(default_factory=dict)
    cookies: dict[str, str] = field(default_factory=dict)


class FakeClock:
    def __init__(self, start: float = 1_700_000_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class StubProfiles:
    def __init__(self, profiles: dict[str, CustomerProfile] | None = None) -> None:
        self.profiles = profiles or {}
        self.calls: list[str] = []

    async def get(self, user_id: str) -> CustomerProfile | None:
        self.calls.append(user_id)
        return self.profiles.get(user_id)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        jwt_secret="test-secret",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}",
    )


@pytest.fixture
def jwt_cfg(settings: Settings) -> JwtConfig:
    return jwt_config(settings)


@pytest.fixture
def make_token(jwt_cfg: JwtConfig):
    def _make(
        user_id: str = "u1",
        role: str | None = "customer",
        *,
        email: str | None = None,
        ttl: timedelta = timedelta(minutes=5),
        user_metadata: dict[str, Any] | None = None,
        app_metadata: dict[str, Any] | None = None,
    ) -> str:
        meta = dict(user_metadata or {})
        if role is not None and app_metadata is None:
            meta.setdefault("role", role)
        return issue_token(
            cfg=jwt_cfg,
            subject=user_id,
            email=email if email is not None else f"{user_id}@example.com",
            user_metadata=meta,
            app_metadata=app_metadata,
            ttl=ttl,
        )

    return _make


@pytest.fixture
def as_user(make_token):
    def _request(user_id: str = "u1", role: str = "customer") -> FakeRequest:
        return FakeRequest(headers={"authorization": f"Bearer {make_token(user_id, role)}"})

    return _request


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def security(settings: Settings, clock: FakeClock) -> SecurityServices:
    return build_security_services(settings, clock=clock)


@pytest.fixture
def anonymous() -> FakeRequest:
    return FakeRequest()


@pytest.fixture
def stub_profiles() -> StubProfiles:
    return StubProfiles()


@pytest.fixture
def request_with():
    def _request(*, headers: dict[str, str] | None = None, cookies: dict[str, str] | None = None):
        return FakeRequest(headers=dict(headers or {}), cookies=dict(cookies or {}))

    return _request
