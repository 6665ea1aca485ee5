"""
storefront_access.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (e.g., JWT secret).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Single settings object injected across layers.
    Defaults are safe for local dev; production overrides via `SFA_*` env vars.
    """

    model_config = SettingsConfigDict(env_prefix="SFA_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "storefront-access"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Session tokens
    jwt_alg: str = "HS256"
    jwt_issuer: str = "storefront-auth"
    jwt_audience: str = "authenticated"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)
    jwt_leeway_s: int = Field(default=0, ge=0)
    session_cookie_name: str = "sb-access-token"
    csrf_cookie_name: str = "csrf-token"
    csrf_header_name: str = "x-csrf-token"

    # Profile augmentation store
    database_url: str = "sqlite+aiosqlite:///./storefront.db"
    db_echo: bool = False

    # Rate limiting defaults (per wrapped action/route)
    rate_limit_max: int = Field(default=100, ge=1)
    rate_limit_window_ms: int = Field(default=60_000, ge=1)

    # Input size limits, checked before sanitization
    max_body_bytes: int = Field(default=1_048_576, ge=1)
    max_input_string_length: int = Field(default=10_000, ge=1)
    max_input_chars: int = Field(default=100_000, ge=1)
    max_input_depth: int = Field(default=32, ge=1)
    max_input_items: int = Field(default=1_000, ge=1)

    # Route guard redirect targets
    login_path: str = "/login"
    unauthorized_path: str = "/unauthorized"
    error_path: str = "/error"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Per-action overrides (rate limits, redirect targets) live on the action/route
# options; these values are only the fallbacks.
