"""
storefront_access.security.context

Per-execution context records handed to wrapped handlers.

Responsibilities:
- `ActionContext` for server actions.
- `ApiContext` for API routes (adds HTTP metadata and the full principal).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from storefront_access.auth.models import Principal, Role


@dataclass(frozen=True, slots=True)
class ActionContext:
    action_name: str
    timestamp: datetime
    user_id: str | None = None
    user_role: Role | None = None


@dataclass(frozen=True, slots=True)
class ApiContext:
    route_name: str
    method: str
    url: str
    client_ip: str
    timestamp: datetime
    principal: Principal | None = None

    @property
    def user_id(self) -> str | None:
        return self.principal.id if self.principal else None
