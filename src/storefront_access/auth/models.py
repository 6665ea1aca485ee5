"""
storefront_access.auth.models

Auth domain models.

Responsibilities:
- Define the closed `Role` enumeration.
- Define the authenticated identity type (`Principal`) resolved per request.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class Role(enum.StrEnum):
    # Values match the `role` claim stored in user/app metadata.
    customer = "customer"
    moderator = "moderator"
    admin = "admin"

    @classmethod
    def parse(cls, raw: object) -> Role | None:
        if isinstance(raw, Role):
            return raw
        if not isinstance(raw, str):
            return None
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity.

    Derived on every resolution from the session plus optional profile data;
    never persisted by this layer.
    """

    id: str
    email: str
    role: Role
    first_name: str = ""
    last_name: str = ""
    avatar_url: str | None = None

    def as_dict(self) -> dict[str, str | None]:
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role.value,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "avatarUrl": self.avatar_url,
        }


# --- Module Notes -----------------------------------------------------------
# Keep this model minimal; it is used across API, actions, guards and logging.
