"""
storefront_access.security.schemas

Validation schemas for storefront actions and API routes.

Responsibilities:
- Declare request payload shapes (camelCase on the wire) as pydantic models.
- Encode the storefront's field rules (lengths, ranges, password strength).
"""

from __future__ import annotations

import re
import uuid
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator
from pydantic.alias_generators import to_camel

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_RE = r"^[\+]?[1-9][\d]{0,15}$"
_SPECIAL_CHARS = '!@#$%^&*(),.?":{}|<>'


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _check_email(value: str) -> str:
    if not value:
        raise ValueError("Email is required")
    if not _EMAIL_RE.match(value):
        raise ValueError("Invalid email format")
    return value


class SignInInput(_Payload):
    email: str
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return _check_email(value)


class SignUpInput(_Payload):
    email: str
    password: str = Field(min_length=8)
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("password")
    @classmethod
    def check_password_strength(cls, value: str) -> str:
        if not re.search(r"[A-Z]", value):
            raise ValueError("Password must contain at least one uppercase letter")
        if not re.search(r"[a-z]", value):
            raise ValueError("Password must contain at least one lowercase letter")
        if not re.search(r"\d", value):
            raise ValueError("Password must contain at least one number")
        if not any(ch in _SPECIAL_CHARS for ch in value):
            raise ValueError("Password must contain at least one special character")
        return value


class AddToCartInput(_Payload):
    product_id: uuid.UUID
    quantity: int = Field(ge=1, le=100)


class UpdateCartItemInput(_Payload):
    cart_item_id: uuid.UUID
    quantity: int = Field(ge=0, le=100)


class RemoveCartItemInput(_Payload):
    cart_item_id: uuid.UUID


class UpdateProfileInput(_Payload):
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    address_line1: str = Field(min_length=1, max_length=100)
    address_line2: str | None = Field(default=None, max_length=100)
    city: str = Field(min_length=1, max_length=50)
    state: str = Field(min_length=1, max_length=50)
    postal_code: str = Field(min_length=1, max_length=20)
    country: str = Field(min_length=1, max_length=50)
    phone_number: str = Field(min_length=1, pattern=_PHONE_RE)


class OrderItemInput(_Payload):
    product_id: uuid.UUID
    quantity: int = Field(ge=1)
    price: float = Field(gt=0)


class ShippingAddressInput(_Payload):
    address_line1: str = Field(min_length=1)
    address_line2: str | None = None
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)
    country: str = Field(min_length=1)


class CreateOrderInput(_Payload):
    items: list[OrderItemInput] = Field(min_length=1)
    shipping_address: ShippingAddressInput
    payment_method: Literal["cash_on_delivery", "credit_card", "bank_transfer"]
    notes: str | None = Field(default=None, max_length=500)


class UpdateOrderStatusInput(_Payload):
    order_id: uuid.UUID
    status: Literal["pending", "confirmed", "processing", "shipped", "delivered", "cancelled"]


class CreateProductInput(_Payload):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    price: float = Field(gt=0)
    stock: int = Field(ge=0)
    category_id: uuid.UUID | None = None
    image_url: HttpUrl | None = None
    is_active: bool = True


class UpdateProductInput(_Payload):
    product_id: uuid.UUID
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    price: float | None = Field(default=None, gt=0)
    stock: int | None = Field(default=None, ge=0)
    category_id: uuid.UUID | None = None
    image_url: HttpUrl | None = None
    is_active: bool | None = None


class CreateCategoryInput(_Payload):
    name: str = Field(min_length=1, max_length=50)
    description: str | None = Field(default=None, max_length=500)
    parent_id: uuid.UUID | None = None
    is_active: bool = True


class UpdateCategoryInput(_Payload):
    category_id: uuid.UUID
    name: str | None = Field(default=None, min_length=1, max_length=50)
    description: str | None = Field(default=None, max_length=500)
    parent_id: uuid.UUID | None = None
    is_active: bool | None = None


class IdInput(_Payload):
    id: uuid.UUID


class PaginationInput(_Payload):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)


class SearchInput(PaginationInput):
    query: str = Field(min_length=1, max_length=100)


# --- Module Notes -----------------------------------------------------------
# Query-string inputs arrive as strings; pydantic's lax mode coerces "2" to 2
# for integer fields and reports a field-level error for anything else.
