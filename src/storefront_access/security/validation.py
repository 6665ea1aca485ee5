"""
storefront_access.security.validation

Schema contract adapter.

Responsibilities:
- Accept pydantic models, `TypeAdapter`s, or any object exposing `parse(data)`.
- Translate pydantic `ValidationError` into `InputValidationError` with one
  `FieldIssue` per error.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from storefront_access.security.errors import FieldIssue, InputValidationError


@runtime_checkable
class Schema(Protocol):
    def parse(self, data: Any) -> Any: ...


class PydanticSchema:
    def __init__(self, adapter: TypeAdapter[Any]) -> None:
        self._adapter = adapter

    def parse(self, data: Any) -> Any:
        try:
            return self._adapter.validate_python(data)
        except PydanticValidationError as e:
            raise InputValidationError.from_issues(issues_from_pydantic(e)) from e


def issues_from_pydantic(error: PydanticValidationError) -> list[FieldIssue]:
    return [
        FieldIssue(path=".".join(str(part) for part in err["loc"]), message=err["msg"])
        for err in error.errors()
    ]


def as_schema(schema: Any) -> Schema:
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return PydanticSchema(TypeAdapter(schema))
    if isinstance(schema, TypeAdapter):
        return PydanticSchema(schema)
    if isinstance(schema, Schema):
        return schema
    raise TypeError(f"unsupported schema type: {type(schema).__name__}")


def validate_input(schema: Schema | None, data: Any) -> Any:
    if schema is None:
        return data
    try:
        return schema.parse(data)
    except PydanticValidationError as e:
        # Custom `parse` implementations that delegate to pydantic directly.
        raise InputValidationError.from_issues(issues_from_pydantic(e)) from e


# --- Module Notes -----------------------------------------------------------
# Custom schemas report failures by raising `InputValidationError` themselves.
