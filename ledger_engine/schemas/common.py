"""
Shared schema pieces: camelCase JSON and the response envelope.

Python code uses snake_case field names; the JSON contract uses
camelCase. Every response is wrapped as
{"success": true, "data": ...} or
{"success": false, "error": {"code", "message", "details"}}.
"""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class SuccessResponse(BaseModel, Generic[T]):
    success: bool = True
    data: T


class ErrorBody(BaseModel):
    code: str
    message: str
    details: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: ErrorBody
