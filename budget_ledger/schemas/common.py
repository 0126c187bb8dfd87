"""
Shared Pydantic v2 schemas reused across multiple modules.

Provides the camelCase base model every request/response body derives
from, plus the error envelope.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model exposing snake_case attributes as camelCase JSON keys.

    ``populate_by_name`` lets services and tests build instances with the
    Python names, while HTTP clients send and receive camelCase.
    ``from_attributes`` allows validating straight from ORM rows.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorDetail(BaseModel):
    """Body of every ledger error (``{"detail": ErrorDetail}``).

    Attributes:
        error: Stable error kind, e.g. ``"AlreadyReleased"``.
        message: Human-readable reason.
        field: camelCase request field the error refers to, if any.
    """

    error: str
    message: str
    field: str | None = None


class ErrorResponse(BaseModel):
    detail: ErrorDetail
