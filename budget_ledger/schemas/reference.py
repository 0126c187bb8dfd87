"""
Pydantic v2 schemas for the read-only reference lists.

Used by the dropdown endpoints and by allocation creation to resolve
human-readable descriptions.
"""

from __future__ import annotations

from budget_ledger.schemas.common import CamelModel


class ObjectCodeResponse(CamelModel):
    """Public representation of an object code."""

    id: int
    code: str
    description: str
    category: str | None = None
    is_active: bool


class CostCenterResponse(CamelModel):
    """Public representation of a cost center."""

    id: int
    code: str
    name: str
    description: str | None = None
    is_active: bool
