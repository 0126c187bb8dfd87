"""Pydantic v2 schemas for the denormalized budget entry view (/api/budgets)."""

from __future__ import annotations

from decimal import Decimal

from pydantic import Field

from budget_ledger.schemas.common import CamelModel


class BudgetEntryCreate(CamelModel):
    """Payload for POST /api/budgets.

    ``remaining`` is not accepted; it is always ``amount - spent``.
    """

    name: str | None = Field(default=None, max_length=100)
    object_code: str = Field(..., max_length=20)
    cost_center: str = Field(..., max_length=20)
    cost_center_name: str | None = Field(default=None, max_length=300)
    category_name: str | None = Field(default=None, max_length=300)
    financial_year: str = Field(..., max_length=9)
    amount: Decimal
    spent: Decimal = Decimal("0")
    period: str = "yearly"
    description: str | None = None


class BudgetEntryResponse(CamelModel):
    id: int
    name: str
    object_code: str
    cost_center: str
    cost_center_name: str | None = None
    category_name: str | None = None
    financial_year: str
    amount: float
    spent: float
    remaining: float
    period: str
    description: str | None = None


class SyncResultResponse(CamelModel):
    """Counts produced by one reconciliation run."""

    created: int = Field(..., ge=0)
    deleted: int = Field(..., ge=0)


class BudgetEntryUpdate(CamelModel):
    """Payload for PUT /api/budgets/{id}.  Only supplied fields change."""

    name: str | None = Field(default=None, max_length=100)
    object_code: str | None = Field(default=None, max_length=20)
    cost_center: str | None = Field(default=None, max_length=20)
    cost_center_name: str | None = Field(default=None, max_length=300)
    category_name: str | None = Field(default=None, max_length=300)
    financial_year: str | None = Field(default=None, max_length=9)
    amount: Decimal | None = None
    spent: Decimal | None = None
    period: str | None = None
    description: str | None = None
