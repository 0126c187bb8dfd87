"""Pydantic v2 schemas for budget adjustments."""

from __future__ import annotations

import datetime
from decimal import Decimal

from pydantic import ConfigDict, Field

from budget_ledger.schemas.budget_release import ReleaseResponse
from budget_ledger.schemas.common import CamelModel


class AdjustmentCreate(CamelModel):
    """Payload for applying an adjustment (POST, and PUT for edits).

    The source allocation is identified by ``from_object_code`` +
    ``from_cost_center`` + ``financial_year``; the destination fields are
    required for reappropriations and must be omitted otherwise.

    Attributes:
        type: ``supplementary``, ``reappropriation`` or ``surrender``.
        financial_year: Label in ``YYYY-YY`` form.
        amount: Positive amount; direction is implied by ``type``.
        from_object_code / from_cost_center: Source allocation identity.
        to_object_code / to_cost_center: Destination identity.
        remarks: Free-form remarks.
        date_created: Business date; defaults to today.
    """

    type: str
    financial_year: str = Field(..., max_length=9)
    amount: Decimal
    from_object_code: str = Field(..., max_length=20)
    from_cost_center: str = Field(..., max_length=20)
    to_object_code: str | None = Field(default=None, max_length=20)
    to_cost_center: str | None = Field(default=None, max_length=20)
    remarks: str | None = None
    date_created: datetime.date | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "type": "reappropriation",
                "financialYear": "2024-25",
                "amount": 5000,
                "fromObjectCode": "A01101",
                "fromCostCenter": "LZ4064",
                "toObjectCode": "A03201",
                "toCostCenter": "LZ4064",
                "remarks": "Shift to postage",
            }
        }
    )


class AdjustmentResponse(CamelModel):
    """Public representation of an adjustment with the releases it spawned."""

    id: int
    type: str
    financial_year: str
    amount: float
    from_object_code: str
    from_cost_center: str
    to_object_code: str | None = None
    to_cost_center: str | None = None
    from_allocation_id: int
    to_allocation_id: int | None = None
    remarks: str | None = None
    date_created: datetime.date
    releases: list[ReleaseResponse] = Field(default_factory=list)
