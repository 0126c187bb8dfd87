"""Pydantic v2 schemas for budget releases."""

from __future__ import annotations

import datetime

from pydantic import ConfigDict, Field

from budget_ledger.schemas.common import CamelModel


class ReleaseCreate(CamelModel):
    """Payload for releasing one quarter (POST /api/budget-releases).

    The amount is never taken from the client: it is read from the
    allocation's planned quarter at release time.

    Attributes:
        allocation_id: Allocation to release against.
        quarter: Quarter number 1–4.
        date_released: Business date; defaults to today.
        remarks: Optional remarks; a default label is generated when omitted.
    """

    allocation_id: int
    quarter: int
    date_released: datetime.date | None = None
    remarks: str | None = Field(default=None, max_length=1000)

    model_config = ConfigDict(
        json_schema_extra={"example": {"allocationId": 1, "quarter": 1}}
    )


class ReleaseResponse(CamelModel):
    """Public representation of a release row."""

    id: int
    allocation_id: int
    adjustment_id: int | None = None
    object_code: str
    code_description: str | None = None
    cost_center: str
    cost_center_name: str | None = None
    financial_year: str
    quarter: int
    amount: float
    type: str
    date_released: datetime.date
    remarks: str | None = None
