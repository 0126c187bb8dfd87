"""
Pydantic v2 schemas for budget allocations.

Request bodies keep amounts as ``Decimal`` so no precision is lost before
the service validates them; responses emit plain JSON numbers.  Business
rules (positive totals, sum of quarters, duplicates) are enforced by
``allocation_service`` so they surface as ledger errors with a field name.
"""

from __future__ import annotations

import datetime
from decimal import Decimal

from pydantic import ConfigDict, Field

from budget_ledger.schemas.common import CamelModel


# ---------------------------------------------------------------------------
# Input schemas: write operations
# ---------------------------------------------------------------------------


class AllocationCreate(CamelModel):
    """Payload for creating an allocation (POST /api/budget-allocations).

    Quarter amounts are only read for the ``quarterly-custom`` strategy;
    for ``quarterly-equal`` and ``full`` they are derived from the total.

    Attributes:
        object_code: Object code, e.g. ``"A01101"``.
        code_description: Optional; resolved from the object-code list when omitted.
        cost_center: Cost-center code, e.g. ``"LZ4064"``.
        cost_center_name: Optional; resolved from the cost-center list when omitted.
        financial_year: Label in ``YYYY-YY`` form.
        total_allocation: Annual ceiling, must be positive.
        release_strategy: ``quarterly-equal`` (default), ``quarterly-custom`` or ``full``.
        q1_release..q4_release: Custom quarterly split.
        notes: Free-form remarks.
        date_created: Business date; defaults to today.
    """

    object_code: str = Field(..., max_length=20)
    code_description: str | None = Field(default=None, max_length=300)
    cost_center: str = Field(..., max_length=20)
    cost_center_name: str | None = Field(default=None, max_length=300)
    financial_year: str = Field(..., max_length=9)
    total_allocation: Decimal
    release_strategy: str = Field(default="quarterly-equal")
    q1_release: Decimal | None = None
    q2_release: Decimal | None = None
    q3_release: Decimal | None = None
    q4_release: Decimal | None = None
    notes: str | None = None
    date_created: datetime.date | None = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "objectCode": "A01101",
                "codeDescription": "Basic Pay",
                "costCenter": "LZ4064",
                "costCenterName": "District Accounts Office",
                "financialYear": "2024-25",
                "totalAllocation": 100000,
                "releaseStrategy": "quarterly-equal",
            }
        }
    )


class AllocationUpdate(CamelModel):
    """Payload for updating an allocation (PUT /api/budget-allocations/{id}).

    Every field is optional; omitted fields keep their stored value.  When
    the total or strategy changes the quarterly split is re-derived.
    """

    object_code: str | None = Field(default=None, max_length=20)
    code_description: str | None = Field(default=None, max_length=300)
    cost_center: str | None = Field(default=None, max_length=20)
    cost_center_name: str | None = Field(default=None, max_length=300)
    financial_year: str | None = Field(default=None, max_length=9)
    total_allocation: Decimal | None = None
    release_strategy: str | None = None
    q1_release: Decimal | None = None
    q2_release: Decimal | None = None
    q3_release: Decimal | None = None
    q4_release: Decimal | None = None
    notes: str | None = None
    date_created: datetime.date | None = None


# ---------------------------------------------------------------------------
# Output schemas
# ---------------------------------------------------------------------------


class AllocationResponse(CamelModel):
    """Public representation of an allocation with its live balance.

    ``release_strategy`` is reverse-matched from the stored quarters;
    ``total_released`` and ``available`` come from the release ledger.
    """

    id: int
    object_code: str
    code_description: str | None = None
    cost_center: str
    cost_center_name: str | None = None
    financial_year: str
    total_allocation: float
    q1_release: float
    q2_release: float
    q3_release: float
    q4_release: float
    q1_released: bool
    q2_released: bool
    q3_released: bool
    q4_released: bool
    notes: str | None = None
    date_created: datetime.date
    release_strategy: str
    total_released: float
    available: float

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "objectCode": "A01101",
                "codeDescription": "Basic Pay",
                "costCenter": "LZ4064",
                "costCenterName": "District Accounts Office",
                "financialYear": "2024-25",
                "totalAllocation": 100000.0,
                "q1Release": 25000.0,
                "q2Release": 25000.0,
                "q3Release": 25000.0,
                "q4Release": 25000.0,
                "q1Released": True,
                "q2Released": False,
                "q3Released": False,
                "q4Released": False,
                "notes": None,
                "dateCreated": "2024-07-01",
                "releaseStrategy": "quarterly-equal",
                "totalReleased": 25000.0,
                "available": 75000.0,
            }
        }
    )


class AllocationSummaryResponse(CamelModel):
    """Breakdown of the signed release sum for one allocation.

    ``reappropriations_out`` and ``surrenders`` are reported as the
    (negative) signed sums, so the five components add up to
    ``total_released``.
    """

    allocation_id: int
    total_allocation: float
    regular_released: float
    supplementary_grants: float
    reappropriations_in: float
    reappropriations_out: float
    surrenders: float
    total_released: float
    available: float
    released_quarters: list[int] = Field(default_factory=list)
