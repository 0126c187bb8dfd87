"""
Reference data router: dropdown sources for the allocation forms.

Mounted without a resource prefix (``/api``) in ``main.py``.

Endpoints
---------
GET /financial-years  Distinct financial years, newest first.
GET /object-codes     Active object codes.
GET /cost-centers     Active cost centers.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from budget_ledger.database import get_db
from budget_ledger.schemas.reference import CostCenterResponse, ObjectCodeResponse
from budget_ledger.services import budget_entry_service, reference_service

router = APIRouter(tags=["Reference Data"])


@router.get(
    "/financial-years",
    response_model=list[str],
    summary="List financial years",
    description=(
        "Years found on allocations and budget entries, newest first.  When "
        "nothing is stored yet, the current financial year is returned."
    ),
)
def list_financial_years(db: Annotated[Session, Depends(get_db)]) -> list[str]:
    return budget_entry_service.financial_years(db)


@router.get("/object-codes", response_model=list[ObjectCodeResponse], summary="List object codes")
def list_object_codes(
    db: Annotated[Session, Depends(get_db)],
    include_inactive: Annotated[bool, Query(alias="includeInactive")] = False,
):
    return reference_service.list_object_codes(db, include_inactive)


@router.get("/cost-centers", response_model=list[CostCenterResponse], summary="List cost centers")
def list_cost_centers(
    db: Annotated[Session, Depends(get_db)],
    include_inactive: Annotated[bool, Query(alias="includeInactive")] = False,
):
    return reference_service.list_cost_centers(db, include_inactive)
