"""
Budget entries router (denormalized reporting view).

Mounts under ``/api/budgets`` (prefix set in ``main.py``).

Endpoints
---------
GET    /      List entries (filters: financialYear, costCenter).
GET    /{id}  Single entry.
POST   /      Create an entry.
PUT    /{id}  Partial update; remaining is re-derived.
DELETE /{id}  Delete an entry.
POST   /sync  Reconcile entries against allocations.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from budget_ledger.database import get_db
from budget_ledger.schemas.budget_entry import (
    BudgetEntryCreate,
    BudgetEntryResponse,
    BudgetEntryUpdate,
    SyncResultResponse,
)
from budget_ledger.schemas.common import ErrorResponse
from budget_ledger.services import budget_entry_service, sync_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Budgets"])


@router.get("", response_model=list[BudgetEntryResponse], summary="List budget entries")
def list_entries(
    db: Annotated[Session, Depends(get_db)],
    financial_year: Annotated[str | None, Query(alias="financialYear")] = None,
    cost_center: Annotated[str | None, Query(alias="costCenter")] = None,
):
    return budget_entry_service.list_entries(db, financial_year, cost_center)


@router.post(
    "",
    response_model=BudgetEntryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a budget entry",
    responses={422: {"model": ErrorResponse, "description": "Invalid input."}},
)
def create_entry(
    data: BudgetEntryCreate,
    db: Annotated[Session, Depends(get_db)],
):
    logger.info("POST /budgets %s/%s/%s", data.object_code, data.cost_center, data.financial_year)
    return budget_entry_service.create_entry(db, data)


@router.post(
    "/sync",
    response_model=SyncResultResponse,
    summary="Reconcile budget entries",
    description=(
        "Deletes entries that no longer match an allocation and creates one "
        "entry for every allocation that has none."
    ),
)
def sync_entries(db: Annotated[Session, Depends(get_db)]) -> SyncResultResponse:
    created, deleted = sync_service.reconcile(db)
    return SyncResultResponse(created=created, deleted=deleted)


@router.get(
    "/{entry_id}",
    response_model=BudgetEntryResponse,
    summary="Get a budget entry",
    responses={404: {"model": ErrorResponse, "description": "Entry not found."}},
)
def get_entry(
    entry_id: int,
    db: Annotated[Session, Depends(get_db)],
):
    return budget_entry_service.get_entry(db, entry_id)


@router.put(
    "/{entry_id}",
    response_model=BudgetEntryResponse,
    summary="Update a budget entry",
    description=(
        "Only the fields present in the body are changed.  ``remaining`` is "
        "always recomputed as amount minus spent."
    ),
    responses={
        404: {"model": ErrorResponse, "description": "Entry not found."},
        422: {"model": ErrorResponse, "description": "Invalid input."},
    },
)
def update_entry(
    entry_id: int,
    data: BudgetEntryUpdate,
    db: Annotated[Session, Depends(get_db)],
):
    logger.info("PUT /budgets/%d", entry_id)
    return budget_entry_service.update_entry(db, entry_id, data)


@router.delete(
    "/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a budget entry",
    responses={404: {"model": ErrorResponse, "description": "Entry not found."}},
)
def delete_entry(
    entry_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    logger.info("DELETE /budgets/%d", entry_id)
    budget_entry_service.delete_entry(db, entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
