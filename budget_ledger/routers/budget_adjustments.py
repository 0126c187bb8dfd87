"""
Budget adjustments router.

Mounts under ``/api/budget-adjustments`` (prefix set in ``main.py``).

Endpoints
---------
GET    /      List adjustments (filters: financialYear, type).
GET    /{id}  Single adjustment with the releases it spawned.
POST   /      Apply a supplementary grant, reappropriation or surrender.
PUT    /{id}  Replace an adjustment (revert + apply, one transaction).
DELETE /{id}  Revert an adjustment.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from budget_ledger.database import get_db
from budget_ledger.schemas.budget_adjustment import AdjustmentCreate, AdjustmentResponse
from budget_ledger.schemas.common import ErrorResponse
from budget_ledger.services import adjustment_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Budget Adjustments"])

_WRITE_ERRORS = {
    404: {"model": ErrorResponse, "description": "Source or destination allocation not found."},
    422: {"model": ErrorResponse, "description": "Invalid input or insufficient available budget."},
}


@router.get(
    "",
    response_model=list[AdjustmentResponse],
    summary="List budget adjustments",
)
def list_adjustments(
    db: Annotated[Session, Depends(get_db)],
    financial_year: Annotated[str | None, Query(alias="financialYear")] = None,
    adjustment_type: Annotated[
        str | None,
        Query(alias="type", description="supplementary, reappropriation or surrender"),
    ] = None,
):
    return adjustment_service.list_adjustments(db, financial_year, adjustment_type)


@router.get(
    "/{adjustment_id}",
    response_model=AdjustmentResponse,
    summary="Get a budget adjustment",
    responses={404: {"model": ErrorResponse, "description": "Adjustment not found."}},
)
def get_adjustment(
    adjustment_id: int,
    db: Annotated[Session, Depends(get_db)],
):
    return adjustment_service.get_adjustment(db, adjustment_id)


@router.post(
    "",
    response_model=AdjustmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Apply a budget adjustment",
    description=(
        "Records the adjustment and its signed releases in one transaction.  "
        "Reappropriations and surrenders may not exceed the source's "
        "available budget."
    ),
    responses=_WRITE_ERRORS,
)
def apply_adjustment(
    data: AdjustmentCreate,
    db: Annotated[Session, Depends(get_db)],
):
    """Apply an adjustment.

    Args:
        data: Validated adjustment payload.
        db: Database session.

    Returns:
        The adjustment with its spawned releases (HTTP 201).
    """
    logger.info(
        "POST /budget-adjustments type=%s amount=%s from=%s/%s",
        data.type, data.amount, data.from_object_code, data.from_cost_center,
    )
    return adjustment_service.apply_adjustment(db, data)


@router.put(
    "/{adjustment_id}",
    response_model=AdjustmentResponse,
    summary="Replace a budget adjustment",
    description="Reverts the stored adjustment and applies the new body atomically; the id is kept.",
    responses={
        **_WRITE_ERRORS,
        404: {"model": ErrorResponse, "description": "Adjustment or allocation not found."},
    },
)
def update_adjustment(
    adjustment_id: int,
    data: AdjustmentCreate,
    db: Annotated[Session, Depends(get_db)],
):
    logger.info("PUT /budget-adjustments/%d", adjustment_id)
    return adjustment_service.update_adjustment(db, adjustment_id, data)


@router.delete(
    "/{adjustment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Revert a budget adjustment",
    responses={404: {"model": ErrorResponse, "description": "Adjustment not found."}},
)
def revert_adjustment(
    adjustment_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    logger.info("DELETE /budget-adjustments/%d", adjustment_id)
    adjustment_service.revert_adjustment(db, adjustment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
