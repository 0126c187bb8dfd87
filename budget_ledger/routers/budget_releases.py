"""
Budget releases router.

Mounts under ``/api/budget-releases`` (prefix set in ``main.py``).

Endpoints
---------
GET    /      List releases (filters: allocationId, costCenter, financialYear, type).
GET    /{id}  Single release.
POST   /      Release one quarter of an allocation.
DELETE /{id}  Unrelease a regular release.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from budget_ledger.database import get_db
from budget_ledger.schemas.budget_release import ReleaseCreate, ReleaseResponse
from budget_ledger.schemas.common import ErrorResponse
from budget_ledger.services import release_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Budget Releases"])


@router.get(
    "",
    response_model=list[ReleaseResponse],
    summary="List budget releases",
)
def list_releases(
    db: Annotated[Session, Depends(get_db)],
    allocation_id: Annotated[int | None, Query(alias="allocationId", ge=1)] = None,
    cost_center: Annotated[str | None, Query(alias="costCenter")] = None,
    financial_year: Annotated[str | None, Query(alias="financialYear")] = None,
    release_type: Annotated[
        str | None,
        Query(alias="type", description="regular, supplementary, reappropriation or surrender"),
    ] = None,
):
    return release_service.list_releases(
        db,
        allocation_id=allocation_id,
        cost_center=cost_center,
        financial_year=financial_year,
        release_type=release_type,
    )


@router.get(
    "/{release_id}",
    response_model=ReleaseResponse,
    summary="Get a budget release",
    responses={404: {"model": ErrorResponse, "description": "Release not found."}},
)
def get_release(
    release_id: int,
    db: Annotated[Session, Depends(get_db)],
):
    return release_service.get_release(db, release_id)


@router.post(
    "",
    response_model=ReleaseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Release a quarter",
    description=(
        "Pays out the planned amount of one quarter.  Each quarter of an "
        "allocation can be released at most once."
    ),
    responses={
        404: {"model": ErrorResponse, "description": "Allocation not found."},
        409: {"model": ErrorResponse, "description": "Quarter already released."},
        422: {"model": ErrorResponse, "description": "Bad quarter or nothing planned."},
    },
)
def release_quarter(
    data: ReleaseCreate,
    db: Annotated[Session, Depends(get_db)],
):
    """Release one quarter.

    Args:
        data: Allocation id and quarter.
        db: Database session.

    Returns:
        The created release row (HTTP 201).
    """
    logger.info("POST /budget-releases allocation_id=%d Q%d", data.allocation_id, data.quarter)
    return release_service.release_quarter(db, data)


@router.delete(
    "/{release_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Unrelease",
    description=(
        "Deletes a regular release and clears its quarter flag so the quarter "
        "can be released again.  Adjustment releases are removed by reverting "
        "their adjustment."
    ),
    responses={
        404: {"model": ErrorResponse, "description": "Release not found."},
        422: {"model": ErrorResponse, "description": "Not a regular release."},
    },
)
def unrelease(
    release_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    logger.info("DELETE /budget-releases/%d", release_id)
    release_service.unrelease(db, release_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
