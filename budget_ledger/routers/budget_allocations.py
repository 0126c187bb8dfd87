"""
Budget allocations router.

Mounts under ``/api/budget-allocations`` (prefix set in ``main.py``).

Endpoints
---------
GET    /              List allocations (filters: financialYear, costCenter, objectCode).
GET    /export        Download the allocation ledger as .xlsx.
GET    /{id}          Single allocation with live balance.
GET    /{id}/summary  Released amounts broken down by release type.
POST   /              Create an allocation.
PUT    /{id}          Partial update.
DELETE /{id}          Delete (cascades through releases and adjustments).
"""

from __future__ import annotations

import io
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from budget_ledger.database import get_db
from budget_ledger.schemas.budget_allocation import (
    AllocationCreate,
    AllocationResponse,
    AllocationSummaryResponse,
    AllocationUpdate,
)
from budget_ledger.schemas.common import ErrorResponse
from budget_ledger.services import allocation_service, availability, export_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Budget Allocations"])

_XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ---------------------------------------------------------------------------
# GET /
# ---------------------------------------------------------------------------


@router.get(
    "",
    response_model=list[AllocationResponse],
    summary="List budget allocations",
    description=(
        "Returns every allocation with its reverse-matched release strategy, "
        "total released and available budget.  All filters are optional."
    ),
)
def list_allocations(
    db: Annotated[Session, Depends(get_db)],
    financial_year: Annotated[
        str | None, Query(alias="financialYear", description="e.g. 2024-25")
    ] = None,
    cost_center: Annotated[str | None, Query(alias="costCenter")] = None,
    object_code: Annotated[str | None, Query(alias="objectCode")] = None,
) -> list[AllocationResponse]:
    rows = allocation_service.list_allocations(db, financial_year, cost_center, object_code)
    return allocation_service.to_responses(db, rows)


# ---------------------------------------------------------------------------
# GET /export
# ---------------------------------------------------------------------------


@router.get(
    "/export",
    response_class=StreamingResponse,
    summary="Export allocations to Excel",
    responses={200: {"description": "Ledger workbook.", "content": {_XLSX: {}}}},
)
def export_allocations(
    db: Annotated[Session, Depends(get_db)],
    financial_year: Annotated[str | None, Query(alias="financialYear")] = None,
) -> StreamingResponse:
    """Stream the allocation ledger, optionally restricted to one year."""
    logger.info("GET /budget-allocations/export fy=%s", financial_year)
    content = export_service.export_allocations_excel(db, financial_year)
    filename = f"budget_allocations_{financial_year or 'all'}.xlsx"
    return StreamingResponse(
        io.BytesIO(content),
        media_type=_XLSX,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Content-Length": str(len(content)),
        },
    )


# ---------------------------------------------------------------------------
# GET /{id}
# ---------------------------------------------------------------------------


@router.get(
    "/{allocation_id}",
    response_model=AllocationResponse,
    summary="Get a budget allocation",
    responses={404: {"model": ErrorResponse, "description": "Allocation not found."}},
)
def get_allocation(
    allocation_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> AllocationResponse:
    logger.debug("GET /budget-allocations/%d", allocation_id)
    row = allocation_service.get_allocation(db, allocation_id)
    return allocation_service.to_response(db, row)


@router.get(
    "/{allocation_id}/summary",
    response_model=AllocationSummaryResponse,
    summary="Release breakdown for an allocation",
    description=(
        "Splits the signed release sum into regular releases, supplementary "
        "grants, reappropriations in and out, and surrenders."
    ),
    responses={404: {"model": ErrorResponse, "description": "Allocation not found."}},
)
def get_allocation_summary(
    allocation_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> AllocationSummaryResponse:
    row = allocation_service.get_allocation(db, allocation_id)
    return AllocationSummaryResponse(**availability.summarize(db, row))


# ---------------------------------------------------------------------------
# POST /
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=AllocationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a budget allocation",
    description=(
        "Creates an allocation and pre-populates its quarterly plan from the "
        "release strategy: quarterly-equal splits the total in four, full "
        "puts everything in Q1, quarterly-custom takes the supplied quarters."
    ),
    responses={
        409: {"model": ErrorResponse, "description": "Allocation already exists."},
        422: {"model": ErrorResponse, "description": "Invalid input."},
    },
)
def create_allocation(
    data: AllocationCreate,
    db: Annotated[Session, Depends(get_db)],
) -> AllocationResponse:
    """Create a new allocation.

    Args:
        data: Validated creation payload.
        db: Database session.

    Returns:
        The created allocation (HTTP 201).
    """
    logger.info(
        "POST /budget-allocations %s/%s/%s total=%s",
        data.object_code, data.cost_center, data.financial_year, data.total_allocation,
    )
    row = allocation_service.create_allocation(db, data)
    return allocation_service.to_response(db, row)


# ---------------------------------------------------------------------------
# PUT /{id}
# ---------------------------------------------------------------------------


@router.put(
    "/{allocation_id}",
    response_model=AllocationResponse,
    summary="Update a budget allocation",
    description=(
        "Only the fields present in the body are changed.  Once any release "
        "exists, the identity, total and quarterly split are frozen."
    ),
    responses={
        404: {"model": ErrorResponse, "description": "Allocation not found."},
        409: {"model": ErrorResponse, "description": "Identity collides with another allocation."},
        422: {"model": ErrorResponse, "description": "Invalid input or allocation frozen."},
    },
)
def update_allocation(
    allocation_id: int,
    data: AllocationUpdate,
    db: Annotated[Session, Depends(get_db)],
) -> AllocationResponse:
    logger.info("PUT /budget-allocations/%d", allocation_id)
    row = allocation_service.update_allocation(db, allocation_id, data)
    return allocation_service.to_response(db, row)


# ---------------------------------------------------------------------------
# DELETE /{id}
# ---------------------------------------------------------------------------


@router.delete(
    "/{allocation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a budget allocation",
    description=(
        "By default reverts every adjustment touching the allocation, removes "
        "its remaining releases, deletes it and reconciles budget entries in "
        "one transaction.  With cascade=false the call fails while releases exist."
    ),
    responses={
        404: {"model": ErrorResponse, "description": "Allocation not found."},
        409: {"model": ErrorResponse, "description": "Releases exist and cascade is off."},
    },
)
def delete_allocation(
    allocation_id: int,
    db: Annotated[Session, Depends(get_db)],
    cascade: Annotated[bool, Query(description="Remove dependent releases first.")] = True,
) -> Response:
    logger.info("DELETE /budget-allocations/%d cascade=%s", allocation_id, cascade)
    allocation_service.delete_allocation(db, allocation_id, cascade=cascade)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
