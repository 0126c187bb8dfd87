"""
Adjustment engine service layer.

Applies and reverts supplementary grants, reappropriations and surrenders.
An adjustment never touches ``total_allocation``; its whole effect is the
set of signed, non-quarterly releases it spawns:

==================  ==========================  ==========================
type                source allocation           destination allocation
==================  ==========================  ==========================
supplementary       ``+amount``                 n/a
reappropriation     ``-amount``                 ``+amount``
surrender           ``-amount``                 n/a
==================  ==========================  ==========================

Reappropriations and surrenders may only withdraw what is still available
on the source.  Spawned releases carry ``adjustment_id`` so reverting an
adjustment deletes exactly the rows it created.
"""

from __future__ import annotations

import datetime
import logging
from decimal import Decimal

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from budget_ledger.models.budget_adjustment import BudgetAdjustment
from budget_ledger.models.budget_allocation import BudgetAllocation
from budget_ledger.schemas.budget_adjustment import AdjustmentCreate
from budget_ledger.services import allocation_service, availability, release_service
from budget_ledger.services.transaction import unit_of_work
from budget_ledger.utils.constants import (
    ADJUSTMENT_TYPES,
    NON_QUARTERLY,
    RELEASE_REAPPROPRIATION,
    RELEASE_SUPPLEMENTARY,
    WITHDRAWING_ADJUSTMENTS,
)
from budget_ledger.utils.errors import (
    AllocationNotFound,
    InsufficientAvailableBudget,
    NotFound,
    ValidationError,
)
from budget_ledger.utils.money import to_money

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


class _Resolved:
    """Validated adjustment payload with its allocations looked up."""

    def __init__(
        self,
        data: AdjustmentCreate,
        adjustment_type: str,
        amount: Decimal,
        financial_year: str,
        source: BudgetAllocation,
        destination: BudgetAllocation | None,
    ) -> None:
        self.data = data
        self.type = adjustment_type
        self.amount = amount
        self.financial_year = financial_year
        self.source = source
        self.destination = destination

    @property
    def allocation_ids(self) -> list[int]:
        ids = [self.source.id]
        if self.destination is not None:
            ids.append(self.destination.id)
        return ids


def _resolve(db: Session, data: AdjustmentCreate) -> _Resolved:
    """Validate *data* and find the allocations it names (unlocked read)."""
    adjustment_type = (data.type or "").strip().lower()
    if adjustment_type not in ADJUSTMENT_TYPES:
        raise ValidationError(
            f"Unknown adjustment type '{data.type}'. "
            f"Expected one of: {', '.join(ADJUSTMENT_TYPES)}.",
            field="type",
        )
    financial_year = allocation_service.validate_financial_year(data.financial_year)
    try:
        amount = to_money(data.amount)
    except ValueError:
        raise ValidationError("Amount must be a number.", field="amount")
    if amount <= 0:
        raise ValidationError("Amount must be greater than zero.", field="amount")

    from_object_code = (data.from_object_code or "").strip()
    from_cost_center = (data.from_cost_center or "").strip()
    if not from_object_code:
        raise ValidationError("Source object code is required.", field="fromObjectCode")
    if not from_cost_center:
        raise ValidationError("Source cost center is required.", field="fromCostCenter")

    to_object_code = (data.to_object_code or "").strip()
    to_cost_center = (data.to_cost_center or "").strip()
    if adjustment_type == RELEASE_REAPPROPRIATION:
        if not to_object_code:
            raise ValidationError(
                "Destination object code is required for a reappropriation.",
                field="toObjectCode",
            )
        if not to_cost_center:
            raise ValidationError(
                "Destination cost center is required for a reappropriation.",
                field="toCostCenter",
            )
        if (to_object_code, to_cost_center) == (from_object_code, from_cost_center):
            raise ValidationError(
                "Source and destination of a reappropriation must differ.",
                field="toObjectCode",
            )
    elif to_object_code or to_cost_center:
        raise ValidationError(
            f"A {adjustment_type} adjustment has no destination.",
            field="toObjectCode",
        )

    source = allocation_service.find_by_identity(
        db, from_object_code, from_cost_center, financial_year
    )
    if source is None:
        raise AllocationNotFound(
            f"No allocation for object code {from_object_code}, cost center "
            f"{from_cost_center} in {financial_year}.",
            field="fromObjectCode",
        )
    destination = None
    if adjustment_type == RELEASE_REAPPROPRIATION:
        destination = allocation_service.find_by_identity(
            db, to_object_code, to_cost_center, financial_year
        )
        if destination is None:
            raise AllocationNotFound(
                f"No allocation for object code {to_object_code}, cost center "
                f"{to_cost_center} in {financial_year}.",
                field="toObjectCode",
            )
    return _Resolved(data, adjustment_type, amount, financial_year, source, destination)


def _check_sufficient(db: Session, allocation: BudgetAllocation, amount: Decimal) -> None:
    remaining = availability.available(db, allocation)
    if amount > remaining:
        logger.warning(
            "adjustment rejected: allocation_id=%d amount=%s available=%s",
            allocation.id, amount, remaining,
        )
        raise InsufficientAvailableBudget(
            f"Only {remaining:.2f} is available on {allocation.object_code}/"
            f"{allocation.cost_center} ({allocation.financial_year}); "
            f"{amount:.2f} was requested.",
            field="amount",
        )


def _spawn_releases(
    db: Session,
    adjustment: BudgetAdjustment,
    source: BudgetAllocation,
    destination: BudgetAllocation | None,
) -> None:
    amount = to_money(adjustment.amount)
    remarks = adjustment.remarks or f"{adjustment.type.capitalize()} adjustment #{adjustment.id}"
    signed = amount if adjustment.type == RELEASE_SUPPLEMENTARY else -amount
    release_service.record_release(
        db, source, signed, adjustment.type, NON_QUARTERLY,
        adjustment.date_created, remarks, adjustment_id=adjustment.id,
    )
    if destination is not None:
        release_service.record_release(
            db, destination, amount, adjustment.type, NON_QUARTERLY,
            adjustment.date_created, remarks, adjustment_id=adjustment.id,
        )


def _fill(adjustment: BudgetAdjustment, resolved: _Resolved) -> None:
    data = resolved.data
    adjustment.type = resolved.type
    adjustment.financial_year = resolved.financial_year
    adjustment.amount = resolved.amount
    adjustment.from_object_code = resolved.source.object_code
    adjustment.from_cost_center = resolved.source.cost_center
    adjustment.from_allocation_id = resolved.source.id
    if resolved.destination is not None:
        adjustment.to_object_code = resolved.destination.object_code
        adjustment.to_cost_center = resolved.destination.cost_center
        adjustment.to_allocation_id = resolved.destination.id
    else:
        adjustment.to_object_code = None
        adjustment.to_cost_center = None
        adjustment.to_allocation_id = None
    adjustment.remarks = data.remarks
    adjustment.date_created = data.date_created or adjustment.date_created or datetime.date.today()


def _apply_locked(
    db: Session,
    adjustment: BudgetAdjustment,
    resolved: _Resolved,
    locked: dict[int, BudgetAllocation],
) -> None:
    """Gate, fill and spawn for *adjustment* while its allocations are locked."""
    source = locked[resolved.source.id]
    destination = locked[resolved.destination.id] if resolved.destination is not None else None
    if resolved.type in WITHDRAWING_ADJUSTMENTS:
        _check_sufficient(db, source, resolved.amount)
    _fill(adjustment, resolved)
    db.add(adjustment)
    db.flush()
    _spawn_releases(db, adjustment, source, destination)
    db.flush()


def _allocation_ids_of(adjustment: BudgetAdjustment) -> list[int]:
    ids = [adjustment.from_allocation_id]
    if adjustment.to_allocation_id is not None:
        ids.append(adjustment.to_allocation_id)
    return ids


def allocation_ids_linked_to(db: Session, allocation_id: int) -> set[int]:
    """Return *allocation_id* plus every allocation sharing an adjustment with it."""
    rows = db.execute(
        select(BudgetAdjustment.from_allocation_id, BudgetAdjustment.to_allocation_id).where(
            or_(
                BudgetAdjustment.from_allocation_id == allocation_id,
                BudgetAdjustment.to_allocation_id == allocation_id,
            )
        )
    )
    ids = {allocation_id}
    for from_id, to_id in rows:
        ids.add(from_id)
        if to_id is not None:
            ids.add(to_id)
    return ids


def remove_adjustment(db: Session, adjustment: BudgetAdjustment) -> int:
    """Delete *adjustment* and the releases it spawned; does not commit.

    The caller must hold the locks of every allocation the adjustment
    touches.

    Returns:
        Number of release rows removed.
    """
    releases = list(adjustment.releases)
    for release in releases:
        db.delete(release)
    db.delete(adjustment)
    db.flush()
    return len(releases)


def _load_for_update(db: Session, adjustment_id: int) -> BudgetAdjustment:
    adjustment = db.get(BudgetAdjustment, adjustment_id, populate_existing=True)
    if adjustment is None:
        raise NotFound(f"Budget adjustment {adjustment_id} not found.", field="id")
    return adjustment


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------


def apply_adjustment(db: Session, data: AdjustmentCreate) -> BudgetAdjustment:
    """Record an adjustment and spawn its signed releases atomically.

    Args:
        db: Active SQLAlchemy session.
        data: Validated adjustment payload.

    Returns:
        The persisted ``BudgetAdjustment`` (``releases`` populated).

    Raises:
        ValidationError: Bad type, amount, financial year or destination.
        AllocationNotFound: Source or destination allocation does not exist.
        InsufficientAvailableBudget: A withdrawal exceeds the source's
            available budget; no release rows are written.
    """
    resolved = _resolve(db, data)

    with unit_of_work(db, *resolved.allocation_ids) as locked:
        adjustment = BudgetAdjustment()
        _apply_locked(db, adjustment, resolved, locked)

    logger.info(
        "apply_adjustment: id=%d type=%s amount=%s from=%d to=%s",
        adjustment.id, adjustment.type, adjustment.amount,
        adjustment.from_allocation_id, adjustment.to_allocation_id,
    )
    return adjustment


def revert_adjustment(db: Session, adjustment_id: int) -> None:
    """Delete an adjustment together with every release it spawned.

    Raises:
        NotFound: Unknown adjustment id.
    """
    adjustment = get_adjustment(db, adjustment_id)

    with unit_of_work(db, *_allocation_ids_of(adjustment)):
        adjustment = _load_for_update(db, adjustment_id)
        removed = remove_adjustment(db, adjustment)

    logger.info("revert_adjustment: id=%d releases_removed=%d", adjustment_id, removed)


def update_adjustment(
    db: Session,
    adjustment_id: int,
    data: AdjustmentCreate,
) -> BudgetAdjustment:
    """Replace an adjustment: revert its releases and re-apply *data*.

    Both steps run in one transaction, so either the new version is in
    place or the old one is untouched.  The adjustment keeps its id.  The
    sufficiency gate sees the source's availability with the old releases
    already removed.

    Raises:
        NotFound: Unknown adjustment id.
        ValidationError / AllocationNotFound / InsufficientAvailableBudget:
            Same as :func:`apply_adjustment`.
    """
    adjustment = get_adjustment(db, adjustment_id)
    old_ids = _allocation_ids_of(adjustment)
    resolved = _resolve(db, data)

    with unit_of_work(db, *old_ids, *resolved.allocation_ids) as locked:
        adjustment = _load_for_update(db, adjustment_id)
        for release in list(adjustment.releases):
            db.delete(release)
        db.flush()
        db.expire(adjustment, ["releases"])
        _apply_locked(db, adjustment, resolved, locked)

    logger.info(
        "update_adjustment: id=%d type=%s amount=%s", adjustment_id,
        adjustment.type, adjustment.amount,
    )
    return adjustment


def get_adjustment(db: Session, adjustment_id: int) -> BudgetAdjustment:
    adjustment = db.get(BudgetAdjustment, adjustment_id)
    if adjustment is None:
        raise NotFound(f"Budget adjustment {adjustment_id} not found.", field="id")
    return adjustment


def list_adjustments(
    db: Session,
    financial_year: str | None = None,
    adjustment_type: str | None = None,
) -> list[BudgetAdjustment]:
    """Return adjustments matching the optional filters, newest first."""
    if adjustment_type is not None:
        adjustment_type = adjustment_type.strip().lower()
    if adjustment_type is not None and adjustment_type not in ADJUSTMENT_TYPES:
        raise ValidationError(
            f"Unknown adjustment type '{adjustment_type}'.", field="type"
        )
    stmt = select(BudgetAdjustment)
    if financial_year is not None:
        stmt = stmt.where(BudgetAdjustment.financial_year == financial_year)
    if adjustment_type is not None:
        stmt = stmt.where(BudgetAdjustment.type == adjustment_type)
    stmt = stmt.order_by(BudgetAdjustment.date_created.desc(), BudgetAdjustment.id.desc())
    return list(db.scalars(stmt))
