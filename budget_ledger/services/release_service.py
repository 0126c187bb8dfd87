"""
Release ledger service layer.

Regular quarterly releases are the only releases created here directly;
adjustment-driven rows are written by ``adjustment_service`` through
:func:`record_release`, and removed together with their adjustment.

Design notes
------------
- Releasing a quarter is at-most-once: the ``qN_released`` flag is checked
  and flipped on the row re-read under ``unit_of_work``, and the release row
  is inserted in the same transaction.
- The amount is always the allocation's planned quarter, never a client
  value.
- Unreleasing deletes the row and clears the flag together.  Only regular
  releases can be unreleased; adjustment rows are reverted through their
  adjustment.
"""

from __future__ import annotations

import datetime
import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from budget_ledger.models.budget_allocation import BudgetAllocation
from budget_ledger.models.budget_release import BudgetRelease
from budget_ledger.schemas.budget_release import ReleaseCreate
from budget_ledger.services import availability
from budget_ledger.services.transaction import unit_of_work
from budget_ledger.utils.constants import (
    QUARTER_LABELS,
    QUARTERS,
    RELEASE_REGULAR,
    RELEASE_TYPES,
)
from budget_ledger.utils.errors import (
    AlreadyReleased,
    NothingToRelease,
    NotFound,
    ValidationError,
)
from budget_ledger.utils.money import to_money

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def record_release(
    db: Session,
    allocation: BudgetAllocation,
    amount: Decimal,
    release_type: str,
    quarter: int,
    date_released: datetime.date,
    remarks: str | None = None,
    adjustment_id: int | None = None,
) -> BudgetRelease:
    """Add a release row that copies the allocation's identity.

    Does not commit; callers run inside ``unit_of_work``.
    """
    release = BudgetRelease(
        allocation_id=allocation.id,
        adjustment_id=adjustment_id,
        object_code=allocation.object_code,
        code_description=allocation.code_description,
        cost_center=allocation.cost_center,
        cost_center_name=allocation.cost_center_name,
        financial_year=allocation.financial_year,
        quarter=quarter,
        amount=to_money(amount),
        type=release_type,
        date_released=date_released,
        remarks=remarks,
    )
    db.add(release)
    return release


def delete_releases_for_allocation(db: Session, allocation_id: int) -> int:
    """Remove every release still owned by *allocation_id* and reset its flags.

    Part of the allocation delete cascade; does not commit.

    Returns:
        Number of rows deleted.
    """
    releases = db.scalars(
        select(BudgetRelease).where(BudgetRelease.allocation_id == allocation_id)
    ).all()
    for release in releases:
        db.delete(release)
    allocation = db.get(BudgetAllocation, allocation_id)
    if allocation is not None:
        for q in QUARTERS:
            allocation.set_released(q, False)
    db.flush()
    logger.info(
        "delete_releases_for_allocation: allocation_id=%d removed=%d",
        allocation_id, len(releases),
    )
    return len(releases)


def _validate_quarter(quarter: int) -> None:
    if quarter not in QUARTERS:
        raise ValidationError(
            f"Quarter must be one of 1, 2, 3 or 4 (got {quarter}).", field="quarter"
        )


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------


def release_quarter(db: Session, data: ReleaseCreate) -> BudgetRelease:
    """Release the planned amount for one quarter of an allocation.

    Args:
        db: Active SQLAlchemy session.
        data: Allocation id, quarter and optional date/remarks.

    Returns:
        The new regular ``BudgetRelease``.

    Raises:
        ValidationError: Quarter outside 1–4.
        AllocationNotFound: Unknown allocation id.
        AlreadyReleased: The quarter was released before.
        NothingToRelease: The planned amount for the quarter is zero.
    """
    _validate_quarter(data.quarter)

    with unit_of_work(db, data.allocation_id) as locked:
        allocation = locked[data.allocation_id]
        if allocation.is_released(data.quarter):
            logger.warning(
                "release_quarter: allocation_id=%d Q%d already released",
                allocation.id, data.quarter,
            )
            raise AlreadyReleased(
                f"{QUARTER_LABELS[data.quarter]} of allocation {allocation.id} "
                f"has already been released.",
                field="quarter",
            )
        amount = to_money(allocation.planned_amount(data.quarter))
        if amount <= 0:
            raise NothingToRelease(
                f"Nothing is planned for {QUARTER_LABELS[data.quarter]} of "
                f"allocation {allocation.id}.",
                field="quarter",
            )

        release = record_release(
            db,
            allocation,
            amount,
            RELEASE_REGULAR,
            data.quarter,
            data.date_released or datetime.date.today(),
            data.remarks or f"{QUARTER_LABELS[data.quarter]} release",
        )
        allocation.set_released(data.quarter, True)
        db.flush()

    logger.info(
        "release_quarter: allocation_id=%d Q%d amount=%s release_id=%d",
        allocation.id, data.quarter, amount, release.id,
    )
    return release


def unrelease(db: Session, release_id: int) -> None:
    """Reverse a regular release, clearing its quarter flag.

    Raises:
        NotFound: Unknown release id.
        ValidationError: The release is not a regular release.
    """
    existing = db.get(BudgetRelease, release_id)
    if existing is None:
        raise NotFound(f"Budget release {release_id} not found.", field="id")

    with unit_of_work(db, existing.allocation_id) as locked:
        release = db.get(BudgetRelease, release_id, populate_existing=True)
        if release is None:
            raise NotFound(f"Budget release {release_id} not found.", field="id")
        if release.type != RELEASE_REGULAR:
            raise ValidationError(
                f"Release {release_id} was created by adjustment "
                f"{release.adjustment_id}; revert the adjustment instead.",
                field="id",
            )
        allocation = locked[release.allocation_id]
        allocation.set_released(release.quarter, False)
        db.delete(release)

    logger.info(
        "unrelease: release_id=%d allocation_id=%d Q%d",
        release_id, allocation.id, release.quarter,
    )


def total_released(db: Session, allocation_id: int) -> Decimal:
    """Signed sum of every release against *allocation_id*."""
    return availability.total_released(db, allocation_id)


def get_release(db: Session, release_id: int) -> BudgetRelease:
    release = db.get(BudgetRelease, release_id)
    if release is None:
        raise NotFound(f"Budget release {release_id} not found.", field="id")
    return release


def list_for_allocation(db: Session, allocation_id: int) -> list[BudgetRelease]:
    return list_releases(db, allocation_id=allocation_id)


def list_releases(
    db: Session,
    allocation_id: int | None = None,
    cost_center: str | None = None,
    financial_year: str | None = None,
    release_type: str | None = None,
) -> list[BudgetRelease]:
    """Return releases matching the optional filters, oldest first.

    Raises:
        ValidationError: If *release_type* is not a known release type.
    """
    if release_type is not None:
        release_type = release_type.strip().lower()
    if release_type is not None and release_type not in RELEASE_TYPES:
        raise ValidationError(
            f"Unknown release type '{release_type}'.", field="type"
        )
    stmt = select(BudgetRelease)
    if allocation_id is not None:
        stmt = stmt.where(BudgetRelease.allocation_id == allocation_id)
    if cost_center is not None:
        stmt = stmt.where(BudgetRelease.cost_center == cost_center)
    if financial_year is not None:
        stmt = stmt.where(BudgetRelease.financial_year == financial_year)
    if release_type is not None:
        stmt = stmt.where(BudgetRelease.type == release_type)
    stmt = stmt.order_by(BudgetRelease.date_released, BudgetRelease.id)
    return list(db.scalars(stmt))
