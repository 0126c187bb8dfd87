"""
Availability calculator.

``available = total_allocation - SUM(signed release amounts)`` for one
allocation.  Every figure is recomputed from the release table on each
call; nothing is cached on the allocation row, so the release ledger stays
the single settlement surface.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from budget_ledger.models.budget_allocation import BudgetAllocation
from budget_ledger.models.budget_release import BudgetRelease
from budget_ledger.utils.constants import (
    QUARTERS,
    RELEASE_REAPPROPRIATION,
    RELEASE_REGULAR,
    RELEASE_SUPPLEMENTARY,
    RELEASE_SURRENDER,
)
from budget_ledger.utils.money import to_money

logger = logging.getLogger(__name__)


def total_released(db: Session, allocation_id: int) -> Decimal:
    """Return the signed sum of every release recorded against *allocation_id*."""
    stmt = select(func.coalesce(func.sum(BudgetRelease.amount), 0)).where(
        BudgetRelease.allocation_id == allocation_id
    )
    return to_money(db.scalar(stmt))


def available(db: Session, allocation: BudgetAllocation) -> Decimal:
    """Return how much of *allocation* can still be committed."""
    return to_money(allocation.total_allocation) - total_released(db, allocation.id)


def total_released_by_allocation(db: Session, allocation_ids: list[int]) -> dict[int, Decimal]:
    """Batch variant of :func:`total_released` for list endpoints.

    Allocations without releases map to zero.
    """
    if not allocation_ids:
        return {}
    stmt = (
        select(BudgetRelease.allocation_id, func.sum(BudgetRelease.amount))
        .where(BudgetRelease.allocation_id.in_(allocation_ids))
        .group_by(BudgetRelease.allocation_id)
    )
    sums = {allocation_id: to_money(total) for allocation_id, total in db.execute(stmt)}
    return {i: sums.get(i, to_money(0)) for i in allocation_ids}


def summarize(db: Session, allocation: BudgetAllocation) -> dict[str, object]:
    """Break the signed release sum of *allocation* down by release type.

    Reappropriations are split by sign into money received and money given
    away.  The five components always add up to ``total_released``.

    Args:
        db: Active SQLAlchemy session.
        allocation: The allocation to summarise.

    Returns:
        Dict whose keys match ``AllocationSummaryResponse`` fields.
    """
    stmt = select(BudgetRelease.type, BudgetRelease.amount).where(
        BudgetRelease.allocation_id == allocation.id
    )
    buckets: dict[str, Decimal] = {
        "regular_released": to_money(0),
        "supplementary_grants": to_money(0),
        "reappropriations_in": to_money(0),
        "reappropriations_out": to_money(0),
        "surrenders": to_money(0),
    }
    for release_type, amount in db.execute(stmt):
        amount = to_money(amount)
        if release_type == RELEASE_REGULAR:
            buckets["regular_released"] += amount
        elif release_type == RELEASE_SUPPLEMENTARY:
            buckets["supplementary_grants"] += amount
        elif release_type == RELEASE_REAPPROPRIATION:
            key = "reappropriations_in" if amount >= 0 else "reappropriations_out"
            buckets[key] += amount
        elif release_type == RELEASE_SURRENDER:
            buckets["surrenders"] += amount

    released = sum(buckets.values(), to_money(0))
    total = to_money(allocation.total_allocation)

    logger.debug("summarize: allocation_id=%d released=%s", allocation.id, released)

    return {
        "allocation_id": allocation.id,
        "total_allocation": total,
        **buckets,
        "total_released": released,
        "available": total - released,
        "released_quarters": [q for q in QUARTERS if allocation.is_released(q)],
    }
