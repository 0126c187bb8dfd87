"""
Budget entry synchronizer.

Repairs drift between ``budget_allocation`` and the denormalized
``budget_entry`` reporting table.  Rows are matched on
(object code, cost center, financial year):

- an entry with no matching allocation is an orphan and is deleted;
- an allocation with no entry gets one, seeded with ``amount`` equal to
  the allocation total and nothing spent.

Running it twice in a row changes nothing the second time.  It runs inside
every allocation create, update and delete, once at startup, and on demand
through ``POST /api/budgets/sync``.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from budget_ledger.models.budget_allocation import BudgetAllocation
from budget_ledger.models.budget_entry import BudgetEntry
from budget_ledger.services.transaction import unit_of_work
from budget_ledger.utils.money import to_money

logger = logging.getLogger(__name__)

_Key = tuple[str, str, str]


def _key(row: BudgetAllocation | BudgetEntry) -> _Key:
    return (row.object_code, row.cost_center, row.financial_year)


def entry_from_allocation(allocation: BudgetAllocation) -> BudgetEntry:
    """Build the seed budget entry that mirrors *allocation*."""
    amount = to_money(allocation.total_allocation)
    return BudgetEntry(
        name=allocation.object_code,
        object_code=allocation.object_code,
        cost_center=allocation.cost_center,
        cost_center_name=allocation.cost_center_name,
        category_name=allocation.code_description,
        financial_year=allocation.financial_year,
        amount=amount,
        spent=to_money(0),
        remaining=amount,
        period="yearly",
        description=allocation.notes,
    )


def synchronize(db: Session) -> tuple[int, int]:
    """Reconcile entries against allocations inside the caller's transaction.

    Does not commit.

    Returns:
        ``(created, deleted)`` counts.
    """
    allocations = {_key(a): a for a in db.scalars(select(BudgetAllocation))}
    entries = list(db.scalars(select(BudgetEntry)))

    deleted = 0
    covered: set[_Key] = set()
    for entry in entries:
        key = _key(entry)
        if key in allocations:
            covered.add(key)
        else:
            db.delete(entry)
            deleted += 1

    created = 0
    for key, allocation in allocations.items():
        if key not in covered:
            db.add(entry_from_allocation(allocation))
            created += 1

    db.flush()
    logger.debug("synchronize: created=%d deleted=%d", created, deleted)
    return created, deleted


def reconcile(db: Session) -> tuple[int, int]:
    """Run :func:`synchronize` as its own committed transaction."""
    with unit_of_work(db):
        created, deleted = synchronize(db)
    logger.info("reconcile: budget entries created=%d deleted=%d", created, deleted)
    return created, deleted
