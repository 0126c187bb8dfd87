"""
Transactional boundary shared by every mutating ledger operation.

``unit_of_work`` is the only place that commits.  It gives each operation
single-writer-per-allocation semantics on any backend:

1. An in-process ``threading.Lock`` per allocation id is taken in ascending
   id order.  This serialises writers when the storage has no row locks
   (SQLite) and the fixed order keeps two crossing reappropriations from
   deadlocking.
2. The allocation rows are re-read with ``SELECT ... FOR UPDATE`` (a no-op
   on SQLite) and ``populate_existing`` so no stale identity-map snapshot
   feeds a conditional write.
3. The session commits once at the end; any exception rolls back, and
   ``SQLAlchemyError`` is re-raised as a retryable ``StorageError``.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator
from contextlib import ExitStack, contextmanager

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from budget_ledger.models.budget_allocation import BudgetAllocation
from budget_ledger.utils.errors import AllocationNotFound, StorageError

logger = logging.getLogger(__name__)


class AllocationLocks:
    """Registry of per-allocation mutexes.

    Locks are created lazily and kept for the life of the process; the
    number of allocations per deployment is small (thousands).
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[int, threading.Lock] = {}

    def _lock_for(self, allocation_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(allocation_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[allocation_id] = lock
            return lock

    @contextmanager
    def hold(self, allocation_ids: Iterable[int]) -> Iterator[None]:
        """Acquire the locks for *allocation_ids* in ascending order."""
        with ExitStack() as stack:
            for allocation_id in sorted(set(allocation_ids)):
                lock = self._lock_for(allocation_id)
                lock.acquire()
                stack.callback(lock.release)
            yield


allocation_locks = AllocationLocks()


def lock_allocations(db: Session, allocation_ids: Iterable[int]) -> dict[int, BudgetAllocation]:
    """Re-read *allocation_ids* from storage with row locks, ordered by id.

    Args:
        db: Active SQLAlchemy session.
        allocation_ids: Allocation primary keys to lock.

    Returns:
        Mapping of id to freshly loaded ``BudgetAllocation``.

    Raises:
        AllocationNotFound: If any id does not exist.
    """
    ids = sorted(set(allocation_ids))
    if not ids:
        return {}
    stmt = (
        select(BudgetAllocation)
        .where(BudgetAllocation.id.in_(ids))
        .order_by(BudgetAllocation.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    rows = {row.id: row for row in db.scalars(stmt)}
    missing = [i for i in ids if i not in rows]
    if missing:
        raise AllocationNotFound(
            f"Budget allocation {missing[0]} not found.", field="allocationId"
        )
    return rows


@contextmanager
def unit_of_work(db: Session, *allocation_ids: int) -> Iterator[dict[int, BudgetAllocation]]:
    """Run the enclosed block as one atomic, allocation-serialised transaction.

    Yields the locked allocations keyed by id (empty when no ids are given).
    """
    with allocation_locks.hold(allocation_ids):
        try:
            locked = lock_allocations(db, allocation_ids)
            yield locked
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("unit_of_work: storage failure, rolled back")
            raise StorageError(
                "The operation could not be stored and was not applied; retry it."
            ) from exc
        except BaseException:
            db.rollback()
            raise
