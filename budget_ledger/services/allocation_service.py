"""
Allocation store service layer.

All database access for ``/api/budget-allocations`` lives here.  Functions
receive a SQLAlchemy ``Session`` and schema instances and return ORM rows or
response schemas ready for serialisation by FastAPI.

Design notes
------------
- Release-strategy derivation (:func:`derive_quarters`) and its inverse
  (:func:`detect_strategy`) are pure functions; the inverse compares the
  stored quarters against each derived pattern within the configured
  tolerance and falls back to ``quarterly-custom``.
- Equal splits round each quarter to cents and put the remainder on Q4 so
  the four quarters always add up to the total exactly.
- The (object code, cost center, financial year) triple is checked before
  insert and also protected by a unique constraint; a constraint violation
  racing past the check is reported as ``DuplicateAllocation`` too.
- Once any release references an allocation, its identity, total and
  quarterly split are frozen.  Only descriptive fields stay editable.
- Every create, update and delete reconciles the ``budget_entry`` view in
  the same transaction.
"""

from __future__ import annotations

import datetime
import logging
import re
from decimal import Decimal
from typing import Any

from sqlalchemy import exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from budget_ledger.config import get_settings
from budget_ledger.models.budget_adjustment import BudgetAdjustment
from budget_ledger.models.budget_allocation import BudgetAllocation
from budget_ledger.models.budget_release import BudgetRelease
from budget_ledger.models.cost_center import CostCenter
from budget_ledger.models.object_code import ObjectCode
from budget_ledger.schemas.budget_allocation import (
    AllocationCreate,
    AllocationResponse,
    AllocationUpdate,
)
from budget_ledger.services import availability, release_service, sync_service
from budget_ledger.services.transaction import unit_of_work
from budget_ledger.utils.constants import (
    FINANCIAL_YEAR_PATTERN,
    QUARTERS,
    RELEASE_STRATEGIES,
    STRATEGY_ALIASES,
    STRATEGY_CUSTOM,
    STRATEGY_EQUAL,
    STRATEGY_FULL,
    ZERO,
)
from budget_ledger.utils.errors import (
    AllocationNotFound,
    DuplicateAllocation,
    HasDependents,
    StorageError,
    ValidationError,
)
from budget_ledger.utils.money import to_money, within_tolerance

logger = logging.getLogger(__name__)

_QUARTER_FIELDS: tuple[str, ...] = tuple(f"q{q}_release" for q in QUARTERS)


# ---------------------------------------------------------------------------
# Pure helpers: release strategy
# ---------------------------------------------------------------------------


def normalize_strategy(value: str | None) -> str:
    """Map a client-supplied strategy name onto one of ``RELEASE_STRATEGIES``.

    Raises:
        ValidationError: If *value* is not a known strategy or alias.
    """
    strategy = (value or "").strip().lower()
    strategy = STRATEGY_ALIASES.get(strategy, strategy)
    if strategy not in RELEASE_STRATEGIES:
        raise ValidationError(
            f"Unknown release strategy '{value}'. "
            f"Expected one of: {', '.join(RELEASE_STRATEGIES)}.",
            field="releaseStrategy",
        )
    return strategy


def derive_quarters(
    strategy: str,
    total: Decimal,
    custom: tuple[Any, Any, Any, Any] | None = None,
) -> tuple[Decimal, Decimal, Decimal, Decimal]:
    """Return the planned Q1–Q4 amounts for *strategy* and *total*.

    Args:
        strategy: One of ``RELEASE_STRATEGIES`` (already normalised).
        total: Annual allocation.
        custom: Caller-supplied quarters, used only for ``quarterly-custom``.

    Returns:
        Four cent-rounded amounts.

    Raises:
        ValidationError: For ``quarterly-custom`` when a quarter is negative or
            the quarters do not sum to *total* within tolerance.
    """
    total = to_money(total)
    if strategy == STRATEGY_FULL:
        return total, ZERO, ZERO, ZERO
    if strategy == STRATEGY_EQUAL:
        share = to_money(total / 4)
        return share, share, share, total - share * 3

    quarters = tuple(to_money(q) for q in (custom or (None, None, None, None)))
    for number, amount in zip(QUARTERS, quarters):
        if amount < 0:
            raise ValidationError(
                f"Q{number} release cannot be negative.", field=f"q{number}Release"
            )
    planned = sum(quarters, ZERO)
    tolerance = get_settings().AMOUNT_TOLERANCE
    if not within_tolerance(planned, total, tolerance):
        raise ValidationError(
            f"The sum of quarterly releases ({planned:.2f}) must equal the "
            f"total allocation ({total:.2f}).",
            field="q1Release",
        )
    return quarters  # type: ignore[return-value]


def detect_strategy(total: Any, quarters: tuple[Any, Any, Any, Any]) -> str:
    """Reverse-match stored quarters against the derivable strategies.

    Used to pre-populate edit forms.  Returns ``quarterly-custom`` when
    neither the equal nor the full pattern matches within tolerance.
    """
    tolerance = get_settings().AMOUNT_TOLERANCE
    for strategy in (STRATEGY_EQUAL, STRATEGY_FULL):
        pattern = derive_quarters(strategy, total)
        if all(within_tolerance(a, b, tolerance) for a, b in zip(quarters, pattern)):
            return strategy
    return STRATEGY_CUSTOM


def current_quarters(row: BudgetAllocation) -> tuple[Decimal, Decimal, Decimal, Decimal]:
    return tuple(to_money(getattr(row, f)) for f in _QUARTER_FIELDS)  # type: ignore[return-value]


# ---------------------------------------------------------------------------
# Internal helpers: validation and lookups
# ---------------------------------------------------------------------------


def _require(value: str | None, field: str, label: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{label} is required.", field=field)
    return cleaned


def validate_financial_year(value: str | None, field: str = "financialYear") -> str:
    """Check a ``YYYY-YY`` label whose suffix is the following year.

    Raises:
        ValidationError: If the label is blank or malformed.
    """
    label = _require(value, field, "Financial year")
    if not re.match(FINANCIAL_YEAR_PATTERN, label):
        raise ValidationError(
            f"Financial year '{label}' must look like '2024-25'.", field=field
        )
    start, end = label.split("-")
    if (int(start) + 1) % 100 != int(end):
        raise ValidationError(
            f"Financial year '{label}' must span two consecutive years.", field=field
        )
    return label


def _positive_total(value: Any) -> Decimal:
    try:
        total = to_money(value)
    except ValueError:
        raise ValidationError("Total allocation must be a number.", field="totalAllocation")
    if total <= 0:
        raise ValidationError(
            "Total allocation must be greater than zero.", field="totalAllocation"
        )
    return total


def _lookup_code_description(db: Session, object_code: str) -> str | None:
    return db.scalar(select(ObjectCode.description).where(ObjectCode.code == object_code))


def _lookup_cost_center_name(db: Session, cost_center: str) -> str | None:
    return db.scalar(select(CostCenter.name).where(CostCenter.code == cost_center))


def find_by_identity(
    db: Session,
    object_code: str,
    cost_center: str,
    financial_year: str,
) -> BudgetAllocation | None:
    """Return the allocation for the given triple, or ``None``."""
    return db.scalar(
        select(BudgetAllocation).where(
            BudgetAllocation.object_code == object_code,
            BudgetAllocation.cost_center == cost_center,
            BudgetAllocation.financial_year == financial_year,
        )
    )


def has_releases(db: Session, allocation_id: int) -> bool:
    return bool(
        db.scalar(select(exists().where(BudgetRelease.allocation_id == allocation_id)))
    )


def _duplicate_error(object_code: str, cost_center: str, financial_year: str) -> DuplicateAllocation:
    return DuplicateAllocation(
        f"An allocation already exists for object code {object_code}, "
        f"cost center {cost_center} and financial year {financial_year}.",
        field="objectCode",
    )


def _flush_identity(db: Session, row: BudgetAllocation) -> None:
    """Flush pending changes, turning a unique-constraint hit into a domain error."""
    try:
        db.flush()
    except IntegrityError as exc:
        raise _duplicate_error(row.object_code, row.cost_center, row.financial_year) from exc


# ---------------------------------------------------------------------------
# Public service functions: read operations
# ---------------------------------------------------------------------------


def get_allocation(db: Session, allocation_id: int) -> BudgetAllocation:
    """Return the allocation with *allocation_id*.

    Raises:
        AllocationNotFound: If it does not exist.
    """
    row = db.get(BudgetAllocation, allocation_id)
    if row is None:
        raise AllocationNotFound(f"Budget allocation {allocation_id} not found.")
    return row


def list_allocations(
    db: Session,
    financial_year: str | None = None,
    cost_center: str | None = None,
    object_code: str | None = None,
) -> list[BudgetAllocation]:
    """Return allocations matching the optional filters, ordered by identity."""
    stmt = select(BudgetAllocation)
    if financial_year is not None:
        stmt = stmt.where(BudgetAllocation.financial_year == financial_year)
    if cost_center is not None:
        stmt = stmt.where(BudgetAllocation.cost_center == cost_center)
    if object_code is not None:
        stmt = stmt.where(BudgetAllocation.object_code == object_code)
    stmt = stmt.order_by(
        BudgetAllocation.financial_year.desc(),
        BudgetAllocation.cost_center,
        BudgetAllocation.object_code,
    )
    rows = list(db.scalars(stmt))
    logger.debug("list_allocations: fy=%s cc=%s oc=%s -> %d rows",
                 financial_year, cost_center, object_code, len(rows))
    return rows


def build_response(
    row: BudgetAllocation,
    released: Decimal,
) -> AllocationResponse:
    """Construct an ``AllocationResponse`` from a row and its released total."""
    total = to_money(row.total_allocation)
    return AllocationResponse(
        id=row.id,
        object_code=row.object_code,
        code_description=row.code_description,
        cost_center=row.cost_center,
        cost_center_name=row.cost_center_name,
        financial_year=row.financial_year,
        total_allocation=total,
        q1_release=row.q1_release,
        q2_release=row.q2_release,
        q3_release=row.q3_release,
        q4_release=row.q4_release,
        q1_released=row.q1_released,
        q2_released=row.q2_released,
        q3_released=row.q3_released,
        q4_released=row.q4_released,
        notes=row.notes,
        date_created=row.date_created,
        release_strategy=detect_strategy(total, current_quarters(row)),
        total_released=released,
        available=total - released,
    )


def to_response(db: Session, row: BudgetAllocation) -> AllocationResponse:
    return build_response(row, availability.total_released(db, row.id))


def to_responses(db: Session, rows: list[BudgetAllocation]) -> list[AllocationResponse]:
    released = availability.total_released_by_allocation(db, [r.id for r in rows])
    return [build_response(r, released[r.id]) for r in rows]


# ---------------------------------------------------------------------------
# Public service functions: write operations
# ---------------------------------------------------------------------------


def create_allocation(db: Session, data: AllocationCreate) -> BudgetAllocation:
    """Create an allocation with its strategy-derived quarterly plan.

    Args:
        db: Active SQLAlchemy session.
        data: Validated creation payload.

    Returns:
        The persisted ``BudgetAllocation``.

    Raises:
        ValidationError: Blank identity, bad financial year, non-positive
            total, unknown strategy, or custom quarters not summing to total.
        DuplicateAllocation: If the triple is already allocated.
    """
    object_code = _require(data.object_code, "objectCode", "Object code")
    cost_center = _require(data.cost_center, "costCenter", "Cost center")
    financial_year = validate_financial_year(data.financial_year)
    total = _positive_total(data.total_allocation)
    strategy = normalize_strategy(data.release_strategy)
    quarters = derive_quarters(
        strategy,
        total,
        (data.q1_release, data.q2_release, data.q3_release, data.q4_release),
    )

    if find_by_identity(db, object_code, cost_center, financial_year) is not None:
        logger.warning("create_allocation: duplicate %s/%s/%s",
                       object_code, cost_center, financial_year)
        raise _duplicate_error(object_code, cost_center, financial_year)

    code_description = (data.code_description or "").strip() or _lookup_code_description(
        db, object_code
    )
    cost_center_name = (data.cost_center_name or "").strip() or _lookup_cost_center_name(
        db, cost_center
    )

    with unit_of_work(db):
        row = BudgetAllocation(
            object_code=object_code,
            code_description=code_description,
            cost_center=cost_center,
            cost_center_name=cost_center_name,
            financial_year=financial_year,
            total_allocation=total,
            q1_release=quarters[0],
            q2_release=quarters[1],
            q3_release=quarters[2],
            q4_release=quarters[3],
            q1_released=False,
            q2_released=False,
            q3_released=False,
            q4_released=False,
            notes=data.notes,
            date_created=data.date_created or datetime.date.today(),
        )
        db.add(row)
        _flush_identity(db, row)
        sync_service.synchronize(db)

    logger.info(
        "create_allocation: id=%d %s/%s/%s total=%s strategy=%s",
        row.id, object_code, cost_center, financial_year, total, strategy,
    )
    return row


def update_allocation(
    db: Session,
    allocation_id: int,
    data: AllocationUpdate,
) -> BudgetAllocation:
    """Apply a partial update to an allocation.

    The quarterly plan is re-derived whenever the total, the strategy or
    any quarter is supplied.  Without an explicit strategy, supplying a
    quarter means ``quarterly-custom``; otherwise the stored plan's detected
    strategy is kept.

    Raises:
        AllocationNotFound: Unknown id.
        ValidationError: Same rules as create, or an attempt to change the
            identity, total or split after funds were released.
        DuplicateAllocation: If the new triple collides with another row.
    """
    changes = data.model_dump(exclude_unset=True)

    with unit_of_work(db, allocation_id) as locked:
        row = locked[allocation_id]

        object_code = row.object_code
        cost_center = row.cost_center
        financial_year = row.financial_year
        if "object_code" in changes:
            object_code = _require(data.object_code, "objectCode", "Object code")
        if "cost_center" in changes:
            cost_center = _require(data.cost_center, "costCenter", "Cost center")
        if "financial_year" in changes:
            financial_year = validate_financial_year(data.financial_year)

        total = to_money(row.total_allocation)
        if "total_allocation" in changes:
            total = _positive_total(data.total_allocation)

        quarters = current_quarters(row)
        supplied_quarters = [f for f in _QUARTER_FIELDS if f in changes]
        if "release_strategy" in changes or supplied_quarters or total != to_money(row.total_allocation):
            if "release_strategy" in changes:
                strategy = normalize_strategy(data.release_strategy)
            elif supplied_quarters:
                strategy = STRATEGY_CUSTOM
            else:
                strategy = detect_strategy(row.total_allocation, quarters)
            custom = tuple(
                changes[f] if f in changes else getattr(row, f) for f in _QUARTER_FIELDS
            )
            quarters = derive_quarters(strategy, total, custom)

        identity_changed = (object_code, cost_center, financial_year) != (
            row.object_code, row.cost_center, row.financial_year,
        )
        plan_changed = total != to_money(row.total_allocation) or quarters != current_quarters(row)

        if (identity_changed or plan_changed) and has_releases(db, allocation_id):
            logger.warning("update_allocation: id=%d frozen, releases exist", allocation_id)
            raise ValidationError(
                "Funds have already been released against this allocation; its "
                "identity, total and quarterly split can no longer be changed.",
                field="totalAllocation" if plan_changed else "objectCode",
            )

        if identity_changed:
            other = find_by_identity(db, object_code, cost_center, financial_year)
            if other is not None and other.id != allocation_id:
                raise _duplicate_error(object_code, cost_center, financial_year)

        row.object_code = object_code
        row.cost_center = cost_center
        row.financial_year = financial_year
        row.total_allocation = total
        for field, amount in zip(_QUARTER_FIELDS, quarters):
            setattr(row, field, amount)
        if "code_description" in changes:
            row.code_description = data.code_description
        if "cost_center_name" in changes:
            row.cost_center_name = data.cost_center_name
        if "notes" in changes:
            row.notes = data.notes
        if data.date_created is not None:
            row.date_created = data.date_created
        _flush_identity(db, row)
        sync_service.synchronize(db)

    logger.info("update_allocation: id=%d fields=%s", allocation_id, sorted(changes))
    return row


def delete_allocation(db: Session, allocation_id: int, cascade: bool = True) -> None:
    """Delete an allocation, last in its ownership cascade.

    With *cascade* (the default), every adjustment touching the allocation
    is reverted first, which also restores the counterpart allocation of a
    reappropriation; remaining releases are removed through the release
    ledger; then the allocation row goes, and budget entries are reconciled,
    all in one transaction.

    Raises:
        AllocationNotFound: Unknown id.
        HasDependents: ``cascade=False`` and releases still reference it.
        StorageError: A concurrent adjustment touched another allocation
            while the cascade was being prepared; retrying is safe.
    """
    from budget_ledger.services import adjustment_service

    get_allocation(db, allocation_id)
    counterparts = adjustment_service.allocation_ids_linked_to(db, allocation_id)

    with unit_of_work(db, allocation_id, *counterparts) as locked:
        row = locked[allocation_id]

        if not cascade:
            if has_releases(db, allocation_id):
                raise HasDependents(
                    f"Budget allocation {allocation_id} still has releases; "
                    f"delete them first or use cascade.",
                    field="id",
                )
        else:
            if not adjustment_service.allocation_ids_linked_to(db, allocation_id) <= set(locked):
                raise StorageError(
                    "The allocation changed while it was being deleted; retry."
                )
            adjustments = db.scalars(
                select(BudgetAdjustment).where(
                    (BudgetAdjustment.from_allocation_id == allocation_id)
                    | (BudgetAdjustment.to_allocation_id == allocation_id)
                )
            ).all()
            for adjustment in adjustments:
                adjustment_service.remove_adjustment(db, adjustment)
            release_service.delete_releases_for_allocation(db, allocation_id)

        db.delete(row)
        db.flush()
        created, deleted = sync_service.synchronize(db)

    logger.info(
        "delete_allocation: id=%d cascade=%s entries created=%d deleted=%d",
        allocation_id, cascade, created, deleted,
    )
