"""
Service functions for the ``/api/budgets`` reporting view and for the
financial-year list shared by every filter dropdown.
"""

from __future__ import annotations

import datetime
import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from budget_ledger.config import get_settings
from budget_ledger.models.budget_allocation import BudgetAllocation
from budget_ledger.models.budget_entry import BudgetEntry
from budget_ledger.schemas.budget_entry import BudgetEntryCreate, BudgetEntryUpdate
from budget_ledger.services.allocation_service import validate_financial_year
from budget_ledger.services.transaction import unit_of_work
from budget_ledger.utils.constants import BUDGET_ENTRY_PERIODS
from budget_ledger.utils.errors import NotFound, ValidationError
from budget_ledger.utils.money import to_money

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Budget entries
# ---------------------------------------------------------------------------


def list_entries(
    db: Session,
    financial_year: str | None = None,
    cost_center: str | None = None,
) -> list[BudgetEntry]:
    stmt = select(BudgetEntry)
    if financial_year is not None:
        stmt = stmt.where(BudgetEntry.financial_year == financial_year)
    if cost_center is not None:
        stmt = stmt.where(BudgetEntry.cost_center == cost_center)
    stmt = stmt.order_by(
        BudgetEntry.financial_year.desc(), BudgetEntry.cost_center, BudgetEntry.object_code
    )
    return list(db.scalars(stmt))


def _require_code(value: str | None, field: str, label: str) -> str:
    code = (value or "").strip()
    if not code:
        raise ValidationError(f"{label} is required.", field=field)
    return code


def _amounts(amount, spent) -> tuple[Decimal, Decimal]:
    try:
        amount = to_money(amount)
        spent = to_money(spent)
    except ValueError:
        raise ValidationError("Amounts must be numbers.", field="amount")
    if amount < 0:
        raise ValidationError("Amount cannot be negative.", field="amount")
    if spent < 0:
        raise ValidationError("Spent cannot be negative.", field="spent")
    return amount, spent


def _check_period(period: str) -> str:
    if period not in BUDGET_ENTRY_PERIODS:
        raise ValidationError(
            f"Period must be one of: {', '.join(BUDGET_ENTRY_PERIODS)}.", field="period"
        )
    return period


def get_entry(db: Session, entry_id: int) -> BudgetEntry:
    """Return one budget entry.

    Raises:
        NotFound: Unknown id.
    """
    entry = db.get(BudgetEntry, entry_id)
    if entry is None:
        raise NotFound(f"Budget entry {entry_id} not found.", field="id")
    return entry


def create_entry(db: Session, data: BudgetEntryCreate) -> BudgetEntry:
    """Insert a budget entry; ``remaining`` is derived as ``amount - spent``.

    Raises:
        ValidationError: Blank codes, bad financial year, negative amounts
            or an unknown period.
    """
    object_code = _require_code(data.object_code, "objectCode", "Object code")
    cost_center = _require_code(data.cost_center, "costCenter", "Cost center")
    financial_year = validate_financial_year(data.financial_year)
    amount, spent = _amounts(data.amount, data.spent)
    _check_period(data.period)

    with unit_of_work(db):
        entry = BudgetEntry(
            name=(data.name or "").strip() or object_code,
            object_code=object_code,
            cost_center=cost_center,
            cost_center_name=data.cost_center_name,
            category_name=data.category_name,
            financial_year=financial_year,
            amount=amount,
            spent=spent,
            remaining=amount - spent,
            period=data.period,
            description=data.description,
        )
        db.add(entry)
        db.flush()

    logger.info("create_entry: id=%d %s/%s/%s amount=%s",
                entry.id, object_code, cost_center, financial_year, amount)
    return entry


def update_entry(db: Session, entry_id: int, data: BudgetEntryUpdate) -> BudgetEntry:
    """Apply a partial update; ``remaining`` is re-derived from the result.

    This is how the expenditure side records ``spent`` against an entry.

    Raises:
        NotFound: Unknown id.
        ValidationError: Same rules as create.
    """
    changes = data.model_dump(exclude_unset=True)

    with unit_of_work(db):
        entry = get_entry(db, entry_id)
        if "object_code" in changes:
            entry.object_code = _require_code(data.object_code, "objectCode", "Object code")
        if "cost_center" in changes:
            entry.cost_center = _require_code(data.cost_center, "costCenter", "Cost center")
        if "financial_year" in changes:
            entry.financial_year = validate_financial_year(data.financial_year)
        if "period" in changes:
            entry.period = _check_period(data.period)
        amount, spent = _amounts(
            entry.amount if data.amount is None else data.amount,
            entry.spent if data.spent is None else data.spent,
        )
        entry.amount = amount
        entry.spent = spent
        entry.remaining = amount - spent
        if "name" in changes:
            entry.name = (data.name or "").strip() or entry.object_code
        for field in ("cost_center_name", "category_name", "description"):
            if field in changes:
                setattr(entry, field, changes[field])

    logger.info("update_entry: id=%d fields=%s remaining=%s",
                entry_id, sorted(changes), entry.remaining)
    return entry


def delete_entry(db: Session, entry_id: int) -> None:
    """Delete a budget entry.

    Raises:
        NotFound: Unknown id.
    """
    with unit_of_work(db):
        db.delete(get_entry(db, entry_id))
    logger.info("delete_entry: id=%d", entry_id)


# ---------------------------------------------------------------------------
# Financial years
# ---------------------------------------------------------------------------


def current_financial_year(
    today: datetime.date | None = None,
    start_month: int | None = None,
) -> str:
    """Return the ``YYYY-YY`` label of the financial year containing *today*."""
    today = today or datetime.date.today()
    start_month = start_month or get_settings().FINANCIAL_YEAR_START_MONTH
    start = today.year if today.month >= start_month else today.year - 1
    return f"{start}-{(start + 1) % 100:02d}"


def financial_years(db: Session) -> list[str]:
    """Distinct financial years across allocations and entries, newest first.

    Falls back to the current financial year when nothing is stored.
    """
    years = set(db.scalars(select(BudgetAllocation.financial_year).distinct()))
    years.update(db.scalars(select(BudgetEntry.financial_year).distinct()))
    if not years:
        return [current_financial_year()]
    return sorted(years, key=lambda label: int(label.split("-")[0]), reverse=True)
