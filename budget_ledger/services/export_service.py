"""
Export service layer.

Reuses the allocation queries and the availability calculator, then hands
the rows to ``LedgerWorkbook``.  One row per allocation: identity, total,
planned quarters with their released flags, total released and available.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from budget_ledger.exporters.excel_exporter import LedgerWorkbook
from budget_ledger.services import allocation_service, availability
from budget_ledger.utils.money import to_money

logger = logging.getLogger(__name__)

HEADERS: list[str] = [
    "Financial Year",
    "Cost Center",
    "Cost Center Name",
    "Object Code",
    "Description",
    "Total Allocation",
    "Q1 Planned",
    "Q1 Released",
    "Q2 Planned",
    "Q2 Released",
    "Q3 Planned",
    "Q3 Released",
    "Q4 Planned",
    "Q4 Released",
    "Total Released",
    "Available",
]

_NUMERIC_COLS = {5, 6, 8, 10, 12, 14, 15}
_FLAG_COLS = {7, 9, 11, 13}


def allocation_rows(
    db: Session,
    financial_year: str | None = None,
) -> tuple[list[list[Any]], dict[str, Decimal]]:
    """Return export rows plus grand totals for the selected allocations."""
    allocations = allocation_service.list_allocations(db, financial_year=financial_year)
    released = availability.total_released_by_allocation(db, [a.id for a in allocations])

    rows: list[list[Any]] = []
    totals = {"Total Allocation": to_money(0), "Total Released": to_money(0), "Available": to_money(0)}
    for a in allocations:
        total = to_money(a.total_allocation)
        rows.append([
            a.financial_year,
            a.cost_center,
            a.cost_center_name,
            a.object_code,
            a.code_description,
            total,
            a.q1_release, a.q1_released,
            a.q2_release, a.q2_released,
            a.q3_release, a.q3_released,
            a.q4_release, a.q4_released,
            released[a.id],
            total - released[a.id],
        ])
        totals["Total Allocation"] += total
        totals["Total Released"] += released[a.id]
        totals["Available"] += total - released[a.id]
    return rows, totals


def export_allocations_excel(db: Session, financial_year: str | None = None) -> bytes:
    """Build the allocation ledger workbook.

    Args:
        db: Active SQLAlchemy session.
        financial_year: Optional ``YYYY-YY`` filter; all years when omitted.

    Returns:
        Raw ``.xlsx`` bytes.
    """
    rows, totals = allocation_rows(db, financial_year)
    title = f"Budget Allocations {financial_year}" if financial_year else "Budget Allocations"
    workbook = (
        LedgerWorkbook(title, filters={"Financial year": financial_year or "All"})
        .set_column_count(len(HEADERS))
        .add_header()
        .add_totals_row(totals)
        .add_data_table(HEADERS, rows, numeric_cols=_NUMERIC_COLS, flag_cols=_FLAG_COLS)
    )
    content = workbook.finalize()
    logger.info("export_allocations_excel: fy=%s rows=%d bytes=%d",
                financial_year, len(rows), len(content))
    return content
