"""BudgetEntry model: denormalized reporting view of allocations."""

from sqlalchemy import Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.sql import func

from budget_ledger.database import Base


class BudgetEntry(Base):
    """Flattened budget line consumed by expenditure matching and reports.

    Not owned by the ledger: rows may drift from the allocation table and
    are repaired by the budget-entry synchronizer.

    Attributes:
        id: Primary key.
        name: Display name (defaults to the object code).
        object_code: Object code this entry mirrors.
        cost_center: Cost-center code this entry mirrors.
        cost_center_name: Cost-center display name.
        category_name: Object-code description.
        financial_year: Financial year label.
        amount: Budgeted amount (seeded from ``total_allocation``).
        spent: Expenditure booked against the entry.
        remaining: ``amount - spent``.
        period: "yearly" or "quarterly".
        description: Free-form description.
        created_at: Record creation timestamp.
        updated_at: Last modification timestamp.
    """

    __tablename__ = "budget_entry"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    object_code = Column(String(20), nullable=False, index=True)
    cost_center = Column(String(20), nullable=False, index=True)
    cost_center_name = Column(String(300), nullable=True)
    category_name = Column(String(300), nullable=True)
    financial_year = Column(String(9), nullable=False, index=True)
    amount = Column(Numeric(15, 2), default=0, nullable=False)
    spent = Column(Numeric(15, 2), default=0, nullable=False)
    remaining = Column(Numeric(15, 2), default=0, nullable=False)
    period = Column(String(20), default="yearly", nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)
