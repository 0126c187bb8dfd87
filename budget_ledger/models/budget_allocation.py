"""BudgetAllocation model: annual ceiling per object code, cost center and year."""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from budget_ledger.database import Base


class BudgetAllocation(Base):
    """Annual budget allocation split into four planned quarterly releases.

    One row per (object_code, cost_center, financial_year).  The quarterly
    plan (``q1_release`` … ``q4_release``) always sums to
    ``total_allocation``; the ``qN_released`` flags record which quarters
    have actually been paid out through the release ledger.

    Attributes:
        id: Primary key.
        object_code: Expenditure object code, e.g. "A01101".
        code_description: Human-readable description of the object code.
        cost_center: Cost-center code, e.g. "LZ4064".
        cost_center_name: Human-readable cost-center name.
        financial_year: Financial year label, e.g. "2024-25".
        total_allocation: Annual ceiling (> 0).
        q1_release..q4_release: Planned quarterly amounts.
        q1_released..q4_released: Whether each quarter has been released.
        notes: Free-form remarks.
        date_created: Business date the allocation was made.
        created_at: Record creation timestamp.
        updated_at: Last modification timestamp.
    """

    __tablename__ = "budget_allocation"
    __table_args__ = (
        UniqueConstraint(
            "object_code",
            "cost_center",
            "financial_year",
            name="uq_budget_allocation_identity",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    object_code = Column(String(20), nullable=False, index=True)
    code_description = Column(String(300), nullable=True)
    cost_center = Column(String(20), nullable=False, index=True)
    cost_center_name = Column(String(300), nullable=True)
    financial_year = Column(String(9), nullable=False, index=True)
    total_allocation = Column(Numeric(15, 2), nullable=False)
    q1_release = Column(Numeric(15, 2), default=0, nullable=False)
    q2_release = Column(Numeric(15, 2), default=0, nullable=False)
    q3_release = Column(Numeric(15, 2), default=0, nullable=False)
    q4_release = Column(Numeric(15, 2), default=0, nullable=False)
    q1_released = Column(Boolean, default=False, nullable=False)
    q2_released = Column(Boolean, default=False, nullable=False)
    q3_released = Column(Boolean, default=False, nullable=False)
    q4_released = Column(Boolean, default=False, nullable=False)
    notes = Column(Text, nullable=True)
    date_created = Column(Date, nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    releases = relationship(
        "BudgetRelease",
        back_populates="allocation",
        order_by="BudgetRelease.id",
        lazy="select",
    )

    def planned_amount(self, quarter: int):
        """Return the planned amount for *quarter* (1–4)."""
        return getattr(self, f"q{quarter}_release")

    def is_released(self, quarter: int) -> bool:
        """Return whether *quarter* (1–4) has already been released."""
        return bool(getattr(self, f"q{quarter}_released"))

    def set_released(self, quarter: int, value: bool) -> None:
        setattr(self, f"q{quarter}_released", value)
