"""BudgetRelease model: signed fund movement against an allocation."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from budget_ledger.database import Base


class BudgetRelease(Base):
    """One actual movement of funds against a BudgetAllocation.

    Regular releases carry ``quarter`` 1–4 and are created by the release
    ledger; adjustment-driven releases carry ``quarter`` 0 and point at the
    adjustment that spawned them through ``adjustment_id``.  Rows are never
    updated, only deleted (unrelease / adjustment revert).

    Attributes:
        id: Primary key.
        allocation_id: FK to BudgetAllocation (owner).
        adjustment_id: FK to BudgetAdjustment for adjustment-driven rows.
        object_code: Denormalized copy of the allocation's object code.
        code_description: Denormalized object-code description.
        cost_center: Denormalized cost-center code.
        cost_center_name: Denormalized cost-center name.
        financial_year: Denormalized financial year.
        quarter: 1–4 for regular releases, 0 for adjustment-driven ones.
        amount: Signed amount (positive = funds made available).
        type: "regular", "supplementary", "reappropriation" or "surrender".
        date_released: Business date of the movement.
        remarks: Free-form remarks.
        created_at: Record creation timestamp.
    """

    __tablename__ = "budget_release"

    id = Column(Integer, primary_key=True, autoincrement=True)
    allocation_id = Column(
        Integer,
        ForeignKey("budget_allocation.id"),
        nullable=False,
        index=True,
    )
    adjustment_id = Column(
        Integer,
        ForeignKey("budget_adjustment.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    object_code = Column(String(20), nullable=False)
    code_description = Column(String(300), nullable=True)
    cost_center = Column(String(20), nullable=False)
    cost_center_name = Column(String(300), nullable=True)
    financial_year = Column(String(9), nullable=False, index=True)
    quarter = Column(Integer, default=0, nullable=False)  # 0–4
    amount = Column(Numeric(15, 2), nullable=False)
    type = Column(String(20), nullable=False)
    # "regular", "supplementary", "reappropriation", "surrender"
    date_released = Column(Date, nullable=False)
    remarks = Column(Text, nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    # Relationships
    allocation = relationship(
        "BudgetAllocation", back_populates="releases", lazy="select"
    )
    adjustment = relationship(
        "BudgetAdjustment", back_populates="releases", lazy="select"
    )
