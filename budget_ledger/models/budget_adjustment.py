"""BudgetAdjustment model: supplementary grants, reappropriations, surrenders."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from budget_ledger.database import Base


class BudgetAdjustment(Base):
    """Mid-year adjustment transaction against one or two allocations.

    The adjustment itself only records intent; its effect on available funds
    lives entirely in the signed BudgetRelease rows it spawns (reachable via
    ``releases``).  Deleting an adjustment deletes those rows with it.

    Attributes:
        id: Primary key.
        type: "supplementary", "reappropriation" or "surrender".
        financial_year: Financial year label.
        amount: Always positive; direction is encoded in the spawned releases.
        from_object_code / from_cost_center: Source allocation identity.
        to_object_code / to_cost_center: Destination identity (reappropriation).
        from_allocation_id: FK to the resolved source allocation.
        to_allocation_id: FK to the resolved destination allocation.
        remarks: Free-form remarks.
        date_created: Business date of the adjustment.
        created_at: Record creation timestamp.
        updated_at: Last modification timestamp.
    """

    __tablename__ = "budget_adjustment"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String(20), nullable=False)
    financial_year = Column(String(9), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    from_object_code = Column(String(20), nullable=False)
    from_cost_center = Column(String(20), nullable=False)
    to_object_code = Column(String(20), nullable=True)
    to_cost_center = Column(String(20), nullable=True)
    from_allocation_id = Column(
        Integer, ForeignKey("budget_allocation.id"), nullable=False, index=True
    )
    to_allocation_id = Column(
        Integer, ForeignKey("budget_allocation.id"), nullable=True, index=True
    )
    remarks = Column(Text, nullable=True)
    date_created = Column(Date, nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    from_allocation = relationship(
        "BudgetAllocation", foreign_keys=[from_allocation_id], lazy="select"
    )
    to_allocation = relationship(
        "BudgetAllocation", foreign_keys=[to_allocation_id], lazy="select"
    )
    releases = relationship(
        "BudgetRelease",
        back_populates="adjustment",
        order_by="BudgetRelease.id",
        lazy="select",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
