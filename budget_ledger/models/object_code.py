"""ObjectCode model: expenditure object code reference list."""

from sqlalchemy import Boolean, Column, Integer, String

from budget_ledger.database import Base


class ObjectCode(Base):
    """Chart-of-accounts object code, e.g. "A01101" (basic pay).

    Read-only from the ledger's point of view; only used to resolve
    descriptions for allocations created without one.

    Attributes:
        id: Primary key.
        code: Unique object code.
        description: Full description of the expenditure head.
        category: Optional grouping label.
        is_active: Soft-delete flag.
    """

    __tablename__ = "object_code"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(20), unique=True, nullable=False)
    description = Column(String(300), nullable=False)
    category = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
