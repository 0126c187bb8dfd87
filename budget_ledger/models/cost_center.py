"""CostCenter model: cost-center reference list."""

from sqlalchemy import Boolean, Column, Integer, String

from budget_ledger.database import Base


class CostCenter(Base):
    """Government cost center (drawing and disbursing unit).

    Attributes:
        id: Primary key.
        code: Unique cost-center code, e.g. "LZ4064".
        name: Display name.
        description: Optional longer description.
        is_active: Soft-delete flag.
    """

    __tablename__ = "cost_center"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(20), unique=True, nullable=False)
    name = Column(String(300), nullable=False)
    description = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
