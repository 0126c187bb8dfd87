"""SQLAlchemy models package for the budget ledger.

Importing all models here ensures that SQLAlchemy's mapper registry is
populated before ``Base.metadata.create_all()`` or Alembic migrations run.
The import order follows the foreign-key dependency graph so that parent
tables are always registered before their children.

Usage from other modules:
    from budget_ledger.models import BudgetAllocation, BudgetRelease
"""

# Reference lookups (no FK dependencies)
from budget_ledger.models.object_code import ObjectCode  # noqa: F401
from budget_ledger.models.cost_center import CostCenter  # noqa: F401

# Ledger core
from budget_ledger.models.budget_allocation import BudgetAllocation  # noqa: F401
from budget_ledger.models.budget_adjustment import BudgetAdjustment  # noqa: F401
from budget_ledger.models.budget_release import BudgetRelease  # noqa: F401

# Denormalized reporting view
from budget_ledger.models.budget_entry import BudgetEntry  # noqa: F401

__all__ = [
    "ObjectCode",
    "CostCenter",
    "BudgetAllocation",
    "BudgetAdjustment",
    "BudgetRelease",
    "BudgetEntry",
]
