"""Read-only queries for the object-code and cost-center reference lists."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from budget_ledger.models.cost_center import CostCenter
from budget_ledger.models.object_code import ObjectCode


def list_object_codes(db: Session, include_inactive: bool = False) -> list[ObjectCode]:
    stmt = select(ObjectCode).order_by(ObjectCode.code)
    if not include_inactive:
        stmt = stmt.where(ObjectCode.is_active.is_(True))
    return list(db.scalars(stmt))


def list_cost_centers(db: Session, include_inactive: bool = False) -> list[CostCenter]:
    stmt = select(CostCenter).order_by(CostCenter.code)
    if not include_inactive:
        stmt = stmt.where(CostCenter.is_active.is_(True))
    return list(db.scalars(stmt))
