"""Seed data script for the budget ledger database.

Populates reference lists and a demo allocation set for development.
The script is idempotent: it checks for existing records before inserting,
and goes through the service layer so quarterly plans, releases and
adjustments obey the same rules as API calls.

Usage (from the repository root):
    python seed_data.py
"""

from __future__ import annotations

import os
import sys
from datetime import date
from decimal import Decimal

# Ensure the package is importable when running from the repository root
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from budget_ledger.database import Base, SessionLocal, engine  # noqa: E402
from budget_ledger.models import BudgetRelease, CostCenter, ObjectCode  # noqa: E402
from budget_ledger.schemas.budget_adjustment import AdjustmentCreate  # noqa: E402
from budget_ledger.schemas.budget_allocation import AllocationCreate  # noqa: E402
from budget_ledger.schemas.budget_release import ReleaseCreate  # noqa: E402
from budget_ledger.services import (  # noqa: E402
    adjustment_service,
    allocation_service,
    release_service,
    sync_service,
)

FINANCIAL_YEAR = "2024-25"

OBJECT_CODES = [
    ("A01101", "Basic Pay", "Employee Related Expenses"),
    ("A01202", "House Rent Allowance", "Employee Related Expenses"),
    ("A03201", "Postage and Telegraph", "Operating Expenses"),
    ("A03303", "Electricity", "Operating Expenses"),
    ("A03901", "Stationery", "Operating Expenses"),
    ("A13001", "Repair of Transport", "Repairs and Maintenance"),
]

COST_CENTERS = [
    ("LZ4064", "District Accounts Office"),
    ("LZ4065", "Treasury Office"),
]

ALLOCATIONS = [
    ("A01101", "LZ4064", Decimal("100000"), "quarterly-equal", None),
    ("A03201", "LZ4064", Decimal("20000"), "full", None),
    ("A03303", "LZ4064", Decimal("48000"), "quarterly-custom",
     (Decimal("15000"), Decimal("15000"), Decimal("10000"), Decimal("8000"))),
    ("A01101", "LZ4065", Decimal("80000"), "quarterly-equal", None),
    ("A03901", "LZ4065", Decimal("12000"), "quarterly-equal", None),
]


# ---------------------------------------------------------------------------
# Seed functions
# ---------------------------------------------------------------------------


def seed_object_codes(session) -> None:
    """Insert the object-code reference list if empty."""
    if session.query(ObjectCode).count() > 0:
        print("  [SKIP] ObjectCode — table already has data.")
        return
    session.add_all(
        ObjectCode(code=code, description=description, category=category, is_active=True)
        for code, description, category in OBJECT_CODES
    )
    session.commit()
    print(f"  [OK] ObjectCode — {len(OBJECT_CODES)} rows inserted.")


def seed_cost_centers(session) -> None:
    """Insert the cost-center reference list if empty."""
    if session.query(CostCenter).count() > 0:
        print("  [SKIP] CostCenter — table already has data.")
        return
    session.add_all(
        CostCenter(code=code, name=name, is_active=True) for code, name in COST_CENTERS
    )
    session.commit()
    print(f"  [OK] CostCenter — {len(COST_CENTERS)} rows inserted.")


def seed_allocations(session) -> dict[tuple[str, str], int]:
    """Create the demo allocations that do not exist yet."""
    ids: dict[tuple[str, str], int] = {}
    for object_code, cost_center, total, strategy, custom in ALLOCATIONS:
        existing = allocation_service.find_by_identity(
            session, object_code, cost_center, FINANCIAL_YEAR
        )
        if existing is not None:
            ids[(object_code, cost_center)] = existing.id
            continue
        q1, q2, q3, q4 = custom or (None, None, None, None)
        row = allocation_service.create_allocation(
            session,
            AllocationCreate(
                object_code=object_code,
                cost_center=cost_center,
                financial_year=FINANCIAL_YEAR,
                total_allocation=total,
                release_strategy=strategy,
                q1_release=q1,
                q2_release=q2,
                q3_release=q3,
                q4_release=q4,
                date_created=date(2024, 7, 1),
            ),
        )
        ids[(object_code, cost_center)] = row.id
        print(f"  [OK] Allocation {object_code}/{cost_center} total={total} ({strategy})")
    return ids


def seed_activity(session, ids: dict[tuple[str, str], int]) -> None:
    """Release Q1 everywhere and record two adjustments, once."""
    if session.query(BudgetRelease).count() > 0:
        print("  [SKIP] Releases — ledger already has activity.")
        return

    for allocation_id in ids.values():
        release_service.release_quarter(
            session,
            ReleaseCreate(allocation_id=allocation_id, quarter=1, date_released=date(2024, 7, 15)),
        )
    print(f"  [OK] Q1 released on {len(ids)} allocations.")

    adjustment_service.apply_adjustment(
        session,
        AdjustmentCreate(
            type="supplementary",
            financial_year=FINANCIAL_YEAR,
            amount=Decimal("10000"),
            from_object_code="A01101",
            from_cost_center="LZ4064",
            remarks="Supplementary grant for pay revision",
            date_created=date(2024, 10, 1),
        ),
    )
    adjustment_service.apply_adjustment(
        session,
        AdjustmentCreate(
            type="reappropriation",
            financial_year=FINANCIAL_YEAR,
            amount=Decimal("5000"),
            from_object_code="A03303",
            from_cost_center="LZ4064",
            to_object_code="A03201",
            to_cost_center="LZ4064",
            remarks="Shift savings on electricity to postage",
            date_created=date(2024, 11, 5),
        ),
    )
    print("  [OK] Adjustments — 1 supplementary, 1 reappropriation.")


def main() -> None:
    """Create tables if needed and run every seed step."""
    print("=" * 60)
    print("  Budget Ledger — Seed Data Script")
    print(f"  Financial year: {FINANCIAL_YEAR}")
    print("=" * 60)

    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        print("\n[1/5] Object codes...")
        seed_object_codes(session)

        print("\n[2/5] Cost centers...")
        seed_cost_centers(session)

        print("\n[3/5] Allocations...")
        ids = seed_allocations(session)

        print("\n[4/5] Releases and adjustments...")
        seed_activity(session, ids)

        print("\n[5/5] Budget entries...")
        created, deleted = sync_service.reconcile(session)
        print(f"  [OK] BudgetEntry — created={created} deleted={deleted}")

        print("\n" + "=" * 60)
        print("  Seed completed successfully.")
        print("=" * 60)
    except Exception as exc:
        session.rollback()
        print("\n[ERROR] Seed failed; the current step was rolled back.")
        print(f"  Detail: {exc}")
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main()
