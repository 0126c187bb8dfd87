"""BudgetEntrySynchronizer, budget entries and financial years"""

import datetime
from decimal import Decimal

import pytest
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from budget_ledger.models import BudgetEntry
from budget_ledger.schemas.budget_allocation import AllocationUpdate
from budget_ledger.schemas.budget_entry import BudgetEntryCreate, BudgetEntryUpdate
from budget_ledger.services import allocation_service, budget_entry_service, sync_service
from budget_ledger.utils.errors import DuplicateAllocation, NotFound, ValidationError

from tests.conftest import FY


def _entry(object_code: str = "A01101", financial_year: str = FY, **extra) -> BudgetEntryCreate:
    return BudgetEntryCreate(
        object_code=object_code,
        cost_center="LZ4064",
        financial_year=financial_year,
        amount=Decimal("500"),
        **extra,
    )


def _entries(db: Session) -> dict[str, BudgetEntry]:
    return {e.object_code: e for e in db.scalars(select(BudgetEntry))}


def _wipe_entries(db: Session) -> None:
    db.execute(delete(BudgetEntry))
    db.commit()


class TestSynchronize:
    """Orphan removal and missing-entry creation"""

    def test_creates_missing_entries(self, db: Session, make_allocation) -> None:
        make_allocation(total="100000")
        make_allocation(object_code="A03201", total="20000")
        _wipe_entries(db)

        assert sync_service.reconcile(db) == (2, 0)

        entries = _entries(db)
        assert entries["A01101"].amount == Decimal("100000.00")
        assert entries["A01101"].spent == Decimal("0.00")
        assert entries["A01101"].remaining == Decimal("100000.00")
        assert entries["A01101"].name == "A01101"
        assert entries["A03201"].period == "yearly"

    def test_deletes_orphans(self, db: Session, make_allocation) -> None:
        make_allocation()
        budget_entry_service.create_entry(db, _entry(object_code="A09999"))

        assert sync_service.reconcile(db) == (0, 1)
        assert [e.object_code for e in db.scalars(select(BudgetEntry))] == ["A01101"]

    def test_matching_entry_is_left_alone(self, db: Session, make_allocation) -> None:
        make_allocation(total="100000")
        entry = db.scalars(select(BudgetEntry)).one()
        budget_entry_service.update_entry(db, entry.id, BudgetEntryUpdate(spent=Decimal("120")))

        assert sync_service.reconcile(db) == (0, 0)

        entry = db.scalars(select(BudgetEntry)).one()
        assert entry.spent == Decimal("120.00")
        assert entry.remaining == Decimal("99880.00")

    def test_idempotent(self, db: Session, make_allocation) -> None:
        make_allocation()
        _wipe_entries(db)
        budget_entry_service.create_entry(db, _entry(object_code="A09999"))

        assert sync_service.reconcile(db) == (1, 1)
        assert sync_service.reconcile(db) == (0, 0)

    def test_year_is_part_of_the_match(self, db: Session, make_allocation) -> None:
        make_allocation(financial_year="2023-24")
        budget_entry_service.create_entry(db, _entry())

        assert sync_service.reconcile(db) == (0, 1)
        assert [e.financial_year for e in db.scalars(select(BudgetEntry))] == ["2023-24"]


class TestAllocationChangesReachEntries:
    """Allocation create / update / delete keep the entry view in step"""

    def test_create_adds_entry(self, db: Session, make_allocation) -> None:
        make_allocation(total="40000")

        entries = _entries(db)
        assert list(entries) == ["A01101"]
        assert entries["A01101"].amount == Decimal("40000.00")
        assert entries["A01101"].financial_year == FY

    def test_identity_change_moves_entry(self, db: Session, make_allocation) -> None:
        row = make_allocation()
        allocation_service.update_allocation(db, row.id, AllocationUpdate(object_code="A03201"))

        assert list(_entries(db)) == ["A03201"]

    def test_descriptive_update_keeps_entry(self, db: Session, make_allocation) -> None:
        row = make_allocation()
        entry = db.scalars(select(BudgetEntry)).one()
        budget_entry_service.update_entry(db, entry.id, BudgetEntryUpdate(spent=Decimal("10")))

        allocation_service.update_allocation(db, row.id, AllocationUpdate(notes="Revised"))

        kept = db.scalars(select(BudgetEntry)).one()
        assert kept.id == entry.id
        assert kept.spent == Decimal("10.00")

    def test_rejected_create_adds_nothing(self, db: Session, make_allocation) -> None:
        make_allocation()
        with pytest.raises(DuplicateAllocation):
            make_allocation()
        assert len(list(db.scalars(select(BudgetEntry)))) == 1

    def test_delete_removes_entry(self, db: Session, make_allocation) -> None:
        row = make_allocation()
        allocation_service.delete_allocation(db, row.id)
        assert budget_entry_service.list_entries(db) == []


class TestBudgetEntries:
    """Entry create / get / update / delete"""

    def test_remaining_is_derived(self, db: Session) -> None:
        entry = budget_entry_service.create_entry(
            db, _entry(spent=Decimal("200"), name="Pay", category_name="Basic Pay")
        )
        assert entry.remaining == Decimal("300.00")
        assert entry.name == "Pay"

    @pytest.mark.parametrize(
        "extra, field",
        [
            (dict(spent=Decimal("-1")), "spent"),
            (dict(period="weekly"), "period"),
            (dict(financial_year="2024"), "financialYear"),
        ],
    )
    def test_invalid(self, db: Session, extra: dict, field: str) -> None:
        with pytest.raises(ValidationError) as exc:
            budget_entry_service.create_entry(db, _entry(**extra))
        assert exc.value.field == field

    def test_get(self, db: Session) -> None:
        entry = budget_entry_service.create_entry(db, _entry())
        assert budget_entry_service.get_entry(db, entry.id).object_code == "A01101"
        with pytest.raises(NotFound):
            budget_entry_service.get_entry(db, entry.id + 1)

    def test_update_spent_rederives_remaining(self, db: Session) -> None:
        entry = budget_entry_service.create_entry(db, _entry())

        updated = budget_entry_service.update_entry(
            db, entry.id, BudgetEntryUpdate(spent=Decimal("125.50"))
        )

        assert updated.amount == Decimal("500.00")
        assert updated.spent == Decimal("125.50")
        assert updated.remaining == Decimal("374.50")

    def test_update_amount_and_description(self, db: Session) -> None:
        entry = budget_entry_service.create_entry(db, _entry(spent=Decimal("100")))

        updated = budget_entry_service.update_entry(
            db, entry.id, BudgetEntryUpdate(amount=Decimal("800"), description="Top-up")
        )

        assert updated.remaining == Decimal("700.00")
        assert updated.description == "Top-up"
        assert updated.period == "yearly"

    @pytest.mark.parametrize(
        "changes, field",
        [
            (dict(amount=Decimal("-5")), "amount"),
            (dict(spent=Decimal("-0.01")), "spent"),
            (dict(period="daily"), "period"),
            (dict(object_code="  "), "objectCode"),
        ],
    )
    def test_update_invalid_leaves_entry(self, db: Session, changes: dict, field: str) -> None:
        entry = budget_entry_service.create_entry(db, _entry())
        with pytest.raises(ValidationError) as exc:
            budget_entry_service.update_entry(db, entry.id, BudgetEntryUpdate(**changes))
        assert exc.value.field == field

        db.refresh(entry)
        assert entry.amount == Decimal("500.00")
        assert entry.remaining == Decimal("500.00")

    def test_update_unknown_id(self, db: Session) -> None:
        with pytest.raises(NotFound):
            budget_entry_service.update_entry(db, 77, BudgetEntryUpdate(spent=Decimal("1")))

    def test_delete(self, db: Session) -> None:
        entry = budget_entry_service.create_entry(db, _entry())
        budget_entry_service.delete_entry(db, entry.id)
        assert budget_entry_service.list_entries(db) == []
        with pytest.raises(NotFound):
            budget_entry_service.delete_entry(db, entry.id)


class TestFinancialYears:
    """Distinct years, newest first, with a fallback"""

    def test_union_sorted_descending(self, db: Session, make_allocation) -> None:
        make_allocation(financial_year="2023-24")
        make_allocation(financial_year="2025-26")
        budget_entry_service.create_entry(db, _entry(financial_year="2024-25"))
        budget_entry_service.create_entry(db, _entry(financial_year="2025-26"))

        assert budget_entry_service.financial_years(db) == ["2025-26", "2024-25", "2023-24"]

    def test_fallback_to_current_year(self, db: Session) -> None:
        assert budget_entry_service.financial_years(db) == [
            budget_entry_service.current_financial_year()
        ]

    @pytest.mark.parametrize(
        "today, expected",
        [
            (datetime.date(2024, 3, 31), "2023-24"),
            (datetime.date(2024, 4, 1), "2024-25"),
            (datetime.date(2099, 12, 1), "2099-00"),
        ],
    )
    def test_current_year_boundaries(self, today: datetime.date, expected: str) -> None:
        assert budget_entry_service.current_financial_year(today, start_month=4) == expected
