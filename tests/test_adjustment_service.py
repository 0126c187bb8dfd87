"""AdjustmentEngine: signed releases, sufficiency gate, revert and edit"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from budget_ledger.models import BudgetAdjustment, BudgetRelease
from budget_ledger.schemas.budget_adjustment import AdjustmentCreate
from budget_ledger.schemas.budget_release import ReleaseCreate
from budget_ledger.services import adjustment_service, availability, release_service
from budget_ledger.utils.errors import (
    AllocationNotFound,
    InsufficientAvailableBudget,
    NotFound,
    ValidationError,
)

from tests.conftest import FY


def _adjust(
    type_: str,
    amount: str,
    from_object_code: str = "A01101",
    to_object_code: str | None = None,
    **extra,
) -> AdjustmentCreate:
    return AdjustmentCreate(
        type=type_,
        financial_year=FY,
        amount=Decimal(amount),
        from_object_code=from_object_code,
        from_cost_center="LZ4064",
        to_object_code=to_object_code,
        to_cost_center="LZ4064" if to_object_code else None,
        **extra,
    )


def _release_count(db: Session) -> int:
    return db.scalar(select(func.count()).select_from(BudgetRelease))


class TestApplyAdjustment:
    """Each type spawns the right signed releases"""

    def test_supplementary_adds_positive_release(self, db: Session, make_allocation) -> None:
        row = make_allocation()
        adjustment = adjustment_service.apply_adjustment(db, _adjust("supplementary", "10000"))

        assert [(r.amount, r.quarter, r.type) for r in adjustment.releases] == [
            (Decimal("10000.00"), 0, "supplementary")
        ]
        assert adjustment.releases[0].adjustment_id == adjustment.id
        assert availability.available(db, row) == Decimal("90000.00")
        db.refresh(row)
        assert row.total_allocation == Decimal("100000.00")

    def test_reappropriation_moves_funds(self, db: Session, make_allocation) -> None:
        source = make_allocation(object_code="A01101")
        destination = make_allocation(object_code="A03201", total="20000")
        adjustment = adjustment_service.apply_adjustment(
            db, _adjust("reappropriation", "5000", to_object_code="A03201")
        )

        amounts = {r.allocation_id: r.amount for r in adjustment.releases}
        assert amounts == {source.id: Decimal("-5000.00"), destination.id: Decimal("5000.00")}
        assert sum(amounts.values()) == 0
        assert adjustment.to_allocation_id == destination.id

    def test_surrender_adds_negative_release(self, db: Session, make_allocation) -> None:
        row = make_allocation()
        adjustment_service.apply_adjustment(db, _adjust("surrender", "1000"))
        assert release_service.total_released(db, row.id) == Decimal("-1000.00")

    def test_withdrawal_beyond_available_rejected(self, db: Session, make_allocation) -> None:
        row = make_allocation(total="20000", strategy="full")
        make_allocation(object_code="A03201")
        release_service.release_quarter(db, ReleaseCreate(allocation_id=row.id, quarter=1))

        with pytest.raises(InsufficientAvailableBudget):
            adjustment_service.apply_adjustment(db, _adjust("surrender", "0.01"))
        with pytest.raises(InsufficientAvailableBudget):
            adjustment_service.apply_adjustment(
                db, _adjust("reappropriation", "1", to_object_code="A03201")
            )
        assert _release_count(db) == 1
        assert db.scalar(select(func.count()).select_from(BudgetAdjustment)) == 0

    def test_withdrawal_of_exactly_available_allowed(self, db: Session, make_allocation) -> None:
        row = make_allocation(total="1000")
        adjustment_service.apply_adjustment(db, _adjust("surrender", "1000"))
        assert availability.available(db, row) == Decimal("2000.00")

    def test_missing_source(self, db: Session) -> None:
        with pytest.raises(AllocationNotFound) as exc:
            adjustment_service.apply_adjustment(db, _adjust("supplementary", "10"))
        assert exc.value.field == "fromObjectCode"

    def test_missing_destination(self, db: Session, make_allocation) -> None:
        make_allocation()
        with pytest.raises(AllocationNotFound) as exc:
            adjustment_service.apply_adjustment(
                db, _adjust("reappropriation", "10", to_object_code="A03201")
            )
        assert exc.value.field == "toObjectCode"
        assert _release_count(db) == 0

    @pytest.mark.parametrize(
        "payload, field",
        [
            (dict(type_="bonus", amount="10"), "type"),
            (dict(type_="surrender", amount="0"), "amount"),
            (dict(type_="surrender", amount="-5"), "amount"),
            (dict(type_="reappropriation", amount="10"), "toObjectCode"),
            (dict(type_="reappropriation", amount="10", to_object_code="A01101"), "toObjectCode"),
            (dict(type_="supplementary", amount="10", to_object_code="A03201"), "toObjectCode"),
        ],
    )
    def test_invalid_payloads(self, db: Session, make_allocation, payload: dict, field: str) -> None:
        make_allocation()
        with pytest.raises(ValidationError) as exc:
            adjustment_service.apply_adjustment(db, _adjust(**payload))
        assert exc.value.field == field


class TestRevertAdjustment:
    """Reverting removes exactly the spawned releases"""

    def test_revert_restores_both_allocations(self, db: Session, make_allocation) -> None:
        source = make_allocation(object_code="A01101")
        destination = make_allocation(object_code="A03201", total="20000")
        release_service.release_quarter(db, ReleaseCreate(allocation_id=source.id, quarter=1))
        adjustment = adjustment_service.apply_adjustment(
            db, _adjust("reappropriation", "5000", to_object_code="A03201")
        )

        adjustment_service.revert_adjustment(db, adjustment.id)

        assert availability.available(db, source) == Decimal("75000.00")
        assert availability.available(db, destination) == Decimal("20000.00")
        assert _release_count(db) == 1

    def test_unknown_adjustment(self, db: Session) -> None:
        with pytest.raises(NotFound):
            adjustment_service.revert_adjustment(db, 5)


class TestUpdateAdjustment:
    """Edit as revert + apply in one transaction"""

    def test_update_replaces_releases_and_keeps_id(self, db: Session, make_allocation) -> None:
        row = make_allocation()
        adjustment = adjustment_service.apply_adjustment(db, _adjust("supplementary", "1000"))

        updated = adjustment_service.update_adjustment(
            db, adjustment.id, _adjust("surrender", "3000", remarks="Year-end surrender")
        )

        assert updated.id == adjustment.id
        assert updated.type == "surrender"
        assert [r.amount for r in updated.releases] == [Decimal("-3000.00")]
        assert release_service.total_released(db, row.id) == Decimal("-3000.00")

    def test_failed_update_leaves_original(self, db: Session, make_allocation) -> None:
        row = make_allocation(total="1000")
        adjustment = adjustment_service.apply_adjustment(db, _adjust("surrender", "400"))

        with pytest.raises(InsufficientAvailableBudget):
            adjustment_service.update_adjustment(db, adjustment.id, _adjust("surrender", "1500"))

        assert release_service.total_released(db, row.id) == Decimal("-400.00")
        kept = adjustment_service.get_adjustment(db, adjustment.id)
        assert kept.amount == Decimal("400.00")

    def test_update_sees_availability_without_old_releases(
        self, db: Session, make_allocation
    ) -> None:
        make_allocation(total="1000")
        adjustment = adjustment_service.apply_adjustment(db, _adjust("surrender", "400"))
        # Available is 1400 while the old surrender stands, 1000 once it is reverted.
        with pytest.raises(InsufficientAvailableBudget):
            adjustment_service.update_adjustment(db, adjustment.id, _adjust("surrender", "1200"))
        assert adjustment_service.update_adjustment(
            db, adjustment.id, _adjust("surrender", "1000")
        ).amount == Decimal("1000.00")


class TestListAdjustments:
    """Adjustment queries"""

    def test_filters(self, db: Session, make_allocation) -> None:
        make_allocation()
        adjustment_service.apply_adjustment(db, _adjust("supplementary", "10"))
        adjustment_service.apply_adjustment(db, _adjust("surrender", "5"))

        assert len(adjustment_service.list_adjustments(db)) == 2
        assert len(adjustment_service.list_adjustments(db, financial_year="2025-26")) == 0
        only = adjustment_service.list_adjustments(db, adjustment_type="surrender")
        assert [a.type for a in only] == ["surrender"]
        mixed = adjustment_service.list_adjustments(db, adjustment_type=" Surrender ")
        assert [a.type for a in mixed] == ["surrender"]


class TestLedgerScenario:
    """End-to-end walk through one allocation's year"""

    def test_release_supplement_and_surrender(self, db: Session, make_allocation) -> None:
        row = make_allocation(total="100000")
        assert [row.q1_release, row.q2_release, row.q3_release, row.q4_release] == [
            Decimal("25000.00")
        ] * 4

        release_service.release_quarter(db, ReleaseCreate(allocation_id=row.id, quarter=1))
        assert release_service.total_released(db, row.id) == Decimal("25000.00")
        assert availability.available(db, row) == Decimal("75000.00")

        adjustment_service.apply_adjustment(db, _adjust("supplementary", "10000"))
        assert release_service.total_released(db, row.id) == Decimal("35000.00")
        assert availability.available(db, row) == Decimal("65000.00")

        with pytest.raises(InsufficientAvailableBudget):
            adjustment_service.apply_adjustment(db, _adjust("surrender", "70000"))
        assert availability.available(db, row) == Decimal("65000.00")

        adjustment_service.apply_adjustment(db, _adjust("surrender", "60000"))
        assert release_service.total_released(db, row.id) == Decimal("-25000.00")
        assert availability.available(db, row) == Decimal("125000.00")

        summary = availability.summarize(db, row)
        assert summary["regular_released"] == Decimal("25000.00")
        assert summary["supplementary_grants"] == Decimal("10000.00")
        assert summary["surrenders"] == Decimal("-60000.00")
        assert summary["released_quarters"] == [1]
