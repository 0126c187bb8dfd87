"""Excel ledger export"""

import io
from decimal import Decimal

from fastapi.testclient import TestClient
from openpyxl import load_workbook
from sqlalchemy.orm import Session

from budget_ledger.schemas.budget_release import ReleaseCreate
from budget_ledger.services import export_service, release_service


class TestAllocationRows:
    """Rows and totals handed to the workbook"""

    def test_rows_and_totals(self, db: Session, make_allocation) -> None:
        row = make_allocation(total="100000")
        make_allocation(object_code="A03201", total="20000", strategy="full")
        release_service.release_quarter(db, ReleaseCreate(allocation_id=row.id, quarter=1))

        rows, totals = export_service.allocation_rows(db, "2024-25")

        assert len(rows) == 2
        by_code = {r[3]: r for r in rows}
        assert by_code["A01101"][7] is True
        assert by_code["A01101"][14] == Decimal("25000.00")
        assert by_code["A01101"][15] == Decimal("75000.00")
        assert totals["Total Allocation"] == Decimal("120000.00")
        assert totals["Available"] == Decimal("95000.00")


class TestExportEndpoint:
    """GET /api/budget-allocations/export"""

    def test_download(self, client: TestClient, db: Session, make_allocation) -> None:
        make_allocation(total="100000")

        response = client.get("/api/budget-allocations/export", params={"financialYear": "2024-25"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        assert "budget_allocations_2024-25.xlsx" in response.headers["content-disposition"]

        sheet = load_workbook(io.BytesIO(response.content)).active
        values = [cell for row in sheet.iter_rows(values_only=True) for cell in row]
        assert "Budget Allocations 2024-25" in values
        assert "A01101" in values
        assert "Available" in values
