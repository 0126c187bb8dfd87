"""HTTP surface: camelCase bodies, status codes and error envelopes"""

from fastapi.testclient import TestClient

ALLOCATIONS = "/api/budget-allocations"
RELEASES = "/api/budget-releases"
ADJUSTMENTS = "/api/budget-adjustments"


def _create(client: TestClient, **overrides) -> dict:
    body = {
        "objectCode": "A01101",
        "costCenter": "LZ4064",
        "financialYear": "2024-25",
        "totalAllocation": 100000,
        "releaseStrategy": "quarterly-equal",
    }
    body.update(overrides)
    response = client.post(ALLOCATIONS, json=body)
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestAllocationEndpoints:
    """/api/budget-allocations"""

    def test_create_and_get(self, client: TestClient, reference_data) -> None:
        created = _create(client)
        assert created["q1Release"] == 25000.0
        assert created["codeDescription"] == "Basic Pay"
        assert created["costCenterName"] == "District Accounts Office"
        assert created["releaseStrategy"] == "quarterly-equal"
        assert created["available"] == 100000.0

        fetched = client.get(f"{ALLOCATIONS}/{created['id']}").json()
        assert fetched == created

    def test_duplicate_is_409(self, client: TestClient) -> None:
        _create(client)
        response = client.post(
            ALLOCATIONS,
            json={
                "objectCode": "A01101",
                "costCenter": "LZ4064",
                "financialYear": "2024-25",
                "totalAllocation": 5,
            },
        )
        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "DuplicateAllocation"

    def test_custom_sum_mismatch_is_422_with_field(self, client: TestClient) -> None:
        response = client.post(
            ALLOCATIONS,
            json={
                "objectCode": "A01101",
                "costCenter": "LZ4064",
                "financialYear": "2024-25",
                "totalAllocation": 100,
                "releaseStrategy": "custom",
                "q1Release": 10,
                "q2Release": 10,
                "q3Release": 10,
                "q4Release": 10,
            },
        )
        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["error"] == "ValidationError"
        assert detail["field"] == "q1Release"

    def test_missing_allocation_is_404(self, client: TestClient) -> None:
        response = client.get(f"{ALLOCATIONS}/404")
        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "AllocationNotFound"

    def test_list_filters(self, client: TestClient) -> None:
        _create(client)
        _create(client, objectCode="A03201", costCenter="LZ4065")
        _create(client, financialYear="2023-24")

        assert len(client.get(ALLOCATIONS).json()) == 3
        assert len(client.get(ALLOCATIONS, params={"financialYear": "2024-25"}).json()) == 2
        assert len(client.get(ALLOCATIONS, params={"costCenter": "LZ4065"}).json()) == 1

    def test_update(self, client: TestClient) -> None:
        created = _create(client)
        response = client.put(
            f"{ALLOCATIONS}/{created['id']}",
            json={"releaseStrategy": "full", "notes": "All in Q1"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["q1Release"] == 100000.0
        assert body["q2Release"] == 0.0
        assert body["releaseStrategy"] == "full"
        assert body["notes"] == "All in Q1"

    def test_strict_delete_conflicts_then_cascade(self, client: TestClient) -> None:
        created = _create(client)
        client.post(RELEASES, json={"allocationId": created["id"], "quarter": 1})

        strict = client.delete(f"{ALLOCATIONS}/{created['id']}", params={"cascade": "false"})
        assert strict.status_code == 409
        assert strict.json()["detail"]["error"] == "HasDependents"

        assert client.delete(f"{ALLOCATIONS}/{created['id']}").status_code == 204
        assert client.get(f"{ALLOCATIONS}/{created['id']}").status_code == 404
        assert client.get(RELEASES).json() == []


class TestReleaseEndpoints:
    """/api/budget-releases"""

    def test_release_and_unrelease(self, client: TestClient) -> None:
        created = _create(client)
        response = client.post(RELEASES, json={"allocationId": created["id"], "quarter": 2})
        assert response.status_code == 201
        release = response.json()
        assert release["amount"] == 25000.0
        assert release["type"] == "regular"
        assert release["allocationId"] == created["id"]

        again = client.post(RELEASES, json={"allocationId": created["id"], "quarter": 2})
        assert again.status_code == 409
        assert again.json()["detail"]["error"] == "AlreadyReleased"

        allocation = client.get(f"{ALLOCATIONS}/{created['id']}").json()
        assert allocation["q2Released"] is True
        assert allocation["available"] == 75000.0

        assert client.delete(f"{RELEASES}/{release['id']}").status_code == 204
        allocation = client.get(f"{ALLOCATIONS}/{created['id']}").json()
        assert allocation["q2Released"] is False
        assert allocation["totalReleased"] == 0.0

    def test_nothing_to_release(self, client: TestClient) -> None:
        created = _create(client, releaseStrategy="full")
        response = client.post(RELEASES, json={"allocationId": created["id"], "quarter": 4})
        assert response.status_code == 422
        assert response.json()["detail"]["error"] == "NothingToRelease"

    def test_filter_by_allocation(self, client: TestClient) -> None:
        first = _create(client)
        second = _create(client, objectCode="A03201")
        client.post(RELEASES, json={"allocationId": first["id"], "quarter": 1})
        client.post(RELEASES, json={"allocationId": second["id"], "quarter": 1})

        rows = client.get(RELEASES, params={"allocationId": second["id"]}).json()
        assert [r["objectCode"] for r in rows] == ["A03201"]


class TestAdjustmentEndpoints:
    """/api/budget-adjustments"""

    def test_scenario_over_http(self, client: TestClient) -> None:
        created = _create(client)
        client.post(RELEASES, json={"allocationId": created["id"], "quarter": 1})

        base = {"financialYear": "2024-25", "fromObjectCode": "A01101", "fromCostCenter": "LZ4064"}
        grant = client.post(ADJUSTMENTS, json={**base, "type": "supplementary", "amount": 10000})
        assert grant.status_code == 201
        assert grant.json()["releases"][0]["amount"] == 10000.0

        rejected = client.post(ADJUSTMENTS, json={**base, "type": "surrender", "amount": 70000})
        assert rejected.status_code == 422
        assert rejected.json()["detail"]["error"] == "InsufficientAvailableBudget"

        surrender = client.post(ADJUSTMENTS, json={**base, "type": "surrender", "amount": 60000})
        assert surrender.status_code == 201

        allocation = client.get(f"{ALLOCATIONS}/{created['id']}").json()
        assert allocation["totalReleased"] == -25000.0
        assert allocation["available"] == 125000.0

        summary = client.get(f"{ALLOCATIONS}/{created['id']}/summary").json()
        assert summary["supplementaryGrants"] == 10000.0
        assert summary["surrenders"] == -60000.0
        assert summary["releasedQuarters"] == [1]

    def test_reappropriation_edit_and_revert(self, client: TestClient) -> None:
        source = _create(client)
        destination = _create(client, objectCode="A03201", totalAllocation=20000)
        body = {
            "type": "reappropriation",
            "financialYear": "2024-25",
            "amount": 5000,
            "fromObjectCode": "A01101",
            "fromCostCenter": "LZ4064",
            "toObjectCode": "A03201",
            "toCostCenter": "LZ4064",
        }
        adjustment = client.post(ADJUSTMENTS, json=body).json()
        assert adjustment["toAllocationId"] == destination["id"]
        assert sorted(r["amount"] for r in adjustment["releases"]) == [-5000.0, 5000.0]

        edited = client.put(f"{ADJUSTMENTS}/{adjustment['id']}", json={**body, "amount": 2000})
        assert edited.status_code == 200
        assert edited.json()["id"] == adjustment["id"]
        assert sorted(r["amount"] for r in edited.json()["releases"]) == [-2000.0, 2000.0]

        assert client.delete(f"{ADJUSTMENTS}/{adjustment['id']}").status_code == 204
        assert client.get(f"{ADJUSTMENTS}/{adjustment['id']}").status_code == 404
        assert client.get(f"{ALLOCATIONS}/{source['id']}").json()["available"] == 100000.0
        assert client.get(f"{ALLOCATIONS}/{destination['id']}").json()["available"] == 20000.0

    def test_unknown_source_is_404(self, client: TestClient) -> None:
        response = client.post(
            ADJUSTMENTS,
            json={
                "type": "supplementary",
                "financialYear": "2024-25",
                "amount": 10,
                "fromObjectCode": "A01101",
                "fromCostCenter": "LZ4064",
            },
        )
        assert response.status_code == 404
        assert response.json()["detail"]["field"] == "fromObjectCode"


class TestBudgetAndReferenceEndpoints:
    """/api/budgets, /api/financial-years, reference lists"""

    def test_budget_sync(self, client: TestClient) -> None:
        _create(client)
        orphan = client.post(
            "/api/budgets",
            json={
                "objectCode": "A09999",
                "costCenter": "LZ4064",
                "financialYear": "2024-25",
                "amount": 10,
            },
        )
        assert orphan.status_code == 201
        assert orphan.json()["remaining"] == 10.0

        assert client.post("/api/budgets/sync").json() == {"created": 0, "deleted": 1}
        entries = client.get("/api/budgets").json()
        assert [e["objectCode"] for e in entries] == ["A01101"]
        assert entries[0]["amount"] == 100000.0

    def test_allocation_create_and_identity_change_reach_budgets(self, client: TestClient) -> None:
        created = _create(client)
        entries = client.get("/api/budgets").json()
        assert [(e["objectCode"], e["amount"]) for e in entries] == [("A01101", 100000.0)]

        moved = client.put(f"{ALLOCATIONS}/{created['id']}", json={"objectCode": "A03201"})
        assert moved.status_code == 200, moved.text
        assert [e["objectCode"] for e in client.get("/api/budgets").json()] == ["A03201"]

    def test_get_and_update_budget_entry(self, client: TestClient) -> None:
        created = client.post(
            "/api/budgets",
            json={"objectCode": "A01101", "costCenter": "LZ4064", "financialYear": "2024-25", "amount": 900},
        ).json()

        fetched = client.get(f"/api/budgets/{created['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["remaining"] == 900.0

        updated = client.put(f"/api/budgets/{created['id']}", json={"spent": 250.25})
        assert updated.status_code == 200, updated.text
        assert updated.json()["spent"] == 250.25
        assert updated.json()["remaining"] == 649.75
        assert updated.json()["amount"] == 900.0

        bad = client.put(f"/api/budgets/{created['id']}", json={"amount": -1})
        assert bad.status_code == 422
        assert bad.json()["detail"]["field"] == "amount"

        assert client.get("/api/budgets/999").status_code == 404
        missing = client.put("/api/budgets/999", json={"spent": 1})
        assert missing.status_code == 404
        assert missing.json()["detail"]["error"] == "NotFound"

    def test_delete_budget_entry(self, client: TestClient) -> None:
        created = client.post(
            "/api/budgets",
            json={"objectCode": "A01101", "costCenter": "LZ4064", "financialYear": "2024-25", "amount": 1},
        ).json()
        assert client.delete(f"/api/budgets/{created['id']}").status_code == 204
        missing = client.delete(f"/api/budgets/{created['id']}")
        assert missing.status_code == 404
        assert missing.json()["detail"]["error"] == "NotFound"

    def test_financial_years(self, client: TestClient) -> None:
        _create(client, financialYear="2023-24")
        _create(client, financialYear="2025-26")
        assert client.get("/api/financial-years").json() == ["2025-26", "2023-24"]

    def test_reference_lists(self, client: TestClient, reference_data) -> None:
        codes = client.get("/api/object-codes").json()
        assert [c["code"] for c in codes] == ["A01101", "A03201"]
        assert codes[0]["isActive"] is True
        with_inactive = client.get("/api/object-codes", params={"includeInactive": "true"}).json()
        assert len(with_inactive) == 3
        centers = client.get("/api/cost-centers").json()
        assert [c["name"] for c in centers] == ["District Accounts Office", "Treasury Office"]
