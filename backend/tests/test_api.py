"""HTTP API tests: routing, status codes and the error body."""

import pytest
from httpx import AsyncClient

from containerops.services import ledger


@pytest.mark.api
@pytest.mark.asyncio
class TestHealth:

    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["service"] == "ContainerOps"

    async def test_security_headers(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"


@pytest.mark.api
@pytest.mark.asyncio
class TestShipmentApi:

    async def test_create_and_fetch(self, client: AsyncClient, x123, ports, parties):
        response = await client.post("/api/shipments/", json={
            "date": "2025-01-10",
            "pol_port_id": ports.nsa.id,
            "pod_port_id": ports.jeb.id,
            "customer_address_book_id": parties.customer.id,
            "containers": [{"container_number": "X123"}],
        })
        assert response.status_code == 201
        body = response.json()
        assert body["job_number"] == "25/00001"
        assert body["house_bl"] == "RST/NSAJEB/25/00001"
        assert body["pol_port_code"] == "NSA"
        assert body["containers"][0]["inventory_id"] == x123.id

        fetched = await client.get(f"/api/shipments/{body['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["customer_name"] == "Acme Trading"

        bill = await client.get(f"/api/bill-management/shipment/{body['id']}")
        assert bill.status_code == 200
        assert bill.json()["payment_status"] == "Unpaid"

    async def test_missing_shipment_is_404(self, client: AsyncClient):
        response = await client.get("/api/shipments/999")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "RESOURCE_NOT_FOUND"

    async def test_missing_port_is_schema_error(self, client: AsyncClient):
        response = await client.post("/api/shipments/", json={"pod_port_id": 1})
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_cancel_requires_reason(self, client: AsyncClient, ports):
        created = await client.post("/api/shipments/", json={
            "pol_port_id": ports.nsa.id,
            "pod_port_id": ports.jeb.id,
        })
        response = await client.post(f"/api/shipments/{created.json()['id']}/cancel", json={"reason": ""})
        assert response.status_code == 422


@pytest.mark.api
@pytest.mark.asyncio
class TestMovementApi:

    async def test_bulk_create_then_stale_conflict(self, client: AsyncClient, db_session, x123):
        latest = await ledger.latest_for_inventory(db_session, x123.id)

        first = await client.post("/api/movement-history/bulk-create", json={
            "ids": [latest.id], "new_status": "unavailable", "remarks": "door seal torn",
        })
        assert first.status_code == 201
        [row] = first.json()
        assert row["status"] == "UNAVAILABLE"
        assert row["remarks"] == "door seal torn"

        second = await client.post("/api/movement-history/bulk-create", json={
            "ids": [latest.id], "new_status": "UNDER CLEANING",
        })
        assert second.status_code == 409
        assert second.json()["error"]["code"] == "CONFLICT"
        assert "no longer the latest entry" in second.json()["error"]["message"]

    async def test_illegal_transition_is_400(self, client: AsyncClient, db_session, x123):
        latest = await ledger.latest_for_inventory(db_session, x123.id)
        response = await client.post("/api/movement-history/bulk-create", json={
            "ids": [latest.id], "new_status": "SOB",
        })
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_FAILED"
        assert "AVAILABLE -> SOB" in response.json()["error"]["message"]

    async def test_bulk_update_under_job_number(self, client: AsyncClient, db_session, x123, ports):
        created = (await client.post("/api/shipments/", json={
            "date": "2025-01-10",
            "pol_port_id": ports.nsa.id,
            "pod_port_id": ports.jeb.id,
            "containers": [{"inventory_id": x123.id}],
        })).json()
        allotted = await ledger.latest_for_inventory(db_session, x123.id)

        response = await client.post("/api/movement-history/bulk-update", json={
            "ids": [allotted.id],
            "new_status": "EMPTY PICKED UP",
            "job_number": created["job_number"],
        })
        assert response.status_code == 201
        assert response.json()[0]["shipment_id"] == created["id"]

        history = await client.get(f"/api/movement-history/inventory/{x123.id}")
        assert [r["status"] for r in history.json()] == ["AVAILABLE", "ALLOTTED", "EMPTY PICKED UP"]

    async def test_correction_rejects_status(self, client: AsyncClient, db_session, x123):
        latest = await ledger.latest_for_inventory(db_session, x123.id)
        response = await client.patch(f"/api/movement-history/{latest.id}", json={"status": "SOB"})
        assert response.status_code == 422

        response = await client.patch(f"/api/movement-history/{latest.id}", json={"remarks": "checked"})
        assert response.status_code == 200
        assert response.json()["remarks"] == "checked"
        assert response.json()["status"] == "AVAILABLE"


@pytest.mark.api
@pytest.mark.asyncio
class TestInventoryApi:

    async def test_can_delete_and_delete(self, client: AsyncClient, x123):
        check = await client.get(f"/api/inventory/{x123.id}/can-delete")
        assert check.json() == {"can_delete": True, "reason": None}

        response = await client.delete(f"/api/inventory/{x123.id}")
        assert response.status_code == 204
        assert (await client.get(f"/api/inventory/{x123.id}")).status_code == 404

    async def test_duplicate_number_is_409(self, client: AsyncClient, x123):
        response = await client.post("/api/inventory/", json={"container_number": "X123"})
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "DUPLICATE_CONTAINER"

    async def test_dashboard_status_summary(self, client: AsyncClient, x123):
        response = await client.get("/api/dashboard/status-summary")
        assert response.status_code == 200
        assert response.json() == {"total": 1, "statuses": [{"status": "AVAILABLE", "count": 1}]}
