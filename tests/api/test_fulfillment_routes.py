"""
Tests for ledger, request, batch, confirmation and loan endpoints.
"""

from datetime import date, timedelta

import pytest
from httpx import AsyncClient

from src.application.services import get_daily_code_service

pytestmark = pytest.mark.usefixtures("seeded_db")


async def _entry(client: AsyncClient, quantity: float, key: str | None = None, **overrides):
    body = {
        "type": "entry",
        "item_id": "item-paper",
        "unit_id": "warehouse-central",
        "user_id": "u-storage",
        "quantity": quantity,
        "idempotency_key": key,
    }
    body.update(overrides)
    return await client.post("/api/movements", json=body)


async def _approved(client: AsyncClient, unit_id: str, requester: str, quantity: float) -> str:
    response = await client.post(
        "/api/requests",
        json={
            "item_id": "item-paper",
            "requesting_unit_id": unit_id,
            "requested_by_user_id": requester,
            "quantity": quantity,
        },
    )
    assert response.status_code == 201
    request_id = response.json()["id"]
    response = await client.put(
        f"/api/requests/{request_id}", json={"action": "approve", "actor_id": "u-storage"}
    )
    assert response.status_code == 200
    return request_id


class TestMovementEndpoints:
    async def test_record_then_replay(self, async_client: AsyncClient):
        first = await _entry(async_client, 20, key="receipt-note-17")
        second = await _entry(async_client, 20, key="receipt-note-17")

        assert first.status_code == 201
        assert first.json()["created"] is True
        assert first.json()["stock"]["quantity"] == 20
        assert second.status_code == 200
        assert second.json()["created"] is False
        assert second.json()["movement"]["id"] == first.json()["movement"]["id"]

    async def test_zero_quantity_rejected(self, async_client: AsyncClient):
        response = await _entry(async_client, 0)

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    async def test_list_by_type(self, async_client: AsyncClient):
        await _entry(async_client, 5)
        await _entry(async_client, 2, type="consumption")

        response = await async_client.get("/api/movements", params={"type": "consumption"})

        assert response.status_code == 200
        assert response.json()["count"] == 1


class TestStockEndpoints:
    async def test_get_stock_and_low_list(self, async_client: AsyncClient):
        await _entry(async_client, 8)

        stock = await async_client.get("/api/stock/item-paper/warehouse-central")
        low = await async_client.get("/api/stock/low")

        assert stock.status_code == 200
        assert stock.json()["minimum_quantity"] == 10
        assert stock.json()["health"] == "low"
        assert [s["item_id"] for s in low.json()["stocks"]] == ["item-paper"]

    async def test_unknown_stock_404(self, async_client: AsyncClient):
        response = await async_client.get("/api/stock/item-paper/unit-2")

        assert response.status_code == 404
        data = response.json()
        assert data["error_code"] == "STOCK_NOT_FOUND"
        assert data["hint"]
        assert data["path"] == "/api/stock/item-paper/unit-2"

    async def test_rebuild(self, async_client: AsyncClient):
        await _entry(async_client, 3)
        await _entry(async_client, 4, item_id="item-toner")

        response = await async_client.post("/api/stock/rebuild")

        assert response.status_code == 200
        assert response.json()["rebuilt"] == 2


class TestBatchEndpoints:
    async def test_missing_driver_hint(self, async_client: AsyncClient):
        request_id = await _approved(async_client, "unit-1", "u-requester", 2)

        response = await async_client.post(
            "/api/delivery-batches", json={"request_ids": [request_id]}
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error_code"] == "MISSING_DRIVER"
        assert data["hint"] == "select a driver"

    async def test_cross_unit_422(self, async_client: AsyncClient):
        r1 = await _approved(async_client, "unit-1", "u-requester", 2)
        r2 = await _approved(async_client, "unit-2", "u-requester-2", 2)

        response = await async_client.post(
            "/api/delivery-batches",
            json={"request_ids": [r1, r2], "driver_user_id": "u-driver"},
        )

        assert response.status_code == 422
        data = response.json()
        assert data["error_code"] == "CROSS_UNIT_BATCH"
        assert data["hint"] == "all items must belong to the same unit"
        listed = await async_client.get("/api/delivery-batches")
        assert listed.json()["count"] == 0

    async def test_unknown_batch_404(self, async_client: AsyncClient):
        response = await async_client.get("/api/delivery-batches/batch-missing")

        assert response.status_code == 404
        assert response.json()["error_code"] == "BATCH_NOT_FOUND"

    async def test_full_delivery_over_http(self, async_client: AsyncClient):
        await _entry(async_client, 20)
        request_id = await _approved(async_client, "unit-1", "u-requester", 5)

        created = await async_client.post(
            "/api/delivery-batches",
            json={"request_ids": [request_id], "driver_user_id": "u-driver"},
        )
        assert created.status_code == 201
        batch = created.json()["batch"]

        separated = await async_client.put(
            f"/api/delivery-batches/{batch['id']}",
            json={"action": "separate", "actor_id": "u-storage", "request_id": request_id},
        )
        assert separated.status_code == 200
        assert separated.json()["dispatched"] is True
        assert separated.json()["movement"]["reference"] == batch["scan_code"]

        wrong = await async_client.post(
            "/api/delivery-confirmations",
            json={
                "type": "delivery",
                "batch_id": batch["id"],
                "user_id": "u-driver",
                "receiver_user_id": "u-requester",
                "code": "000-000"
                if get_daily_code_service().code("u-requester") != "000000"
                else "111-111",
            },
        )
        assert wrong.status_code == 403
        assert wrong.json()["error_code"] == "INVALID_DAILY_CODE"

        delivered = await async_client.post(
            "/api/delivery-confirmations",
            json={
                "type": "delivery",
                "batch_id": batch["id"],
                "user_id": "u-driver",
                "receiver_user_id": "u-requester",
                "code": get_daily_code_service().code("u-requester"),
            },
        )
        assert delivered.status_code == 201
        assert delivered.json()["batch"]["status"] == "delivery_confirmed"

        received = await async_client.post(
            "/api/delivery-confirmations",
            json={"type": "receipt", "scan_code": batch["scan_code"], "user_id": "u-controller"},
        )
        assert received.status_code == 201
        assert received.json()["batch"]["status"] == "completed"

        stock = await async_client.get("/api/stock/item-paper/warehouse-central")
        assert stock.json()["quantity"] == 15
        request = await async_client.get(f"/api/requests/{request_id}")
        assert request.json()["status"] == "completed"

        again = await async_client.post(
            "/api/delivery-confirmations",
            json={"type": "receipt", "scan_code": batch["scan_code"], "user_id": "u-controller"},
        )
        assert again.status_code == 409


class TestLoanEndpoints:
    async def test_open_return_and_list(self, async_client: AsyncClient):
        opened = await async_client.post(
            "/api/loans",
            json={
                "item_id": "item-toner",
                "unit_id": "warehouse-central",
                "responsible_user_id": "u-requester",
                "expected_return_date": (date.today() + timedelta(days=5)).isoformat(),
            },
        )
        assert opened.status_code == 201
        loan_id = opened.json()["loan"]["id"]
        assert opened.json()["movement"]["type"] == "loan"

        active = await async_client.get("/api/loans", params={"status": "active"})
        assert [loan["id"] for loan in active.json()["loans"]] == [loan_id]

        returned = await async_client.post(
            f"/api/loans/{loan_id}/return", json={"actor_id": "u-storage"}
        )
        assert returned.status_code == 200
        assert returned.json()["loan"]["status"] == "returned"
        assert returned.json()["movement"]["type"] == "return"

        lost = await async_client.post(f"/api/loans/{loan_id}/lost", json={"actor_id": "u-storage"})
        assert lost.status_code == 409

        stock = await async_client.get("/api/stock/item-toner/warehouse-central")
        assert stock.json()["quantity"] == 0

    async def test_unknown_loan_404(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/loans/loan-missing/return", json={"actor_id": "u-storage"}
        )

        assert response.status_code == 404
        assert response.json()["error_code"] == "LOAN_NOT_FOUND"
