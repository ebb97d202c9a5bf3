"""
Tests for furniture removal and transfer endpoints.
"""

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.usefixtures("seeded_db")


async def _desks(client: AsyncClient, unit_id: str, quantity: float) -> None:
    response = await client.post(
        "/api/movements",
        json={
            "type": "entry",
            "item_id": "item-desk",
            "unit_id": unit_id,
            "user_id": "u-storage",
            "quantity": quantity,
        },
    )
    assert response.status_code == 201


class TestRemovalEndpoints:
    async def test_removal_walkthrough(self, async_client: AsyncClient):
        await _desks(async_client, "unit-1", 1)
        response = await async_client.post(
            "/api/furniture-removals",
            json={
                "item_id": "item-desk",
                "unit_id": "unit-1",
                "requested_by_user_id": "u-requester",
                "quantity": 1,
                "reason": "replaced by a new desk",
            },
        )
        assert response.status_code == 201
        removal_id = response.json()["id"]
        assert response.json()["status"] == "pending"

        steps = [
            {"action": "approve_storage", "actor_id": "u-designer"},
            {"action": "schedule_pickup", "actor_id": "u-storage", "driver_user_id": "u-driver"},
            {"action": "pick_up", "actor_id": "u-driver"},
            {"action": "receive", "actor_id": "u-storage"},
        ]
        for body in steps:
            response = await async_client.put(f"/api/furniture-removals/{removal_id}", json=body)
            assert response.status_code == 200, response.text

        data = response.json()
        assert data["removal"]["status"] == "completed"
        assert data["removal"]["destination"] == "storage"
        assert [m["type"] for m in data["movements"]] == ["entry"]

        listed = await async_client.get("/api/furniture-removals", params={"unit_id": "unit-1"})
        assert listed.json()["count"] == 1

    async def test_pickup_needs_driver(self, async_client: AsyncClient):
        response = await async_client.put(
            "/api/furniture-removals/frm-missing",
            json={"action": "schedule_pickup", "actor_id": "u-storage"},
        )
        assert response.status_code == 422

    async def test_requester_cannot_decide(self, async_client: AsyncClient):
        await _desks(async_client, "unit-1", 1)
        created = await async_client.post(
            "/api/furniture-removals",
            json={
                "item_id": "item-desk",
                "unit_id": "unit-1",
                "requested_by_user_id": "u-requester",
                "quantity": 1,
                "reason": "scratched",
            },
        )

        response = await async_client.put(
            f"/api/furniture-removals/{created.json()['id']}",
            json={"action": "approve_storage", "actor_id": "u-requester"},
        )
        assert response.status_code == 403

    async def test_unknown_removal(self, async_client: AsyncClient):
        response = await async_client.get("/api/furniture-removals/frm-missing")
        assert response.status_code == 404


class TestTransferEndpoints:
    async def test_transfer_walkthrough(self, async_client: AsyncClient):
        await _desks(async_client, "unit-1", 1)
        response = await async_client.post(
            "/api/furniture-transfers",
            json={
                "item_id": "item-desk",
                "from_unit_id": "unit-1",
                "to_unit_id": "unit-2",
                "requested_by_user_id": "u-designer",
            },
        )
        assert response.status_code == 201
        transfer_id = response.json()["id"]

        for body in (
            {"action": "approve", "actor_id": "u-designer"},
            {"action": "complete", "actor_id": "u-driver"},
        ):
            response = await async_client.put(
                f"/api/furniture-transfers/{transfer_id}", json=body
            )
            assert response.status_code == 200, response.text

        assert response.json()["transfer"]["status"] == "completed"
        stock = await async_client.get("/api/stock/item-desk/unit-2")
        assert stock.json()["quantity"] == 1

    async def test_transfer_above_stock(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/furniture-transfers",
            json={
                "item_id": "item-desk",
                "from_unit_id": "unit-1",
                "to_unit_id": "unit-2",
                "requested_by_user_id": "u-designer",
            },
        )
        assert response.status_code == 400
