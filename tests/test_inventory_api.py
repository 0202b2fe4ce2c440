"""
Tests for the inventory HTTP endpoints.
"""

import pytest
from httpx import AsyncClient

from ticket_inventory.api.routes.inventory import ERROR_STATUS
from ticket_inventory.core.exceptions import InventoryErrorCode


@pytest.mark.asyncio
async def test_create_hold(client: AsyncClient):
    response = await client.post(
        "/api/v1/inventory/holds",
        json={"ticket_type_id": "tt-ga", "quantity": 2, "session_id": "sess-1"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert data["hold"]["quantity"] == 2
    assert data["hold"]["status"] == "active"
    assert data["hold"]["channel"] == "online"


@pytest.mark.asyncio
async def test_create_hold_insufficient_returns_real_count(client: AsyncClient):
    response = await client.post(
        "/api/v1/inventory/holds",
        json={"ticket_type_id": "tt-vip", "quantity": 9, "session_id": "sess-1"},
    )
    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["error_code"] == "insufficient_inventory"
    assert detail["available_quantity"] == 5


@pytest.mark.asyncio
async def test_create_hold_unknown_ticket_type(client: AsyncClient):
    response = await client.post(
        "/api/v1/inventory/holds",
        json={"ticket_type_id": "tt-nope", "quantity": 1, "session_id": "sess-1"},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_hold_validates_quantity(client: AsyncClient):
    response = await client.post(
        "/api/v1/inventory/holds",
        json={"ticket_type_id": "tt-ga", "quantity": 0, "session_id": "sess-1"},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_check_availability_with_hold(client: AsyncClient):
    response = await client.post(
        "/api/v1/inventory/check",
        json={"ticket_type_id": "tt-vip", "quantity": 2, "create_hold": True, "session_id": "sess-1", "channel": "cash"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["available"] is True
    assert data["inventory_status"] == "low_stock"
    assert data["hold_created"]["channel"] == "cash"


@pytest.mark.asyncio
async def test_complete_purchase_flow(client: AsyncClient):
    hold = (await client.post(
        "/api/v1/inventory/holds",
        json={"ticket_type_id": "tt-ga", "quantity": 5, "session_id": "sess-1"},
    )).json()["hold"]

    response = await client.post(
        f"/api/v1/inventory/holds/{hold['id']}/complete",
        json={"order_id": "order-1"},
    )
    assert response.status_code == 200
    assert response.json()["remaining_inventory"] == 95

    again = await client.post(
        f"/api/v1/inventory/holds/{hold['id']}/complete",
        json={"order_id": "order-1"},
    )
    assert again.status_code == 404
    assert again.json()["detail"]["error"] == "Hold not found or expired"

    status = await client.get("/api/v1/inventory/ticket-types/tt-ga")
    assert status.json()["sold"] == 5
    assert status.json()["held"] == 0


@pytest.mark.asyncio
async def test_complete_purchase_store_failure(client: AsyncClient, store):
    hold = (await client.post(
        "/api/v1/inventory/holds",
        json={"ticket_type_id": "tt-ga", "quantity": 1, "session_id": "sess-1"},
    )).json()["hold"]

    store.fail_writes = True
    response = await client.post(
        f"/api/v1/inventory/holds/{hold['id']}/complete",
        json={"order_id": "order-1"},
    )
    assert response.status_code == 503
    assert response.json()["detail"]["error_code"] == "persistence_failure"


@pytest.mark.asyncio
async def test_release_hold_is_idempotent(client: AsyncClient):
    hold = (await client.post(
        "/api/v1/inventory/holds",
        json={"ticket_type_id": "tt-ga", "quantity": 1, "session_id": "sess-1"},
    )).json()["hold"]

    first = await client.delete(f"/api/v1/inventory/holds/{hold['id']}")
    second = await client.delete(f"/api/v1/inventory/holds/{hold['id']}")
    assert first.json() == {"released": 1}
    assert second.json() == {"released": 0}


@pytest.mark.asyncio
async def test_release_and_confirm_by_session(client: AsyncClient):
    for ticket_type_id in ("tt-ga", "tt-vip"):
        await client.post(
            "/api/v1/inventory/holds",
            json={"ticket_type_id": ticket_type_id, "quantity": 1, "session_id": "sess-1"},
        )

    confirm = await client.post(
        "/api/v1/inventory/sessions/sess-1/confirm",
        json={"order_id": "order-7", "ticket_type_id": "tt-vip"},
    )
    assert confirm.status_code == 200
    assert confirm.json()["confirmed"] is True

    released = await client.delete("/api/v1/inventory/sessions/sess-1/holds")
    assert released.json() == {"released": 1}

    missing = await client.post(
        "/api/v1/inventory/sessions/sess-1/confirm",
        json={"order_id": "order-7", "ticket_type_id": "tt-ga"},
    )
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_adjust_inventory_errors(client: AsyncClient):
    not_cached = await client.post(
        "/api/v1/inventory/ticket-types/tt-ga/adjust",
        json={"delta": 5, "reason": "extra row"},
    )
    assert not_cached.status_code == 404
    assert not_cached.json()["detail"]["error_code"] == "ticket_type_not_found"

    await client.get("/api/v1/inventory/ticket-types/tt-vip")
    too_many = await client.post(
        "/api/v1/inventory/ticket-types/tt-vip/adjust",
        json={"delta": -10, "reason": "remove"},
    )
    assert too_many.status_code == 409
    assert too_many.json()["detail"]["available_quantity"] == 5

    ok = await client.post(
        "/api/v1/inventory/ticket-types/tt-vip/adjust",
        json={"delta": 10, "reason": "extra row"},
    )
    assert ok.status_code == 200
    assert ok.json()["total_quantity"] == 30


@pytest.mark.asyncio
async def test_summaries(client: AsyncClient, service):
    await service.ledger.load_all()

    bulk = await client.post(
        "/api/v1/inventory/ticket-types/status",
        json={"ticket_type_ids": ["tt-ga", "tt-nope"]},
    )
    assert [s["ticket_type_id"] for s in bulk.json()] == ["tt-ga"]

    event = await client.get("/api/v1/inventory/events/evt-2/summary")
    assert event.json()["total_capacity"] == 50
    assert event.json()["total_available"] == 0

    summary = await client.get("/api/v1/inventory/summary")
    assert summary.json()["total_ticket_types"] == 3


@pytest.mark.asyncio
async def test_bulk_update_endpoint(client: AsyncClient, service):
    await service.ledger.load_all()

    response = await client.post(
        "/api/v1/inventory/bulk",
        json=[{"ticket_type_id": "tt-ga", "operation": "add_inventory", "quantity": 10, "reason": "upgrade"}],
    )
    assert response.status_code == 200
    assert response.json()["summary"]["inventory_adjustment"] == 10


@pytest.mark.asyncio
async def test_clear_failed_cache(client: AsyncClient):
    await client.get("/api/v1/inventory/ticket-types/tt-nope")
    response = await client.post("/api/v1/inventory/failed-cache/clear")
    assert response.json() == {"cleared": 1}


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    response = await client.get("/api/v1/inventory/summary", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"
    assert "X-Response-Time" in response.headers


@pytest.mark.asyncio
async def test_metrics_endpoint(client: AsyncClient):
    await client.post(
        "/api/v1/inventory/holds",
        json={"ticket_type_id": "tt-ga", "quantity": 1, "session_id": "sess-1"},
    )
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "inventory_holds_total" in response.text


def test_every_error_code_has_a_status():
    assert set(ERROR_STATUS) == set(InventoryErrorCode)
    assert ERROR_STATUS[InventoryErrorCode.INVALID_QUANTITY] == 422
    assert ERROR_STATUS[InventoryErrorCode.HOLD_UNAVAILABLE] == 404
    assert ERROR_STATUS[InventoryErrorCode.PERSISTENCE_FAILURE] == 503
