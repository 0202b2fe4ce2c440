"""
Tests for ledger hydration, negative caching, adjustments and stock levels.
"""

import asyncio

import pytest

from ticket_inventory.core.exceptions import (
    InsufficientInventoryError,
    PersistenceError,
    TicketTypeNotFoundError,
)
from ticket_inventory.schemas.inventory import InventoryStatus, InventoryUpdateType, PurchaseChannel


@pytest.mark.asyncio
async def test_hydrates_from_store(service, clock):
    record = await service.get_inventory("tt-vip")

    assert record.ticket_type_id == "tt-vip"
    assert record.event_id == "evt-1"
    assert record.total_quantity == 20
    assert record.available_quantity == 5
    assert record.sold_quantity == 15
    assert record.held_quantity == 0
    assert record.version == 1
    assert record.last_updated == clock.now


@pytest.mark.asyncio
async def test_cached_record_is_reused(service, store):
    first = await service.get_inventory("tt-ga")
    second = await service.get_inventory("tt-ga")

    assert first is second
    assert store.fetch_calls == ["tt-ga"]


@pytest.mark.asyncio
async def test_unknown_ticket_type_is_negatively_cached(service, store):
    assert await service.get_inventory("tt-nope") is None
    assert await service.get_inventory("tt-nope") is None
    check = await service.check_availability("tt-nope", 1)
    assert check.available is False
    assert store.fetch_calls == ["tt-nope"]

    # Appears in the store later; still hidden until the cache is cleared
    store.add("tt-nope", available=10)
    assert await service.get_inventory("tt-nope") is None

    assert service.clear_failed_ticket_types() == 1
    record = await service.get_inventory("tt-nope")
    assert record is not None
    assert record.available_quantity == 10
    assert store.fetch_calls == ["tt-nope", "tt-nope"]


@pytest.mark.asyncio
async def test_store_error_is_negatively_cached(service, store):
    store.fail_reads = True
    assert await service.get_inventory("tt-ga") is None

    store.fail_reads = False
    assert await service.get_inventory("tt-ga") is None
    assert store.fetch_calls == ["tt-ga"]


@pytest.mark.asyncio
async def test_concurrent_misses_share_one_record(service):
    """Two tasks hydrating the same id end up mutating the same record."""
    first, second = await asyncio.gather(
        service.get_inventory("tt-ga"),
        service.get_inventory("tt-ga"),
    )
    assert first is second

    await service.create_hold("tt-ga", 1, PurchaseChannel.ONLINE, "sess-1")
    assert second.held_quantity == 1


@pytest.mark.asyncio
async def test_load_all_warms_cache(service, store):
    assert await service.ledger.load_all() == 3
    assert {r.ticket_type_id for r in service.get_all_inventory()} == {"tt-ga", "tt-vip", "tt-floor"}

    await service.get_inventory("tt-ga")
    assert store.fetch_calls == []


@pytest.mark.asyncio
async def test_load_all_survives_store_failure(service, store):
    store.fail_reads = True
    assert await service.ledger.load_all() == 0
    assert service.get_all_inventory() == []


@pytest.mark.asyncio
async def test_adjust_inventory_adds_capacity(service, store):
    events = []
    service.subscribe(events.append)
    record = await service.get_inventory("tt-ga")

    await service.adjust_inventory("tt-ga", 25, "second balcony opened")

    assert record.total_quantity == 125
    assert record.available_quantity == 125
    assert record.version == 2
    assert store.rows["tt-ga"].quantity_available == 125
    assert events[-1].type == InventoryUpdateType.INVENTORY_CHANGED
    assert events[-1].inventory.total_quantity == 125


@pytest.mark.asyncio
async def test_adjust_inventory_removes_capacity(service, store):
    record = await service.get_inventory("tt-ga")

    await service.adjust_inventory("tt-ga", -40, "stage extension")

    assert record.total_quantity == 60
    assert record.available_quantity == 60
    assert store.rows["tt-ga"].quantity_available == 60


@pytest.mark.asyncio
async def test_adjust_uncached_ticket_type_raises(service):
    with pytest.raises(TicketTypeNotFoundError):
        await service.adjust_inventory("tt-ga", 5, "not loaded yet")


@pytest.mark.asyncio
async def test_adjust_cannot_cut_into_holds(service):
    record = await service.get_inventory("tt-vip")
    await service.create_hold("tt-vip", 4, PurchaseChannel.ONLINE, "sess-1")

    with pytest.raises(InsufficientInventoryError) as exc_info:
        await service.adjust_inventory("tt-vip", -2, "remove comps")

    assert exc_info.value.available == 1
    assert record.total_quantity == 20
    assert record.sold_quantity + record.held_quantity <= record.total_quantity


@pytest.mark.asyncio
async def test_adjust_store_failure_rolls_back(service, store):
    record = await service.get_inventory("tt-ga")
    store.fail_writes = True

    with pytest.raises(PersistenceError):
        await service.adjust_inventory("tt-ga", -10, "oops")
    with pytest.raises(PersistenceError):
        await service.adjust_inventory("tt-ga", 10, "oops")

    assert record.total_quantity == 100
    assert record.available_quantity == 100
    assert record.version == 1


@pytest.mark.asyncio
async def test_removal_is_visible_while_write_in_flight(service, store):
    """Seats being removed cannot be held while the store write is pending."""
    await service.get_inventory("tt-vip")
    store.write_gate = asyncio.Event()

    adjust = asyncio.create_task(service.adjust_inventory("tt-vip", -5, "venue change"))
    await asyncio.sleep(0)

    result = await service.create_hold("tt-vip", 1, PurchaseChannel.ONLINE, "sess-1")
    assert result.success is False

    store.write_gate.set()
    record = await adjust
    assert record.available_quantity == 0


@pytest.mark.asyncio
async def test_cancelled_removal_rolls_back(service, store):
    record = await service.get_inventory("tt-ga")
    store.write_gate = asyncio.Event()

    adjust = asyncio.create_task(service.adjust_inventory("tt-ga", -10, "venue change"))
    await asyncio.sleep(0)
    assert record.total_quantity == 90

    adjust.cancel()
    with pytest.raises(asyncio.CancelledError):
        await adjust

    assert record.total_quantity == 100
    assert record.available_quantity == 100
    assert record.version == 1
    assert store.rows["tt-ga"].quantity_available == 100


@pytest.mark.parametrize(
    "available, expected",
    [
        (100, InventoryStatus.AVAILABLE),
        (11, InventoryStatus.AVAILABLE),
        (10, InventoryStatus.LOW_STOCK),
        (4, InventoryStatus.LOW_STOCK),
        (3, InventoryStatus.VERY_LOW_STOCK),
        (1, InventoryStatus.VERY_LOW_STOCK),
        (0, InventoryStatus.SOLD_OUT),
    ],
)
@pytest.mark.asyncio
async def test_classify_thresholds(service, store, available, expected):
    store.add("tt-x", available=available, sold=5)
    record = await service.get_inventory("tt-x")
    assert service.ledger.classify(record) == expected


@pytest.mark.asyncio
async def test_classify_counts_held_units(service):
    record = await service.get_inventory("tt-ga")
    await service.create_hold("tt-ga", 95, PurchaseChannel.ONLINE, "sess-1")
    assert service.ledger.classify(record) == InventoryStatus.VERY_LOW_STOCK

    await service.create_hold("tt-ga", 5, PurchaseChannel.ONLINE, "sess-2")
    assert service.ledger.classify(record) == InventoryStatus.SOLD_OUT
