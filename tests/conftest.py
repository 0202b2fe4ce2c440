"""
Pytest fixtures: in-memory ticket store, controllable clock, inventory
service and an HTTP client wired to it.

The app lifespan is not run by ASGITransport, so the API tests get the
service through a dependency override instead of a database.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from ticket_inventory.api.dependencies import get_inventory_service
from ticket_inventory.core.config import Settings
from ticket_inventory.core.exceptions import PersistenceError
from ticket_inventory.main import app
from ticket_inventory.schemas.inventory import TicketTypeBaseline
from ticket_inventory.services.interfaces.ticket_store import TicketTypeStore
from ticket_inventory.services.inventory_service import InventoryService
from ticket_inventory.services.service_factory import build_inventory_service


class FakeTicketTypeStore(TicketTypeStore):
    """Dict-backed store that behaves like the conditional SQL updates."""

    def __init__(self):
        self.rows: dict[str, TicketTypeBaseline] = {}
        self.fetch_calls: list[str] = []
        self.fail_reads = False
        self.fail_writes = False
        # When set, writes wait on it (lets a test act mid-write)
        self.write_gate: Optional[asyncio.Event] = None

    def add(self, ticket_type_id: str, event_id: str = "evt-1", available: int = 100, sold: int = 0):
        self.rows[ticket_type_id] = TicketTypeBaseline(
            id=ticket_type_id,
            event_id=event_id,
            quantity_available=available,
            quantity_sold=sold,
        )

    async def fetch(self, ticket_type_id: str) -> Optional[TicketTypeBaseline]:
        self.fetch_calls.append(ticket_type_id)
        await asyncio.sleep(0)
        if self.fail_reads:
            raise PersistenceError("connection refused")
        row = self.rows.get(ticket_type_id)
        return row.model_copy() if row else None

    async def fetch_all(self) -> list[TicketTypeBaseline]:
        if self.fail_reads:
            raise PersistenceError("connection refused")
        return [row.model_copy() for row in self.rows.values()]

    async def _before_write(self):
        if self.write_gate is not None:
            await self.write_gate.wait()
        if self.fail_writes:
            raise PersistenceError("write failed")

    async def record_sale(self, ticket_type_id: str, quantity: int) -> None:
        await self._before_write()
        row = self.rows.get(ticket_type_id)
        if row is None or row.quantity_available < quantity:
            raise PersistenceError("update rejected")
        row.quantity_available -= quantity
        row.quantity_sold += quantity

    async def adjust_capacity(self, ticket_type_id: str, delta: int) -> None:
        await self._before_write()
        row = self.rows.get(ticket_type_id)
        if row is None or row.quantity_available + delta < 0:
            raise PersistenceError("update rejected")
        row.quantity_available += delta


class FakeClock:
    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2026, 6, 1, 18, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def settings() -> Settings:
    return Settings(
        SWEEPER_ENABLED=False,
        WARM_CACHE_ON_STARTUP=False,
        CLEANUP_INTERVAL_MINUTES=5,
    )


@pytest.fixture
def store() -> FakeTicketTypeStore:
    """GA has 100 seats, VIP is nearly gone, both for evt-1; FLOOR belongs to evt-2."""
    fake = FakeTicketTypeStore()
    fake.add("tt-ga", event_id="evt-1", available=100, sold=0)
    fake.add("tt-vip", event_id="evt-1", available=5, sold=15)
    fake.add("tt-floor", event_id="evt-2", available=0, sold=50)
    return fake


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def service(settings: Settings, store: FakeTicketTypeStore, clock: FakeClock) -> InventoryService:
    return build_inventory_service(settings, store, clock)


@pytest_asyncio.fixture
async def client(service: InventoryService) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests are served by the test's InventoryService."""
    app.dependency_overrides[get_inventory_service] = lambda: service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
