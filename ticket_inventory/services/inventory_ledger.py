"""
Inventory ledger: the in-process view of capacity, sold and held units.

CACHING STRATEGY
================

What we cache:
  - One InventoryRecord per ticket type, hydrated from the ticket store on
    first reference and kept for the life of the process
  - Ticket types that could not be loaded (missing row or store error),
    so a bad id coming from a stale page does not hit the database on
    every availability check

Why:
  - Availability checks run on every checkout page render
  - held_quantity only exists in memory; the store knows total and sold

Invalidation:
  - Records are never evicted; sold/available are written through at
    purchase and adjustment time
  - The negative cache is cleared explicitly by an operator
    (clear_failed_ticket_types), never by TTL
"""

from datetime import datetime, timezone
from typing import Callable, Optional

from ticket_inventory.core.config import Settings
from ticket_inventory.core.exceptions import (
    InsufficientInventoryError,
    PersistenceError,
    TicketTypeNotFoundError,
)
from ticket_inventory.core.logging import get_logger
from ticket_inventory.schemas.inventory import (
    InventoryRecord,
    InventoryStatus,
    InventoryUpdateEvent,
    InventoryUpdateType,
    TicketTypeBaseline,
)
from ticket_inventory.services.interfaces.ticket_store import TicketTypeStore
from ticket_inventory.services.notifier import UpdateNotifier

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class InventoryLedger:
    def __init__(
        self,
        store: TicketTypeStore,
        notifier: UpdateNotifier,
        settings: Settings,
        clock: Clock = utc_now,
    ):
        self._store = store
        self._notifier = notifier
        self._settings = settings
        self._clock = clock
        self._records: dict[str, InventoryRecord] = {}
        self._failed: set[str] = set()

    def _hydrate(self, baseline: TicketTypeBaseline) -> InventoryRecord:
        record = InventoryRecord(
            ticket_type_id=baseline.id,
            event_id=baseline.event_id,
            total_quantity=baseline.quantity_available + baseline.quantity_sold,
            available_quantity=baseline.quantity_available,
            sold_quantity=baseline.quantity_sold,
            held_quantity=0,
            last_updated=self._clock(),
            version=1,
        )
        # Another task may have hydrated the same id while we awaited the store
        return self._records.setdefault(baseline.id, record)

    async def load_all(self) -> int:
        """Warm the cache with every known ticket type. Returns the number cached."""
        try:
            baselines = await self._store.fetch_all()
        except PersistenceError as e:
            logger.error("inventory_cache_load_failed", error=str(e))
            return 0

        for baseline in baselines:
            self._hydrate(baseline)
        logger.info("inventory_cache_loaded", ticket_types=len(self._records))
        return len(self._records)

    async def get_inventory(self, ticket_type_id: str) -> Optional[InventoryRecord]:
        if ticket_type_id in self._failed:
            return None

        record = self._records.get(ticket_type_id)
        if record is not None:
            return record

        try:
            baseline = await self._store.fetch(ticket_type_id)
        except PersistenceError as e:
            logger.error("inventory_fetch_failed", ticket_type_id=ticket_type_id, error=str(e))
            self._failed.add(ticket_type_id)
            return None

        if baseline is None:
            logger.warning("ticket_type_not_found", ticket_type_id=ticket_type_id)
            self._failed.add(ticket_type_id)
            return None

        return self._hydrate(baseline)

    def get_cached(self, ticket_type_id: str) -> Optional[InventoryRecord]:
        return self._records.get(ticket_type_id)

    def records(self) -> list[InventoryRecord]:
        return list(self._records.values())

    def clear_failed_ticket_types(self) -> int:
        cleared = len(self._failed)
        self._failed.clear()
        logger.info("failed_ticket_types_cleared", cleared=cleared)
        return cleared

    async def adjust_inventory(self, ticket_type_id: str, delta: int, reason: str) -> InventoryRecord:
        """
        Administrative capacity change (+ adds seats, - removes them).

        Capacity is always under-stated while the store write is in flight:
        removals are applied to the cached record before the write (and
        undone if it fails or is cancelled), additions only after it succeeded.

        Raises:
            TicketTypeNotFoundError: ticket type not in the cache
            InsufficientInventoryError: removal would cut into sold or held units
            PersistenceError: store rejected the write
        """
        record = self._records.get(ticket_type_id)
        if record is None:
            raise TicketTypeNotFoundError(ticket_type_id)

        if record.available_for_hold + delta < 0:
            raise InsufficientInventoryError(
                record.available_for_hold,
                f"Cannot remove {-delta} tickets: only {record.available_for_hold} unheld tickets remain",
            )

        if delta < 0:
            self._apply_capacity(record, delta)
            try:
                await self._store.adjust_capacity(ticket_type_id, delta)
            except BaseException:
                self._apply_capacity(record, -delta)
                raise
        elif delta > 0:
            await self._store.adjust_capacity(ticket_type_id, delta)
            self._apply_capacity(record, delta)

        self.touch(record)

        logger.info(
            "inventory_adjusted",
            ticket_type_id=ticket_type_id,
            delta=delta,
            reason=reason,
            total=record.total_quantity,
            version=record.version,
        )
        self.publish(InventoryUpdateType.INVENTORY_CHANGED, record)
        return record

    @staticmethod
    def _apply_capacity(record: InventoryRecord, delta: int) -> None:
        record.total_quantity += delta
        record.available_quantity += delta

    def touch(self, record: InventoryRecord) -> None:
        record.last_updated = self._clock()
        record.version += 1

    def publish(self, update_type: InventoryUpdateType, record: InventoryRecord) -> None:
        self._notifier.emit(
            InventoryUpdateEvent(
                type=update_type,
                ticket_type_id=record.ticket_type_id,
                event_id=record.event_id,
                inventory=record.model_copy(),
                timestamp=self._clock(),
            )
        )

    def classify(self, record: InventoryRecord) -> InventoryStatus:
        available = record.available_for_hold

        if available <= 0:
            return InventoryStatus.SOLD_OUT
        if available <= self._settings.VERY_LOW_STOCK_THRESHOLD:
            return InventoryStatus.VERY_LOW_STOCK
        if available <= self._settings.LOW_STOCK_THRESHOLD:
            return InventoryStatus.LOW_STOCK
        return InventoryStatus.AVAILABLE
