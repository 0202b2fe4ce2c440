"""
Read helpers and bulk administration built on the ledger and hold manager.
"""

from typing import Optional

from ticket_inventory.core.config import Settings
from ticket_inventory.core.exceptions import InventoryError, TicketTypeNotFoundError
from ticket_inventory.core.logging import get_logger
from ticket_inventory.schemas.inventory import (
    BulkInventoryUpdate,
    BulkOperation,
    BulkUpdateError,
    BulkUpdateResult,
    BulkUpdateSummary,
    EventInventorySummary,
    InventoryStatus,
    InventoryStatusSummary,
    TicketTypeStatus,
)
from ticket_inventory.services.hold_manager import HoldManager
from ticket_inventory.services.inventory_ledger import InventoryLedger

logger = get_logger(__name__)


class InventoryQueries:
    def __init__(self, ledger: InventoryLedger, holds: HoldManager, settings: Settings):
        self._ledger = ledger
        self._holds = holds
        self._low_inventory_threshold = settings.LOW_INVENTORY_THRESHOLD

    async def get_ticket_type_status(self, ticket_type_id: str) -> Optional[TicketTypeStatus]:
        record = await self._ledger.get_inventory(ticket_type_id)
        if record is None:
            return None
        return TicketTypeStatus.from_record(record)

    async def get_bulk_status(self, ticket_type_ids: list[str]) -> list[TicketTypeStatus]:
        """Status for each known id, in request order; unknown ids are skipped."""
        results = []
        for ticket_type_id in ticket_type_ids:
            status = await self.get_ticket_type_status(ticket_type_id)
            if status is not None:
                results.append(status)
        return results

    def get_event_summary(self, event_id: str) -> EventInventorySummary:
        # Only ticket types already in the cache are counted
        summary = EventInventorySummary(event_id=event_id)
        for record in self._ledger.records():
            if record.event_id != event_id:
                continue
            summary.total_available += record.available_quantity
            summary.total_sold += record.sold_quantity
            summary.total_capacity += record.total_quantity
            summary.ticket_types.append(TicketTypeStatus.from_record(record))
        return summary

    def get_status_summary(self) -> InventoryStatusSummary:
        records = self._ledger.records()
        summary = InventoryStatusSummary(
            total_events=len({record.event_id for record in records}),
            total_ticket_types=len(records),
            active_holds=len(self._holds.active_holds()),
        )

        for record in records:
            summary.total_inventory += record.total_quantity
            summary.total_sold += record.sold_quantity
            summary.total_held += record.held_quantity

            status = self._ledger.classify(record)
            if status in (InventoryStatus.LOW_STOCK, InventoryStatus.VERY_LOW_STOCK):
                summary.low_stock_alerts += 1
            elif status == InventoryStatus.SOLD_OUT:
                summary.sold_out_ticket_types += 1

        summary.total_available = summary.total_inventory - summary.total_sold - summary.total_held
        return summary

    def is_low_inventory(self, status: TicketTypeStatus) -> bool:
        return 0 < status.available <= self._low_inventory_threshold

    async def bulk_update(self, updates: list[BulkInventoryUpdate]) -> BulkUpdateResult:
        """
        Apply a batch of administrative changes.

        Items are independent: a failing item is reported in errors and the
        rest of the batch still runs.
        """
        result = BulkUpdateResult(success=True, summary=BulkUpdateSummary(total_processed=len(updates)))

        for item in updates:
            try:
                adjustment, released = await self._apply(item)
            except InventoryError as e:
                result.errors.append(
                    BulkUpdateError(ticket_type_id=item.ticket_type_id, operation=item.operation, error=e.message)
                )
                result.summary.failed_updates += 1
                continue

            result.updated_ticket_types.append(item.ticket_type_id)
            result.summary.successful_updates += 1
            result.summary.inventory_adjustment += adjustment
            result.summary.holds_released += released

        result.success = result.summary.failed_updates == 0
        logger.info(
            "bulk_update_completed",
            processed=result.summary.total_processed,
            failed=result.summary.failed_updates,
            adjustment=result.summary.inventory_adjustment,
        )
        return result

    async def _apply(self, item: BulkInventoryUpdate) -> tuple[int, int]:
        """Returns (capacity delta applied, holds released)."""
        record = await self._ledger.get_inventory(item.ticket_type_id)
        if record is None:
            raise TicketTypeNotFoundError(item.ticket_type_id)

        if item.operation == BulkOperation.RELEASE_ALL_HOLDS:
            return 0, self._holds.release_ticket_type_holds(item.ticket_type_id)

        quantity = item.quantity or 0
        if item.operation == BulkOperation.ADD_INVENTORY:
            delta = quantity
        elif item.operation == BulkOperation.REMOVE_INVENTORY:
            delta = -quantity
        else:
            # SET_INVENTORY targets total capacity, sold units included
            delta = quantity - record.total_quantity

        await self._ledger.adjust_inventory(item.ticket_type_id, delta, item.reason)
        return delta, 0
