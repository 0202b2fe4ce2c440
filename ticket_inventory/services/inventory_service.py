"""
Inventory service: one object owning the ledger, holds, sweeper and notifier.

Constructed once at start-up by build_inventory_service() and passed to
callers (FastAPI app.state / Depends); there is no module-level instance.
Method names follow what the checkout, cash-payment and dashboard flows call.
"""

from typing import Any, Callable, Optional

from ticket_inventory.core.logging import get_logger
from ticket_inventory.schemas.inventory import (
    BulkInventoryUpdate,
    BulkUpdateResult,
    EventInventorySummary,
    Hold,
    HoldCreationResult,
    InventoryCheckResult,
    InventoryRecord,
    InventoryStatusSummary,
    InventoryUpdateEvent,
    PurchaseChannel,
    PurchaseResult,
    TicketTypeStatus,
)
from ticket_inventory.services.expiry_sweeper import ExpirySweeper
from ticket_inventory.services.hold_manager import HoldManager
from ticket_inventory.services.inventory_ledger import InventoryLedger
from ticket_inventory.services.inventory_queries import InventoryQueries
from ticket_inventory.services.notifier import UpdateNotifier

logger = get_logger(__name__)


class InventoryService:
    def __init__(
        self,
        ledger: InventoryLedger,
        holds: HoldManager,
        sweeper: ExpirySweeper,
        notifier: UpdateNotifier,
        queries: InventoryQueries,
        sweeper_enabled: bool = True,
    ):
        self.ledger = ledger
        self.holds = holds
        self.sweeper = sweeper
        self.notifier = notifier
        self.queries = queries
        self._sweeper_enabled = sweeper_enabled

    async def start(self, warm_cache: bool = True) -> None:
        if warm_cache:
            await self.ledger.load_all()
        if self._sweeper_enabled:
            self.sweeper.start()
        logger.info("inventory_service_started", ticket_types=len(self.ledger.records()))

    async def stop(self) -> None:
        await self.sweeper.stop()
        logger.info("inventory_service_stopped", active_holds=len(self.holds.active_holds()))

    # Ledger

    async def get_inventory(self, ticket_type_id: str) -> Optional[InventoryRecord]:
        return await self.ledger.get_inventory(ticket_type_id)

    async def adjust_inventory(self, ticket_type_id: str, delta: int, reason: str) -> InventoryRecord:
        return await self.ledger.adjust_inventory(ticket_type_id, delta, reason)

    def clear_failed_ticket_types(self) -> int:
        return self.ledger.clear_failed_ticket_types()

    def get_all_inventory(self) -> list[InventoryRecord]:
        return self.ledger.records()

    # Holds

    async def check_availability(
        self,
        ticket_type_id: str,
        quantity: int,
        create_hold: bool = False,
        channel: PurchaseChannel = PurchaseChannel.ONLINE,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> InventoryCheckResult:
        return await self.holds.check_availability(
            ticket_type_id, quantity, create_hold, channel, session_id, user_id
        )

    async def create_hold(
        self,
        ticket_type_id: str,
        quantity: int,
        channel: PurchaseChannel,
        session_id: str,
        user_id: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> HoldCreationResult:
        return await self.holds.create_hold(ticket_type_id, quantity, channel, session_id, user_id, metadata)

    async def complete_purchase(self, hold_id: str, order_id: str, user_id: Optional[str] = None) -> PurchaseResult:
        return await self.holds.complete_purchase(hold_id, order_id, user_id)

    def release_hold(self, hold_id: str) -> bool:
        return self.holds.release_hold(hold_id)

    def release_inventory_hold(self, session_id: str, ticket_type_id: Optional[str] = None) -> int:
        return self.holds.release_session_holds(session_id, ticket_type_id)

    async def confirm_inventory_hold(
        self,
        session_id: str,
        order_id: str,
        ticket_type_id: str,
        user_id: Optional[str] = None,
    ) -> bool:
        return await self.holds.confirm_session_hold(session_id, order_id, ticket_type_id, user_id)

    def release_event_holds(self, event_id: str) -> int:
        return self.holds.release_event_holds(event_id)

    def get_active_holds(self) -> list[Hold]:
        return self.holds.active_holds()

    # Notifications

    def subscribe(self, listener: Callable[[InventoryUpdateEvent], None]) -> Callable[[], None]:
        return self.notifier.subscribe(listener)

    def subscribe_to_ticket_type(
        self,
        ticket_type_id: str,
        callback: Callable[[TicketTypeStatus], None],
    ) -> Callable[[], None]:
        return self.notifier.subscribe_ticket_type(ticket_type_id, callback)

    # Queries

    async def get_inventory_status(self, ticket_type_id: str) -> Optional[TicketTypeStatus]:
        return await self.queries.get_ticket_type_status(ticket_type_id)

    async def get_bulk_inventory_status(self, ticket_type_ids: list[str]) -> list[TicketTypeStatus]:
        return await self.queries.get_bulk_status(ticket_type_ids)

    def get_event_inventory_summary(self, event_id: str) -> EventInventorySummary:
        return self.queries.get_event_summary(event_id)

    def get_inventory_status_summary(self) -> InventoryStatusSummary:
        return self.queries.get_status_summary()

    def is_low_inventory(self, status: TicketTypeStatus) -> bool:
        return self.queries.is_low_inventory(status)

    async def bulk_update(self, updates: list[BulkInventoryUpdate]) -> BulkUpdateResult:
        return await self.queries.bulk_update(updates)
