"""
Inventory service factory.
Wires the ledger, hold manager, sweeper and notifier around one store.
"""

from ticket_inventory.core.config import Settings
from ticket_inventory.services.expiry_sweeper import ExpirySweeper
from ticket_inventory.services.hold_manager import HoldManager
from ticket_inventory.services.interfaces.ticket_store import TicketTypeStore
from ticket_inventory.services.inventory_ledger import Clock, InventoryLedger, utc_now
from ticket_inventory.services.inventory_queries import InventoryQueries
from ticket_inventory.services.inventory_service import InventoryService
from ticket_inventory.services.notifier import UpdateNotifier


def build_inventory_service(
    settings: Settings,
    store: TicketTypeStore,
    clock: Clock = utc_now,
) -> InventoryService:
    """
    Build an InventoryService.

    One instance per process. The application lifespan owns it; tests build
    their own with a fake store and a controllable clock.
    """
    notifier = UpdateNotifier()
    ledger = InventoryLedger(store, notifier, settings, clock)
    holds = HoldManager(ledger, store, settings, clock)
    sweeper = ExpirySweeper(holds, interval_seconds=settings.CLEANUP_INTERVAL_MINUTES * 60)
    queries = InventoryQueries(ledger, holds, settings)

    return InventoryService(
        ledger=ledger,
        holds=holds,
        sweeper=sweeper,
        notifier=notifier,
        queries=queries,
        sweeper_enabled=settings.SWEEPER_ENABLED,
    )
