from ticket_inventory.schemas.inventory import (
    PurchaseChannel, HoldStatus, InventoryStatus, InventoryUpdateType, BulkOperation,
    TicketTypeBaseline, InventoryRecord, Hold,
    InventoryCheckResult, HoldCreationResult, PurchaseResult, InventoryUpdateEvent,
    TicketTypeStatus, EventInventorySummary, InventoryStatusSummary,
    BulkInventoryUpdate, BulkUpdateError, BulkUpdateSummary, BulkUpdateResult,
)

__all__ = [
    "PurchaseChannel", "HoldStatus", "InventoryStatus", "InventoryUpdateType", "BulkOperation",
    "TicketTypeBaseline", "InventoryRecord", "Hold",
    "InventoryCheckResult", "HoldCreationResult", "PurchaseResult", "InventoryUpdateEvent",
    "TicketTypeStatus", "EventInventorySummary", "InventoryStatusSummary",
    "BulkInventoryUpdate", "BulkUpdateError", "BulkUpdateSummary", "BulkUpdateResult",
]
