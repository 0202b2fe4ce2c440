"""
Pydantic schemas for inventory records, holds and operation results.

Records and holds are mutated in place by the services; anything handed to
listeners or returned over HTTP is a copy or a serialized view.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from ticket_inventory.core.exceptions import InventoryErrorCode


class PurchaseChannel(str, Enum):
    ONLINE = "online"
    CASH = "cash"
    ADMIN = "admin"
    BULK = "bulk"


class HoldStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    RELEASED = "released"
    COMPLETED = "completed"


class InventoryStatus(str, Enum):
    AVAILABLE = "available"
    LOW_STOCK = "low_stock"
    VERY_LOW_STOCK = "very_low_stock"
    SOLD_OUT = "sold_out"


class InventoryUpdateType(str, Enum):
    INVENTORY_CHANGED = "inventory_changed"
    HOLD_CREATED = "hold_created"
    HOLD_RELEASED = "hold_released"
    HOLD_EXPIRED = "hold_expired"
    PURCHASE_COMPLETED = "purchase_completed"


class BulkOperation(str, Enum):
    ADD_INVENTORY = "add_inventory"
    REMOVE_INVENTORY = "remove_inventory"
    SET_INVENTORY = "set_inventory"
    RELEASE_ALL_HOLDS = "release_all_holds"


class TicketTypeBaseline(BaseModel):
    """What the durable store knows about a ticket type."""

    id: str
    event_id: str
    quantity_available: int = 0
    quantity_sold: int = 0


class InventoryRecord(BaseModel):
    ticket_type_id: str
    event_id: str
    total_quantity: int
    # Excludes sold units, includes held ones
    available_quantity: int
    sold_quantity: int = 0
    held_quantity: int = 0
    last_updated: datetime
    version: int = 1

    @property
    def available_for_hold(self) -> int:
        return self.available_quantity - self.held_quantity


class Hold(BaseModel):
    id: str
    ticket_type_id: str
    event_id: str
    quantity: int = Field(..., gt=0)
    session_id: str
    user_id: Optional[str] = None
    channel: PurchaseChannel
    created_at: datetime
    expires_at: datetime
    status: HoldStatus = HoldStatus.ACTIVE
    metadata: dict[str, Any] = Field(default_factory=dict)


class InventoryCheckResult(BaseModel):
    available: bool
    available_quantity: int
    requested_quantity: int
    inventory_status: InventoryStatus
    hold_created: Optional[Hold] = None
    message: Optional[str] = None


class HoldCreationResult(BaseModel):
    success: bool
    hold: Optional[Hold] = None
    error: Optional[str] = None
    error_code: Optional[InventoryErrorCode] = None
    available_quantity: Optional[int] = None


class PurchaseResult(BaseModel):
    success: bool
    inventory_updated: bool = False
    hold_released: bool = False
    remaining_inventory: int = 0
    error: Optional[str] = None
    error_code: Optional[InventoryErrorCode] = None


class InventoryUpdateEvent(BaseModel):
    type: InventoryUpdateType
    ticket_type_id: str
    event_id: str
    inventory: InventoryRecord
    timestamp: datetime


class TicketTypeStatus(BaseModel):
    ticket_type_id: str
    is_available: bool
    available: int
    sold: int
    held: int
    total: int

    @classmethod
    def from_record(cls, record: InventoryRecord) -> "TicketTypeStatus":
        return cls(
            ticket_type_id=record.ticket_type_id,
            is_available=record.available_quantity > 0,
            available=record.available_quantity,
            sold=record.sold_quantity,
            held=record.held_quantity,
            total=record.total_quantity,
        )


class EventInventorySummary(BaseModel):
    event_id: str
    total_available: int = 0
    total_sold: int = 0
    total_capacity: int = 0
    ticket_types: list[TicketTypeStatus] = Field(default_factory=list)


class InventoryStatusSummary(BaseModel):
    total_events: int = 0
    total_ticket_types: int = 0
    total_inventory: int = 0
    total_sold: int = 0
    total_held: int = 0
    total_available: int = 0
    active_holds: int = 0
    low_stock_alerts: int = 0
    sold_out_ticket_types: int = 0


class BulkInventoryUpdate(BaseModel):
    ticket_type_id: str
    operation: BulkOperation
    quantity: Optional[int] = Field(None, ge=0)
    reason: str


class BulkUpdateError(BaseModel):
    ticket_type_id: str
    operation: BulkOperation
    error: str


class BulkUpdateSummary(BaseModel):
    total_processed: int = 0
    successful_updates: int = 0
    failed_updates: int = 0
    inventory_adjustment: int = 0
    holds_released: int = 0


class BulkUpdateResult(BaseModel):
    success: bool
    updated_ticket_types: list[str] = Field(default_factory=list)
    errors: list[BulkUpdateError] = Field(default_factory=list)
    summary: BulkUpdateSummary = Field(default_factory=BulkUpdateSummary)


# Request bodies for the HTTP adapter

class AvailabilityCheckRequest(BaseModel):
    ticket_type_id: str
    quantity: int = Field(..., gt=0)
    create_hold: bool = False
    channel: PurchaseChannel = PurchaseChannel.ONLINE
    session_id: Optional[str] = None
    user_id: Optional[str] = None


class HoldCreate(BaseModel):
    ticket_type_id: str
    quantity: int = Field(..., gt=0)
    session_id: str = Field(..., min_length=1)
    channel: PurchaseChannel = PurchaseChannel.ONLINE
    user_id: Optional[str] = None


class PurchaseComplete(BaseModel):
    order_id: str = Field(..., min_length=1)
    user_id: Optional[str] = None


class SessionConfirm(BaseModel):
    order_id: str = Field(..., min_length=1)
    ticket_type_id: str
    user_id: Optional[str] = None


class InventoryAdjustment(BaseModel):
    delta: int
    reason: str = Field(..., min_length=1, max_length=255)


class BulkStatusRequest(BaseModel):
    ticket_type_ids: list[str] = Field(..., max_length=500)


class ReleaseResponse(BaseModel):
    released: int
