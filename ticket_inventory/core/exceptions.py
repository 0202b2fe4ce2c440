"""
Inventory error taxonomy.

Hold operations report these conditions through result models
(success flag + error_code). Exceptions are only raised by administrative
calls (capacity adjustment) and by store adapters, which wrap driver errors
into PersistenceError so callers never see SQLAlchemy types.
"""

from enum import Enum
from typing import Optional


class InventoryErrorCode(str, Enum):
    TICKET_TYPE_NOT_FOUND = "ticket_type_not_found"
    INSUFFICIENT_INVENTORY = "insufficient_inventory"
    HOLD_UNAVAILABLE = "hold_unavailable"
    PERSISTENCE_FAILURE = "persistence_failure"
    INVALID_QUANTITY = "invalid_quantity"


class InventoryError(Exception):
    code: InventoryErrorCode = InventoryErrorCode.PERSISTENCE_FAILURE

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TicketTypeNotFoundError(InventoryError):
    code = InventoryErrorCode.TICKET_TYPE_NOT_FOUND

    def __init__(self, ticket_type_id: str):
        super().__init__(f"Inventory not found for ticket type: {ticket_type_id}")
        self.ticket_type_id = ticket_type_id


class InsufficientInventoryError(InventoryError):
    """Carries the real number of units left so callers can offer it."""

    code = InventoryErrorCode.INSUFFICIENT_INVENTORY

    def __init__(self, available: int, message: Optional[str] = None):
        super().__init__(message or f"Only {available} tickets available")
        self.available = available


class PersistenceError(InventoryError):
    code = InventoryErrorCode.PERSISTENCE_FAILURE
