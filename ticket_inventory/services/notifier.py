"""
In-process fan-out of inventory changes.

Listeners are called synchronously, in subscription order, with a snapshot
of the record. There is no buffering or replay: a late subscriber re-reads
the ledger instead.
"""

from typing import Callable

from ticket_inventory.core.logging import get_logger
from ticket_inventory.core.metrics import listener_errors
from ticket_inventory.schemas.inventory import InventoryUpdateEvent, TicketTypeStatus

logger = get_logger(__name__)

Listener = Callable[[InventoryUpdateEvent], None]


class UpdateNotifier:
    def __init__(self):
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it (safe to call twice)."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def subscribe_ticket_type(
        self,
        ticket_type_id: str,
        callback: Callable[[TicketTypeStatus], None],
    ) -> Callable[[], None]:
        """Deliver a status snapshot whenever one ticket type changes (stock badges)."""

        def on_update(event: InventoryUpdateEvent) -> None:
            if event.ticket_type_id == ticket_type_id:
                callback(TicketTypeStatus.from_record(event.inventory))

        return self.subscribe(on_update)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def emit(self, event: InventoryUpdateEvent) -> None:
        # Copy so a listener may unsubscribe while being notified
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                listener_errors.inc()
                logger.error(
                    "inventory_listener_failed",
                    update_type=event.type.value,
                    ticket_type_id=event.ticket_type_id,
                    error=str(e),
                )
