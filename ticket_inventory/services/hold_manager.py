"""
Hold manager: time-boxed reservations against the inventory ledger.

CONCURRENCY STRATEGY: Advisory holds, authoritative sale write
==============================================================

Problem:
  Checkout needs to set tickets aside for a few minutes while the buyer
  pays, without writing to the database on every page view.

Approach:
  - A hold is an in-memory lease: held_quantity on the cached record goes
    up by the hold's quantity and comes down exactly once, when the hold
    completes, expires or is released.
  - create_hold re-reads the record and then checks and increments
    held_quantity with no await in between, so on one event loop two holds
    cannot both take the last ticket once the record is cached. There is
    no lock: the first caller to get there wins, later callers see less.
  - Nothing here coordinates across processes. With several instances each
    has its own held counts and they can oversubscribe a ticket type. The
    conditional UPDATE in TicketTypeStore.record_sale is what actually
    prevents overselling; holds are advisory.

Completion:
  complete_purchase withdraws the hold from the active map before awaiting
  the store, so the sweeper, a release or a second completion cannot act on
  it mid-flight. If the write fails or the awaiting task is cancelled the
  hold goes back untouched and the record was never modified.

Terminal holds are dropped from the map, which makes expire/release
idempotent: a second call finds nothing and is a no-op.
"""

import uuid
from datetime import datetime, timedelta
from typing import Any, Optional

from ticket_inventory.core.config import Settings
from ticket_inventory.core.exceptions import InventoryErrorCode, PersistenceError
from ticket_inventory.core.logging import get_logger
from ticket_inventory.core.metrics import (
    active_holds,
    record_hold_request,
    record_hold_transition,
    record_purchase,
)
from ticket_inventory.schemas.inventory import (
    Hold,
    HoldCreationResult,
    HoldStatus,
    InventoryCheckResult,
    InventoryStatus,
    InventoryUpdateType,
    PurchaseChannel,
    PurchaseResult,
)
from ticket_inventory.services.interfaces.ticket_store import TicketTypeStore
from ticket_inventory.services.inventory_ledger import Clock, InventoryLedger, utc_now

logger = get_logger(__name__)

HOLD_NOT_AVAILABLE = "Hold not found or expired"


def hold_timeouts(settings: Settings) -> dict[PurchaseChannel, timedelta]:
    """Hold window per purchase channel. Cash buyers get hours, online checkout minutes."""
    return {
        PurchaseChannel.ONLINE: timedelta(minutes=settings.HOLD_TIMEOUT_MINUTES),
        PurchaseChannel.CASH: timedelta(hours=settings.CASH_HOLD_TIMEOUT_HOURS),
        PurchaseChannel.ADMIN: timedelta(minutes=settings.ADMIN_HOLD_TIMEOUT_MINUTES),
        PurchaseChannel.BULK: timedelta(minutes=settings.BULK_HOLD_TIMEOUT_MINUTES),
    }


class HoldManager:
    def __init__(
        self,
        ledger: InventoryLedger,
        store: TicketTypeStore,
        settings: Settings,
        clock: Clock = utc_now,
    ):
        self._ledger = ledger
        self._store = store
        self._clock = clock
        self._timeouts = hold_timeouts(settings)
        self._holds: dict[str, Hold] = {}

    def hold_timeout(self, channel: PurchaseChannel) -> timedelta:
        return self._timeouts[channel]

    async def check_availability(
        self,
        ticket_type_id: str,
        quantity: int,
        create_hold: bool = False,
        channel: PurchaseChannel = PurchaseChannel.ONLINE,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> InventoryCheckResult:
        """
        Can `quantity` tickets be held right now?

        With create_hold=True and a session_id, also takes the hold and
        returns it as hold_created. If the hold loses a race the check
        result still stands and hold_created stays empty.
        """
        record = await self._ledger.get_inventory(ticket_type_id)
        if record is None:
            return InventoryCheckResult(
                available=False,
                available_quantity=0,
                requested_quantity=quantity,
                inventory_status=InventoryStatus.SOLD_OUT,
                message="Ticket type not found",
            )

        current_available = record.available_for_hold
        available = current_available >= quantity
        result = InventoryCheckResult(
            available=available,
            available_quantity=current_available,
            requested_quantity=quantity,
            inventory_status=self._ledger.classify(record),
            message="Tickets available" if available else "Insufficient inventory",
        )

        if create_hold and available and session_id:
            hold_result = await self.create_hold(ticket_type_id, quantity, channel, session_id, user_id)
            if hold_result.success:
                result.hold_created = hold_result.hold

        return result

    async def create_hold(
        self,
        ticket_type_id: str,
        quantity: int,
        channel: PurchaseChannel,
        session_id: str,
        user_id: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> HoldCreationResult:
        if quantity <= 0:
            record_hold_request("invalid")
            return HoldCreationResult(
                success=False,
                error="Quantity must be positive",
                error_code=InventoryErrorCode.INVALID_QUANTITY,
            )

        record = await self._ledger.get_inventory(ticket_type_id)
        if record is None:
            record_hold_request("not_found")
            return HoldCreationResult(
                success=False,
                error="Ticket type not found",
                error_code=InventoryErrorCode.TICKET_TYPE_NOT_FOUND,
            )

        # No await from here on: check and increment are one step on the loop
        current_available = record.available_for_hold
        if current_available < quantity:
            record_hold_request("insufficient")
            logger.info(
                "hold_rejected",
                ticket_type_id=ticket_type_id,
                requested=quantity,
                available=current_available,
                session_id=session_id,
            )
            return HoldCreationResult(
                success=False,
                error=f"Only {current_available} tickets available",
                error_code=InventoryErrorCode.INSUFFICIENT_INVENTORY,
                available_quantity=current_available,
            )

        now = self._clock()
        hold = Hold(
            id=f"hold_{uuid.uuid4().hex}",
            ticket_type_id=ticket_type_id,
            event_id=record.event_id,
            quantity=quantity,
            session_id=session_id,
            user_id=user_id,
            channel=channel,
            created_at=now,
            expires_at=now + self.hold_timeout(channel),
            metadata=metadata or {},
        )

        self._holds[hold.id] = hold
        record.held_quantity += quantity
        self._ledger.touch(record)
        active_holds.set(len(self._holds))
        record_hold_request("created")

        logger.info(
            "hold_created",
            hold_id=hold.id,
            ticket_type_id=ticket_type_id,
            quantity=quantity,
            channel=channel.value,
            session_id=session_id,
            expires_at=hold.expires_at.isoformat(),
            held=record.held_quantity,
        )
        self._ledger.publish(InventoryUpdateType.HOLD_CREATED, record)
        return HoldCreationResult(success=True, hold=hold, available_quantity=record.available_for_hold)

    async def complete_purchase(
        self,
        hold_id: str,
        order_id: str,
        user_id: Optional[str] = None,
    ) -> PurchaseResult:
        """
        Turn an ACTIVE hold into a sale.

        Callers must not issue tickets unless success is True.
        """
        hold = self._holds.get(hold_id)
        if hold is None or hold.status != HoldStatus.ACTIVE:
            record_purchase("hold_unavailable")
            logger.warning("purchase_hold_unavailable", hold_id=hold_id, order_id=order_id)
            return PurchaseResult(
                success=False,
                error=HOLD_NOT_AVAILABLE,
                error_code=InventoryErrorCode.HOLD_UNAVAILABLE,
            )

        record = self._ledger.get_cached(hold.ticket_type_id)
        if record is None:
            record_purchase("hold_unavailable")
            return PurchaseResult(
                success=False,
                error="Inventory not found",
                error_code=InventoryErrorCode.TICKET_TYPE_NOT_FOUND,
            )

        del self._holds[hold_id]
        try:
            await self._store.record_sale(hold.ticket_type_id, hold.quantity)
        except PersistenceError as e:
            self._holds[hold_id] = hold
            record_purchase("persistence_failure")
            logger.error(
                "purchase_persistence_failed",
                hold_id=hold_id,
                order_id=order_id,
                ticket_type_id=hold.ticket_type_id,
                quantity=hold.quantity,
                error=str(e),
            )
            return PurchaseResult(
                success=False,
                remaining_inventory=record.available_quantity,
                error="Database update failed",
                error_code=InventoryErrorCode.PERSISTENCE_FAILURE,
            )
        except BaseException:
            # Cancelled mid-write: the hold stays ACTIVE and reachable
            self._holds[hold_id] = hold
            logger.warning("purchase_interrupted", hold_id=hold_id, order_id=order_id)
            raise

        record.held_quantity = max(0, record.held_quantity - hold.quantity)
        record.sold_quantity += hold.quantity
        record.available_quantity = max(0, record.available_quantity - hold.quantity)
        self._ledger.touch(record)

        hold.status = HoldStatus.COMPLETED
        hold.metadata["order_id"] = order_id
        if user_id and not hold.user_id:
            hold.user_id = user_id
        active_holds.set(len(self._holds))
        record_hold_transition(HoldStatus.COMPLETED.value)
        record_purchase("success")

        logger.info(
            "purchase_completed",
            hold_id=hold_id,
            order_id=order_id,
            ticket_type_id=hold.ticket_type_id,
            quantity=hold.quantity,
            sold=record.sold_quantity,
            remaining=record.available_quantity,
        )
        self._ledger.publish(InventoryUpdateType.PURCHASE_COMPLETED, record)
        return PurchaseResult(
            success=True,
            inventory_updated=True,
            hold_released=True,
            remaining_inventory=record.available_quantity,
        )

    def expire_hold(self, hold_id: str) -> bool:
        return self._finish(hold_id, HoldStatus.EXPIRED, InventoryUpdateType.HOLD_EXPIRED)

    def release_hold(self, hold_id: str) -> bool:
        return self._finish(hold_id, HoldStatus.RELEASED, InventoryUpdateType.HOLD_RELEASED)

    def _finish(self, hold_id: str, status: HoldStatus, update_type: InventoryUpdateType) -> bool:
        hold = self._holds.get(hold_id)
        if hold is None or hold.status != HoldStatus.ACTIVE:
            return False

        del self._holds[hold_id]
        hold.status = status
        active_holds.set(len(self._holds))
        record_hold_transition(status.value)

        record = self._ledger.get_cached(hold.ticket_type_id)
        if record is not None:
            record.held_quantity = max(0, record.held_quantity - hold.quantity)
            self._ledger.touch(record)

        logger.info(
            f"hold_{status.value}",
            hold_id=hold_id,
            ticket_type_id=hold.ticket_type_id,
            quantity=hold.quantity,
            session_id=hold.session_id,
        )
        if record is not None:
            self._ledger.publish(update_type, record)
        return True

    def release_session_holds(self, session_id: str, ticket_type_id: Optional[str] = None) -> int:
        """Release every ACTIVE hold of a checkout session (abandoned or cancelled checkout)."""
        holds = [
            hold for hold in self.session_holds(session_id)
            if ticket_type_id is None or hold.ticket_type_id == ticket_type_id
        ]
        return sum(1 for hold in holds if self.release_hold(hold.id))

    async def confirm_session_hold(
        self,
        session_id: str,
        order_id: str,
        ticket_type_id: str,
        user_id: Optional[str] = None,
    ) -> bool:
        """Complete the session's oldest ACTIVE hold on a ticket type (cash/offline payments)."""
        holds = [h for h in self.session_holds(session_id) if h.ticket_type_id == ticket_type_id]
        if not holds:
            logger.warning(
                "session_hold_not_found",
                session_id=session_id,
                ticket_type_id=ticket_type_id,
                order_id=order_id,
            )
            return False

        result = await self.complete_purchase(holds[0].id, order_id, user_id)
        return result.success

    def release_event_holds(self, event_id: str) -> int:
        holds = [hold for hold in self.active_holds() if hold.event_id == event_id]
        released = sum(1 for hold in holds if self.release_hold(hold.id))
        logger.info("event_holds_released", event_id=event_id, released=released)
        return released

    def release_ticket_type_holds(self, ticket_type_id: str) -> int:
        holds = [hold for hold in self.active_holds() if hold.ticket_type_id == ticket_type_id]
        return sum(1 for hold in holds if self.release_hold(hold.id))

    def get_hold(self, hold_id: str) -> Optional[Hold]:
        return self._holds.get(hold_id)

    def active_holds(self) -> list[Hold]:
        return [hold for hold in self._holds.values() if hold.status == HoldStatus.ACTIVE]

    def session_holds(self, session_id: str) -> list[Hold]:
        holds = [hold for hold in self.active_holds() if hold.session_id == session_id]
        return sorted(holds, key=lambda hold: hold.created_at)

    def expired_hold_ids(self, now: Optional[datetime] = None) -> list[str]:
        now = now or self._clock()
        return [hold.id for hold in self.active_holds() if hold.expires_at <= now]
