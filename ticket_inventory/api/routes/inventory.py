"""
Inventory endpoints for checkout, cash-payment and dashboard callers.

Hold operations return result models from the service; failures are turned
into HTTP errors here so checkout can show the real remaining quantity.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ticket_inventory.api.dependencies import get_inventory_service
from ticket_inventory.core.exceptions import InventoryErrorCode
from ticket_inventory.core.logging import get_logger
from ticket_inventory.schemas.inventory import (
    AvailabilityCheckRequest,
    BulkInventoryUpdate,
    BulkStatusRequest,
    BulkUpdateResult,
    EventInventorySummary,
    Hold,
    HoldCreate,
    HoldCreationResult,
    InventoryAdjustment,
    InventoryCheckResult,
    InventoryRecord,
    InventoryStatusSummary,
    PurchaseComplete,
    PurchaseResult,
    ReleaseResponse,
    SessionConfirm,
    TicketTypeStatus,
)
from ticket_inventory.services.inventory_service import InventoryService

logger = get_logger(__name__)
router = APIRouter(prefix="/inventory", tags=["Inventory"])

ERROR_STATUS = {
    InventoryErrorCode.TICKET_TYPE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    InventoryErrorCode.HOLD_UNAVAILABLE: status.HTTP_404_NOT_FOUND,
    InventoryErrorCode.INSUFFICIENT_INVENTORY: status.HTTP_409_CONFLICT,
    InventoryErrorCode.INVALID_QUANTITY: 422,
    InventoryErrorCode.PERSISTENCE_FAILURE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _raise_failure(
    error_code: Optional[InventoryErrorCode],
    error: Optional[str],
    available_quantity: Optional[int] = None,
) -> None:
    code = error_code or InventoryErrorCode.PERSISTENCE_FAILURE
    detail = {"error": error, "error_code": code.value}
    if available_quantity is not None:
        detail["available_quantity"] = available_quantity
    raise HTTPException(status_code=ERROR_STATUS[code], detail=detail)


@router.post("/check", response_model=InventoryCheckResult)
async def check_availability_endpoint(
    request: AvailabilityCheckRequest,
    service: InventoryService = Depends(get_inventory_service),
):
    """Check stock, optionally taking a hold in the same call."""
    return await service.check_availability(
        request.ticket_type_id,
        request.quantity,
        create_hold=request.create_hold,
        channel=request.channel,
        session_id=request.session_id,
        user_id=request.user_id,
    )


@router.post("/holds", response_model=HoldCreationResult, status_code=status.HTTP_201_CREATED)
async def create_hold_endpoint(
    hold_data: HoldCreate,
    service: InventoryService = Depends(get_inventory_service),
):
    """
    Reserve tickets for a checkout session.
    Returns 409 with the real available count when stock is short.
    """
    result = await service.create_hold(
        hold_data.ticket_type_id,
        hold_data.quantity,
        hold_data.channel,
        hold_data.session_id,
        hold_data.user_id,
    )
    if not result.success:
        _raise_failure(result.error_code, result.error, result.available_quantity)
    return result


@router.get("/holds", response_model=list[Hold])
async def list_active_holds(service: InventoryService = Depends(get_inventory_service)):
    return service.get_active_holds()


@router.post("/holds/{hold_id}/complete", response_model=PurchaseResult)
async def complete_purchase_endpoint(
    hold_id: str,
    purchase: PurchaseComplete,
    service: InventoryService = Depends(get_inventory_service),
):
    """
    Convert a hold into a sale once payment has cleared.
    Any non-2xx response means the order must not be fulfilled.
    """
    result = await service.complete_purchase(hold_id, purchase.order_id, purchase.user_id)
    if not result.success:
        _raise_failure(result.error_code, result.error)
    return result


@router.delete("/holds/{hold_id}", response_model=ReleaseResponse)
async def release_hold_endpoint(
    hold_id: str,
    service: InventoryService = Depends(get_inventory_service),
):
    """Release a hold. Idempotent: unknown or finished holds release nothing."""
    return ReleaseResponse(released=1 if service.release_hold(hold_id) else 0)


@router.delete("/sessions/{session_id}/holds", response_model=ReleaseResponse)
async def release_session_holds_endpoint(
    session_id: str,
    ticket_type_id: Optional[str] = Query(None),
    service: InventoryService = Depends(get_inventory_service),
):
    """Release everything a checkout session holds (checkout aborted)."""
    return ReleaseResponse(released=service.release_inventory_hold(session_id, ticket_type_id))


@router.post("/sessions/{session_id}/confirm")
async def confirm_session_hold_endpoint(
    session_id: str,
    confirm: SessionConfirm,
    service: InventoryService = Depends(get_inventory_service),
):
    """Finalize a session's hold by session + ticket type (cash/offline payments)."""
    confirmed = await service.confirm_inventory_hold(
        session_id, confirm.order_id, confirm.ticket_type_id, confirm.user_id
    )
    if not confirmed:
        _raise_failure(InventoryErrorCode.HOLD_UNAVAILABLE, "Hold not found or expired")
    return {"confirmed": True, "session_id": session_id, "order_id": confirm.order_id}


@router.get("/ticket-types/{ticket_type_id}", response_model=TicketTypeStatus)
async def get_ticket_type_status_endpoint(
    ticket_type_id: str,
    service: InventoryService = Depends(get_inventory_service),
):
    ticket_status = await service.get_inventory_status(ticket_type_id)
    if ticket_status is None:
        _raise_failure(InventoryErrorCode.TICKET_TYPE_NOT_FOUND, "Ticket type not found")
    return ticket_status


@router.post("/ticket-types/status", response_model=list[TicketTypeStatus])
async def bulk_status_endpoint(
    request: BulkStatusRequest,
    service: InventoryService = Depends(get_inventory_service),
):
    """Status for many ticket types; unknown ids are omitted."""
    return await service.get_bulk_inventory_status(request.ticket_type_ids)


@router.post("/ticket-types/{ticket_type_id}/adjust", response_model=InventoryRecord)
async def adjust_inventory_endpoint(
    ticket_type_id: str,
    adjustment: InventoryAdjustment,
    service: InventoryService = Depends(get_inventory_service),
):
    """Administrative capacity change. Errors map through the InventoryError handler."""
    record = await service.adjust_inventory(ticket_type_id, adjustment.delta, adjustment.reason)
    return record


@router.post("/bulk", response_model=BulkUpdateResult)
async def bulk_update_endpoint(
    updates: list[BulkInventoryUpdate],
    service: InventoryService = Depends(get_inventory_service),
):
    return await service.bulk_update(updates)


@router.get("/events/{event_id}/summary", response_model=EventInventorySummary)
async def event_summary_endpoint(
    event_id: str,
    service: InventoryService = Depends(get_inventory_service),
):
    return service.get_event_inventory_summary(event_id)


@router.delete("/events/{event_id}/holds", response_model=ReleaseResponse)
async def release_event_holds_endpoint(
    event_id: str,
    service: InventoryService = Depends(get_inventory_service),
):
    return ReleaseResponse(released=service.release_event_holds(event_id))


@router.get("/summary", response_model=InventoryStatusSummary)
async def status_summary_endpoint(service: InventoryService = Depends(get_inventory_service)):
    return service.get_inventory_status_summary()


@router.post("/failed-cache/clear")
async def clear_failed_cache_endpoint(service: InventoryService = Depends(get_inventory_service)):
    """Let previously unknown ticket types be fetched again."""
    cleared = service.clear_failed_ticket_types()
    logger.info("failed_cache_cleared_via_api", cleared=cleared)
    return {"cleared": cleared}
