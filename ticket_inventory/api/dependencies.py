"""
Request-scoped access to the process-wide InventoryService.
"""

from fastapi import HTTPException, Request, status

from ticket_inventory.services.inventory_service import InventoryService


def get_inventory_service(request: Request) -> InventoryService:
    service = getattr(request.app.state, "inventory_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Inventory service is not running",
        )
    return service
