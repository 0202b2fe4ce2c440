"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from ticket_inventory.api.routes import inventory

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(inventory.router)
