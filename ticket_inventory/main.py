"""
Ticket Inventory API - Main Application Entry Point

Hosts the in-process inventory service for the checkout flows:
- Time-boxed holds per purchase channel, swept in the background
- Sales written through with a conditional UPDATE (no overselling)
- Structured logging with request and checkout-session correlation
- Prometheus metrics at /metrics
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ticket_inventory.core.config import get_settings
from ticket_inventory.core.exceptions import InventoryError
from ticket_inventory.core.logging import setup_logging, get_logger
from ticket_inventory.core.metrics import metrics_endpoint
from ticket_inventory.api.router import api_router
from ticket_inventory.api.middleware import RequestLoggingMiddleware
from ticket_inventory.api.routes.inventory import ERROR_STATUS
from ticket_inventory.db.session import create_engine, create_session_factory
from ticket_inventory.infrastructure.sql_ticket_store import SqlTicketTypeStore
from ticket_inventory.services.service_factory import build_inventory_service

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: build the inventory service, start/stop the sweeper."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    engine = create_engine(settings)
    store = SqlTicketTypeStore(create_session_factory(engine))
    service = build_inventory_service(settings, store)
    await service.start(warm_cache=settings.WARM_CACHE_ON_STARTUP)
    app.state.inventory_service = service

    yield

    await service.stop()
    app.state.inventory_service = None
    await engine.dispose()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Real-time ticket inventory with time-boxed checkout holds",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router)


@app.exception_handler(InventoryError)
async def inventory_error_handler(request: Request, exc: InventoryError):
    detail = {"error": exc.message, "error_code": exc.code.value}
    available = getattr(exc, "available", None)
    if available is not None:
        detail["available_quantity"] = available
    return JSONResponse(status_code=ERROR_STATUS[exc.code], content={"detail": detail})


@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint for Docker and load balancers."""
    service = getattr(request.app.state, "inventory_service", None)
    if service is None:
        return {"status": "starting", "version": settings.APP_VERSION}
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "inventory": {
            "ticket_types": len(service.get_all_inventory()),
            "active_holds": len(service.get_active_holds()),
            "sweeper_running": service.sweeper.running,
        },
    }


@app.get("/metrics", tags=["Health"])
def metrics():
    return metrics_endpoint()
