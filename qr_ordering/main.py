"""
FastAPI Application Entry Point

Restaurant QR Ordering System

Endpoints:
    - GET  /api/health: System health check
    - GET  /api/orders: List orders (status / date / table filters)
    - GET  /api/orders/{id}: Single order with its lines
    - POST /api/orders: Place an order from a table
    - PUT  /api/orders/{id}/status: Move an order through the kitchen workflow
    - WS   /ws/kitchen: Live new-order / order-status-updated events
    - /api/tables, /api/menu, /api/categories: Catalog admin (routers.catalog)
    - /api/auth: Registration and login (routers.auth)
    - /api/analytics: Sales reports (routers.analytics)
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, List, Optional

from fastapi import Depends, FastAPI, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

# Windows-specific event loop policy
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from qr_ordering.core.config import Settings, get_settings, setup_logging
from qr_ordering.core.exceptions import AppError, InternalError
from qr_ordering.database import engine, get_db, init_db
from qr_ordering.dependencies import get_order_service, get_status_tracker
from qr_ordering.routers import analytics, auth, catalog
from qr_ordering.schemas import (
    ApiResponse,
    ComposedOrderResponse,
    ErrorResponse,
    HealthResponse,
    OrderCreate,
    OrderResponse,
    OrderStatusUpdate,
)
from qr_ordering.services.excel_manager import flatten_order
from qr_ordering.services.notifications import BaseBroadcaster, get_broadcaster
from qr_ordering.services.orders import OrderService, StatusTracker
from qr_ordering.tasks import export_order_to_excel

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    await init_db()
    logger.info("Database initialized")

    broadcaster = get_broadcaster()
    logger.info(f"Kitchen relay: {broadcaster.provider_name}")
    logger.info(f"Excel ledger: {'enabled' if settings.excel_export_enabled else 'disabled'}")

    missing = settings.validate_production_config()
    if missing:
        logger.warning(f"Production config left at development values: {missing}")

    logger.info("Application ready")

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Table-side QR ordering backend with a live kitchen board, "
        "menu administration and sales analytics."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log each request and keep browsers from caching API responses."""
    logger.info(f"{request.method} {request.url.path}")
    response = await call_next(request)
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    response.headers["Pragma"] = "no-cache"
    response.headers["Expires"] = "0"
    return response


app.include_router(catalog.router)
app.include_router(auth.router)
app.include_router(analytics.router)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def queue_ledger_export(order: ComposedOrderResponse, app_settings: Settings) -> None:
    """Hand the order to the Celery ledger worker; never fails the request."""
    if not app_settings.excel_export_enabled:
        return
    try:
        export_order_to_excel.delay(flatten_order(order.model_dump(mode="json")))
    except Exception as e:
        logger.warning(f"Could not queue Order #{order.id} for Excel export: {e}")


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/api/health",
    }


@app.get(
    "/api/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    db: AsyncSession = Depends(get_db),
    broadcaster: BaseBroadcaster = Depends(get_broadcaster),
) -> HealthResponse:
    """Verify the database and kitchen relay are reachable."""
    db_status = "healthy"
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    relay_status = "healthy" if await broadcaster.health_check() else "unhealthy"

    overall = "OK" if db_status == relay_status == "healthy" else "DEGRADED"

    return HealthResponse(
        status=overall,
        message="Server is running",
        database=db_status,
        notification_service=f"{broadcaster.provider_name}: {relay_status}",
        timestamp=datetime.now(),
    )


# =============================================================================
# KITCHEN EVENTS
# =============================================================================

@app.websocket("/ws/kitchen")
async def kitchen_events(
    websocket: WebSocket,
    broadcaster: BaseBroadcaster = Depends(get_broadcaster),
) -> None:
    """
    Kitchen boards connect here to receive ``{"event", "data"}`` messages.

    Anything the client sends is ignored; the loop only waits for the
    disconnect.
    """
    await broadcaster.connect(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.disconnect(websocket)


# =============================================================================
# ORDER API ENDPOINTS
# =============================================================================

@app.get(
    "/api/orders",
    response_model=ApiResponse[List[ComposedOrderResponse]],
    tags=["Orders"],
    summary="List Orders",
)
async def list_orders(
    status: Optional[str] = Query(None, examples=["pending"]),
    start_date: Optional[datetime] = Query(None, examples=["2025-01-01"]),
    end_date: Optional[datetime] = Query(None, examples=["2025-01-01"]),
    table_number: Optional[int] = Query(None),
    service: OrderService = Depends(get_order_service),
) -> ApiResponse[List[ComposedOrderResponse]]:
    """All matching orders, newest first, each with its line items."""
    try:
        orders = await service.list_orders(
            status=status,
            start_date=start_date,
            end_date=end_date,
            table_number=table_number,
        )
    except AppError:
        raise
    except Exception as e:
        logger.exception(f"Error fetching orders: {e}")
        raise InternalError("Failed to fetch orders", str(e))

    return ApiResponse(data=orders)


@app.get(
    "/api/orders/{order_id}",
    response_model=ApiResponse[ComposedOrderResponse],
    responses={404: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def get_order(
    order_id: int,
    service: OrderService = Depends(get_order_service),
) -> ApiResponse[ComposedOrderResponse]:
    """Get a specific order with its line items."""
    return ApiResponse(data=await service.get_order(order_id))


@app.post(
    "/api/orders",
    response_model=ApiResponse[ComposedOrderResponse],
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Place Order",
)
async def create_order(
    order_data: OrderCreate,
    service: OrderService = Depends(get_order_service),
    app_settings: Settings = Depends(get_settings),
) -> ApiResponse[ComposedOrderResponse]:
    """
    Place an order for a table.

    Header and lines are stored together; the kitchen is notified and the
    order is queued for the Excel ledger afterwards.
    """
    logger.info(
        f"Creating order for table {order_data.table_number} "
        f"({len(order_data.items)} line(s))"
    )

    try:
        order = await service.create_order(order_data)
    except AppError:
        raise
    except Exception as e:
        logger.exception(f"Error creating order: {e}")
        raise InternalError("Failed to create order", str(e))

    queue_ledger_export(order, app_settings)

    return ApiResponse(message="Order created successfully", data=order)


@app.put(
    "/api/orders/{order_id}/status",
    response_model=ApiResponse[OrderResponse],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Update Order Status",
)
async def update_order_status(
    order_id: int,
    body: OrderStatusUpdate,
    tracker: StatusTracker = Depends(get_status_tracker),
) -> ApiResponse[OrderResponse]:
    """Overwrite the order's status and notify the kitchen boards."""
    try:
        order = await tracker.update_status(order_id, body.order_status)
    except AppError:
        raise
    except Exception as e:
        logger.exception(f"Error updating Order #{order_id} status: {e}")
        raise InternalError("Failed to update order status", str(e))

    return ApiResponse(message="Order status updated successfully", data=order)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies keep the error envelope."""
    errors: list[dict[str, Any]] = exc.errors()
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in errors
    )
    return JSONResponse(
        status_code=422,
        content={"success": False, "message": "Invalid request", "error": details},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": "Internal server error",
            "error": str(exc),
        },
    )


# =============================================================================
# DEVELOPMENT SERVER
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "qr_ordering.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
        log_level="debug" if settings.debug else "info",
    )
