"""
FastAPI Application Entry Point

Storefront Ordering API.

Endpoints:
    - GET  /api/menu: Browse the menu
    - POST /api/menu: Add a menu item (admin)
    - POST /api/orders: Place an order
    - GET  /api/orders: List orders (own orders, or all for admins)
    - PUT  /api/orders/{id}: Change order status (admin)
    - GET  /health: System health check

Callers are identified by the configured access gate; every route passes
the resolved caller into the services explicitly.

Version: 1.0.0
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.config import get_settings, setup_logging
from storefront.database import engine, get_db, init_db
from storefront.models import MenuCategory
from storefront.schemas import (
    ErrorResponse,
    HealthResponse,
    MenuItemCreate,
    MenuItemResponse,
    MenuItemUpdate,
    MessageResponse,
    OrderCreate,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
    PaginationInfo,
)
from storefront.services import catalog
from storefront.services.access import Caller, Unauthenticated, get_access_gate
from storefront.services.ordering import (
    EmptyOrder,
    Forbidden,
    InvalidQuantity,
    InvalidStatus,
    InvalidTransition,
    LineItemNotFound,
    MenuItemNotFound,
    OrderingError,
    OrderNotFound,
    OrderTotalOutOfRange,
    PersistenceFailure,
    build_order,
    delete_order,
    get_order,
    list_orders,
    page_count,
    set_status,
)
from storefront.services.ordering.queries import require_admin

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

    gate = get_access_gate()
    logger.info(f"Access Gate: {gate.provider_name}")
    logger.info(f"Status transitions: {settings.status_transition_mode.value}")

    problems = settings.validate_production_config()
    if problems:
        logger.warning(f"Configuration problems: {problems}")

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
        "Storefront ordering backend: menu browsing, order placement with "
        "price snapshots, and administrative order status management."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# DEPENDENCIES
# =============================================================================

async def get_caller(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Caller:
    """Resolve the calling user through the configured access gate."""
    return await get_access_gate().resolve(request, db)


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
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    db: AsyncSession = Depends(get_db)
) -> HealthResponse:
    """Verify the database is reachable."""
    db_status = "healthy"
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    return HealthResponse(
        status="operational" if db_status == "healthy" else "degraded",
        database=db_status,
        environment=settings.env_mode.value,
        timestamp=datetime.now(timezone.utc),
    )


# =============================================================================
# MENU ENDPOINTS
# =============================================================================

@app.get(
    "/api/menu",
    response_model=list[MenuItemResponse],
    tags=["Menu"],
    summary="List Menu Items",
)
async def list_menu(
    category: Optional[MenuCategory] = Query(None),
    include_unavailable: bool = Query(False),
    db: AsyncSession = Depends(get_db),
) -> list[MenuItemResponse]:
    """Available menu items, optionally filtered by category."""
    items = await catalog.list_menu_items(db, category, include_unavailable)
    return [MenuItemResponse.model_validate(item) for item in items]


@app.get(
    "/api/menu/{item_id}",
    response_model=MenuItemResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Menu"],
)
async def get_menu_item(
    item_id: int,
    db: AsyncSession = Depends(get_db),
) -> MenuItemResponse:
    return MenuItemResponse.model_validate(await catalog.get_menu_item(db, item_id))


@app.post(
    "/api/menu",
    response_model=MenuItemResponse,
    status_code=201,
    responses={403: {"model": ErrorResponse}},
    tags=["Menu"],
    summary="Create Menu Item (Admin)",
)
async def create_menu_item(
    data: MenuItemCreate,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> MenuItemResponse:
    require_admin(caller.role, "manage the menu")
    item = await catalog.create_menu_item(db, data)
    return MenuItemResponse.model_validate(item)


@app.put(
    "/api/menu/{item_id}",
    response_model=MenuItemResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Menu"],
    summary="Update Menu Item (Admin)",
)
async def update_menu_item(
    item_id: int,
    data: MenuItemUpdate,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> MenuItemResponse:
    require_admin(caller.role, "manage the menu")
    item = await catalog.update_menu_item(db, item_id, data)
    return MenuItemResponse.model_validate(item)


@app.delete(
    "/api/menu/{item_id}",
    response_model=MessageResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Menu"],
    summary="Delete Menu Item (Admin)",
)
async def delete_menu_item(
    item_id: int,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    require_admin(caller.role, "manage the menu")
    await catalog.delete_menu_item(db, item_id)
    return MessageResponse(message="Menu item deleted successfully")


# =============================================================================
# ORDER API ENDPOINTS
# =============================================================================

@app.post(
    "/api/orders",
    response_model=OrderResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Place Order",
)
async def create_order(
    order_data: OrderCreate,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    """
    Place an order for the calling user.

    Unit prices are taken from the menu at this moment and stored with the
    order; the total never changes afterwards.
    """
    logger.info(f"Creating order for user {caller.user_id} ({len(order_data.items)} line(s))")

    order = await build_order(
        db,
        caller.user_id,
        order_data.items,
        metadata=order_data.delivery_metadata(),
    )
    return OrderResponse.model_validate(order)


@app.get(
    "/api/orders",
    response_model=OrderListResponse,
    tags=["Orders"],
    summary="List Orders",
)
async def list_orders_endpoint(
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> OrderListResponse:
    """Retrieve a page of orders, newest first."""
    orders, total = await list_orders(db, caller, status=status, page=page, limit=limit)

    return OrderListResponse(
        orders=[OrderResponse.model_validate(order) for order in orders],
        pagination=PaginationInfo(
            total=total,
            page=page,
            limit=limit,
            pages=page_count(total, limit),
        ),
    )


@app.get(
    "/api/orders/{order_id}",
    response_model=OrderResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def get_order_endpoint(
    order_id: int,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    """Get a specific order (owner or admin)."""
    return OrderResponse.model_validate(await get_order(db, order_id, caller))


@app.put(
    "/api/orders/{order_id}",
    response_model=OrderResponse,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    tags=["Orders"],
    summary="Update Order Status (Admin)",
)
async def update_order_status(
    order_id: int,
    update: OrderStatusUpdate,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    order = await set_status(db, order_id, update.status, caller.role)
    return OrderResponse.model_validate(order)


@app.delete(
    "/api/orders/{order_id}",
    response_model=MessageResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Delete Order (Admin)",
)
async def delete_order_endpoint(
    order_id: int,
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await delete_order(db, order_id, caller.role)
    return MessageResponse(message="Order deleted successfully")


# =============================================================================
# ERROR HANDLERS
# =============================================================================

ERROR_STATUS_CODES: dict[type, int] = {
    EmptyOrder: 400,
    InvalidQuantity: 400,
    LineItemNotFound: 400,
    OrderTotalOutOfRange: 400,
    InvalidStatus: 400,
    Forbidden: 403,
    OrderNotFound: 404,
    MenuItemNotFound: 404,
    InvalidTransition: 409,
    PersistenceFailure: 500,
}


def status_code_for(exc: OrderingError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    return 500


def _error_body(error: str, detail: Optional[str]) -> dict[str, Any]:
    return ErrorResponse(error=error, detail=detail).model_dump()


@app.exception_handler(OrderingError)
async def ordering_error_handler(request: Request, exc: OrderingError) -> JSONResponse:
    """Translate ordering errors into status codes."""
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        detail = exc.message if settings.debug else "A database error occurred"
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.error_code}")
        detail = exc.message

    return JSONResponse(status_code=status_code, content=_error_body(exc.error_code, detail))


@app.exception_handler(Unauthenticated)
async def unauthenticated_handler(request: Request, exc: Unauthenticated) -> JSONResponse:
    return JSONResponse(status_code=401, content=_error_body(exc.error_code, exc.message))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content=_error_body(
            "internal_server_error",
            str(exc) if settings.debug else "An unexpected error occurred",
        ),
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("storefront.main:app", host=settings.api_host, port=settings.api_port)
