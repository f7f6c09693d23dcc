"""
FastAPI Application Entry Point

Thin HTTP layer over the services: translates requests into service calls
and ServiceResult failures into HTTP status codes.

Endpoints:
    - POST  /customer: Register a customer
    - GET   /customer/orders/{customer_id}: A customer's orders (paginated)
    - POST  /menu: Add a menu item
    - GET   /menu: List menu items (paginated, optional category)
    - POST  /order: Create an order
    - GET   /order/{order_id}: Fetch an order with its items
    - PATCH /order/modify/{order_id}: Replace an order's items
    - PATCH /order/{order_id}: Update an order's status
    - GET   /health: System health check

Run with:
    python -m restaurant_orders.main
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from restaurant_orders.core.config import Settings, get_settings, setup_logging
from restaurant_orders.database import (
    create_engine_from_settings,
    create_session_factory,
    init_db,
)
from restaurant_orders.schemas import (
    CustomerOrdersPage,
    CustomerRead,
    CustomerRegisterRequest,
    ErrorResponse,
    HealthResponse,
    MenuItemCreateRequest,
    MenuItemPage,
    MenuItemRead,
    OrderCreateRequest,
    OrderModifyRequest,
    OrderRead,
    OrderStatusUpdateRequest,
)
from restaurant_orders.services import ErrorKind, ServiceContainer, ServiceResult, build_services
from restaurant_orders.services.customer import describe_validation_error

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# RESULT TRANSLATION
# =============================================================================

class ServiceFailure(Exception):
    """Carries a failed ServiceResult to the exception handler."""

    def __init__(self, result: ServiceResult):
        super().__init__(result.error_message)
        self.result = result


def status_for(kind: ErrorKind) -> int:
    """HTTP status for a failure kind."""
    if kind.is_not_found:
        return status.HTTP_404_NOT_FOUND
    if kind == ErrorKind.PERSISTENCE_ERROR:
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_400_BAD_REQUEST


def unwrap(result: ServiceResult):
    """Return the payload of a successful result, raise ServiceFailure otherwise."""
    if not result.success:
        raise ServiceFailure(result)
    return result.data


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@router.get("/", tags=["Root"])
async def root(request: Request) -> dict[str, str]:
    """API root with navigation links."""
    settings: Settings = request.app.state.settings
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(request: Request) -> HealthResponse:
    """Verify the database is reachable."""
    db_status = "healthy"
    try:
        async with request.app.state.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    return HealthResponse(
        status="operational" if db_status == "healthy" else "degraded",
        database=db_status,
        environment=request.app.state.settings.env_mode.value,
        timestamp=datetime.now(),
    )


# =============================================================================
# CUSTOMER ENDPOINTS
# =============================================================================

@router.post(
    "/customer",
    response_model=CustomerRead,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["Customers"],
)
async def register_customer(
    body: CustomerRegisterRequest,
    services: ServiceContainer = Depends(get_services),
) -> CustomerRead:
    result = await services.customers.register_customer(body.name, body.email, body.phone)
    return unwrap(result)


@router.get(
    "/customer/orders/{customer_id}",
    response_model=CustomerOrdersPage,
    responses={404: {"model": ErrorResponse}},
    tags=["Customers"],
)
async def list_customer_orders(
    customer_id: int,
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    services: ServiceContainer = Depends(get_services),
) -> CustomerOrdersPage:
    result = await services.customers.list_customer_orders(customer_id, page, limit)
    return unwrap(result)


# =============================================================================
# MENU ENDPOINTS
# =============================================================================

@router.post(
    "/menu",
    response_model=MenuItemRead,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
    tags=["Menu"],
)
async def add_menu_item(
    body: MenuItemCreateRequest,
    services: ServiceContainer = Depends(get_services),
) -> MenuItemRead:
    result = await services.menu.add_menu_item(body.name, body.description, body.price, body.category)
    return unwrap(result)


@router.get(
    "/menu",
    response_model=MenuItemPage,
    responses={400: {"model": ErrorResponse}},
    tags=["Menu"],
)
async def list_menu_items(
    category: Optional[str] = Query(None),
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    services: ServiceContainer = Depends(get_services),
) -> MenuItemPage:
    result = await services.menu.list_menu_items(category, page, limit)
    return unwrap(result)


# =============================================================================
# ORDER ENDPOINTS
# =============================================================================

@router.post(
    "/order",
    response_model=OrderRead,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def create_order(
    body: OrderCreateRequest,
    services: ServiceContainer = Depends(get_services),
) -> OrderRead:
    result = await services.orders.create_order(body.customer_id, body.items)
    return unwrap(result)


@router.get(
    "/order/{order_id}",
    response_model=OrderRead,
    responses={404: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def get_order(
    order_id: int,
    services: ServiceContainer = Depends(get_services),
) -> OrderRead:
    return unwrap(await services.orders.get_order(order_id))


@router.patch(
    "/order/modify/{order_id}",
    response_model=OrderRead,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def modify_order(
    order_id: int,
    body: OrderModifyRequest,
    services: ServiceContainer = Depends(get_services),
) -> OrderRead:
    result = await services.orders.modify_order(order_id, body.items)
    return unwrap(result)


@router.patch(
    "/order/{order_id}",
    response_model=OrderRead,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def update_order_status(
    order_id: int,
    body: OrderStatusUpdateRequest,
    services: ServiceContainer = Depends(get_services),
) -> OrderRead:
    result = await services.orders.update_order_status(order_id, body.status)
    return unwrap(result)


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application with its own engine and service objects.

    Args:
        settings: Configuration to use (defaults to environment settings)
    """
    settings = settings or get_settings()
    setup_logging(settings)

    engine = create_engine_from_settings(settings)
    session_factory = create_session_factory(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("=" * 60)
        logger.info(f"Starting {settings.app_name}")
        logger.info(f"   Version: {settings.app_version}")
        logger.info(f"   Environment: {settings.env_mode.value}")
        logger.info(f"   Debug: {settings.debug}")
        logger.info("=" * 60)

        await init_db(engine)

        yield  # Application runs

        logger.info("Shutting down...")
        await engine.dispose()
        logger.info("Cleanup complete")

    app = FastAPI(
        title=settings.app_name,
        description="Restaurant ordering backend: customers, menu, and order lifecycle.",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.services = build_services(session_factory, settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        client = request.client.host if request.client else "-"
        logger.info(f"{request.method} {request.url.path} - IP: {client}")

        response = await call_next(request)

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"{request.method} {request.url.path} - {response.status_code} - {elapsed_ms:.0f}ms"
        )
        return response

    @app.exception_handler(ServiceFailure)
    async def service_failure_handler(request: Request, exc: ServiceFailure) -> JSONResponse:
        result = exc.result
        return JSONResponse(
            status_code=status_for(result.error_kind),
            content=ErrorResponse(
                error=result.error_message,
                detail=result.error_detail if settings.debug else None,
            ).model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorResponse(
                error="Invalid request",
                detail=describe_validation_error(exc),
            ).model_dump(),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all exception handler."""
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                error="Internal Server Error",
                detail=str(exc) if settings.debug else "An unexpected error occurred",
            ).model_dump(),
        )

    app.include_router(router)
    return app


def run() -> None:
    """Serve the application with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "restaurant_orders.main:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
    )


if __name__ == "__main__":
    run()
