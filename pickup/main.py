"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pickup.api.dependencies import get_services
from pickup.config import get_settings
from pickup.errors import (
    AlreadyReplaced,
    InvalidContact,
    InvalidTransition,
    ItemNotFound,
    OrderNotFound,
    ProductNotFound,
)
from pickup.state.manager import get_state_manager
from pickup.utils.logging import get_logger, setup_logging

# Setup logging first
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    # Startup
    logger.info("application_starting")

    state_manager = await get_state_manager()
    services = await get_services()
    logger.info("state_manager_initialized")

    if settings.sweeper_enabled:
        await services.sweeper.start()

    yield

    # Shutdown
    logger.info("application_shutting_down")
    await services.sweeper.stop()
    await state_manager.disconnect()


# Create FastAPI app
app = FastAPI(
    title="Pickup Order Service",
    description="Order lifecycle, pickup timer and customer messaging for in-store pickup",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail})


@app.exception_handler(OrderNotFound)
async def order_not_found_handler(request: Request, exc: OrderNotFound) -> JSONResponse:
    return _error_response(status.HTTP_404_NOT_FOUND, "Order not found")


@app.exception_handler(InvalidTransition)
async def invalid_transition_handler(request: Request, exc: InvalidTransition) -> JSONResponse:
    return _error_response(status.HTTP_409_CONFLICT, str(exc))


@app.exception_handler(ItemNotFound)
@app.exception_handler(ProductNotFound)
async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    return _error_response(status.HTTP_404_NOT_FOUND, str(exc))


@app.exception_handler(AlreadyReplaced)
async def already_replaced_handler(request: Request, exc: AlreadyReplaced) -> JSONResponse:
    return _error_response(status.HTTP_409_CONFLICT, str(exc))


@app.exception_handler(InvalidContact)
async def invalid_contact_handler(request: Request, exc: InvalidContact) -> JSONResponse:
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc))


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "pickup-orders"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "message": "Pickup Order Service API",
        "docs": "/docs",
        "health": "/health",
    }


# Import and include routers
from pickup.api.routes import router
from pickup.api.webhooks import router as webhooks_router

app.include_router(router, prefix="/api/v1", tags=["orders"])
app.include_router(webhooks_router, prefix="/api/v1", tags=["webhooks"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pickup.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.environment == "development",
    )
