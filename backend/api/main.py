"""
SupplyLedger API — FastAPI Application Entry Point
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.requests import Request

from core.config import get_settings
from core.errors import RegistryError

settings = get_settings()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("SupplyLedger API starting up", version=settings.app_version)
    if settings.auto_create_schema:
        from db.models import create_registry_schema
        from db.session import engine

        async with engine.begin() as conn:
            await conn.run_sync(create_registry_schema)
    yield
    logger.info("SupplyLedger API shutting down")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Supply-chain registry with supplier scoring and inventory optimization",
    lifespan=lifespan,
)


@app.exception_handler(RegistryError)
async def registry_error_handler(request: Request, exc: RegistryError):
    """Map registry result codes to JSON error responses."""
    logger.info("api.registry_error", path=request.url.path, code=exc.code, detail=exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.detail},
    )


# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Import and register routers
from api.v1.routers import (
    forecasts,
    optimization,
    products,
    shipments,
    suppliers,
)

app.include_router(suppliers.router)
app.include_router(products.router)
app.include_router(shipments.router)
app.include_router(forecasts.router)
app.include_router(optimization.router)


@app.get("/health")
async def health_check():
    """Health check endpoint for load balancers."""
    return {"status": "healthy", "version": settings.app_version}
