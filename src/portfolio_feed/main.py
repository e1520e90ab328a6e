"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from portfolio_feed.app_context import get_app_context
from portfolio_feed.config.logging_config import setup_logging
from portfolio_feed.config.settings import get_settings
from portfolio_feed.api.routers import portfolio_router
from portfolio_feed.core.exceptions import AppError, HoldingsSourceError


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    setup_logging()
    context = get_app_context()
    await context.broadcaster.start()
    yield
    # Shutdown
    await context.aclose()


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Live sector rollups for a fixed portfolio",
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(portfolio_router)


@app.exception_handler(HoldingsSourceError)
async def holdings_source_error_handler(request: Request, exc: HoldingsSourceError) -> JSONResponse:
    """Holdings source unreadable: same body the stream emits for a failed cycle."""
    return JSONResponse(
        status_code=503,
        content={"success": False, "error": exc.message},
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Global handler for application errors."""
    return JSONResponse(
        status_code=400,
        content={"error": exc.code, "message": exc.message},
    )


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
