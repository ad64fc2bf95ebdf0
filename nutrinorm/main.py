"""FastAPI application entrypoint — lifespan, routers, middleware."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from nutrinorm import __version__
from nutrinorm.config import get_settings
from nutrinorm.database import engine
from nutrinorm.middleware.logging import RequestLoggingMiddleware, configure_structured_logging
from nutrinorm.routes import farms, fields, norms
from nutrinorm.services.norms_service import load_configured_store

logger = structlog.get_logger("nutrinorm")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup / shutdown lifecycle.

    Startup:
      1. Initialize structured logging
      2. Check database connectivity
      3. Load and validate the regulation tables

    Shutdown:
      1. Dispose SQLAlchemy engine
    """
    settings = get_settings()
    configure_structured_logging(settings)
    logger.info(
        "nutrinorm_starting",
        log_level=settings.log_level,
        regulation_years=settings.regulation_years or "all",
    )

    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))

        store = load_configured_store()
        app.state.regulation_store = store
        logger.info("regulation_tables_loaded", years=list(store.years))
    except Exception as exc:
        logger.exception("startup_failure", error=str(exc))
        raise

    yield

    logger.info("nutrinorm_shutting_down")
    await engine.dispose()


app = FastAPI(
    title="NutriNorm API",
    description=(
        "Nutrient dose and usage-norm calculations for farms — working "
        "coefficients, nitrogen/phosphate/manure ceilings and how far each "
        "ceiling has been filled, per field and per farm."
    ),
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS ────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)


# ── Health check ────────────────────────────────────────────────────────────
@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Liveness probe."""
    return {
        "status": "ok",
        "service": "nutrinorm",
        "version": __version__,
    }


# ── Router registration ────────────────────────────────────────────────────
app.include_router(farms.router, prefix="/api/v1")
app.include_router(fields.router, prefix="/api/v1")
app.include_router(norms.router, prefix="/api/v1")
