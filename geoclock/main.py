"""
GeoClock — application entry point.

This is the only module that assembles the app. The clock resolver lives
in `services/`; HTTP surfaces live in `api/`.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from geoclock.api.v1.api import api_router
from geoclock.core.config import settings
from geoclock.core.exceptions import register_exception_handlers
from geoclock.core.rate_limit import limiter
from geoclock.db.base import Base
from geoclock.db.seed import seed_defaults
from geoclock.db.session import async_session_factory, engine

# Ensure all models are imported so metadata.create_all can see them
from geoclock.models.location import Location  # noqa: F401
from geoclock.models.shift import Shift, ShiftCorrection  # noqa: F401
from geoclock.models.user import User  # noqa: F401
from geoclock.models.worker import Worker  # noqa: F401

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    async with async_session_factory() as session:
        await seed_defaults(session)

    logger.info(
        "%s v%s started (geofence policy %s, tolerance %.0fm)",
        settings.PROJECT_NAME,
        settings.VERSION,
        settings.GEOFENCE_POLICY.value,
        settings.GEOFENCE_TOLERANCE_METERS,
    )
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="GPS geofenced time clock",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # slowapi looks the limiter up on app.state
    application.state.limiter = limiter

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers (no stack traces in responses)
    register_exception_handlers(application)

    application.include_router(api_router, prefix=settings.API_V1_PREFIX)
    return application


app = create_app()
