"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from burnswap import __version__
from burnswap.config import get_settings
from burnswap.engine.bootstrap import EngineServices, bootstrap_from_settings, build_engine
from burnswap.errors import ConfigurationError
from burnswap.ledger.database import close_db, get_db, get_session_factory, init_db

logger = logging.getLogger(__name__)

# Environments where mutating endpoints may run without a relayer token
OPEN_ENVIRONMENTS = ("development", "test")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, initialize the exchange from settings, wire the engine."""
    await init_db()
    async with get_db() as session:
        await bootstrap_from_settings(session)
    if getattr(app.state, "services", None) is None:
        app.state.services = build_engine(get_session_factory())
    logger.info("Exchange engine ready")
    yield
    await close_db()


def create_app(services: Optional[EngineServices] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        services: Pre-built engine services (tests); built from settings otherwise

    Raises:
        ConfigurationError: ADMIN_TOKEN is empty outside development and test
    """
    settings = get_settings()
    if not settings.admin_token and settings.environment.lower() not in OPEN_ENVIRONMENTS:
        raise ConfigurationError(
            f"ADMIN_TOKEN must be set when ENVIRONMENT is {settings.environment!r}"
        )

    app = FastAPI(
        title="burnswap API",
        description="Burn-and-exchange custody engine",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from burnswap.api.routers import admin, exchange, health

    app.include_router(health.router, tags=["Health"])
    app.include_router(exchange.router, tags=["Exchange"])
    app.include_router(admin.router, tags=["Admin"])

    return app
