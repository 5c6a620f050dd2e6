"""
Profile Config Store - Main Application Entry Point

- FastAPI app with lifespan handler
- ``uvicorn config_store.main:app`` serves the store over HTTP

Patterns Applied:
- Lifespan context manager
- One-time configure_logging() at startup
- Application factory so tests can inject an in-memory store

Anti-Patterns Avoided:
- Deprecated @app.on_event - using modern lifespan pattern
- structlog.configure() per request - one-time at module load
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config_store.api.health import HealthService
from config_store.api.health import router as health_router
from config_store.api.overrides import overrides_router
from config_store.api.profiles import profiles_router
from config_store.core.config import Settings, get_settings
from config_store.core.logging import configure_logging, get_logger
from config_store.core.tracing import configure_tracing
from config_store.overrides.resolver import OverrideResolver
from config_store.store.profiles import ProfileStore

settings = get_settings()

configure_logging(
    log_level=settings.log_level,
    json_output=settings.log_json,
)

logger = get_logger(__name__)


# =============================================================================
# Lifespan Context Manager
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: migrate the stored document before serving."""
    app_settings: Settings = app.state.settings

    logger.info(
        "startup",
        service=app_settings.service_name,
        version=app_settings.version,
        environment=app_settings.environment,
        storage_backend=app_settings.storage_backend,
    )

    if app_settings.tracing_enabled:
        configure_tracing(
            service_name=app_settings.service_name,
            console_export=app_settings.tracing_console_export,
            service_version=app_settings.version,
        )
        logger.info("tracing_configured")

    store: ProfileStore = app.state.profile_store
    await store.initialize()
    app.state.health.mark_store_ready(store.key)
    logger.info("store_initialized", key=store.key)

    yield

    logger.info("shutdown", service=app_settings.service_name)
    app.state.health.mark_store_stopped()


# =============================================================================
# Application Factory
# =============================================================================


def create_app(
    store: ProfileStore | None = None,
    resolver: OverrideResolver | None = None,
    app_settings: Settings | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        store: Profile store to serve; built from settings when omitted
        resolver: Override resolver; a fresh one when omitted
        app_settings: Settings; read from the environment when omitted

    Returns:
        Configured FastAPI application
    """
    app_settings = app_settings or settings

    application = FastAPI(
        title="Profile-Config-Store",
        description="Persisted multi-profile configuration store with per-profile overrides",
        version=app_settings.version,
        docs_url="/docs" if app_settings.environment != "production" else None,
        redoc_url="/redoc" if app_settings.environment != "production" else None,
        lifespan=lifespan,
    )

    application.state.settings = app_settings
    application.state.health = HealthService(version=app_settings.version)
    application.state.profile_store = store or ProfileStore.from_settings(app_settings)
    application.state.override_resolver = resolver or OverrideResolver()

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if app_settings.environment == "development" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(health_router)
    application.include_router(profiles_router)
    application.include_router(overrides_router)

    @application.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        """Root endpoint pointing at the docs."""
        return {
            "service": app_settings.service_name,
            "version": app_settings.version,
            "docs": "/docs",
        }

    return application


app = create_app()
