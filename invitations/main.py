"""Invitations API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map InvitationsError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database, cache and InvitationRuntime built once in the lifespan, torn down after it
    - Components and hooks handed to create_app() are live before the registry is frozen

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Runtime on app.state: routes reach it through api/dependencies.py, never via globals
    - create_app() factory: embedding services register their components and hooks
      up front; the module-level `app` is the plain default
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from invitations.api.error_handlers import register_error_handlers
from invitations.api.routes import health, invitations, requests, users
from invitations.config import get_settings
from invitations.core.component_registry import ComponentRegistry
from invitations.core.invitation_hooks import InvitationHooks
from invitations.infrastructure.cache import build_cache
from invitations.infrastructure.database import init_db
from invitations.infrastructure.observability import setup_logging
from invitations.services.runtime import InvitationRuntime

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.create_tables_on_startup:
        await manager.create_all()

    cache = build_cache(
        settings.cache_backend,
        redis_url=settings.redis_url,
        ttl_seconds=settings.cache_ttl_seconds,
        prefix=settings.cache_key_prefix,
    )
    registry: ComponentRegistry = app.state.component_registry
    for component_name in settings.active_components:
        registry.activate(component_name)
    registry.freeze()
    app.state.runtime = InvitationRuntime(
        cache=cache, hooks=app.state.invitation_hooks, registry=registry,
    )
    logger.info(
        f"Invitations API started (cache: {settings.cache_backend.value}, "
        f"components: {registry.registered_components()})",
    )
    yield
    logger.info("Invitations API shutting down")
    await cache.close()
    await manager.dispose()


def create_app(
    registry: ComponentRegistry | None = None,
    hooks: InvitationHooks | None = None,
) -> FastAPI:
    """Build the API around a caller-populated registry and hook set."""
    app = FastAPI(
        title="Invitations API", version="0.1.0", lifespan=lifespan,
    )
    app.state.component_registry = registry if registry is not None else ComponentRegistry()
    app.state.invitation_hooks = hooks if hooks is not None else InvitationHooks()

    settings = get_settings()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(invitations.router)
    app.include_router(requests.router)
    app.include_router(users.router)

    register_error_handlers(app)
    return app


app = create_app()
