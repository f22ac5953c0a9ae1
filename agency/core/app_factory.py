from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) to
improve testability and separation of concerns compared to a monolithic main.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from agency.api.routes import (
    admin_router,
    blog_router,
    contacts_admin_router,
    contacts_router,
    customers_router,
    health_router,
    services_router,
)
from agency.core.config import Settings, settings as default_settings
from agency.core.exception_handlers import setup_exception_handlers
from agency.core.logging import configure_logging
from agency.core.middleware import request_id_middleware
from agency.core.openapi import apply_openapi_customizations
from agency.core.rate_limit import build_rate_limiter
from agency.db.session import create_engine_from_settings, create_session_maker, init_models

logger = logging.getLogger(__name__)


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        app_settings: Settings to build the app with; the process-wide
            settings are used when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    cfg = app_settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = create_engine_from_settings(cfg.database)
        if cfg.database.create_tables:
            await init_models(engine)
        app.state.engine = engine
        app.state.session_maker = create_session_maker(engine)
        logger.info("app.startup", extra={"app_env": cfg.app_env})
        try:
            yield
        finally:
            await engine.dispose()
            logger.info("app.shutdown")

    app = FastAPI(
        title="Agency Site API",
        description=(
            "API for the agency website: customer sign-up and contact forms, "
            "services catalog, blog and the admin dashboard. Administrative "
            "endpoints require X-API-Key; the public customer endpoints are "
            "rate limited per client."
        ),
        version="0.1.0",
        lifespan=lifespan,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    app.state.settings = cfg
    # One limiter per process, shared by every rate limited route
    app.state.rate_limiter = build_rate_limiter(cfg.app)

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(customers_router, prefix="/v1")
    app.include_router(contacts_router, prefix="/v1")
    app.include_router(contacts_admin_router, prefix="/v1")
    app.include_router(services_router, prefix="/v1")
    app.include_router(blog_router, prefix="/v1")
    app.include_router(admin_router, prefix="/v1")
    app.include_router(health_router)

    # OpenAPI customizations (security scheme, tags, per-operation security)
    apply_openapi_customizations(app)

    return app
