"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from rewards_api.api.v1 import frontend
from rewards_api.api.v1.router import api_router
from rewards_api.core.config import settings
from rewards_api.core.errors import AppError, error_response
from rewards_api.core.logging_config import (
    generate_request_id,
    request_id_var,
    setup_logging,
)
from rewards_api.core.rate_limit import limiter
from rewards_api.integrations.shopify.webhooks import APP_UNINSTALLED, webhook_registry
from rewards_api.services.auth_service import uninstall_handler
from rewards_api.services.session_store import build_session_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    setup_logging(debug=settings.debug)
    logger.info("Starting %s v%s", settings.project_name, settings.version)
    logger.info("Environment: %s", settings.environment)
    logger.info("Ready on http://localhost:%s", settings.port)
    yield
    logger.info("Shutting down...")
    await app.state.session_store.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    # Sentry/GlitchTip init (before middleware)
    if settings.sentry_dsn:
        import sentry_sdk

        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            traces_sample_rate=0.1,
        )

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        lifespan=lifespan,
    )

    app.state.session_store = build_session_store(settings)

    # Uninstalls must be honoured even for shops authorised before a restart
    webhook_registry.add_handler(APP_UNINSTALLED, uninstall_handler(app.state.session_store))

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]
    app.add_middleware(SlowAPIMiddleware)

    # Request ID middleware
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next: Any) -> Response:
        rid = request.headers.get("X-Request-ID") or generate_request_id()
        request_id_var.set(rid)
        response: Response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response

    app.include_router(api_router)
    # Catch-all must come after every API route
    app.include_router(frontend.router)

    @app.exception_handler(AppError)
    async def app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
        """Render application errors as ErrorResponse bodies."""
        if exc.status_code >= 500:
            logger.error("%s: %s", exc.code, exc)
        else:
            logger.info("%s: %s", exc.code, exc)
        return error_response(exc)

    @app.exception_handler(Exception)
    async def global_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
        """Handle unhandled exceptions with proper JSON response."""
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    return app


app = create_app()
