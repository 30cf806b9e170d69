# src/turbodash_kpi/main.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""
Application Entry (Adapters Bootstrap)

Synopsis:
    FastAPI bootstrap that wires middleware, exception handlers, and the KPI
    routers. Provides an application factory (`create_app`) and a module-level
    eager app (`app`) for ASGI servers.

Design:
    • Bootstrap only (no business logic): routers + middleware + handlers.
    • Lifespan initializes the database engine and disposes it on shutdown.
    • Root JSON logging configured at import time.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.responses import Response as StarletteResponse

from turbodash_kpi.adapters.routers import admin_router, kpi_router, metrics_router
from turbodash_kpi.config.settings import Settings, get_settings
from turbodash_kpi.domain.exceptions.base import DomainError
from turbodash_kpi.infrastructure.database.session import (
    dispose_engine,
    init_engine_and_sessionmaker,
)
from turbodash_kpi.infrastructure.http.errors import (
    handle_domain_error,
    handle_http_exception,
    handle_unhandled_exception,
    handle_validation_error,
)
from turbodash_kpi.infrastructure.logging.logger import (
    configure_root_logging,
    get_json_logger,
)
from turbodash_kpi.infrastructure.middleware.request_id import RequestIdMiddleware

# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------
configure_root_logging()
logger = get_json_logger(__name__)


# -----------------------------------------------------------------------------
# Stable generator
# -----------------------------------------------------------------------------
def _stable_operation_id(route: APIRoute) -> str:
    """Deterministic operationId, e.g. ``post__v1_kpi_recompute``."""
    methods = ",".join(sorted(route.methods or []))
    path = route.path_format.replace("/", "_").replace("{", "").replace("}", "")
    return f"{methods.lower()}_{path.lower()}"


# -----------------------------------------------------------------------------
# Lifespan
# -----------------------------------------------------------------------------
@asynccontextmanager
async def runtime_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize the database engine on startup and dispose it on shutdown."""
    settings = get_settings()
    if settings.log_level:
        configure_root_logging(settings.log_level)
    init_engine_and_sessionmaker(settings)
    app.state.settings = settings
    try:
        yield
    finally:
        await dispose_engine()
        logger.info("service_shutdown", extra={"service": settings.service_name})


# -----------------------------------------------------------------------------
# Middleware & CORS
# -----------------------------------------------------------------------------
def _attach_cors(app: FastAPI, settings: Settings) -> None:
    """Attach CORS middleware when origins are configured."""
    if not settings.cors_allow_origins:
        return
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials="*" not in settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _patch_exception_handlers(app: FastAPI) -> None:
    """Patch default exception handlers with structured equivalents."""

    async def _http_error_handler(request: Request, exc: Exception) -> StarletteResponse:
        if not isinstance(exc, HTTPException):
            raise exc
        return await handle_http_exception(request, exc)

    async def _validation_error_handler(request: Request, exc: Exception) -> StarletteResponse:
        if not isinstance(exc, RequestValidationError):
            raise exc
        return await handle_validation_error(request, exc)

    async def _domain_error_handler(request: Request, exc: Exception) -> StarletteResponse:
        if not isinstance(exc, DomainError):
            raise exc
        return await handle_domain_error(request, exc)

    async def _unhandled_error_handler(request: Request, exc: Exception) -> StarletteResponse:
        return await handle_unhandled_exception(request, exc)

    app.add_exception_handler(HTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(DomainError, _domain_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)


# -----------------------------------------------------------------------------
# App factory
# -----------------------------------------------------------------------------
def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Fully configured application instance.
    """
    settings: Settings = get_settings()
    service_version = settings.service_version or "0.0.0"

    app = FastAPI(
        title="Turbodash KPI Engine",
        version=service_version,
        description="Monthly KPI computation over contracts and ledger data.",
        lifespan=runtime_lifespan,
        generate_unique_id_function=_stable_operation_id,
    )

    _patch_exception_handlers(app)
    _attach_cors(app, settings)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(kpi_router)
    app.include_router(admin_router)
    app.include_router(metrics_router)

    @app.get("/healthz")
    async def healthz() -> JSONResponse:
        """Liveness check."""
        return JSONResponse(
            {"status": "ok", "service": settings.service_name, "version": service_version}
        )

    logger.info(
        "service_startup",
        extra={
            "service": settings.service_name,
            "env": settings.environment.value,
            "version": service_version,
            "status": "starting",
        },
    )
    return app


# Eager app for ASGI servers (uvicorn turbodash_kpi.main:app).
app: FastAPI = create_app()


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run(
        "turbodash_kpi.main:create_app",
        factory=True,
        host="127.0.0.1",
        port=int(os.getenv("PORT", "8080")),
        reload=True,
    )
