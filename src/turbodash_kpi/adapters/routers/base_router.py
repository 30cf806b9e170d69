# src/turbodash_kpi/adapters/routers/base_router.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""
Base Router (Adapters Layer)

Purpose:
    Provide a canonical APIRouter wrapper and shared utilities for KPI HTTP endpoints:
      - Versioned routing with stable prefixes (e.g., "/v1/kpi").
      - Standard error response mapping using ErrorEnvelope.
      - Translation of domain exceptions into ErrorEnvelope JSON responses.

Layer:
    adapters/routers
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from turbodash_kpi.adapters.schemas.http.envelopes import ErrorEnvelope, ErrorObject
from turbodash_kpi.domain.exceptions.base import DomainError
from turbodash_kpi.domain.exceptions.kpi import (
    ConfigurationError,
    DuplicateMetricError,
    DuplicateStatusError,
    InvalidOverrideError,
    MetricInUseError,
    MetricNotFound,
    OverrideNotFound,
    StatusMappingNotFound,
)
from turbodash_kpi.infrastructure.logging.logger import get_json_logger

_LOGGER = get_json_logger(__name__)

# Tag type accepted by FastAPI for APIRouter.tags
TagType = str | Enum

_STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (MetricNotFound, status.HTTP_404_NOT_FOUND),
    (OverrideNotFound, status.HTTP_404_NOT_FOUND),
    (StatusMappingNotFound, status.HTTP_404_NOT_FOUND),
    (DuplicateMetricError, status.HTTP_409_CONFLICT),
    (DuplicateStatusError, status.HTTP_409_CONFLICT),
    (MetricInUseError, status.HTTP_409_CONFLICT),
    (InvalidOverrideError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ConfigurationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
)


def trace_id_of(request: Request) -> str | None:
    """Return the correlation id assigned by RequestIdMiddleware, if any."""
    return getattr(request.state, "request_id", None)


def error_response(
    *,
    http_status: int,
    code: str,
    message: str,
    trace_id: str | None,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Construct a JSONResponse carrying an ErrorEnvelope."""
    envelope = ErrorEnvelope(
        error=ErrorObject(
            code=code,
            http_status=http_status,
            message=message,
            details=jsonable_encoder(details or {}),
            trace_id=trace_id,
        ),
    )
    return JSONResponse(status_code=http_status, content=envelope.model_dump(mode="json"))


def domain_error_response(exc: DomainError, *, trace_id: str | None) -> JSONResponse:
    """Map a domain exception to its HTTP status and ErrorEnvelope body."""
    http_status = next(
        (code for error_type, code in _STATUS_BY_ERROR if isinstance(exc, error_type)),
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    return error_response(
        http_status=http_status,
        code=exc.code,
        message=exc.message,
        trace_id=trace_id,
        details=exc.details,
    )


def value_error_response(exc: ValueError, *, trace_id: str | None) -> JSONResponse:
    """Map an input ValueError (e.g. year out of range) to a 422 envelope."""
    return error_response(
        http_status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        code="VALIDATION_ERROR",
        message=str(exc),
        trace_id=trace_id,
    )


class BaseRouter(APIRouter):
    """Canonical router wrapper for KPI HTTP endpoints.

    Args:
        version: API version segment (e.g., "v1").
        resource: Resource segment (e.g., "kpi").
        prefix: Optional explicit prefix (overrides version/resource).
        tags: Default tags applied to all routes mounted on this router.
        dependencies: Optional global dependencies for all routes.
        **kwargs: Additional APIRouter kwargs.
    """

    def __init__(
        self,
        *,
        version: str,
        resource: str,
        prefix: str | None = None,
        tags: Sequence[TagType] | None = None,
        dependencies: Sequence[Any] | None = None,
        **kwargs: Any,
    ) -> None:
        computed_prefix = prefix or f"/{version}/{resource}"
        super().__init__(
            prefix=computed_prefix,
            tags=list(tags) if tags is not None else None,
            dependencies=list(dependencies) if dependencies is not None else None,
            **kwargs,
        )
        _LOGGER.debug(
            "router_initialized",
            extra={"prefix": computed_prefix, "tags": [str(t) for t in tags or []]},
        )

    @staticmethod
    def std_error_responses() -> dict[int | str, dict[str, Any]]:
        """Return the canonical error response mapping for endpoints.

        Use in routes via:

            responses=BaseRouter.std_error_responses()
        """
        return {
            404: {"model": ErrorEnvelope, "description": "Not found."},
            409: {"model": ErrorEnvelope, "description": "Conflict."},
            422: {"model": ErrorEnvelope, "description": "Unprocessable content."},
            500: {"model": ErrorEnvelope, "description": "Internal server error."},
        }


__all__ = [
    "BaseRouter",
    "domain_error_response",
    "error_response",
    "trace_id_of",
    "value_error_response",
]
