# src/turbodash_kpi/adapters/schemas/http/envelopes.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""HTTP Envelopes (Adapters Layer).

Purpose:
    Canonical transport-facing HTTP envelopes:
      - ErrorEnvelope
      - SuccessEnvelope[T]
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from turbodash_kpi.adapters.schemas.http.base import BaseHTTPSchema

__all__ = [
    "ErrorEnvelope",
    "ErrorObject",
    "SuccessEnvelope",
]


# ---------------------------------------------------------------------------
# Error Object
# ---------------------------------------------------------------------------


class ErrorObject(BaseModel):
    """Structured error object inside ErrorEnvelope.

    Error codes are UPPER_SNAKE_CASE and stable across releases. KPI engine
    errors use the ``KPI_`` prefix (e.g. ``KPI_METRIC_NOT_FOUND``).
    """

    model_config = ConfigDict(
        title="ErrorObject",
        extra="forbid",
        json_schema_extra={
            "examples": [
                {
                    "code": "KPI_METRIC_NOT_FOUND",
                    "http_status": 404,
                    "message": "Metric 'mrr_active' not found.",
                    "details": {"metric_key": "mrr_active"},
                    "trace_id": "req-123",
                }
            ]
        },
    )

    code: str = Field(..., description="Stable machine-readable error code.")
    http_status: int = Field(..., description="Associated HTTP status.")
    message: str = Field(..., description="Human-readable error description.")
    details: dict[str, Any] | None = Field(
        default=None,
        description="Optional structured details safe for clients.",
    )
    trace_id: str | None = Field(
        default=None,
        description="Request correlation identifier (X-Request-ID).",
    )


# ---------------------------------------------------------------------------
# Error Envelope
# ---------------------------------------------------------------------------


class ErrorEnvelope(BaseHTTPSchema):
    r"""Canonical error envelope: {"error": ErrorObject}."""

    model_config = ConfigDict(title="ErrorEnvelope")

    error: ErrorObject = Field(..., description="Structured error details.")


# ---------------------------------------------------------------------------
# Success Envelope
# ---------------------------------------------------------------------------


T = TypeVar("T")


class SuccessEnvelope(BaseHTTPSchema, Generic[T]):
    r"""Success envelope for responses: {"data": T}."""

    model_config = ConfigDict(title="SuccessEnvelope")

    data: T = Field(..., description="Returned resource or value.")
