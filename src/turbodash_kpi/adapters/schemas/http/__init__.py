# src/turbodash_kpi/adapters/schemas/http/__init__.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""HTTP Schemas package (Adapters Layer).

Purpose:
    Public, adapter-facing HTTP schema surface for the KPI engine.

    This module re-exports the canonical envelopes used by routers and
    presenters. It intentionally does NOT expose BaseHTTPSchema to keep the
    base class internal to this package.

Layer:
    adapters/schemas/http
"""

from __future__ import annotations

from turbodash_kpi.adapters.schemas.http.envelopes import (
    ErrorEnvelope,
    ErrorObject,
    SuccessEnvelope,
)

__all__ = [
    "ErrorEnvelope",
    "ErrorObject",
    "SuccessEnvelope",
]
