# src/turbodash_kpi/adapters/routers/metrics_router.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Prometheus scrape endpoint (`/metrics`).

This router exposes a text-format Prometheus endpoint and *warms* the lazily
created KPI collectors so that their series appear on the very first scrape
(cold start), before any recompute has run.

Layer:
    adapters/routers
"""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from turbodash_kpi.infrastructure.observability.metrics_kpi import (
    get_kpi_overrides_applied_total,
    get_kpi_recompute_duration_seconds,
    get_kpi_recompute_issues_total,
    get_kpi_recompute_runs_total,
)

router = APIRouter()


def _warm_collectors() -> None:
    get_kpi_recompute_duration_seconds()
    get_kpi_recompute_runs_total()
    get_kpi_recompute_issues_total()
    get_kpi_overrides_applied_total()


@router.get("/metrics", include_in_schema=False)
async def metrics_endpoint() -> Response:
    """Expose Prometheus metrics in the text exposition format."""
    _warm_collectors()
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


__all__ = ["router"]
