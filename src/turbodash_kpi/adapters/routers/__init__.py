# src/turbodash_kpi/adapters/routers/__init__.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Routers Package Export (Adapters Layer).

Purpose:
    Provide stable, explicit exports for the router instances the FastAPI
    application mounts during startup.

Layer:
    adapters/routers
"""

from __future__ import annotations

from .admin_router import router as admin_router
from .kpi_router import router as kpi_router
from .metrics_router import router as metrics_router

__all__ = ["admin_router", "kpi_router", "metrics_router"]
