# src/turbodash_kpi/infrastructure/observability/metrics_kpi.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""KPI engine metrics.

Purpose:
    Provide Prometheus metrics for the recompute pipeline:
      * Recompute duration histogram.
      * Recompute runs by outcome.
      * Recompute issues by kind.
      * Overrides applied.

Design:
    - Functions return lazily created singleton metric instances registered in
      the default ``prometheus_client`` registry, which ``/metrics`` exposes.
"""

from __future__ import annotations

from typing import Any

from prometheus_client import Counter, Histogram

_kpi_recompute_duration_seconds: Any | None = None
_kpi_recompute_runs_total: Any | None = None
_kpi_recompute_issues_total: Any | None = None
_kpi_overrides_applied_total: Any | None = None


def get_kpi_recompute_duration_seconds() -> Any:
    """Return (and lazily create) the recompute duration histogram."""
    global _kpi_recompute_duration_seconds
    if _kpi_recompute_duration_seconds is None:
        _kpi_recompute_duration_seconds = Histogram(
            "kpi_recompute_duration_seconds",
            "Duration of full-year KPI recompute runs in seconds.",
            ["outcome"],
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
        )
    return _kpi_recompute_duration_seconds


def get_kpi_recompute_runs_total() -> Any:
    """Return (and lazily create) the recompute runs counter."""
    global _kpi_recompute_runs_total
    if _kpi_recompute_runs_total is None:
        _kpi_recompute_runs_total = Counter(
            "kpi_recompute_runs_total",
            "Total KPI recompute runs by outcome (success, partial, failed).",
            ["outcome"],
        )
    return _kpi_recompute_runs_total


def get_kpi_recompute_issues_total() -> Any:
    """Return (and lazily create) the recompute issues counter."""
    global _kpi_recompute_issues_total
    if _kpi_recompute_issues_total is None:
        _kpi_recompute_issues_total = Counter(
            "kpi_recompute_issues_total",
            "Total per-metric issues reported by KPI recompute runs.",
            ["kind"],
        )
    return _kpi_recompute_issues_total


def get_kpi_overrides_applied_total() -> Any:
    """Return (and lazily create) the overrides-applied counter."""
    global _kpi_overrides_applied_total
    if _kpi_overrides_applied_total is None:
        _kpi_overrides_applied_total = Counter(
            "kpi_overrides_applied_total",
            "Total (metric, month) pairs whose actual came from an override.",
        )
    return _kpi_overrides_applied_total


__all__ = [
    "get_kpi_overrides_applied_total",
    "get_kpi_recompute_duration_seconds",
    "get_kpi_recompute_issues_total",
    "get_kpi_recompute_runs_total",
]
