# src/turbodash_kpi/domain/enums/kpi.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""KPI engine enums.

Purpose:
    Define the enumerations shared by the metric registry, the computation
    pipeline, and the rollup service.

Layer:
    domain/enums

Notes:
    - Pure domain types:
        * No logging.
        * No HTTP or transport concerns.
        * No persistence or gateways.
"""

from __future__ import annotations

from enum import Enum


class MetricKind(str, Enum):
    """Whether a metric is aggregated from raw data or computed from a formula."""

    BASE = "base"
    DERIVED = "derived"


class MetricUnit(str, Enum):
    """Display and rollup unit of a metric."""

    BRL = "BRL"
    COUNT = "COUNT"
    PCT = "PCT"


class PeriodType(str, Enum):
    """How monthly values combine into a quarter or YTD value."""

    MONTH_END = "month_end"
    MONTH_SUM = "month_sum"


class MetricDirection(str, Enum):
    """Which direction of change is desirable for a metric."""

    UP = "up"
    DOWN = "down"
    FLAT = "flat"


class ActualSource(str, Enum):
    """Origin of a persisted metric actual."""

    COMPUTED = "computed"
    OVERRIDDEN = "overridden"


class RecomputeErrorKind(str, Enum):
    """Category of a per-metric issue collected during a recompute run."""

    CONFIGURATION = "configuration"
    AGGREGATION = "aggregation"
    DEPENDENCY = "dependency"
    PERSISTENCE = "persistence"


class SignalStatus(str, Enum):
    """Traffic-light status of an actual compared to its plan."""

    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"
    GRAY = "gray"


__all__ = [
    "ActualSource",
    "MetricDirection",
    "MetricKind",
    "MetricUnit",
    "PeriodType",
    "RecomputeErrorKind",
    "SignalStatus",
]
