# src/turbodash_kpi/domain/entities/recompute.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Recompute run outcome entities.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass

from turbodash_kpi.domain.enums.kpi import RecomputeErrorKind
from turbodash_kpi.domain.exceptions.kpi import (
    AggregationError,
    ConfigurationError,
    DependencyError,
    KpiError,
    PersistenceError,
)

__all__ = ["RecomputeIssue", "RecomputeResult", "issue_from_error"]

_KIND_BY_ERROR: tuple[tuple[type[KpiError], RecomputeErrorKind], ...] = (
    (ConfigurationError, RecomputeErrorKind.CONFIGURATION),
    (AggregationError, RecomputeErrorKind.AGGREGATION),
    (DependencyError, RecomputeErrorKind.DEPENDENCY),
    (PersistenceError, RecomputeErrorKind.PERSISTENCE),
)


@dataclass(frozen=True, slots=True)
class RecomputeIssue:
    """Single error collected during a recompute run.

    Attributes:
        kind: Error category.
        metric_key: Affected metric, or None for run-level errors.
        month: Affected month (1..12), or None for run-level errors.
        message: Human-readable description.
    """

    kind: RecomputeErrorKind
    metric_key: str | None
    month: int | None
    message: str

    def sort_key(self) -> tuple[int, str, int, str]:
        """Deterministic ordering: by month, metric, kind."""
        return (
            self.month if self.month is not None else 99,
            self.metric_key or "",
            list(RecomputeErrorKind).index(self.kind),
            self.message,
        )


def issue_from_error(
    error: KpiError, *, metric_key: str | None, month: int | None
) -> RecomputeIssue:
    """Convert a pipeline exception into a RecomputeIssue."""
    for error_type, kind in _KIND_BY_ERROR:
        if isinstance(error, error_type):
            return RecomputeIssue(kind=kind, metric_key=metric_key, month=month, message=str(error))
    raise TypeError(f"unsupported recompute error type: {type(error).__name__}")


@dataclass(frozen=True, slots=True)
class RecomputeResult:
    """Structured outcome of ``recompute(year)``.

    ``success`` is True only when ``errors`` is empty.
    """

    year: int
    base_metrics_computed: int
    derived_metrics_computed: int
    overrides_applied: int
    errors: tuple[RecomputeIssue, ...] = ()

    @property
    def success(self) -> bool:
        """Return True when the run produced no errors."""
        return not self.errors
