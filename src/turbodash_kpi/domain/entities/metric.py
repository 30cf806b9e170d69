# src/turbodash_kpi/domain/entities/metric.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Metric registry and store entities.

Purpose:
    Represent metric definitions, monthly targets, manual overrides, and
    persisted actuals in a storage-agnostic way, plus the immutable registry
    snapshot handed to each recompute run.

Layer:
    domain/entities
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from types import MappingProxyType
from uuid import UUID

from turbodash_kpi.domain.enums.kpi import (
    ActualSource,
    MetricDirection,
    MetricKind,
    MetricUnit,
    PeriodType,
)

__all__ = [
    "MAX_YEAR",
    "MIN_YEAR",
    "MONTHS",
    "MetricActual",
    "MetricDefinition",
    "MetricOverride",
    "MonthlyTarget",
    "RegistrySnapshot",
    "validate_month",
    "validate_year",
]

#: Calendar months of a recompute year, in evaluation order.
MONTHS: tuple[int, ...] = tuple(range(1, 13))


def validate_month(month: int) -> int:
    """Return ``month`` unchanged, or raise ValueError when outside 1..12."""
    if month not in MONTHS:
        raise ValueError(f"month must be between 1 and 12, got {month}")
    return month


#: Supported recompute years (inclusive).
MIN_YEAR = 2000
MAX_YEAR = 2100


def validate_year(year: int, *, min_year: int = MIN_YEAR, max_year: int = MAX_YEAR) -> int:
    """Return ``year`` unchanged, or raise ValueError when outside the supported range."""
    if not min_year <= year <= max_year:
        raise ValueError(f"year must be between {min_year} and {max_year}, got {year}")
    return year


@dataclass(frozen=True, slots=True)
class MetricDefinition:
    """Registered metric.

    Attributes:
        key:
            Unique metric identifier referenced by formulas and overrides.
        title:
            Human-readable label.
        kind:
            ``BASE`` metrics are aggregated from raw data; ``DERIVED`` metrics
            are evaluated from ``formula``.
        unit:
            Display unit; PCT metrics average in rollups.
        period_type:
            How monthly values combine into quarter/YTD values.
        direction:
            Desirable direction of change, used by signal status.
        formula:
            Expression over other metric keys. Present only for derived metrics.
        active:
            Inactive metrics are excluded from recompute snapshots.
    """

    key: str
    title: str
    kind: MetricKind
    unit: MetricUnit = MetricUnit.BRL
    period_type: PeriodType = PeriodType.MONTH_SUM
    direction: MetricDirection = MetricDirection.UP
    formula: str | None = None
    active: bool = True

    def __post_init__(self) -> None:
        """Enforce the kind/formula pairing."""
        if not self.key or not self.key.strip():
            raise ValueError("metric key must be non-empty")
        if self.kind is MetricKind.DERIVED and not (self.formula and self.formula.strip()):
            raise ValueError(f"derived metric {self.key!r} requires a formula")
        if self.kind is MetricKind.BASE and self.formula is not None:
            raise ValueError(f"base metric {self.key!r} must not define a formula")

    @property
    def is_derived(self) -> bool:
        """Return True for formula-defined metrics."""
        return self.kind is MetricKind.DERIVED


@dataclass(frozen=True, slots=True)
class MonthlyTarget:
    """Planned value for one metric in one month."""

    year: int
    month: int
    metric_key: str
    target_value: Decimal


@dataclass(frozen=True, slots=True)
class MetricOverride:
    """Manually supplied value that supersedes a computed actual.

    At most one override exists per ``(year, month, metric_key)``; writes are
    upserts on that triple.
    """

    id: UUID
    year: int
    month: int
    metric_key: str
    override_value: Decimal
    note: str | None = None
    updated_by: str | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class MetricActual:
    """Persisted monthly value of a metric produced by a recompute run."""

    year: int
    month: int
    metric_key: str
    value: Decimal
    source: ActualSource
    computed_at: datetime

    def identity(self) -> tuple[int, int, str, Decimal, ActualSource]:
        """Return the comparable content of the actual, excluding run metadata."""
        return (self.year, self.month, self.metric_key, self.value, self.source)


@dataclass(frozen=True, slots=True)
class RegistrySnapshot:
    """Immutable view of the active metric definitions for one recompute run.

    The snapshot only contains active definitions, so a key that is absent
    from it is either unknown or inactive.
    """

    definitions: Mapping[str, MetricDefinition] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def of(cls, definitions: Iterable[MetricDefinition]) -> RegistrySnapshot:
        """Build a snapshot from definitions, keeping active ones only."""
        active = {d.key: d for d in sorted(definitions, key=lambda d: d.key) if d.active}
        return cls(definitions=MappingProxyType(active))

    def get(self, key: str) -> MetricDefinition | None:
        """Return the active definition for ``key``, or None."""
        return self.definitions.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self.definitions

    @property
    def base_keys(self) -> tuple[str, ...]:
        """Sorted keys of the active base metrics."""
        return tuple(k for k, d in self.definitions.items() if not d.is_derived)

    @property
    def derived(self) -> tuple[MetricDefinition, ...]:
        """Active derived definitions, sorted by key."""
        return tuple(d for d in self.definitions.values() if d.is_derived)
