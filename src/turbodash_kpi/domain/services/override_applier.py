# src/turbodash_kpi/domain/services/override_applier.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Override application.

Purpose:
    Replace computed values with manual overrides. The override always wins.

Layer:
    domain/services

Notes:
    The recompute pipeline applies overrides in two layers: base-metric
    overrides before derived evaluation (so formulas see the corrected input)
    and derived-metric overrides after it (they feed no further formulas).
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType

from turbodash_kpi.domain.entities.metric import MONTHS, MetricOverride
from turbodash_kpi.domain.services.base_metric_computer import LOOKBACK_MONTH
from turbodash_kpi.domain.services.dependency_graph import MetricNode

__all__ = ["OverrideApplication", "apply_overrides", "index_overrides"]


@dataclass(frozen=True, slots=True)
class OverrideApplication:
    """Result of applying one override layer.

    Attributes:
        values: Input values with overrides written over them.
        overridden: Nodes whose value came from an override.
    """

    values: Mapping[MetricNode, Decimal]
    overridden: frozenset[MetricNode]

    def count_in(self, months: Collection[int] = MONTHS) -> int:
        """Return how many overridden nodes fall in ``months``."""
        return sum(1 for _, month in self.overridden if month in months)


def index_overrides(overrides: Iterable[MetricOverride], *, year: int) -> dict[MetricNode, Decimal]:
    """Index overrides by ``(metric_key, month)`` relative to ``year``.

    Overrides of ``year`` keep their month. December overrides of the previous
    year land on the look-back month. Anything else is ignored. With upsert
    semantics there is one override per triple; if duplicates are supplied
    anyway, the most recently updated one wins.
    """
    ordered = sorted(
        overrides,
        key=lambda o: o.updated_at.timestamp() if o.updated_at else float("-inf"),
    )
    index: dict[MetricNode, Decimal] = {}
    for override in ordered:
        if override.year == year and override.month in MONTHS:
            index[(override.metric_key, override.month)] = override.override_value
        elif override.year == year - 1 and override.month == 12:
            index[(override.metric_key, LOOKBACK_MONTH)] = override.override_value
    return index


def apply_overrides(
    values: Mapping[MetricNode, Decimal],
    overrides: Mapping[MetricNode, Decimal],
    *,
    metric_keys: Collection[str],
    months: Collection[int],
) -> OverrideApplication:
    """Write overrides for ``metric_keys`` × ``months`` over ``values``.

    Overrides for other keys (unknown, inactive, or belonging to the other
    layer) are left untouched. An override also supplies a value for a node
    whose computation failed or produced nothing.

    Args:
        values: Computed values for the layer.
        overrides: Override index from ``index_overrides``.
        metric_keys: Keys belonging to this layer.
        months: Months belonging to this layer.

    Returns:
        OverrideApplication with the merged values and overridden nodes.
    """
    merged = dict(values)
    overridden: set[MetricNode] = set()
    for node, value in overrides.items():
        key, month = node
        if key in metric_keys and month in months:
            merged[node] = value
            overridden.add(node)
    return OverrideApplication(values=MappingProxyType(merged), overridden=frozenset(overridden))
