# src/turbodash_kpi/domain/services/derived_metric_evaluator.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Derived metric evaluation.

Purpose:
    Evaluate formula-defined metrics for every month in the topological order
    produced by ``build_evaluation_plan`` over a symbol table of
    ``(metric_key, month) -> value``.

Layer:
    domain/services

Notes:
    - Blocked nodes (cycles, unparsable formulas, unknown references) are
      reported with their ConfigurationError and never evaluated.
    - A node whose input is absent or failed is reported with a
      DependencyError naming the input; independent nodes keep evaluating.
    - Derived metrics are only evaluated for months 1..12, so a derived
      reference into the look-back month counts as a missing input.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType

from turbodash_kpi.domain.entities.metric import MONTHS, RegistrySnapshot
from turbodash_kpi.domain.exceptions.kpi import DependencyError, KpiError
from turbodash_kpi.domain.services.dependency_graph import (
    EvaluationPlan,
    MetricNode,
    build_evaluation_plan,
)
from turbodash_kpi.domain.services.formula import MetricRef, evaluate

__all__ = ["DerivedEvaluation", "DerivedMetricEvaluator"]


@dataclass(frozen=True, slots=True)
class DerivedEvaluation:
    """Values and errors of one derived evaluation pass."""

    values: Mapping[MetricNode, Decimal] = field(default_factory=lambda: MappingProxyType({}))
    errors: Mapping[MetricNode, KpiError] = field(default_factory=lambda: MappingProxyType({}))


def _label(year: int, node: MetricNode) -> str:
    key, month = node
    shifted_year, month_index = divmod(month - 1, 12)
    return f"{key}@{year + shifted_year}-{month_index + 1:02d}"


class DerivedMetricEvaluator:
    """Evaluates derived metrics in dependency order."""

    def evaluate(
        self,
        *,
        snapshot: RegistrySnapshot,
        year: int,
        base_values: Mapping[MetricNode, Decimal],
        failed_inputs: Collection[MetricNode] = (),
        months: Iterable[int] = MONTHS,
        plan: EvaluationPlan | None = None,
    ) -> DerivedEvaluation:
        """Evaluate all active derived metrics.

        Args:
            snapshot: Active definitions for the run.
            year: Target year (used in error messages).
            base_values: Base metric values after base overrides were applied.
            failed_inputs: Base nodes whose aggregation failed.
            months: Months to evaluate.
            plan: Precomputed evaluation plan; built from ``snapshot`` if omitted.

        Returns:
            DerivedEvaluation with a value or an error for every derived node.
        """
        plan = plan or build_evaluation_plan(snapshot, months)
        values: dict[MetricNode, Decimal] = {}
        errors: dict[MetricNode, KpiError] = {}
        failed_base = frozenset(failed_inputs)

        for node in plan.order:
            key, month = node
            blocked = plan.blocked.get(node)
            if blocked is not None:
                errors[node] = blocked
                continue

            def resolve(ref: MetricRef, _month: int = month, _node: MetricNode = node) -> Decimal:
                target = (ref.key, _month + ref.month_offset)
                definition = snapshot.get(ref.key)
                is_derived = definition is not None and definition.is_derived
                if is_derived:
                    if target in values:
                        return values[target]
                    if target in errors:
                        raise DependencyError(
                            f"Input {_label(year, target)} of {_label(year, _node)} failed",
                            details={"metric_key": _node[0], "input": list(target)},
                        )
                else:
                    if target in base_values:
                        return base_values[target]
                    if target in failed_base:
                        raise DependencyError(
                            f"Input {_label(year, target)} of {_label(year, _node)} failed "
                            "to aggregate",
                            details={"metric_key": _node[0], "input": list(target)},
                        )
                raise DependencyError(
                    f"Input {_label(year, target)} of {_label(year, _node)} has no value",
                    details={"metric_key": _node[0], "input": list(target)},
                )

            try:
                values[node] = evaluate(plan.formulas[key], resolve)
            except DependencyError as exc:
                errors[node] = exc

        # Cycle members and their dependents never reach the order.
        for node, error in plan.blocked.items():
            errors.setdefault(node, error)

        return DerivedEvaluation(values=MappingProxyType(values), errors=MappingProxyType(errors))
