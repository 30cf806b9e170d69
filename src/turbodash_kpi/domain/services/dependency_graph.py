# src/turbodash_kpi/domain/services/dependency_graph.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Dependency graph and evaluation plan for derived metrics.

Purpose:
    Build a ``networkx.DiGraph`` whose nodes are ``(derived_metric_key, month)``
    pairs and derive a deterministic topological evaluation order from it.

Layer:
    domain/services

Notes:
    - A reference ``k[-n]`` from ``(d, m)`` becomes an edge ``(k, m - n) -> (d, m)``
      when ``k`` is derived and the target month lies inside the year.
      References to base metrics carry no edge because base values are known
      before derived evaluation starts.
    - Because offsets are never positive, a node-level cycle can only arise from
      a metric-level cycle of same-month references. Such metrics are named
      through strongly connected components for readable errors.
    - Cycle members and every node downstream of one are blocked with a
      ConfigurationError and never evaluated.
    - Metrics whose formula fails to parse or references an unknown/inactive
      key are blocked too, but stay in the order so their dependents fail
      with a DependencyError during evaluation.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

import networkx as nx

from turbodash_kpi.domain.entities.metric import MONTHS, RegistrySnapshot
from turbodash_kpi.domain.exceptions.kpi import ConfigurationError
from turbodash_kpi.domain.services.formula import FormulaNode, parse_formula, references

__all__ = ["EvaluationPlan", "MetricNode", "build_evaluation_plan"]

#: ``(metric_key, month)``
MetricNode = tuple[str, int]


@dataclass(frozen=True, slots=True)
class EvaluationPlan:
    """Outcome of graph analysis for one registry snapshot.

    Attributes:
        order:
            Nodes to evaluate, dependencies first. Includes blocked
            misconfigured nodes so dependents observe them as failed.
        blocked:
            Nodes that must not be evaluated, mapped to their error.
        formulas:
            Parsed AST per derived metric whose formula is valid.
        edges:
            Node-level dependency edges, ``node -> dependencies``.
    """

    order: tuple[MetricNode, ...]
    blocked: Mapping[MetricNode, ConfigurationError]
    formulas: Mapping[str, FormulaNode]
    edges: Mapping[MetricNode, tuple[MetricNode, ...]]


def _month_first(node: MetricNode) -> tuple[int, str]:
    return node[1], node[0]


def _cyclic_components(graph: nx.DiGraph) -> list[set]:
    """Return the strongly connected components of ``graph`` that contain a cycle."""
    cyclic = []
    for component in nx.strongly_connected_components(graph):
        member = next(iter(component))
        if len(component) > 1 or graph.has_edge(member, member):
            cyclic.append(component)
    return cyclic


def build_evaluation_plan(
    snapshot: RegistrySnapshot,
    months: Iterable[int] = MONTHS,
) -> EvaluationPlan:
    """Analyze the derived metrics of a snapshot and order their evaluation.

    Args:
        snapshot: Active metric definitions for the run.
        months: Months to plan (defaults to 1..12).

    Returns:
        EvaluationPlan with a deterministic order and the blocked nodes.
    """
    month_list = tuple(sorted(set(months)))
    month_set = set(month_list)
    derived = snapshot.derived
    derived_keys = {d.key for d in derived}

    formulas: dict[str, FormulaNode] = {}
    misconfigured: dict[str, ConfigurationError] = {}

    for definition in derived:
        try:
            node = parse_formula(definition.formula or "")
        except ConfigurationError as exc:
            misconfigured[definition.key] = exc
            continue
        unknown = sorted({ref.key for ref in references(node) if ref.key not in snapshot})
        if unknown:
            misconfigured[definition.key] = ConfigurationError(
                f"Formula of {definition.key!r} references unknown or inactive "
                f"metric(s): {', '.join(unknown)}",
                details={"metric_key": definition.key, "unknown": unknown},
            )
            continue
        formulas[definition.key] = node

    # Node-level graph, plus the metric-level same-month graph used for naming cycles.
    graph = nx.DiGraph()
    same_month = nx.DiGraph()
    edges: dict[MetricNode, tuple[MetricNode, ...]] = {}
    for key, node in formulas.items():
        refs = references(node)
        same_month.add_edges_from(
            (ref.key, key)
            for ref in refs
            if ref.key in derived_keys and ref.month_offset == 0
        )
        for month in month_list:
            deps = {
                (ref.key, month + ref.month_offset)
                for ref in refs
                if ref.key in derived_keys and (month + ref.month_offset) in month_set
            }
            edges[(key, month)] = tuple(sorted(deps))
            graph.add_node((key, month))
            graph.add_edges_from((dep, (key, month)) for dep in deps)

    for key in misconfigured:
        for month in month_list:
            edges[(key, month)] = ()
            graph.add_node((key, month))

    blocked: dict[MetricNode, ConfigurationError] = {}
    for key, error in misconfigured.items():
        for month in month_list:
            blocked[(key, month)] = error

    cycle_nodes: set[MetricNode] = set()
    for component in _cyclic_components(graph):
        cycle_nodes |= component
    unreachable = set(cycle_nodes)
    for member in cycle_nodes:
        unreachable |= nx.descendants(graph, member)

    if unreachable:
        groups: dict[str, tuple[str, ...]] = {}
        for component in _cyclic_components(same_month):
            members = tuple(sorted(component))
            for member in members:
                groups[member] = members
        for key, month in sorted(unreachable, key=_month_first):
            cycle = groups.get(key)
            if cycle is not None:
                message = (
                    f"Metric {key!r} is part of a dependency cycle: "
                    f"{' -> '.join((*cycle, cycle[0]))}"
                )
            else:
                message = f"Metric {key!r} depends on a metric in a dependency cycle"
            blocked[(key, month)] = ConfigurationError(
                message,
                details={"metric_key": key, "month": month, "cycle": list(cycle or ())},
            )

    acyclic = graph.subgraph(node for node in graph if node not in unreachable)
    order = nx.lexicographical_topological_sort(acyclic, key=_month_first)

    return EvaluationPlan(
        order=tuple(order),
        blocked=MappingProxyType(blocked),
        formulas=MappingProxyType(formulas),
        edges=MappingProxyType(edges),
    )
