# src/turbodash_kpi/domain/services/base_metric_computer.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Base metric computation.

Purpose:
    Aggregate raw contract and ledger rows into one value per
    ``(base_metric_key, month)``. Each base metric key dispatches to a
    registered aggregation function.

Layer:
    domain/services

Notes:
    - Month ``0`` denotes December of the previous year (look-back month) so
      formulas referencing ``metric[-1]`` have a value in January.
    - A failing aggregation is captured as an AggregationError for that
      ``(metric_key, month)``; other metrics and months are unaffected.
    - Base metrics without a registered aggregation are manual metrics: they
      produce no value here and only receive one through an override.
    - Sums keep full Decimal precision; ratios go through ``safe_divide``.
"""

from __future__ import annotations

import calendar
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from types import MappingProxyType

from turbodash_kpi.domain.entities.source_data import (
    ContractRecord,
    ContractStatusMapping,
    LedgerEntry,
    normalize_status,
)
from turbodash_kpi.domain.exceptions.kpi import AggregationError
from turbodash_kpi.domain.services.dependency_graph import MetricNode
from turbodash_kpi.domain.services.formula import DECIMAL_ZERO

__all__ = [
    "DEFAULT_ACTIVE_STATUSES",
    "LEDGER_CATEGORY_METRICS",
    "LOOKBACK_MONTH",
    "AggregationContext",
    "Aggregator",
    "AggregatorRegistry",
    "BaseComputation",
    "BaseMetricComputer",
    "default_aggregators",
    "ledger_category_sum",
    "period_bounds",
]

#: Month index of the look-back period (December of the previous year).
LOOKBACK_MONTH = 0

#: Statuses treated as active when no ContractStatusMap rows exist.
DEFAULT_ACTIVE_STATUSES: frozenset[str] = frozenset({"ativo", "onboarding", "triagem"})

#: Base metrics computed as the sum of ledger entries of the same category.
LEDGER_CATEGORY_METRICS: tuple[str, ...] = (
    "revenue_other",
    "bad_debt",
    "taxes_on_revenue",
    "cogs_csv",
    "cac_total",
    "sga_total",
    "tax_ir_csll",
    "capex",
    "revenue_total",
    "expense_total",
)


def period_bounds(year: int, month: int) -> tuple[date, date]:
    """Return the first and last day of ``month`` in ``year``.

    Month ``0`` maps to December of ``year - 1``.
    """
    if month == LOOKBACK_MONTH:
        year, month = year - 1, 12
    if not 1 <= month <= 12:
        raise ValueError(f"month must be between 0 and 12, got {month}")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


@dataclass(frozen=True, slots=True)
class AggregationContext:
    """Read-only reference data shared by all aggregations of a run."""

    contracts: tuple[ContractRecord, ...] = ()
    ledger: tuple[LedgerEntry, ...] = ()
    active_statuses: frozenset[str] = DEFAULT_ACTIVE_STATUSES

    @classmethod
    def build(
        cls,
        *,
        contracts: Iterable[ContractRecord],
        ledger: Iterable[LedgerEntry],
        status_map: Iterable[ContractStatusMapping],
        default_active_statuses: Iterable[str] = DEFAULT_ACTIVE_STATUSES,
    ) -> AggregationContext:
        """Resolve the active-status set and freeze the source rows.

        When ``status_map`` is empty, ``default_active_statuses`` applies.
        """
        mappings = list(status_map)
        if mappings:
            active = frozenset(normalize_status(m.status) for m in mappings if m.is_active)
        else:
            active = frozenset(normalize_status(s) for s in default_active_statuses)
        return cls(contracts=tuple(contracts), ledger=tuple(ledger), active_statuses=active)

    def is_active_at(self, contract: ContractRecord, day: date) -> bool:
        """Return True when ``contract`` counts as active at the end of ``day``.

        A contract with an end date is active from its start until the day
        before it ends, whatever its current status. A running contract is
        active only when its status is flagged active.
        """
        if contract.start_date is None or contract.start_date > day:
            return False
        if contract.end_date is not None:
            return contract.end_date > day
        return normalize_status(contract.status) in self.active_statuses

    def active_contracts(self, day: date) -> list[ContractRecord]:
        """Return contracts active at the end of ``day``."""
        return [c for c in self.contracts if self.is_active_at(c, day)]


#: Signature: ``(context, first_day, last_day) -> value``.
Aggregator = Callable[[AggregationContext, date, date], Decimal]


# --------------------------------------------------------------------------- #
# Aggregations                                                                #
# --------------------------------------------------------------------------- #


def _mrr_active(ctx: AggregationContext, first: date, last: date) -> Decimal:
    return sum((c.recurring_value for c in ctx.active_contracts(last)), DECIMAL_ZERO)


def _contracts_active(ctx: AggregationContext, first: date, last: date) -> Decimal:
    return Decimal(len(ctx.active_contracts(last)))


def _clients_active(ctx: AggregationContext, first: date, last: date) -> Decimal:
    clients = {c.client_id or f"contract:{c.contract_id}" for c in ctx.active_contracts(last)}
    return Decimal(len(clients))


def _started_in(ctx: AggregationContext, first: date, last: date) -> list[ContractRecord]:
    return [c for c in ctx.contracts if c.start_date is not None and first <= c.start_date <= last]


def _sales_mrr(ctx: AggregationContext, first: date, last: date) -> Decimal:
    return sum((c.recurring_value for c in _started_in(ctx, first, last)), DECIMAL_ZERO)


def _revenue_one_time(ctx: AggregationContext, first: date, last: date) -> Decimal:
    return sum((c.one_time_value for c in _started_in(ctx, first, last)), DECIMAL_ZERO)


def _churn_mrr_month(ctx: AggregationContext, first: date, last: date) -> Decimal:
    return sum(
        (
            c.recurring_value
            for c in ctx.contracts
            if c.end_date is not None and first <= c.end_date <= last
        ),
        DECIMAL_ZERO,
    )


def ledger_category_sum(category: str) -> Aggregator:
    """Return an aggregation summing ledger entries of ``category`` dated in the month."""

    def _aggregate(ctx: AggregationContext, first: date, last: date) -> Decimal:
        return sum(
            (
                e.amount
                for e in ctx.ledger
                if e.category == category and first <= e.entry_date <= last
            ),
            DECIMAL_ZERO,
        )

    _aggregate.__name__ = f"ledger_sum_{category}"
    return _aggregate


class AggregatorRegistry:
    """Mapping from base metric key to its aggregation function."""

    def __init__(self, aggregators: Mapping[str, Aggregator] | None = None) -> None:
        self._aggregators: dict[str, Aggregator] = dict(aggregators or {})

    def register(self, metric_key: str, aggregator: Aggregator) -> None:
        """Register (or replace) the aggregation for ``metric_key``."""
        self._aggregators[metric_key] = aggregator

    def get(self, metric_key: str) -> Aggregator | None:
        """Return the aggregation for ``metric_key``, or None for manual metrics."""
        return self._aggregators.get(metric_key)

    def keys(self) -> tuple[str, ...]:
        """Return the registered metric keys, sorted."""
        return tuple(sorted(self._aggregators))


def default_aggregators() -> AggregatorRegistry:
    """Return the built-in aggregations over contracts and the ledger."""
    registry = AggregatorRegistry(
        {
            "mrr_active": _mrr_active,
            "contracts_active": _contracts_active,
            "clients_active": _clients_active,
            "sales_mrr": _sales_mrr,
            "revenue_one_time": _revenue_one_time,
            "churn_mrr_month": _churn_mrr_month,
        }
    )
    for category in LEDGER_CATEGORY_METRICS:
        registry.register(category, ledger_category_sum(category))
    return registry


# --------------------------------------------------------------------------- #
# Computer                                                                    #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class BaseComputation:
    """Values and errors produced by one base computation pass.

    Attributes:
        values: Computed value per ``(metric_key, month)``.
        errors: AggregationError per failed ``(metric_key, month)``.
        manual_keys: Base metrics with no registered aggregation.
    """

    values: Mapping[MetricNode, Decimal] = field(default_factory=lambda: MappingProxyType({}))
    errors: Mapping[MetricNode, AggregationError] = field(
        default_factory=lambda: MappingProxyType({})
    )
    manual_keys: tuple[str, ...] = ()


class BaseMetricComputer:
    """Computes base metrics by dispatching each key to its aggregation."""

    def __init__(self, aggregators: AggregatorRegistry | None = None) -> None:
        """Initialize with an aggregation registry (defaults to the built-ins)."""
        self._aggregators = aggregators or default_aggregators()

    def compute(
        self,
        *,
        metric_keys: Iterable[str],
        year: int,
        months: Iterable[int],
        context: AggregationContext,
    ) -> BaseComputation:
        """Aggregate every ``(metric_key, month)`` pair.

        Args:
            metric_keys: Active base metric keys.
            year: Target year.
            months: Months to compute; ``0`` is the look-back month.
            context: Reference data for the aggregations.

        Returns:
            BaseComputation with values, per-pair errors, and manual keys.
        """
        month_list = tuple(sorted(set(months)))
        values: dict[MetricNode, Decimal] = {}
        errors: dict[MetricNode, AggregationError] = {}
        manual: list[str] = []

        for key in sorted(set(metric_keys)):
            aggregator = self._aggregators.get(key)
            if aggregator is None:
                manual.append(key)
                continue
            for month in month_list:
                first, last = period_bounds(year, month)
                try:
                    raw = aggregator(context, first, last)
                    values[(key, month)] = raw if isinstance(raw, Decimal) else Decimal(str(raw))
                except Exception as exc:  # noqa: BLE001
                    errors[(key, month)] = AggregationError(
                        f"Aggregation of {key!r} failed for {first:%Y-%m}: {exc}",
                        details={"metric_key": key, "month": month, "reason": str(exc)},
                    )

        return BaseComputation(
            values=MappingProxyType(values),
            errors=MappingProxyType(errors),
            manual_keys=tuple(manual),
        )
