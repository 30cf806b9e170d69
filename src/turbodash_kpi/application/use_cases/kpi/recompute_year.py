# src/turbodash_kpi/application/use_cases/kpi/recompute_year.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Use case: Recompute every metric actual of a year.

Scope:
    * Load the active registry snapshot, overrides, and source data.
    * Compute base metrics for the look-back month and months 1..12.
    * Apply base overrides, evaluate derived metrics, apply derived overrides.
    * Replace the year's MetricActual snapshot in one transaction.
    * Return counts and the aggregated per-metric errors.

State machine (logged as ``kpi.recompute.state``):
    idle -> computing_base -> applying_base_overrides -> computing_derived
    -> applying_derived_overrides -> persisting -> done_success | done_partial

Notes:
    * Runs for the same year are serialized by an in-process per-year lock;
      the delete-then-insert write is a single transaction so readers keep
      seeing the previous snapshot until commit.
    * A failed write is rolled back and reported as a ``persistence`` issue;
      it does not raise.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from decimal import Decimal

from turbodash_kpi.application.schemas.dto.kpi import RecomputeYearRequestDTO
from turbodash_kpi.application.uow import UnitOfWork
from turbodash_kpi.domain.entities.metric import (
    MAX_YEAR,
    MIN_YEAR,
    MONTHS,
    MetricActual,
    RegistrySnapshot,
    validate_year,
)
from turbodash_kpi.domain.entities.recompute import (
    RecomputeIssue,
    RecomputeResult,
    issue_from_error,
)
from turbodash_kpi.domain.enums.kpi import ActualSource
from turbodash_kpi.domain.exceptions.kpi import KpiError, PersistenceError
from turbodash_kpi.domain.interfaces.repositories.contract_status_map_repository import (
    ContractStatusMapRepository,
)
from turbodash_kpi.domain.interfaces.repositories.metric_actuals_repository import (
    MetricActualsRepository,
)
from turbodash_kpi.domain.interfaces.repositories.metric_overrides_repository import (
    MetricOverridesRepository,
)
from turbodash_kpi.domain.interfaces.repositories.metric_registry_repository import (
    MetricDefinitionsRepository,
)
from turbodash_kpi.domain.interfaces.repositories.source_data_repository import (
    SourceDataRepository,
)
from turbodash_kpi.domain.services.base_metric_computer import (
    DEFAULT_ACTIVE_STATUSES,
    LOOKBACK_MONTH,
    AggregationContext,
    BaseMetricComputer,
    period_bounds,
)
from turbodash_kpi.domain.services.dependency_graph import MetricNode
from turbodash_kpi.domain.services.derived_metric_evaluator import DerivedMetricEvaluator
from turbodash_kpi.domain.services.override_applier import apply_overrides, index_overrides
from turbodash_kpi.infrastructure.observability.metrics_kpi import (
    get_kpi_overrides_applied_total,
    get_kpi_recompute_duration_seconds,
    get_kpi_recompute_issues_total,
    get_kpi_recompute_runs_total,
)

logger = logging.getLogger(__name__)

_BASE_MONTHS: tuple[int, ...] = (LOOKBACK_MONTH, *MONTHS)


class YearLocks:
    """Registry of per-year asyncio locks (single writer per year)."""

    def __init__(self) -> None:
        self._locks: dict[int, asyncio.Lock] = {}

    def for_year(self, year: int) -> asyncio.Lock:
        """Return the lock guarding recomputes of ``year``."""
        lock = self._locks.get(year)
        if lock is None:
            lock = self._locks[year] = asyncio.Lock()
        return lock


_DEFAULT_LOCKS = YearLocks()


class RecomputeYearUseCase:
    """Recompute and persist all metric actuals of a year.

    Args:
        uow: Application UnitOfWork providing the KPI repositories.
        locks: Per-year lock registry; process-wide by default.
        computer: Base metric computer; built-in aggregations by default.
        evaluator: Derived metric evaluator.
        default_active_statuses: Statuses counted as active when the contract
            status map is empty.
        min_year: Lowest accepted year.
        max_year: Highest accepted year.
    """

    def __init__(
        self,
        *,
        uow: UnitOfWork,
        locks: YearLocks | None = None,
        computer: BaseMetricComputer | None = None,
        evaluator: DerivedMetricEvaluator | None = None,
        default_active_statuses: Iterable[str] = DEFAULT_ACTIVE_STATUSES,
        min_year: int = MIN_YEAR,
        max_year: int = MAX_YEAR,
    ) -> None:
        self._uow = uow
        self._locks = locks or _DEFAULT_LOCKS
        self._computer = computer or BaseMetricComputer()
        self._evaluator = evaluator or DerivedMetricEvaluator()
        self._default_active_statuses = tuple(default_active_statuses)
        self._min_year = min_year
        self._max_year = max_year

    async def execute(self, req: RecomputeYearRequestDTO) -> RecomputeResult:
        """Run the recompute pipeline for ``req.year``.

        Raises:
            ValueError: If the year is outside the supported range.
        """
        year = validate_year(req.year, min_year=self._min_year, max_year=self._max_year)
        async with self._locks.for_year(year):
            started = time.perf_counter()
            logger.info("kpi.recompute.start", extra={"year": year})
            result = await self._run(year)
            outcome = _outcome(result)
            elapsed = time.perf_counter() - started

        get_kpi_recompute_duration_seconds().labels(outcome=outcome).observe(elapsed)
        get_kpi_recompute_runs_total().labels(outcome=outcome).inc()
        for issue in result.errors:
            get_kpi_recompute_issues_total().labels(kind=issue.kind.value).inc()
        if result.overrides_applied:
            get_kpi_overrides_applied_total().inc(result.overrides_applied)

        logger.info(
            "kpi.recompute.done",
            extra={
                "year": year,
                "outcome": outcome,
                "base_metrics_computed": result.base_metrics_computed,
                "derived_metrics_computed": result.derived_metrics_computed,
                "overrides_applied": result.overrides_applied,
                "errors": len(result.errors),
                "duration_ms": round(elapsed * 1000, 2),
            },
        )
        return result

    # ------------------------------------------------------------------ #
    # Pipeline                                                           #
    # ------------------------------------------------------------------ #

    async def _run(self, year: int) -> RecomputeResult:
        async with self._uow as tx:
            definitions_repo: MetricDefinitionsRepository = tx.get_repository(
                MetricDefinitionsRepository
            )
            overrides_repo: MetricOverridesRepository = tx.get_repository(
                MetricOverridesRepository
            )
            status_repo: ContractStatusMapRepository = tx.get_repository(
                ContractStatusMapRepository
            )
            source_repo: SourceDataRepository = tx.get_repository(SourceDataRepository)
            actuals_repo: MetricActualsRepository = tx.get_repository(MetricActualsRepository)

            snapshot = RegistrySnapshot.of(
                await definitions_repo.list_definitions(include_inactive=False)
            )
            overrides = index_overrides(
                await overrides_repo.list_overrides(years=(year - 1, year)), year=year
            )
            window_start, _ = period_bounds(year, LOOKBACK_MONTH)
            _, window_end = period_bounds(year, 12)
            context = AggregationContext.build(
                contracts=await source_repo.list_contracts(),
                ledger=await source_repo.list_ledger_entries(start=window_start, end=window_end),
                status_map=await status_repo.list_mappings(),
                default_active_statuses=self._default_active_statuses,
            )

            _log_state(year, "computing_base")
            base = self._computer.compute(
                metric_keys=snapshot.base_keys,
                year=year,
                months=_BASE_MONTHS,
                context=context,
            )

            _log_state(year, "applying_base_overrides")
            base_applied = apply_overrides(
                base.values,
                overrides,
                metric_keys=snapshot.base_keys,
                months=_BASE_MONTHS,
            )
            failed_base = set(base.errors) - base_applied.overridden

            _log_state(year, "computing_derived")
            derived = self._evaluator.evaluate(
                snapshot=snapshot,
                year=year,
                base_values=base_applied.values,
                failed_inputs=failed_base,
            )

            _log_state(year, "applying_derived_overrides")
            derived_applied = apply_overrides(
                derived.values,
                overrides,
                metric_keys={d.key for d in snapshot.derived},
                months=MONTHS,
            )

            computed_at = datetime.now(tz=UTC)
            actuals = _to_actuals(
                year,
                base_applied.values,
                base_applied.overridden,
                computed_at,
            ) + _to_actuals(
                year,
                derived_applied.values,
                derived_applied.overridden,
                computed_at,
            )

            issues = _issues(base.errors) + _issues(derived.errors)
            base_count = sum(1 for _, month in base.values if month in MONTHS)
            derived_count = len(derived.values)
            overrides_count = base_applied.count_in(MONTHS) + derived_applied.count_in(MONTHS)

            _log_state(year, "persisting")
            try:
                await actuals_repo.replace_year(year, actuals)
                await tx.commit()
            except PersistenceError as exc:
                await tx.rollback()
                logger.error(
                    "kpi.recompute.persist_failed",
                    extra={"year": year, "error": exc.message, "details": exc.details},
                )
                issues.append(issue_from_error(exc, metric_key=None, month=None))

        return RecomputeResult(
            year=year,
            base_metrics_computed=base_count,
            derived_metrics_computed=derived_count,
            overrides_applied=overrides_count,
            errors=tuple(sorted(issues, key=RecomputeIssue.sort_key)),
        )


def _log_state(year: int, state: str) -> None:
    logger.info("kpi.recompute.state", extra={"year": year, "state": state})


def _outcome(result: RecomputeResult) -> str:
    if result.success:
        return "success"
    if any(issue.metric_key is None for issue in result.errors):
        return "failed"
    return "partial"


def _to_actuals(
    year: int,
    values: Mapping[MetricNode, Decimal],
    overridden: Iterable[MetricNode],
    computed_at: datetime,
) -> list[MetricActual]:
    """Build persisted rows for months 1..12; look-back values are dropped."""
    overridden_nodes = frozenset(overridden)
    return [
        MetricActual(
            year=year,
            month=month,
            metric_key=key,
            value=value,
            source=(
                ActualSource.OVERRIDDEN
                if (key, month) in overridden_nodes
                else ActualSource.COMPUTED
            ),
            computed_at=computed_at,
        )
        for (key, month), value in sorted(values.items(), key=_node_order)
        if month in MONTHS
    ]


def _node_order(item: tuple[MetricNode, Decimal]) -> tuple[int, str]:
    (key, month), _ = item
    return (month, key)


def _issues(errors: Mapping[MetricNode, KpiError]) -> list[RecomputeIssue]:
    """Convert per-node errors of months 1..12 into issues.

    Failures in the look-back month surface through the January nodes that
    depend on them.
    """
    return [
        issue_from_error(error, metric_key=key, month=month)
        for (key, month), error in errors.items()
        if month in MONTHS
    ]


__all__ = ["RecomputeYearUseCase", "YearLocks"]
