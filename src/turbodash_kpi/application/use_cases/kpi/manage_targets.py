# src/turbodash_kpi/application/use_cases/kpi/manage_targets.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Use cases: Upsert and list monthly plan targets."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from turbodash_kpi.application.schemas.dto.kpi import UpsertTargetItemDTO
from turbodash_kpi.application.uow import UnitOfWork, run_in_uow
from turbodash_kpi.domain.entities.metric import (
    MAX_YEAR,
    MIN_YEAR,
    MonthlyTarget,
    validate_month,
    validate_year,
)
from turbodash_kpi.domain.exceptions.kpi import MetricNotFound
from turbodash_kpi.domain.interfaces.repositories.metric_registry_repository import (
    MetricDefinitionsRepository,
    MonthlyTargetsRepository,
)

logger = logging.getLogger(__name__)


class UpsertTargetsUseCase:
    """Write monthly targets keyed by ``(year, month, metric_key)``."""

    def __init__(
        self,
        *,
        uow: UnitOfWork,
        min_year: int = MIN_YEAR,
        max_year: int = MAX_YEAR,
    ) -> None:
        self._uow = uow
        self._min_year = min_year
        self._max_year = max_year

    async def execute(self, items: Sequence[UpsertTargetItemDTO]) -> int:
        """Validate and upsert the targets in one transaction.

        Returns:
            Number of targets written.

        Raises:
            ValueError: If a year or month is out of range.
            MetricNotFound: If a target references an unregistered metric.
        """
        targets = [
            MonthlyTarget(
                year=validate_year(i.year, min_year=self._min_year, max_year=self._max_year),
                month=validate_month(i.month),
                metric_key=i.metric_key,
                target_value=i.target_value,
            )
            for i in items
        ]

        async def _upsert(tx: UnitOfWork) -> int:
            definitions: MetricDefinitionsRepository = tx.get_repository(
                MetricDefinitionsRepository
            )
            for key in sorted({t.metric_key for t in targets}):
                if await definitions.get_definition(key) is None:
                    raise MetricNotFound(key)
            repo: MonthlyTargetsRepository = tx.get_repository(MonthlyTargetsRepository)
            return await repo.upsert_targets(targets)

        written = await run_in_uow(self._uow, _upsert)
        logger.info("kpi.targets.upserted", extra={"targets_upserted": written})
        return written


class ListTargetsUseCase:
    """Read the targets of a year, optionally for one metric."""

    def __init__(self, *, uow: UnitOfWork) -> None:
        self._uow = uow

    async def execute(self, *, year: int, metric_key: str | None = None) -> Sequence[MonthlyTarget]:
        async with self._uow as tx:
            repo: MonthlyTargetsRepository = tx.get_repository(MonthlyTargetsRepository)
            return await repo.list_targets(year=year, metric_key=metric_key)


__all__ = ["ListTargetsUseCase", "UpsertTargetsUseCase"]
