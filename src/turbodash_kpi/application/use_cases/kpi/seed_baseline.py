# src/turbodash_kpi/application/use_cases/kpi/seed_baseline.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Use case: Seed the baseline registry and monthly targets.

Purpose:
    Idempotently upsert every metric definition of the static plan together
    with its twelve monthly targets. Running it again updates rows in place
    and reports the same counts. Actuals and overrides are never touched.

Layer:
    application/use_cases/kpi
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from turbodash_kpi.application.schemas.dto.kpi import SeedBaselineResultDTO
from turbodash_kpi.application.seeds.bp_2026 import BP_2026_PLAN, PlanMetric
from turbodash_kpi.application.uow import UnitOfWork, run_in_uow
from turbodash_kpi.domain.interfaces.repositories.metric_registry_repository import (
    MetricDefinitionsRepository,
    MonthlyTargetsRepository,
)

logger = logging.getLogger(__name__)


class SeedBaselineUseCase:
    """Load the baseline plan into the registry and target stores."""

    def __init__(self, *, uow: UnitOfWork, plan: Sequence[PlanMetric] = BP_2026_PLAN) -> None:
        self._uow = uow
        self._plan = tuple(plan)

    async def execute(self) -> SeedBaselineResultDTO:
        """Upsert the plan in one transaction and return the counts."""

        async def _seed(tx: UnitOfWork) -> SeedBaselineResultDTO:
            definitions: MetricDefinitionsRepository = tx.get_repository(
                MetricDefinitionsRepository
            )
            targets: MonthlyTargetsRepository = tx.get_repository(MonthlyTargetsRepository)

            created = 0
            upserted = 0
            for item in self._plan:
                if await definitions.upsert_definition(item.definition):
                    created += 1
                upserted += await targets.upsert_targets(item.monthly_targets())
            logger.info(
                "kpi.seed_baseline.success",
                extra={
                    "metrics_processed": len(self._plan),
                    "metrics_created": created,
                    "targets_upserted": upserted,
                },
            )
            return SeedBaselineResultDTO(
                metrics_processed=len(self._plan),
                targets_upserted=upserted,
            )

        return await run_in_uow(self._uow, _seed)


__all__ = ["SeedBaselineUseCase"]
