# src/turbodash_kpi/application/use_cases/kpi/get_rollups.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Use case: Quarter and YTD rollups of plan vs actual.

Purpose:
    Combine the stored monthly targets and actuals of a year into Q1..Q4 and
    YTD values per metric, with variance and signal status.

Layer:
    application/use_cases/kpi

Notes:
    Read-only; uses whatever the last recompute persisted.
"""

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal

from turbodash_kpi.application.schemas.dto.kpi import GetRollupsRequestDTO, MetricRollupsDTO
from turbodash_kpi.application.uow import UnitOfWork
from turbodash_kpi.domain.exceptions.kpi import MetricNotFound
from turbodash_kpi.domain.interfaces.repositories.metric_actuals_repository import (
    MetricActualsRepository,
)
from turbodash_kpi.domain.interfaces.repositories.metric_registry_repository import (
    MetricDefinitionsRepository,
    MonthlyTargetsRepository,
)
from turbodash_kpi.domain.services.rollups import compute_rollups


class GetRollupsUseCase:
    """Compute rollups for every active metric, or for a single one."""

    def __init__(self, *, uow: UnitOfWork) -> None:
        self._uow = uow

    async def execute(self, req: GetRollupsRequestDTO) -> list[MetricRollupsDTO]:
        """Build the rollups of ``req.year``.

        Raises:
            MetricNotFound: If ``req.metric_key`` is given but not registered.
        """
        async with self._uow as tx:
            definitions_repo: MetricDefinitionsRepository = tx.get_repository(
                MetricDefinitionsRepository
            )
            targets_repo: MonthlyTargetsRepository = tx.get_repository(MonthlyTargetsRepository)
            actuals_repo: MetricActualsRepository = tx.get_repository(MetricActualsRepository)

            if req.metric_key is not None:
                definition = await definitions_repo.get_definition(req.metric_key)
                if definition is None:
                    raise MetricNotFound(req.metric_key)
                definitions = [definition]
            else:
                definitions = list(await definitions_repo.list_definitions(include_inactive=False))

            targets = await targets_repo.list_targets(year=req.year, metric_key=req.metric_key)
            actuals = await actuals_repo.list_actuals(year=req.year, metric_key=req.metric_key)

        plan: dict[str, dict[int, Decimal]] = defaultdict(dict)
        for target in targets:
            plan[target.metric_key][target.month] = target.target_value
        actual: dict[str, dict[int, Decimal]] = defaultdict(dict)
        for row in actuals:
            actual[row.metric_key][row.month] = row.value

        return [
            MetricRollupsDTO(
                metric_key=d.key,
                title=d.title,
                unit=d.unit,
                direction=d.direction,
                periods=tuple(compute_rollups(d, plan=plan[d.key], actual=actual[d.key])),
            )
            for d in definitions
        ]


__all__ = ["GetRollupsUseCase"]
