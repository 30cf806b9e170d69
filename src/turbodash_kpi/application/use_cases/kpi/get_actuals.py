# src/turbodash_kpi/application/use_cases/kpi/get_actuals.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Use case: Read persisted metric actuals.

Read-only; never triggers a computation.
"""

from __future__ import annotations

from collections.abc import Sequence

from turbodash_kpi.application.schemas.dto.kpi import GetActualsRequestDTO
from turbodash_kpi.application.uow import UnitOfWork
from turbodash_kpi.domain.entities.metric import MetricActual, validate_month
from turbodash_kpi.domain.interfaces.repositories.metric_actuals_repository import (
    MetricActualsRepository,
)


class GetActualsUseCase:
    """Return the last recompute snapshot of a year, optionally filtered."""

    def __init__(self, *, uow: UnitOfWork) -> None:
        self._uow = uow

    async def execute(self, req: GetActualsRequestDTO) -> Sequence[MetricActual]:
        """Read actuals ordered by month, then metric key.

        Raises:
            ValueError: If ``req.month`` is outside 1..12.
        """
        if req.month is not None:
            validate_month(req.month)
        async with self._uow as tx:
            repo: MetricActualsRepository = tx.get_repository(MetricActualsRepository)
            return await repo.list_actuals(
                year=req.year, month=req.month, metric_key=req.metric_key
            )


__all__ = ["GetActualsUseCase"]
