# src/turbodash_kpi/application/use_cases/kpi/manage_overrides.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Use cases: Create, delete, and list manual overrides.

Notes:
    Override writes never trigger a recompute; they take effect on the next
    ``recompute(year)`` of the override's year (or the following year for
    December overrides, through the look-back month).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from uuid import UUID

from turbodash_kpi.application.schemas.dto.kpi import CreateOverrideRequestDTO
from turbodash_kpi.application.uow import UnitOfWork, run_in_uow
from turbodash_kpi.domain.entities.metric import (
    MAX_YEAR,
    MIN_YEAR,
    MONTHS,
    MetricOverride,
    validate_year,
)
from turbodash_kpi.domain.exceptions.kpi import (
    InvalidOverrideError,
    MetricNotFound,
    OverrideNotFound,
)
from turbodash_kpi.domain.interfaces.repositories.metric_overrides_repository import (
    MetricOverridesRepository,
)
from turbodash_kpi.domain.interfaces.repositories.metric_registry_repository import (
    MetricDefinitionsRepository,
)

logger = logging.getLogger(__name__)


class CreateOverrideUseCase:
    """Create the override of ``(year, month, metric_key)`` or replace its value."""

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

    async def execute(self, req: CreateOverrideRequestDTO) -> MetricOverride:
        """Validate and upsert the override.

        Raises:
            InvalidOverrideError: If the month or year is out of range.
            MetricNotFound: If the metric does not exist or is inactive.
        """
        if req.month not in MONTHS:
            raise InvalidOverrideError(
                f"Override month must be between 1 and 12, got {req.month}.",
                details={"month": req.month},
            )
        try:
            validate_year(req.year, min_year=self._min_year, max_year=self._max_year)
        except ValueError as exc:
            raise InvalidOverrideError(str(exc), details={"year": req.year}) from exc

        async def _create(tx: UnitOfWork) -> MetricOverride:
            definitions: MetricDefinitionsRepository = tx.get_repository(
                MetricDefinitionsRepository
            )
            definition = await definitions.get_definition(req.metric_key)
            if definition is None:
                raise MetricNotFound(req.metric_key)
            if not definition.active:
                raise MetricNotFound(req.metric_key, reason="is inactive")

            overrides: MetricOverridesRepository = tx.get_repository(MetricOverridesRepository)
            return await overrides.upsert_override(
                year=req.year,
                month=req.month,
                metric_key=req.metric_key,
                override_value=req.override_value,
                note=req.note,
                updated_by=req.updated_by,
            )

        override = await run_in_uow(self._uow, _create)
        logger.info(
            "kpi.override.upserted",
            extra={
                "override_id": str(override.id),
                "year": override.year,
                "month": override.month,
                "metric_key": override.metric_key,
            },
        )
        return override


class DeleteOverrideUseCase:
    """Delete an override; the next recompute reverts to the computed value."""

    def __init__(self, *, uow: UnitOfWork) -> None:
        self._uow = uow

    async def execute(self, override_id: UUID) -> None:
        """Delete the override.

        Raises:
            OverrideNotFound: If no override has ``override_id``.
        """

        async def _delete(tx: UnitOfWork) -> None:
            overrides: MetricOverridesRepository = tx.get_repository(MetricOverridesRepository)
            if not await overrides.delete_override(override_id):
                raise OverrideNotFound(
                    f"Override {override_id} not found.",
                    details={"override_id": str(override_id)},
                )

        await run_in_uow(self._uow, _delete)
        logger.info("kpi.override.deleted", extra={"override_id": str(override_id)})


class ListOverridesUseCase:
    """List the overrides of a year, ordered by month then metric key."""

    def __init__(self, *, uow: UnitOfWork) -> None:
        self._uow = uow

    async def execute(self, year: int) -> Sequence[MetricOverride]:
        """Return the overrides of ``year``."""
        async with self._uow as tx:
            overrides: MetricOverridesRepository = tx.get_repository(MetricOverridesRepository)
            return await overrides.list_overrides(years=(year,))


__all__ = ["CreateOverrideUseCase", "DeleteOverrideUseCase", "ListOverridesUseCase"]
