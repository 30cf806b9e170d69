# src/turbodash_kpi/adapters/repositories/metric_registry_repository.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""SQLAlchemy implementations of the metric registry repositories.

Purpose:
    Persist metric definitions and monthly targets, mapping ORM rows to domain
    entities.

Layer:
    adapters/repositories

Notes:
    Upserts are implemented as select-then-update/insert inside the caller's
    transaction so they behave the same on PostgreSQL and SQLite; the unique
    constraints on the natural keys remain the final guard.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import delete, select

from turbodash_kpi.adapters.repositories.base_repository import BaseRepository
from turbodash_kpi.domain.entities.metric import MetricDefinition, MonthlyTarget
from turbodash_kpi.domain.enums.kpi import MetricDirection, MetricKind, MetricUnit, PeriodType
from turbodash_kpi.domain.exceptions.kpi import DuplicateMetricError, MetricNotFound
from turbodash_kpi.domain.interfaces.repositories.metric_registry_repository import (
    MetricDefinitionsRepository as MetricDefinitionsRepositoryPort,
)
from turbodash_kpi.domain.interfaces.repositories.metric_registry_repository import (
    MonthlyTargetsRepository as MonthlyTargetsRepositoryPort,
)
from turbodash_kpi.infrastructure.database.models.kpi import (
    MetricDefinitionModel,
    MonthlyTargetModel,
)


class SqlAlchemyMetricDefinitionsRepository(
    BaseRepository[MetricDefinitionModel],
    MetricDefinitionsRepositoryPort,
):
    """SQLAlchemy-backed metric definitions repository."""

    async def list_definitions(
        self,
        *,
        include_inactive: bool = True,
    ) -> Sequence[MetricDefinition]:
        stmt = select(MetricDefinitionModel).order_by(MetricDefinitionModel.key.asc())
        if not include_inactive:
            stmt = stmt.where(MetricDefinitionModel.active.is_(True))
        return [self._to_domain(row) for row in await self.fetch_all(stmt)]

    async def get_definition(self, metric_key: str) -> MetricDefinition | None:
        row = await self._session.get(MetricDefinitionModel, metric_key)
        return self._to_domain(row) if row is not None else None

    async def create_definition(self, definition: MetricDefinition) -> MetricDefinition:
        if await self._session.get(MetricDefinitionModel, definition.key) is not None:
            raise DuplicateMetricError(
                f"Metric {definition.key!r} already exists.",
                details={"metric_key": definition.key},
            )
        row = MetricDefinitionModel(key=definition.key)
        self._apply(row, definition)
        self._session.add(row)
        await self._session.flush()
        return self._to_domain(row)

    async def update_definition(self, definition: MetricDefinition) -> MetricDefinition:
        row = await self._session.get(MetricDefinitionModel, definition.key)
        if row is None:
            raise MetricNotFound(definition.key)
        self._apply(row, definition)
        await self._session.flush()
        return self._to_domain(row)

    async def upsert_definition(self, definition: MetricDefinition) -> bool:
        row = await self._session.get(MetricDefinitionModel, definition.key)
        created = row is None
        if row is None:
            row = MetricDefinitionModel(key=definition.key)
            self._session.add(row)
        self._apply(row, definition)
        await self._session.flush()
        return created

    async def delete_definition(self, metric_key: str) -> bool:
        result = await self._session.execute(
            delete(MetricDefinitionModel).where(MetricDefinitionModel.key == metric_key)
        )
        return bool(result.rowcount)

    @staticmethod
    def _apply(row: MetricDefinitionModel, definition: MetricDefinition) -> None:
        row.title = definition.title
        row.kind = definition.kind.value
        row.unit = definition.unit.value
        row.period_type = definition.period_type.value
        row.direction = definition.direction.value
        row.formula = definition.formula
        row.active = definition.active

    @staticmethod
    def _to_domain(row: MetricDefinitionModel) -> MetricDefinition:
        return MetricDefinition(
            key=row.key,
            title=row.title,
            kind=MetricKind(row.kind),
            unit=MetricUnit(row.unit),
            period_type=PeriodType(row.period_type),
            direction=MetricDirection(row.direction),
            formula=row.formula,
            active=bool(row.active),
        )


class SqlAlchemyMonthlyTargetsRepository(
    BaseRepository[MonthlyTargetModel],
    MonthlyTargetsRepositoryPort,
):
    """SQLAlchemy-backed monthly targets repository."""

    async def upsert_targets(self, targets: Sequence[MonthlyTarget]) -> int:
        written = 0
        for target in targets:
            row = await self.fetch_optional(
                select(MonthlyTargetModel).where(
                    MonthlyTargetModel.year == target.year,
                    MonthlyTargetModel.month == target.month,
                    MonthlyTargetModel.metric_key == target.metric_key,
                )
            )
            if row is None:
                self._session.add(
                    MonthlyTargetModel(
                        year=target.year,
                        month=target.month,
                        metric_key=target.metric_key,
                        target_value=target.target_value,
                    )
                )
            else:
                row.target_value = target.target_value
            written += 1
        await self._session.flush()
        return written

    async def list_targets(
        self,
        *,
        year: int,
        metric_key: str | None = None,
    ) -> Sequence[MonthlyTarget]:
        stmt = (
            select(MonthlyTargetModel)
            .where(MonthlyTargetModel.year == year)
            .order_by(MonthlyTargetModel.metric_key.asc(), MonthlyTargetModel.month.asc())
        )
        if metric_key is not None:
            stmt = stmt.where(MonthlyTargetModel.metric_key == metric_key)
        return [
            MonthlyTarget(
                year=row.year,
                month=row.month,
                metric_key=row.metric_key,
                target_value=row.target_value,
            )
            for row in await self.fetch_all(stmt)
        ]

    async def delete_for_metric(self, metric_key: str) -> int:
        result = await self._session.execute(
            delete(MonthlyTargetModel).where(MonthlyTargetModel.metric_key == metric_key)
        )
        return int(result.rowcount or 0)


__all__ = ["SqlAlchemyMetricDefinitionsRepository", "SqlAlchemyMonthlyTargetsRepository"]
