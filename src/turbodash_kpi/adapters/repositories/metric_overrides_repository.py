# src/turbodash_kpi/adapters/repositories/metric_overrides_repository.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""SQLAlchemy implementation of the metric overrides repository."""

from __future__ import annotations

from collections.abc import Collection, Sequence
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from turbodash_kpi.adapters.repositories.base_repository import BaseRepository
from turbodash_kpi.domain.entities.metric import MetricOverride
from turbodash_kpi.domain.interfaces.repositories.metric_overrides_repository import (
    MetricOverridesRepository as MetricOverridesRepositoryPort,
)
from turbodash_kpi.infrastructure.database.models.kpi import MetricOverrideModel

#: Dialect name -> INSERT construct supporting ON CONFLICT DO UPDATE.
_DIALECT_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


class SqlAlchemyMetricOverridesRepository(
    BaseRepository[MetricOverrideModel],
    MetricOverridesRepositoryPort,
):
    """SQLAlchemy-backed overrides repository with upsert semantics."""

    async def upsert_override(
        self,
        *,
        year: int,
        month: int,
        metric_key: str,
        override_value: Decimal,
        note: str | None,
        updated_by: str | None,
    ) -> MetricOverride:
        now = self.utc_now()
        insert = _DIALECT_INSERTS[self._session.get_bind().dialect.name]
        stmt = insert(MetricOverrideModel).values(
            id=uuid4(),
            year=year,
            month=month,
            metric_key=metric_key,
            override_value=override_value,
            note=note,
            updated_by=updated_by,
            created_at=now,
            updated_at=now,
        )
        # Concurrent creates for the same cell resolve to one row instead of a conflict.
        stmt = stmt.on_conflict_do_update(
            index_elements=[
                MetricOverrideModel.year,
                MetricOverrideModel.month,
                MetricOverrideModel.metric_key,
            ],
            set_={
                "override_value": stmt.excluded.override_value,
                "note": stmt.excluded.note,
                "updated_by": stmt.excluded.updated_by,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        result = await self._session.scalars(
            stmt.returning(MetricOverrideModel),
            execution_options={"populate_existing": True},
        )
        return self._to_domain(result.one())

    async def get_override(self, override_id: UUID) -> MetricOverride | None:
        row = await self._session.get(MetricOverrideModel, override_id)
        return self._to_domain(row) if row is not None else None

    async def delete_override(self, override_id: UUID) -> bool:
        result = await self._session.execute(
            delete(MetricOverrideModel).where(MetricOverrideModel.id == override_id)
        )
        return bool(result.rowcount)

    async def list_overrides(self, *, years: Collection[int]) -> Sequence[MetricOverride]:
        stmt = (
            select(MetricOverrideModel)
            .where(MetricOverrideModel.year.in_(sorted(years)))
            .order_by(
                MetricOverrideModel.year.asc(),
                MetricOverrideModel.month.asc(),
                MetricOverrideModel.metric_key.asc(),
            )
        )
        return [self._to_domain(row) for row in await self.fetch_all(stmt)]

    async def count_for_metric(self, metric_key: str) -> int:
        result = await self._session.execute(
            select(func.count())
            .select_from(MetricOverrideModel)
            .where(MetricOverrideModel.metric_key == metric_key)
        )
        return int(result.scalar_one())

    @staticmethod
    def _to_domain(row: MetricOverrideModel) -> MetricOverride:
        return MetricOverride(
            id=row.id,
            year=row.year,
            month=row.month,
            metric_key=row.metric_key,
            override_value=row.override_value,
            note=row.note,
            updated_by=row.updated_by,
            updated_at=row.updated_at,
        )


__all__ = ["SqlAlchemyMetricOverridesRepository"]
