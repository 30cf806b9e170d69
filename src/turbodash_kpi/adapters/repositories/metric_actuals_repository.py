# src/turbodash_kpi/adapters/repositories/metric_actuals_repository.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""SQLAlchemy implementation of the metric actuals repository.

Purpose:
    Replace and read the per-year snapshot of metric actuals.

Layer:
    adapters/repositories

Notes:
    ``replace_year`` deletes and inserts inside the caller's transaction and
    flushes, so database failures surface here and are translated into
    ``PersistenceError``. The caller decides whether to commit or roll back.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import SQLAlchemyError

from turbodash_kpi.adapters.repositories.base_repository import BaseRepository
from turbodash_kpi.domain.entities.metric import MetricActual
from turbodash_kpi.domain.enums.kpi import ActualSource
from turbodash_kpi.domain.exceptions.kpi import PersistenceError
from turbodash_kpi.domain.interfaces.repositories.metric_actuals_repository import (
    MetricActualsRepository as MetricActualsRepositoryPort,
)
from turbodash_kpi.infrastructure.database.models.kpi import MetricActualModel


class SqlAlchemyMetricActualsRepository(
    BaseRepository[MetricActualModel],
    MetricActualsRepositoryPort,
):
    """SQLAlchemy-backed actuals repository."""

    async def replace_year(self, year: int, actuals: Sequence[MetricActual]) -> int:
        rows = [
            {
                "year": a.year,
                "month": a.month,
                "metric_key": a.metric_key,
                "value": a.value,
                "source": a.source.value,
                "computed_at": a.computed_at,
            }
            for a in actuals
        ]
        try:
            await self._session.execute(
                delete(MetricActualModel).where(MetricActualModel.year == year)
            )
            if rows:
                await self._session.execute(insert(MetricActualModel), rows)
            await self._session.flush()
        except SQLAlchemyError as exc:
            raise PersistenceError(
                f"Failed to persist metric actuals for {year}: {exc.__class__.__name__}",
                details={"year": year, "rows": len(rows), "reason": str(exc)},
            ) from exc
        return len(rows)

    async def list_actuals(
        self,
        *,
        year: int,
        month: int | None = None,
        metric_key: str | None = None,
    ) -> Sequence[MetricActual]:
        stmt = (
            select(MetricActualModel)
            .where(MetricActualModel.year == year)
            .order_by(MetricActualModel.month.asc(), MetricActualModel.metric_key.asc())
        )
        if month is not None:
            stmt = stmt.where(MetricActualModel.month == month)
        if metric_key is not None:
            stmt = stmt.where(MetricActualModel.metric_key == metric_key)
        return [
            MetricActual(
                year=row.year,
                month=row.month,
                metric_key=row.metric_key,
                value=row.value,
                source=ActualSource(row.source),
                computed_at=row.computed_at,
            )
            for row in await self.fetch_all(stmt)
        ]


__all__ = ["SqlAlchemyMetricActualsRepository"]
