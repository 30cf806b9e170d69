# src/turbodash_kpi/tasks/cli.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Turbodash KPI CLI: operational commands (recompute, seed, schema).

Commands:
    recompute --year       Recompute and persist every metric actual of a year.
    seed-baseline          Upsert the baseline registry and business-plan targets.
    init-db                Create the KPI tables from the ORM metadata.

Environment:
    DATABASE_URL                  Async SQLAlchemy URL.
    KPI_DEFAULT_ACTIVE_STATUSES   Statuses counted as active when the status map is empty.
"""

from __future__ import annotations

import asyncio
import json

import typer
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

import turbodash_kpi.infrastructure.database.models.kpi  # noqa: F401  (registers tables)
from turbodash_kpi.adapters.uow import SqlAlchemyUnitOfWork
from turbodash_kpi.application.schemas.dto.kpi import RecomputeYearRequestDTO
from turbodash_kpi.application.use_cases.kpi.recompute_year import RecomputeYearUseCase
from turbodash_kpi.application.use_cases.kpi.seed_baseline import SeedBaselineUseCase
from turbodash_kpi.domain.entities.metric import MAX_YEAR, MIN_YEAR
from turbodash_kpi.domain.services.base_metric_computer import DEFAULT_ACTIVE_STATUSES
from turbodash_kpi.infrastructure.database.models.base import Base
from turbodash_kpi.infrastructure.logging.logger import configure_root_logging, get_json_logger

configure_root_logging()
log = get_json_logger(__name__)

app = typer.Typer(add_completion=False, no_args_is_help=True)


def _engine_and_sessionmaker(
    database_url: str,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Create an engine and a session factory bound to ``database_url``."""
    engine = create_async_engine(database_url, pool_pre_ping=True)
    return engine, async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@app.command("recompute")
def recompute(
    year: int = typer.Option(  # noqa: B008
        ..., min=MIN_YEAR, max=MAX_YEAR, help="Year to recompute."
    ),
    database_url: str = typer.Option(..., envvar="DATABASE_URL"),  # noqa: B008
    active_statuses: str = typer.Option(  # noqa: B008
        ",".join(sorted(DEFAULT_ACTIVE_STATUSES)),
        envvar="KPI_DEFAULT_ACTIVE_STATUSES",
        help="Comma-separated statuses counted as active when the status map is empty.",
    ),
) -> None:
    """Recompute a year and print the result as JSON; exits 1 when errors were collected."""
    statuses = [s.strip().lower() for s in active_statuses.split(",") if s.strip()]

    async def _run() -> bool:
        engine, session_factory = _engine_and_sessionmaker(database_url)
        try:
            use_case = RecomputeYearUseCase(
                uow=SqlAlchemyUnitOfWork(session_factory=session_factory),
                default_active_statuses=statuses,
            )
            result = await use_case.execute(RecomputeYearRequestDTO(year=year))
        finally:
            await engine.dispose()

        typer.echo(
            json.dumps(
                {
                    "success": result.success,
                    "year": result.year,
                    "baseMetricsComputed": result.base_metrics_computed,
                    "derivedMetricsComputed": result.derived_metrics_computed,
                    "overridesApplied": result.overrides_applied,
                    "errors": [
                        {
                            "kind": issue.kind.value,
                            "metricKey": issue.metric_key,
                            "month": issue.month,
                            "message": issue.message,
                        }
                        for issue in result.errors
                    ],
                },
                indent=2,
                ensure_ascii=False,
            )
        )
        return result.success

    if not asyncio.run(_run()):
        raise typer.Exit(code=1)


@app.command("seed-baseline")
def seed_baseline(
    database_url: str = typer.Option(..., envvar="DATABASE_URL"),  # noqa: B008
) -> None:
    """Upsert the baseline metric registry and its monthly targets (idempotent)."""

    async def _run() -> None:
        engine, session_factory = _engine_and_sessionmaker(database_url)
        try:
            result = await SeedBaselineUseCase(
                uow=SqlAlchemyUnitOfWork(session_factory=session_factory)
            ).execute()
        finally:
            await engine.dispose()
        typer.echo(
            f"metrics processed: {result.metrics_processed}, "
            f"targets upserted: {result.targets_upserted}"
        )

    asyncio.run(_run())


@app.command("init-db")
def init_db(
    database_url: str = typer.Option(..., envvar="DATABASE_URL"),  # noqa: B008
) -> None:
    """Create every KPI table that does not exist yet."""

    async def _run() -> None:
        engine, _ = _engine_and_sessionmaker(database_url)
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        finally:
            await engine.dispose()
        log.info("init_db.done", extra={"tables": sorted(Base.metadata.tables)})

    asyncio.run(_run())


if __name__ == "__main__":  # pragma: no cover
    app()
