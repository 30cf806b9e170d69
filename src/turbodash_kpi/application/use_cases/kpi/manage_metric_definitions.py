# src/turbodash_kpi/application/use_cases/kpi/manage_metric_definitions.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Use cases: CRUD on metric definitions.

Purpose:
    Maintain the metric registry from the admin surface.

Layer:
    application/use_cases/kpi

Notes:
    - Formulas are parsed on create and update; a malformed formula raises
      FormulaSyntaxError and nothing is written.
    - References to unknown metrics are accepted here and reported as
      configuration errors by the next recompute.
    - A metric referenced by another formula or by an override cannot be
      deleted. Deleting a metric also removes its monthly targets.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace

from turbodash_kpi.application.schemas.dto.kpi import (
    CreateMetricDefinitionRequestDTO,
    UpdateMetricDefinitionRequestDTO,
)
from turbodash_kpi.application.uow import UnitOfWork, run_in_uow
from turbodash_kpi.domain.entities.metric import MetricDefinition
from turbodash_kpi.domain.exceptions.kpi import (
    ConfigurationError,
    DuplicateMetricError,
    MetricInUseError,
    MetricNotFound,
)
from turbodash_kpi.domain.interfaces.repositories.metric_overrides_repository import (
    MetricOverridesRepository,
)
from turbodash_kpi.domain.interfaces.repositories.metric_registry_repository import (
    MetricDefinitionsRepository,
    MonthlyTargetsRepository,
)
from turbodash_kpi.domain.services.formula import parse_formula, references

logger = logging.getLogger(__name__)


def _validated(definition: MetricDefinition) -> MetricDefinition:
    if definition.formula is not None:
        parse_formula(definition.formula.strip())
        definition = replace(definition, formula=definition.formula.strip())
    return definition


def _referencing_formulas(
    metric_key: str, definitions: Sequence[MetricDefinition]
) -> list[str]:
    """Return keys of derived definitions whose formula references ``metric_key``."""
    referencing: list[str] = []
    for definition in definitions:
        if not definition.is_derived or definition.key == metric_key:
            continue
        try:
            node = parse_formula(definition.formula or "")
        except ConfigurationError:
            continue
        if any(ref.key == metric_key for ref in references(node)):
            referencing.append(definition.key)
    return referencing


class ListMetricDefinitionsUseCase:
    """List registered metrics ordered by key."""

    def __init__(self, *, uow: UnitOfWork) -> None:
        self._uow = uow

    async def execute(self, *, include_inactive: bool = True) -> Sequence[MetricDefinition]:
        async with self._uow as tx:
            repo: MetricDefinitionsRepository = tx.get_repository(MetricDefinitionsRepository)
            return await repo.list_definitions(include_inactive=include_inactive)


class CreateMetricDefinitionUseCase:
    """Register a new metric."""

    def __init__(self, *, uow: UnitOfWork) -> None:
        self._uow = uow

    async def execute(self, req: CreateMetricDefinitionRequestDTO) -> MetricDefinition:
        """Validate and insert the definition.

        Raises:
            ValueError: If the kind/formula pairing is invalid.
            FormulaSyntaxError: If the formula does not parse.
            DuplicateMetricError: If the key is already registered.
        """
        definition = _validated(
            MetricDefinition(
                key=req.key.strip(),
                title=req.title,
                kind=req.kind,
                unit=req.unit,
                period_type=req.period_type,
                direction=req.direction,
                formula=req.formula,
                active=req.active,
            )
        )

        async def _create(tx: UnitOfWork) -> MetricDefinition:
            repo: MetricDefinitionsRepository = tx.get_repository(MetricDefinitionsRepository)
            if await repo.get_definition(definition.key) is not None:
                raise DuplicateMetricError(
                    f"Metric {definition.key!r} already exists.",
                    details={"metric_key": definition.key},
                )
            return await repo.create_definition(definition)

        created = await run_in_uow(self._uow, _create)
        logger.info(
            "kpi.metric.created",
            extra={"metric_key": created.key, "kind": created.kind.value},
        )
        return created


class UpdateMetricDefinitionUseCase:
    """Update the mutable fields of a metric."""

    def __init__(self, *, uow: UnitOfWork) -> None:
        self._uow = uow

    async def execute(self, req: UpdateMetricDefinitionRequestDTO) -> MetricDefinition:
        """Apply the partial update.

        Raises:
            MetricNotFound: If the key is not registered.
            ValueError: If the update breaks the kind/formula pairing.
            FormulaSyntaxError: If the new formula does not parse.
        """

        async def _update(tx: UnitOfWork) -> MetricDefinition:
            repo: MetricDefinitionsRepository = tx.get_repository(MetricDefinitionsRepository)
            current = await repo.get_definition(req.key)
            if current is None:
                raise MetricNotFound(req.key)
            changes = {
                name: value
                for name, value in (
                    ("title", req.title),
                    ("unit", req.unit),
                    ("period_type", req.period_type),
                    ("direction", req.direction),
                    ("formula", req.formula),
                    ("active", req.active),
                )
                if value is not None
            }
            return await repo.update_definition(_validated(replace(current, **changes)))

        updated = await run_in_uow(self._uow, _update)
        logger.info("kpi.metric.updated", extra={"metric_key": updated.key})
        return updated


class DeleteMetricDefinitionUseCase:
    """Delete a metric that nothing references."""

    def __init__(self, *, uow: UnitOfWork) -> None:
        self._uow = uow

    async def execute(self, metric_key: str) -> None:
        """Delete the metric and its targets.

        Raises:
            MetricNotFound: If the key is not registered.
            MetricInUseError: If a formula or an override references the metric.
        """

        async def _delete(tx: UnitOfWork) -> None:
            definitions: MetricDefinitionsRepository = tx.get_repository(
                MetricDefinitionsRepository
            )
            overrides: MetricOverridesRepository = tx.get_repository(MetricOverridesRepository)
            targets: MonthlyTargetsRepository = tx.get_repository(MonthlyTargetsRepository)

            if await definitions.get_definition(metric_key) is None:
                raise MetricNotFound(metric_key)
            referenced_by = _referencing_formulas(
                metric_key, await definitions.list_definitions(include_inactive=True)
            )
            override_count = await overrides.count_for_metric(metric_key)
            if referenced_by or override_count:
                raise MetricInUseError(
                    metric_key,
                    referenced_by=referenced_by,
                    override_count=override_count,
                )
            await targets.delete_for_metric(metric_key)
            await definitions.delete_definition(metric_key)

        await run_in_uow(self._uow, _delete)
        logger.info("kpi.metric.deleted", extra={"metric_key": metric_key})


__all__ = [
    "CreateMetricDefinitionUseCase",
    "DeleteMetricDefinitionUseCase",
    "ListMetricDefinitionsUseCase",
    "UpdateMetricDefinitionUseCase",
]
