# src/turbodash_kpi/adapters/presenters/kpi_presenter.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""KPI engine HTTP presenter.

Purpose:
    Convert domain entities and application DTOs into HTTP-facing schemas
    wrapped in canonical envelopes, suitable for FastAPI routers.

Layer:
    adapters/presenters

Notes:
    - Routers own the FastAPI wiring; presenters own payload shapes.
    - Decimals are rendered in fixed-point notation (no exponent).
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from turbodash_kpi.adapters.schemas.http.envelopes import SuccessEnvelope
from turbodash_kpi.adapters.schemas.http.kpi_schemas import (
    MetricActualHTTP,
    MetricDefinitionHTTP,
    MetricOverrideHTTP,
    MetricRollupsHTTP,
    MonthlyTargetHTTP,
    PeriodRollupHTTP,
    RecomputeIssueHTTP,
    RecomputeResultHTTP,
    SeedBaselineResultHTTP,
    StatusMappingHTTP,
    UpsertTargetsResultHTTP,
)
from turbodash_kpi.application.schemas.dto.kpi import MetricRollupsDTO, SeedBaselineResultDTO
from turbodash_kpi.domain.entities.metric import (
    MetricActual,
    MetricDefinition,
    MetricOverride,
    MonthlyTarget,
)
from turbodash_kpi.domain.entities.recompute import RecomputeResult
from turbodash_kpi.domain.entities.source_data import ContractStatusMapping
from turbodash_kpi.domain.services.rollups import PeriodRollup


def _decimal_to_str(value: Decimal | None) -> str | None:
    """Convert a Decimal (or None) into a JSON-safe string (or None)."""
    if value is None:
        return None
    return format(value, "f")


def _decimal_required(value: Decimal) -> str:
    return format(value, "f")


# --------------------------------------------------------------------------- #
# Mappers                                                                     #
# --------------------------------------------------------------------------- #


def map_definition(definition: MetricDefinition) -> MetricDefinitionHTTP:
    """Convert a domain MetricDefinition into its HTTP schema."""
    return MetricDefinitionHTTP(
        key=definition.key,
        title=definition.title,
        kind=definition.kind,
        unit=definition.unit,
        period_type=definition.period_type,
        direction=definition.direction,
        formula=definition.formula,
        active=definition.active,
    )


def map_override(override: MetricOverride) -> MetricOverrideHTTP:
    """Convert a domain MetricOverride into its HTTP schema."""
    return MetricOverrideHTTP(
        id=override.id,
        year=override.year,
        month=override.month,
        metric_key=override.metric_key,
        override_value=_decimal_required(override.override_value),
        note=override.note,
        updated_by=override.updated_by,
        updated_at=override.updated_at,
    )


def map_status_mapping(mapping: ContractStatusMapping) -> StatusMappingHTTP:
    """Convert a domain ContractStatusMapping into its HTTP schema."""
    return StatusMappingHTTP(id=mapping.id, status=mapping.status, is_active=mapping.is_active)


def _map_period(rollup: PeriodRollup) -> PeriodRollupHTTP:
    return PeriodRollupHTTP(
        period=rollup.period,
        plan=_decimal_to_str(rollup.plan),
        actual=_decimal_to_str(rollup.actual),
        variance=_decimal_to_str(rollup.variance),
        variance_pct=_decimal_to_str(rollup.variance_pct),
        status=rollup.status,
    )


# --------------------------------------------------------------------------- #
# Envelopes                                                                   #
# --------------------------------------------------------------------------- #


def present_recompute_result(result: RecomputeResult) -> SuccessEnvelope[RecomputeResultHTTP]:
    """Present a recompute outcome; ``success`` is False whenever errors exist."""
    return SuccessEnvelope[RecomputeResultHTTP](
        data=RecomputeResultHTTP(
            success=result.success,
            year=result.year,
            base_metrics_computed=result.base_metrics_computed,
            derived_metrics_computed=result.derived_metrics_computed,
            overrides_applied=result.overrides_applied,
            errors=[
                RecomputeIssueHTTP(
                    kind=issue.kind,
                    metric_key=issue.metric_key,
                    month=issue.month,
                    message=issue.message,
                )
                for issue in result.errors
            ],
        )
    )


def present_seed_result(result: SeedBaselineResultDTO) -> SuccessEnvelope[SeedBaselineResultHTTP]:
    return SuccessEnvelope[SeedBaselineResultHTTP](
        data=SeedBaselineResultHTTP(
            metrics_processed=result.metrics_processed,
            targets_upserted=result.targets_upserted,
        )
    )


def present_definition(definition: MetricDefinition) -> SuccessEnvelope[MetricDefinitionHTTP]:
    return SuccessEnvelope[MetricDefinitionHTTP](data=map_definition(definition))


def present_definitions(
    definitions: Iterable[MetricDefinition],
) -> SuccessEnvelope[list[MetricDefinitionHTTP]]:
    return SuccessEnvelope[list[MetricDefinitionHTTP]](
        data=[map_definition(d) for d in definitions]
    )


def present_targets(targets: Iterable[MonthlyTarget]) -> SuccessEnvelope[list[MonthlyTargetHTTP]]:
    return SuccessEnvelope[list[MonthlyTargetHTTP]](
        data=[
            MonthlyTargetHTTP(
                year=t.year,
                month=t.month,
                metric_key=t.metric_key,
                target_value=_decimal_required(t.target_value),
            )
            for t in targets
        ]
    )


def present_targets_upserted(count: int) -> SuccessEnvelope[UpsertTargetsResultHTTP]:
    return SuccessEnvelope[UpsertTargetsResultHTTP](data=UpsertTargetsResultHTTP(upserted=count))


def present_override(override: MetricOverride) -> SuccessEnvelope[MetricOverrideHTTP]:
    return SuccessEnvelope[MetricOverrideHTTP](data=map_override(override))


def present_overrides(
    overrides: Iterable[MetricOverride],
) -> SuccessEnvelope[list[MetricOverrideHTTP]]:
    return SuccessEnvelope[list[MetricOverrideHTTP]](data=[map_override(o) for o in overrides])


def present_actuals(actuals: Iterable[MetricActual]) -> SuccessEnvelope[list[MetricActualHTTP]]:
    return SuccessEnvelope[list[MetricActualHTTP]](
        data=[
            MetricActualHTTP(
                year=a.year,
                month=a.month,
                metric_key=a.metric_key,
                value=_decimal_required(a.value),
                source=a.source,
                computed_at=a.computed_at,
            )
            for a in actuals
        ]
    )


def present_rollups(
    rollups: Iterable[MetricRollupsDTO],
) -> SuccessEnvelope[list[MetricRollupsHTTP]]:
    """Present per-metric Q1..Q4 and YTD rollups."""
    return SuccessEnvelope[list[MetricRollupsHTTP]](
        data=[
            MetricRollupsHTTP(
                metric_key=r.metric_key,
                title=r.title,
                unit=r.unit,
                direction=r.direction,
                periods=[_map_period(p) for p in r.periods],
            )
            for r in rollups
        ]
    )


def present_status_mapping(
    mapping: ContractStatusMapping,
) -> SuccessEnvelope[StatusMappingHTTP]:
    return SuccessEnvelope[StatusMappingHTTP](data=map_status_mapping(mapping))


def present_status_mappings(
    mappings: Iterable[ContractStatusMapping],
) -> SuccessEnvelope[list[StatusMappingHTTP]]:
    return SuccessEnvelope[list[StatusMappingHTTP]](
        data=[map_status_mapping(m) for m in mappings]
    )


__all__ = [
    "map_definition",
    "map_override",
    "map_status_mapping",
    "present_actuals",
    "present_definition",
    "present_definitions",
    "present_override",
    "present_overrides",
    "present_recompute_result",
    "present_rollups",
    "present_seed_result",
    "present_status_mapping",
    "present_status_mappings",
    "present_targets",
    "present_targets_upserted",
]
