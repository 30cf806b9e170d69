# src/turbodash_kpi/adapters/routers/kpi_router.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""KPI engine HTTP router (v1).

Purpose:
    Expose the metric computation engine and its stores:

        * POST   /v1/kpi/recompute?year=
        * POST   /v1/kpi/seed-baseline
        * GET    /v1/kpi/overrides?year=
        * POST   /v1/kpi/overrides
        * DELETE /v1/kpi/overrides/{override_id}
        * GET    /v1/kpi/actuals?year=&month=&metricKey=
        * GET    /v1/kpi/targets?year=&metricKey=
        * PUT    /v1/kpi/targets
        * GET    /v1/kpi/metrics?includeInactive=
        * POST   /v1/kpi/metrics
        * PATCH  /v1/kpi/metrics/{key}
        * DELETE /v1/kpi/metrics/{key}
        * GET    /v1/kpi/rollups?year=&metricKey=

Layer:
    adapters/routers

Notes:
    - Bodies use canonical envelopes (SuccessEnvelope / ErrorEnvelope).
    - Domain exceptions are mapped to ErrorEnvelope responses; anything else
      propagates to the global 500 handler.
    - A recompute with per-metric errors still answers 200 with
      ``success: false``; clients inspect ``errors``.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Query, Request, Response, status
from fastapi.responses import JSONResponse

from turbodash_kpi.adapters.dependencies.kpi_policy import KpiPolicy, get_kpi_policy
from turbodash_kpi.adapters.dependencies.kpi_uow import get_uow
from turbodash_kpi.adapters.presenters.kpi_presenter import (
    present_actuals,
    present_definition,
    present_definitions,
    present_override,
    present_overrides,
    present_recompute_result,
    present_rollups,
    present_seed_result,
    present_targets,
    present_targets_upserted,
)
from turbodash_kpi.adapters.routers.base_router import (
    BaseRouter,
    domain_error_response,
    trace_id_of,
    value_error_response,
)
from turbodash_kpi.adapters.schemas.http.envelopes import SuccessEnvelope
from turbodash_kpi.adapters.schemas.http.kpi_schemas import (
    CreateMetricDefinitionRequestHTTP,
    CreateOverrideRequestHTTP,
    MetricActualHTTP,
    MetricDefinitionHTTP,
    MetricOverrideHTTP,
    MetricRollupsHTTP,
    MonthlyTargetHTTP,
    RecomputeResultHTTP,
    SeedBaselineResultHTTP,
    UpdateMetricDefinitionRequestHTTP,
    UpsertTargetsRequestHTTP,
    UpsertTargetsResultHTTP,
)
from turbodash_kpi.application.schemas.dto.kpi import (
    CreateMetricDefinitionRequestDTO,
    CreateOverrideRequestDTO,
    GetActualsRequestDTO,
    GetRollupsRequestDTO,
    RecomputeYearRequestDTO,
    UpdateMetricDefinitionRequestDTO,
    UpsertTargetItemDTO,
)
from turbodash_kpi.application.uow import UnitOfWork
from turbodash_kpi.application.use_cases.kpi.get_actuals import GetActualsUseCase
from turbodash_kpi.application.use_cases.kpi.get_rollups import GetRollupsUseCase
from turbodash_kpi.application.use_cases.kpi.manage_metric_definitions import (
    CreateMetricDefinitionUseCase,
    DeleteMetricDefinitionUseCase,
    ListMetricDefinitionsUseCase,
    UpdateMetricDefinitionUseCase,
)
from turbodash_kpi.application.use_cases.kpi.manage_overrides import (
    CreateOverrideUseCase,
    DeleteOverrideUseCase,
    ListOverridesUseCase,
)
from turbodash_kpi.application.use_cases.kpi.manage_targets import (
    ListTargetsUseCase,
    UpsertTargetsUseCase,
)
from turbodash_kpi.application.use_cases.kpi.recompute_year import RecomputeYearUseCase
from turbodash_kpi.application.use_cases.kpi.seed_baseline import SeedBaselineUseCase
from turbodash_kpi.domain.exceptions.kpi import KpiError
from turbodash_kpi.infrastructure.logging.logger import get_json_logger

logger = get_json_logger(__name__)

router = BaseRouter(version="v1", resource="kpi", tags=["KPI"])

UowDep = Annotated[UnitOfWork, Depends(get_uow)]
PolicyDep = Annotated[KpiPolicy, Depends(get_kpi_policy)]
MetricKeyQuery = Annotated[
    str | None,
    Query(alias="metricKey", description="Restrict the result to one metric key."),
]


# --------------------------------------------------------------------------- #
# Recompute / seed                                                            #
# --------------------------------------------------------------------------- #


@router.post(
    "/recompute",
    summary="Recompute all metric actuals of a year",
    response_model=SuccessEnvelope[RecomputeResultHTTP],
    responses=BaseRouter.std_error_responses(),
)
async def recompute(
    request: Request,
    uow: UowDep,
    policy: PolicyDep,
    year: Annotated[int, Query(description="Year to recompute, e.g. 2026.")],
) -> SuccessEnvelope[RecomputeResultHTTP] | JSONResponse:
    """Recompute base and derived metrics for every month of ``year``."""
    trace_id = trace_id_of(request)
    use_case = RecomputeYearUseCase(
        uow=uow,
        default_active_statuses=policy.default_active_statuses,
        min_year=policy.min_year,
        max_year=policy.max_year,
    )
    try:
        result = await use_case.execute(RecomputeYearRequestDTO(year=year))
    except ValueError as exc:
        return value_error_response(exc, trace_id=trace_id)

    logger.info(
        "kpi.api.recompute.success",
        extra={"year": year, "success": result.success, "trace_id": trace_id},
    )
    return present_recompute_result(result)


@router.post(
    "/seed-baseline",
    summary="Load the baseline registry and business-plan targets",
    response_model=SuccessEnvelope[SeedBaselineResultHTTP],
    responses=BaseRouter.std_error_responses(),
)
async def seed_baseline(
    request: Request, uow: UowDep
) -> SuccessEnvelope[SeedBaselineResultHTTP] | JSONResponse:
    """Upsert the built-in metric definitions and their monthly targets."""
    try:
        result = await SeedBaselineUseCase(uow=uow).execute()
    except KpiError as exc:
        return domain_error_response(exc, trace_id=trace_id_of(request))
    return present_seed_result(result)


# --------------------------------------------------------------------------- #
# Overrides                                                                   #
# --------------------------------------------------------------------------- #


@router.get(
    "/overrides",
    summary="List the manual overrides of a year",
    response_model=SuccessEnvelope[list[MetricOverrideHTTP]],
    responses=BaseRouter.std_error_responses(),
)
async def list_overrides(
    uow: UowDep,
    year: Annotated[int, Query(description="Override year.")],
) -> SuccessEnvelope[list[MetricOverrideHTTP]]:
    overrides = await ListOverridesUseCase(uow=uow).execute(year)
    return present_overrides(overrides)


@router.post(
    "/overrides",
    summary="Create or replace a manual override",
    status_code=status.HTTP_201_CREATED,
    response_model=SuccessEnvelope[MetricOverrideHTTP],
    responses=BaseRouter.std_error_responses(),
)
async def create_override(
    request: Request,
    uow: UowDep,
    policy: PolicyDep,
    body: CreateOverrideRequestHTTP,
) -> SuccessEnvelope[MetricOverrideHTTP] | JSONResponse:
    """Upsert the override of ``(year, month, metricKey)``; takes effect on the next recompute."""
    use_case = CreateOverrideUseCase(uow=uow, min_year=policy.min_year, max_year=policy.max_year)
    try:
        override = await use_case.execute(
            CreateOverrideRequestDTO(
                year=body.year,
                month=body.month,
                metric_key=body.metric_key,
                override_value=body.override_value,
                note=body.note,
                updated_by=body.updated_by,
            )
        )
    except KpiError as exc:
        return domain_error_response(exc, trace_id=trace_id_of(request))
    return present_override(override)


@router.delete(
    "/overrides/{override_id}",
    summary="Delete a manual override",
    status_code=status.HTTP_204_NO_CONTENT,
    response_model=None,
    responses=BaseRouter.std_error_responses(),
)
async def delete_override(request: Request, uow: UowDep, override_id: UUID) -> Response:
    try:
        await DeleteOverrideUseCase(uow=uow).execute(override_id)
    except KpiError as exc:
        return domain_error_response(exc, trace_id=trace_id_of(request))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --------------------------------------------------------------------------- #
# Actuals / targets / rollups                                                 #
# --------------------------------------------------------------------------- #


@router.get(
    "/actuals",
    summary="Read persisted metric actuals",
    response_model=SuccessEnvelope[list[MetricActualHTTP]],
    responses=BaseRouter.std_error_responses(),
)
async def get_actuals(
    uow: UowDep,
    year: Annotated[int, Query(description="Actuals year.")],
    metric_key: MetricKeyQuery = None,
    month: Annotated[int | None, Query(ge=1, le=12, description="Month (1..12).")] = None,
) -> SuccessEnvelope[list[MetricActualHTTP]]:
    actuals = await GetActualsUseCase(uow=uow).execute(
        GetActualsRequestDTO(year=year, month=month, metric_key=metric_key)
    )
    return present_actuals(actuals)


@router.get(
    "/targets",
    summary="Read monthly targets",
    response_model=SuccessEnvelope[list[MonthlyTargetHTTP]],
    responses=BaseRouter.std_error_responses(),
)
async def list_targets(
    uow: UowDep,
    year: Annotated[int, Query(description="Target year.")],
    metric_key: MetricKeyQuery = None,
) -> SuccessEnvelope[list[MonthlyTargetHTTP]]:
    targets = await ListTargetsUseCase(uow=uow).execute(year=year, metric_key=metric_key)
    return present_targets(targets)


@router.put(
    "/targets",
    summary="Create or replace monthly targets",
    response_model=SuccessEnvelope[UpsertTargetsResultHTTP],
    responses=BaseRouter.std_error_responses(),
)
async def upsert_targets(
    request: Request,
    uow: UowDep,
    policy: PolicyDep,
    body: UpsertTargetsRequestHTTP,
) -> SuccessEnvelope[UpsertTargetsResultHTTP] | JSONResponse:
    trace_id = trace_id_of(request)
    use_case = UpsertTargetsUseCase(uow=uow, min_year=policy.min_year, max_year=policy.max_year)
    items = [
        UpsertTargetItemDTO(
            year=item.year,
            month=item.month,
            metric_key=item.metric_key,
            target_value=item.target_value,
        )
        for item in body.items
    ]
    try:
        count = await use_case.execute(items)
    except KpiError as exc:
        return domain_error_response(exc, trace_id=trace_id)
    except ValueError as exc:
        return value_error_response(exc, trace_id=trace_id)
    return present_targets_upserted(count)


@router.get(
    "/rollups",
    summary="Quarter and YTD rollups of plan vs actual",
    response_model=SuccessEnvelope[list[MetricRollupsHTTP]],
    responses=BaseRouter.std_error_responses(),
)
async def get_rollups(
    request: Request,
    uow: UowDep,
    year: Annotated[int, Query(description="Rollup year.")],
    metric_key: MetricKeyQuery = None,
) -> SuccessEnvelope[list[MetricRollupsHTTP]] | JSONResponse:
    try:
        rollups = await GetRollupsUseCase(uow=uow).execute(
            GetRollupsRequestDTO(year=year, metric_key=metric_key)
        )
    except KpiError as exc:
        return domain_error_response(exc, trace_id=trace_id_of(request))
    return present_rollups(rollups)


# --------------------------------------------------------------------------- #
# Metric registry                                                             #
# --------------------------------------------------------------------------- #


@router.get(
    "/metrics",
    summary="List metric definitions",
    response_model=SuccessEnvelope[list[MetricDefinitionHTTP]],
    responses=BaseRouter.std_error_responses(),
)
async def list_metrics(
    uow: UowDep,
    include_inactive: Annotated[
        bool, Query(alias="includeInactive", description="Include inactive metrics.")
    ] = True,
) -> SuccessEnvelope[list[MetricDefinitionHTTP]]:
    definitions = await ListMetricDefinitionsUseCase(uow=uow).execute(
        include_inactive=include_inactive
    )
    return present_definitions(definitions)


@router.post(
    "/metrics",
    summary="Register a metric definition",
    status_code=status.HTTP_201_CREATED,
    response_model=SuccessEnvelope[MetricDefinitionHTTP],
    responses=BaseRouter.std_error_responses(),
)
async def create_metric(
    request: Request,
    uow: UowDep,
    body: CreateMetricDefinitionRequestHTTP,
) -> SuccessEnvelope[MetricDefinitionHTTP] | JSONResponse:
    trace_id = trace_id_of(request)
    try:
        definition = await CreateMetricDefinitionUseCase(uow=uow).execute(
            CreateMetricDefinitionRequestDTO(
                key=body.key,
                title=body.title,
                kind=body.kind,
                unit=body.unit,
                period_type=body.period_type,
                direction=body.direction,
                formula=body.formula,
                active=body.active,
            )
        )
    except KpiError as exc:
        return domain_error_response(exc, trace_id=trace_id)
    except ValueError as exc:
        return value_error_response(exc, trace_id=trace_id)
    return present_definition(definition)


@router.patch(
    "/metrics/{key}",
    summary="Update a metric definition",
    response_model=SuccessEnvelope[MetricDefinitionHTTP],
    responses=BaseRouter.std_error_responses(),
)
async def update_metric(
    request: Request,
    uow: UowDep,
    key: str,
    body: UpdateMetricDefinitionRequestHTTP,
) -> SuccessEnvelope[MetricDefinitionHTTP] | JSONResponse:
    trace_id = trace_id_of(request)
    try:
        definition = await UpdateMetricDefinitionUseCase(uow=uow).execute(
            UpdateMetricDefinitionRequestDTO(
                key=key,
                title=body.title,
                unit=body.unit,
                period_type=body.period_type,
                direction=body.direction,
                formula=body.formula,
                active=body.active,
            )
        )
    except KpiError as exc:
        return domain_error_response(exc, trace_id=trace_id)
    except ValueError as exc:
        return value_error_response(exc, trace_id=trace_id)
    return present_definition(definition)


@router.delete(
    "/metrics/{key}",
    summary="Delete an unreferenced metric definition and its targets",
    status_code=status.HTTP_204_NO_CONTENT,
    response_model=None,
    responses=BaseRouter.std_error_responses(),
)
async def delete_metric(request: Request, uow: UowDep, key: str) -> Response:
    try:
        await DeleteMetricDefinitionUseCase(uow=uow).execute(key)
    except KpiError as exc:
        return domain_error_response(exc, trace_id=trace_id_of(request))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
