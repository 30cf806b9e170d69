# src/turbodash_kpi/adapters/routers/admin_router.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Admin HTTP router (v1): contract status classification.

Purpose:
    Manage the ContractStatusMap consulted by the base metric computer to
    decide which contract statuses count as active:

        * GET    /v1/admin/contract-status-map
        * POST   /v1/admin/contract-status-map
        * PATCH  /v1/admin/contract-status-map/{mapping_id}
        * DELETE /v1/admin/contract-status-map/{mapping_id}

Layer:
    adapters/routers

Notes:
    Changes take effect on the next recompute; existing actuals are not
    touched.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Request, Response, status
from fastapi.responses import JSONResponse

from turbodash_kpi.adapters.dependencies.kpi_uow import get_uow
from turbodash_kpi.adapters.presenters.kpi_presenter import (
    present_status_mapping,
    present_status_mappings,
)
from turbodash_kpi.adapters.routers.base_router import (
    BaseRouter,
    domain_error_response,
    trace_id_of,
    value_error_response,
)
from turbodash_kpi.adapters.schemas.http.envelopes import SuccessEnvelope
from turbodash_kpi.adapters.schemas.http.kpi_schemas import (
    CreateStatusMappingRequestHTTP,
    StatusMappingHTTP,
    UpdateStatusMappingRequestHTTP,
)
from turbodash_kpi.application.schemas.dto.kpi import (
    CreateStatusMappingRequestDTO,
    UpdateStatusMappingRequestDTO,
)
from turbodash_kpi.application.uow import UnitOfWork
from turbodash_kpi.application.use_cases.kpi.manage_contract_status_map import (
    CreateStatusMappingUseCase,
    DeleteStatusMappingUseCase,
    ListStatusMappingsUseCase,
    UpdateStatusMappingUseCase,
)
from turbodash_kpi.domain.exceptions.kpi import KpiError

router = BaseRouter(version="v1", resource="admin", tags=["Admin"])

UowDep = Annotated[UnitOfWork, Depends(get_uow)]


@router.get(
    "/contract-status-map",
    summary="List contract status classifications",
    response_model=SuccessEnvelope[list[StatusMappingHTTP]],
    responses=BaseRouter.std_error_responses(),
)
async def list_status_mappings(uow: UowDep) -> SuccessEnvelope[list[StatusMappingHTTP]]:
    mappings = await ListStatusMappingsUseCase(uow=uow).execute()
    return present_status_mappings(mappings)


@router.post(
    "/contract-status-map",
    summary="Classify a contract status",
    status_code=status.HTTP_201_CREATED,
    response_model=SuccessEnvelope[StatusMappingHTTP],
    responses=BaseRouter.std_error_responses(),
)
async def create_status_mapping(
    request: Request,
    uow: UowDep,
    body: CreateStatusMappingRequestHTTP,
) -> SuccessEnvelope[StatusMappingHTTP] | JSONResponse:
    trace_id = trace_id_of(request)
    try:
        mapping = await CreateStatusMappingUseCase(uow=uow).execute(
            CreateStatusMappingRequestDTO(status=body.status, is_active=body.is_active)
        )
    except KpiError as exc:
        return domain_error_response(exc, trace_id=trace_id)
    except ValueError as exc:
        return value_error_response(exc, trace_id=trace_id)
    return present_status_mapping(mapping)


@router.patch(
    "/contract-status-map/{mapping_id}",
    summary="Rename a status or flip its active flag",
    response_model=SuccessEnvelope[StatusMappingHTTP],
    responses=BaseRouter.std_error_responses(),
)
async def update_status_mapping(
    request: Request,
    uow: UowDep,
    mapping_id: UUID,
    body: UpdateStatusMappingRequestHTTP,
) -> SuccessEnvelope[StatusMappingHTTP] | JSONResponse:
    trace_id = trace_id_of(request)
    try:
        mapping = await UpdateStatusMappingUseCase(uow=uow).execute(
            UpdateStatusMappingRequestDTO(
                mapping_id=mapping_id, status=body.status, is_active=body.is_active
            )
        )
    except KpiError as exc:
        return domain_error_response(exc, trace_id=trace_id)
    except ValueError as exc:
        return value_error_response(exc, trace_id=trace_id)
    return present_status_mapping(mapping)


@router.delete(
    "/contract-status-map/{mapping_id}",
    summary="Remove a status classification",
    status_code=status.HTTP_204_NO_CONTENT,
    response_model=None,
    responses=BaseRouter.std_error_responses(),
)
async def delete_status_mapping(request: Request, uow: UowDep, mapping_id: UUID) -> Response:
    try:
        await DeleteStatusMappingUseCase(uow=uow).execute(mapping_id)
    except KpiError as exc:
        return domain_error_response(exc, trace_id=trace_id_of(request))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
