# src/turbodash_kpi/application/use_cases/kpi/manage_contract_status_map.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Use cases: CRUD on the contract-status classification table.

Notes:
    Statuses are normalized (trimmed, lower-cased) before they are stored or
    compared, so ``" Ativo "`` and ``"ativo"`` are the same status.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from uuid import UUID

from turbodash_kpi.application.schemas.dto.kpi import (
    CreateStatusMappingRequestDTO,
    UpdateStatusMappingRequestDTO,
)
from turbodash_kpi.application.uow import UnitOfWork, run_in_uow
from turbodash_kpi.domain.entities.source_data import ContractStatusMapping, normalize_status
from turbodash_kpi.domain.exceptions.kpi import DuplicateStatusError, StatusMappingNotFound
from turbodash_kpi.domain.interfaces.repositories.contract_status_map_repository import (
    ContractStatusMapRepository,
)

logger = logging.getLogger(__name__)


def _normalized(status: str) -> str:
    normalized = normalize_status(status)
    if not normalized:
        raise ValueError("status must be non-empty")
    return normalized


def _not_found(mapping_id: UUID) -> StatusMappingNotFound:
    return StatusMappingNotFound(
        f"Contract status mapping {mapping_id} not found.",
        details={"mapping_id": str(mapping_id)},
    )


def _duplicate(status: str) -> DuplicateStatusError:
    return DuplicateStatusError(
        f"Contract status {status!r} is already mapped.",
        details={"status": status},
    )


class CreateStatusMappingUseCase:
    """Classify a new contract status as active or inactive."""

    def __init__(self, *, uow: UnitOfWork) -> None:
        self._uow = uow

    async def execute(self, req: CreateStatusMappingRequestDTO) -> ContractStatusMapping:
        """Create the mapping.

        Raises:
            ValueError: If the status is blank.
            DuplicateStatusError: If the status is already mapped.
        """
        status = _normalized(req.status)

        async def _create(tx: UnitOfWork) -> ContractStatusMapping:
            repo: ContractStatusMapRepository = tx.get_repository(ContractStatusMapRepository)
            if await repo.get_by_status(status) is not None:
                raise _duplicate(status)
            return await repo.create_mapping(status=status, is_active=req.is_active)

        mapping = await run_in_uow(self._uow, _create)
        logger.info(
            "kpi.status_map.created",
            extra={"status": mapping.status, "is_active": mapping.is_active},
        )
        return mapping


class UpdateStatusMappingUseCase:
    """Rename a mapped status and/or flip its active flag."""

    def __init__(self, *, uow: UnitOfWork) -> None:
        self._uow = uow

    async def execute(self, req: UpdateStatusMappingRequestDTO) -> ContractStatusMapping:
        """Apply the partial update.

        Raises:
            StatusMappingNotFound: If no mapping has ``req.mapping_id``.
            DuplicateStatusError: If the new status belongs to another mapping.
        """
        status = _normalized(req.status) if req.status is not None else None

        async def _update(tx: UnitOfWork) -> ContractStatusMapping:
            repo: ContractStatusMapRepository = tx.get_repository(ContractStatusMapRepository)
            if status is not None:
                existing = await repo.get_by_status(status)
                if existing is not None and existing.id != req.mapping_id:
                    raise _duplicate(status)
            updated = await repo.update_mapping(
                req.mapping_id, status=status, is_active=req.is_active
            )
            if updated is None:
                raise _not_found(req.mapping_id)
            return updated

        mapping = await run_in_uow(self._uow, _update)
        logger.info(
            "kpi.status_map.updated",
            extra={"status": mapping.status, "is_active": mapping.is_active},
        )
        return mapping


class DeleteStatusMappingUseCase:
    """Remove a status classification."""

    def __init__(self, *, uow: UnitOfWork) -> None:
        self._uow = uow

    async def execute(self, mapping_id: UUID) -> None:
        """Delete the mapping.

        Raises:
            StatusMappingNotFound: If no mapping has ``mapping_id``.
        """

        async def _delete(tx: UnitOfWork) -> None:
            repo: ContractStatusMapRepository = tx.get_repository(ContractStatusMapRepository)
            if not await repo.delete_mapping(mapping_id):
                raise _not_found(mapping_id)

        await run_in_uow(self._uow, _delete)
        logger.info("kpi.status_map.deleted", extra={"mapping_id": str(mapping_id)})


class ListStatusMappingsUseCase:
    """List every status classification, ordered by status."""

    def __init__(self, *, uow: UnitOfWork) -> None:
        self._uow = uow

    async def execute(self) -> Sequence[ContractStatusMapping]:
        async with self._uow as tx:
            repo: ContractStatusMapRepository = tx.get_repository(ContractStatusMapRepository)
            return await repo.list_mappings()


__all__ = [
    "CreateStatusMappingUseCase",
    "DeleteStatusMappingUseCase",
    "ListStatusMappingsUseCase",
    "UpdateStatusMappingUseCase",
]
