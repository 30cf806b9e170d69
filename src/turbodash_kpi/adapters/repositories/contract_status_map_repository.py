# src/turbodash_kpi/adapters/repositories/contract_status_map_repository.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""SQLAlchemy implementation of the contract status map repository."""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import delete, select

from turbodash_kpi.adapters.repositories.base_repository import BaseRepository
from turbodash_kpi.domain.entities.source_data import ContractStatusMapping, normalize_status
from turbodash_kpi.domain.interfaces.repositories.contract_status_map_repository import (
    ContractStatusMapRepository as ContractStatusMapRepositoryPort,
)
from turbodash_kpi.infrastructure.database.models.kpi import ContractStatusMapModel


class SqlAlchemyContractStatusMapRepository(
    BaseRepository[ContractStatusMapModel],
    ContractStatusMapRepositoryPort,
):
    """SQLAlchemy-backed contract status map repository."""

    async def list_mappings(self) -> Sequence[ContractStatusMapping]:
        stmt = select(ContractStatusMapModel).order_by(ContractStatusMapModel.status.asc())
        return [self._to_domain(row) for row in await self.fetch_all(stmt)]

    async def get_mapping(self, mapping_id: UUID) -> ContractStatusMapping | None:
        row = await self._session.get(ContractStatusMapModel, mapping_id)
        return self._to_domain(row) if row is not None else None

    async def get_by_status(self, status: str) -> ContractStatusMapping | None:
        row = await self.fetch_optional(
            select(ContractStatusMapModel).where(
                ContractStatusMapModel.status == normalize_status(status)
            )
        )
        return self._to_domain(row) if row is not None else None

    async def create_mapping(self, *, status: str, is_active: bool) -> ContractStatusMapping:
        row = ContractStatusMapModel(status=normalize_status(status), is_active=is_active)
        self._session.add(row)
        await self._session.flush()
        return self._to_domain(row)

    async def update_mapping(
        self,
        mapping_id: UUID,
        *,
        status: str | None = None,
        is_active: bool | None = None,
    ) -> ContractStatusMapping | None:
        row = await self._session.get(ContractStatusMapModel, mapping_id)
        if row is None:
            return None
        if status is not None:
            row.status = normalize_status(status)
        if is_active is not None:
            row.is_active = is_active
        await self._session.flush()
        return self._to_domain(row)

    async def delete_mapping(self, mapping_id: UUID) -> bool:
        result = await self._session.execute(
            delete(ContractStatusMapModel).where(ContractStatusMapModel.id == mapping_id)
        )
        return bool(result.rowcount)

    @staticmethod
    def _to_domain(row: ContractStatusMapModel) -> ContractStatusMapping:
        return ContractStatusMapping(id=row.id, status=row.status, is_active=bool(row.is_active))


__all__ = ["SqlAlchemyContractStatusMapRepository"]
