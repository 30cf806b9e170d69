# src/turbodash_kpi/adapters/repositories/source_data_repository.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""SQLAlchemy implementation of the read-only source data repository."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from decimal import Decimal

from sqlalchemy import select

from turbodash_kpi.adapters.repositories.base_repository import BaseRepository
from turbodash_kpi.domain.entities.source_data import ContractRecord, LedgerEntry
from turbodash_kpi.domain.interfaces.repositories.source_data_repository import (
    SourceDataRepository as SourceDataRepositoryPort,
)
from turbodash_kpi.infrastructure.database.models.kpi import ContractModel, LedgerEntryModel


class SqlAlchemySourceDataRepository(BaseRepository[ContractModel], SourceDataRepositoryPort):
    """Reads contracts and ledger entries."""

    async def list_contracts(self) -> Sequence[ContractRecord]:
        rows = await self.fetch_all(select(ContractModel).order_by(ContractModel.id.asc()))
        return [
            ContractRecord(
                contract_id=row.id,
                client_id=row.client_id,
                status=row.status,
                recurring_value=row.recurring_value or Decimal("0"),
                one_time_value=row.one_time_value or Decimal("0"),
                start_date=row.start_date,
                end_date=row.end_date,
            )
            for row in rows
        ]

    async def list_ledger_entries(self, *, start: date, end: date) -> Sequence[LedgerEntry]:
        stmt = (
            select(LedgerEntryModel)
            .where(LedgerEntryModel.entry_date >= start, LedgerEntryModel.entry_date <= end)
            .order_by(LedgerEntryModel.entry_date.asc(), LedgerEntryModel.id.asc())
        )
        result = await self._session.execute(stmt)
        return [
            LedgerEntry(
                entry_id=row.id,
                entry_date=row.entry_date,
                category=row.category,
                amount=row.amount,
            )
            for row in result.scalars().all()
        ]


__all__ = ["SqlAlchemySourceDataRepository"]
