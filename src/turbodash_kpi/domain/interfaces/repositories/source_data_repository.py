# src/turbodash_kpi/domain/interfaces/repositories/source_data_repository.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Read-only access to the raw rows feeding base-metric aggregations."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from typing import Protocol

from turbodash_kpi.domain.entities.source_data import ContractRecord, LedgerEntry


class SourceDataRepository(Protocol):
    """Read interface for contracts and ledger entries."""

    async def list_contracts(self) -> Sequence[ContractRecord]:
        """Return all contracts ordered by identifier."""

    async def list_ledger_entries(self, *, start: date, end: date) -> Sequence[LedgerEntry]:
        """Return ledger entries dated within ``[start, end]``, oldest first."""


__all__ = ["SourceDataRepository"]
