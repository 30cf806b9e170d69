# src/turbodash_kpi/domain/interfaces/repositories/contract_status_map_repository.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Contract status map repository interface."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol
from uuid import UUID

from turbodash_kpi.domain.entities.source_data import ContractStatusMapping


class ContractStatusMapRepository(Protocol):
    """Persistence interface for the contract-status classification table.

    Statuses are stored normalized (trimmed, lower-cased) and are unique.
    """

    async def list_mappings(self) -> Sequence[ContractStatusMapping]:
        """Return all mappings ordered by status."""

    async def get_mapping(self, mapping_id: UUID) -> ContractStatusMapping | None:
        """Return a mapping by identity, or None when missing."""

    async def get_by_status(self, status: str) -> ContractStatusMapping | None:
        """Return the mapping of a (normalized) status, or None when missing."""

    async def create_mapping(self, *, status: str, is_active: bool) -> ContractStatusMapping:
        """Insert a mapping for a new status."""

    async def update_mapping(
        self,
        mapping_id: UUID,
        *,
        status: str | None = None,
        is_active: bool | None = None,
    ) -> ContractStatusMapping | None:
        """Update the given fields of a mapping. Returns None when missing."""

    async def delete_mapping(self, mapping_id: UUID) -> bool:
        """Delete a mapping. Returns False when it did not exist."""


__all__ = ["ContractStatusMapRepository"]
