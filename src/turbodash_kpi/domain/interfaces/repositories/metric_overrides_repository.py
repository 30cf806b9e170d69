# src/turbodash_kpi/domain/interfaces/repositories/metric_overrides_repository.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Metric overrides repository interface."""

from __future__ import annotations

from collections.abc import Collection, Sequence
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from turbodash_kpi.domain.entities.metric import MetricOverride


class MetricOverridesRepository(Protocol):
    """Persistence interface for manual overrides.

    Overrides are unique per ``(year, month, metric_key)``; writes are upserts
    on that triple and never create a competing row.
    """

    async def upsert_override(
        self,
        *,
        year: int,
        month: int,
        metric_key: str,
        override_value: Decimal,
        note: str | None,
        updated_by: str | None,
    ) -> MetricOverride:
        """Create the override for the triple, or update the existing one in place."""

    async def get_override(self, override_id: UUID) -> MetricOverride | None:
        """Return a single override by identity, or None when missing."""

    async def delete_override(self, override_id: UUID) -> bool:
        """Delete an override. Returns False when it did not exist."""

    async def list_overrides(self, *, years: Collection[int]) -> Sequence[MetricOverride]:
        """Return overrides of ``years`` ordered by year, month, then metric key."""

    async def count_for_metric(self, metric_key: str) -> int:
        """Return the number of overrides referencing ``metric_key``."""


__all__ = ["MetricOverridesRepository"]
