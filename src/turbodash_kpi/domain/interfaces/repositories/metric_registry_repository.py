# src/turbodash_kpi/domain/interfaces/repositories/metric_registry_repository.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Metric registry repository interfaces.

Purpose:
    Persistence contracts for metric definitions and monthly targets.

Layer:
    domain/interfaces/repositories
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from turbodash_kpi.domain.entities.metric import MetricDefinition, MonthlyTarget


class MetricDefinitionsRepository(Protocol):
    """Persistence interface for metric definitions."""

    async def list_definitions(
        self,
        *,
        include_inactive: bool = True,
    ) -> Sequence[MetricDefinition]:
        """Return definitions ordered by key, optionally only active ones."""

    async def get_definition(self, metric_key: str) -> MetricDefinition | None:
        """Return the definition for ``metric_key``, or None when missing."""

    async def create_definition(self, definition: MetricDefinition) -> MetricDefinition:
        """Insert a new definition.

        Raises:
            DuplicateMetricError: If a definition with the same key exists.
        """

    async def update_definition(self, definition: MetricDefinition) -> MetricDefinition:
        """Replace the stored fields of an existing definition.

        Raises:
            MetricNotFound: If no definition exists for the key.
        """

    async def upsert_definition(self, definition: MetricDefinition) -> bool:
        """Insert or update a definition by key. Returns True when inserted."""

    async def delete_definition(self, metric_key: str) -> bool:
        """Delete a definition. Returns False when it did not exist."""


class MonthlyTargetsRepository(Protocol):
    """Persistence interface for monthly plan targets."""

    async def upsert_targets(self, targets: Sequence[MonthlyTarget]) -> int:
        """Insert or update targets keyed by ``(year, month, metric_key)``.

        Returns:
            Number of targets written (inserted or updated).
        """

    async def list_targets(
        self,
        *,
        year: int,
        metric_key: str | None = None,
    ) -> Sequence[MonthlyTarget]:
        """Return targets of ``year`` ordered by metric key, then month."""

    async def delete_for_metric(self, metric_key: str) -> int:
        """Delete every target of ``metric_key``. Returns the number deleted."""


__all__ = ["MetricDefinitionsRepository", "MonthlyTargetsRepository"]
