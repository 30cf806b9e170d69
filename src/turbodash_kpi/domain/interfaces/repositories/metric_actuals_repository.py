# src/turbodash_kpi/domain/interfaces/repositories/metric_actuals_repository.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Metric actuals repository interface."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from turbodash_kpi.domain.entities.metric import MetricActual


class MetricActualsRepository(Protocol):
    """Persistence interface for the recompute snapshot of metric actuals."""

    async def replace_year(self, year: int, actuals: Sequence[MetricActual]) -> int:
        """Replace every actual of ``year`` with ``actuals``.

        The delete and the insert run in the caller's transaction, so the
        previous snapshot stays visible until the caller commits.

        Returns:
            Number of rows inserted.

        Raises:
            PersistenceError: If the database rejects the write.
        """

    async def list_actuals(
        self,
        *,
        year: int,
        month: int | None = None,
        metric_key: str | None = None,
    ) -> Sequence[MetricActual]:
        """Return actuals of ``year`` ordered by month, then metric key."""


__all__ = ["MetricActualsRepository"]
