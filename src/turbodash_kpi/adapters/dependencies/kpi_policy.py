# src/turbodash_kpi/adapters/dependencies/kpi_policy.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""KPI engine policy dependency.

Purpose:
    Expose the configuration values the KPI use cases take as constructor
    arguments (supported year range, fallback active statuses) without letting
    the application layer read Settings.

Layer:
    adapters/dependencies
"""

from __future__ import annotations

from dataclasses import dataclass

from turbodash_kpi.config.settings import Settings, get_settings


@dataclass(frozen=True, slots=True)
class KpiPolicy:
    """Configuration subset consumed by the KPI use cases."""

    min_year: int
    max_year: int
    default_active_statuses: tuple[str, ...]

    @classmethod
    def from_settings(cls, settings: Settings) -> KpiPolicy:
        return cls(
            min_year=settings.kpi_min_year,
            max_year=settings.kpi_max_year,
            default_active_statuses=tuple(settings.kpi_default_active_statuses),
        )


def get_kpi_policy() -> KpiPolicy:
    """FastAPI dependency returning the policy derived from cached settings."""
    return KpiPolicy.from_settings(get_settings())


__all__ = ["KpiPolicy", "get_kpi_policy"]
