# src/turbodash_kpi/application/schemas/dto/kpi.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Application DTOs for KPI engine flows.

Purpose:
    Provide application-layer request/response DTOs used by the KPI use
    cases. These DTOs are transport-agnostic and are mapped to HTTP schemas by
    presenters.

Layer:
    application/schemas/dto
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from turbodash_kpi.domain.enums.kpi import MetricDirection, MetricKind, MetricUnit, PeriodType
from turbodash_kpi.domain.services.rollups import PeriodRollup

# --------------------------------------------------------------------------- #
# Recompute / seed                                                            #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class RecomputeYearRequestDTO:
    """Request DTO for a full-year recompute."""

    year: int


@dataclass(frozen=True, slots=True)
class SeedBaselineResultDTO:
    """Counts reported by the baseline seed loader."""

    metrics_processed: int
    targets_upserted: int


# --------------------------------------------------------------------------- #
# Registry                                                                    #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class CreateMetricDefinitionRequestDTO:
    """Request DTO for registering a metric definition."""

    key: str
    title: str
    kind: MetricKind
    unit: MetricUnit = MetricUnit.BRL
    period_type: PeriodType = PeriodType.MONTH_SUM
    direction: MetricDirection = MetricDirection.UP
    formula: str | None = None
    active: bool = True


@dataclass(frozen=True, slots=True)
class UpdateMetricDefinitionRequestDTO:
    """Partial update of a metric definition; None fields stay unchanged.

    The kind of a metric is immutable.
    """

    key: str
    title: str | None = None
    unit: MetricUnit | None = None
    period_type: PeriodType | None = None
    direction: MetricDirection | None = None
    formula: str | None = None
    active: bool | None = None


@dataclass(frozen=True, slots=True)
class UpsertTargetItemDTO:
    """One monthly target to write."""

    year: int
    month: int
    metric_key: str
    target_value: Decimal


# --------------------------------------------------------------------------- #
# Overrides / status map                                                      #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class CreateOverrideRequestDTO:
    """Request DTO for creating (upserting) a manual override."""

    year: int
    month: int
    metric_key: str
    override_value: Decimal
    note: str | None = None
    updated_by: str | None = None


@dataclass(frozen=True, slots=True)
class CreateStatusMappingRequestDTO:
    """Request DTO for classifying a contract status."""

    status: str
    is_active: bool


@dataclass(frozen=True, slots=True)
class UpdateStatusMappingRequestDTO:
    """Partial update of a status mapping; None fields stay unchanged."""

    mapping_id: UUID
    status: str | None = None
    is_active: bool | None = None


# --------------------------------------------------------------------------- #
# Read path                                                                   #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class GetActualsRequestDTO:
    """Filters for reading persisted actuals."""

    year: int
    month: int | None = None
    metric_key: str | None = None


@dataclass(frozen=True, slots=True)
class GetRollupsRequestDTO:
    """Filters for reading quarter/YTD rollups."""

    year: int
    metric_key: str | None = None


@dataclass(frozen=True, slots=True)
class MetricRollupsDTO:
    """Rollups of one metric for a year."""

    metric_key: str
    title: str
    unit: MetricUnit
    direction: MetricDirection
    periods: tuple[PeriodRollup, ...]


__all__ = [
    "CreateMetricDefinitionRequestDTO",
    "CreateOverrideRequestDTO",
    "CreateStatusMappingRequestDTO",
    "GetActualsRequestDTO",
    "GetRollupsRequestDTO",
    "MetricRollupsDTO",
    "RecomputeYearRequestDTO",
    "SeedBaselineResultDTO",
    "UpdateMetricDefinitionRequestDTO",
    "UpdateStatusMappingRequestDTO",
    "UpsertTargetItemDTO",
]
