# src/turbodash_kpi/adapters/schemas/http/kpi_schemas.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""HTTP Schemas: KPI engine resources.

Purpose:
    Request bodies and response payloads for the ``/v1/kpi`` and
    ``/v1/admin`` routers.

Layer:
    adapters/schemas/http

Notes:
    Monetary and ratio values are emitted as decimal strings to preserve
    precision; request bodies accept numbers or strings.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import Field

from turbodash_kpi.adapters.schemas.http.base import BaseHTTPSchema
from turbodash_kpi.domain.enums.kpi import (
    ActualSource,
    MetricDirection,
    MetricKind,
    MetricUnit,
    PeriodType,
    RecomputeErrorKind,
    SignalStatus,
)

# --------------------------------------------------------------------------- #
# Recompute / seed                                                            #
# --------------------------------------------------------------------------- #


class RecomputeIssueHTTP(BaseHTTPSchema):
    """One error collected during a recompute run."""

    kind: RecomputeErrorKind
    metric_key: str | None = Field(default=None, description="Affected metric, if any.")
    month: int | None = Field(default=None, description="Affected month (1..12), if any.")
    message: str


class RecomputeResultHTTP(BaseHTTPSchema):
    """Counts and aggregated errors of ``recompute(year)``."""

    success: bool = Field(..., description="True only when no error was collected.")
    year: int
    base_metrics_computed: int = Field(..., ge=0)
    derived_metrics_computed: int = Field(..., ge=0)
    overrides_applied: int = Field(..., ge=0)
    errors: list[RecomputeIssueHTTP] = Field(default_factory=list)


class SeedBaselineResultHTTP(BaseHTTPSchema):
    """Counts reported by the baseline seed loader."""

    metrics_processed: int = Field(..., ge=0)
    targets_upserted: int = Field(..., ge=0)


# --------------------------------------------------------------------------- #
# Registry                                                                    #
# --------------------------------------------------------------------------- #


class MetricDefinitionHTTP(BaseHTTPSchema):
    """Registered metric definition."""

    key: str
    title: str
    kind: MetricKind
    unit: MetricUnit
    period_type: PeriodType
    direction: MetricDirection
    formula: str | None = None
    active: bool


class CreateMetricDefinitionRequestHTTP(BaseHTTPSchema):
    """Body of ``POST /v1/kpi/metrics``."""

    key: str = Field(..., min_length=1, max_length=100, pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")
    title: str = Field(..., min_length=1, max_length=200)
    kind: MetricKind
    unit: MetricUnit = MetricUnit.BRL
    period_type: PeriodType = PeriodType.MONTH_SUM
    direction: MetricDirection = MetricDirection.UP
    formula: str | None = Field(
        default=None,
        description="Formula over metric references, e.g. 'mrr_active / contracts_active'.",
    )
    active: bool = True


class UpdateMetricDefinitionRequestHTTP(BaseHTTPSchema):
    """Body of ``PATCH /v1/kpi/metrics/{key}``; omitted fields stay unchanged."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    unit: MetricUnit | None = None
    period_type: PeriodType | None = None
    direction: MetricDirection | None = None
    formula: str | None = None
    active: bool | None = None


# --------------------------------------------------------------------------- #
# Targets                                                                     #
# --------------------------------------------------------------------------- #


class MonthlyTargetHTTP(BaseHTTPSchema):
    """Planned value of a metric for a month."""

    year: int
    month: int
    metric_key: str
    target_value: str


class TargetItemRequestHTTP(BaseHTTPSchema):
    """One target to write."""

    year: int
    month: int = Field(..., ge=1, le=12)
    metric_key: str = Field(..., min_length=1)
    target_value: Decimal


class UpsertTargetsRequestHTTP(BaseHTTPSchema):
    """Body of ``PUT /v1/kpi/targets``."""

    items: list[TargetItemRequestHTTP] = Field(..., min_length=1)


class UpsertTargetsResultHTTP(BaseHTTPSchema):
    """Number of targets written."""

    upserted: int = Field(..., ge=0)


# --------------------------------------------------------------------------- #
# Overrides                                                                   #
# --------------------------------------------------------------------------- #


class MetricOverrideHTTP(BaseHTTPSchema):
    """Manual override of a metric value."""

    id: UUID
    year: int
    month: int
    metric_key: str
    override_value: str
    note: str | None = None
    updated_by: str | None = None
    updated_at: datetime | None = None


class CreateOverrideRequestHTTP(BaseHTTPSchema):
    """Body of ``POST /v1/kpi/overrides``."""

    year: int
    month: int
    metric_key: str = Field(..., min_length=1)
    override_value: Decimal
    note: str | None = Field(default=None, max_length=1000)
    updated_by: str | None = Field(default=None, max_length=200)


# --------------------------------------------------------------------------- #
# Read path                                                                   #
# --------------------------------------------------------------------------- #


class MetricActualHTTP(BaseHTTPSchema):
    """Persisted value of a metric for a month."""

    year: int
    month: int
    metric_key: str
    value: str
    source: ActualSource
    computed_at: datetime


class PeriodRollupHTTP(BaseHTTPSchema):
    """Plan vs actual for a quarter or YTD."""

    period: str = Field(..., description="Q1, Q2, Q3, Q4, or YTD.")
    plan: str | None = None
    actual: str | None = None
    variance: str | None = None
    variance_pct: str | None = None
    status: SignalStatus


class MetricRollupsHTTP(BaseHTTPSchema):
    """Rollups of one metric for a year."""

    metric_key: str
    title: str
    unit: MetricUnit
    direction: MetricDirection
    periods: list[PeriodRollupHTTP]


# --------------------------------------------------------------------------- #
# Contract status map                                                         #
# --------------------------------------------------------------------------- #


class StatusMappingHTTP(BaseHTTPSchema):
    """Classification of a contract status as active or inactive."""

    id: UUID
    status: str
    is_active: bool


class CreateStatusMappingRequestHTTP(BaseHTTPSchema):
    """Body of ``POST /v1/admin/contract-status-map``."""

    status: str = Field(..., min_length=1, max_length=100)
    is_active: bool = True


class UpdateStatusMappingRequestHTTP(BaseHTTPSchema):
    """Body of ``PATCH /v1/admin/contract-status-map/{id}``."""

    status: str | None = Field(default=None, min_length=1, max_length=100)
    is_active: bool | None = None


__all__ = [
    "CreateMetricDefinitionRequestHTTP",
    "CreateOverrideRequestHTTP",
    "CreateStatusMappingRequestHTTP",
    "MetricActualHTTP",
    "MetricDefinitionHTTP",
    "MetricOverrideHTTP",
    "MetricRollupsHTTP",
    "MonthlyTargetHTTP",
    "PeriodRollupHTTP",
    "RecomputeIssueHTTP",
    "RecomputeResultHTTP",
    "SeedBaselineResultHTTP",
    "StatusMappingHTTP",
    "TargetItemRequestHTTP",
    "UpdateMetricDefinitionRequestHTTP",
    "UpdateStatusMappingRequestHTTP",
    "UpsertTargetsRequestHTTP",
    "UpsertTargetsResultHTTP",
]
