# src/turbodash_kpi/domain/exceptions/kpi.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""KPI engine domain exceptions.

Purpose:
    Define the error taxonomy of the metric computation pipeline and of the
    registry/store CRUD operations.

Layer:
    domain/exceptions

Notes:
    Pipeline errors (configuration, aggregation, dependency) are raised inside
    the computation services and captured per ``(metric_key, month)`` into the
    recompute result; they never abort a run. ``PersistenceError`` is raised
    by repositories when the snapshot write fails. CRUD errors propagate to the
    caller and are mapped to HTTP status codes by the routers.
"""

from __future__ import annotations

from turbodash_kpi.domain.exceptions.base import DomainError


class KpiError(DomainError):
    """Base class for all KPI engine errors."""

    code = "KPI_ERROR"


# --------------------------------------------------------------------------- #
# Computation pipeline                                                        #
# --------------------------------------------------------------------------- #


class ConfigurationError(KpiError):
    """Registry misconfiguration: cyclic formulas or unknown/inactive references."""

    code = "KPI_CONFIGURATION_ERROR"


class FormulaSyntaxError(ConfigurationError):
    """A derived-metric formula could not be parsed."""

    code = "KPI_FORMULA_SYNTAX_ERROR"

    def __init__(self, formula: str, reason: str, *, position: int | None = None) -> None:
        """Initialize with the offending formula and a parse diagnostic.

        Args:
            formula: Raw formula text.
            reason: Human-readable reason the formula was rejected.
            position: Zero-based character offset of the failure, if known.
        """
        where = f" at position {position}" if position is not None else ""
        super().__init__(
            f"Invalid formula {formula!r}{where}: {reason}",
            details={"formula": formula, "reason": reason, "position": position},
        )
        self.formula = formula
        self.reason = reason
        self.position = position


class AggregationError(KpiError):
    """A base metric's aggregation failed for a month."""

    code = "KPI_AGGREGATION_ERROR"


class DependencyError(KpiError):
    """A derived metric's input is missing or itself failed."""

    code = "KPI_DEPENDENCY_ERROR"


class PersistenceError(KpiError):
    """Writing the metric actuals snapshot failed."""

    code = "KPI_PERSISTENCE_ERROR"


# --------------------------------------------------------------------------- #
# Registry / store CRUD                                                       #
# --------------------------------------------------------------------------- #


class MetricNotFound(KpiError):
    """A metric key does not exist, or is inactive where an active one is required."""

    code = "KPI_METRIC_NOT_FOUND"

    def __init__(self, metric_key: str, *, reason: str = "not found") -> None:
        """Initialize with the missing key."""
        super().__init__(
            f"Metric {metric_key!r} {reason}.",
            details={"metric_key": metric_key},
        )
        self.metric_key = metric_key


class DuplicateMetricError(KpiError):
    """A metric definition with the same key already exists."""

    code = "KPI_METRIC_ALREADY_EXISTS"


class MetricInUseError(KpiError):
    """A metric cannot be deleted because formulas or overrides reference it."""

    code = "KPI_METRIC_IN_USE"

    def __init__(self, metric_key: str, *, referenced_by: list[str], override_count: int) -> None:
        """Initialize with the referencing formulas and override count."""
        super().__init__(
            f"Metric {metric_key!r} is still referenced and cannot be deleted.",
            details={
                "metric_key": metric_key,
                "referenced_by": referenced_by,
                "override_count": override_count,
            },
        )


class InvalidOverrideError(KpiError):
    """An override request violates its constraints (e.g. month outside 1..12)."""

    code = "KPI_INVALID_OVERRIDE"


class OverrideNotFound(KpiError):
    """No override exists with the requested identifier."""

    code = "KPI_OVERRIDE_NOT_FOUND"


class DuplicateStatusError(KpiError):
    """A contract-status mapping already exists for the status."""

    code = "KPI_STATUS_ALREADY_MAPPED"


class StatusMappingNotFound(KpiError):
    """No contract-status mapping exists with the requested identifier."""

    code = "KPI_STATUS_MAPPING_NOT_FOUND"


__all__ = [
    "AggregationError",
    "ConfigurationError",
    "DependencyError",
    "DuplicateMetricError",
    "DuplicateStatusError",
    "FormulaSyntaxError",
    "InvalidOverrideError",
    "KpiError",
    "MetricInUseError",
    "MetricNotFound",
    "OverrideNotFound",
    "PersistenceError",
    "StatusMappingNotFound",
]
