# src/turbodash_kpi/domain/services/rollups.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Quarter and YTD rollups of monthly plan and actual values.

Purpose:
    Combine monthly values into quarter/YTD values according to the metric's
    unit and period type, compare actuals with plan, and classify the result
    with a traffic-light signal.

Layer:
    domain/services

Notes:
    - PCT metrics average the available months.
    - ``month_end`` metrics take the value of the period's last month.
    - ``month_sum`` metrics sum the available months.
    - YTD ends at the last month with an actual value, or December when no
      actuals exist; plan and actual use the same window.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Final

from turbodash_kpi.domain.entities.metric import MONTHS, MetricDefinition
from turbodash_kpi.domain.enums.kpi import MetricDirection, MetricUnit, PeriodType, SignalStatus
from turbodash_kpi.domain.services.formula import DECIMAL_ZERO

__all__ = [
    "QUARTERS",
    "PeriodRollup",
    "SignalTolerance",
    "compute_period_value",
    "compute_rollups",
    "compute_signal_status",
]

QUARTERS: Final[Mapping[str, tuple[int, ...]]] = {
    "Q1": (1, 2, 3),
    "Q2": (4, 5, 6),
    "Q3": (7, 8, 9),
    "Q4": (10, 11, 12),
}

_HUNDRED: Final[Decimal] = Decimal("100")


@dataclass(frozen=True, slots=True)
class SignalTolerance:
    """Relative deviation thresholds for yellow and red signals."""

    yellow: Decimal
    red: Decimal


DEFAULT_TOLERANCE: Final[SignalTolerance] = SignalTolerance(Decimal("0.05"), Decimal("0.10"))
PCT_TOLERANCE: Final[SignalTolerance] = SignalTolerance(Decimal("0.02"), Decimal("0.04"))


@dataclass(frozen=True, slots=True)
class PeriodRollup:
    """Plan vs actual for one period (``Q1``..``Q4`` or ``YTD``)."""

    period: str
    plan: Decimal | None
    actual: Decimal | None
    variance: Decimal | None
    variance_pct: Decimal | None
    status: SignalStatus


def compute_period_value(
    values: Mapping[int, Decimal],
    months: Sequence[int],
    *,
    unit: MetricUnit,
    period_type: PeriodType,
) -> Decimal | None:
    """Combine the monthly ``values`` of ``months`` into a single period value.

    Returns:
        The period value, or None when no month of the period has a value
        (or, for ``month_end``, when the last month has none).
    """
    available = [values[m] for m in months if m in values]
    if not available:
        return None
    if unit is MetricUnit.PCT:
        return sum(available, DECIMAL_ZERO) / Decimal(len(available))
    if period_type is PeriodType.MONTH_END:
        return values.get(months[-1])
    return sum(available, DECIMAL_ZERO)


def compute_signal_status(
    actual: Decimal | None,
    plan: Decimal | None,
    *,
    direction: MetricDirection,
    unit: MetricUnit = MetricUnit.BRL,
    tolerance: SignalTolerance | None = None,
) -> SignalStatus:
    """Classify ``actual`` against ``plan`` as green/yellow/red (gray when unknown)."""
    if actual is None or plan is None or plan == DECIMAL_ZERO:
        return SignalStatus.GRAY

    tol = tolerance or (PCT_TOLERANCE if unit is MetricUnit.PCT else DEFAULT_TOLERANCE)
    ratio = actual / plan
    one = Decimal("1")

    if direction is MetricDirection.UP:
        if ratio >= one:
            return SignalStatus.GREEN
        return SignalStatus.YELLOW if ratio >= one - tol.yellow else SignalStatus.RED
    if direction is MetricDirection.DOWN:
        if ratio <= one:
            return SignalStatus.GREEN
        return SignalStatus.YELLOW if ratio <= one + tol.yellow else SignalStatus.RED

    diff = abs(ratio - one)
    if diff <= tol.yellow:
        return SignalStatus.GREEN
    return SignalStatus.YELLOW if diff <= tol.red else SignalStatus.RED


def _variance(
    actual: Decimal | None, plan: Decimal | None
) -> tuple[Decimal | None, Decimal | None]:
    if actual is None or plan is None:
        return None, None
    variance = actual - plan
    if plan == DECIMAL_ZERO:
        return variance, None
    return variance, variance / plan * _HUNDRED


def compute_rollups(
    definition: MetricDefinition,
    *,
    plan: Mapping[int, Decimal],
    actual: Mapping[int, Decimal],
) -> list[PeriodRollup]:
    """Return Q1..Q4 and YTD rollups of a metric's plan and actuals.

    Args:
        definition: Metric definition supplying unit, period type, and direction.
        plan: Monthly targets keyed by month (1..12).
        actual: Monthly actuals keyed by month (1..12).
    """
    periods: list[tuple[str, tuple[int, ...]]] = list(QUARTERS.items())
    last_actual = max((m for m in actual if m in MONTHS), default=12)
    periods.append(("YTD", tuple(range(1, last_actual + 1))))

    rollups: list[PeriodRollup] = []
    for name, months in periods:
        plan_value = compute_period_value(
            plan, months, unit=definition.unit, period_type=definition.period_type
        )
        actual_value = compute_period_value(
            actual, months, unit=definition.unit, period_type=definition.period_type
        )
        variance, variance_pct = _variance(actual_value, plan_value)
        rollups.append(
            PeriodRollup(
                period=name,
                plan=plan_value,
                actual=actual_value,
                variance=variance,
                variance_pct=variance_pct,
                status=compute_signal_status(
                    actual_value,
                    plan_value,
                    direction=definition.direction,
                    unit=definition.unit,
                ),
            )
        )
    return rollups
