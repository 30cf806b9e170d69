# tests/unit/domain/services/test_rollups.py
from __future__ import annotations

from decimal import Decimal

import pytest

from turbodash_kpi.domain.entities.metric import MetricDefinition
from turbodash_kpi.domain.enums.kpi import (
    MetricDirection,
    MetricKind,
    MetricUnit,
    PeriodType,
    SignalStatus,
)
from turbodash_kpi.domain.services.rollups import (
    compute_period_value,
    compute_rollups,
    compute_signal_status,
)

D = Decimal


def test_month_sum_adds_available_months() -> None:
    values = {1: D("10"), 3: D("5")}

    assert compute_period_value(
        values, (1, 2, 3), unit=MetricUnit.BRL, period_type=PeriodType.MONTH_SUM
    ) == D("15")


def test_month_end_takes_last_month_of_period() -> None:
    values = {1: D("10"), 2: D("20"), 3: D("30")}

    assert compute_period_value(
        values, (1, 2, 3), unit=MetricUnit.BRL, period_type=PeriodType.MONTH_END
    ) == D("30")
    assert (
        compute_period_value(
            {1: D("10")}, (1, 2, 3), unit=MetricUnit.BRL, period_type=PeriodType.MONTH_END
        )
        is None
    )


def test_pct_metrics_average_available_months() -> None:
    values = {1: D("0.10"), 2: D("0.20")}

    assert compute_period_value(
        values, (1, 2, 3), unit=MetricUnit.PCT, period_type=PeriodType.MONTH_END
    ) == D("0.15")


def test_empty_period_has_no_value() -> None:
    assert (
        compute_period_value({}, (1, 2, 3), unit=MetricUnit.BRL, period_type=PeriodType.MONTH_SUM)
        is None
    )


@pytest.mark.parametrize(
    ("actual", "plan", "direction", "unit", "expected"),
    [
        ("100", "100", MetricDirection.UP, MetricUnit.BRL, SignalStatus.GREEN),
        ("96", "100", MetricDirection.UP, MetricUnit.BRL, SignalStatus.YELLOW),
        ("90", "100", MetricDirection.UP, MetricUnit.BRL, SignalStatus.RED),
        ("80", "100", MetricDirection.DOWN, MetricUnit.BRL, SignalStatus.GREEN),
        ("103", "100", MetricDirection.DOWN, MetricUnit.BRL, SignalStatus.YELLOW),
        ("120", "100", MetricDirection.DOWN, MetricUnit.BRL, SignalStatus.RED),
        ("103", "100", MetricDirection.FLAT, MetricUnit.BRL, SignalStatus.GREEN),
        ("93", "100", MetricDirection.FLAT, MetricUnit.BRL, SignalStatus.YELLOW),
        ("120", "100", MetricDirection.FLAT, MetricUnit.BRL, SignalStatus.RED),
        ("0.99", "1", MetricDirection.UP, MetricUnit.PCT, SignalStatus.YELLOW),
        ("0.97", "1", MetricDirection.UP, MetricUnit.PCT, SignalStatus.RED),
    ],
)
def test_signal_status(
    actual: str,
    plan: str,
    direction: MetricDirection,
    unit: MetricUnit,
    expected: SignalStatus,
) -> None:
    assert compute_signal_status(D(actual), D(plan), direction=direction, unit=unit) is expected


@pytest.mark.parametrize(("actual", "plan"), [(None, D("1")), (D("1"), None), (D("1"), D("0"))])
def test_signal_is_gray_without_comparable_values(
    actual: Decimal | None, plan: Decimal | None
) -> None:
    assert compute_signal_status(actual, plan, direction=MetricDirection.UP) is SignalStatus.GRAY


def test_rollups_cover_quarters_and_ytd_up_to_last_actual() -> None:
    definition = MetricDefinition(
        key="sales_mrr",
        title="Vendas MRR",
        kind=MetricKind.BASE,
        unit=MetricUnit.BRL,
        period_type=PeriodType.MONTH_SUM,
        direction=MetricDirection.UP,
    )
    plan = {m: D("100") for m in range(1, 13)}
    actual = {1: D("110"), 2: D("90"), 3: D("100"), 4: D("100")}

    rollups = {r.period: r for r in compute_rollups(definition, plan=plan, actual=actual)}

    assert list(rollups) == ["Q1", "Q2", "Q3", "Q4", "YTD"]

    q1 = rollups["Q1"]
    assert (q1.plan, q1.actual, q1.variance, q1.variance_pct) == (D("300"), D("300"), 0, 0)
    assert q1.status is SignalStatus.GREEN

    q2 = rollups["Q2"]
    assert q2.actual == D("100")
    assert q2.status is SignalStatus.RED

    q3 = rollups["Q3"]
    assert q3.actual is None
    assert q3.variance is None
    assert q3.status is SignalStatus.GRAY

    ytd = rollups["YTD"]
    assert ytd.plan == D("400")
    assert ytd.actual == D("400")


def test_ytd_spans_the_year_without_actuals() -> None:
    definition = MetricDefinition(key="k", title="k", kind=MetricKind.BASE)
    plan = {m: D("1") for m in range(1, 13)}

    ytd = compute_rollups(definition, plan=plan, actual={})[-1]

    assert ytd.period == "YTD"
    assert ytd.plan == D("12")
    assert ytd.actual is None


def test_variance_pct_is_relative_to_plan() -> None:
    definition = MetricDefinition(key="k", title="k", kind=MetricKind.BASE)

    q1 = compute_rollups(definition, plan={1: D("200")}, actual={1: D("150")})[0]

    assert q1.variance == D("-50")
    assert q1.variance_pct == D("-25")
    assert q1.status is SignalStatus.RED
