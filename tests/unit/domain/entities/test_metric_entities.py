# tests/unit/domain/entities/test_metric_entities.py
from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from turbodash_kpi.domain.entities.metric import (
    MetricActual,
    MetricDefinition,
    RegistrySnapshot,
    validate_month,
    validate_year,
)
from turbodash_kpi.domain.entities.recompute import (
    RecomputeIssue,
    RecomputeResult,
    issue_from_error,
)
from turbodash_kpi.domain.enums.kpi import ActualSource, MetricKind, RecomputeErrorKind
from turbodash_kpi.domain.exceptions.kpi import (
    AggregationError,
    DependencyError,
    FormulaSyntaxError,
    KpiError,
    PersistenceError,
)


def test_derived_metric_requires_formula() -> None:
    with pytest.raises(ValueError, match="requires a formula"):
        MetricDefinition(key="x", title="x", kind=MetricKind.DERIVED, formula="  ")


def test_base_metric_rejects_formula() -> None:
    with pytest.raises(ValueError, match="must not define a formula"):
        MetricDefinition(key="x", title="x", kind=MetricKind.BASE, formula="a + b")


def test_blank_key_is_rejected() -> None:
    with pytest.raises(ValueError):
        MetricDefinition(key=" ", title="x", kind=MetricKind.BASE)


@pytest.mark.parametrize("month", [0, 13, -1])
def test_validate_month_rejects_out_of_range(month: int) -> None:
    with pytest.raises(ValueError):
        validate_month(month)


def test_validate_year_bounds() -> None:
    assert validate_year(2026) == 2026
    assert validate_year(2010, min_year=2010, max_year=2010) == 2010
    with pytest.raises(ValueError, match="between 2000 and 2100"):
        validate_year(1999)


def test_snapshot_keeps_active_definitions_sorted() -> None:
    snapshot = RegistrySnapshot.of(
        [
            MetricDefinition(key="z", title="z", kind=MetricKind.BASE),
            MetricDefinition(key="off", title="off", kind=MetricKind.BASE, active=False),
            MetricDefinition(key="a", title="a", kind=MetricKind.DERIVED, formula="z * 2"),
            MetricDefinition(key="m", title="m", kind=MetricKind.BASE),
        ]
    )

    assert list(snapshot.definitions) == ["a", "m", "z"]
    assert "off" not in snapshot
    assert snapshot.get("off") is None
    assert snapshot.base_keys == ("m", "z")
    assert [d.key for d in snapshot.derived] == ["a"]


def test_actual_identity_ignores_computed_at() -> None:
    first = MetricActual(
        2026, 1, "mrr_active", Decimal("1"), ActualSource.COMPUTED, datetime(2026, 1, 1, tzinfo=UTC)
    )
    second = MetricActual(
        2026, 1, "mrr_active", Decimal("1"), ActualSource.COMPUTED, datetime(2026, 2, 1, tzinfo=UTC)
    )

    assert first != second
    assert first.identity() == second.identity()


@pytest.mark.parametrize(
    ("error", "kind"),
    [
        (FormulaSyntaxError("a +", "unexpected end"), RecomputeErrorKind.CONFIGURATION),
        (AggregationError("boom"), RecomputeErrorKind.AGGREGATION),
        (DependencyError("missing"), RecomputeErrorKind.DEPENDENCY),
        (PersistenceError("write failed"), RecomputeErrorKind.PERSISTENCE),
    ],
)
def test_issue_from_error_maps_kind(error: KpiError, kind: RecomputeErrorKind) -> None:
    issue = issue_from_error(error, metric_key="k", month=2)

    assert issue.kind is kind
    assert issue.message == str(error)
    assert (issue.metric_key, issue.month) == ("k", 2)


def test_issue_from_error_rejects_other_errors() -> None:
    with pytest.raises(TypeError):
        issue_from_error(KpiError("generic"), metric_key=None, month=None)


def test_issues_sort_by_month_then_metric_with_run_level_last() -> None:
    issues = [
        RecomputeIssue(RecomputeErrorKind.PERSISTENCE, None, None, "write"),
        RecomputeIssue(RecomputeErrorKind.DEPENDENCY, "b", 1, "x"),
        RecomputeIssue(RecomputeErrorKind.CONFIGURATION, "a", 2, "y"),
        RecomputeIssue(RecomputeErrorKind.CONFIGURATION, "a", 1, "z"),
    ]

    ordered = sorted(issues, key=RecomputeIssue.sort_key)

    assert [(i.metric_key, i.month) for i in ordered] == [
        ("a", 1),
        ("b", 1),
        ("a", 2),
        (None, None),
    ]


def test_result_success_reflects_errors() -> None:
    assert RecomputeResult(2026, 1, 1, 0).success
    issue = RecomputeIssue(RecomputeErrorKind.DEPENDENCY, "k", 1, "x")
    assert not RecomputeResult(2026, 1, 0, 0, errors=(issue,)).success
