# tests/unit/domain/services/test_dependency_graph.py
from __future__ import annotations

import pytest

from turbodash_kpi.domain.entities.metric import MetricDefinition, RegistrySnapshot
from turbodash_kpi.domain.enums.kpi import MetricKind
from turbodash_kpi.domain.exceptions.kpi import ConfigurationError, FormulaSyntaxError
from turbodash_kpi.domain.services.dependency_graph import build_evaluation_plan


def _base(key: str, *, active: bool = True) -> MetricDefinition:
    return MetricDefinition(key=key, title=key, kind=MetricKind.BASE, active=active)


def _derived(key: str, formula: str) -> MetricDefinition:
    return MetricDefinition(key=key, title=key, kind=MetricKind.DERIVED, formula=formula)


def test_dependencies_come_before_dependents() -> None:
    snapshot = RegistrySnapshot.of(
        [
            _base("revenue"),
            _base("costs"),
            _derived("margin", "profit / revenue"),
            _derived("profit", "revenue - costs"),
        ]
    )

    plan = build_evaluation_plan(snapshot, months=(1, 2))

    assert not plan.blocked
    assert plan.order.index(("profit", 1)) < plan.order.index(("margin", 1))
    assert plan.order.index(("profit", 2)) < plan.order.index(("margin", 2))
    assert plan.edges[("margin", 1)] == (("profit", 1),)
    # Base references carry no edge.
    assert plan.edges[("profit", 1)] == ()


def test_order_is_deterministic_by_month_then_key() -> None:
    snapshot = RegistrySnapshot.of([_base("x"), _derived("b", "x"), _derived("a", "x")])

    plan = build_evaluation_plan(snapshot, months=(1, 2))

    assert plan.order == (("a", 1), ("b", 1), ("a", 2), ("b", 2))


def test_prior_month_self_reference_is_not_a_cycle() -> None:
    snapshot = RegistrySnapshot.of([_base("x"), _derived("running", "running[-1] + x")])

    plan = build_evaluation_plan(snapshot, months=(1, 2, 3))

    assert not plan.blocked
    assert plan.order == (("running", 1), ("running", 2), ("running", 3))
    assert plan.edges[("running", 1)] == ()
    assert plan.edges[("running", 3)] == (("running", 2),)


def test_two_metric_cycle_is_blocked_without_affecting_others() -> None:
    snapshot = RegistrySnapshot.of(
        [
            _base("x"),
            _derived("a", "b + 1"),
            _derived("b", "a + 1"),
            _derived("unrelated", "x * 2"),
        ]
    )

    plan = build_evaluation_plan(snapshot, months=(1, 2))

    for key in ("a", "b"):
        for month in (1, 2):
            error = plan.blocked[(key, month)]
            assert isinstance(error, ConfigurationError)
            assert "dependency cycle" in str(error)
            assert (key, month) not in plan.order
    assert "a -> b -> a" in str(plan.blocked[("a", 1)])
    assert ("unrelated", 1) in plan.order
    assert ("unrelated", 1) not in plan.blocked


def test_self_cycle_is_detected() -> None:
    snapshot = RegistrySnapshot.of([_derived("loop", "loop * 2")])

    plan = build_evaluation_plan(snapshot, months=(1,))

    assert "loop -> loop" in str(plan.blocked[("loop", 1)])


def test_dependents_of_a_cycle_are_blocked_too() -> None:
    snapshot = RegistrySnapshot.of(
        [_derived("a", "b"), _derived("b", "a"), _derived("downstream", "a + 1")]
    )

    plan = build_evaluation_plan(snapshot, months=(1,))

    error = plan.blocked[("downstream", 1)]
    assert "depends on a metric in a dependency cycle" in str(error)


@pytest.mark.parametrize("missing_is_inactive", [False, True])
def test_unknown_or_inactive_reference_is_blocked(missing_is_inactive: bool) -> None:
    definitions = [_derived("ratio", "ghost / 2")]
    if missing_is_inactive:
        definitions.append(_base("ghost", active=False))
    snapshot = RegistrySnapshot.of(definitions)

    plan = build_evaluation_plan(snapshot, months=(1,))

    error = plan.blocked[("ratio", 1)]
    assert isinstance(error, ConfigurationError)
    assert "ghost" in str(error)
    # Misconfigured nodes stay in the order so dependents observe the failure.
    assert ("ratio", 1) in plan.order


def test_unparsable_formula_is_blocked_with_syntax_error() -> None:
    snapshot = RegistrySnapshot.of([_derived("broken", "a +")])

    plan = build_evaluation_plan(snapshot, months=(1,))

    assert isinstance(plan.blocked[("broken", 1)], FormulaSyntaxError)
    assert "broken" not in plan.formulas


def test_lagged_reference_to_a_cycle_blocks_only_months_that_reach_it() -> None:
    snapshot = RegistrySnapshot.of(
        [_derived("a", "b"), _derived("b", "a"), _derived("lagged", "a[-1] + 1")]
    )

    plan = build_evaluation_plan(snapshot, months=(1, 2, 3))

    # Month 1 looks back before January, so it has no derived dependency.
    assert plan.order == (("lagged", 1),)
    assert ("lagged", 1) not in plan.blocked
    for month in (2, 3):
        error = plan.blocked[("lagged", month)]
        assert error.details["cycle"] == []
        assert "depends on a metric in a dependency cycle" in str(error)
    assert plan.blocked[("a", 3)].details["cycle"] == ["a", "b"]
