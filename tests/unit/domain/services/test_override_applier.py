# tests/unit/domain/services/test_override_applier.py
from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from uuid import uuid4

from turbodash_kpi.domain.entities.metric import MONTHS, MetricOverride
from turbodash_kpi.domain.services.override_applier import apply_overrides, index_overrides


def _override(
    year: int, month: int, key: str, value: str, *, updated_at: datetime | None = None
) -> MetricOverride:
    return MetricOverride(
        id=uuid4(),
        year=year,
        month=month,
        metric_key=key,
        override_value=Decimal(value),
        updated_at=updated_at,
    )


def test_index_maps_previous_december_to_look_back_month() -> None:
    index = index_overrides(
        [
            _override(2026, 3, "mrr_active", "1"),
            _override(2025, 12, "mrr_active", "2"),
            _override(2025, 11, "mrr_active", "3"),
            _override(2024, 12, "mrr_active", "4"),
            _override(2027, 1, "mrr_active", "5"),
        ],
        year=2026,
    )

    assert index == {("mrr_active", 3): Decimal("1"), ("mrr_active", 0): Decimal("2")}


def test_most_recent_duplicate_wins() -> None:
    older = _override(2026, 1, "k", "10", updated_at=datetime(2026, 1, 1, tzinfo=UTC))
    newer = _override(2026, 1, "k", "20", updated_at=datetime(2026, 2, 1, tzinfo=UTC))

    assert index_overrides([newer, older], year=2026) == {("k", 1): Decimal("20")}


def test_override_always_wins_over_computed_value() -> None:
    values = {("mrr_active", 1): Decimal("100000"), ("mrr_active", 2): Decimal("100000")}
    overrides = {("mrr_active", 1): Decimal("120000")}

    result = apply_overrides(values, overrides, metric_keys={"mrr_active"}, months=MONTHS)

    assert result.values[("mrr_active", 1)] == Decimal("120000")
    assert result.values[("mrr_active", 2)] == Decimal("100000")
    assert result.overridden == frozenset({("mrr_active", 1)})
    # Input mapping is left untouched.
    assert values[("mrr_active", 1)] == Decimal("100000")


def test_override_fills_missing_or_failed_nodes() -> None:
    result = apply_overrides({}, {("nps", 4): Decimal("72")}, metric_keys={"nps"}, months=MONTHS)

    assert result.values == {("nps", 4): Decimal("72")}


def test_overrides_outside_the_layer_are_ignored() -> None:
    overrides = {
        ("derived_metric", 1): Decimal("1"),
        ("mrr_active", 0): Decimal("2"),
        ("mrr_active", 1): Decimal("3"),
    }

    result = apply_overrides({}, overrides, metric_keys={"mrr_active"}, months=MONTHS)

    assert set(result.values) == {("mrr_active", 1)}


def test_count_in_excludes_look_back_month() -> None:
    overrides = {("mrr_active", 0): Decimal("2"), ("mrr_active", 1): Decimal("3")}

    result = apply_overrides({}, overrides, metric_keys={"mrr_active"}, months=(0, *MONTHS))

    assert len(result.overridden) == 2
    assert result.count_in(MONTHS) == 1
