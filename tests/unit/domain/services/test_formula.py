# tests/unit/domain/services/test_formula.py
from __future__ import annotations

from decimal import Decimal

import pytest

from turbodash_kpi.domain.exceptions.kpi import ConfigurationError, FormulaSyntaxError
from turbodash_kpi.domain.services.formula import (
    BinaryOp,
    Constant,
    MetricRef,
    Operator,
    evaluate,
    parse_formula,
    references,
    safe_divide,
)


def _resolver(values: dict[tuple[str, int], Decimal]):
    def resolve(ref: MetricRef) -> Decimal:
        return values[(ref.key, ref.month_offset)]

    return resolve


def test_parse_builds_explicit_ast() -> None:
    node = parse_formula("a + b * 2")

    assert node == BinaryOp(
        Operator.ADD,
        MetricRef("a"),
        BinaryOp(Operator.MUL, MetricRef("b"), Constant(Decimal("2"))),
    )


def test_parentheses_override_precedence() -> None:
    node = parse_formula("(a + b) * 2")

    assert isinstance(node, BinaryOp)
    assert node.op is Operator.MUL
    assert node.left == BinaryOp(Operator.ADD, MetricRef("a"), MetricRef("b"))


def test_subtraction_is_left_associative() -> None:
    node = parse_formula("10 - 4 - 3")

    assert evaluate(node, _resolver({})) == Decimal("3")


def test_unary_minus_is_zero_minus_operand() -> None:
    node = parse_formula("-a")

    assert node == BinaryOp(Operator.SUB, Constant(Decimal("0")), MetricRef("a"))
    assert evaluate(node, _resolver({("a", 0): Decimal("5")})) == Decimal("-5")


def test_prior_month_offset_is_parsed() -> None:
    node = parse_formula("mrr_active - mrr_active[-1]")

    assert references(node) == (MetricRef("mrr_active", 0), MetricRef("mrr_active", -1))


def test_zero_offset_is_same_month() -> None:
    assert parse_formula("a[0]") == MetricRef("a", 0)


@pytest.mark.parametrize(
    "formula",
    ["", "   ", "a +", "(a + b", "a b", "a $ b", "a[1]", "a[-x]", "a[-1.5]", "* a"],
)
def test_malformed_formulas_raise_syntax_error(formula: str) -> None:
    with pytest.raises(FormulaSyntaxError):
        parse_formula(formula)


def test_syntax_error_is_a_configuration_error_with_position() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        parse_formula("a + $")

    assert isinstance(excinfo.value, FormulaSyntaxError)
    assert excinfo.value.position == 4
    assert excinfo.value.details["formula"] == "a + $"


def test_references_are_distinct_in_first_seen_order() -> None:
    node = parse_formula("b / a + b * c")

    assert [r.key for r in references(node)] == ["b", "a", "c"]


def test_division_by_zero_evaluates_to_zero() -> None:
    node = parse_formula("churned / mrr_start")
    values = {("churned", 0): Decimal("5000"), ("mrr_start", 0): Decimal("0")}

    assert evaluate(node, _resolver(values)) == Decimal("0")


def test_safe_divide() -> None:
    assert safe_divide(Decimal("1"), Decimal("4")) == Decimal("0.25")
    assert safe_divide(Decimal("1"), Decimal("0")) == Decimal("0")


def test_evaluate_keeps_decimal_precision() -> None:
    node = parse_formula("a + b")
    values = {("a", 0): Decimal("0.1"), ("b", 0): Decimal("0.2")}

    assert evaluate(node, _resolver(values)) == Decimal("0.3")


def test_resolver_errors_propagate_unchanged() -> None:
    class _Missing(Exception):
        pass

    def resolve(ref: MetricRef) -> Decimal:
        raise _Missing(ref.key)

    with pytest.raises(_Missing):
        evaluate(parse_formula("a + 1"), resolve)
