# src/turbodash_kpi/domain/services/formula.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""Derived-metric formula language.

Purpose:
    Parse derived-metric formulas into an explicit AST and evaluate them over a
    resolved symbol table. Formulas are never evaluated as code.

Grammar:
    expr    := term (("+" | "-") term)*
    term    := unary (("*" | "/") unary)*
    unary   := "-" unary | primary
    primary := NUMBER | IDENT offset? | "(" expr ")"
    offset  := "[" "-"? INTEGER "]"

    ``mrr_active[-1]`` references the previous month's value of
    ``mrr_active``. Offsets must be zero or negative.

Layer:
    domain/services

Notes:
    - Division by zero evaluates to ``0`` instead of raising.
    - Unary minus is represented as ``BinaryOp("-", Constant(0), operand)`` so
      the AST keeps exactly three node types.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal, getcontext
from enum import Enum
from functools import lru_cache
from typing import Final

from turbodash_kpi.domain.exceptions.kpi import FormulaSyntaxError

# Monetary sums must not lose precision through chains of additions.
getcontext().prec = max(getcontext().prec, 34)

DECIMAL_ZERO: Final[Decimal] = Decimal("0")

__all__ = [
    "BinaryOp",
    "Constant",
    "FormulaNode",
    "MetricRef",
    "Operator",
    "evaluate",
    "parse_formula",
    "references",
    "safe_divide",
]


# --------------------------------------------------------------------------- #
# AST                                                                         #
# --------------------------------------------------------------------------- #


class Operator(str, Enum):
    """Binary arithmetic operators."""

    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"


@dataclass(frozen=True, slots=True)
class Constant:
    """Numeric literal."""

    value: Decimal


@dataclass(frozen=True, slots=True)
class MetricRef:
    """Reference to another metric, optionally in a prior month."""

    key: str
    month_offset: int = 0


@dataclass(frozen=True, slots=True)
class BinaryOp:
    """Arithmetic combination of two sub-expressions."""

    op: Operator
    left: FormulaNode
    right: FormulaNode


FormulaNode = Constant | MetricRef | BinaryOp


# --------------------------------------------------------------------------- #
# Tokenizer                                                                   #
# --------------------------------------------------------------------------- #

_TOKEN_RE: Final[re.Pattern[str]] = re.compile(
    r"\s*(?:"
    r"(?P<number>\d+(?:\.\d+)?|\.\d+)"
    r"|(?P<ident>[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<punct>[-+*/()\[\]])"
    r")"
)


@dataclass(frozen=True, slots=True)
class _Token:
    kind: str
    text: str
    position: int


def _tokenize(formula: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    length = len(formula)
    while pos < length:
        if formula[pos].isspace():
            pos += 1
            continue
        match = _TOKEN_RE.match(formula, pos)
        if match is None or match.end() == pos:
            raise FormulaSyntaxError(
                formula, f"unexpected character {formula[pos]!r}", position=pos
            )
        kind = match.lastgroup or ""
        text = match.group(kind)
        tokens.append(_Token(kind=kind, text=text, position=match.start(kind)))
        pos = match.end()
    return tokens


# --------------------------------------------------------------------------- #
# Parser                                                                      #
# --------------------------------------------------------------------------- #


class _Parser:
    """Recursive-descent parser over a token list."""

    def __init__(self, formula: str) -> None:
        self._formula = formula
        self._tokens = _tokenize(formula)
        self._index = 0

    def parse(self) -> FormulaNode:
        if not self._tokens:
            raise FormulaSyntaxError(self._formula, "formula is empty")
        node = self._expr()
        if self._index < len(self._tokens):
            tok = self._tokens[self._index]
            raise FormulaSyntaxError(
                self._formula, f"unexpected token {tok.text!r}", position=tok.position
            )
        return node

    def _peek(self) -> _Token | None:
        return self._tokens[self._index] if self._index < len(self._tokens) else None

    def _advance(self) -> _Token:
        tok = self._peek()
        if tok is None:
            raise FormulaSyntaxError(
                self._formula, "unexpected end of formula", position=len(self._formula)
            )
        self._index += 1
        return tok

    def _expect(self, text: str) -> _Token:
        tok = self._advance()
        if tok.text != text:
            raise FormulaSyntaxError(
                self._formula, f"expected {text!r}, found {tok.text!r}", position=tok.position
            )
        return tok

    def _accept(self, *texts: str) -> _Token | None:
        tok = self._peek()
        if tok is not None and tok.kind == "punct" and tok.text in texts:
            self._index += 1
            return tok
        return None

    def _expr(self) -> FormulaNode:
        node = self._term()
        while (tok := self._accept("+", "-")) is not None:
            node = BinaryOp(Operator(tok.text), node, self._term())
        return node

    def _term(self) -> FormulaNode:
        node = self._unary()
        while (tok := self._accept("*", "/")) is not None:
            node = BinaryOp(Operator(tok.text), node, self._unary())
        return node

    def _unary(self) -> FormulaNode:
        if self._accept("-") is not None:
            return BinaryOp(Operator.SUB, Constant(DECIMAL_ZERO), self._unary())
        return self._primary()

    def _primary(self) -> FormulaNode:
        tok = self._advance()
        if tok.kind == "number":
            return Constant(Decimal(tok.text))
        if tok.kind == "ident":
            return MetricRef(key=tok.text, month_offset=self._offset())
        if tok.text == "(":
            node = self._expr()
            self._expect(")")
            return node
        raise FormulaSyntaxError(
            self._formula, f"unexpected token {tok.text!r}", position=tok.position
        )

    def _offset(self) -> int:
        if self._accept("[") is None:
            return 0
        negative = self._accept("-") is not None
        tok = self._advance()
        if tok.kind != "number" or not tok.text.isdigit():
            raise FormulaSyntaxError(
                self._formula, "month offset must be an integer", position=tok.position
            )
        self._expect("]")
        value = int(tok.text)
        if value and not negative:
            raise FormulaSyntaxError(
                self._formula,
                "only prior-month offsets (e.g. [-1]) are supported",
                position=tok.position,
            )
        return -value


@lru_cache(maxsize=1024)
def parse_formula(formula: str) -> FormulaNode:
    """Parse a formula string into an AST.

    Args:
        formula: Formula text, e.g. ``"cash_generation / revenue_billable_total"``.

    Returns:
        The root node of the parsed expression.

    Raises:
        FormulaSyntaxError: If the formula is empty or malformed.
    """
    return _Parser(formula).parse()


# --------------------------------------------------------------------------- #
# Analysis & evaluation                                                       #
# --------------------------------------------------------------------------- #


def references(node: FormulaNode) -> tuple[MetricRef, ...]:
    """Return the distinct metric references of an AST, in first-seen order."""
    seen: dict[MetricRef, None] = {}
    stack: list[FormulaNode] = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, MetricRef):
            seen.setdefault(current, None)
        elif isinstance(current, BinaryOp):
            # Right pushed first so the left operand is visited first.
            stack.append(current.right)
            stack.append(current.left)
    return tuple(seen)


def safe_divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Divide, defining any division by zero as zero."""
    if denominator == DECIMAL_ZERO:
        return DECIMAL_ZERO
    return numerator / denominator


def evaluate(node: FormulaNode, resolve: Callable[[MetricRef], Decimal]) -> Decimal:
    """Evaluate an AST with a post-order walk.

    Args:
        node: Root of the expression.
        resolve: Callback returning the value of a metric reference. It may
            raise to signal a missing or failed input; the exception
            propagates unchanged.

    Returns:
        The computed Decimal value.
    """
    if isinstance(node, Constant):
        return node.value
    if isinstance(node, MetricRef):
        return resolve(node)

    left = evaluate(node.left, resolve)
    right = evaluate(node.right, resolve)
    if node.op is Operator.ADD:
        return left + right
    if node.op is Operator.SUB:
        return left - right
    if node.op is Operator.MUL:
        return left * right
    return safe_divide(left, right)
