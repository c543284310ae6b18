"""Post-order fold over formula ASTs."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from rulecalc.errors import FormulaError, InvalidOperand, Result
from rulecalc.parsing.formula_parser import DEFAULT_MAX_DEPTH
from rulecalc.parsing.nodes import Access, Node, TernaryIf, children
from rulecalc.values import is_truthy

NodeEval = Callable[..., Any]


def reduce(
    node: Node,
    node_eval: NodeEval,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    lazy_ternary: bool = False,
    level: int = 1,
) -> Result:
    """Evaluate ``node`` bottom-up.

    Children are reduced left to right and the first failure is returned
    as-is, without evaluating later siblings. Once every child succeeds,
    ``node_eval(node, values)`` computes the node's value from its
    children's values. Access nodes are called as
    ``node_eval(node, values, level=level)`` so their index expressions can be
    reduced one level deeper. A FormulaError raised by ``node_eval``
    becomes a failed Result.

    Ternary branches are ordinary children, so both are evaluated before
    one is chosen and an error in the unused branch fails the expression.
    With ``lazy_ternary`` only the condition and the chosen branch run.

    ``level`` is the nesting level of ``node``; anything deeper than
    ``max_depth``, or deeper than the interpreter stack allows, fails with
    InvalidOperand.
    """
    try:
        return _reduce(node, node_eval, level, max_depth, lazy_ternary)
    except RecursionError:
        return Result.failure(InvalidOperand("Expression nesting exceeds the interpreter stack depth"))


def _reduce(node: Node, node_eval: NodeEval, level: int, max_depth: int, lazy_ternary: bool) -> Result:
    if level > max_depth:
        return Result.failure(
            InvalidOperand(f"Expression nesting exceeds the maximum depth of {max_depth}")
        )

    if lazy_ternary and isinstance(node, TernaryIf):
        return _reduce_lazy_ternary(node, node_eval, level, max_depth)

    values = []
    for child in children(node):
        result = _reduce(child, node_eval, level + 1, max_depth, lazy_ternary)
        if not result.ok:
            return result
        values.append(result.value)

    try:
        if isinstance(node, Access):
            return Result.success(node_eval(node, values, level=level))
        return Result.success(node_eval(node, values))
    except FormulaError as e:
        return Result.failure(e)


def _reduce_lazy_ternary(node: TernaryIf, node_eval: NodeEval, level: int, max_depth: int) -> Result:
    condition = _reduce(node.condition, node_eval, level + 1, max_depth, True)
    if not condition.ok:
        return condition
    branch = node.if_true if is_truthy(condition.value) else node.if_false
    return _reduce(branch, node_eval, level + 1, max_depth, True)
