"""Per-node semantics applied by the reducer."""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from rulecalc import coercion
from rulecalc.access import resolve
from rulecalc.errors import InvalidOperand
from rulecalc.functions import FunctionLibrary
from rulecalc.parsing.nodes import (
    Access,
    BinaryExpr,
    BinaryOp,
    BoolLit,
    FunctionCall,
    Node,
    NullLit,
    NumberLit,
    StringLit,
    TernaryIf,
    UnaryExpr,
    UnaryOp,
)
from rulecalc.values import is_number, is_truthy

MAX_SHIFT = 4096
MAX_FACTORIAL = 1000

_COMPARISONS: dict[BinaryOp, Callable[[Any, Any], bool]] = {
    BinaryOp.EQ: coercion.equals,
    BinaryOp.NEQ: lambda a, b: not coercion.equals(a, b),
    BinaryOp.GT: coercion.greater_than,
    BinaryOp.GTE: coercion.greater_than_or_equal,
    BinaryOp.LT: coercion.less_than,
    BinaryOp.LTE: coercion.less_than_or_equal,
}

_BITWISE: dict[BinaryOp, Callable[[int, int], int]] = {
    BinaryOp.BIT_AND: lambda a, b: a & b,
    BinaryOp.BIT_OR: lambda a, b: a | b,
    BinaryOp.BIT_XOR: lambda a, b: a ^ b,
}


class NodeEvaluator:
    """Computes a node's value from its already-evaluated children.

    Called by the reducer as ``node_eval(node, values)``. Access nodes are
    the exception: their index expressions are evaluated here, through
    ``root_eval(expr, level)``, against the root scope. ``level`` is the
    nesting level of the Access node, so index expressions count toward
    the depth limit.
    """

    def __init__(
        self,
        scope: Mapping[str, Any],
        functions: FunctionLibrary,
        root_eval: Callable[[Node, int], Any],
    ) -> None:
        self.scope = scope
        self.functions = functions
        self.root_eval = root_eval

    def __call__(self, node: Node, values: Sequence[Any], level: int = 1) -> Any:
        if isinstance(node, (NumberLit, StringLit, BoolLit)):
            return node.value
        if isinstance(node, NullLit):
            return None
        if isinstance(node, Access):
            return resolve(node.path, self.scope, lambda expr: self.root_eval(expr, level))
        if isinstance(node, BinaryExpr):
            left, right = values
            return self._binary(node.op, left, right)
        if isinstance(node, UnaryExpr):
            (operand,) = values
            return self._unary(node.op, operand)
        if isinstance(node, TernaryIf):
            condition, if_true, if_false = values
            return if_true if is_truthy(condition) else if_false
        if isinstance(node, FunctionCall):
            return self.functions.call(node.name, list(values))
        raise InvalidOperand(f"Unknown expression node: {type(node).__name__}")

    # ---- Binary ----

    def _binary(self, op: BinaryOp, left: Any, right: Any) -> Any:
        if op in _COMPARISONS:
            return _COMPARISONS[op](left, right)
        if op in (BinaryOp.LOGICAL_AND, BinaryOp.LOGICAL_OR):
            if not isinstance(left, bool) or not isinstance(right, bool):
                raise InvalidOperand(f"'{op.value}' requires booleans: {left!r} {op.value} {right!r}")
            return (left and right) if op is BinaryOp.LOGICAL_AND else (left or right)
        if op in _BITWISE:
            return _BITWISE[op](_as_integer(op, left), _as_integer(op, right))
        if op in (BinaryOp.SHIFT_LEFT, BinaryOp.SHIFT_RIGHT):
            value, count = _as_integer(op, left), _as_integer(op, right)
            if count < 0:
                raise InvalidOperand(f"Negative shift count: {count}")
            if count > MAX_SHIFT:
                raise InvalidOperand(f"Shift count {count} exceeds {MAX_SHIFT}")
            return value << count if op is BinaryOp.SHIFT_LEFT else value >> count
        return _arithmetic(op, left, right)

    # ---- Unary ----

    def _unary(self, op: UnaryOp, operand: Any) -> Any:
        if op is UnaryOp.LOGICAL_NOT:
            if not isinstance(operand, bool):
                raise InvalidOperand(f"'not' requires a boolean, got {operand!r}")
            return not operand
        if op is UnaryOp.BIT_NOT:
            return ~_as_integer(op, operand)
        if not is_number(operand):
            raise InvalidOperand(f"'{op.value}' requires a number, got {operand!r}")
        if op is UnaryOp.NEGATE:
            return -operand
        if op is UnaryOp.PLUS:
            return operand
        if op is UnaryOp.FACTORIAL:
            if operand < 0 or (isinstance(operand, float) and not operand.is_integer()):
                raise InvalidOperand(f"Factorial requires a non-negative integer, got {operand!r}")
            if operand > MAX_FACTORIAL:
                raise InvalidOperand(f"Factorial argument {operand!r} exceeds {MAX_FACTORIAL}")
            return math.factorial(int(operand))
        raise InvalidOperand(f"Unknown unary operator: {op.value}")


def _arithmetic(op: BinaryOp, left: Any, right: Any) -> int | float:
    if not is_number(left) or not is_number(right):
        raise InvalidOperand(f"'{op.value}' requires numbers: {left!r} {op.value} {right!r}")
    if op is BinaryOp.DIVIDE and right == 0:
        raise InvalidOperand("Division by zero")
    try:
        if op is BinaryOp.ADD:
            return left + right
        if op is BinaryOp.SUBTRACT:
            return left - right
        if op is BinaryOp.MULTIPLY:
            return left * right
        if op is BinaryOp.DIVIDE:
            return left / right
        if op is BinaryOp.POWER:
            return math.pow(left, right)
    except (ValueError, OverflowError) as e:
        raise InvalidOperand(f"{left!r} {op.value} {right!r}: {e}") from e
    raise InvalidOperand(f"Unknown binary operator: {op.value}")


def _as_integer(op: BinaryOp | UnaryOp, value: Any) -> int:
    """Bitwise operands: numbers or numeric strings with an integral value."""
    number = coercion.force_number(value)
    if number is None:
        raise InvalidOperand(f"'{op.value}' requires an integer, got {value!r}")
    if isinstance(number, float):
        if not number.is_integer():
            raise InvalidOperand(f"'{op.value}' requires an integer, got {value!r}")
        return int(number)
    return number
