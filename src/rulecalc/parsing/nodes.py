"""AST nodes for formulas."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class BinaryOp(Enum):
    """Binary operators, named after the node tags they produce."""

    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    POWER = "^"
    EQ = "=="
    NEQ = "!="
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="
    LOGICAL_AND = "&&"
    LOGICAL_OR = "||"
    BIT_AND = "&"
    BIT_OR = "|"
    BIT_XOR = "|^"
    SHIFT_LEFT = "<<"
    SHIFT_RIGHT = ">>"


class UnaryOp(Enum):
    NEGATE = "-"
    PLUS = "+"
    LOGICAL_NOT = "not"
    BIT_NOT = "~"
    FACTORIAL = "!"


# ---- Literals ----


@dataclass(frozen=True)
class NumberLit:
    value: int | float
    position: int = 0


@dataclass(frozen=True)
class StringLit:
    value: str
    position: int = 0


@dataclass(frozen=True)
class BoolLit:
    value: bool
    position: int = 0


@dataclass(frozen=True)
class NullLit:
    position: int = 0


# ---- Operators ----


@dataclass(frozen=True)
class BinaryExpr:
    """A binary operation: left op right."""

    op: BinaryOp
    left: Node
    right: Node
    position: int = 0


@dataclass(frozen=True)
class UnaryExpr:
    """A prefix operator, or the postfix factorial."""

    op: UnaryOp
    operand: Node
    position: int = 0


@dataclass(frozen=True)
class TernaryIf:
    """condition ? if_true : if_false"""

    condition: Node
    if_true: Node
    if_false: Node
    position: int = 0


@dataclass(frozen=True)
class FunctionCall:
    """A call like sum(a, b). Arity is checked when the call is evaluated."""

    name: str
    args: tuple[Node, ...] = ()
    position: int = 0


# ---- Access chains ----


@dataclass(frozen=True)
class Variable:
    """Path segment naming a key of the current scope value."""

    name: str


@dataclass(frozen=True)
class Index:
    """Path segment indexing the current list; expr is resolved against the root scope."""

    expr: Node


PathSegment = Union[Variable, Index]


@dataclass(frozen=True)
class Access:
    """A variable reference followed by any number of index or name segments."""

    path: tuple[PathSegment, ...]
    position: int = 0


Literal = Union[NumberLit, StringLit, BoolLit, NullLit]
Node = Union[Literal, BinaryExpr, UnaryExpr, TernaryIf, FunctionCall, Access]


def children(node: Node) -> tuple[Node, ...]:
    """Children folded by the reducer, left to right.

    Access is deliberately childless: its index expressions are evaluated
    against the root scope by the access resolver.
    """
    if isinstance(node, BinaryExpr):
        return (node.left, node.right)
    if isinstance(node, UnaryExpr):
        return (node.operand,)
    if isinstance(node, TernaryIf):
        return (node.condition, node.if_true, node.if_false)
    if isinstance(node, FunctionCall):
        return node.args
    return ()


def _nested(node: Node) -> tuple[Node, ...]:
    """Every sub-expression, including index expressions inside access paths."""
    if isinstance(node, Access):
        return tuple(seg.expr for seg in node.path if isinstance(seg, Index))
    return children(node)


def depth(node: Node) -> int:
    """Nesting depth of a tree, computed without recursion."""
    deepest = 0
    stack = [(node, 1)]
    while stack:
        current, level = stack.pop()
        if level > deepest:
            deepest = level
        for child in _nested(current):
            stack.append((child, level + 1))
    return deepest
