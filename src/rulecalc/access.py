"""Resolution of access chains like ``answers[i]`` or ``a.b.c[1]``."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from rulecalc.coercion import force_number
from rulecalc.errors import InvalidOperand, MissingIndex, MissingKey
from rulecalc.parsing.nodes import Index, Node, PathSegment, Variable
from rulecalc.values import OptionRecord

_MISSING = object()


def resolve(
    path: Sequence[PathSegment],
    scope: Mapping[str, Any],
    root_eval: Callable[[Node], Any],
) -> Any:
    """Walk ``path`` starting from ``scope``.

    Names are looked up literally in the current value, so ``a.b.c`` is a
    single key. Index expressions go through ``root_eval``, which evaluates
    them against the root scope rather than the value reached so far.
    """
    current: Any = scope
    for segment in path:
        if isinstance(segment, Variable):
            current = _lookup(current, segment.name)
        elif isinstance(segment, Index):
            current = _index(current, root_eval(segment.expr))
        else:
            raise InvalidOperand(f"Unknown path segment: {segment!r}")
    return current


def _lookup(current: Any, name: str) -> Any:
    if isinstance(current, OptionRecord):
        if name == "display_text":
            return current.display_text
        if name == "raw_value":
            return current.raw_value
        raise MissingKey(name)
    if not isinstance(current, Mapping):
        raise MissingKey(name)
    value = current.get(name, _MISSING)
    if value is _MISSING:
        raise MissingKey(name)
    return value


def _index(current: Any, index: Any) -> Any:
    position = force_number(index)
    if position is None or (isinstance(position, float) and not position.is_integer()):
        raise InvalidOperand(f"Index must be an integer, got {index!r}")
    position = int(position)
    if not isinstance(current, (list, tuple)):
        raise InvalidOperand(f"Cannot index into {type(current).__name__}")
    if not -len(current) <= position < len(current):
        raise MissingIndex(position)
    return current[position]
