"""Numeric coercion, equality and ordering across value representations.

The equality rules are deliberately heterogeneous: strings equal numbers
they parse to, option records equal their display text, atoms (tags,
booleans, and null spelled "nil") equal their spelling, and a one-element
list holding an option record equals a string the way the record itself
would (legacy single-select answers). The relation is reflexive and
symmetric but not transitive across mixed representations; existing
formulas depend on that.
"""

from __future__ import annotations

import operator
import re
from collections.abc import Callable, Mapping
from typing import Any

from rulecalc.values import OptionRecord, as_option, is_number, tag_name

_INTEGER_RE = re.compile(r"[+-]?\d+")
_FLOAT_RE = re.compile(r"[+-]?\d+\.\d+(?:[eE][+-]?\d+)?")


def force_number(value: Any) -> int | float | None:
    """Coerce a number or numeric string to a number.

    Strings containing a '.' must parse completely as a float, all other
    strings completely as an integer. Returns None when coercion fails.
    """
    if is_number(value):
        return value
    if isinstance(value, str):
        if "." in value:
            if _FLOAT_RE.fullmatch(value):
                return float(value)
            return None
        if _INTEGER_RE.fullmatch(value):
            return int(value)
    return None


def render_number(num: int | float) -> str:
    return repr(num) if isinstance(num, float) else str(num)


def _single_option(value: Any) -> OptionRecord | None:
    if isinstance(value, list) and len(value) == 1:
        return as_option(value[0])
    return None


def native_equal(a: Any, b: Any) -> bool:
    """Plain equality, except that booleans never equal numbers."""
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a is b
    if isinstance(a, list) and isinstance(b, list):
        return len(a) == len(b) and all(native_equal(x, y) for x, y in zip(a, b))
    return a == b


def equals(a: Any, b: Any) -> bool:
    """Equality used by == and !=."""
    if isinstance(a, str) and is_number(b):
        return _string_equals_number(a, b)
    if is_number(a) and isinstance(b, str):
        return _string_equals_number(b, a)

    option_a, option_b = as_option(a), as_option(b)
    if option_a is not None and isinstance(b, str):
        return option_a.display_text == b
    if option_b is not None and isinstance(a, str):
        return option_b.display_text == a
    if option_a is not None and option_b is not None:
        return option_a.display_text == option_b.display_text and native_equal(
            option_a.raw_value, option_b.raw_value
        )

    atom_a, atom_b = atom_name(a), atom_name(b)
    if atom_a is not None and isinstance(b, str):
        return atom_a == b
    if atom_b is not None and isinstance(a, str):
        return atom_b == a

    single_a, single_b = _single_option(a), _single_option(b)
    if single_a is not None and isinstance(b, str):
        return single_a.display_text == b
    if single_b is not None and isinstance(a, str):
        return single_b.display_text == a

    return native_equal(a, b)


def atom_name(value: Any) -> str | None:
    """Spelling of an atom: true, false, nil or a tag name. None for other values."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "nil"
    return tag_name(value)


def _string_equals_number(text: str, num: int | float) -> bool:
    forced = force_number(text)
    if forced is None:
        return text == render_number(num)
    return forced == num


# Cross-type ordering: numbers < atoms < option records < mappings < lists < strings.
# Atoms are booleans, null and tags, ordered by spelling.

_RANK_NUMBER = 0
_RANK_ATOM = 1
_RANK_RECORD = 2
_RANK_MAP = 3
_RANK_LIST = 4
_RANK_STRING = 5


def order_key(value: Any) -> tuple:
    """A key giving every value a place in one total order."""
    if is_number(value):
        return (_RANK_NUMBER, value)
    name = atom_name(value)
    if name is not None:
        return (_RANK_ATOM, name)
    option = as_option(value)
    if option is not None:
        return (_RANK_RECORD, (order_key(option.display_text), order_key(option.raw_value)))
    if isinstance(value, Mapping):
        return (_RANK_MAP, tuple(sorted((str(k), order_key(v)) for k, v in value.items())))
    if isinstance(value, (list, tuple)):
        return (_RANK_LIST, tuple(order_key(item) for item in value))
    return (_RANK_STRING, str(value))


def compare(op: Callable[[Any, Any], bool], a: Any, b: Any) -> bool:
    """Apply an ordering operator, coercing numeric strings against numbers."""
    if isinstance(a, str) and is_number(b):
        forced = force_number(a)
        if forced is not None:
            return op(forced, b)
    elif is_number(a) and isinstance(b, str):
        forced = force_number(b)
        if forced is not None:
            return op(a, forced)
    elif is_number(a) and is_number(b):
        return op(a, b)
    elif isinstance(a, str) and isinstance(b, str):
        return op(a, b)
    return op(order_key(a), order_key(b))


def greater_than(a: Any, b: Any) -> bool:
    return compare(operator.gt, a, b)


def greater_than_or_equal(a: Any, b: Any) -> bool:
    return compare(operator.ge, a, b)


def less_than(a: Any, b: Any) -> bool:
    return compare(operator.lt, a, b)


def less_than_or_equal(a: Any, b: Any) -> bool:
    return compare(operator.le, a, b)
