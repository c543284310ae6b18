"""Builtin functions callable from formulas.

Every function receives its arguments already evaluated, as a list, and
raises InvalidOperand for input it cannot handle.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from datetime import date, datetime, time, timezone
from decimal import (
    ROUND_CEILING,
    ROUND_FLOOR,
    ROUND_HALF_UP,
    Decimal,
    InvalidOperation,
    localcontext,
)
from typing import Any

from rulecalc.coercion import force_number, native_equal
from rulecalc.errors import InvalidOperand
from rulecalc.values import OptionRecord, as_option, is_number

SECONDS_PER_YEAR = 31_536_000
MAX_PRECISION = 15
DECIMAL_PRECISION = 330

Function = Callable[[list[Any]], Any]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _require_args(name: str, args: list[Any], *counts: int) -> None:
    if len(args) not in counts:
        expected = " or ".join(str(c) for c in counts)
        raise InvalidOperand(f"{name}() requires {expected} argument{'s' if counts != (1,) else ''}, got {len(args)}")


def _require_number(name: str, value: Any) -> int | float:
    if not is_number(value):
        raise InvalidOperand(f"{name}() requires a number, got {value!r}")
    return value


def _integer_if_possible(value: int | float) -> int | float:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _flatten(values: list[Any]) -> list[Any]:
    flat = []
    for value in values:
        if isinstance(value, (list, tuple)):
            flat.extend(_flatten(list(value)))
        else:
            flat.append(value)
    return flat


# ---- Math ----


def _math_unary(name: str, fn: Callable[[Any], Any]) -> Function:
    def call(args: list[Any]) -> Any:
        _require_args(name, args, 1)
        value = _require_number(name, args[0])
        try:
            return fn(value)
        except (ValueError, OverflowError) as e:
            raise InvalidOperand(f"{name}({value!r}): {e}") from e

    return call


def _mod(args: list[Any]) -> float:
    _require_args("mod", args, 2)
    a = _require_number("mod", args[0])
    b = _require_number("mod", args[1])
    try:
        return math.fmod(a, b)
    except (ValueError, OverflowError) as e:
        raise InvalidOperand(f"mod({a!r}, {b!r}): {e}") from e


# ---- Rounding ----


def _rounding(name: str, to_integer: Callable[[Any], int], mode: str) -> Function:
    """floor/ceil/round: 1 argument rounds to an int, 2 arguments to N decimal digits."""

    def call(args: list[Any]) -> int | float:
        _require_args(name, args, 1, 2)
        value = force_number(args[0])
        if value is None:
            raise InvalidOperand(f"{name}() requires a number, got {args[0]!r}")
        try:
            if len(args) == 1:
                return to_integer(value)
            precision = force_number(args[1])
            if precision is None:
                raise InvalidOperand(f"{name}() precision must be a number, got {args[1]!r}")
            digits = int(precision)
            if not 0 <= digits <= MAX_PRECISION:
                raise InvalidOperand(f"{name}() precision must be between 0 and {MAX_PRECISION}, got {digits}")
            return float(_quantize(float(value), digits, mode))
        except (ValueError, OverflowError, InvalidOperation) as e:
            raise InvalidOperand(f"{name}({value!r}): cannot round") from e

    return call


def _quantize(value: float, digits: int, mode: str) -> Decimal:
    """Round the shortest decimal form of ``value`` to ``digits`` places."""
    with localcontext() as ctx:
        # Room for the integer digits of any finite float plus the decimals
        ctx.prec = DECIMAL_PRECISION
        return Decimal(repr(value)).quantize(Decimal(1).scaleb(-digits), rounding=mode)


def _round_half_away(value: int | float) -> int:
    if isinstance(value, int):
        return value
    if value.is_integer():
        return int(value)
    return int(_quantize(value, 0, ROUND_HALF_UP))


# ---- Aggregation ----


def _extract_number(name: str, value: Any) -> int | float:
    """Pull a number out of an answer, preferring an option's raw value."""
    option = as_option(value)
    if option is not None:
        number = force_number(option.raw_value)
        if number is None:
            number = force_number(option.display_text)
    else:
        number = force_number(value)
    if number is None:
        raise InvalidOperand(f"{name}() cannot use {value!r} as a number")
    return number


def _numbers(name: str, args: list[Any]) -> list[int | float]:
    return [_extract_number(name, value) for value in _flatten(args)]


def _count(args: list[Any]) -> int:
    return len(_numbers("count", args))


def _sum(args: list[Any]) -> int | float:
    numbers = _numbers("sum", args)
    try:
        return _integer_if_possible(sum(numbers))
    except OverflowError as e:
        raise InvalidOperand(f"sum() overflowed: {e}") from e


def _average(args: list[Any]) -> int | float:
    numbers = _numbers("average", args)
    if not numbers:
        raise InvalidOperand("average() requires at least one number")
    try:
        return _integer_if_possible(sum(numbers) / len(numbers))
    except OverflowError as e:
        raise InvalidOperand(f"average() overflowed: {e}") from e


def _max(args: list[Any]) -> int | float:
    numbers = _numbers("max", args)
    if not numbers:
        raise InvalidOperand("max() requires at least one number")
    return max(numbers)


def _min(args: list[Any]) -> int | float:
    numbers = _numbers("min", args)
    if not numbers:
        raise InvalidOperand("min() requires at least one number")
    return min(numbers)


# ---- Answer helpers ----


def _extract_raw(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [_extract_raw(item) for item in value]
    option = as_option(value)
    if option is not None:
        return option.raw_value
    return value


def _raw(args: list[Any]) -> Any:
    _require_args("raw", args, 1)
    return _extract_raw(args[0])


def _answer_number(name: str, pick: Callable[[OptionRecord], Any]) -> Function:
    """display_num/raw_num: take one part of an option and coerce it to a number."""

    def call(args: list[Any]) -> int | float:
        _require_args(name, args, 1)
        value = args[0]
        if isinstance(value, (list, tuple)):
            # A single-select answer arrives as a one-element list
            if len(value) != 1:
                raise InvalidOperand(f"{name}() requires a single answer, got {len(value)}")
            value = value[0]
        option = as_option(value)
        if option is not None:
            value = pick(option)
        number = force_number(value)
        if number is None:
            raise InvalidOperand(f"{name}() cannot use {value!r} as a number")
        return number

    return call


def _optionify(value: Any) -> OptionRecord | None:
    option = as_option(value)
    if option is not None:
        return option
    if isinstance(value, str):
        return OptionRecord(display_text=value, raw_value=value)
    return None


def _display(value: Any) -> Any:
    option = as_option(value)
    return option.display_text if option is not None else value


def _same_option(candidate: OptionRecord | None, option: OptionRecord) -> bool:
    return (
        candidate is not None
        and candidate.display_text == option.display_text
        and native_equal(candidate.raw_value, option.raw_value)
    )


def _exists_in_options(name: str, needle: Any, haystack: list[Any]) -> bool:
    option = as_option(needle)
    if option is not None:
        return any(_same_option(candidate, option) for candidate in map(_optionify, haystack))
    if isinstance(needle, str) or is_number(needle):
        return any(native_equal(needle, _display(candidate)) for candidate in haystack)
    raise InvalidOperand(f"{name}() cannot search for {needle!r}")


def _membership(name: str, combine: Callable[[Any], bool], when_empty: bool) -> Function:
    """includes_any/includes_all: first argument is searched for the rest."""

    def call(args: list[Any]) -> bool:
        if not args:
            raise InvalidOperand(f"{name}() requires at least 1 argument")
        search_in, search_for = args[0], _flatten(args[1:])
        haystack = list(search_in) if isinstance(search_in, (list, tuple)) else [search_in]
        if not haystack or haystack[0] is None:
            return when_empty
        return combine(_exists_in_options(name, needle, haystack) for needle in search_for)

    return call


def _does_not_include(args: list[Any]) -> bool:
    if not args:
        raise InvalidOperand("does_not_include() requires at least 1 argument")
    return not _includes_any(args)


_includes_any = _membership("includes_any", any, False)
_includes_all = _membership("includes_all", all, False)


def _is_absent(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def _has_any_value(args: list[Any]) -> bool:
    _require_args("has_any_value", args, 1)
    return not _is_absent(args[0])


def _has_no_value(args: list[Any]) -> bool:
    _require_args("has_no_value", args, 1)
    return _is_absent(args[0])


class FunctionLibrary:
    """Name-to-implementation table for formula function calls.

    ``clock`` returns the current naive UTC datetime; only ``age`` reads it.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or _utc_now
        round_ = _rounding("round", _round_half_away, ROUND_HALF_UP)
        raw_num = _answer_number("raw_num", lambda option: option.raw_value)
        self._functions: dict[str, Function] = {
            "sin": _math_unary("sin", math.sin),
            "cos": _math_unary("cos", math.cos),
            "tan": _math_unary("tan", math.tan),
            "log10": _math_unary("log10", math.log10),
            "sqrt": _math_unary("sqrt", math.sqrt),
            "abs": _math_unary("abs", abs),
            "mod": _mod,
            "floor": _rounding("floor", math.floor, ROUND_FLOOR),
            "ceil": _rounding("ceil", math.ceil, ROUND_CEILING),
            "round": round_,
            "roundTo": round_,
            "round_to": round_,
            "count": _count,
            "sum": _sum,
            "average": _average,
            "max": _max,
            "min": _min,
            "raw": _raw,
            "value": _raw,
            "display_num": _answer_number("display_num", lambda option: option.display_text),
            "raw_num": raw_num,
            "includes_any": _includes_any,
            "includes_all": _includes_all,
            "does_not_include": _does_not_include,
            "has_any_value": _has_any_value,
            "has_no_value": _has_no_value,
            "age": self._age,
        }

    def __contains__(self, name: str) -> bool:
        return name in self._functions

    def names(self) -> list[str]:
        return sorted(self._functions)

    def call(self, name: str, args: list[Any]) -> Any:
        """Invoke function ``name`` with evaluated ``args``."""
        fn = self._functions.get(name)
        if fn is None:
            raise InvalidOperand(f"Unknown function '{name}'")
        return fn(args)

    def _age(self, args: list[Any]) -> int:
        """Whole 365-day years between an ISO-8601 date and now."""
        _require_args("age", args, 1)
        value = args[0]
        if not isinstance(value, str) or len(value) < 10:
            raise InvalidOperand(f"age() requires an ISO-8601 date, got {value!r}")
        try:
            born = date.fromisoformat(value[:10])
        except ValueError as e:
            raise InvalidOperand(f"age() requires an ISO-8601 date, got {value!r}") from e
        elapsed = self._clock() - datetime.combine(born, time())
        return math.floor(elapsed.total_seconds() / SECONDS_PER_YEAR)
