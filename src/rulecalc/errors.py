"""Error kinds and the Result value returned by formula evaluation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorKind(Enum):
    """Discriminates the failure reported by an evaluation."""

    SYNTAX_ERROR = "syntax_error"
    INVALID_OPERAND = "invalid_operand"
    MISSING_KEY = "missing_key"
    MISSING_INDEX = "missing_index"


class FormulaError(Exception):
    """Base class for every evaluation failure.

    Instances are raised inside the evaluator and handed back to callers
    as the ``error`` of a failed Result.
    """

    kind: ErrorKind

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.args == other.args

    def __hash__(self) -> int:
        return hash((type(self), self.args))


class FormulaSyntaxError(FormulaError):
    """Lexing or parsing failed at ``position``."""

    kind = ErrorKind.SYNTAX_ERROR

    def __init__(self, position: int, found: Any = None, message: str | None = None) -> None:
        if message is None:
            if found is None:
                message = f"Syntax error at end of input (position {position})"
            else:
                message = f"Syntax error at '{found}' (position {position})"
        super().__init__(message, position, found)
        self.position = position
        self.found = found
        self.message = message

    def __str__(self) -> str:
        return self.message


class InvalidOperand(FormulaError):
    """An operator or function received a value it cannot work with."""

    kind = ErrorKind.INVALID_OPERAND

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class MissingKey(FormulaError):
    """A variable name is not present in the scope being searched."""

    kind = ErrorKind.MISSING_KEY

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Unknown variable '{self.key}'"


class MissingIndex(FormulaError):
    """An index falls outside the list it is applied to."""

    kind = ErrorKind.MISSING_INDEX

    def __init__(self, index: int) -> None:
        super().__init__(index)
        self.index = index

    def __str__(self) -> str:
        return f"Index {self.index} out of range"


@dataclass(frozen=True)
class Result:
    """Outcome of an evaluation: either a value or an error, never both."""

    value: Any = None
    error: FormulaError | None = None

    @classmethod
    def success(cls, value: Any) -> Result:
        return cls(value=value)

    @classmethod
    def failure(cls, error: FormulaError) -> Result:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """Return the value, raising the error if the evaluation failed."""
        if self.error is not None:
            raise self.error
        return self.value
