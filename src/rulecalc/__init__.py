"""rulecalc - evaluate business-rule formulas against form answers."""

from rulecalc.engine import Evaluator, evaluate
from rulecalc.errors import (
    ErrorKind,
    FormulaError,
    FormulaSyntaxError,
    InvalidOperand,
    MissingIndex,
    MissingKey,
    Result,
)
from rulecalc.functions import FunctionLibrary
from rulecalc.parsing import FormulaParser
from rulecalc.values import OptionRecord, Tag

__all__ = [
    # Main API
    "evaluate",
    "Evaluator",
    "Result",
    "FormulaParser",
    "FunctionLibrary",
    # Values
    "OptionRecord",
    "Tag",
    # Errors
    "ErrorKind",
    "FormulaError",
    "FormulaSyntaxError",
    "InvalidOperand",
    "MissingKey",
    "MissingIndex",
]

__version__ = "0.1.0"
