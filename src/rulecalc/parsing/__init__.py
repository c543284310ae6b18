"""Lexing and parsing of formulas."""

from rulecalc.parsing.formula_lexer import FormulaLexer
from rulecalc.parsing.formula_parser import FormulaParser

__all__ = [
    "FormulaLexer",
    "FormulaParser",
]
