"""Parser for rule formulas."""

from __future__ import annotations

from typing import Any

import ply.yacc as yacc

from rulecalc.errors import FormulaSyntaxError
from rulecalc.parsing.formula_lexer import FormulaLexer
from rulecalc.parsing.nodes import (
    Access,
    BinaryExpr,
    BinaryOp,
    BoolLit,
    FunctionCall,
    Index,
    Node,
    NullLit,
    NumberLit,
    StringLit,
    TernaryIf,
    UnaryExpr,
    UnaryOp,
    Variable,
    depth,
)

DEFAULT_MAX_DEPTH = 256

_BINARY_OPS = {
    "OR": BinaryOp.LOGICAL_OR,
    "AND": BinaryOp.LOGICAL_AND,
    "PIPE": BinaryOp.BIT_OR,
    "XOR": BinaryOp.BIT_XOR,
    "AMP": BinaryOp.BIT_AND,
    "EQ": BinaryOp.EQ,
    "NEQ": BinaryOp.NEQ,
    "LT": BinaryOp.LT,
    "LTE": BinaryOp.LTE,
    "GT": BinaryOp.GT,
    "GTE": BinaryOp.GTE,
    "SHL": BinaryOp.SHIFT_LEFT,
    "SHR": BinaryOp.SHIFT_RIGHT,
    "PLUS": BinaryOp.ADD,
    "MINUS": BinaryOp.SUBTRACT,
    "TIMES": BinaryOp.MULTIPLY,
    "DIVIDE": BinaryOp.DIVIDE,
    "CARET": BinaryOp.POWER,
}

_PREFIX_OPS = {
    "MINUS": UnaryOp.NEGATE,
    "PLUS": UnaryOp.PLUS,
    "TILDE": UnaryOp.BIT_NOT,
    "NOT": UnaryOp.LOGICAL_NOT,
}


class FormulaParser:
    """Parser for formulas.

    Builds an immutable AST (see rulecalc.parsing.nodes). The first error
    aborts parsing with a FormulaSyntaxError; there is no recovery.
    """

    tokens = FormulaLexer.tokens

    # Operator precedence: loosest to tightest
    precedence = (
        ("right", "QUESTION", "COLON"),
        ("left", "OR"),
        ("left", "AND"),
        ("left", "PIPE"),
        ("left", "XOR"),
        ("left", "AMP"),
        ("left", "EQ", "NEQ"),
        ("left", "LT", "LTE", "GT", "GTE"),
        ("left", "SHL", "SHR"),
        ("left", "PLUS", "MINUS"),
        ("left", "TIMES", "DIVIDE"),
        ("right", "CARET"),
        ("right", "UMINUS", "UPLUS", "TILDE", "NOT"),
        ("left", "BANG"),
    )

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self.lexer = FormulaLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore
        self.max_depth = max_depth
        self._source = ""

    def p_expression(self, p: yacc.YaccProduction) -> None:
        """expression : expr"""
        p[0] = p[1]

    def p_expr_ternary(self, p: yacc.YaccProduction) -> None:
        """expr : expr QUESTION expr COLON expr %prec QUESTION"""
        p[0] = TernaryIf(p[1], p[3], p[5], position=p[1].position)

    def p_expr_binary(self, p: yacc.YaccProduction) -> None:
        """expr : expr OR expr
                | expr AND expr
                | expr PIPE expr
                | expr XOR expr
                | expr AMP expr
                | expr EQ expr
                | expr NEQ expr
                | expr LT expr
                | expr LTE expr
                | expr GT expr
                | expr GTE expr
                | expr SHL expr
                | expr SHR expr
                | expr PLUS expr
                | expr MINUS expr
                | expr TIMES expr
                | expr DIVIDE expr
                | expr CARET expr"""
        op = _BINARY_OPS[p.slice[2].type]
        p[0] = BinaryExpr(op, p[1], p[3], position=p[1].position)

    def p_expr_prefix(self, p: yacc.YaccProduction) -> None:
        """expr : MINUS expr %prec UMINUS
                | PLUS expr %prec UPLUS
                | TILDE expr
                | NOT expr"""
        op = _PREFIX_OPS[p.slice[1].type]
        operand = p[2]
        if op is UnaryOp.NEGATE and isinstance(operand, NumberLit):
            # Fold negative literals
            p[0] = NumberLit(-operand.value, position=p.lexpos(1))
        else:
            p[0] = UnaryExpr(op, operand, position=p.lexpos(1))

    def p_expr_factorial(self, p: yacc.YaccProduction) -> None:
        """expr : expr BANG"""
        p[0] = UnaryExpr(UnaryOp.FACTORIAL, p[1], position=p[1].position)

    def p_expr_group(self, p: yacc.YaccProduction) -> None:
        """expr : LPAREN expr RPAREN"""
        p[0] = p[2]

    def p_expr_number(self, p: yacc.YaccProduction) -> None:
        """expr : INTEGER
                | FLOAT"""
        p[0] = NumberLit(p[1], position=p.lexpos(1))

    def p_expr_string(self, p: yacc.YaccProduction) -> None:
        """expr : STRING"""
        p[0] = StringLit(p[1], position=p.lexpos(1))

    def p_expr_true(self, p: yacc.YaccProduction) -> None:
        """expr : TRUE"""
        p[0] = BoolLit(True, position=p.lexpos(1))

    def p_expr_false(self, p: yacc.YaccProduction) -> None:
        """expr : FALSE"""
        p[0] = BoolLit(False, position=p.lexpos(1))

    def p_expr_null(self, p: yacc.YaccProduction) -> None:
        """expr : NULL"""
        p[0] = NullLit(position=p.lexpos(1))

    def p_expr_access(self, p: yacc.YaccProduction) -> None:
        """expr : access"""
        segments, position = p[1]
        p[0] = Access(tuple(segments), position=position)

    def p_expr_call(self, p: yacc.YaccProduction) -> None:
        """expr : IDENTIFIER LPAREN arg_list RPAREN
                | IDENTIFIER LPAREN RPAREN"""
        args = tuple(p[3]) if len(p) == 5 else ()
        p[0] = FunctionCall(p[1], args, position=p.lexpos(1))

    def p_arg_list_single(self, p: yacc.YaccProduction) -> None:
        """arg_list : expr"""
        p[0] = [p[1]]

    def p_arg_list_multiple(self, p: yacc.YaccProduction) -> None:
        """arg_list : arg_list COMMA expr"""
        p[0] = p[1] + [p[3]]

    # Access chains are built as (segments, position) and frozen in p_expr_access

    def p_access_variable(self, p: yacc.YaccProduction) -> None:
        """access : IDENTIFIER"""
        p[0] = ([Variable(p[1])], p.lexpos(1))

    def p_access_index(self, p: yacc.YaccProduction) -> None:
        """access : access LBRACKET expr RBRACKET"""
        segments, position = p[1]
        p[0] = (segments + [Index(p[3])], position)

    def p_access_member(self, p: yacc.YaccProduction) -> None:
        """access : access DOT IDENTIFIER"""
        segments, position = p[1]
        p[0] = (segments + [Variable(p[3])], position)

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise FormulaSyntaxError(p.lexpos, p.value)
        else:
            raise FormulaSyntaxError(len(self._source))

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        kwargs.setdefault("debug", False)
        kwargs.setdefault("write_tables", False)
        kwargs.setdefault("errorlog", yacc.NullLogger())
        self.parser = yacc.yacc(module=self, start="expression", **kwargs)

    def parse(self, data: str) -> Node:
        """Parse a formula string into an AST."""
        if self.parser is None:
            self.build()

        self._source = data
        tree = self.parser.parse(data, lexer=self.lexer.lexer)
        if depth(tree) > self.max_depth:
            raise FormulaSyntaxError(
                0,
                message=f"Expression nesting exceeds the maximum depth of {self.max_depth}",
            )
        return tree
