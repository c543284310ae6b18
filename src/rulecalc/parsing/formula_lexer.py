"""Lexer for rule formulas."""

import re

import ply.lex as lex

from rulecalc.errors import FormulaSyntaxError

_ESCAPE = re.compile(r'\\(["\\])')


class FormulaLexer:
    """Lexer for tokenizing formulas."""

    # Reserved keywords
    reserved = {
        "not": "NOT",
        "null": "NULL",
        "true": "TRUE",
        "false": "FALSE",
    }

    # Token list
    tokens = [
        "IDENTIFIER",
        "FLOAT",
        "INTEGER",
        "STRING",
        "PLUS",
        "MINUS",
        "TIMES",
        "DIVIDE",
        "CARET",
        "BANG",
        "EQ",
        "NEQ",
        "LT",
        "LTE",
        "GT",
        "GTE",
        "SHL",
        "SHR",
        "AND",
        "OR",
        "XOR",
        "AMP",
        "PIPE",
        "TILDE",
        "QUESTION",
        "COLON",
        "COMMA",
        "DOT",
        "LPAREN",
        "RPAREN",
        "LBRACKET",
        "RBRACKET",
    ] + list(reserved.values())

    # Simple tokens. PLY sorts string-defined tokens longest-first,
    # so == != <= >= << >> && || |^ win over their one-character prefixes
    t_EQ = r"=="
    t_NEQ = r"!="
    t_LTE = r"<="
    t_GTE = r">="
    t_SHL = r"<<"
    t_SHR = r">>"
    t_AND = r"&&"
    t_OR = r"\|\|"
    t_XOR = r"\|\^"
    t_LT = r"<"
    t_GT = r">"
    t_AMP = r"&"
    t_PIPE = r"\|"
    t_PLUS = r"\+"
    t_MINUS = r"-"
    t_TIMES = r"\*"
    t_DIVIDE = r"/"
    t_CARET = r"\^"
    t_BANG = r"!"
    t_TILDE = r"~"
    t_QUESTION = r"\?"
    t_COLON = r":"
    t_COMMA = r","
    t_DOT = r"\."
    t_LPAREN = r"\("
    t_RPAREN = r"\)"
    t_LBRACKET = r"\["
    t_RBRACKET = r"\]"

    t_ignore = " \t\r"

    def __init__(self) -> None:
        self.lexer: lex.Lexer = None  # type: ignore

    # Function tokens are tried in definition order

    def t_FLOAT(self, t: lex.LexToken) -> lex.LexToken:
        r"\d+\.\d*|\.\d+"
        t.value = float(t.value)
        return t

    def t_INTEGER(self, t: lex.LexToken) -> lex.LexToken:
        r"\d+"
        t.value = int(t.value)
        return t

    def t_STRING(self, t: lex.LexToken) -> lex.LexToken:
        r'"([^"\\]|\\.)*"'
        # Only \\ and \" are escapes; other backslashes are kept as written
        t.value = _ESCAPE.sub(r"\1", t.value[1:-1])
        return t

    def t_IDENTIFIER(self, t: lex.LexToken) -> lex.LexToken:
        r"[A-Za-z_][A-Za-z0-9_\-.]*"
        t.type = self.reserved.get(t.value, "IDENTIFIER")
        return t

    def t_NEWLINE(self, t: lex.LexToken) -> None:
        r"\n+"
        t.lexer.lineno += len(t.value)

    def t_error(self, t: lex.LexToken) -> None:
        raise FormulaSyntaxError(t.lexpos, t.value[0])

    def build(self, **kwargs) -> None:  # type: ignore
        """Build the lexer."""
        kwargs.setdefault("errorlog", lex.NullLogger())
        self.lexer = lex.lex(module=self, **kwargs)

    def input(self, data: str) -> None:
        """Set the input string to tokenize."""
        self.lexer.input(data)

    def token(self) -> lex.LexToken | None:
        """Return the next token."""
        return self.lexer.token()

    def tokenize(self, data: str) -> list[lex.LexToken]:
        """Tokenize the input and return all tokens."""
        self.input(data)
        tokens = []
        while True:
            tok = self.token()
            if tok is None:
                break
            tokens.append(tok)
        return tokens
