"""Tests for the formula lexer."""

import pytest

from rulecalc.errors import FormulaSyntaxError
from rulecalc.parsing.formula_lexer import FormulaLexer


@pytest.fixture
def lexer():
    lx = FormulaLexer()
    lx.build()
    return lx


def types(lexer, text):
    return [t.type for t in lexer.tokenize(text)]


class TestLiterals:
    """Tests for number, string and reserved word tokens."""

    def test_integer(self, lexer):
        tokens = lexer.tokenize("42")
        assert [(t.type, t.value) for t in tokens] == [("INTEGER", 42)]

    def test_float(self, lexer):
        tokens = lexer.tokenize("3.25")
        assert [(t.type, t.value) for t in tokens] == [("FLOAT", 3.25)]

    def test_float_without_fraction_digits(self, lexer):
        tokens = lexer.tokenize("1.")
        assert [(t.type, t.value) for t in tokens] == [("FLOAT", 1.0)]

    def test_float_with_implicit_leading_zero(self, lexer):
        tokens = lexer.tokenize(".5")
        assert [(t.type, t.value) for t in tokens] == [("FLOAT", 0.5)]

    def test_reserved_words(self, lexer):
        assert types(lexer, "not null true false") == ["NOT", "NULL", "TRUE", "FALSE"]

    def test_reserved_word_prefix_is_identifier(self, lexer):
        """Identifiers that merely start with a reserved word stay identifiers."""
        assert types(lexer, "nothing nullable trueish") == ["IDENTIFIER"] * 3

    def test_string(self, lexer):
        tokens = lexer.tokenize('"Yes, currently"')
        assert tokens[0].type == "STRING"
        assert tokens[0].value == "Yes, currently"

    def test_string_escaped_quote(self, lexer):
        tokens = lexer.tokenize(r'"a\"b"')
        assert tokens[0].value == 'a"b'

    def test_string_escaped_backslash(self, lexer):
        tokens = lexer.tokenize(r'"a\\b"')
        assert tokens[0].value == "a\\b"

    def test_string_other_escapes_kept_verbatim(self, lexer):
        tokens = lexer.tokenize(r'"line\nbreak"')
        assert tokens[0].value == "line\\nbreak"

    def test_string_with_unicode(self, lexer):
        tokens = lexer.tokenize('"Yes — currently"')
        assert tokens[0].value == "Yes — currently"


class TestIdentifiers:
    """Tests for identifier tokens."""

    def test_dotted_identifier_is_one_token(self, lexer):
        tokens = lexer.tokenize("a.b.c")
        assert [(t.type, t.value) for t in tokens] == [("IDENTIFIER", "a.b.c")]

    def test_hyphenated_identifier_is_one_token(self, lexer):
        tokens = lexer.tokenize("first-name")
        assert [(t.type, t.value) for t in tokens] == [("IDENTIFIER", "first-name")]

    def test_spaced_minus_is_operator(self, lexer):
        assert types(lexer, "a - b") == ["IDENTIFIER", "MINUS", "IDENTIFIER"]

    def test_dot_after_index(self, lexer):
        assert types(lexer, "a[0].b") == [
            "IDENTIFIER", "LBRACKET", "INTEGER", "RBRACKET", "DOT", "IDENTIFIER",
        ]

    def test_access_chain(self, lexer):
        assert types(lexer, "a.b.c[1]") == ["IDENTIFIER", "LBRACKET", "INTEGER", "RBRACKET"]


class TestOperators:
    """Tests for operator tokens."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("==", "EQ"),
            ("!=", "NEQ"),
            ("<=", "LTE"),
            (">=", "GTE"),
            ("<<", "SHL"),
            (">>", "SHR"),
            ("&&", "AND"),
            ("||", "OR"),
            ("|^", "XOR"),
            ("<", "LT"),
            (">", "GT"),
            ("&", "AMP"),
            ("|", "PIPE"),
            ("!", "BANG"),
            ("^", "CARET"),
            ("~", "TILDE"),
        ],
    )
    def test_operator(self, lexer, text, expected):
        assert types(lexer, text) == [expected]

    def test_factorial_then_comparison(self, lexer):
        assert types(lexer, "5! == 120") == ["INTEGER", "BANG", "EQ", "INTEGER"]

    def test_ternary(self, lexer):
        assert types(lexer, "a ? 1 : 2") == ["IDENTIFIER", "QUESTION", "INTEGER", "COLON", "INTEGER"]

    def test_whitespace_discarded(self, lexer):
        assert types(lexer, " 1 \t+\n2 ") == ["INTEGER", "PLUS", "INTEGER"]

    def test_token_positions(self, lexer):
        tokens = lexer.tokenize("10 + x")
        assert [t.lexpos for t in tokens] == [0, 3, 5]


class TestErrors:
    """Tests for lexing failures."""

    def test_illegal_character(self, lexer):
        with pytest.raises(FormulaSyntaxError) as exc_info:
            lexer.tokenize("1 + @")
        assert exc_info.value.position == 4
        assert exc_info.value.found == "@"

    def test_single_equals_is_illegal(self, lexer):
        with pytest.raises(FormulaSyntaxError):
            lexer.tokenize("a = 1")

    def test_unterminated_string(self, lexer):
        with pytest.raises(FormulaSyntaxError) as exc_info:
            lexer.tokenize('"abc')
        assert exc_info.value.position == 0
