"""Tests for numeric coercion, equality and ordering."""

import enum

import pytest

from rulecalc.coercion import (
    equals,
    force_number,
    greater_than,
    greater_than_or_equal,
    less_than,
    less_than_or_equal,
    native_equal,
)
from rulecalc.values import OptionRecord, Tag


class Colour(enum.Enum):
    red = 1


class TestForceNumber:
    """Tests for numeric string coercion."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("12", 12),
            ("-7", -7),
            ("+3", 3),
            ("1.5", 1.5),
            ("-5.3", -5.3),
            ("1.5e3", 1500.0),
        ],
    )
    def test_parses(self, text, expected):
        assert force_number(text) == expected
        assert type(force_number(text)) is type(expected)

    @pytest.mark.parametrize("text", ["abc", "", " 5", "5 ", "1.", ".5", "1e5", "12abc", "1.2.3"])
    def test_rejects_leftovers(self, text):
        assert force_number(text) is None

    def test_numbers_pass_through(self):
        assert force_number(3) == 3
        assert force_number(2.5) == 2.5

    def test_non_numbers(self):
        assert force_number(True) is None
        assert force_number(None) is None
        assert force_number([1]) is None


class TestEquals:
    """Tests for cross-representation equality."""

    def test_numeric_string_equals_number(self):
        assert equals("33", 33)
        assert equals(33, "33")
        assert equals("33.0", 33)

    def test_non_numeric_string_does_not_equal_number(self):
        assert not equals("abc", 33)
        assert not equals(33, "abc")

    def test_unparsable_string_compares_rendered_form(self):
        assert not equals("1.", 1.0)

    def test_int_equals_float(self):
        assert equals(1, 1.0)

    def test_boolean_never_equals_number(self):
        assert not equals(True, 1)
        assert not equals(0, False)
        assert equals(True, True)

    def test_null(self):
        assert equals(None, None)
        assert not equals(None, 0)
        assert not equals(None, "")

    def test_option_equals_display_text(self):
        option = OptionRecord("Yes", 1)
        assert equals(option, "Yes")
        assert equals("Yes", option)
        assert not equals(option, "No")

    def test_option_mapping_equals_display_text(self):
        assert equals({"display_text": "Yes", "raw_value": 1}, "Yes")

    def test_two_options(self):
        assert equals(OptionRecord("Yes", 1), OptionRecord("Yes", 1))
        assert not equals(OptionRecord("Yes", 1), OptionRecord("Yes", 2))
        assert not equals(OptionRecord("Yes", 1), OptionRecord("yes", 1))

    def test_tag_equals_spelling(self):
        assert equals(Tag("foo"), "foo")
        assert equals("foo", Tag("foo"))
        assert equals(Tag("foo"), Tag("foo"))
        assert not equals(Tag("foo"), Tag("bar"))
        assert not equals(Tag("foo"), "bar")

    def test_enum_member_is_a_tag(self):
        assert equals(Colour.red, "red")

    def test_single_option_list_equals_string(self):
        assert equals([OptionRecord("Yes", "y")], "Yes")
        assert equals("Yes", [OptionRecord("Yes", "y")])
        assert not equals([OptionRecord("Yes", "y"), OptionRecord("No", "n")], "Yes")

    def test_lists(self):
        assert equals([1, "a"], [1, "a"])
        assert equals([1], [1.0])
        assert not equals([True], [1])

    def test_not_transitive(self):
        """Mixed representations are equal pairwise but not transitively."""
        option = OptionRecord("1", 1)
        assert equals(option, "1")
        assert equals("1", 1)
        assert not equals(option, 1)

    def test_native_equal(self):
        assert native_equal("a", "a")
        assert not native_equal(1, True)


class TestOrdering:
    """Tests for <, <=, >, >= across representations."""

    def test_numbers(self):
        assert greater_than(42, 10)
        assert greater_than_or_equal(42, 42)
        assert less_than(10, 42.5)
        assert less_than_or_equal(10, 10.0)

    def test_numeric_string_against_number(self):
        assert greater_than("42", 10)
        assert less_than(10, "42")
        assert less_than_or_equal("10.0", 10)

    def test_strings(self):
        assert less_than("apple", "banana")

    def test_unparsable_string_sorts_after_numbers(self):
        assert greater_than("abc", 1000)
        assert less_than(1000, "abc")

    def test_atoms_sort_after_numbers(self):
        assert less_than(1, None)
        assert less_than(1, True)
        assert less_than(False, True)

    def test_lists_compare_element_wise(self):
        assert less_than([1, 2], [1, 3])
        assert less_than([1], [1, 0])

    def test_records_sort_before_lists(self):
        assert less_than(OptionRecord("z", 1), [0])


class TestAtoms:
    """Booleans and null are atoms and equal their spelling."""

    def test_booleans(self):
        assert equals(True, "true")
        assert equals("false", False)
        assert not equals(True, "false")

    def test_null(self):
        assert equals(None, "nil")
        assert not equals(None, "null")
