"""
Tests for value coercion, comparison and arithmetic
"""
import math

import pytest

from fastawk.exceptions import AwkTypeError, DivisionByZeroError
from fastawk.value import Value, format_number, looks_numeric, parse_number


@pytest.mark.parametrize("number, text", [
    (42.0, "42"),
    (-3.0, "-3"),
    (0.5, "0.5"),
    (0.1 + 0.2, "0.30000000000000004"),
    (math.inf, "inf"),
    (-math.inf, "-inf"),
    (1e18, "1000000000000000000"),
    (1e20, "1e+20"),
])
def test_format_number(number, text):
    """
    Test number rendering for integral, fractional and infinite values.
    """
    assert format_number(number) == text


@pytest.mark.parametrize("text, number", [
    ("3abc", 3.0),
    ("abc", 0.0),
    ("  12.5  ", 12.5),
    ("-4e2x", -400.0),
    (".5", 0.5),
    ("", 0.0),
])
def test_parse_number_uses_longest_prefix(text, number):
    """
    Test that string to number conversion uses the longest numeric prefix.
    """
    assert parse_number(text) == number


def test_looks_numeric():
    """
    Test detection of strings that are wholly numeric.
    """
    assert looks_numeric("10")
    assert looks_numeric(" 1.5e3 ")
    assert looks_numeric("0x1A")
    assert not looks_numeric("10abc")
    assert not looks_numeric("")


def test_truthiness():
    """
    Test boolean coercion for every kind of value.
    """
    assert Value.string("0").to_bool()
    assert not Value.string("").to_bool()
    assert not Value.number(0).to_bool()
    assert Value.number(-1).to_bool()
    assert not Value.undefined().to_bool()


def test_undefined_coerces_to_empty_and_zero():
    """
    Test that an undefined value is both "" and 0.
    """
    value = Value.undefined()
    assert value.to_string() == ""
    assert value.to_number() == 0.0


def test_numeric_comparison_of_numeric_strings():
    """
    Test that numeric-looking strings compare as numbers.
    """
    assert Value.string("10").compare(Value.string("9")) == 1
    assert Value.string("0x10").compare(Value.number(16)) == 0


def test_string_comparison_when_either_side_is_not_numeric():
    """
    Test that a non-numeric operand forces string comparison.
    """
    assert Value.string("10").compare(Value.string("9a")) == -1
    assert Value.string("abc").compare(Value.string("abd")) == -1


def test_undefined_compares_against_both_kinds():
    """
    Test that undefined equals both 0 and the empty string.
    """
    assert Value.undefined().compare(Value.number(0)) == 0
    assert Value.undefined().compare(Value.string("")) == 0
    assert Value.undefined().compare(Value.number(1)) == -1


def test_arithmetic():
    """
    Test arithmetic on mixed values.
    """
    assert Value.string("3").add(Value.number(4)).to_number() == 7.0
    assert Value.number(7).modulo(Value.number(3)).to_number() == 1.0
    assert Value.number(-7).modulo(Value.number(3)).to_number() == -1.0
    assert Value.number(2).power(Value.number(10)).to_number() == 1024.0
    assert Value.string("a").concatenate(Value.number(1)).to_string() == "a1"


@pytest.mark.parametrize("method", ["divide", "modulo"])
def test_division_by_zero(method):
    """
    Test that division and modulo by zero raise.
    """
    with pytest.raises(DivisionByZeroError):
        getattr(Value.number(1), method)(Value.string("0"))


def test_power_overflow_is_infinite():
    """
    Test that an overflowing power yields infinity.
    """
    assert Value.number(10).power(Value.number(400)).to_number() == math.inf


def test_undefined_becomes_array_in_place():
    """
    Test that an undefined value turns into an array when used as one.
    """
    value = Value.undefined()
    value.set_element("k", Value.number(1))
    assert value.is_array()
    assert value.keys() == ["k"]
    assert value.get_element("k").to_number() == 1.0


def test_get_element_creates_missing_key():
    """
    Test that reading a missing element creates it.
    """
    value = Value.array()
    assert value.get_element("x").is_undefined()
    assert value.has_key("x")


def test_scalar_cannot_become_array():
    """
    Test that a scalar refuses to be used as an array.
    """
    with pytest.raises(AwkTypeError):
        Value.number(1).ensure_array("n")


def test_set_element_copies_scalars():
    """
    Test that stored elements are independent copies.
    """
    array = Value.array()
    item = Value.number(1)
    array.set_element("a", item)
    item.data = 2.0
    assert array.get_element("a").to_number() == 1.0


def test_delete_and_clear():
    """
    Test element deletion and array clearing.
    """
    array = Value.array()
    for key in ("a", "b", "c"):
        array.set_element(key, Value.string(key))
    array.delete_element("b")
    array.delete_element("missing")
    assert array.keys() == ["a", "c"]
    array.clear()
    assert array.array_len() == 0
