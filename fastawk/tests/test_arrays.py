"""
Tests for associative arrays
"""
import pytest

from fastawk.exceptions import AwkTypeError, InvalidArrayIndexError
from fastawk.tests.utils import output_lines, run_script


def test_count_words(capsys):
    """
    Test counting with array elements created on first use.
    """
    run_script(
        "{ for (i = 1; i <= NF; i++) count[$i]++ } END { print count[\"a\"], count[\"b\"], count[\"z\"] + 0 }",
        ["a b a", "b a"],
    )
    assert output_lines(capsys) == ["3 2 0"]


def test_for_in_visits_insertion_order(capsys):
    """
    Test that for-in walks keys in the order they were created.
    """
    run_script('BEGIN { a["x"] = 1; a["y"] = 2; a["z"] = 3; for (k in a) print k, a[k] }')
    assert output_lines(capsys) == ["x 1", "y 2", "z 3"]


def test_in_does_not_create_elements(capsys):
    """
    Test that membership tests leave the array unchanged.
    """
    run_script('BEGIN { if ("k" in a) print "yes"; else print "no"; print length(a) }')
    assert output_lines(capsys) == ["no", "0"]


def test_reference_creates_element(capsys):
    """
    Test that reading a missing element creates it.
    """
    run_script('BEGIN { x = a["k"]; print ("k" in a), length(a) }')
    assert output_lines(capsys) == ["1 1"]


def test_numeric_keys_are_strings(capsys):
    """
    Test that 1 and "1" address the same element.
    """
    run_script('BEGIN { a[1] = "one"; print a["1"]; a[0.5 + 0.5] = "again"; print a[1] }')
    assert output_lines(capsys) == ["one", "again"]


def test_multidimensional_keys(capsys):
    """
    Test comma subscripts joined with SUBSEP and grouped membership.
    """
    run_script(
        'BEGIN { m[1, 2] = "x"; SUBSEP = ":"; m[3, 4] = "y"; '
        'for (k in m) print length(k); print ((3, 4) in m), ("3:4" in m) }'
    )
    assert output_lines(capsys) == ["3", "3", "1 1"]


def test_delete_element_and_array(capsys):
    """
    Test deleting one element, a missing element and the whole array.
    """
    run_script(
        'BEGIN { a[1]; a[2]; a[3]; delete a[2]; delete a[9]; print length(a), (2 in a); '
        "delete a; print length(a) }"
    )
    assert output_lines(capsys) == ["2 0", "0"]


def test_delete_during_iteration(capsys):
    """
    Test that keys deleted mid-loop are skipped.
    """
    run_script(
        'BEGIN { a["p"]; a["q"]; a["r"]; for (k in a) { print k; delete a["q"] } }'
    )
    assert output_lines(capsys) == ["p", "r"]


def test_array_passed_by_reference(capsys):
    """
    Test that a function can fill the caller's array.
    """
    run_script(
        "function fill(arr, n,   i) { for (i = 1; i <= n; i++) arr[i] = i * i } "
        "BEGIN { fill(sq, 3); print length(sq), sq[2], sq[3] }"
    )
    assert output_lines(capsys) == ["3 4 9"]


def test_array_parameter_delete(capsys):
    """
    Test that delete through a parameter affects the caller's array.
    """
    run_script(
        'function wipe(arr) { delete arr } BEGIN { a["x"] = 1; wipe(a); print length(a) }'
    )
    assert output_lines(capsys) == ["0"]


def test_local_array(capsys):
    """
    Test that an extra parameter used as an array stays local.
    """
    run_script(
        'function f(   tmp) { tmp["k"] = 1; return length(tmp) } '
        'BEGIN { print f(), f(), length(tmp) }'
    )
    assert output_lines(capsys) == ["1 1 0"]


def test_split_fills_array(capsys):
    run_script('{ n = split($0, parts, ","); for (i = n; i >= 1; i--) printf "%s ", parts[i]; print "" }',
               ["a,b,c"])
    assert output_lines(capsys) == ["c b a "]


def test_array_used_as_scalar():
    with pytest.raises(AwkTypeError):
        run_script('BEGIN { a["k"] = 1; a = 2 }')


def test_builtin_variable_as_array():
    with pytest.raises(AwkTypeError):
        run_script("BEGIN { NR[1] = 2 }")


def test_array_as_subscript():
    """
    Test that an array cannot be used as a key.
    """
    with pytest.raises(InvalidArrayIndexError):
        run_script('BEGIN { b["x"] = 1; print a[b] }')
