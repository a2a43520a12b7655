"""
Tests for rule patterns, including ranges
"""
from fastawk.tests.utils import output_lines, run_script


RECORDS = ["a", "start", "b", "stop", "c", "start", "d"]


def test_range_is_inclusive(capsys):
    """
    Test that a range covers its start and end records.
    """
    run_script("/start/, /stop/", RECORDS)
    assert output_lines(capsys) == ["start", "b", "stop", "start", "d"]


def test_range_start_and_end_on_same_record(capsys):
    """
    Test that a record matching both patterns opens and closes the range.
    """
    run_script("/x/, /x/ { print NR }", ["x", "y", "x"])
    assert output_lines(capsys) == ["1", "3"]


def test_range_with_expression_patterns(capsys):
    run_script("NR == 2, NR == 4 { print $0 }", ["1", "2", "3", "4", "5"])
    assert output_lines(capsys) == ["2", "3", "4"]


def test_ranges_are_independent(capsys):
    """
    Test that each range rule keeps its own state.
    """
    run_script(
        '/a/, /b/ { print "r1", $0 } /b/, /c/ { print "r2", $0 }',
        ["a", "b", "c"],
    )
    assert output_lines(capsys) == ["r1 a", "r1 b", "r2 b", "r2 c"]


def test_expression_pattern_truthiness(capsys):
    """
    Test that a field is true whenever it is non-empty, even "0".
    """
    run_script("$1", ["0", "1", "", "x"])
    assert output_lines(capsys) == ["0", "1", "x"]


def test_numeric_pattern(capsys):
    run_script("$1 + 0", ["0", "2", "abc"])
    assert output_lines(capsys) == ["2"]


def test_comparison_pattern(capsys):
    run_script("$2 > 10 { print $1 }", ["a 5", "b 20", "c 11"])
    assert output_lines(capsys) == ["b", "c"]


def test_compound_pattern(capsys):
    run_script('/^a/ && !/z/ { print }', ["abc", "az", "b"])
    assert output_lines(capsys) == ["abc"]


def test_rules_run_in_order(capsys):
    """
    Test that every matching rule runs, in declaration order.
    """
    run_script('{ print "one" } /x/ { print "two" } { print "three" }', ["x"])
    assert output_lines(capsys) == ["one", "two", "three"]
