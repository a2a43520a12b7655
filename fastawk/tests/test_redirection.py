"""
Tests for output redirection, close and system
"""
import sys

import pytest

from fastawk.exceptions import AwkRuntimeError
from fastawk.tests.utils import output_lines, run_script


def awk_path(path) -> str:
    return str(path).replace("\\", "/")


def test_print_to_file(tmp_path, capsys):
    """
    Test that > truncates once and then appends for the rest of the run.
    """
    target = tmp_path / "out.txt"
    target.write_text("old\n")
    run_script(f'{{ print $1 > "{awk_path(target)}" }}', ["a 1", "b 2"])
    assert target.read_text() == "a\nb\n"
    assert capsys.readouterr().out == ""


def test_append_to_file(tmp_path):
    target = tmp_path / "log.txt"
    target.write_text("old\n")
    run_script(f'BEGIN {{ print "new" >> "{awk_path(target)}" }}')
    assert target.read_text() == "old\nnew\n"


def test_dynamic_file_names(tmp_path):
    """
    Test splitting records into files named by a field.
    """
    run_script(
        f'{{ print $2 > ("{awk_path(tmp_path)}/" $1 ".txt") }}',
        ["x 1", "y 2", "x 3"],
    )
    assert (tmp_path / "x.txt").read_text() == "1\n3\n"
    assert (tmp_path / "y.txt").read_text() == "2\n"


def test_close_reopens_with_truncation(tmp_path):
    """
    Test that closing a file makes the next > start it over.
    """
    target = awk_path(tmp_path / "f.txt")
    run_script(f'BEGIN {{ print "one" > "{target}"; r = close("{target}"); print "two" > "{target}"; print r > "{target}" }}')
    assert (tmp_path / "f.txt").read_text() == "two\n0\n"


def test_printf_to_file(tmp_path):
    target = tmp_path / "fmt.txt"
    run_script(f'BEGIN {{ printf "%03d\\n", 7 > "{awk_path(target)}" }}')
    assert target.read_text() == "007\n"


def test_stdout_alias(capsys):
    run_script('BEGIN { print "via alias" > "/dev/stdout" }')
    assert output_lines(capsys) == ["via alias"]


def test_stderr_alias(capsys):
    run_script('BEGIN { print "oops" > "/dev/stderr" }')
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == "oops\n"


@pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")
def test_pipe_to_command(tmp_path):
    """
    Test that records piped to one command share a single process.
    """
    target = awk_path(tmp_path / "sorted.txt")
    run_script(
        f'{{ print $1 | "sort > {target}" }}',
        ["c", "a", "b"],
    )
    assert (tmp_path / "sorted.txt").read_text() == "a\nb\nc\n"


@pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")
def test_close_pipe_returns_status(capsys):
    run_script('BEGIN { print "x" | "cat > /dev/null; exit 3"; print close("cat > /dev/null; exit 3") }')
    assert output_lines(capsys) == ["3"]


@pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")
def test_system_returns_exit_status(capsys):
    run_script('BEGIN { print system("exit 2") }')
    assert output_lines(capsys) == ["2"]


def test_unwritable_target():
    """
    Test that a redirection that cannot be opened is a run-time error.
    """
    with pytest.raises(AwkRuntimeError):
        run_script('BEGIN { print "x" > "/nonexistent-dir/sub/file" }')
