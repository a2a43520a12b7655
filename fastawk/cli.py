"""Command line front end.

Usage::

    fawk [-F fs] [-v var=value]... [-f progfile]... ['program'] [file | var=value]...

The program text comes from ``-f`` files when any are given, otherwise from
the first operand. Remaining operands are input files, read in order, or
``name=value`` assignments applied when they are reached; ``-`` names
standard input, which is also read when no file operand is given.

Input is cut into records with ``RS`` as it stands when each file is
opened: a newline gives one record per line, an empty string gives
paragraphs separated by blank lines, another single character splits on
that character and anything longer is a regular expression.

Set ``FASTAWK_DEBUG`` in the environment (or pass ``--debug``) to log
regex compilation, stream handling, range transitions and function calls to
standard error.


File: cli.py
Version: 0.1.0
License: MIT
"""

import argparse
import logging
import os
import re
import sys
from typing import Iterator, Optional

from fastawk import __version__
from fastawk.exceptions import AwkError
from fastawk.interpreter import Interpreter
from fastawk.lexer import unescape
from fastawk.parser import parse_script
from fastawk.printer import format_program
from fastawk.runtime import RuntimeContext, split_on_matches, translate_regex
from fastawk.value import Value

logger = logging.getLogger(__name__)

ASSIGNMENT_OPERAND = re.compile(r'([A-Za-z_][A-Za-z0-9_]*)=(.*)', re.DOTALL)

RECURSION_LIMIT = 10000


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fawk",
        description="Pattern-action text processing in the AWK tradition.",
    )
    parser.add_argument("-F", dest="field_separator", metavar="fs",
                        help="input field separator (sets FS)")
    parser.add_argument("-v", dest="assignments", metavar="var=value", action="append", default=[],
                        help="assign a variable before the program starts")
    parser.add_argument("-f", dest="program_files", metavar="progfile", action="append", default=[],
                        help="read the program from a file; may be repeated")
    parser.add_argument("--dump", action="store_true",
                        help="print the parsed program in canonical form and exit")
    parser.add_argument("--debug", action="store_true",
                        help="log interpreter events to standard error")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("operands", nargs="*", metavar="operand",
                        help="the program text (without -f), then input files or var=value")
    return parser


def parse_assignment(text: str) -> Optional[tuple[str, str]]:
    """
    Split a ``name=value`` operand, processing escapes in the value.

    Returns:
        tuple[str, str] | None: ``(name, value)``, or None if ``text`` is not
        an assignment.
    """
    match = ASSIGNMENT_OPERAND.fullmatch(text)
    if match is None:
        return None
    return match.group(1), unescape(match.group(2))


def split_records(text: str, separator: str) -> list[str]:
    """
    Cut input text into records.

    Parameters:
        text (str): The whole content of one input file.
        separator (str): The value of ``RS``.

    Returns:
        list[str]: The records, without their separators.
    """
    if separator == "":
        text = text.strip("\n")
        if not text:
            return []
        return re.split(r"\n\n+", text)
    if len(separator) == 1:
        records = text.split(separator)
    else:
        records = split_on_matches(re.compile(translate_regex(separator)), text)
    if records and records[-1] == "":
        records.pop()
    return records


def _read_input(name: str) -> str:
    if name == "-":
        return sys.stdin.read()
    with open(name, "r", encoding="utf-8") as handle:
        return handle.read()


def iter_records(operands: list[str], interpreter: Interpreter) -> Iterator[str]:
    """
    Yield the records of every input operand in order.

    Assignments among the operands take effect when they are reached.
    """
    context = interpreter.context
    has_files = any(parse_assignment(operand) is None for operand in operands)
    pending = operands if has_files else [*operands, "-"]
    for operand in pending:
        assignment = parse_assignment(operand)
        if assignment is not None:
            interpreter.assign_variables([assignment])
            continue
        context.set_filename("" if operand == "-" else operand)
        logger.debug("reading input %r", operand)
        yield from split_records(_read_input(operand), context.rs)


def load_program(args) -> tuple[str, str, list[str]]:
    """
    Work out the program text, its display name and the remaining operands.
    """
    operands = list(args.operands)
    if args.program_files:
        sources = []
        for path in args.program_files:
            with open(path, "r", encoding="utf-8") as handle:
                sources.append(handle.read())
        return "\n".join(sources), args.program_files[0], operands
    if not operands:
        raise ValueError("no program given")
    return operands[0], "<command line>", operands[1:]


def configure_logging(debug: bool) -> None:
    if debug or os.environ.get("FASTAWK_DEBUG"):
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(name)s: %(message)s",
        )


def main(argv: Optional[list[str]] = None) -> int:
    """
    Entry point for the CLI.

    Returns:
        int: The script's exit status, or 2 for usage, parse, run-time and
        input errors.
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.debug)
    sys.setrecursionlimit(max(sys.getrecursionlimit(), RECURSION_LIMIT))

    try:
        source, script_name, operands = load_program(args)
    except ValueError as exc:
        print(f"fawk: {exc}", file=sys.stderr)
        return 2
    except OSError as exc:
        print(f"fawk: can't open program file: {exc}", file=sys.stderr)
        return 2

    context = None
    try:
        program = parse_script(source, script_name)
        if args.dump:
            sys.stdout.write(format_program(program))
            return 0

        context = RuntimeContext()
        interpreter = Interpreter(program, context, script_name)
        if args.field_separator is not None:
            context.set_variable("FS", _field_separator(args.field_separator))
        assignments = []
        for text in args.assignments:
            assignment = parse_assignment(text)
            if assignment is None:
                print(f"fawk: -v requires var=value, got '{text}'", file=sys.stderr)
                return 2
            assignments.append(assignment)
        interpreter.assign_variables(assignments)

        return interpreter.run(iter_records(operands, interpreter))
    except AwkError as exc:
        sys.stdout.flush()
        print(f"fawk: {type(exc).__name__}: {exc}", file=sys.stderr)
        return 2
    except OSError as exc:
        sys.stdout.flush()
        print(f"fawk: {exc}", file=sys.stderr)
        return 2
    finally:
        if context is not None:
            context.close_all()


def _field_separator(text: str) -> Value:
    # POSIX: -F t means a tab
    if text == "t":
        return Value.string("\t")
    return Value.string(unescape(text))


if __name__ == "__main__":
    sys.exit(main())
