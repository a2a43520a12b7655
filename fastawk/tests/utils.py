"""
Utility functions shared across fastawk tests.
"""
from pathlib import Path
import sys

from fastawk.interpreter import Interpreter
from fastawk.lexer import tokenize
from fastawk.parser import Parser

# Ensure the project root is on the Python path
PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))


def parse_source(source: str):
    """
    Parse source code and return the program.
    """
    return Parser(tokenize(source), "<test>").parse()


def run_script(source: str, records=(), assignments=()) -> Interpreter:
    """
    Run a script over the given records and return the interpreter.
    """
    interpreter = Interpreter(parse_source(source), file="<test>")
    interpreter.assign_variables(assignments)
    interpreter.run(list(records))
    return interpreter


def output_lines(capsys) -> list[str]:
    """
    Return what the script printed, one entry per line.
    """
    return capsys.readouterr().out.splitlines()
