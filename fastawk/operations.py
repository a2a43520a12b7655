"""Shared definitions for AST operation identifiers.

This module centralizes the operator names used by the parser, the
interpreter and the canonical printer to label binary, unary and compound
assignment nodes. Keeping them in one place prevents the three components
from drifting apart when an operator is added or renamed.


File: operations.py
Version: 0.1.0
License: MIT
"""

from enum import Enum


class Op(str, Enum):
    """
    Enumeration of supported AST operation names.
    """

    # Arithmetic
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIV = "div"
    MOD = "mod"
    POW = "pow"

    # Comparison
    EQ = "eq"
    NE = "ne"
    GT = "gt"
    LT = "lt"
    GE = "ge"
    LE = "le"

    # Regex matching
    MATCH = "match"
    NOT_MATCH = "not_match"

    # Strings
    CONCAT = "concat"

    # Boolean
    AND = "and"
    OR = "or"
    NOT = "not"

    # Unary arithmetic
    NEG = "neg"
    POS = "pos"

    def __str__(self) -> str:  # pragma: no cover - trivial
        """
        Return the underlying string value for nicer debug output.
        """
        return self.value


# Source spelling of each operator, shared by the lexer-facing parser tables
# and the canonical printer.
SYMBOLS = {
    Op.ADD: "+",
    Op.SUB: "-",
    Op.MUL: "*",
    Op.DIV: "/",
    Op.MOD: "%",
    Op.POW: "^",
    Op.EQ: "==",
    Op.NE: "!=",
    Op.GT: ">",
    Op.LT: "<",
    Op.GE: ">=",
    Op.LE: "<=",
    Op.MATCH: "~",
    Op.NOT_MATCH: "!~",
    Op.CONCAT: " ",
    Op.AND: "&&",
    Op.OR: "||",
    Op.NOT: "!",
    Op.NEG: "-",
    Op.POS: "+",
}

ARITHMETIC = frozenset({Op.ADD, Op.SUB, Op.MUL, Op.DIV, Op.MOD, Op.POW})
COMPARISON = frozenset({Op.EQ, Op.NE, Op.GT, Op.LT, Op.GE, Op.LE})

# Names the parser treats as built-in calls and the interpreter dispatches to
# the runtime library.
BUILTIN_FUNCTIONS = frozenset({
    "length", "substr", "index", "split", "gsub", "sub", "match", "sprintf",
    "toupper", "tolower", "sin", "cos", "atan2", "exp", "log", "sqrt", "int",
    "rand", "srand", "close", "fflush", "system",
})


__all__ = [
    "Op",
    "SYMBOLS",
    "ARITHMETIC",
    "COMPARISON",
    "BUILTIN_FUNCTIONS",
]
