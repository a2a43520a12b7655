"""AST node definitions.

Plain data classes for the parsed script. Every node owns its children
exclusively, trees are acyclic and nothing is mutated after the parser builds
it. Each node records the line it started on for error messages; the line is
excluded from equality so two parses of equivalent text compare equal.


File: ast_nodes.py
Version: 0.1.0
License: MIT
"""

from dataclasses import dataclass, field
from typing import Optional

from fastawk.operations import Op
from fastawk.value import Value


@dataclass
class Node:
    """Base class for all AST nodes."""
    line: int = field(default=0, compare=False, kw_only=True)


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------

@dataclass
class Expression(Node):
    """Base class for expression nodes."""


@dataclass
class Literal(Expression):
    """A string or number constant."""
    value: Value


@dataclass
class RegexLiteral(Expression):
    """/pattern/, which matches $0 unless used where a pattern is expected."""
    pattern: str


@dataclass
class Identifier(Expression):
    """A variable reference."""
    name: str


@dataclass
class FieldRef(Expression):
    """$expr"""
    index: Expression


@dataclass
class ArrayRef(Expression):
    """name[expr, ...]; several subscripts are joined with SUBSEP."""
    name: str
    indices: list[Expression]


@dataclass
class BinaryOp(Expression):
    """Arithmetic, comparison, regex match and concatenation."""
    op: Op
    left: Expression
    right: Expression


@dataclass
class LogicalOp(Expression):
    """Short-circuit && and ||."""
    op: Op
    left: Expression
    right: Expression


@dataclass
class UnaryOp(Expression):
    """!expr, -expr, +expr"""
    op: Op
    operand: Expression


@dataclass
class InArray(Expression):
    """(key, ...) in name"""
    keys: list[Expression]
    array: str


@dataclass
class Assign(Expression):
    """target = value, or target op= value when ``op`` is set."""
    target: Expression
    value: Expression
    op: Optional[Op] = None


@dataclass
class IncDec(Expression):
    """++x, x++, --x, x--"""
    target: Expression
    delta: int
    prefix: bool


@dataclass
class Ternary(Expression):
    """condition ? if_true : if_false"""
    condition: Expression
    if_true: Expression
    if_false: Expression


@dataclass
class Call(Expression):
    """A built-in or user-defined function call."""
    name: str
    args: list[Expression]


@dataclass
class Getline(Expression):
    """getline [lvalue] reads the next record from the driver."""
    target: Optional[Expression] = None


LVALUES = (Identifier, FieldRef, ArrayRef)


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------

@dataclass
class Statement(Node):
    """Base class for statement nodes."""


@dataclass
class ExprStmt(Statement):
    expr: Expression


@dataclass
class Redirect(Node):
    """Output redirection: mode is '>', '>>' or '|'."""
    mode: str
    target: Expression


@dataclass
class Print(Statement):
    args: list[Expression]
    redirect: Optional[Redirect] = None


@dataclass
class Printf(Statement):
    """printf format, args...; ``args[0]`` is the format."""
    args: list[Expression]
    redirect: Optional[Redirect] = None


@dataclass
class Block(Statement):
    statements: list[Statement]


@dataclass
class If(Statement):
    condition: Expression
    then: Statement
    else_: Optional[Statement] = None


@dataclass
class While(Statement):
    condition: Expression
    body: Statement


@dataclass
class For(Statement):
    init: Optional[Expression]
    condition: Optional[Expression]
    update: Optional[Expression]
    body: Statement


@dataclass
class ForIn(Statement):
    var: str
    array: str
    body: Statement


@dataclass
class Break(Statement):
    pass


@dataclass
class Continue(Statement):
    pass


@dataclass
class Next(Statement):
    pass


@dataclass
class Exit(Statement):
    value: Optional[Expression] = None


@dataclass
class Return(Statement):
    value: Optional[Expression] = None


@dataclass
class Delete(Statement):
    """delete name[indices], or delete name when ``indices`` is None."""
    name: str
    indices: Optional[list[Expression]] = None


# ---------------------------------------------------------------------------
# Program structure
# ---------------------------------------------------------------------------

@dataclass
class Pattern(Node):
    """Base class for rule patterns."""


@dataclass
class BeginPattern(Pattern):
    pass


@dataclass
class EndPattern(Pattern):
    pass


@dataclass
class ExprPattern(Pattern):
    expr: Expression


@dataclass
class RangePattern(Pattern):
    start: Pattern
    end: Pattern


@dataclass
class Action(Node):
    statements: list[Statement] = field(default_factory=list)


@dataclass
class Rule(Node):
    """A rule without a pattern matches every record."""
    pattern: Optional[Pattern]
    action: Action


@dataclass
class Function(Node):
    name: str
    params: list[str]
    body: Action


@dataclass
class Program(Node):
    """The parsed script: rules in declaration order plus user functions."""
    rules: list[Rule] = field(default_factory=list)
    functions: dict[str, Function] = field(default_factory=dict)

    def begin_rules(self) -> list[Rule]:
        return [rule for rule in self.rules if isinstance(rule.pattern, BeginPattern)]

    def end_rules(self) -> list[Rule]:
        return [rule for rule in self.rules if isinstance(rule.pattern, EndPattern)]

    def main_rules(self) -> list[Rule]:
        return [
            rule for rule in self.rules
            if not isinstance(rule.pattern, (BeginPattern, EndPattern))
        ]

    def has_main_rules(self) -> bool:
        return bool(self.main_rules())

    def has_end_rules(self) -> bool:
        return bool(self.end_rules())
