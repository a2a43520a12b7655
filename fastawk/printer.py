"""Canonical program printer.

Renders a parsed :class:`~fastawk.ast_nodes.Program` back into script text.
Every compound expression is wrapped in parentheses, so the output never
depends on operator precedence and parsing it again produces an equal tree.
Functions come first, then the rules in their original order.


File: printer.py
Version: 0.1.0
License: MIT
"""

import math

from fastawk.ast_nodes import (
    ArrayRef,
    Assign,
    BeginPattern,
    BinaryOp,
    Block,
    Break,
    Call,
    Continue,
    Delete,
    EndPattern,
    Exit,
    ExprPattern,
    ExprStmt,
    FieldRef,
    For,
    ForIn,
    Function,
    Getline,
    Identifier,
    If,
    IncDec,
    InArray,
    Literal,
    LogicalOp,
    Next,
    Print,
    Printf,
    Program,
    RangePattern,
    RegexLiteral,
    Return,
    Rule,
    Ternary,
    UnaryOp,
    While,
)
from fastawk.operations import SYMBOLS, Op
from fastawk.value import format_number

INDENT = "    "

_STRING_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\v": "\\v",
}


def format_program(program: Program) -> str:
    """
    Render a program as canonical source text.

    Parameters:
        program (Program): The parsed script.

    Returns:
        str: Script text that parses back to an equal program.
    """
    chunks = [format_function(function) for function in program.functions.values()]
    chunks.extend(format_rule(rule) for rule in program.rules)
    return "\n".join(chunks)


def format_function(function: Function) -> str:
    params = ", ".join(function.params)
    return f"function {function.name}({params}) {_block(function.body.statements, 0)}\n"


def format_rule(rule: Rule) -> str:
    pattern = _pattern(rule.pattern)
    body = _block(rule.action.statements, 0)
    if pattern:
        return f"{pattern} {body}\n"
    return f"{body}\n"


def _pattern(pattern) -> str:
    match pattern:
        case None:
            return ""
        case BeginPattern():
            return "BEGIN"
        case EndPattern():
            return "END"
        case ExprPattern(expr=expr):
            return format_expression(expr)
        case RangePattern(start=start, end=end):
            return f"{_pattern(start)}, {_pattern(end)}"
    raise TypeError(f"Cannot print pattern {pattern!r}")


def _block(statements, depth: int) -> str:
    if not statements:
        return "{\n" + INDENT * depth + "}"
    inner = "".join(
        INDENT * (depth + 1) + format_statement(stmt, depth + 1) + "\n"
        for stmt in statements
    )
    return "{\n" + inner + INDENT * depth + "}"


def format_statement(stmt, depth: int = 0) -> str:
    """
    Render one statement; nested lines are indented below ``depth``.
    """
    match stmt:
        case ExprStmt(expr=expr):
            return format_expression(expr)
        case Print(args=args, redirect=redirect):
            return _output("print", args, redirect)
        case Printf(args=args, redirect=redirect):
            return _output("printf", args, redirect)
        case Block(statements=statements):
            return _block(statements, depth)
        case If(condition=condition, then=then, else_=else_):
            text = f"if ({format_expression(condition)}) {format_statement(then, depth)}"
            if else_ is not None:
                text += "\n" + INDENT * depth + f"else {format_statement(else_, depth)}"
            return text
        case While(condition=condition, body=body):
            return f"while ({format_expression(condition)}) {format_statement(body, depth)}"
        case For(init=init, condition=condition, update=update, body=body):
            header = "; ".join(_optional(part) for part in (init, condition, update))
            return f"for ({header}) {format_statement(body, depth)}"
        case ForIn(var=var, array=array, body=body):
            return f"for ({var} in {array}) {format_statement(body, depth)}"
        case Break():
            return "break"
        case Continue():
            return "continue"
        case Next():
            return "next"
        case Exit(value=value):
            return "exit" if value is None else f"exit {format_expression(value)}"
        case Return(value=value):
            return "return" if value is None else f"return {format_expression(value)}"
        case Delete(name=name, indices=None):
            return f"delete {name}"
        case Delete(name=name, indices=indices):
            return f"delete {name}[{_list(indices)}]"
    raise TypeError(f"Cannot print statement {stmt!r}")


def _optional(expr) -> str:
    return "" if expr is None else format_expression(expr)


def _list(exprs) -> str:
    return ", ".join(format_expression(expr) for expr in exprs)


def _output(keyword: str, args, redirect) -> str:
    text = keyword
    if args:
        text += f" ({_list(args)})"
    if redirect is not None:
        text += f" {redirect.mode} {format_expression(redirect.target)}"
    return text


def format_string_literal(text: str) -> str:
    return '"' + "".join(_STRING_ESCAPES.get(ch, ch) for ch in text) + '"'


def format_expression(expr) -> str:
    """
    Render an expression with every compound form parenthesised.
    """
    match expr:
        case Literal(value=value) if value.is_number():
            number = value.to_number()
            if math.isinf(number):
                return "1e999"
            return format_number(number)
        case Literal(value=value):
            return format_string_literal(value.to_string())
        case RegexLiteral(pattern=pattern):
            return "/" + pattern.replace("/", "\\/") + "/"
        case Identifier(name=name):
            return name
        case FieldRef(index=index):
            return f"$({format_expression(index)})"
        case ArrayRef(name=name, indices=indices):
            return f"{name}[{_list(indices)}]"
        case BinaryOp(op=Op.CONCAT, left=left, right=right):
            return f"({format_expression(left)} {_concat_operand(right)})"
        case BinaryOp(op=op, left=left, right=right) | LogicalOp(op=op, left=left, right=right):
            return f"({format_expression(left)} {SYMBOLS[op]} {format_expression(right)})"
        case UnaryOp(op=op, operand=operand):
            return f"({SYMBOLS[op]}{format_expression(operand)})"
        case InArray(keys=[key], array=array):
            return f"({format_expression(key)} in {array})"
        case InArray(keys=keys, array=array):
            return f"(({_list(keys)}) in {array})"
        case Assign(target=target, value=value, op=op):
            symbol = "=" if op is None else SYMBOLS[op] + "="
            return f"({format_expression(target)} {symbol} {format_expression(value)})"
        case IncDec(target=target, delta=delta, prefix=prefix):
            symbol = "++" if delta > 0 else "--"
            target_text = format_expression(target)
            if prefix:
                return f"({symbol}{target_text})"
            return f"({target_text}{symbol})"
        case Ternary(condition=condition, if_true=if_true, if_false=if_false):
            return (
                f"({format_expression(condition)} ? {format_expression(if_true)}"
                f" : {format_expression(if_false)})"
            )
        case Call(name=name, args=args):
            return f"{name}({_list(args)})"
        case Getline(target=None):
            return "(getline)"
        case Getline(target=target):
            return f"(getline {format_expression(target)})"
    raise TypeError(f"Cannot print expression {expr!r}")


def _concat_operand(expr) -> str:
    # a "/" straight after an operand would lex as division
    text = format_expression(expr)
    if isinstance(expr, RegexLiteral):
        return f"({text})"
    return text
