"""Expression parsing utilities for fastawk.

These functions operate on a `fastawk.parser.parser.Parser` instance and
implement the recursive descent logic for expressions, maintaining operator
precedence and associativity. From lowest to highest binding:

    ?:  ||  &&  in  ~ !~  relational  concatenation  + -  * / %  ^
    unary ! - + ++ --  postfix ++ -- and assignment  primary

Assignment is recognised after an lvalue has been parsed and takes a full
expression on its right, which makes it right-associative.


File: expressions.py
Version: 0.1.0
License: MIT
"""

from typing import TYPE_CHECKING

from fastawk.ast_nodes import (
    LVALUES,
    ArrayRef,
    Assign,
    BinaryOp,
    Call,
    FieldRef,
    Getline,
    Identifier,
    IncDec,
    InArray,
    Literal,
    LogicalOp,
    RegexLiteral,
    Ternary,
    UnaryOp,
)
from fastawk.lexer import describe
from fastawk.operations import BUILTIN_FUNCTIONS, Op
from fastawk.value import Value

if TYPE_CHECKING:
    from fastawk.parser import Parser


ASSIGNMENT_OPS = {
    'ASSIGN': None,
    'ADD_ASSIGN': Op.ADD,
    'SUB_ASSIGN': Op.SUB,
    'MUL_ASSIGN': Op.MUL,
    'DIV_ASSIGN': Op.DIV,
    'MOD_ASSIGN': Op.MOD,
    'POW_ASSIGN': Op.POW,
}

RELATIONAL_OPS = {
    'EQ': Op.EQ,
    'NE': Op.NE,
    'LT': Op.LT,
    'LE': Op.LE,
    'GT': Op.GT,
    'GE': Op.GE,
}

ADDITIVE_OPS = {'PLUS': Op.ADD, 'MINUS': Op.SUB}
MULTIPLICATIVE_OPS = {'MUL': Op.MUL, 'DIV': Op.DIV, 'MOD': Op.MOD}

# Tokens that can open the right operand of an implicit concatenation.
CONCAT_START = frozenset({
    'NUMBER', 'STRING', 'ERE', 'ID', 'FUNC_NAME', 'DOLLAR', 'LPAREN',
    'INCR', 'DECR',
})


def parse_expression(parser: 'Parser'):
    """
    Parse a full expression, starting at the conditional operator.
    """
    return parser.ternary()


def parse_expression_list(parser: 'Parser') -> list:
    """
    Parse one or more comma separated expressions.

    Newlines are allowed after each comma.

    Args:
        parser: The parser instance.

    Returns:
        list: The parsed expressions in order.
    """
    items = [parser.expr()]
    while parser.at('COMMA'):
        parser.eat('COMMA')
        parser.skip_newlines()
        items.append(parser.expr())
    return items


def parse_ternary(parser: 'Parser'):
    """
    Parse a conditional expression.

    Syntax:
        <or> [ ? <ternary> : <ternary> ]
    """
    condition = parser.logical_or()
    if not parser.at('QUESTION'):
        return condition
    tok = parser.eat('QUESTION')
    parser.skip_newlines()
    if_true = parser.ternary()
    parser.skip_newlines()
    parser.eat('COLON')
    parser.skip_newlines()
    if_false = parser.ternary()
    return Ternary(condition, if_true, if_false, line=tok.line)


def parse_logical_or(parser: 'Parser'):
    result = parser.logical_and()
    while parser.at('OR'):
        tok = parser.eat('OR')
        parser.skip_newlines()
        result = LogicalOp(Op.OR, result, parser.logical_and(), line=tok.line)
    return result


def parse_logical_and(parser: 'Parser'):
    result = parser.membership()
    while parser.at('AND'):
        tok = parser.eat('AND')
        parser.skip_newlines()
        result = LogicalOp(Op.AND, result, parser.membership(), line=tok.line)
    return result


def parse_membership(parser: 'Parser'):
    """
    Parse ``<expr> in <name>``, which may repeat: ``k in a in b``.
    """
    result = parser.regex_match()
    while parser.at('IN'):
        tok = parser.eat('IN')
        name_tok = parser.eat('ID')
        result = InArray([result], name_tok.value, line=tok.line)
    return result


def parse_regex_match(parser: 'Parser'):
    result = parser.relational()
    while parser.at('MATCH', 'NOT_MATCH'):
        tok = parser.curr_token
        parser.advance()
        op = Op.MATCH if tok.type == 'MATCH' else Op.NOT_MATCH
        result = BinaryOp(op, result, parser.relational(), line=tok.line)
    return result


def parse_relational(parser: 'Parser'):
    """
    Parse comparisons.

    While unparenthesised ``print`` arguments are being parsed a ``>`` is an
    output redirection and ends the expression instead.
    """
    result = parser.concatenation()
    while parser.curr_token.type in RELATIONAL_OPS:
        tok = parser.curr_token
        if tok.type == 'GT' and parser.no_gt:
            break
        parser.advance()
        result = BinaryOp(RELATIONAL_OPS[tok.type], result, parser.concatenation(), line=tok.line)
    return result


def parse_concatenation(parser: 'Parser'):
    """
    Parse implicit concatenation: operands written next to each other.
    """
    result = parser.additive()
    while parser.curr_token.type in CONCAT_START:
        tok = parser.curr_token
        result = BinaryOp(Op.CONCAT, result, parser.additive(), line=tok.line)
    return result


def parse_additive(parser: 'Parser'):
    result = parser.multiplicative()
    while parser.curr_token.type in ADDITIVE_OPS:
        tok = parser.curr_token
        parser.advance()
        result = BinaryOp(ADDITIVE_OPS[tok.type], result, parser.multiplicative(), line=tok.line)
    return result


def parse_multiplicative(parser: 'Parser'):
    result = parser.power()
    while parser.curr_token.type in MULTIPLICATIVE_OPS:
        tok = parser.curr_token
        parser.advance()
        result = BinaryOp(MULTIPLICATIVE_OPS[tok.type], result, parser.power(), line=tok.line)
    return result


def parse_power(parser: 'Parser'):
    """
    Parse exponentiation, which associates to the right.
    """
    base = parser.unary()
    if parser.at('POW'):
        tok = parser.eat('POW')
        return BinaryOp(Op.POW, base, parser.power(), line=tok.line)
    return base


def parse_unary(parser: 'Parser'):
    """
    Parse prefix operators.

    Syntax:
        ! <unary> | - <unary> | + <unary> | ++ <lvalue> | -- <lvalue> | <postfix>
    """
    tok = parser.curr_token
    if tok.type == 'NOT':
        parser.advance()
        return UnaryOp(Op.NOT, parser.unary(), line=tok.line)
    if tok.type == 'MINUS':
        parser.advance()
        return UnaryOp(Op.NEG, parser.unary(), line=tok.line)
    if tok.type == 'PLUS':
        parser.advance()
        return UnaryOp(Op.POS, parser.unary(), line=tok.line)
    if tok.type in ('INCR', 'DECR'):
        parser.advance()
        target = parser.primary()
        _require_lvalue(parser, target, tok)
        return IncDec(target, 1 if tok.type == 'INCR' else -1, True, line=tok.line)
    return parser.postfix()


def parse_postfix(parser: 'Parser'):
    """
    Parse a primary followed by ``++``/``--`` or an assignment operator.
    """
    result = parser.primary()
    tok = parser.curr_token
    if tok.type in ASSIGNMENT_OPS:
        _require_lvalue(parser, result, tok)
        parser.advance()
        parser.skip_newlines()
        return Assign(result, parser.expr(), ASSIGNMENT_OPS[tok.type], line=tok.line)
    if tok.type in ('INCR', 'DECR') and isinstance(result, LVALUES):
        parser.advance()
        return IncDec(result, 1 if tok.type == 'INCR' else -1, False, line=tok.line)
    return result


def _require_lvalue(parser: 'Parser', node, tok) -> None:
    if not isinstance(node, LVALUES):
        raise parser.error(f"Invalid assignment target before '{tok.value}'", tok)


def parse_primary(parser: 'Parser'):
    """
    Parse a primary expression.

    Syntax:
        <number> | <string> | /<regex>/ | $<primary> | ( <expr> )
        | ( <expr>, ... ) in <name> | <name> | <name>[<expr>, ...]
        | <name>(<args>) | getline [<lvalue>]

    Args:
        parser: The parser instance.

    Returns:
        Expression: The parsed node.

    Raises:
        ScriptSyntaxError: If the current token cannot start an expression.
    """
    tok = parser.curr_token

    if tok.type == 'NUMBER':
        parser.advance()
        return Literal(Value.number(tok.value), line=tok.line)
    if tok.type == 'STRING':
        parser.advance()
        return Literal(Value.string(tok.value), line=tok.line)
    if tok.type == 'ERE':
        parser.advance()
        return RegexLiteral(tok.value, line=tok.line)

    if tok.type == 'DOLLAR':
        parser.advance()
        if parser.at('INCR', 'DECR', 'MINUS', 'PLUS', 'NOT'):
            index = parser.unary()
        else:
            index = parser.primary()
        return FieldRef(index, line=tok.line)

    if tok.type == 'LPAREN':
        return _parse_group(parser)

    if tok.type == 'GETLINE':
        parser.advance()
        target = None
        if parser.at('ID', 'DOLLAR') and parser.curr_token.value not in BUILTIN_FUNCTIONS:
            target = parser.primary()
            _require_lvalue(parser, target, tok)
        return Getline(target, line=tok.line)

    if tok.type == 'FUNC_NAME':
        parser.advance()
        return Call(tok.value, _parse_arguments(parser), line=tok.line)

    if tok.type == 'ID':
        parser.advance()
        if tok.value in BUILTIN_FUNCTIONS:
            if parser.at('LPAREN'):
                return Call(tok.value, _parse_arguments(parser), line=tok.line)
            if tok.value == 'length':
                return Call('length', [], line=tok.line)
            raise parser.error(f"Built-in function '{tok.value}' requires arguments", tok)
        if parser.at('LBRACKET'):
            return ArrayRef(tok.value, _parse_subscripts(parser), line=tok.line)
        return Identifier(tok.value, line=tok.line)

    raise parser.error(f"Unexpected {describe(tok)} in expression")


def _parse_group(parser: 'Parser'):
    """
    Parse ``( <expr> )`` or the grouped subscript ``( <expr>, ... ) in <name>``.
    """
    tok = parser.eat('LPAREN')
    outer_no_gt = parser.no_gt
    parser.no_gt = False
    try:
        parser.skip_newlines()
        items = parser.expression_list()
        parser.skip_newlines()
        parser.eat('RPAREN')
    finally:
        parser.no_gt = outer_no_gt
    if len(items) > 1:
        if not parser.at('IN'):
            raise parser.error("Expected 'in' after grouped subscripts")
        parser.eat('IN')
        name_tok = parser.eat('ID')
        return InArray(items, name_tok.value, line=tok.line)
    return items[0]


def _parse_arguments(parser: 'Parser') -> list:
    parser.eat('LPAREN')
    outer_no_gt = parser.no_gt
    parser.no_gt = False
    try:
        parser.skip_newlines()
        args = []
        if not parser.at('RPAREN'):
            args = parser.expression_list()
        parser.skip_newlines()
        parser.eat('RPAREN')
    finally:
        parser.no_gt = outer_no_gt
    return args


def _parse_subscripts(parser: 'Parser') -> list:
    parser.eat('LBRACKET')
    outer_no_gt = parser.no_gt
    parser.no_gt = False
    try:
        parser.skip_newlines()
        indices = parser.expression_list()
        parser.skip_newlines()
        parser.eat('RBRACKET')
    finally:
        parser.no_gt = outer_no_gt
    return indices
