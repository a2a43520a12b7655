"""Statement parsing utilities for fastawk.

These functions operate on a `fastawk.parser.parser.Parser` instance and
handle the statement forms of the language: blocks, conditionals, loops,
output with optional redirection, and the control transfers ``break``,
``continue``, ``next``, ``exit`` and ``return``.

Simple statements end at a newline or ``;``, or just before a closing brace
or the end of input.


File: statements.py
Version: 0.1.0
License: MIT
"""

import copy
from typing import TYPE_CHECKING

from fastawk.ast_nodes import (
    Action,
    Block,
    Break,
    Continue,
    Delete,
    Exit,
    ExprStmt,
    For,
    ForIn,
    If,
    Next,
    Print,
    Printf,
    Redirect,
    Return,
    While,
)
from fastawk.lexer import describe

if TYPE_CHECKING:
    from fastawk.parser import Parser


# Tokens after which a print argument list is complete.
PRINT_END = frozenset({'NEWLINE', 'SEMICOLON', 'RBRACE', 'EOF', 'GT', 'APPEND', 'PIPE'})

REDIRECT_MODES = {'GT': '>', 'APPEND': '>>', 'PIPE': '|'}


def parse_block(parser: 'Parser') -> Action:
    """
    Parse a block of statements enclosed in braces.

    Syntax:
        { <statement>* }

    Args:
        parser: The parser instance.

    Returns:
        Action: The statements in order.
    """
    tok = parser.eat('LBRACE')
    statements = []
    parser.skip_terminators()
    while not parser.at('RBRACE'):
        if parser.at('EOF'):
            raise parser.error("Missing '}' to close block opened", tok)
        statements.append(parser.statement())
        parser.skip_terminators()
    parser.eat('RBRACE')
    return Action(statements, line=tok.line)


def end_simple_statement(parser: 'Parser') -> None:
    """
    Consume the terminator of a simple statement.

    Raises:
        ScriptSyntaxError: If anything other than a terminator follows.
    """
    if parser.at('NEWLINE', 'SEMICOLON'):
        parser.advance()
    elif not parser.at('RBRACE', 'EOF'):
        raise parser.error(f"Unexpected {describe(parser.curr_token)} at end of statement")


def parse_statement(parser: 'Parser'):
    """
    Parse a single statement.

    Args:
        parser: The parser instance.

    Returns:
        Statement: The parsed node.
    """
    tok = parser.curr_token
    if tok.type == 'LBRACE':
        return Block(parser.block().statements, line=tok.line)
    if tok.type == 'SEMICOLON':
        parser.advance()
        return Block([], line=tok.line)
    if tok.type == 'IF':
        return parser.parse_if()
    if tok.type == 'WHILE':
        return parser.parse_while()
    if tok.type == 'DO':
        return parser.parse_do()
    if tok.type == 'FOR':
        return parser.parse_for()
    if tok.type in ('PRINT', 'PRINTF'):
        return parser.parse_print()
    if tok.type == 'DELETE':
        return parser.parse_delete()

    if tok.type in ('BREAK', 'CONTINUE', 'NEXT'):
        parser.advance()
        node = {'BREAK': Break, 'CONTINUE': Continue, 'NEXT': Next}[tok.type](line=tok.line)
        parser.end_simple_statement()
        return node
    if tok.type in ('EXIT', 'RETURN'):
        parser.advance()
        value = None
        if not parser.at('NEWLINE', 'SEMICOLON', 'RBRACE', 'EOF'):
            value = parser.expr()
        parser.end_simple_statement()
        if tok.type == 'EXIT':
            return Exit(value, line=tok.line)
        return Return(value, line=tok.line)

    node = ExprStmt(parser.expr(), line=tok.line)
    parser.end_simple_statement()
    return node


def _parse_body(parser: 'Parser'):
    parser.skip_newlines()
    return parser.statement()


def _parse_condition(parser: 'Parser'):
    parser.eat('LPAREN')
    parser.skip_newlines()
    condition = parser.expr()
    parser.skip_newlines()
    parser.eat('RPAREN')
    return condition


def parse_if(parser: 'Parser') -> If:
    """
    Parse an if statement with an optional else branch.

    Syntax:
        if ( <expr> ) <statement> [ else <statement> ]

    An ``else`` may follow on a later line, after any terminators.
    """
    tok = parser.eat('IF')
    condition = _parse_condition(parser)
    then = _parse_body(parser)
    mark = parser.save()
    parser.skip_terminators()
    if parser.at('ELSE'):
        parser.eat('ELSE')
        return If(condition, then, _parse_body(parser), line=tok.line)
    parser.restore(mark)
    return If(condition, then, line=tok.line)


def parse_while(parser: 'Parser') -> While:
    """
    Parse a while loop.

    Syntax:
        while ( <expr> ) <statement>
    """
    tok = parser.eat('WHILE')
    condition = _parse_condition(parser)
    return While(condition, _parse_body(parser), line=tok.line)


def parse_do(parser: 'Parser') -> Block:
    """
    Parse a do-while loop.

    Syntax:
        do <statement> while ( <expr> )

    The loop is rewritten as the body followed by an ordinary while loop
    over a copy of the body, so the interpreter needs no separate node.
    """
    tok = parser.eat('DO')
    body = _parse_body(parser)
    parser.skip_terminators()
    parser.eat('WHILE')
    condition = _parse_condition(parser)
    parser.end_simple_statement()
    loop = While(condition, copy.deepcopy(body), line=tok.line)
    return Block([body, loop], line=tok.line)


def parse_for(parser: 'Parser'):
    """
    Parse a C-style for loop or a for-in loop over array keys.

    Syntax:
        for ( [<expr>] ; [<expr>] ; [<expr>] ) <statement>
        for ( <name> in <name> ) <statement>
    """
    tok = parser.eat('FOR')
    if (
        parser.peek(1).type == 'ID'
        and parser.peek(2).type == 'IN'
        and parser.peek(3).type == 'ID'
        and parser.peek(4).type == 'RPAREN'
    ):
        parser.eat('LPAREN')
        var_tok = parser.eat('ID')
        parser.eat('IN')
        array_tok = parser.eat('ID')
        parser.eat('RPAREN')
        return ForIn(var_tok.value, array_tok.value, _parse_body(parser), line=tok.line)

    parser.eat('LPAREN')
    init = None if parser.at('SEMICOLON') else parser.expr()
    parser.eat('SEMICOLON')
    parser.skip_newlines()
    condition = None if parser.at('SEMICOLON') else parser.expr()
    parser.eat('SEMICOLON')
    parser.skip_newlines()
    update = None if parser.at('RPAREN') else parser.expr()
    parser.eat('RPAREN')
    return For(init, condition, update, _parse_body(parser), line=tok.line)


def parse_print(parser: 'Parser'):
    """
    Parse print or printf with an optional output redirection.

    Syntax:
        print [ <expr-list> | ( <expr-list> ) ] [ > | >> | | <expr> ]
        printf <format> [, <expr-list>] [ > | >> | | <expr> ]

    Unparenthesised arguments cannot contain a bare ``>``, which is read as
    the redirection. A parenthesised list is only taken as the argument list
    when the closing parenthesis ends the statement or starts a redirection;
    otherwise the parenthesis belongs to the first expression.
    """
    tok = parser.curr_token
    parser.advance()

    args = None
    if parser.at('LPAREN'):
        mark = parser.save()
        parser.eat('LPAREN')
        outer_no_gt = parser.no_gt
        parser.no_gt = False
        try:
            parser.skip_newlines()
            grouped = parser.expression_list()
            parser.skip_newlines()
            parser.eat('RPAREN')
        finally:
            parser.no_gt = outer_no_gt
        if parser.curr_token.type in PRINT_END:
            args = grouped
        else:
            parser.restore(mark)

    if args is None:
        args = []
        if parser.curr_token.type not in PRINT_END:
            outer_no_gt = parser.no_gt
            parser.no_gt = True
            try:
                args = parser.expression_list()
            finally:
                parser.no_gt = outer_no_gt

    redirect = None
    if parser.curr_token.type in REDIRECT_MODES:
        redirect_tok = parser.curr_token
        parser.advance()
        target = parser.concatenation()
        redirect = Redirect(REDIRECT_MODES[redirect_tok.type], target, line=redirect_tok.line)

    parser.end_simple_statement()
    if tok.type == 'PRINTF':
        if not args:
            raise parser.error("printf requires a format argument", tok)
        return Printf(args, redirect, line=tok.line)
    return Print(args, redirect, line=tok.line)


def parse_delete(parser: 'Parser') -> Delete:
    """
    Parse a delete statement.

    Syntax:
        delete <name> [ [ <expr-list> ] ]
    """
    tok = parser.eat('DELETE')
    name_tok = parser.eat('ID')
    indices = None
    if parser.at('LBRACKET'):
        parser.eat('LBRACKET')
        indices = parser.expression_list()
        parser.eat('RBRACKET')
    parser.end_simple_statement()
    return Delete(name_tok.value, indices, line=tok.line)
