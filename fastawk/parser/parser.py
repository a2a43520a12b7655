"""Parser.

This is a recursive descent parser with precedence climbing for expressions.
It operates in a mostly LL(1) fashion.

1. Parsing
The grammar is split across three modules. This one owns the token cursor and
the top level (rules, patterns, function definitions);
:mod:`fastawk.parser.statements` and :mod:`fastawk.parser.expressions` hold
one function per nonterminal. Those functions take the parser as their first
argument and are bound onto :class:`Parser` as methods.

2. Token Consumption
Tokens are consumed with :meth:`Parser.eat`, which checks the current token
against the expected type and advances, or raises
:class:`~fastawk.exceptions.ScriptSyntaxError` naming the offending token.

3. Lookahead
Decisions use one token of lookahead except in two places: ``for (k in a)``
is recognised by peeking three tokens ahead, and a parenthesised
``print (a, b) > f`` argument list is tried first and abandoned (restoring
the cursor) when the closing parenthesis is not followed by the end of the
statement.


File: parser.py
Version: 0.1.0
License: MIT
"""

from fastawk.ast_nodes import (
    Action,
    BeginPattern,
    EndPattern,
    ExprPattern,
    Function,
    Print,
    Program,
    RangePattern,
    Rule,
)
from fastawk.exceptions import ScriptSyntaxError
from fastawk.lexer import Token, describe, tokenize
from fastawk.operations import BUILTIN_FUNCTIONS
from fastawk.parser import expressions, statements


class Parser:
    """
    fastawk parser.
    """
    def __init__(self, tokens: list[Token], file: str = "<script>"):
        """
        Initialize the parser with a list of tokens.

        Parameters:
            tokens (list): A list of Token instances ending with EOF.
            file (str): The name of the script, used in error messages.
        """
        self.tokens = tokens
        self.position = 0
        self.curr_token = self.tokens[self.position]
        self.source_file = file
        # Set while parsing unparenthesised print arguments, where ">" is a
        # redirection rather than a comparison.
        self.no_gt = False

    # ------------------------------------------------------------------
    # Token cursor
    # ------------------------------------------------------------------

    def eat(self, token_type: str) -> Token:
        """
        Consume the current token if it matches the expected type.

        Parameters:
            token_type (str): The expected token type.

        Returns:
            Token: The consumed token.

        Raises:
            ScriptSyntaxError: If the token does not match the expected type.
        """
        tok = self.curr_token
        if tok.type != token_type:
            raise self.error(f"Expected {token_type} but got {describe(tok)}")
        self.advance()
        return tok

    def advance(self) -> None:
        if self.curr_token.type != 'EOF':
            self.position += 1
            self.curr_token = self.tokens[self.position]

    def peek(self, offset: int = 1) -> Token:
        index = min(self.position + offset, len(self.tokens) - 1)
        return self.tokens[index]

    def at(self, *token_types: str) -> bool:
        return self.curr_token.type in token_types

    def save(self) -> int:
        return self.position

    def restore(self, position: int) -> None:
        self.position = position
        self.curr_token = self.tokens[position]

    def skip_newlines(self) -> None:
        while self.curr_token.type == 'NEWLINE':
            self.advance()

    def skip_terminators(self) -> None:
        while self.curr_token.type in ('NEWLINE', 'SEMICOLON'):
            self.advance()

    def error(self, message: str, token: Token | None = None) -> ScriptSyntaxError:
        tok = token or self.curr_token
        return ScriptSyntaxError(f"{message} in {self.source_file}", tok.line, tok.column)

    # ------------------------------------------------------------------
    # Grammar, bound from the sibling modules
    # ------------------------------------------------------------------

    block = statements.parse_block
    statement = statements.parse_statement
    end_simple_statement = statements.end_simple_statement
    parse_if = statements.parse_if
    parse_while = statements.parse_while
    parse_do = statements.parse_do
    parse_for = statements.parse_for
    parse_print = statements.parse_print
    parse_delete = statements.parse_delete

    expr = expressions.parse_expression
    expression_list = expressions.parse_expression_list
    ternary = expressions.parse_ternary
    logical_or = expressions.parse_logical_or
    logical_and = expressions.parse_logical_and
    membership = expressions.parse_membership
    regex_match = expressions.parse_regex_match
    relational = expressions.parse_relational
    concatenation = expressions.parse_concatenation
    additive = expressions.parse_additive
    multiplicative = expressions.parse_multiplicative
    power = expressions.parse_power
    unary = expressions.parse_unary
    postfix = expressions.parse_postfix
    primary = expressions.parse_primary

    # ------------------------------------------------------------------
    # Top level
    # ------------------------------------------------------------------

    def parse(self) -> Program:
        """
        Parse the full input into a program.

        Returns:
            Program: Rules in declaration order and user functions by name.

        Raises:
            ScriptSyntaxError: On the first token that breaks the grammar.
        """
        program = Program(line=1)
        self.skip_terminators()
        while not self.at('EOF'):
            if self.at('FUNCTION'):
                function = self.parse_function()
                if function.name in program.functions:
                    raise ScriptSyntaxError(
                        f"Function '{function.name}' redefined in {self.source_file}",
                        function.line,
                    )
                program.functions[function.name] = function
            else:
                program.rules.append(self.parse_rule())
            self.skip_terminators()
        return program

    def parse_function(self) -> Function:
        """
        Parse a function definition.

        Syntax:
            function <name>(<params>) { <statements> }
        """
        start_tok = self.eat('FUNCTION')
        name_tok = self.curr_token
        if name_tok.type not in ('FUNC_NAME', 'ID'):
            raise self.error(f"Expected function name but got {describe(name_tok)}")
        if name_tok.value in BUILTIN_FUNCTIONS:
            raise self.error(f"Cannot redefine built-in function '{name_tok.value}'")
        self.advance()
        self.eat('LPAREN')
        params: list[str] = []
        while not self.at('RPAREN'):
            param_tok = self.eat('ID')
            if param_tok.value in params:
                raise self.error(f"Duplicate parameter '{param_tok.value}'", param_tok)
            params.append(param_tok.value)
            if not self.at('RPAREN'):
                self.eat('COMMA')
                self.skip_newlines()
        self.eat('RPAREN')
        self.skip_newlines()
        body = self.block()
        return Function(name_tok.value, params, body, line=start_tok.line)

    def parse_rule(self) -> Rule:
        """
        Parse a pattern-action rule.

        Syntax:
            BEGIN { ... } | END { ... } | <pattern> [{ ... }] | <p1>, <p2> [{ ... }] | { ... }
        """
        tok = self.curr_token
        if self.at('BEGIN', 'END'):
            self.advance()
            pattern = BeginPattern(line=tok.line) if tok.type == 'BEGIN' else EndPattern(line=tok.line)
            self.skip_newlines()
            if not self.at('LBRACE'):
                raise self.error(f"{tok.value} requires an action")
            return Rule(pattern, self.block(), line=tok.line)

        pattern = None
        if not self.at('LBRACE'):
            start = ExprPattern(self.expr(), line=tok.line)
            pattern = start
            if self.at('COMMA'):
                self.eat('COMMA')
                self.skip_newlines()
                end_tok = self.curr_token
                end = ExprPattern(self.expr(), line=end_tok.line)
                pattern = RangePattern(start, end, line=tok.line)

        if self.at('LBRACE'):
            action = self.block()
        else:
            action = Action([Print([], line=tok.line)], line=tok.line)
            if not self.at('NEWLINE', 'SEMICOLON', 'EOF'):
                raise self.error(f"Unexpected {describe(self.curr_token)} after pattern")
        return Rule(pattern, action, line=tok.line)


def parse_script(source: str, file: str = "<script>") -> Program:
    """
    Tokenize and parse script text in one step.
    """
    return Parser(tokenize(source), file).parse()
