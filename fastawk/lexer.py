"""Lexer for fastawk scripts.

The lexer performs a single pass over the script using a combined regular
expression of named groups, matched at the current position. Each match
yields a :class:`Token` containing its type, value, line and column.

Tokens cover literals (numbers, strings, regular expressions), keywords
(``if``, ``while``, ``print`` …), operators and delimiters. Spaces, tabs,
carriage returns, ``#`` comments and backslash-newline continuations are
skipped; a bare newline is kept as a ``NEWLINE`` token because it terminates
statements.

A ``/`` is ambiguous: it is the division operator after an operand and the
start of a regular expression literal everywhere else. The lexer decides by
looking at the previous significant token.


File: lexer.py
Version: 0.1.0
License: MIT
"""

import re

from fastawk.exceptions import ParseError


class Token:
    """
    Represents a lexical token with a type and value.
    """
    def __init__(self, type_, value, line, column=1):
        """
        Initialize a new token.

        Parameters:
            type_ (str): The token type.
            value (Any): The token value.
            line (int): Line the token starts on, 1-based.
            column (int): Column the token starts at, 1-based.
        """
        self.type = type_
        self.value = value
        self.line = line
        self.column = column

    def __repr__(self) -> str:
        """
        Return a string representation of the token.
        """
        return f"Token({self.type}, {self.value!r}, line={self.line}, column={self.column})"


KEYWORDS = (
    'if', 'else', 'while', 'for', 'do', 'break', 'continue', 'function',
    'return', 'delete', 'exit', 'next', 'print', 'printf', 'getline',
    'BEGIN', 'END', 'in',
)

TOKEN_SPECIFICATION: list[tuple[str, str]] = [
    # Skipped
    ('COMMENT',      r'\#[^\n]*'),
    ('CONTINUATION', r'\\\r?\n'),
    ('NEWLINE',      r'\n'),
    ('SKIP',         r'[ \t\r]+'),

    # Literals
    ('NUMBER',       r'(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?'),
    ('STRING',       r'"(?:[^"\\\n]|\\.)*"'),
    ('RAW_STRING',   r"'[^']*'"),
    ('BAD_STRING',   r'["\']'),

    # Keywords
    *[(word.upper(), rf'\b{word}\b') for word in KEYWORDS],

    # Identifiers; a name glued to "(" is a call
    ('FUNC_NAME',    r'[A-Za-z_][A-Za-z0-9_]*(?=\()'),
    ('ID',           r'[A-Za-z_][A-Za-z0-9_]*'),

    # Assignment operators
    ('ADD_ASSIGN',   r'\+='),
    ('SUB_ASSIGN',   r'-='),
    ('MUL_ASSIGN',   r'\*='),
    ('DIV_ASSIGN',   r'/='),
    ('MOD_ASSIGN',   r'%='),
    ('POW_ASSIGN',   r'\^='),

    # Increment / decrement
    ('INCR',         r'\+\+'),
    ('DECR',         r'--'),

    # Comparison and logical operators
    ('EQ',           r'=='),
    ('NE',           r'!='),
    ('LE',           r'<='),
    ('GE',           r'>='),
    ('APPEND',       r'>>'),
    ('NOT_MATCH',    r'!~'),
    ('AND',          r'&&'),
    ('OR',           r'\|\|'),
    ('LT',           r'<'),
    ('GT',           r'>'),
    ('MATCH',        r'~'),
    ('NOT',          r'!'),
    ('ASSIGN',       r'='),
    ('PIPE',         r'\|'),

    # Arithmetic operators
    ('PLUS',         r'\+'),
    ('MINUS',        r'-'),
    ('MUL',          r'\*'),
    ('DIV',          r'/'),
    ('MOD',          r'%'),
    ('POW',          r'\^'),

    # Delimiters
    ('LBRACE',       r'\{'),
    ('RBRACE',       r'\}'),
    ('LPAREN',       r'\('),
    ('RPAREN',       r'\)'),
    ('LBRACKET',     r'\['),
    ('RBRACKET',     r'\]'),
    ('SEMICOLON',    r';'),
    ('COMMA',        r','),
    ('QUESTION',     r'\?'),
    ('COLON',        r':'),
    ('DOLLAR',       r'\$'),

    # Anything else
    ('MISMATCH',     r'.'),
]

TOKEN_REGEX = re.compile(
    '|'.join(f'(?P<{name}>{pattern})' for name, pattern in TOKEN_SPECIFICATION)
)

# A "/" after one of these is division; anywhere else it opens a regex.
OPERAND_END = frozenset({
    'NUMBER', 'STRING', 'ERE', 'ID', 'RPAREN', 'RBRACKET', 'INCR', 'DECR',
})

ESCAPES = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    '\\': '\\',
    '"': '"',
    "'": "'",
    '/': '/',
    'a': '\a',
    'b': '\b',
    'f': '\f',
    'v': '\v',
}


def describe(token: Token) -> str:
    """
    Return a human readable rendering of a token for error messages.
    """
    if token.type == 'EOF':
        return 'end of input'
    if token.type == 'NEWLINE':
        return 'newline'
    if token.type == 'STRING':
        return f'string "{token.value}"'
    if token.type == 'ERE':
        return f'regex /{token.value}/'
    if token.type == 'NUMBER':
        return f"number {token.value:g}"
    return f"'{token.value}'"


def unescape(text: str) -> str:
    """
    Process backslash escapes the way double-quoted strings do.

    Unknown escapes keep only the escaped character.

    Parameters:
        text (str): Raw text between the quotes.

    Returns:
        str: The decoded string.
    """
    if '\\' not in text:
        return text
    out = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == '\\' and i + 1 < len(text):
            nxt = text[i + 1]
            out.append(ESCAPES.get(nxt, nxt))
            i += 2
            continue
        out.append(ch)
        i += 1
    return ''.join(out)


def _read_regex(code: str, start: int, line: int, column: int) -> tuple[str, int]:
    """
    Read a regex literal whose opening slash sits at ``start``.

    Returns:
        tuple[str, int]: The pattern text and the position after the closing
        slash.

    Raises:
        ParseError: If the literal runs into a newline or the end of input.
    """
    pos = start + 1
    in_bracket = False
    chars = []
    while pos < len(code):
        ch = code[pos]
        if ch == '\n':
            break
        if ch == '\\' and pos + 1 < len(code) and code[pos + 1] != '\n':
            if code[pos + 1] == '/':
                chars.append('/')
            else:
                chars.append(code[pos:pos + 2])
            pos += 2
            continue
        if ch == '[':
            in_bracket = True
        elif ch == ']' and in_bracket:
            in_bracket = False
        elif ch == '/' and not in_bracket:
            return ''.join(chars), pos + 1
        chars.append(ch)
        pos += 1
    raise ParseError("Unterminated regex literal", line, column)


def tokenize(code: str) -> list[Token]:
    """
    Convert script text into a list of tokens ending with ``EOF``.

    Parameters:
        code (str): The script to tokenize.

    Returns:
        list[Token]: A list of Token instances.

    Raises:
        ParseError: On unterminated strings or regex literals and on
            characters that start no token.
    """
    tokens: list[Token] = []
    line_num = 1
    line_start = 0
    pos = 0
    previous = None

    while pos < len(code):
        column = pos - line_start + 1

        if code[pos] == '/' and previous not in OPERAND_END:
            pattern, pos = _read_regex(code, pos, line_num, column)
            tokens.append(Token('ERE', pattern, line_num, column))
            previous = 'ERE'
            continue

        match_obj = TOKEN_REGEX.match(code, pos)
        kind = match_obj.lastgroup
        value = match_obj.group()
        pos = match_obj.end()

        if kind == 'NEWLINE':
            tokens.append(Token('NEWLINE', value, line_num, column))
            line_num += 1
            line_start = pos
            previous = 'NEWLINE'
            continue
        if kind == 'CONTINUATION':
            line_num += 1
            line_start = pos
            continue
        if kind in ('SKIP', 'COMMENT'):
            continue
        if kind == 'BAD_STRING':
            raise ParseError("Unterminated string literal", line_num, column)
        if kind == 'MISMATCH':
            raise ParseError(f"Unexpected character '{value}'", line_num, column)

        if kind == 'NUMBER':
            tokens.append(Token('NUMBER', float(value), line_num, column))
        elif kind == 'STRING':
            tokens.append(Token('STRING', unescape(value[1:-1]), line_num, column))
        elif kind == 'RAW_STRING':
            kind = 'STRING'
            tokens.append(Token('STRING', value[1:-1], line_num, column))
            if '\n' in value:
                line_num += value.count('\n')
                line_start = match_obj.start() + value.rindex('\n') + 1
        else:
            tokens.append(Token(kind, value, line_num, column))
        previous = kind

    tokens.append(Token('EOF', None, line_num, pos - line_start + 1))
    return tokens
