"""Errors.

Every failure raised by the engine derives from :class:`AwkError`. Parse-time
errors carry the line and column of the offending character or token and are
raised before any script code runs. Run-time errors propagate unchanged up
through expression and statement evaluation; the interpreter only stamps the
line of the failing statement onto them.


File: exceptions.py
Version: 0.1.0
License: MIT
"""


class AwkError(Exception):
    """
    Base class for all fastawk errors.
    """


class ParseError(AwkError):
    """
    Error for malformed script text.
    """
    def __init__(self, message, line=None, column=None):
        self.message = message
        self.line = line
        self.column = column
        text = message
        if line is not None:
            text = f"{message} on line {line}"
            if column is not None:
                text += f", column {column}"
        super().__init__(text)


class ScriptSyntaxError(ParseError):
    """
    Error for a token sequence that does not match the grammar.
    """


class AwkRuntimeError(AwkError):
    """
    Generic run-time error.
    """
    def __init__(self, message, line=None):
        self.message = message
        self.line = line
        super().__init__(message)

    def __str__(self) -> str:
        if self.line is not None:
            return f"{self.message} on line {self.line}"
        return self.message


class DivisionByZeroError(AwkRuntimeError):
    """
    Error for division or modulo by zero.
    """
    def __init__(self, operation="division", line=None):
        self.operation = operation
        super().__init__(f"Division by zero in {operation}", line)


class AwkTypeError(AwkRuntimeError):
    """
    Error for mixing scalars and arrays.
    """


class UndefinedFunctionError(AwkRuntimeError):
    """
    Error for calls to functions that are neither built-in nor defined.
    """
    def __init__(self, name, line=None):
        self.name = name
        super().__init__(f"Function '{name}' is not defined", line)


class InvalidFunctionCallError(AwkRuntimeError):
    """
    Error for a call with the wrong number of arguments.
    """
    def __init__(self, function, args, reason, line=None):
        self.function = function
        self.arguments = args
        self.reason = reason
        super().__init__(f"Invalid function call: {function}({args}) - {reason}", line)


class InvalidArrayIndexError(AwkRuntimeError):
    """
    Error for subscripts that cannot be used as array keys.
    """
    def __init__(self, index, line=None):
        self.index = index
        super().__init__(f"Invalid array index: {index}", line)


class InvalidAssignmentError(AwkRuntimeError):
    """
    Error for assignments to targets that cannot hold the value.
    """


class InvalidFieldReferenceError(AwkRuntimeError):
    """
    Error for negative field numbers.
    """
    def __init__(self, field, line=None):
        self.field = field
        super().__init__(f"Invalid field reference: ${field}", line)


class PatternError(AwkRuntimeError):
    """
    Error for regular expressions that fail to compile.
    """
    def __init__(self, pattern, reason, line=None):
        self.pattern = pattern
        super().__init__(f"Bad regular expression /{pattern}/: {reason}", line)


class InvalidFormatSpecifierError(AwkRuntimeError):
    """
    Error for unsupported printf conversions.
    """
    def __init__(self, spec, line=None):
        self.spec = spec
        super().__init__(f"Invalid format specifier: {spec}", line)
