"""Dynamically typed values.

A :class:`Value` is a closed tagged union over four kinds: string, number,
associative array and undefined. Every value can be coerced to a string, a
number or a boolean on demand and these coercions never fail; only division
and modulo by zero raise.

1. Numbers
Numbers are double precision floats. Integral values render without a
decimal point so that ``1 + 1`` prints ``2``; other values render in their
shortest round-tripping form.

2. Strings
Strings convert to numbers through their longest valid numeric prefix, so
``"3abc"`` is ``3`` and ``"abc"`` is ``0``. A non-empty string is always
true, even ``"0"``.

3. Arrays
Arrays map string keys to scalar values. A value holding an array is a
container: every reference to the same :class:`Value` sees the same
elements, which is how arrays reach user functions by reference. An
undefined value used as an array turns into an empty array in place; a value
that already holds a string or number refuses to.

4. Comparison
Two values compare numerically when both look numeric (numbers, strings that
parse fully as decimal or ``0x`` hexadecimal numbers, or an undefined value
facing a numeric operand); otherwise both sides are compared as strings.


File: value.py
Version: 0.1.0
License: MIT
"""

import math
import re
from enum import Enum

from fastawk.exceptions import AwkTypeError, DivisionByZeroError

_NUMERIC_PREFIX = re.compile(r'[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')
_HEX_NUMBER = re.compile(r'[+-]?0[xX][0-9a-fA-F]+')

# Largest magnitude rendered as a plain integer.
_INTEGER_LIMIT = 2.0 ** 63


class ValueKind(str, Enum):
    """
    The four kinds of runtime value.
    """
    STRING = "string"
    NUMBER = "number"
    ARRAY = "array"
    UNDEFINED = "undefined"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value


def format_number(number: float) -> str:
    """
    Render a number the way print and string concatenation see it.

    Parameters:
        number (float): The number to render.

    Returns:
        str: ``"42"`` for integral values, the shortest round-tripping
        representation otherwise.
    """
    if math.isnan(number):
        return "nan" if math.copysign(1.0, number) > 0 else "-nan"
    if math.isinf(number):
        return "inf" if number > 0 else "-inf"
    if number.is_integer() and abs(number) < _INTEGER_LIMIT:
        return str(int(number))
    return repr(number)


def parse_number(text: str) -> float:
    """
    Convert a string to a number using its longest numeric prefix.

    Parameters:
        text (str): The string to convert.

    Returns:
        float: The parsed number, or ``0.0`` when no prefix is numeric.
    """
    match = _NUMERIC_PREFIX.match(text.strip())
    if match is None:
        return 0.0
    return float(match.group())


def looks_numeric(text: str) -> bool:
    """
    Check whether a string is, in its entirety, a decimal or hex number.
    """
    trimmed = text.strip()
    if not trimmed:
        return False
    return bool(_NUMERIC_PREFIX.fullmatch(trimmed) or _HEX_NUMBER.fullmatch(trimmed))


def _numeric_text_value(text: str) -> float:
    trimmed = text.strip()
    if _HEX_NUMBER.fullmatch(trimmed):
        return float(int(trimmed, 16))
    return parse_number(trimmed)


class Value:
    """
    A dynamically typed unit of data.
    """
    __slots__ = ("kind", "data")

    def __init__(self, kind: ValueKind, data=None):
        self.kind = kind
        self.data = data

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def string(cls, text: str) -> "Value":
        return cls(ValueKind.STRING, text)

    @classmethod
    def number(cls, number) -> "Value":
        return cls(ValueKind.NUMBER, float(number))

    @classmethod
    def boolean(cls, flag: bool) -> "Value":
        return cls(ValueKind.NUMBER, 1.0 if flag else 0.0)

    @classmethod
    def array(cls) -> "Value":
        return cls(ValueKind.ARRAY, {})

    @classmethod
    def undefined(cls) -> "Value":
        return cls(ValueKind.UNDEFINED)

    # ------------------------------------------------------------------
    # Kind checks
    # ------------------------------------------------------------------

    def is_string(self) -> bool:
        return self.kind is ValueKind.STRING

    def is_number(self) -> bool:
        return self.kind is ValueKind.NUMBER

    def is_array(self) -> bool:
        return self.kind is ValueKind.ARRAY

    def is_undefined(self) -> bool:
        return self.kind is ValueKind.UNDEFINED

    @property
    def type_name(self) -> str:
        return self.kind.value

    # ------------------------------------------------------------------
    # Coercions
    # ------------------------------------------------------------------

    def to_string(self) -> str:
        """
        Coerce to a string.
        """
        if self.kind is ValueKind.STRING:
            return self.data
        if self.kind is ValueKind.NUMBER:
            return format_number(self.data)
        if self.kind is ValueKind.ARRAY:
            return "[array]"
        return ""

    def to_number(self) -> float:
        """
        Coerce to a number.
        """
        if self.kind is ValueKind.NUMBER:
            return self.data
        if self.kind is ValueKind.STRING:
            return parse_number(self.data)
        if self.kind is ValueKind.ARRAY:
            return float(len(self.data))
        return 0.0

    def to_bool(self) -> bool:
        """
        Coerce to a boolean.
        """
        if self.kind is ValueKind.STRING:
            return self.data != ""
        if self.kind is ValueKind.NUMBER:
            return self.data != 0.0
        if self.kind is ValueKind.ARRAY:
            return bool(self.data)
        return False

    def copy(self) -> "Value":
        """
        Return an independent copy of a scalar; arrays are returned as is.
        """
        if self.kind is ValueKind.ARRAY:
            return self
        return Value(self.kind, self.data)

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def _looks_numeric(self) -> bool:
        if self.kind is ValueKind.NUMBER:
            return True
        if self.kind is ValueKind.STRING:
            return looks_numeric(self.data)
        return False

    def _comparison_number(self) -> float:
        if self.kind is ValueKind.STRING:
            return _numeric_text_value(self.data)
        return self.to_number()

    def compare(self, other: "Value") -> int:
        """
        Compare two values.

        Returns:
            int: -1, 0 or 1.
        """
        left_numeric = self._looks_numeric() or (
            self.kind is ValueKind.UNDEFINED and other._looks_numeric()
        )
        right_numeric = other._looks_numeric() or (
            other.kind is ValueKind.UNDEFINED and self._looks_numeric()
        )
        if left_numeric and right_numeric:
            lhs = self._comparison_number()
            rhs = other._comparison_number()
        else:
            lhs = self.to_string()
            rhs = other.to_string()
        if lhs < rhs:
            return -1
        if lhs > rhs:
            return 1
        return 0

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def add(self, other: "Value") -> "Value":
        return Value.number(self.to_number() + other.to_number())

    def subtract(self, other: "Value") -> "Value":
        return Value.number(self.to_number() - other.to_number())

    def multiply(self, other: "Value") -> "Value":
        return Value.number(self.to_number() * other.to_number())

    def divide(self, other: "Value") -> "Value":
        divisor = other.to_number()
        if divisor == 0.0:
            raise DivisionByZeroError("division")
        return Value.number(self.to_number() / divisor)

    def modulo(self, other: "Value") -> "Value":
        divisor = other.to_number()
        if divisor == 0.0:
            raise DivisionByZeroError("modulo")
        return Value.number(math.fmod(self.to_number(), divisor))

    def power(self, other: "Value") -> "Value":
        base = self.to_number()
        exponent = other.to_number()
        if base == 0.0 and exponent < 0:
            raise DivisionByZeroError("exponentiation")
        try:
            return Value.number(math.pow(base, exponent))
        except OverflowError:
            return Value.number(math.inf)
        except ValueError:
            # negative base with a fractional exponent
            return Value.number(math.nan)

    def concatenate(self, other: "Value") -> "Value":
        return Value.string(self.to_string() + other.to_string())

    # ------------------------------------------------------------------
    # Arrays
    # ------------------------------------------------------------------

    def ensure_array(self, name: str = "") -> dict:
        """
        Return the element mapping, turning an undefined value into an array.

        Raises:
            AwkTypeError: If the value already holds a scalar.
        """
        if self.kind is ValueKind.ARRAY:
            return self.data
        if self.kind is ValueKind.UNDEFINED:
            self.kind = ValueKind.ARRAY
            self.data = {}
            return self.data
        label = f"'{name}'" if name else "value"
        raise AwkTypeError(f"Can't use scalar {label} as an array")

    def has_key(self, key: str) -> bool:
        return self.kind is ValueKind.ARRAY and key in self.data

    def keys(self) -> list[str]:
        if self.kind is ValueKind.ARRAY:
            return list(self.data)
        return []

    def array_len(self) -> int:
        if self.kind is ValueKind.ARRAY:
            return len(self.data)
        return 0

    def get_element(self, key: str) -> "Value":
        """
        Return the element at ``key``, creating an undefined one if missing.
        """
        elements = self.ensure_array()
        element = elements.get(key)
        if element is None:
            element = Value.undefined()
            elements[key] = element
        return element

    def set_element(self, key: str, value: "Value") -> None:
        if value.kind is ValueKind.ARRAY:
            raise AwkTypeError(f"Can't store an array in element [{key}]")
        self.ensure_array()[key] = value.copy()

    def delete_element(self, key: str) -> None:
        self.ensure_array().pop(key, None)

    def clear(self) -> None:
        self.ensure_array().clear()

    # ------------------------------------------------------------------
    # Dunder helpers
    # ------------------------------------------------------------------

    def __eq__(self, other) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return self.kind is other.kind and self.data == other.data

    __hash__ = None

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        if self.kind is ValueKind.UNDEFINED:
            return "Value(undefined)"
        return f"Value({self.kind.value}, {self.data!r})"
