"""printf-style formatting.

Implements the format language shared by ``printf`` and ``sprintf``. A
conversion has the shape::

    %[flags][width][.precision]conversion

where flags are any of ``- + space # 0``, and width and precision are either
digits or ``*`` (taken from the next argument). Each conversion is rendered
with Python's ``%`` operator once the argument has been coerced to the type
the conversion expects.

Missing arguments format as an undefined value (``""`` or ``0``); surplus
arguments are ignored.


File: formatting.py
Version: 0.1.0
License: MIT
"""

import math
import re

from fastawk.exceptions import InvalidFormatSpecifierError
from fastawk.value import Value, format_number

_CONVERSION = re.compile(
    r'%(?P<flags>[-+ #0]*)(?P<width>\*|\d+)?(?:\.(?P<precision>\*|\d*))?(?P<conv>.?)',
    re.DOTALL,
)

INTEGER_CONVERSIONS = frozenset('diouxX')
FLOAT_CONVERSIONS = frozenset('eEfFgG')


def format_string(fmt: str, args: list[Value]) -> str:
    """
    Render ``fmt`` against ``args``.

    Parameters:
        fmt (str): The format string.
        args (list[Value]): Values consumed left to right by conversions.

    Returns:
        str: The formatted text.

    Raises:
        InvalidFormatSpecifierError: For a conversion character outside
            ``d i o u x X e E f F g G c s %``.
    """
    out = []
    pending = iter(args)
    pos = 0
    while True:
        start = fmt.find('%', pos)
        if start < 0:
            out.append(fmt[pos:])
            break
        out.append(fmt[pos:start])
        match = _CONVERSION.match(fmt, start)
        conv = match.group('conv')
        pos = match.end()

        if conv == '%' and match.end() - start == 2:
            out.append('%')
            continue
        if conv == '':
            # A lone "%" at the end of the format is printed as is.
            out.append(fmt[start:])
            break

        flags = match.group('flags')
        width = match.group('width')
        precision = match.group('precision')
        if width == '*':
            star = int(_next(pending).to_number())
            if star < 0:
                flags += '-'
            width = str(abs(star))
        if precision == '*':
            star = int(_next(pending).to_number())
            precision = str(star) if star >= 0 else None

        out.append(_convert(conv, flags, width, precision, _next(pending), match.group()))
    return ''.join(out)


def _next(pending) -> Value:
    value = next(pending, None)
    if value is None:
        return Value.undefined()
    return value


def _spec(flags: str, width, precision, conv: str) -> str:
    text = '%' + flags
    if width:
        text += width
    if precision is not None:
        text += '.' + (precision or '0')
    return text + conv


def _convert(conv: str, flags: str, width, precision, value: Value, source: str) -> str:
    if conv in INTEGER_CONVERSIONS:
        number = value.to_number()
        if not math.isfinite(number):
            return _spec(flags.replace('0', ''), width, None, 's') % format_number(number)
        python_conv = 'd' if conv in 'diu' else conv
        return _spec(flags, width, precision, python_conv) % math.trunc(number)

    if conv in FLOAT_CONVERSIONS:
        return _spec(flags, width, precision, conv) % value.to_number()

    if conv == 'c':
        if value.is_number():
            code = int(value.to_number())
            char = chr(code) if 0 <= code < 0x110000 else ''
        else:
            char = value.to_string()[:1]
        return _spec(flags, width, None, 's') % char

    if conv == 's':
        return _spec(flags, width, precision, 's') % value.to_string()

    raise InvalidFormatSpecifierError(source)
