"""Parser package for fastawk.

This package splits the parser functionality into multiple modules to keep
the code organized. The :class:`Parser` class and the one-step
:func:`parse_script` helper are exposed at the package level for
convenience.


File: __init__.py
Version: 0.1.0
License: MIT
"""

from .parser import Parser, parse_script

__all__ = ["Parser", "parse_script"]
