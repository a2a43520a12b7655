"""fastawk: an embedded pattern-action text processing language.

The pipeline is lexer, parser, tree-walk interpreter. Typical use::

    from fastawk import Interpreter, parse_script

    program = parse_script('{ print $2 }')
    Interpreter(program).run(["a b c"])


File: __init__.py
Version: 0.1.0
License: MIT
"""

import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

from fastawk.interpreter import Interpreter  # noqa: E402
from fastawk.parser import Parser, parse_script  # noqa: E402
from fastawk.runtime import RuntimeContext  # noqa: E402

__all__ = ["Interpreter", "Parser", "RuntimeContext", "parse_script", "__version__"]
