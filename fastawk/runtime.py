"""Runtime context.

All mutable execution state lives in one :class:`RuntimeContext`, created
once per run and passed explicitly through every evaluation call.

1. Records and Fields
``fields[0]`` holds the whole record and ``fields[1:]`` its fields, split
with the current ``FS``: a single space splits on runs of whitespace and
ignores leading and trailing blanks, any other single character splits
literally and a longer separator is a regular expression (split literally
when it does not compile). Assigning ``$0`` replaces the record text only;
assigning ``$n`` rebuilds ``$0`` from the fields joined with ``OFS``.

2. Variables
Reads consult the built-in variables, then the innermost call frame, then
the globals. Writes to ``NR``, ``NF``, ``FILENAME``, ``RSTART`` and
``RLENGTH`` are ignored; writes to ``FS``, ``OFS``, ``RS``, ``ORS`` and
``SUBSEP`` update the setting; everything else lands in the innermost call
frame when a function is running, otherwise in the globals.

3. Built-in Functions
The library of string and numeric built-ins lives here as ``builtin_*``
methods. Each checks its argument count before running. ``sub``, ``gsub``
and ``split`` need more than values (an lvalue to write back to, an array to
fill); the interpreter resolves those and calls :meth:`substitute` and
:meth:`split_into`.

4. Output
``print`` and ``printf`` write through :meth:`write`, which resolves
standard output at write time and caches files and pipes by name until
they are closed.


File: runtime.py
Version: 0.1.0
License: MIT
"""

import logging
import math
import random
import re
import subprocess
import sys
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from fastawk.exceptions import (
    AwkRuntimeError,
    AwkTypeError,
    InvalidArrayIndexError,
    InvalidFieldReferenceError,
    InvalidFunctionCallError,
    PatternError,
)
from fastawk.formatting import format_string
from fastawk.value import Value

logger = logging.getLogger(__name__)


READ_ONLY_VARIABLES = frozenset({"NR", "NF", "FILENAME", "RSTART", "RLENGTH"})
SETTING_VARIABLES = {
    "FS": "fs",
    "OFS": "ofs",
    "RS": "rs",
    "ORS": "ors",
    "SUBSEP": "subsep",
}

# name -> (minimum, maximum) argument count; None means unbounded
ARITY = {
    "length": (0, 1),
    "substr": (2, 3),
    "index": (2, 2),
    "split": (2, 3),
    "sub": (2, 3),
    "gsub": (2, 3),
    "match": (2, 2),
    "sprintf": (1, None),
    "toupper": (0, 1),
    "tolower": (0, 1),
    "sin": (1, 1),
    "cos": (1, 1),
    "atan2": (2, 2),
    "exp": (1, 1),
    "log": (1, 1),
    "sqrt": (1, 1),
    "int": (1, 1),
    "rand": (0, 0),
    "srand": (0, 1),
    "close": (1, 1),
    "fflush": (0, 1),
    "system": (1, 1),
}

# POSIX bracket classes and their Python character-set spelling.
_POSIX_CLASSES = {
    "[:alpha:]": "a-zA-Z",
    "[:digit:]": "0-9",
    "[:alnum:]": "a-zA-Z0-9",
    "[:upper:]": "A-Z",
    "[:lower:]": "a-z",
    "[:space:]": r" \t\n\r\f\v",
    "[:blank:]": r" \t",
    "[:punct:]": r"!-/:-@\[-`{-~",
    "[:xdigit:]": "0-9A-Fa-f",
    "[:cntrl:]": r"\x00-\x1f\x7f",
    "[:print:]": r" -~",
    "[:graph:]": r"!-~",
}


class FlowKind(Enum):
    """
    Kinds of non-local control transfer.
    """
    NONE = "none"
    BREAK = "break"
    CONTINUE = "continue"
    NEXT = "next"
    EXIT = "exit"
    RETURN = "return"


@dataclass(frozen=True)
class ControlFlow:
    """
    Outcome of executing a statement.

    ``code`` is set for EXIT and ``value`` for RETURN.
    """
    kind: FlowKind = FlowKind.NONE
    code: int = 0
    value: Optional[Value] = None

    @property
    def is_none(self) -> bool:
        return self.kind is FlowKind.NONE

    @classmethod
    def exit(cls, code: int) -> "ControlFlow":
        return cls(FlowKind.EXIT, code=code)

    @classmethod
    def returning(cls, value: Value) -> "ControlFlow":
        return cls(FlowKind.RETURN, value=value)


NO_FLOW = ControlFlow()
BREAK = ControlFlow(FlowKind.BREAK)
CONTINUE = ControlFlow(FlowKind.CONTINUE)
NEXT = ControlFlow(FlowKind.NEXT)


@dataclass
class CallFrame:
    """Local variables of one user function invocation."""
    function_name: str
    variables: dict[str, Value] = field(default_factory=dict)


def translate_regex(pattern: str) -> str:
    """
    Rewrite POSIX bracket classes into Python's ``re`` syntax.
    """
    if "[:" not in pattern:
        return pattern
    for posix, python in _POSIX_CLASSES.items():
        pattern = pattern.replace(posix, python)
    return pattern


def split_on_matches(regex: re.Pattern, text: str) -> list[str]:
    """
    Split ``text`` at every match of ``regex``.

    Unlike ``re.split`` the text of capturing groups is never returned.
    """
    pieces = []
    start = 0
    for match in regex.finditer(text):
        pieces.append(text[start:match.start()])
        start = match.end()
    pieces.append(text[start:])
    return pieces


def _expand_replacement(replacement: str, matched: str) -> str:
    out = []
    i = 0
    while i < len(replacement):
        ch = replacement[i]
        if ch == "\\" and i + 1 < len(replacement) and replacement[i + 1] in "&\\":
            out.append(replacement[i + 1])
            i += 2
            continue
        out.append(matched if ch == "&" else ch)
        i += 1
    return "".join(out)


class RuntimeContext:
    """
    Mutable state of one script execution.
    """

    def __init__(self):
        self.globals: dict[str, Value] = {}
        self.call_stack: list[CallFrame] = []
        self.builtins: dict[str, Value] = {}
        self.fields: list[str] = [""]
        self.nr = 0
        self.filename = ""
        self.fs = " "
        self.ofs = " "
        self.rs = "\n"
        self.ors = "\n"
        self.subsep = "\034"
        self.rstart = 0
        self.rlength = 0
        self.exit_code: Optional[int] = None
        self.control_flow = NO_FLOW
        self.regex_cache: dict[str, re.Pattern] = {}
        self.record_source: Optional[Callable[[], Optional[str]]] = None
        self.streams: dict[str, tuple] = {}
        self.seed = 0.0
        self.random = random.Random(0)
        self.sync_builtins()

    # ------------------------------------------------------------------
    # Built-in variable snapshot
    # ------------------------------------------------------------------

    def sync_builtins(self) -> None:
        """
        Refresh the built-in variable snapshot from the internal settings.
        """
        self.builtins = {
            "NR": Value.number(self.nr),
            "NF": Value.number(len(self.fields) - 1),
            "FILENAME": Value.string(self.filename),
            "FS": Value.string(self.fs),
            "OFS": Value.string(self.ofs),
            "RS": Value.string(self.rs),
            "ORS": Value.string(self.ors),
            "SUBSEP": Value.string(self.subsep),
            "RSTART": Value.number(self.rstart),
            "RLENGTH": Value.number(self.rlength),
        }

    def set_filename(self, filename: str) -> None:
        self.filename = filename
        self.sync_builtins()

    # ------------------------------------------------------------------
    # Records and fields
    # ------------------------------------------------------------------

    def set_current_record(self, record: str) -> None:
        """
        Install a new input record: count it and split it into fields.

        Parameters:
            record (str): The record text, without its separator.
        """
        self.nr += 1
        self.fields = [record, *self.split_text(record, self.fs)]
        self.sync_builtins()

    def split_text(self, text: str, separator: str) -> list[str]:
        """
        Split ``text`` the way ``FS`` splits records.
        """
        if text == "":
            return []
        if separator == " ":
            return text.split()
        if separator == "":
            return list(text)
        if len(separator) == 1 and separator != "\\":
            return text.split(separator)
        try:
            regex = self.get_regex(separator)
        except PatternError:
            logger.debug("separator %r is not a valid regex, splitting literally", separator)
            return text.split(separator)
        return split_on_matches(regex, text)

    def get_field(self, index: int) -> str:
        if index < 0:
            raise InvalidFieldReferenceError(index)
        if index < len(self.fields):
            return self.fields[index]
        return ""

    def set_field(self, index: int, text: str) -> None:
        """
        Assign a field, growing the record with empty fields as needed.
        """
        if index < 0:
            raise InvalidFieldReferenceError(index)
        while len(self.fields) <= index:
            self.fields.append("")
        self.fields[index] = text
        if index > 0:
            self.fields[0] = self.ofs.join(self.fields[1:])
        self.sync_builtins()

    # ------------------------------------------------------------------
    # Variables
    # ------------------------------------------------------------------

    @property
    def frame(self) -> Optional[CallFrame]:
        return self.call_stack[-1] if self.call_stack else None

    def get_variable(self, name: str) -> Value:
        """
        Look up a variable; unknown names read as undefined.
        """
        value = self.builtins.get(name)
        if value is not None:
            return value
        frame = self.frame
        if frame is not None and name in frame.variables:
            return frame.variables[name]
        value = self.globals.get(name)
        if value is not None:
            return value
        return Value.undefined()

    def set_variable(self, name: str, value: Value) -> None:
        """
        Assign a scalar to a variable.

        Raises:
            AwkTypeError: If the variable holds an array.
        """
        if name in READ_ONLY_VARIABLES:
            return
        if name in SETTING_VARIABLES:
            setattr(self, SETTING_VARIABLES[name], value.to_string())
            self.sync_builtins()
            return
        if value.is_array():
            raise AwkTypeError(f"Can't assign array to '{name}'")
        scope = self.frame.variables if self.frame is not None else self.globals
        current = scope.get(name)
        if current is not None and current.is_array():
            raise AwkTypeError(f"Can't assign to '{name}'; it's an array name")
        scope[name] = value.copy()

    def lookup_array(self, name: str) -> Value:
        """
        Return the array named ``name``, creating it in the current scope.

        Raises:
            AwkTypeError: If the name holds a scalar or is a built-in variable.
        """
        if name in self.builtins:
            raise AwkTypeError(f"Can't use built-in variable '{name}' as an array")
        frame = self.frame
        if frame is not None and name in frame.variables:
            slot = frame.variables[name]
        elif name in self.globals:
            slot = self.globals[name]
        else:
            slot = Value.undefined()
            scope = frame.variables if frame is not None else self.globals
            scope[name] = slot
        slot.ensure_array(name)
        return slot

    def variable_slot(self, name: str) -> Value:
        """
        Return the stored value object for ``name``, creating an undefined
        one in the current scope. Used to pass arrays by reference.
        """
        frame = self.frame
        if frame is not None and name in frame.variables:
            return frame.variables[name]
        if name in self.globals:
            return self.globals[name]
        slot = Value.undefined()
        scope = frame.variables if frame is not None else self.globals
        scope[name] = slot
        return slot

    def array_key(self, subscripts: list[Value]) -> str:
        for value in subscripts:
            if value.is_array():
                raise InvalidArrayIndexError("array used as a subscript")
        return self.subsep.join(value.to_string() for value in subscripts)

    # ------------------------------------------------------------------
    # Call stack and control flow
    # ------------------------------------------------------------------

    def push_call_frame(self, function_name: str) -> CallFrame:
        frame = CallFrame(function_name)
        self.call_stack.append(frame)
        return frame

    def pop_call_frame(self) -> None:
        self.call_stack.pop()

    def set_exit(self, code: int) -> ControlFlow:
        self.exit_code = code
        logger.debug("exit requested with code %d", code)
        return ControlFlow.exit(code)

    def clear_control_flow(self) -> None:
        self.control_flow = NO_FLOW

    # ------------------------------------------------------------------
    # Regular expressions
    # ------------------------------------------------------------------

    def get_regex(self, pattern: str) -> re.Pattern:
        """
        Compile ``pattern`` once and serve it from the cache afterwards.

        Raises:
            PatternError: If the pattern does not compile.
        """
        regex = self.regex_cache.get(pattern)
        if regex is None:
            logger.debug("compiling regex /%s/", pattern)
            try:
                regex = re.compile(translate_regex(pattern))
            except re.error as exc:
                raise PatternError(pattern, str(exc)) from exc
            self.regex_cache[pattern] = regex
        return regex

    def regex_matches(self, text: str, pattern: str) -> bool:
        return self.get_regex(pattern).search(text) is not None

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def read_record(self) -> Optional[str]:
        """
        Pull the next record from the driver-supplied source, if any.
        """
        if self.record_source is None:
            return None
        return self.record_source()

    def getline(self) -> int:
        record = self.read_record()
        if record is None:
            return 0
        self.set_current_record(record)
        return 1

    def getline_into(self) -> Optional[str]:
        """
        Read the next record for ``getline var``: NR advances, fields don't.
        """
        record = self.read_record()
        if record is not None:
            self.nr += 1
            self.sync_builtins()
        return record

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def write(self, text: str, mode: Optional[str] = None, target: Optional[str] = None) -> None:
        """
        Write output text to standard output or a redirection target.

        Parameters:
            text (str): Text including its record terminator.
            mode (str): ``>``, ``>>`` or ``|``; ``None`` for standard output.
            target (str): File name or shell command for redirections.
        """
        if mode is None:
            sys.stdout.write(text)
            return
        self._stream(mode, target).write(text)

    def _stream(self, mode: str, target: str):
        if target in ("/dev/stdout", "-"):
            return sys.stdout
        if target == "/dev/stderr":
            return sys.stderr
        entry = self.streams.get(target)
        if entry is not None:
            return entry[0]
        if mode == "|":
            process = subprocess.Popen(target, shell=True, stdin=subprocess.PIPE, text=True)
            entry = (process.stdin, process)
        else:
            try:
                handle = open(target, "a" if mode == ">>" else "w", encoding="utf-8")
            except OSError as exc:
                raise AwkRuntimeError(f"can't redirect to '{target}': {exc.strerror}") from exc
            entry = (handle, None)
        logger.debug("opened output %r (%s)", target, mode)
        self.streams[target] = entry
        return entry[0]

    def close_stream(self, target: str) -> int:
        """
        Close a cached output stream.

        Returns:
            int: 0 for a file, the command's exit status for a pipe, or -1
            when nothing by that name is open.
        """
        entry = self.streams.pop(target, None)
        if entry is None:
            return -1
        handle, process = entry
        handle.close()
        logger.debug("closed output %r", target)
        if process is not None:
            return process.wait()
        return 0

    def close_all(self) -> None:
        sys.stdout.flush()
        for target in list(self.streams):
            self.close_stream(target)

    def flush(self, target: Optional[str] = None) -> int:
        if target is None:
            sys.stdout.flush()
            for handle, _process in self.streams.values():
                handle.flush()
            return 0
        entry = self.streams.get(target)
        if entry is None:
            return -1
        entry[0].flush()
        return 0

    # ------------------------------------------------------------------
    # Built-in functions
    # ------------------------------------------------------------------

    def check_arity(self, name: str, args: list) -> None:
        """
        Raises:
            InvalidFunctionCallError: If ``args`` has the wrong length.
        """
        low, high = ARITY[name]
        count = len(args)
        if low <= count and (high is None or count <= high):
            return
        if low == high:
            plural = "" if low == 1 else "s"
            reason = f"requires exactly {low} argument{plural}"
        elif high is None or count < low:
            plural = "" if low == 1 else "s"
            reason = f"requires at least {low} argument{plural}"
        else:
            plural = "" if high == 1 else "s"
            reason = f"accepts at most {high} argument{plural}"
        raise InvalidFunctionCallError(name, f"{count} arguments", reason)

    def call_builtin(self, name: str, args: list[Value]) -> Value:
        """
        Run a built-in that takes plain values.
        """
        self.check_arity(name, args)
        return getattr(self, f"builtin_{name}")(args)

    def builtin_length(self, args):
        if not args:
            return Value.number(len(self.get_field(0)))
        if args[0].is_array():
            return Value.number(args[0].array_len())
        return Value.number(len(args[0].to_string()))

    def builtin_substr(self, args):
        text = args[0].to_string()
        start = args[1].to_number()
        if math.isnan(start):
            start = 0.0
        first = _round_half(start)
        last = math.inf
        if len(args) > 2:
            length = args[2].to_number()
            if math.isnan(length):
                return Value.string("")
            last = first + _round_half(length)
        first = max(first, 1)
        last = min(last, len(text) + 1)
        if last <= first:
            return Value.string("")
        return Value.string(text[int(first) - 1:int(last) - 1])

    def builtin_index(self, args):
        return Value.number(args[0].to_string().find(args[1].to_string()) + 1)

    def builtin_match(self, args):
        found = self.get_regex(args[1].to_string()).search(args[0].to_string())
        if found is None:
            self.rstart = 0
            self.rlength = 0
        else:
            self.rstart = found.start() + 1
            self.rlength = found.end() - found.start()
        self.sync_builtins()
        return Value.number(self.rstart)

    def builtin_sprintf(self, args):
        return Value.string(format_string(args[0].to_string(), args[1:]))

    def builtin_toupper(self, args):
        text = args[0].to_string() if args else self.get_field(0)
        return Value.string(text.upper())

    def builtin_tolower(self, args):
        text = args[0].to_string() if args else self.get_field(0)
        return Value.string(text.lower())

    def builtin_sin(self, args):
        return Value.number(_finite_or_nan(math.sin, args[0].to_number()))

    def builtin_cos(self, args):
        return Value.number(_finite_or_nan(math.cos, args[0].to_number()))

    def builtin_atan2(self, args):
        return Value.number(math.atan2(args[0].to_number(), args[1].to_number()))

    def builtin_exp(self, args):
        try:
            return Value.number(math.exp(args[0].to_number()))
        except OverflowError:
            return Value.number(math.inf)

    def builtin_log(self, args):
        number = args[0].to_number()
        if number <= 0.0:
            raise AwkRuntimeError("log of non-positive number")
        return Value.number(math.log(number))

    def builtin_sqrt(self, args):
        number = args[0].to_number()
        if number < 0.0:
            raise AwkRuntimeError("sqrt of negative number")
        return Value.number(math.sqrt(number))

    def builtin_int(self, args):
        number = args[0].to_number()
        if not math.isfinite(number):
            return Value.number(number)
        return Value.number(math.trunc(number))

    def builtin_rand(self, args):
        return Value.number(self.random.random())

    def builtin_srand(self, args):
        previous = self.seed
        self.seed = args[0].to_number() if args else float(int(time.time()))
        self.random.seed(self.seed)
        return Value.number(previous)

    def builtin_close(self, args):
        return Value.number(self.close_stream(args[0].to_string()))

    def builtin_fflush(self, args):
        return Value.number(self.flush(args[0].to_string() if args else None))

    def builtin_system(self, args):
        self.flush()
        completed = subprocess.run(args[0].to_string(), shell=True, check=False)
        return Value.number(completed.returncode)

    # Built-ins the interpreter drives because they write into lvalues.

    def substitute(self, pattern: str, replacement: str, text: str, global_: bool) -> tuple[str, int]:
        """
        Replace the first (or every) match of ``pattern`` in ``text``.

        ``&`` in the replacement stands for the matched text and ``\\&`` for
        a literal ampersand.

        Returns:
            tuple[str, int]: The new text and the number of replacements.
        """
        regex = self.get_regex(pattern)
        return regex.subn(
            lambda found: _expand_replacement(replacement, found.group()),
            text,
            count=0 if global_ else 1,
        )

    def split_into(self, text: str, array: Value, separator: Optional[str] = None) -> int:
        """
        Fill ``array`` with the pieces of ``text`` keyed ``"1"``, ``"2"``, ...
        """
        parts = self.split_text(text, self.fs if separator is None else separator)
        array.clear()
        for number, part in enumerate(parts, start=1):
            array.set_element(str(number), Value.string(part))
        return len(parts)


def _round_half(number: float) -> float:
    if not math.isfinite(number):
        return number
    return float(math.floor(number + 0.5))


def _finite_or_nan(func, number: float) -> float:
    if math.isinf(number):
        return math.nan
    return func(number)
