"""Interpreter.

This is a tree-walk interpreter for the AST produced by the parser. It runs
a :class:`~fastawk.ast_nodes.Program` against a
:class:`~fastawk.runtime.RuntimeContext` in three phases driven from
outside: ``BEGIN`` rules once, the main rules once per input record, then
``END`` rules once.

1. Execution Model
Statements are executed by :meth:`Interpreter.execute`, which returns a
:class:`~fastawk.runtime.ControlFlow` describing how the statement finished.
Expressions are evaluated by :meth:`Interpreter.evaluate`, which returns a
:class:`~fastawk.value.Value`.

2. Control Flow
``break``, ``continue``, ``next``, ``exit`` and ``return`` travel as
returned signals rather than exceptions. Loops absorb ``break`` and
``continue``; blocks stop at the first signal; a user function turns
``return`` into its result. ``next`` and ``exit`` inside a function cannot
be returned through the expression that called it, so the call leaves them
in ``context.control_flow`` and the enclosing statement picks them up.

3. Arrays and Functions
A variable passed by name to a user function hands over its storage, so an
array (or a variable that becomes one inside the callee) is shared with the
caller. Scalars are copied.

4. Error Handling
Run-time errors are never recovered. The statement that fails stamps its
line onto the error on the way out.


File: interpreter.py
Version: 0.1.0
License: MIT
"""

import logging
import math
from typing import Iterable, Iterator, Optional

from fastawk.ast_nodes import (
    LVALUES,
    ArrayRef,
    Assign,
    BinaryOp,
    Block,
    Break,
    Call,
    Continue,
    Delete,
    Exit,
    ExprPattern,
    ExprStmt,
    FieldRef,
    For,
    ForIn,
    Function,
    Getline,
    Identifier,
    If,
    IncDec,
    InArray,
    Literal,
    LogicalOp,
    Next,
    Print,
    Printf,
    Program,
    RangePattern,
    RegexLiteral,
    Return,
    Rule,
    Ternary,
    UnaryOp,
    While,
)
from fastawk.exceptions import (
    AwkRuntimeError,
    AwkTypeError,
    InvalidAssignmentError,
    InvalidFieldReferenceError,
    InvalidFunctionCallError,
    UndefinedFunctionError,
)
from fastawk.formatting import format_string
from fastawk.operations import BUILTIN_FUNCTIONS, COMPARISON, Op
from fastawk.runtime import (
    BREAK,
    CONTINUE,
    NEXT,
    NO_FLOW,
    ControlFlow,
    FlowKind,
    RuntimeContext,
)
from fastawk.value import Value

logger = logging.getLogger(__name__)


ARITHMETIC_METHODS = {
    Op.ADD: Value.add,
    Op.SUB: Value.subtract,
    Op.MUL: Value.multiply,
    Op.DIV: Value.divide,
    Op.MOD: Value.modulo,
    Op.POW: Value.power,
}

COMPARISON_TESTS = {
    Op.EQ: lambda order: order == 0,
    Op.NE: lambda order: order != 0,
    Op.LT: lambda order: order < 0,
    Op.LE: lambda order: order <= 0,
    Op.GT: lambda order: order > 0,
    Op.GE: lambda order: order >= 0,
}

# Signals that escape a user function into the calling statement.
ESCAPING = (FlowKind.NEXT, FlowKind.EXIT)

WHOLE_RECORD = FieldRef(Literal(Value.number(0)))


class Interpreter:
    """Tree-walk interpreter for fastawk programs."""

    def __init__(self, program: Program, context: Optional[RuntimeContext] = None, file: str = "<script>"):
        """
        Initialize the interpreter.

        Parameters:
            program (Program): The parsed script.
            context (RuntimeContext): Execution state; a fresh one by default.
            file (str): Script name for diagnostics.
        """
        self.program = program
        self.context = context if context is not None else RuntimeContext()
        self.file = file
        self.main_rules = program.main_rules()
        self.range_active: dict[int, bool] = {}

    # ------------------------------------------------------------------
    # Driver interface
    # ------------------------------------------------------------------

    @property
    def exit_code(self) -> Optional[int]:
        return self.context.exit_code

    def assign_variables(self, assignments: Iterable[tuple[str, str]]) -> None:
        """
        Apply ``name=value`` pre-assignments; values are strings.
        """
        for name, text in assignments:
            self.context.set_variable(name, Value.string(text))

    def set_record_source(self, records: Iterator[str]) -> None:
        """
        Supply the records that ``getline`` and :meth:`run` read from.
        """
        self.context.record_source = lambda: next(records, None)

    def execute_program(self) -> None:
        """
        Run the BEGIN rules, stopping early on ``exit``.
        """
        for rule in self.program.begin_rules():
            flow = self.run_action(rule)
            if flow.kind is FlowKind.EXIT:
                break

    def execute_record(self, record: str) -> None:
        """
        Install ``record`` and run the main rules against it.

        Does nothing once ``exit`` has been executed.
        """
        if self.context.exit_code is not None:
            return
        self.context.set_current_record(record)
        for index, rule in enumerate(self.main_rules):
            matched = self.rule_matches(index, rule)
            flow = self._take_pending(NO_FLOW)
            if flow.is_none and matched:
                flow = self.run_action(rule)
            if flow.kind in ESCAPING:
                break

    def execute_end(self) -> None:
        """
        Run the END rules, then close every output stream.

        ``exit`` inside an END rule skips the remaining END rules.
        """
        self.context.clear_control_flow()
        try:
            for rule in self.program.end_rules():
                flow = self.run_action(rule)
                if flow.kind is FlowKind.EXIT:
                    break
        finally:
            self.context.close_all()

    def run(self, records: Optional[Iterable[str]] = None) -> int:
        """
        Run all three phases over ``records`` and return the exit status.

        Input is only consumed when the program has main or END rules.
        """
        if records is not None:
            self.set_record_source(iter(records))
        self.execute_program()
        if self.program.has_main_rules() or self.program.has_end_rules():
            while self.context.exit_code is None:
                record = self.context.read_record()
                if record is None:
                    break
                self.execute_record(record)
        self.execute_end()
        return self.context.exit_code or 0

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def rule_matches(self, index: int, rule: Rule) -> bool:
        """
        Decide whether a main rule applies to the current record.

        A range rule is active from a record matching its start pattern
        through the next record matching its end pattern, both included.
        """
        pattern = rule.pattern
        try:
            if pattern is None:
                return True
            if isinstance(pattern, ExprPattern):
                return self.evaluate(pattern.expr).to_bool()
            if isinstance(pattern, RangePattern):
                if not self.range_active.get(index):
                    if not self.evaluate(pattern.start.expr).to_bool():
                        return False
                    logger.debug("range on line %d opened at record %d", rule.line, self.context.nr)
                    self.range_active[index] = True
                if self.evaluate(pattern.end.expr).to_bool():
                    logger.debug("range on line %d closed at record %d", rule.line, self.context.nr)
                    self.range_active[index] = False
                return True
        except AwkRuntimeError as exc:
            if exc.line is None:
                exc.line = rule.line
            raise
        raise AwkRuntimeError(f"Unknown pattern type {type(pattern).__name__}", rule.line)

    def run_action(self, rule: Rule) -> ControlFlow:
        self.context.clear_control_flow()
        return self.execute_statements(rule.action.statements)

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def execute_statements(self, statements) -> ControlFlow:
        for statement in statements:
            flow = self.execute(statement)
            if not flow.is_none:
                return flow
        return NO_FLOW

    def _take_pending(self, flow: ControlFlow) -> ControlFlow:
        pending = self.context.control_flow
        if pending.is_none:
            return flow
        self.context.clear_control_flow()
        return pending if flow.is_none else flow

    def _interrupted(self) -> bool:
        return not self.context.control_flow.is_none

    def execute(self, stmt) -> ControlFlow:
        """
        Execute one statement.

        Returns:
            ControlFlow: How the statement finished.

        Raises:
            AwkRuntimeError: Any run-time failure, tagged with the line.
        """
        try:
            flow = self._execute(stmt)
        except AwkRuntimeError as exc:
            if exc.line is None:
                exc.line = stmt.line
            raise
        return self._take_pending(flow)

    def _execute(self, stmt) -> ControlFlow:
        match stmt:
            case ExprStmt(expr=expr):
                self.evaluate(expr)
                return NO_FLOW

            case Print(args=args, redirect=redirect):
                if args:
                    text = self.context.ofs.join(self.evaluate(arg).to_string() for arg in args)
                else:
                    text = self.context.get_field(0)
                self._output(text + self.context.ors, redirect)
                return NO_FLOW

            case Printf(args=args, redirect=redirect):
                fmt = self.evaluate(args[0]).to_string()
                values = [self.evaluate(arg) for arg in args[1:]]
                self._output(format_string(fmt, values), redirect)
                return NO_FLOW

            case Block(statements=statements):
                return self.execute_statements(statements)

            case If(condition=condition, then=then, else_=else_):
                truth = self.evaluate(condition).to_bool()
                if self._interrupted():
                    return NO_FLOW
                if truth:
                    return self.execute(then)
                if else_ is not None:
                    return self.execute(else_)
                return NO_FLOW

            case While(condition=condition, body=body):
                while True:
                    truth = self.evaluate(condition).to_bool()
                    if self._interrupted() or not truth:
                        return NO_FLOW
                    flow = self.execute(body)
                    if flow.kind is FlowKind.BREAK:
                        return NO_FLOW
                    if flow.kind not in (FlowKind.NONE, FlowKind.CONTINUE):
                        return flow

            case For(init=init, condition=condition, update=update, body=body):
                return self._execute_for(init, condition, update, body)

            case ForIn(var=var, array=array, body=body):
                elements = self.context.lookup_array(array)
                for key in elements.keys():
                    if not elements.has_key(key):
                        continue
                    self.context.set_variable(var, Value.string(key))
                    flow = self.execute(body)
                    if flow.kind is FlowKind.BREAK:
                        break
                    if flow.kind not in (FlowKind.NONE, FlowKind.CONTINUE):
                        return flow
                return NO_FLOW

            case Break():
                return BREAK
            case Continue():
                return CONTINUE
            case Next():
                return NEXT

            case Exit(value=value):
                if value is None:
                    code = self.context.exit_code or 0
                else:
                    code = _exit_status(self.evaluate(value).to_number())
                    if self._interrupted():
                        return NO_FLOW
                return self.context.set_exit(code)

            case Return(value=value):
                if not self.context.call_stack:
                    raise AwkRuntimeError("'return' used outside a function")
                result = Value.undefined() if value is None else self.evaluate(value).copy()
                return ControlFlow.returning(result)

            case Delete(name=name, indices=indices):
                elements = self.context.lookup_array(name)
                if indices is None:
                    elements.clear()
                else:
                    elements.delete_element(self._key(indices))
                return NO_FLOW

        raise AwkRuntimeError(f"Unknown statement type {type(stmt).__name__}")

    def _execute_for(self, init, condition, update, body) -> ControlFlow:
        if init is not None:
            self.evaluate(init)
            if self._interrupted():
                return NO_FLOW
        while True:
            if condition is not None:
                truth = self.evaluate(condition).to_bool()
                if self._interrupted() or not truth:
                    return NO_FLOW
            flow = self.execute(body)
            if flow.kind is FlowKind.BREAK:
                return NO_FLOW
            if flow.kind not in (FlowKind.NONE, FlowKind.CONTINUE):
                return flow
            if update is not None:
                self.evaluate(update)
                if self._interrupted():
                    return NO_FLOW

    def _output(self, text: str, redirect) -> None:
        if self._interrupted():
            return
        if redirect is None:
            self.context.write(text)
            return
        target = self.evaluate(redirect.target).to_string()
        if self._interrupted():
            return
        self.context.write(text, redirect.mode, target)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def evaluate(self, expr) -> Value:
        """
        Evaluate an expression node.

        Returns:
            Value: The result. Identifier reads return the stored value, so
            callers copy before keeping it.
        """
        match expr:
            case Literal(value=value):
                return value

            case RegexLiteral(pattern=pattern):
                return Value.boolean(self.context.regex_matches(self.context.get_field(0), pattern))

            case Identifier(name=name):
                return self.context.get_variable(name)

            case FieldRef(index=index):
                return Value.string(self.context.get_field(self._field_index(index)))

            case ArrayRef(name=name, indices=indices):
                elements = self.context.lookup_array(name)
                return elements.get_element(self._key(indices))

            case BinaryOp(op=op, left=left, right=right):
                return self._binary(op, left, right)

            case LogicalOp(op=Op.AND, left=left, right=right):
                if not self.evaluate(left).to_bool():
                    return Value.boolean(False)
                return Value.boolean(self.evaluate(right).to_bool())

            case LogicalOp(op=Op.OR, left=left, right=right):
                if self.evaluate(left).to_bool():
                    return Value.boolean(True)
                return Value.boolean(self.evaluate(right).to_bool())

            case UnaryOp(op=Op.NOT, operand=operand):
                return Value.boolean(not self.evaluate(operand).to_bool())

            case UnaryOp(op=Op.NEG, operand=operand):
                return Value.number(-self.evaluate(operand).to_number())

            case UnaryOp(op=Op.POS, operand=operand):
                return Value.number(self.evaluate(operand).to_number())

            case InArray(keys=keys, array=array):
                key = self._key(keys)
                return Value.boolean(self.context.lookup_array(array).has_key(key))

            case Assign(target=target, value=value, op=op):
                ref = self._resolve(target)
                if op is None:
                    result = self.evaluate(value).copy()
                else:
                    current = self._load(ref)
                    result = ARITHMETIC_METHODS[op](current, self.evaluate(value))
                self._store(ref, result)
                return result

            case IncDec(target=target, delta=delta, prefix=prefix):
                ref = self._resolve(target)
                old = self._load(ref).to_number()
                new = Value.number(old + delta)
                self._store(ref, new)
                return new if prefix else Value.number(old)

            case Ternary(condition=condition, if_true=if_true, if_false=if_false):
                if self.evaluate(condition).to_bool():
                    return self.evaluate(if_true)
                return self.evaluate(if_false)

            case Call():
                return self._call(expr)

            case Getline(target=None):
                return Value.number(self.context.getline())

            case Getline(target=target):
                ref = self._resolve(target)
                record = self.context.getline_into()
                if record is None:
                    return Value.number(0)
                self._store(ref, Value.string(record))
                return Value.number(1)

        raise AwkRuntimeError(f"Unknown expression type {type(expr).__name__}")

    def _binary(self, op: Op, left, right) -> Value:
        if op in (Op.MATCH, Op.NOT_MATCH):
            text = self.evaluate(left).to_string()
            matched = self.context.regex_matches(text, self._pattern_text(right))
            return Value.boolean(matched if op is Op.MATCH else not matched)
        lhs = self.evaluate(left)
        rhs = self.evaluate(right)
        if op is Op.CONCAT:
            return lhs.concatenate(rhs)
        if op in COMPARISON:
            return Value.boolean(COMPARISON_TESTS[op](lhs.compare(rhs)))
        return ARITHMETIC_METHODS[op](lhs, rhs)

    def _pattern_text(self, node) -> str:
        if isinstance(node, RegexLiteral):
            return node.pattern
        return self.evaluate(node).to_string()

    def _field_index(self, node) -> int:
        number = self.evaluate(node).to_number()
        if not math.isfinite(number):
            raise InvalidFieldReferenceError(number)
        return math.trunc(number)

    def _key(self, indices) -> str:
        return self.context.array_key([self.evaluate(index) for index in indices])

    # ------------------------------------------------------------------
    # Lvalues
    # ------------------------------------------------------------------

    def _resolve(self, target) -> tuple:
        """
        Evaluate the parts of an lvalue once, returning a reference to it.
        """
        match target:
            case Identifier(name=name):
                return ("var", name)
            case FieldRef(index=index):
                return ("field", self._field_index(index))
            case ArrayRef(name=name, indices=indices):
                key = self._key(indices)
                return ("element", self.context.lookup_array(name), key)
        raise InvalidAssignmentError(f"Cannot assign to {type(target).__name__}")

    def _load(self, ref: tuple) -> Value:
        kind = ref[0]
        if kind == "var":
            return self.context.get_variable(ref[1])
        if kind == "field":
            return Value.string(self.context.get_field(ref[1]))
        return ref[1].get_element(ref[2])

    def _store(self, ref: tuple, value: Value) -> None:
        kind = ref[0]
        if kind == "var":
            self.context.set_variable(ref[1], value)
        elif kind == "field":
            self.context.set_field(ref[1], value.to_string())
        else:
            ref[1].set_element(ref[2], value)

    # ------------------------------------------------------------------
    # Function calls
    # ------------------------------------------------------------------

    def _call(self, expr: Call) -> Value:
        name = expr.name
        if name in BUILTIN_FUNCTIONS:
            return self._call_builtin(name, expr.args)
        function = self.program.functions.get(name)
        if function is None:
            raise UndefinedFunctionError(name)
        return self._call_user(function, expr.args)

    def _call_builtin(self, name: str, args: list) -> Value:
        context = self.context
        if name == "split":
            context.check_arity(name, args)
            if not isinstance(args[1], Identifier):
                raise AwkTypeError("split: second argument must be an array name")
            text = self.evaluate(args[0]).to_string()
            elements = context.lookup_array(args[1].name)
            separator = self._pattern_text(args[2]) if len(args) > 2 else None
            return Value.number(context.split_into(text, elements, separator))

        if name in ("sub", "gsub"):
            context.check_arity(name, args)
            target = args[2] if len(args) > 2 else WHOLE_RECORD
            if not isinstance(target, LVALUES):
                raise InvalidAssignmentError(f"{name}: third argument is not assignable")
            pattern = self._pattern_text(args[0])
            replacement = self.evaluate(args[1]).to_string()
            ref = self._resolve(target)
            text, count = context.substitute(pattern, replacement, self._load(ref).to_string(), name == "gsub")
            if count:
                self._store(ref, Value.string(text))
            return Value.number(count)

        if name == "match":
            context.check_arity(name, args)
            subject = self.evaluate(args[0])
            return context.call_builtin(name, [subject, Value.string(self._pattern_text(args[1]))])

        return context.call_builtin(name, [self.evaluate(arg) for arg in args])

    def _call_user(self, function: Function, arg_nodes: list) -> Value:
        """
        Call a user-defined function.

        Parameters are bound positionally; missing ones start undefined.
        A bare variable argument passes its storage so arrays are shared.
        """
        if len(arg_nodes) > len(function.params):
            raise InvalidFunctionCallError(
                function.name,
                f"{len(arg_nodes)} arguments",
                f"accepts at most {len(function.params)}",
            )
        values = [self._argument(node) for node in arg_nodes]
        if self._interrupted():
            return Value.undefined()

        frame = self.context.push_call_frame(function.name)
        for position, param in enumerate(function.params):
            frame.variables[param] = values[position] if position < len(values) else Value.undefined()
        logger.debug("calling %s(%d)", function.name, len(values))
        try:
            flow = self.execute_statements(function.body.statements)
        finally:
            self.context.pop_call_frame()

        if flow.kind is FlowKind.RETURN:
            return flow.value
        if flow.kind in ESCAPING:
            self.context.control_flow = flow
        return Value.undefined()

    def _argument(self, node) -> Value:
        if isinstance(node, Identifier) and node.name not in self.context.builtins:
            slot = self.context.variable_slot(node.name)
            if slot.is_array() or slot.is_undefined():
                return slot
            return slot.copy()
        return self.evaluate(node).copy()


def _exit_status(number: float) -> int:
    if not math.isfinite(number):
        return 0
    return math.trunc(number)
