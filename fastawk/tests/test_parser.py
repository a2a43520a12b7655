"""
Tests for the fastawk parser
"""
import pytest

from fastawk.ast_nodes import (
    ArrayRef,
    Assign,
    BeginPattern,
    BinaryOp,
    Block,
    Call,
    Delete,
    EndPattern,
    ExprPattern,
    ExprStmt,
    FieldRef,
    ForIn,
    Getline,
    Identifier,
    If,
    IncDec,
    InArray,
    Literal,
    Print,
    Printf,
    RangePattern,
    RegexLiteral,
    Ternary,
    UnaryOp,
    While,
)
from fastawk.exceptions import ScriptSyntaxError
from fastawk.operations import Op
from fastawk.tests.utils import parse_source
from fastawk.value import Value


def num(n):
    return Literal(Value.number(n))


def first_expr(source: str):
    """Parse ``BEGIN { <source> }`` and return the first statement's expression."""
    program = parse_source("BEGIN { " + source + " }")
    stmt = program.rules[0].action.statements[0]
    assert isinstance(stmt, ExprStmt)
    return stmt.expr


def test_begin_end_and_main_rules():
    """
    Test that rules keep their order and pattern kinds.
    """
    program = parse_source("BEGIN { x = 1 }\n{ print }\nEND { print x }")
    kinds = [type(rule.pattern) for rule in program.rules]
    assert kinds == [BeginPattern, type(None), EndPattern]
    assert len(program.begin_rules()) == 1
    assert len(program.main_rules()) == 1
    assert len(program.end_rules()) == 1


def test_pattern_without_action_prints_record():
    """
    Test that a bare pattern gets the default print action.
    """
    program = parse_source("/foo/")
    rule = program.rules[0]
    assert rule.pattern == ExprPattern(RegexLiteral("foo"))
    assert rule.action.statements == [Print([])]


def test_range_pattern():
    """
    Test that two comma separated patterns form a range.
    """
    program = parse_source("/start/, /stop/ { print }")
    pattern = program.rules[0].pattern
    assert isinstance(pattern, RangePattern)
    assert pattern.start == ExprPattern(RegexLiteral("start"))
    assert pattern.end == ExprPattern(RegexLiteral("stop"))


def test_begin_requires_action():
    """
    Test that BEGIN without braces is rejected.
    """
    with pytest.raises(ScriptSyntaxError):
        parse_source("BEGIN")


def test_multiplication_binds_tighter_than_addition():
    """
    Test operator precedence for + and *.
    """
    assert first_expr("1 + 2 * 3") == BinaryOp(
        Op.ADD, num(1), BinaryOp(Op.MUL, num(2), num(3))
    )


def test_subtraction_is_left_associative():
    """
    Test that binary minus groups to the left.
    """
    assert first_expr("1 - 2 - 3") == BinaryOp(
        Op.SUB, BinaryOp(Op.SUB, num(1), num(2)), num(3)
    )


def test_power_is_right_associative():
    """
    Test that exponentiation groups to the right.
    """
    assert first_expr("2 ^ 3 ^ 2") == BinaryOp(
        Op.POW, num(2), BinaryOp(Op.POW, num(3), num(2))
    )


def test_unary_minus_binds_tighter_than_power():
    """
    Test that -2^2 applies the negation to the base.
    """
    assert first_expr("-2 ^ 2") == BinaryOp(Op.POW, UnaryOp(Op.NEG, num(2)), num(2))


def test_concatenation_sits_between_additive_and_comparison():
    """
    Test that concatenation binds looser than + and tighter than <.
    """
    expr = first_expr('1 " " 2 + 3 < "x"')
    assert expr == BinaryOp(
        Op.LT,
        BinaryOp(
            Op.CONCAT,
            BinaryOp(Op.CONCAT, num(1), Literal(Value.string(" "))),
            BinaryOp(Op.ADD, num(2), num(3)),
        ),
        Literal(Value.string("x")),
    )


def test_assignment_is_right_associative():
    """
    Test that chained assignment assigns from the right.
    """
    assert first_expr("a = b = 3") == Assign(
        Identifier("a"), Assign(Identifier("b"), num(3))
    )


def test_compound_assignment():
    """
    Test that op= assignments carry their operator.
    """
    assert first_expr("total += $2") == Assign(Identifier("total"), FieldRef(num(2)), Op.ADD)


def test_invalid_assignment_target():
    """
    Test that assigning to a non-lvalue is a syntax error.
    """
    with pytest.raises(ScriptSyntaxError):
        parse_source("BEGIN { 1 = 2 }")


def test_increment_forms():
    """
    Test prefix and postfix increment and decrement.
    """
    assert first_expr("x++") == IncDec(Identifier("x"), 1, False)
    assert first_expr("--a[1]") == IncDec(ArrayRef("a", [num(1)]), -1, True)


def test_field_reference_binds_to_primary():
    """
    Test that $ applies to the primary right after it.
    """
    assert first_expr("$1 + 1") == BinaryOp(Op.ADD, FieldRef(num(1)), num(1))
    assert first_expr("$(i + 1)") == FieldRef(BinaryOp(Op.ADD, Identifier("i"), num(1)))
    assert first_expr("$NF") == FieldRef(Identifier("NF"))


def test_ternary_and_logical():
    """
    Test the conditional operator around short-circuit operators.
    """
    expr = first_expr("a && b || c ? 1 : 2")
    assert isinstance(expr, Ternary)
    assert expr.condition.op is Op.OR
    assert expr.condition.left.op is Op.AND


def test_membership_tests():
    """
    Test single and grouped subscripts in an ``in`` test.
    """
    assert first_expr('"k" in arr') == InArray([Literal(Value.string("k"))], "arr")
    assert first_expr("(i, j) in grid") == InArray([Identifier("i"), Identifier("j")], "grid")


def test_regex_match_operators():
    """
    Test ~ and !~ with a regex literal operand.
    """
    assert first_expr("$1 ~ /^a/") == BinaryOp(Op.MATCH, FieldRef(num(1)), RegexLiteral("^a"))
    assert first_expr("x !~ y").op is Op.NOT_MATCH


def test_multidimensional_subscript():
    """
    Test that several subscripts are kept in order.
    """
    assert first_expr("m[1, 2] = 3") == Assign(ArrayRef("m", [num(1), num(2)]), num(3))


def test_builtin_and_user_calls():
    """
    Test built-in calls, bare length and user function calls.
    """
    assert first_expr('substr("hello", 2, 3)') == Call(
        "substr", [Literal(Value.string("hello")), num(2), num(3)]
    )
    assert first_expr("length") == Call("length", [])
    assert first_expr("length($1)") == Call("length", [FieldRef(num(1))])
    assert first_expr("f(1)") == Call("f", [num(1)])


def test_builtin_name_without_arguments_is_rejected():
    """
    Test that a bare built-in other than length cannot be used as a value.
    """
    with pytest.raises(ScriptSyntaxError):
        parse_source("BEGIN { x = substr }")


def test_getline_forms():
    """
    Test plain getline and getline into a variable.
    """
    assert first_expr("getline") == Getline()
    assert first_expr("getline line") == Getline(Identifier("line"))


def test_print_with_redirection():
    """
    Test that > after print arguments is a redirection, not a comparison.
    """
    program = parse_source('{ print $1, $2 > "out.txt" }')
    stmt = program.rules[0].action.statements[0]
    assert stmt.args == [FieldRef(num(1)), FieldRef(num(2))]
    assert stmt.redirect.mode == ">"
    assert stmt.redirect.target == Literal(Value.string("out.txt"))


def test_print_comparison_inside_parentheses():
    """
    Test that a parenthesised > stays a comparison.
    """
    program = parse_source("{ print (1 > 2) }")
    stmt = program.rules[0].action.statements[0]
    assert stmt.args == [BinaryOp(Op.GT, num(1), num(2))]
    assert stmt.redirect is None


def test_print_grouped_argument_list():
    """
    Test print (a, b) followed by a pipe.
    """
    program = parse_source('{ print ($1, $2) | "sort" }')
    stmt = program.rules[0].action.statements[0]
    assert stmt.args == [FieldRef(num(1)), FieldRef(num(2))]
    assert stmt.redirect.mode == "|"


def test_print_parenthesised_first_operand():
    """
    Test that a parenthesis that does not end the statement starts an expression.
    """
    program = parse_source("{ print (1 + 2) * 3, 4 }")
    stmt = program.rules[0].action.statements[0]
    assert stmt.args == [BinaryOp(Op.MUL, BinaryOp(Op.ADD, num(1), num(2)), num(3)), num(4)]


def test_printf_requires_format():
    """
    Test that printf needs at least a format argument.
    """
    stmt = parse_source('{ printf "%s\\n", $1 }').rules[0].action.statements[0]
    assert isinstance(stmt, Printf)
    assert len(stmt.args) == 2
    with pytest.raises(ScriptSyntaxError):
        parse_source("{ printf }")


def test_if_else_on_separate_lines():
    """
    Test that else may follow on a later line.
    """
    program = parse_source("{ if (x)\n print 1\nelse\n print 2 }")
    stmt = program.rules[0].action.statements[0]
    assert isinstance(stmt, If)
    assert stmt.else_ == Print([num(2)])


def test_do_while_desugars_to_block():
    """
    Test that do-while becomes the body followed by a while loop.
    """
    program = parse_source("{ do i++; while (i < 3) }")
    stmt = program.rules[0].action.statements[0]
    assert isinstance(stmt, Block)
    body, loop = stmt.statements
    assert body == ExprStmt(IncDec(Identifier("i"), 1, False))
    assert isinstance(loop, While)
    assert loop.body == body
    assert loop.body is not body


def test_for_in_loop():
    """
    Test detection of the for-in form.
    """
    program = parse_source("END { for (k in seen) print k }")
    stmt = program.rules[0].action.statements[0]
    assert stmt == ForIn("k", "seen", Print([Identifier("k")]))


def test_for_loop_with_empty_clauses():
    """
    Test a for loop with every clause omitted.
    """
    program = parse_source("BEGIN { for (;;) break }")
    stmt = program.rules[0].action.statements[0]
    assert stmt.init is None and stmt.condition is None and stmt.update is None


def test_delete_forms():
    """
    Test deleting one element and a whole array.
    """
    statements = parse_source("{ delete a[$1]; delete a }").rules[0].action.statements
    assert statements == [Delete("a", [FieldRef(num(1))]), Delete("a")]


def test_function_definition():
    """
    Test that functions are collected by name, apart from the rules.
    """
    program = parse_source("function add(a, b) { return a + b }\nBEGIN { print add(1, 2) }")
    assert list(program.functions) == ["add"]
    assert program.functions["add"].params == ["a", "b"]
    assert len(program.rules) == 1


@pytest.mark.parametrize("source", [
    "function f(a) { }\nfunction f(b) { }",
    "function length(s) { }",
    "function f(a, a) { }",
])
def test_invalid_function_definitions(source):
    """
    Test redefinitions, built-in names and duplicate parameters.
    """
    with pytest.raises(ScriptSyntaxError):
        parse_source(source)


def test_unclosed_block_reports_line():
    """
    Test that a missing brace is reported with a line number.
    """
    with pytest.raises(ScriptSyntaxError) as excinfo:
        parse_source("BEGIN {\n print 1\n")
    assert excinfo.value.line == 1


def test_statements_need_terminators():
    """
    Test that two statements on one line without a separator are rejected.
    """
    with pytest.raises(ScriptSyntaxError):
        parse_source("BEGIN { print 1 print 2 }")


def test_line_numbers_are_recorded():
    """
    Test that nodes remember their source line.
    """
    program = parse_source("BEGIN {\n\n  x = 1\n}")
    assert program.rules[0].action.statements[0].line == 3
