import itertools

import pytest

from analyzer import Analyzer
from errors import ALREADY_DECLARED, NOT_DECLARED, TYPE_MISMATCH, ErrorList, SemanticError
from lexer import Lexer, Position
from parser import Parser
from symbols import BOOL_TYPE, INT_TYPE, STRING_TYPE, SymbolTable


def analyze(source, symbols=None):
    program = Parser(Lexer(source)).parse()
    types = Analyzer(symbols if symbols is not None else SymbolTable()).analyze(program)
    return program, types


def semantic_errors(source):
    with pytest.raises(ErrorList) as exc:
        analyze(source)
    for e in exc.value:
        assert isinstance(e, SemanticError)
    return exc.value.errors


def test_valid_program_passes():
    source = (
        "var n : int := 3;\n"
        "var s : string := \"a\" + \"b\";\n"
        "var ok : bool := n = 3;\n"
        "var i : int;\n"
        "for i in 1..n do\n"
        "  if !ok do print s; else print i * 2; end if;\n"
        "end for;\n"
        "read s;\n"
        "assert (ok & (n < 4));\n"
    )
    analyze(source)


@pytest.mark.parametrize(
    "first, second",
    list(itertools.product((INT_TYPE, STRING_TYPE, BOOL_TYPE), repeat=2)),
)
def test_redeclaration_is_one_error(first, second):
    errors = semantic_errors(f"var x : {first};\nvar x : {second};")
    assert len(errors) == 1
    assert errors[0].message == f"{ALREADY_DECLARED}: x"
    assert errors[0].position == Position(2, 5)


def test_redeclaration_keeps_first_type():
    symbols = SymbolTable()
    with pytest.raises(ErrorList) as exc:
        analyze('var x : int;\nvar x : string := "s";', symbols)
    assert len(exc.value) == 1
    assert symbols.type_of("x") == INT_TYPE


def test_initializer_type_mismatch():
    errors = semantic_errors('var x : int := "a";')
    assert len(errors) == 1
    assert errors[0].message == f"{TYPE_MISMATCH} (expected int, got string)"
    assert errors[0].position == Position(1, 16)


def test_declaration_may_reference_itself():
    analyze("var x : int := x;")


@pytest.mark.parametrize(
    "source",
    [
        pytest.param('print "a" - "b";', id="string_minus"),
        pytest.param('print "a" * "b";', id="string_times"),
        pytest.param('print "a" / "b";', id="string_divide"),
        pytest.param('print "a" < "b";', id="string_less"),
        pytest.param('print "a" > "b";', id="string_greater"),
        pytest.param('print 1 + "a";', id="mixed_plus"),
        pytest.param('print 1 = "a";', id="mixed_equals"),
        pytest.param("print !1;", id="not_int"),
        pytest.param("print 1 & 2;", id="and_int"),
        pytest.param("print (1 = 1) + (2 = 2);", id="bool_plus"),
        pytest.param("print (1 = 1) < (2 = 2);", id="bool_less"),
        pytest.param('var b : bool := 1 = 1;\nprint b & "x";', id="bool_and_string"),
    ],
)
def test_invalid_operator_use_is_one_error(source):
    errors = semantic_errors(source)
    assert len(errors) == 1
    assert errors[0].message.startswith(TYPE_MISMATCH)


def test_equality_accepts_every_type():
    analyze('var b : bool := (1 = 1) = ("a" = "b");')


def test_assignment_to_undeclared():
    errors = semantic_errors("x := 1;")
    assert len(errors) == 1
    assert str(errors[0]) == f"SemanticError: {NOT_DECLARED}: x on line 1 column 1"


def test_unknown_operands_do_not_cascade():
    errors = semantic_errors("print y + z;")
    assert [e.message for e in errors] == [f"{NOT_DECLARED}: y", f"{NOT_DECLARED}: z"]


def test_read_undeclared():
    errors = semantic_errors("read q;")
    assert errors[0].message == f"{NOT_DECLARED}: q"


def test_assignment_type_mismatch():
    errors = semantic_errors('var b : bool;\nb := "yes";')
    assert len(errors) == 1
    assert errors[0].position == Position(2, 6)


def test_for_requires_int_variable():
    errors = semantic_errors("var s : string;\nfor s in 1..2 do print s; end for;")
    assert len(errors) == 1
    assert errors[0].position == Position(2, 5)


def test_for_requires_undeclared_variable_error():
    errors = semantic_errors("for k in 1..2 do print 1; end for;")
    assert [e.message for e in errors] == [f"{NOT_DECLARED}: k"]


def test_for_requires_int_bounds():
    errors = semantic_errors('var i : int;\nfor i in "a"..(1 = 1) do print i; end for;')
    assert len(errors) == 2


def test_if_and_assert_require_bool():
    errors = semantic_errors("if 1 do print 1; end if;\nassert (2);")
    assert len(errors) == 2
    assert [e.position.line for e in errors] == [1, 2]


def test_errors_are_collected_across_statements():
    errors = semantic_errors('x := 1;\nprint "a" - 1;\nread y;\nvar z : int := "q";')
    assert [e.position.line for e in errors] == [1, 2, 3, 4]


def test_nested_blocks_are_checked():
    errors = semantic_errors("var i : int;\nfor i in 1..2 do\n  if i = 1 do\n    print nope;\n  end if;\nend for;")
    assert len(errors) == 1
    assert errors[0].position == Position(4, 11)


def test_every_expression_gets_a_type():
    program, types = analyze('var s : string := "a" + "b";\nprint (1 < 2);\nprint !(3 = 3);')
    decl, print_cmp, print_not = program.statements.statements
    assert types[decl.expr.node_id] == STRING_TYPE
    assert types[print_cmp.expr.node_id] == BOOL_TYPE
    assert types[print_cmp.expr.operand.expr.node_id] == BOOL_TYPE
    assert types[print_not.expr.node_id] == BOOL_TYPE
    assert types[print_not.expr.operand.expr.node_id] == BOOL_TYPE
    assert len(types) == 5


def test_declarations_land_in_the_symbol_table():
    symbols = SymbolTable()
    analyze("var a : int;\nvar b : bool;", symbols)
    assert symbols.type_of("a") == INT_TYPE
    assert symbols.type_of("b") == BOOL_TYPE
    assert symbols.value_of("a") is None
    assert "c" not in symbols
