import os

import pytest

from cli import run_source
from errors import (
    ASSERTION_FAILED,
    CAST_TO_INT,
    DIVISION_BY_ZERO,
    ErrorList,
    MiniPLRuntimeError,
)
from interpreter import int_divide, to_text
from lexer import Position, read_source
from symbols import SymbolTable

PROGRAMS = os.path.join(os.path.dirname(__file__), "programs")


def run(source, inputs=(), symbols=None):
    pending = list(inputs)
    out = []

    def read_line():
        return pending.pop(0) if pending else None

    symbols = run_source(source, symbols=symbols, read_line=read_line, write=out.append)
    return "".join(out), symbols


def run_error(source, inputs=()):
    out = []
    pending = list(inputs)
    with pytest.raises(MiniPLRuntimeError) as exc:
        run_source(
            source,
            read_line=lambda: pending.pop(0) if pending else None,
            write=out.append,
        )
    return exc.value, "".join(out)


def test_print_literals_and_arithmetic():
    out, _ = run('print 1 + (2 * 3);\nprint " ";\nprint "a" + "b";')
    assert out == "7 ab"


def test_integer_division_truncates():
    assert run("print 7 / 2;")[0] == "3"
    assert run("print (0 - 7) / 2;")[0] == "-3"
    assert int_divide(7, -2) == -3
    assert int_divide(-8, -2) == 4


def test_division_by_zero():
    error, out = run_error('print "a";\nprint 1 / 0;\nprint "b";')
    assert error.message == DIVISION_BY_ZERO
    assert "division by zero" in str(error)
    assert error.position == Position(2, 9)
    assert out == "a"


def test_comparisons_and_booleans():
    out, _ = run('print 1 < 2;\nprint 2 > 3;\nprint "a" = "a";\nprint !(1 = 1);')
    assert out == "truefalsetruefalse"
    assert to_text(True) == "true"


def test_and_evaluates_both_sides():
    error, _ = run_error("print (1 = 2) & ((1 / 0) = 1);")
    assert error.message == DIVISION_BY_ZERO


def test_variables_and_assignment():
    out, symbols = run("var x : int := 4;\nx := x * x;\nprint x;")
    assert out == "16"
    assert symbols.value_of("x") == 16


def test_for_loop_is_inclusive():
    out, symbols = run("var i : int;\nfor i in 1..4 do print i; end for;")
    assert out == "1234"
    assert symbols.value_of("i") == 4


def test_empty_range_runs_zero_times():
    out, symbols = run("var i : int := 9;\nfor i in 5..3 do print i; end for;")
    assert out == ""
    assert symbols.value_of("i") == 9


def test_loop_bounds_are_evaluated_once():
    out, _ = run("var n : int := 3;\nvar i : int;\nfor i in 1..n do n := n + 1; print i; end for;")
    assert out == "123"


def test_index_assignment_does_not_change_iterations():
    out, _ = run("var i : int;\nvar c : int := 0;\nfor i in 1..3 do i := 10; c := c + 1; end for;\nprint c;")
    assert out == "3"


def test_if_else():
    source = "var x : int := 2;\nif x = 2 do print \"yes\"; else print \"no\"; end if;\nif x < 1 do print \"!\"; end if;"
    assert run(source)[0] == "yes"


def test_uninitialized_variable():
    error, _ = run_error("var x : int;\nprint x;")
    assert str(error) == "RuntimeError: Usage of uninitialized variable x on line 2 column 7"


def test_read_int():
    out, symbols = run("var n : int;\nread n;\nprint n + 1;", inputs=[" 42 "])
    assert out == "43"


@pytest.mark.parametrize("line", ["abc", "4.5", "", None])
def test_read_int_rejects_bad_input(line):
    error, _ = run_error("var n : int;\nread n;", inputs=[line] if line is not None else [])
    assert error.message == CAST_TO_INT
    assert "unable to cast input to int" in str(error)
    assert error.position == Position(2, 6)


def test_read_bool_keeps_raw_text():
    out, symbols = run("var b : bool;\nread b;\nprint b;", inputs=["yes"])
    assert out == "yes"
    assert symbols.value_of("b") == "yes"
    _, symbols = run("var b : bool;\nread b;")
    assert symbols.value_of("b") == ""


def test_read_string():
    out, _ = run('var s : string;\nread s;\nprint "<" + s;', inputs=["hello world"])
    assert out == "<hello world"
    out, _ = run('var s : string;\nread s;\nprint "<" + s;')
    assert out == "<"


def test_assert():
    assert run("assert (1 = 1);\nprint 1;")[0] == "1"
    error, out = run_error('print "x";\nassert (1 = 2);\nprint "y";')
    assert error.message == ASSERTION_FAILED
    assert error.position == Position(2, 9)
    assert out == "x"


def test_escapes_reach_output():
    assert run(r'print "a\tb\"c\n";')[0] == 'a\tb"c\n'


def test_symbol_table_must_be_cleared_between_programs():
    symbols = SymbolTable()
    run("var x : int := 1;", symbols=symbols)
    with pytest.raises(ErrorList):
        run("var x : int := 2;", symbols=symbols)

    symbols.clear()
    out, _ = run("var x : int := 2;\nprint x;", symbols=symbols)
    assert out == "2"


@pytest.mark.parametrize(
    "name, inputs, expected",
    [
        ("arithmetic.mpl", [], "16"),
        ("hello.mpl", ["1"], "How many times?0 : Hello, World!\n"),
        ("factorial.mpl", ["5"], "Give a number: The result is: 120"),
        ("fibonacci.mpl", ["15"], "610"),
        ("sum.mpl", ["20"], "The sum of 20 numbers is: 210"),
        ("parity.mpl", [], "odd even odd even odd even "),
    ],
)
def test_sample_programs(name, inputs, expected):
    source = read_source(os.path.join(PROGRAMS, name))
    assert run(source, inputs)[0] == expected
