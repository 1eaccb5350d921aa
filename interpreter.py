import logging
import re
import sys
from typing import Callable, assert_never

from ast_nodes import (
    Program, StatementList, Declare, Assign, For, If, Print, Read, Assert,
    Literal, Var, Group, Single, Unary, Binary,
    ExpressionNode, Operand, Statement,
)
from errors import (
    ASSERTION_FAILED,
    CAST_TO_INT,
    DIVISION_BY_ZERO,
    UNINITIALIZED_VARIABLE,
    MiniPLRuntimeError,
)
from lexer import AND, DIV, EQ, GT, INT_LITERAL, LT, MINUS, MUL, PLUS
from symbols import INT_TYPE, STRING_TYPE, SymbolTable

logger = logging.getLogger(__name__)

INT_INPUT = re.compile(r"\s*[+-]?[0-9]+\s*")


def stdin_read_line() -> str | None:
    line = sys.stdin.readline()
    if line == "":
        return None
    return line.rstrip("\r\n")


def stdout_write(text: str):
    sys.stdout.write(text)
    sys.stdout.flush()


def to_text(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def int_divide(left: int, right: int) -> int:
    # truncates toward zero
    quotient = abs(left) // abs(right)
    return quotient if (left < 0) == (right < 0) else -quotient


class Interpreter:
    """Executes an analyzed program statement by statement.

    The first runtime error aborts execution; nothing after a failed statement runs.
    """

    def __init__(
        self,
        symbols: SymbolTable,
        types: dict[int, str | None],
        read_line: Callable[[], str | None] | None = None,
        write: Callable[[str], None] | None = None,
    ):
        self.symbols = symbols
        self.types = types
        self.read_line = read_line or stdin_read_line
        self.write = write or stdout_write

    def interpret(self, program: Program):
        if program.statements is not None:
            self.execute_block(program.statements)

    def execute_block(self, stmts: StatementList):
        for stmt in stmts:
            self.execute(stmt)

    # ---------- STATEMENTS ----------
    def execute(self, node: Statement):
        logger.debug("executing %s at %s", node.__class__.__name__, node.position)

        if isinstance(node, Declare):
            value = None
            if node.expr is not None:
                value = self.evaluate(node.expr)
            self.symbols.declare(node.name, node.var_type, value)
            return

        if isinstance(node, Assign):
            self.symbols.assign(node.name, self.evaluate(node.expr))
            return

        if isinstance(node, For):
            start = self.evaluate(node.start)
            end = self.evaluate(node.end)
            # the loop owns its counter; assignments to the index in the body are overwritten
            for i in range(start, end + 1):
                self.symbols.assign(node.var_name, i)
                self.execute_block(node.body)
            return

        if isinstance(node, If):
            if self.evaluate(node.condition):
                self.execute_block(node.then_block)
            elif node.else_block is not None:
                self.execute_block(node.else_block)
            return

        if isinstance(node, Print):
            self.write(to_text(self.evaluate(node.expr)))
            return

        if isinstance(node, Read):
            self.read_into(node)
            return

        if isinstance(node, Assert):
            if not self.evaluate(node.condition):
                raise MiniPLRuntimeError(ASSERTION_FAILED, node.condition.position)
            return

        assert_never(node)

    def read_into(self, node: Read):
        line = self.read_line()
        var_type = self.symbols.type_of(node.name)

        if var_type == INT_TYPE:
            if line is None or not INT_INPUT.fullmatch(line):
                raise MiniPLRuntimeError(CAST_TO_INT, node.position)
            self.symbols.assign(node.name, int(line))
        else:
            # only int targets are parsed; anything else keeps the raw text
            self.symbols.assign(node.name, line if line is not None else "")

    # ---------- EXPRESSIONS ----------
    def evaluate(self, node: ExpressionNode):
        if isinstance(node, Single):
            return self.operand_value(node.operand)

        if isinstance(node, Unary):
            return not self.operand_value(node.operand)

        if isinstance(node, Binary):
            # both sides are evaluated first; & does not short-circuit
            left = self.operand_value(node.left)
            right = self.operand_value(node.right)
            return self.apply(node, left, right)

        assert_never(node)

    def apply(self, node: Binary, left, right):
        op = node.op.type

        if op == PLUS:
            if self.types.get(node.node_id) == STRING_TYPE:
                return f"{left}{right}"
            return left + right
        if op == MINUS:
            return left - right
        if op == MUL:
            return left * right
        if op == DIV:
            if right == 0:
                raise MiniPLRuntimeError(DIVISION_BY_ZERO, node.op.position)
            return int_divide(left, right)
        if op == EQ:
            return left == right
        if op == LT:
            return left < right
        if op == GT:
            return left > right
        if op == AND:
            return left and right

        raise ValueError(f"unknown operator: {op}")

    def operand_value(self, node: Operand):
        if isinstance(node, Literal):
            if node.token.type == INT_LITERAL:
                return int(node.token.value)
            # strip the quotes the lexer kept
            return node.token.value[1:-1]

        if isinstance(node, Var):
            value = self.symbols.value_of(node.name)
            if value is None:
                raise MiniPLRuntimeError(f"{UNINITIALIZED_VARIABLE} {node.name}", node.position)
            return value

        if isinstance(node, Group):
            return self.evaluate(node.expr)

        assert_never(node)
