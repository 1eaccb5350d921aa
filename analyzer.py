import logging
from typing import assert_never

from ast_nodes import (
    Program, StatementList, Declare, Assign, For, If, Print, Read, Assert,
    Literal, Var, Group, Single, Unary, Binary,
    ExpressionNode, Operand, Statement,
)
from errors import (
    ALREADY_DECLARED,
    NOT_DECLARED,
    TYPE_MISMATCH,
    ErrorList,
    SemanticError,
)
from lexer import AND, DIV, EQ, GT, INT_LITERAL, LT, MINUS, MUL, PLUS, STRING_LITERAL
from symbols import BOOL_TYPE, INT_TYPE, STRING_TYPE, SymbolTable

logger = logging.getLogger(__name__)

# operand types each binary operator accepts
ALLOWED_TYPES = {
    PLUS: (INT_TYPE, STRING_TYPE),
    MINUS: (INT_TYPE,),
    MUL: (INT_TYPE,),
    DIV: (INT_TYPE,),
    EQ: (INT_TYPE, STRING_TYPE, BOOL_TYPE),
    LT: (INT_TYPE,),
    GT: (INT_TYPE,),
    AND: (BOOL_TYPE,),
}

COMPARISONS = (EQ, LT, GT)


class Analyzer:
    """Declaration and type checking over a parsed program.

    Every statement is checked even after an earlier one failed; all
    diagnostics are raised together as an ErrorList at the end. On success
    analyze() returns the resolved-type table {expression.node_id: type}
    that the interpreter evaluates with.
    """

    def __init__(self, symbols: SymbolTable):
        self.symbols = symbols
        self.errors: list[SemanticError] = []
        self.types: dict[int, str | None] = {}

    def analyze(self, program: Program) -> dict[int, str | None]:
        if program.statements is not None:
            self.visit_statements(program.statements)

        logger.debug("analysis finished with %d error(s)", len(self.errors))
        if self.errors:
            raise ErrorList(self.errors)
        return self.types

    def analyze_expression(self, expr: ExpressionNode) -> dict[int, str | None]:
        self.visit_expression(expr)
        if self.errors:
            raise ErrorList(self.errors)
        return self.types

    def error(self, message, position):
        self.errors.append(SemanticError(message, position))

    # ---------- HELPERS ----------
    def check_declared(self, name, position) -> bool:
        if name not in self.symbols:
            self.error(f"{NOT_DECLARED}: {name}", position)
            return False
        return True

    def match_types(self, actual, expected, position):
        # unknown types come from an error that is already reported
        if actual is None or expected is None:
            return
        if actual != expected:
            self.error(f"{TYPE_MISMATCH} (expected {expected}, got {actual})", position)

    # ---------- STATEMENTS ----------
    def visit_statements(self, stmts: StatementList):
        for stmt in stmts:
            self.visit_statement(stmt)

    def visit_statement(self, node: Statement):
        if isinstance(node, Declare):
            if node.name in self.symbols:
                self.error(f"{ALREADY_DECLARED}: {node.name}", node.position)
            else:
                # registered before the initializer, so `var x : int := x;` passes here
                self.symbols.declare(node.name, node.var_type)
            if node.expr is not None:
                expr_type = self.visit_expression(node.expr)
                self.match_types(expr_type, node.var_type, node.expr.position)
            return

        if isinstance(node, Assign):
            declared = self.check_declared(node.name, node.position)
            expr_type = self.visit_expression(node.expr)
            if declared:
                self.match_types(expr_type, self.symbols.type_of(node.name), node.expr.position)
            return

        if isinstance(node, For):
            if self.check_declared(node.var_name, node.position):
                self.match_types(self.symbols.type_of(node.var_name), INT_TYPE, node.position)
            start_type = self.visit_expression(node.start)
            end_type = self.visit_expression(node.end)
            self.match_types(start_type, INT_TYPE, node.start.position)
            self.match_types(end_type, INT_TYPE, node.end.position)
            self.visit_statements(node.body)
            return

        if isinstance(node, If):
            cond_type = self.visit_expression(node.condition)
            self.match_types(cond_type, BOOL_TYPE, node.condition.position)
            self.visit_statements(node.then_block)
            if node.else_block is not None:
                self.visit_statements(node.else_block)
            return

        if isinstance(node, Print):
            self.visit_expression(node.expr)
            return

        if isinstance(node, Read):
            self.check_declared(node.name, node.position)
            return

        if isinstance(node, Assert):
            cond_type = self.visit_expression(node.condition)
            self.match_types(cond_type, BOOL_TYPE, node.condition.position)
            return

        assert_never(node)

    # ---------- EXPRESSIONS ----------
    def visit_expression(self, node: ExpressionNode) -> str | None:
        if isinstance(node, Single):
            result = self.visit_operand(node.operand)

        elif isinstance(node, Unary):
            operand_type = self.visit_operand(node.operand)
            self.match_types(operand_type, BOOL_TYPE, node.operand.position)
            result = BOOL_TYPE

        elif isinstance(node, Binary):
            left = self.visit_operand(node.left)
            right = self.visit_operand(node.right)
            op = node.op.type
            if left is not None and right is not None:
                if left != right:
                    self.match_types(right, left, node.right.position)
                elif left not in ALLOWED_TYPES[op]:
                    self.error(
                        f"{TYPE_MISMATCH} (operator '{node.op.value}' does not accept {left})",
                        node.op.position,
                    )
            if op in COMPARISONS:
                result = BOOL_TYPE
            else:
                result = left if left is not None else right

        else:
            assert_never(node)

        self.types[node.node_id] = result
        return result

    def visit_operand(self, node: Operand) -> str | None:
        if isinstance(node, Literal):
            if node.token.type == INT_LITERAL:
                return INT_TYPE
            if node.token.type == STRING_LITERAL:
                return STRING_TYPE
            raise ValueError(f"not a literal token: {node.token.type}")

        if isinstance(node, Var):
            if not self.check_declared(node.name, node.position):
                return None
            return self.symbols.type_of(node.name)

        if isinstance(node, Group):
            return self.visit_expression(node.expr)

        assert_never(node)
