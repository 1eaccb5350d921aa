from typing import TypeAlias

from lexer import Position, Token


class ASTNode:
    # Source position (1-based) of the token that starts the node.
    position: Position | None = None


class Program(ASTNode):
    def __init__(self, statements=None):
        self.statements = statements  # StatementList | None


class StatementList(ASTNode):
    def __init__(self, statements=None):
        self.statements = statements if statements is not None else []

    def __iter__(self):
        return iter(self.statements)

    def __len__(self):
        return len(self.statements)


# ---------- STATEMENTS ----------
class Declare(ASTNode):
    def __init__(self, name, var_type, expr, position):
        self.name = name
        self.var_type = var_type  # int, string, bool
        self.expr = expr          # Expression | None
        self.position = position  # of the identifier


class Assign(ASTNode):
    def __init__(self, name, expr, position):
        self.name = name
        self.expr = expr
        self.position = position


class For(ASTNode):
    def __init__(self, var_name, start, end, body, position):
        self.var_name = var_name
        self.start = start
        self.end = end
        self.body = body          # StatementList
        self.position = position  # of the loop variable


class If(ASTNode):
    def __init__(self, condition, then_block, else_block, position):
        self.condition = condition
        self.then_block = then_block
        self.else_block = else_block  # StatementList | None
        self.position = position


class Print(ASTNode):
    def __init__(self, expr, position):
        self.expr = expr
        self.position = position


class Read(ASTNode):
    def __init__(self, name, position):
        self.name = name
        self.position = position


class Assert(ASTNode):
    def __init__(self, condition, position):
        self.condition = condition
        self.position = position


# ---------- OPERANDS ----------
class Literal(ASTNode):
    def __init__(self, token: Token):
        self.token = token
        self.position = token.position


class Var(ASTNode):
    def __init__(self, token: Token):
        self.token = token
        self.position = token.position

    @property
    def name(self):
        return self.token.value


class Group(ASTNode):
    """A parenthesized expression used as an operand."""

    def __init__(self, expr, position):
        self.expr = expr
        self.position = position


# ---------- EXPRESSIONS ----------
class Expression(ASTNode):
    # node_id keys the analyzer's resolved-type table
    node_id: int = -1


class Single(Expression):
    def __init__(self, operand, position, node_id):
        self.operand = operand
        self.position = position
        self.node_id = node_id


class Unary(Expression):
    def __init__(self, op, operand, position, node_id):
        self.op = op  # "!"
        self.operand = operand
        self.position = position
        self.node_id = node_id


class Binary(Expression):
    def __init__(self, left, op: Token, right, position, node_id):
        self.left = left
        self.op = op
        self.right = right
        self.position = position
        self.node_id = node_id


Statement: TypeAlias = Declare | Assign | For | If | Print | Read | Assert
ExpressionNode: TypeAlias = Single | Unary | Binary
Operand: TypeAlias = Literal | Var | Group
