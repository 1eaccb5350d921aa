import logging

from ast_nodes import (
    Program, StatementList, Declare, Assign, For, If, Print, Read, Assert,
    Literal, Var, Group, Single, Unary, Binary,
)
from errors import (
    ILLEGAL_TOKEN,
    MISSING_SEMICOLON,
    NESTING_TOO_DEEP,
    UNEXPECTED_TOKEN,
    ErrorList,
    MiniPLSyntaxError,
)
from lexer import (
    AND, ASSERT, ASSIGN, BOOL, COLON, DIV, DO, ELSE, END, EOF, EQ, FOR, GT, IDENT, IF, IN, INT,
    INT_LITERAL, LPAREN, LT, MINUS, MUL, NOT, PLUS, PRINT, RANGE, READ, RPAREN, SEMICOLON,
    STRING, STRING_LITERAL, VAR,
)
from symbols import BOOL_TYPE, INT_TYPE, STRING_TYPE

logger = logging.getLogger(__name__)

BINARY_OPERATORS = (PLUS, MINUS, MUL, DIV, EQ, LT, GT, AND)

TYPE_KEYWORDS = {
    INT: INT_TYPE,
    STRING: STRING_TYPE,
    BOOL: BOOL_TYPE,
}


class StatementAborted(Exception):
    """Raised after a syntax error was recorded and the parser skipped past the next ';'."""


class Parser:
    def __init__(self, lexer):
        self.lexer = lexer
        self.current_token = None
        self.previous_token = None
        self.errors = []
        self._next_id = 0

    # move to next token
    def advance(self):
        self.previous_token = self.current_token
        self.current_token = self.lexer.next_token()
        return self.previous_token

    # consume a token, but only if it matches what we expect
    def eat(self, *token_types):
        tok = self.current_token
        if tok.type in token_types:
            return self.advance()
        expected = " or ".join(token_types)
        self.fail(f"{UNEXPECTED_TOKEN} {tok.type} (expected {expected})", tok)

    def fail(self, message, tok=None):
        tok = tok or self.current_token
        self.errors.append(MiniPLSyntaxError(message, tok.position))
        logger.debug("syntax error at %s: %s", tok.position, message)
        self.synchronize()
        raise StatementAborted()

    def synchronize(self):
        # statement-mode recovery: drop everything up to and including the next ';'
        while self.current_token.type != SEMICOLON:
            if self.current_token.type == EOF:
                self.errors.append(MiniPLSyntaxError(MISSING_SEMICOLON, self.current_token.position))
                raise ErrorList(self.errors)
            self.advance()
        self.advance()

    def new_id(self):
        self._next_id += 1
        return self._next_id

    def _start(self):
        if self.current_token is None:
            self.current_token = self.lexer.next_token()

    # ---------- TOP LEVEL ----------
    def parse(self):
        self._start()
        statements = self.statement_list()
        program = Program(statements if len(statements) else None)

        if self.errors:
            raise ErrorList(self.errors)
        logger.debug("parsed %d top-level statement(s)", len(statements))
        return program

    def parse_expression(self):
        # A lone expression, optionally terminated by ';'. Used by the REPL.
        self._start()
        try:
            expr = self.expression()
            if self.current_token.type == SEMICOLON:
                self.advance()
            if self.current_token.type != EOF:
                self.fail(f"{UNEXPECTED_TOKEN} {self.current_token.type} (expected EOF)")
        except StatementAborted:
            raise ErrorList(self.errors)
        except RecursionError:
            self.nesting_too_deep()
            raise ErrorList(self.errors)
        return expr

    def nesting_too_deep(self):
        # the stack has unwound back to the caller; the current token is where parsing stopped
        tok = self.current_token
        self.errors.append(MiniPLSyntaxError(NESTING_TOO_DEEP, tok.position))
        logger.debug("syntax error at %s: %s", tok.position, NESTING_TOO_DEEP)

    # ---------- STATEMENTS ----------
    def statement_list(self, inside=None):
        # inside: None at top level, else FOR, IF or ELSE for nested blocks
        stmts = StatementList()

        while True:
            tok = self.current_token
            if inside is None:
                if tok.type == EOF:
                    break
            else:
                if tok.type == END:
                    break
                if inside == IF and tok.type == ELSE:
                    break
                if tok.type == EOF:
                    self.errors.append(MiniPLSyntaxError(f"{UNEXPECTED_TOKEN} EOF (expected END)", tok.position))
                    raise ErrorList(self.errors)

            try:
                stmt = self.statement()
            except StatementAborted:
                continue
            except RecursionError:
                self.nesting_too_deep()
                self.synchronize()
                continue

            stmts.statements.append(stmt)
            logger.debug("parsed %s at %s", stmt.__class__.__name__, stmt.position)
            self.check_semicolon()

        return stmts

    def check_semicolon(self):
        if self.current_token.type == SEMICOLON:
            self.advance()
            return
        # recorded, but parsing goes on at the current token
        self.errors.append(MiniPLSyntaxError(MISSING_SEMICOLON, self.previous_token.position))

    def statement(self):
        tok = self.current_token

        if tok.type == VAR:
            return self.declaration()
        if tok.type == IDENT:
            return self.assignment()
        if tok.type == FOR:
            return self.for_statement()
        if tok.type == IF:
            return self.if_statement()
        if tok.type == PRINT:
            return self.print_statement()
        if tok.type == READ:
            return self.read_statement()
        if tok.type == ASSERT:
            return self.assert_statement()

        self.fail(f"{ILLEGAL_TOKEN} {tok.type}", tok)

    def declaration(self):
        self.eat(VAR)
        name_tok = self.eat(IDENT)
        self.eat(COLON)
        type_tok = self.eat(INT, STRING, BOOL)

        expr = None
        if self.current_token.type == ASSIGN:
            self.advance()
            expr = self.expression()

        return Declare(name_tok.value, TYPE_KEYWORDS[type_tok.type], expr, name_tok.position)

    def assignment(self):
        name_tok = self.eat(IDENT)
        self.eat(ASSIGN)
        expr = self.expression()
        return Assign(name_tok.value, expr, name_tok.position)

    def for_statement(self):
        # for <ident> in <expr> .. <expr> do <stmts> end for
        self.eat(FOR)
        var_tok = self.eat(IDENT)
        self.eat(IN)
        start = self.expression()
        self.eat(RANGE)
        end = self.expression()
        self.eat(DO)
        body = self.statement_list(inside=FOR)
        self.eat(END)
        self.eat(FOR)
        return For(var_tok.value, start, end, body, var_tok.position)

    def if_statement(self):
        # if <expr> do <stmts> [else <stmts>] end if
        tok = self.eat(IF)
        condition = self.expression()
        self.eat(DO)
        then_block = self.statement_list(inside=IF)

        else_block = None
        if self.current_token.type == ELSE:
            self.advance()
            else_block = self.statement_list(inside=ELSE)

        self.eat(END)
        self.eat(IF)
        return If(condition, then_block, else_block, tok.position)

    def print_statement(self):
        tok = self.eat(PRINT)
        return Print(self.expression(), tok.position)

    def read_statement(self):
        self.eat(READ)
        name_tok = self.eat(IDENT)
        return Read(name_tok.value, name_tok.position)

    def assert_statement(self):
        tok = self.eat(ASSERT)
        self.eat(LPAREN)
        condition = self.expression()
        self.eat(RPAREN)
        return Assert(condition, tok.position)

    # ---------- EXPRESSIONS ----------
    # expr -> NOT operand | operand (binop operand)?
    def expression(self):
        start = self.current_token

        if start.type == NOT:
            self.advance()
            operand = self.operand()
            if self.current_token.type in BINARY_OPERATORS:
                self.fail(f"{UNEXPECTED_TOKEN} {self.current_token.type}")
            return Unary("!", operand, start.position, self.new_id())

        left = self.operand()
        if self.current_token.type in BINARY_OPERATORS:
            op = self.advance()
            right = self.operand()
            return Binary(left, op, right, start.position, self.new_id())

        return Single(left, start.position, self.new_id())

    # operand -> INT_LITERAL | STRING_LITERAL | IDENT | ( expr )
    def operand(self):
        tok = self.current_token

        if tok.type in (INT_LITERAL, STRING_LITERAL):
            self.advance()
            return Literal(tok)

        if tok.type == IDENT:
            self.advance()
            return Var(tok)

        if tok.type == LPAREN:
            self.advance()
            expr = self.expression()
            self.eat(RPAREN)
            return Group(expr, tok.position)

        self.fail(f"{UNEXPECTED_TOKEN} {tok.type}", tok)
