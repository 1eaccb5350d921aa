import logging
import os
from typing import Iterator, NamedTuple

from errors import (
    ILLEGAL_CHAR_SEQUENCE,
    INVALID_CHAR,
    RANGE_EXPECTED,
    SOURCE_EMPTY,
    UNENCLOSED_COMMENT,
    UNRECOGNIZED_ESCAPE,
    UNTERMINATED_STRING,
    LexicalError,
    SourceNotFoundError,
    SourceReadError,
)

logger = logging.getLogger(__name__)


# single-char tokens
LPAREN = "LPAREN"
RPAREN = "RPAREN"
SEMICOLON = "SEMICOLON"
COLON = "COLON"
PLUS = "PLUS"
MINUS = "MINUS"
DIV = "DIV"
MUL = "MUL"
EQ = "EQ"
LT = "LT"
GT = "GT"
AND = "AND"
NOT = "NOT"

# multi-char tokens
ASSIGN = "ASSIGN"
RANGE = "RANGE"

# literals
IDENT = "IDENT"
INT_LITERAL = "INT_LITERAL"
STRING_LITERAL = "STRING_LITERAL"

# keywords
FOR = "FOR"
IN = "IN"
IF = "IF"
ELSE = "ELSE"
DO = "DO"
END = "END"
VAR = "VAR"
PRINT = "PRINT"
READ = "READ"
INT = "INT"
STRING = "STRING"
BOOL = "BOOL"
ASSERT = "ASSERT"

EOF = "EOF"
ILLEGAL = "ILLEGAL"

KEYWORDS = {
    "for": FOR,
    "in": IN,
    "if": IF,
    "else": ELSE,
    "do": DO,
    "end": END,
    "var": VAR,
    "print": PRINT,
    "read": READ,
    "int": INT,
    "string": STRING,
    "bool": BOOL,
    "assert": ASSERT,
}

SINGLE_CHAR = {
    "+": PLUS,
    "-": MINUS,
    "*": MUL,
    "<": LT,
    ">": GT,
    "&": AND,
    "!": NOT,
    "=": EQ,
    ";": SEMICOLON,
    "(": LPAREN,
    ")": RPAREN,
}

DIGITS = "0123456789"

ESCAPES = {
    "n": "\n",
    "t": "\t",
    "'": "'",
    '"': '"',
    "r": "\r",
    "f": "\f",
    "v": "\v",
    "\\": "\\",
}


class Position(NamedTuple):
    line: int
    column: int

    def __str__(self):
        return f"{self.line}:{self.column}"


class Token(NamedTuple):
    type: str
    value: str
    line: int = 1
    column: int = 1

    @property
    def position(self) -> Position:
        return Position(self.line, self.column)

    def __repr__(self):
        if self.value:
            return f"{self.type}({self.value})"
        return f"{self.type}"


def read_source(path: str) -> str:
    if not os.path.isfile(path):
        raise SourceNotFoundError(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = f.read().splitlines()
    except UnicodeDecodeError as e:
        raise SourceReadError(path, f"not valid UTF-8 (byte {e.start})") from e
    except OSError as e:
        raise SourceReadError(path, e.strerror or str(e)) from e
    logger.debug("loaded %s (%d lines)", path, len(lines))
    return "\n".join(lines)


class Lexer:
    """Pull-based scanner: each call to next_token() produces one token.

    Errors are reported in panic mode: the first LexicalError is raised and
    the lexer cannot be used afterwards.
    """

    def __init__(self, text):
        self.text = text
        self.pos = 0
        self.current_char = text[0] if text else None
        self.line = 1
        self.column = 1
        self._current = None
        self._peeked = None
        self._checked_empty = False

    def advance(self):
        # track line/column based on current_char before moving
        if self.current_char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.pos += 1
        if self.pos >= len(self.text):
            self.current_char = None
        else:
            self.current_char = self.text[self.pos]

    def peek_char(self):
        nxt = self.pos + 1
        if nxt >= len(self.text):
            return None
        return self.text[nxt]

    # ---------- TOKEN STREAM ----------
    def next_token(self) -> Token:
        if self._peeked is not None:
            self._current, self._peeked = self._peeked, None
        else:
            self._current = self.get_next_token()
        logger.debug("token %-15s %-20r %s", self._current.type, self._current.value, self._current.position)
        return self._current

    def current(self) -> Token | None:
        return self._current

    def peek(self) -> Token:
        if self._peeked is None:
            self._peeked = self.get_next_token()
        return self._peeked

    def tokens(self) -> Iterator[Token]:
        while True:
            tok = self.next_token()
            yield tok
            if tok.type == EOF:
                return

    # ---------- SCANNING ----------
    def illegal(self, lexeme, message, line, column):
        self._current = Token(ILLEGAL, lexeme, line, column)
        raise LexicalError(message, Position(line, column))

    def skip_whitespace(self):
        while self.current_char and self.current_char in " \t\n":
            self.advance()

    def skip_line_comment(self):
        while self.current_char and self.current_char != "\n":
            self.advance()

    def skip_block_comment(self, start_line, start_col):
        # current_char is the '*' after the opening '/'
        self.advance()
        while self.current_char is not None:
            if self.current_char == "*" and self.peek_char() == "/":
                self.advance()
                self.advance()
                return
            self.advance()
        self.illegal("/*", UNENCLOSED_COMMENT, start_line, start_col)

    def read_identifier(self):
        start_line, start_col = self.line, self.column
        result = ""
        while self.current_char and (self.current_char.isalnum() or self.current_char == "_"):
            result += self.current_char
            self.advance()
        return Token(KEYWORDS.get(result, IDENT), result, start_line, start_col)

    def read_number(self):
        start_line, start_col = self.line, self.column
        result = ""
        while self.current_char and self.current_char in DIGITS:
            result += self.current_char
            self.advance()

        if self.current_char and (self.current_char.isalpha() or self.current_char == "_"):
            self.illegal(result + self.current_char, ILLEGAL_CHAR_SEQUENCE, start_line, start_col)

        return Token(INT_LITERAL, result, start_line, start_col)

    def read_string(self):
        # The token keeps its surrounding quotes; the interpreter strips them.
        start_line, start_col = self.line, self.column
        self.advance()  # skip opening quote
        result = '"'

        while self.current_char != '"':
            if self.current_char is None or self.current_char == "\n":
                self.illegal(result, UNTERMINATED_STRING, start_line, start_col)

            if self.current_char == "\\":
                esc_line, esc_col = self.line, self.column
                self.advance()  # consume backslash
                esc = self.current_char
                if esc not in ESCAPES:
                    self.illegal(result + "\\" + (esc or ""), UNRECOGNIZED_ESCAPE, esc_line, esc_col)
                result += ESCAPES[esc]
                self.advance()
                continue

            result += self.current_char
            self.advance()

        self.advance()  # skip closing quote
        return Token(STRING_LITERAL, result + '"', start_line, start_col)

    def get_next_token(self) -> Token:
        if not self._checked_empty:
            self._checked_empty = True
            if self.text == "":
                self.illegal("", SOURCE_EMPTY, 1, 1)

        while self.current_char:

            # blanks, tabs and line breaks
            if self.current_char in " \t\n":
                self.skip_whitespace()
                continue

            start_line, start_col = self.line, self.column

            # division or comments
            if self.current_char == "/":
                nxt = self.peek_char()
                if nxt == "/":
                    self.skip_line_comment()
                    continue
                if nxt == "*":
                    self.advance()
                    self.skip_block_comment(start_line, start_col)
                    continue
                self.advance()
                return Token(DIV, "/", start_line, start_col)

            if self.current_char in SINGLE_CHAR:
                ch = self.current_char
                self.advance()
                return Token(SINGLE_CHAR[ch], ch, start_line, start_col)

            # := or :
            if self.current_char == ":":
                self.advance()
                if self.current_char == "=":
                    self.advance()
                    return Token(ASSIGN, ":=", start_line, start_col)
                return Token(COLON, ":", start_line, start_col)

            # ..
            if self.current_char == ".":
                self.advance()
                if self.current_char != ".":
                    self.illegal("." + (self.current_char or ""), RANGE_EXPECTED, start_line, start_col)
                self.advance()
                return Token(RANGE, "..", start_line, start_col)

            if self.current_char in DIGITS:
                return self.read_number()

            if self.current_char.isalpha() or self.current_char == "_":
                return self.read_identifier()

            if self.current_char == '"':
                return self.read_string()

            self.illegal(self.current_char, INVALID_CHAR, start_line, start_col)

        return Token(EOF, "", self.line, self.column)
