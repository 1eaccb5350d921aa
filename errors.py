from __future__ import annotations

from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from lexer import Position


# Lexical errors
SOURCE_EMPTY = "Source file is empty"
INVALID_CHAR = "Invalid char error"
UNTERMINATED_STRING = "Unterminated string"
UNRECOGNIZED_ESCAPE = "Unrecognized escape sequence"
ILLEGAL_CHAR_SEQUENCE = "Illegal char sequence"
UNENCLOSED_COMMENT = "Unenclosed comment"
RANGE_EXPECTED = 'Expected "..", got "." instead'

# Syntax errors
UNEXPECTED_TOKEN = "Unexpected token"
MISSING_SEMICOLON = "Missing semicolon"
ILLEGAL_TOKEN = "Illegal token"
NESTING_TOO_DEEP = "Expression nested too deeply"

# Semantic errors
NOT_DECLARED = "Variable is not declared"
TYPE_MISMATCH = "Type mismatch"
ALREADY_DECLARED = "Variable is already declared"

# Runtime errors
CAST_TO_INT = "Input error: unable to cast input to int"
UNINITIALIZED_VARIABLE = "Usage of uninitialized variable"
DIVISION_BY_ZERO = "Integer division by zero"
ASSERTION_FAILED = "Assertion failed"


class MiniPLError(Exception):
    kind = "Error"

    def __init__(self, message: str, position: Position | None = None):
        self.message = message
        self.position = position
        super().__init__(self.format())

    def format(self) -> str:
        if self.position is None:
            return f"{self.kind}: {self.message}"
        return f"{self.kind}: {self.message} on line {self.position.line} column {self.position.column}"

    def __str__(self) -> str:
        return self.format()


class LexicalError(MiniPLError):
    kind = "LexicalError"


class MiniPLSyntaxError(MiniPLError):
    kind = "SyntaxError"


class SemanticError(MiniPLError):
    kind = "SemanticError"


class MiniPLRuntimeError(MiniPLError):
    kind = "RuntimeError"


class SourceNotFoundError(MiniPLError):
    kind = "FileNotFoundError"

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"File {path} does not exist")


class SourceReadError(MiniPLError):
    kind = "FileReadError"

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Unable to read file {path}: {reason}")


class ErrorList(MiniPLError):
    """All diagnostics collected by one phase (parser or analyzer)."""

    kind = "ErrorList"

    def __init__(self, errors: list[MiniPLError]):
        self.errors = list(errors)
        super().__init__(f"{len(self.errors)} error(s)")

    def format(self) -> str:
        return "\n".join(e.format() for e in self.errors)

    def __iter__(self) -> Iterator[MiniPLError]:
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)


def format_with_source(error: MiniPLError, source: str | None) -> str:
    # Echo the failing line (indentation stripped) with a caret under the column.
    header = error.format()
    pos = error.position
    if pos is None or not source:
        return header

    lines = source.split("\n")
    if pos.line < 1 or pos.line > len(lines):
        return header

    raw = lines[pos.line - 1]
    shown = raw.lstrip(" \t")
    stripped = len(raw) - len(shown)
    caret_col = max(pos.column - 1 - stripped, 0)
    # tabs are kept so the caret lines up with the echoed text
    padding = "".join(ch if ch == "\t" else " " for ch in shown[:caret_col])
    return f"{header}\n{shown}\n{padding}^"


def iter_diagnostics(error: MiniPLError) -> Iterator[MiniPLError]:
    if isinstance(error, ErrorList):
        yield from error.errors
    else:
        yield error
