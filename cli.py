import logging
import sys
import traceback

from colorama import Fore, Style, just_fix_windows_console

from analyzer import Analyzer
from ast_nodes import Program, StatementList, Print
from errors import ErrorList, LexicalError, MiniPLError, format_with_source, iter_diagnostics
from interpreter import Interpreter
from lexer import DO, END, Lexer, read_source
from parser import Parser
from symbols import SymbolTable

logger = logging.getLogger(__name__)

USAGE = """Usage:
  minipl tokens <file.mpl>
  minipl parse <file.mpl>
  minipl check <file.mpl>
  minipl run <file.mpl>
  minipl repl
  (optional) --debug to show Python traceback and debug logging
  (optional) --no-color to disable colored diagnostics"""


# Simple AST printer (so you can SEE what the parser built)
def ast_to_dict(node):
    if node is None:
        return None

    t = node.__class__.__name__
    d = {"type": t}

    if t == "Program":
        d["statements"] = ast_to_dict(node.statements)
    elif t == "StatementList":
        d["statements"] = [ast_to_dict(s) for s in node.statements]
    elif t == "Declare":
        d["name"] = node.name
        d["var_type"] = node.var_type
        d["value"] = ast_to_dict(node.expr)
    elif t == "Assign":
        d["name"] = node.name
        d["value"] = ast_to_dict(node.expr)
    elif t == "For":
        d["var_name"] = node.var_name
        d["start"] = ast_to_dict(node.start)
        d["end"] = ast_to_dict(node.end)
        d["body"] = ast_to_dict(node.body)
    elif t == "If":
        d["condition"] = ast_to_dict(node.condition)
        d["then_block"] = ast_to_dict(node.then_block)
        d["else_block"] = ast_to_dict(node.else_block)
    elif t == "Print":
        d["expr"] = ast_to_dict(node.expr)
    elif t == "Read":
        d["name"] = node.name
    elif t == "Assert":
        d["condition"] = ast_to_dict(node.condition)
    elif t == "Single":
        d["operand"] = ast_to_dict(node.operand)
    elif t == "Unary":
        d["op"] = node.op
        d["operand"] = ast_to_dict(node.operand)
    elif t == "Binary":
        d["op"] = node.op.value
        d["left"] = ast_to_dict(node.left)
        d["right"] = ast_to_dict(node.right)
    elif t == "Literal":
        d["value"] = node.token.value
    elif t == "Var":
        d["name"] = node.name
    elif t == "Group":
        d["expr"] = ast_to_dict(node.expr)
    else:
        d["raw"] = str(node)

    return d


def pretty(obj, indent=0):
    sp = "  " * indent
    if isinstance(obj, dict):
        lines = []
        for k, v in obj.items():
            if isinstance(v, (dict, list)):
                lines.append(f"{sp}{k}:")
                lines.append(pretty(v, indent + 1))
            else:
                lines.append(f"{sp}{k}: {v}")
        return "\n".join(lines)
    if isinstance(obj, list):
        lines = []
        for item in obj:
            lines.append(f"{sp}-")
            lines.append(pretty(item, indent + 1))
        return "\n".join(lines)
    return f"{sp}{obj}"


def report(error: MiniPLError, source: str | None, color: bool = False):
    for diag in iter_diagnostics(error):
        text = format_with_source(diag, source)
        if color:
            header, _, rest = text.partition("\n")
            text = f"{Fore.RED}{Style.BRIGHT}{header}{Style.RESET_ALL}"
            if rest:
                line, _, caret = rest.partition("\n")
                text += f"\n{line}\n{Fore.YELLOW}{caret}{Style.RESET_ALL}"
        print(text, file=sys.stderr)


def run_source(source: str, symbols: SymbolTable | None = None, read_line=None, write=None):
    """Lex, parse, analyze and execute one program.

    Raises the first failing phase's error: LexicalError, ErrorList (syntax or
    semantic batch) or MiniPLRuntimeError.
    """
    symbols = symbols if symbols is not None else SymbolTable()
    program = Parser(Lexer(source)).parse()
    types = Analyzer(symbols).analyze(program)
    Interpreter(symbols, types, read_line=read_line, write=write).interpret(program)
    return symbols


def _load(path, color):
    try:
        return read_source(path)
    except MiniPLError as e:
        report(e, None, color)
        sys.exit(1)


def cmd_tokens(path, color=False):
    source = _load(path, color)
    try:
        for tok in Lexer(source).tokens():
            print(f"{tok.type:<15} {tok.value!r:<30} {tok.position}")
    except LexicalError as e:
        report(e, source, color)
        sys.exit(1)


def cmd_parse(path, color=False):
    source = _load(path, color)
    try:
        program = Parser(Lexer(source)).parse()
    except MiniPLError as e:
        report(e, source, color)
        sys.exit(1)

    print(pretty(ast_to_dict(program)))


def cmd_check(path, color=False):
    source = _load(path, color)
    try:
        program = Parser(Lexer(source)).parse()
        Analyzer(SymbolTable()).analyze(program)
    except MiniPLError as e:
        report(e, source, color)
        sys.exit(1)

    print("OK")


def cmd_run(path, debug: bool = False, color=False):
    source = _load(path, color)
    try:
        run_source(source)
    except MiniPLError as e:
        sys.stdout.flush()
        report(e, source, color)
        sys.exit(1)
    except Exception as e:
        if debug:
            traceback.print_exc()
        else:
            print(f"Internal error: {e}", file=sys.stderr)
        sys.exit(1)


def _count_blocks_delta(line: str) -> int:
    # Minimal block balancer for REPL multiline input: `do` opens, `end` closes.
    delta = 0
    try:
        for tok in Lexer(line).tokens():
            if tok.type == DO:
                delta += 1
            elif tok.type == END:
                delta -= 1
    except LexicalError:
        # reported once the snippet is submitted
        return delta
    return delta


def compile_snippet(source: str, symbols: SymbolTable):
    # First, try parsing as a normal program (statements).
    try:
        program = Parser(Lexer(source)).parse()
        echo = False
    except ErrorList as parse_err:
        # If that fails, try parsing as a single expression and auto-print it.
        try:
            expr = Parser(Lexer(source)).parse_expression()
        except MiniPLError:
            raise parse_err
        program = Program(StatementList([Print(expr, expr.position)]))
        echo = True

    # analyze against a copy so declarations of a rejected snippet do not stick
    trial = symbols.copy()
    types = Analyzer(trial).analyze(program)
    return program, trial, types, echo


def cmd_repl(debug: bool = False, color=False):
    symbols = SymbolTable()
    print("Mini-PL REPL. Type :q to quit.")

    written = []

    def write(text):
        written.append(text)
        sys.stdout.write(text)
        sys.stdout.flush()

    buffer_lines = []
    depth = 0
    while True:
        prompt = "minipl> " if not buffer_lines else "...> "
        try:
            line = input(prompt)
        except (EOFError, KeyboardInterrupt):
            print()
            break

        stripped = line.strip()
        if not buffer_lines and stripped in (":q", ":quit", "quit", "exit"):
            break

        if not stripped and not buffer_lines:
            continue

        buffer_lines.append(line)
        depth += _count_blocks_delta(line)

        # Wait for block completion if `do ... end` isn't balanced yet.
        if depth > 0:
            continue

        source = "\n".join(buffer_lines)
        buffer_lines = []
        depth = 0
        written.clear()

        try:
            program, symbols, types, echo = compile_snippet(source, symbols)
            Interpreter(symbols, types, write=write).interpret(program)
            if echo or (written and not written[-1].endswith("\n")):
                print()
        except MiniPLError as e:
            if written:
                print()
            report(e, source, color)
        except Exception as e:
            if debug:
                traceback.print_exc()
            else:
                print(str(e), file=sys.stderr)


def main():
    argv = sys.argv[1:]

    debug = False
    if "--debug" in argv:
        debug = True
        argv.remove("--debug")

    color = sys.stderr.isatty()
    if "--no-color" in argv:
        color = False
        argv.remove("--no-color")

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    if color:
        just_fix_windows_console()

    if not argv:
        print(USAGE)
        sys.exit(1)

    cmd = argv[0]

    if cmd == "repl":
        if len(argv) != 1:
            print(USAGE)
            sys.exit(1)
        cmd_repl(debug=debug, color=color)
        return

    if len(argv) != 2:
        print(USAGE)
        sys.exit(1)

    path = argv[1]
    logger.debug("command %s on %s", cmd, path)

    if cmd == "tokens":
        cmd_tokens(path, color=color)
    elif cmd == "parse":
        cmd_parse(path, color=color)
    elif cmd == "check":
        cmd_check(path, color=color)
    elif cmd == "run":
        cmd_run(path, debug=debug, color=color)
    else:
        print(f"Unknown command: {cmd}")
        sys.exit(1)


if __name__ == "__main__":
    main()
