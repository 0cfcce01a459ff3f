import io
import os
import traceback

from kaleido.emitters.source_emitter import SourceEmitter
from kaleido.kaleido_ast import Function, Prototype
from kaleido.kaleido_constants import ANON_EXPR_NAME, EOF
from kaleido.kaleido_lexer import CharacterStream, Lexer
from kaleido.kaleido_parser import Parser, precedence_from_spec

PREC_ENV_VAR = "KALEIDO_PREC"


def print_traceback() -> None:
    buf = io.StringIO()
    traceback.print_exc(file=buf)
    print("[error] >>>")
    print(buf.getvalue())


def describe(node: Function | Prototype) -> str:
    if isinstance(node, Prototype):
        return "Parsed an extern."
    if node.proto.name == ANON_EXPR_NAME:
        return "Parsed a top-level expr."
    return "Parsed a function definition."


def precedence_from_env() -> dict[str, int] | None:
    spec = os.getenv(PREC_ENV_VAR)
    if not spec:
        return None
    return precedence_from_spec([spec])


def handle_line(src: str, precedence: dict[str, int] | None, verbose: bool) -> None:
    """Parses one line of input and reports each top-level item.

    On a syntax error the rest of the line is discarded; items parsed before
    the error have already been reported.
    """
    emitter = SourceEmitter()
    try:
        parser = Parser(Lexer(CharacterStream(src)), precedence)
        while parser.current.type != EOF:
            if parser.current.is_char(";"):
                parser.advance()
                continue
            node = parser.parse_top_level()
            print(describe(node))
            if verbose:
                print(f"[ast] >>> {emitter.emit(node)}")
    except SyntaxError as e:
        print(f"[error] >>> {e}")


def start_repl(precedence: dict[str, int] | None = None, verbose: bool = False) -> None:
    if precedence is None:
        try:
            precedence = precedence_from_env()
        except ValueError as e:
            print(f"[error] >>> {PREC_ENV_VAR}: {e}")
            return
    print("Kaleido REPL. Type 'exit' or 'quit' to leave.")

    while True:
        try:
            src = input("ready> ").strip()
            if src in ("exit", "quit"):
                print("Exiting Kaleido REPL.")
                return
            if not src or src.startswith("#"):
                continue
            if src.lower() == "verbose-mode":
                verbose = not verbose
                print(f"[mode] >>> Verbose mode {'ON' if verbose else 'OFF'}")
                continue
            try:
                handle_line(src, precedence, verbose)
            except Exception:
                print_traceback()
        except (KeyboardInterrupt, EOFError):
            print("\nExiting Kaleido REPL.")
            break


def main() -> None:
    start_repl()


if __name__ == "__main__":
    main()
