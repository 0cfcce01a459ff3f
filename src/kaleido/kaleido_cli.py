"""
Kaleido CLI Entrypoint.

This module provides the command-line interface for the Kaleido front end.
It lexes and parses Kaleido source and prints what it understood.

Features:
    - Read source from `.kal` files or inline strings.
    - Print the token stream (`--tokens`), the AST as JSON (`--json`), or the
      parsed program re-emitted as fully parenthesized source (default).
    - Override or extend operator precedence with `-P OP=N`.
    - Output to console or file.
    - Launch an interactive REPL with optional verbosity.

Example usage:
    kaleido fib.kal
    kaleido -s "def f(x y) x + y * 2" --json
    kaleido -s "a + b * c" -P "+=50"
    kaleido --repl --verbose

Functions:
    run_kaleido(source: str, is_string: bool = False, mode: str = "source",
                precedence: dict[str, int] | None = None, out: str | None = None) -> str:
        Runs the pipeline (lex → parse → render) and prints or writes the result.

    main(argv: list[str] | None = None) -> None:
        Parses CLI arguments and invokes the appropriate action.
"""

import argparse
import json
import sys

from kaleido.emitters.source_emitter import emit_source
from kaleido.kaleido_lexer import CharacterStream, Lexer
from kaleido.kaleido_parser import Parser, precedence_from_spec

SOURCE_SUFFIX = ".kal"


def render(
    source: str, mode: str = "source", precedence: dict[str, int] | None = None
) -> str:
    """
    Lex and parse `source`, then render the result according to `mode`.

    Args:
        source (str): Kaleido source text.
        mode (str): 'tokens', 'json' or 'source'.
        precedence (dict[str, int] | None): Precedence table, or None for the default.

    Returns:
        str: The rendered output.

    Raises:
        SyntaxError: If the source does not lex or parse.
        ValueError: If `mode` is unknown, or the tree is too deep to render.
    """
    lexer = Lexer(CharacterStream(source))

    if mode == "tokens":
        return "\n".join(
            f"{tok.line}:{tok.col}\t{tok.type}\t{tok.value}" for tok in lexer.tokens()
        )

    ast = Parser(lexer, precedence).parse()

    if mode not in ("json", "source"):
        raise ValueError(f"Unknown output mode: {mode}")
    try:
        if mode == "json":
            return json.dumps([node.to_dict() for node in ast], indent=2)
        return emit_source(ast)
    except RecursionError:
        raise ValueError("program nested too deeply to render") from None


def run_kaleido(
    source: str,
    is_string: bool = False,
    mode: str = "source",
    precedence: dict[str, int] | None = None,
    out: str | None = None,
) -> str:
    """
    Run the Kaleido front end and print or write the result.

    Args:
        source (str): Kaleido source code or path to a `.kal` file.
        is_string (bool): If True, treats `source` as raw code instead of a file path.
        mode (str): 'tokens', 'json' or 'source'. Defaults to 'source'.
        precedence (dict[str, int] | None): Precedence table override.
        out (str | None): Optional path to write the output to instead of stdout.

    Returns:
        str: The rendered output.

    Raises:
        ValueError: If `is_string` is False and the source does not end with '.kal'.
        SyntaxError: If the source does not lex or parse.
    """
    if not is_string and not source.endswith(SOURCE_SUFFIX):
        raise ValueError(f"Only {SOURCE_SUFFIX} files are supported.")
    if not is_string:
        with open(source, encoding="utf-8") as f:
            source = f.read()

    result = render(source, mode=mode, precedence=precedence)

    if out:
        with open(out, "w", encoding="utf-8") as f:
            f.write(result + "\n")
    else:
        print(result)
    return result


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kaleido")
    parser.add_argument("source", nargs="?", help="Filename or raw source (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal string"
    )
    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        "--json",
        dest="mode",
        action="store_const",
        const="json",
        help="Print the AST as JSON",
    )
    output.add_argument(
        "--tokens",
        dest="mode",
        action="store_const",
        const="tokens",
        help="Print the token stream instead of parsing",
    )
    parser.set_defaults(mode="source")
    parser.add_argument(
        "-P",
        "--prec",
        metavar="OP=N",
        action="append",
        default=[],
        help="Set the precedence of a binary operator (repeatable)",
    )
    parser.add_argument("-o", "--out", metavar="OUTFILE", help="Output to file")
    parser.add_argument(
        "--repl",
        action="store_true",
        help="Launch interactive REPL",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Verbose REPL mode (if --repl)"
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """
    Entry point for the Kaleido CLI.

    - Launches the REPL if no arguments are passed or `--repl` is specified.
    - Otherwise lexes and parses the source and prints the result.

    Syntax errors are reported on stderr as `[error] >>> message` with exit status 1.
    """
    args_list = sys.argv[1:] if argv is None else argv
    if not args_list:
        from kaleido.kaleido_repl import start_repl

        start_repl()
        return

    parser = build_arg_parser()
    args = parser.parse_args(args_list)

    precedence = None
    if args.prec:
        try:
            precedence = precedence_from_spec(args.prec)
        except ValueError as e:
            parser.error(str(e))

    if args.repl or args.source is None:
        from kaleido.kaleido_repl import start_repl

        start_repl(precedence=precedence, verbose=args.verbose)
        return

    try:
        run_kaleido(
            source=args.source,
            is_string=args.string,
            mode=args.mode,
            precedence=precedence,
            out=args.out,
        )
    except (SyntaxError, ValueError) as e:
        print(f"[error] >>> {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
