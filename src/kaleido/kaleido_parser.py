"""
Kaleido Language Parser

Parses Kaleido tokens into abstract syntax trees (ASTs).

The parser pulls tokens from a `Lexer` on demand and holds exactly one token
of lookahead (`Parser.current`). Primary expressions are parsed by recursive
descent; chains of binary operators are folded by precedence climbing, driven
by a precedence table handed to the constructor.

Grammar
-------
    program     ::= ( ';' | definition | external | expression )*
    definition  ::= 'def' prototype expression
    external    ::= 'extern' prototype
    prototype   ::= IDENT '(' IDENT* ')'
    expression  ::= primary ( BINOP primary )*
    primary     ::= NUMBER
                  | IDENT
                  | IDENT '(' ( expression ( ',' expression )* )? ')'
                  | '(' expression ')'

Entry Points
------------
- `parse()`: Parse a full program into a list of top-level AST nodes.
- `parse_expression()`: Parse one expression.
- `parse_extern()`: Parse one `extern` declaration.
- `parse_definition()`: Parse one `def` function definition.
- `parse_top_level_expr()`: Parse one expression wrapped in an anonymous function.

Raises
------
ParseError
    Raised as soon as the current token does not fit the grammar. The error
    unwinds every enclosing parse call, so no node is ever built on top of a
    missing child.
    Input nested deeper than the interpreter stack allows is reported the
    same way, with the message "expression nested too deeply".
LexerError
    Raised by the underlying lexer for malformed numeric literals.
"""

from __future__ import annotations

from typing import TextIO

from kaleido.kaleido_ast import (
    ASTNode,
    BinaryExpr,
    CallExpr,
    Expr,
    Function,
    NumberExpr,
    Prototype,
    VariableExpr,
)
from kaleido.kaleido_constants import (
    ANON_EXPR_NAME,
    DEF,
    DEFAULT_PRECEDENCE,
    EOF,
    EXTERN,
    IDENT,
    NUMBER,
)
from kaleido.kaleido_lexer import CharacterStream, Lexer, Token

NESTED_TOO_DEEPLY = "expression nested too deeply"


class ParseError(SyntaxError):
    """Raised when the current token does not match the grammar.

    Attributes:
        token (Token | None): The offending token.
        line (int): Line of the offending token.
        col (int): Column of the offending token.
    """

    def __init__(self, message: str, token: Token | None = None) -> None:
        self.token = token
        self.line = token.line if token is not None else 0
        self.col = token.col if token is not None else 0
        if token is not None:
            message = f"{message} at line {self.line}, col {self.col} (got {token})"
        super().__init__(message)


def validate_precedence(precedence: dict[str, int]) -> dict[str, int]:
    """Checks a precedence table and returns a private copy of it.

    Raises:
        ValueError: If a key is not a single character or a value is not a
            positive integer.
    """
    table: dict[str, int] = {}
    for op, strength in precedence.items():
        if not isinstance(op, str) or len(op) != 1:
            raise ValueError(f"Operator must be a single character, got {op!r}")
        if op.isalnum() or op.isspace() or op in "(),;#.":
            raise ValueError(f"{op!r} cannot be used as a binary operator")
        if isinstance(strength, bool) or not isinstance(strength, int) or strength <= 0:
            raise ValueError(
                f"Precedence of {op!r} must be a positive integer, got {strength!r}"
            )
        table[op] = strength
    return table


def precedence_from_spec(
    specs: list[str], base: dict[str, int] | None = None
) -> dict[str, int]:
    """Builds a precedence table from `OP=N` entries layered over `base`.

    Each spec may hold several comma-separated entries, e.g. `"+=20,*=40"`.
    `base` defaults to DEFAULT_PRECEDENCE.

    Raises:
        ValueError: If an entry is malformed or the resulting table is invalid.
    """
    table = dict(DEFAULT_PRECEDENCE if base is None else base)
    for spec in specs:
        for entry in spec.split(","):
            entry = entry.strip()
            if not entry:
                continue
            op, sep, strength = entry.rpartition("=")
            if not sep or not op:
                raise ValueError(f"Invalid precedence entry {entry!r}, expected OP=N")
            try:
                table[op] = int(strength)
            except ValueError:
                raise ValueError(
                    f"Invalid precedence entry {entry!r}, {strength!r} is not an integer"
                ) from None
    return validate_precedence(table)


class Parser:
    """
    Kaleido Parser Class

    Attributes
    ----------
    lexer : Lexer
        The token source. The parser is its only consumer.
    precedence : dict[str, int]
        Binding strength of each binary operator; higher binds tighter.
        Operators not in the table are not binary operators.
    current : Token
        The one token of lookahead.

    A parser instance is single-use and not re-entrant: build a new
    Lexer/Parser pair per input.
    """

    def __init__(
        self,
        lexer: Lexer | CharacterStream | str | TextIO,
        precedence: dict[str, int] | None = None,
    ) -> None:
        self.lexer: Lexer = lexer if isinstance(lexer, Lexer) else Lexer(lexer)
        self.precedence: dict[str, int] = validate_precedence(
            DEFAULT_PRECEDENCE if precedence is None else precedence
        )
        self.current: Token = self.lexer.next_token()

    def advance(self) -> Token:
        """Pulls the next token from the lexer and makes it current."""
        self.current = self.lexer.next_token()
        return self.current

    def expect(self, char: str, message: str) -> Token:
        """Consumes the single-character token `char` or raises ParseError."""
        tok = self.current
        if not tok.is_char(char):
            raise ParseError(message, tok)
        self.advance()
        return tok

    def get_token_precedence(self) -> int:
        """Returns the binding strength of the current token, or -1."""
        tok = self.current
        if len(tok.type) != 1:
            return -1
        return self.precedence.get(tok.type, -1)

    # Expressions

    def parse_number_expr(self) -> NumberExpr:
        tok = self.current
        assert isinstance(tok.value, float)  # for mypy
        self.advance()
        return NumberExpr(tok.value, line=tok.line, col=tok.col)

    def parse_paren_expr(self) -> Expr:
        """Parses `'(' expression ')'` and returns the inner expression."""
        self.advance()
        expr = self.parse_expression()
        self.expect(")", "expected ')'")
        return expr

    def parse_identifier_expr(self) -> VariableExpr | CallExpr:
        """Parses a variable reference or a call with its argument list."""
        tok = self.current
        name = str(tok.value)
        self.advance()

        if not self.current.is_char("("):
            return VariableExpr(name, line=tok.line, col=tok.col)

        self.advance()
        args: list[Expr] = []
        if not self.current.is_char(")"):
            while True:
                args.append(self.parse_expression())
                if self.current.is_char(")"):
                    break
                if not self.current.is_char(","):
                    raise ParseError(
                        "expected ')' or ',' in argument list", self.current
                    )
                self.advance()
        self.advance()

        return CallExpr(name, tuple(args), line=tok.line, col=tok.col)

    def parse_primary(self) -> Expr:
        tok = self.current
        if tok.type == IDENT:
            return self.parse_identifier_expr()
        if tok.type == NUMBER:
            return self.parse_number_expr()
        if tok.is_char("("):
            return self.parse_paren_expr()
        raise ParseError("unknown token when expecting an expression", tok)

    def parse_expression(self) -> Expr:
        lhs = self.parse_primary()
        return self.parse_binop_rhs(0, lhs)

    def parse_binop_rhs(self, min_precedence: int, lhs: Expr) -> Expr:
        """Folds binary operators binding at least `min_precedence` onto `lhs`.

        Operators of equal strength associate to the left; a following
        operator that binds tighter is first folded into the right operand.
        """
        while True:
            tok_prec = self.get_token_precedence()
            if tok_prec < min_precedence:
                return lhs

            op_tok = self.current
            self.advance()
            rhs = self.parse_primary()

            next_prec = self.get_token_precedence()
            if tok_prec < next_prec:
                rhs = self.parse_binop_rhs(tok_prec + 1, rhs)

            lhs = BinaryExpr(op_tok.type, lhs, rhs, line=op_tok.line, col=op_tok.col)

    # Declarations

    def parse_prototype(self) -> Prototype:
        """Parses `IDENT '(' IDENT* ')'`."""
        tok = self.current
        if tok.type != IDENT:
            raise ParseError("expected function name in prototype", tok)
        name = str(tok.value)
        self.advance()

        self.expect("(", "expected '(' in prototype")
        params: list[str] = []
        while self.current.type == IDENT:
            params.append(str(self.current.value))
            self.advance()
        self.expect(")", "expected ')' in prototype")

        return Prototype(name, tuple(params), line=tok.line, col=tok.col)

    def parse_definition(self) -> Function:
        """Parses `'def' prototype expression`."""
        def_tok = self.current
        if def_tok.type != DEF:
            raise ParseError("expected 'def'", def_tok)
        self.advance()
        proto = self.parse_prototype()
        body = self.parse_expression()
        return Function(proto, body, line=def_tok.line, col=def_tok.col)

    def parse_extern(self) -> Prototype:
        """Parses `'extern' prototype`."""
        if self.current.type != EXTERN:
            raise ParseError("expected 'extern'", self.current)
        self.advance()
        return self.parse_prototype()

    def parse_top_level_expr(self) -> Function:
        """Parses an expression and wraps it in a zero-parameter function."""
        tok = self.current
        body = self.parse_expression()
        proto = Prototype(ANON_EXPR_NAME, (), line=tok.line, col=tok.col)
        return Function(proto, body, line=tok.line, col=tok.col)

    # Program

    def parse_top_level(self) -> Function | Prototype:
        """Parses one definition, extern or top-level expression.

        Input nested deeper than the interpreter stack allows is reported as
        a ParseError.
        """
        try:
            if self.current.type == DEF:
                return self.parse_definition()
            if self.current.type == EXTERN:
                return self.parse_extern()
            return self.parse_top_level_expr()
        except RecursionError:
            raise ParseError(NESTED_TOO_DEEPLY, self.current) from None

    def parse(self) -> list[ASTNode]:
        """Parse a full Kaleido program and return its top-level AST nodes."""
        items: list[ASTNode] = []
        while self.current.type != EOF:
            if self.current.is_char(";"):
                self.advance()
                continue
            items.append(self.parse_top_level())
        return items


def parse(
    source: str | TextIO, precedence: dict[str, int] | None = None
) -> list[ASTNode]:
    """Lexes and parses a whole program."""
    return Parser(Lexer(source), precedence).parse()


def parse_expression(
    source: str | TextIO, precedence: dict[str, int] | None = None
) -> Expr:
    """Lexes and parses a single expression, rejecting trailing input."""
    parser = Parser(Lexer(source), precedence)
    try:
        expr = parser.parse_expression()
    except RecursionError:
        raise ParseError(NESTED_TOO_DEEPLY, parser.current) from None
    if parser.current.type != EOF:
        raise ParseError("unexpected token after expression", parser.current)
    return expr


__all__ = [
    "ParseError",
    "Parser",
    "parse",
    "parse_expression",
    "precedence_from_spec",
    "validate_precedence",
]
