"""
Renders Kaleido AST nodes back into Kaleido source text.

This module defines the `SourceEmitter` class, used by the REPL and CLI to echo
what the parser understood, and by the test-suite to check that emitted text
parses back into the same tree.

Output Format:
    - Binary expressions are fully parenthesized: `(1 + (2 * 3))`
    - Numbers use their shortest positional form: `3`, `2.5`, `0.0001`
    - Calls: `f(a, b)`
    - Prototypes: `name(a b)`; as top-level items, `extern name(a b)`
    - Functions: `def name(a b) body`; anonymous top-level expressions emit
      only their body

Raises:
    - `TypeError`: If an object outside the closed AST node set is encountered,
      or an anonymous top-level function carries parameters.
"""

from decimal import Decimal

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
from kaleido.kaleido_constants import ANON_EXPR_NAME


def format_number(value: float) -> str:
    """Formats a float without exponent notation or a redundant `.0`."""
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


class SourceEmitter:
    """Emits Kaleido source text from AST nodes.

    Attributes:
        lines (list[str]): One emitted line per top-level item visited.

    Methods:
        get_output(): Returns every emitted line joined by newlines.
        emit_expr(node): Emits a single expression.
        emit(node): Emits any node as a top-level item and records it.
    """

    def __init__(self) -> None:
        self.lines: list[str] = []

    def get_output(self) -> str:
        return "\n".join(self.lines)

    def emit_number(self, node: NumberExpr) -> str:
        return format_number(node.value)

    def emit_variable(self, node: VariableExpr) -> str:
        return node.name

    def emit_binary(self, node: BinaryExpr) -> str:
        left = self.emit_expr(node.lhs)
        right = self.emit_expr(node.rhs)
        return f"({left} {node.op} {right})"

    def emit_call(self, node: CallExpr) -> str:
        args = ", ".join(self.emit_expr(arg) for arg in node.args)
        return f"{node.callee}({args})"

    def emit_prototype(self, node: Prototype) -> str:
        return f"{node.name}({' '.join(node.params)})"

    def emit_function(self, node: Function) -> str:
        """
        Emits a definition, or only the body of an anonymous top-level expression.

        Raises
        ------
        TypeError
            If an anonymous function has parameters; no source text parses to one.
        """
        if node.proto.name == ANON_EXPR_NAME:
            if node.proto.params:
                raise TypeError(
                    f"SourceEmitter: {ANON_EXPR_NAME} cannot take parameters: {node!r}"
                )
            return self.emit_expr(node.body)
        body = self.emit_expr(node.body)
        return f"def {self.emit_prototype(node.proto)} {body}"

    def emit_expr(self, node: Expr) -> str:
        """
        Emits one expression node.

        Raises
        ------
        TypeError
            If `node` is not an expression node.
        """
        if isinstance(node, NumberExpr):
            return self.emit_number(node)
        if isinstance(node, VariableExpr):
            return self.emit_variable(node)
        if isinstance(node, BinaryExpr):
            return self.emit_binary(node)
        if isinstance(node, CallExpr):
            return self.emit_call(node)
        raise TypeError(f"SourceEmitter: not an expression node: {node!r}")

    def emit(self, node: ASTNode) -> str:
        """
        Emits a top-level item, appends it to `lines` and returns it.

        A bare `Prototype` is an `extern` declaration at the top level.

        Raises
        ------
        TypeError
            If `node` is not an AST node.
        """
        if isinstance(node, Function):
            text = self.emit_function(node)
        elif isinstance(node, Prototype):
            text = f"extern {self.emit_prototype(node)}"
        else:
            text = self.emit_expr(node)
        self.lines.append(text)
        return text


def emit_source(nodes: list[ASTNode]) -> str:
    """Emits a list of top-level items, one per line."""
    emitter = SourceEmitter()
    for node in nodes:
        emitter.emit(node)
    return emitter.get_output()


__all__ = ["SourceEmitter", "emit_source", "format_number"]
