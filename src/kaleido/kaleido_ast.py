"""
Defines the abstract syntax tree (AST) for the Kaleido language.

The tree is a closed set of immutable node classes:

    NumberExpr      numeric literal
    VariableExpr    variable reference
    BinaryExpr      binary operator applied to two expressions
    CallExpr        function call with ordered arguments
    Prototype       function name and parameter names (`extern` or `def` header)
    Function        prototype plus body expression

`Expr` is the union of the four expression nodes and `ASTNode` the union of
all six. Consumers dispatch on the concrete class and must reject anything
else (see `kaleido.emitters.source_emitter.SourceEmitter`).

Every node records the line and column it starts at. Positions are excluded
from equality, so two trees parsed from differently formatted sources
compare equal when their structure is the same.

Each node converts to a JSON-ready dictionary through `to_dict()`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, TypedDict, Union


class ASTDict(TypedDict, total=False):
    """
    TypedDict representation of an AST node used for serialization.

    Only the fields relevant to a node's kind are present.
    """

    kind: str
    value: float
    name: str
    op: str
    lhs: ASTDict
    rhs: ASTDict
    callee: str
    args: list[ASTDict]
    params: list[str]
    proto: ASTDict
    body: ASTDict
    line: int
    col: int


@dataclass(frozen=True)
class NumberExpr:
    value: float
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)

    kind: ClassVar[str] = "number"

    def to_dict(self) -> ASTDict:
        return {"kind": self.kind, "value": self.value, "line": self.line, "col": self.col}


@dataclass(frozen=True)
class VariableExpr:
    name: str
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)

    kind: ClassVar[str] = "variable"

    def to_dict(self) -> ASTDict:
        return {"kind": self.kind, "name": self.name, "line": self.line, "col": self.col}


@dataclass(frozen=True)
class BinaryExpr:
    op: str
    lhs: Expr
    rhs: Expr
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)

    kind: ClassVar[str] = "binary"

    def to_dict(self) -> ASTDict:
        return {
            "kind": self.kind,
            "op": self.op,
            "lhs": self.lhs.to_dict(),
            "rhs": self.rhs.to_dict(),
            "line": self.line,
            "col": self.col,
        }


@dataclass(frozen=True)
class CallExpr:
    callee: str
    args: tuple[Expr, ...] = ()
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)

    kind: ClassVar[str] = "call"

    def to_dict(self) -> ASTDict:
        return {
            "kind": self.kind,
            "callee": self.callee,
            "args": [arg.to_dict() for arg in self.args],
            "line": self.line,
            "col": self.col,
        }


@dataclass(frozen=True)
class Prototype:
    """Function signature. Parameter names are not checked for duplicates."""

    name: str
    params: tuple[str, ...] = ()
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)

    kind: ClassVar[str] = "prototype"

    def to_dict(self) -> ASTDict:
        return {
            "kind": self.kind,
            "name": self.name,
            "params": list(self.params),
            "line": self.line,
            "col": self.col,
        }


@dataclass(frozen=True)
class Function:
    proto: Prototype
    body: Expr
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)

    kind: ClassVar[str] = "function"

    def to_dict(self) -> ASTDict:
        return {
            "kind": self.kind,
            "proto": self.proto.to_dict(),
            "body": self.body.to_dict(),
            "line": self.line,
            "col": self.col,
        }


Expr = Union[NumberExpr, VariableExpr, BinaryExpr, CallExpr]
ASTNode = Union[NumberExpr, VariableExpr, BinaryExpr, CallExpr, Prototype, Function]

EXPR_TYPES: tuple[type, ...] = (NumberExpr, VariableExpr, BinaryExpr, CallExpr)
NODE_TYPES: tuple[type, ...] = EXPR_TYPES + (Prototype, Function)


def is_expr(node: Any) -> bool:
    """Returns True if `node` is one of the four expression node classes."""
    return isinstance(node, EXPR_TYPES)


__all__ = [
    "ASTDict",
    "ASTNode",
    "BinaryExpr",
    "CallExpr",
    "EXPR_TYPES",
    "Expr",
    "Function",
    "NODE_TYPES",
    "NumberExpr",
    "Prototype",
    "VariableExpr",
    "is_expr",
]
