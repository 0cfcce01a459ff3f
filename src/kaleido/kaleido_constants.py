"""
Shared constants for the Kaleido lexer and parser.

Exports:
    - EOF, DEF, EXTERN, IDENT, NUMBER: canonical token type names
    - KEYWORDS: keyword text mapped to its token type
    - DEFAULT_PRECEDENCE: binary operator binding strengths (higher binds tighter)
    - ANON_EXPR_NAME: prototype name given to wrapped top-level expressions

Single-character punctuation and operator tokens have no named type: their
type is the character itself, which is also their key in a precedence table.
"""

EOF = "EOF"
DEF = "DEF"
EXTERN = "EXTERN"
IDENT = "IDENT"
NUMBER = "NUMBER"

KEYWORDS: dict[str, str] = {
    "def": DEF,
    "extern": EXTERN,
}

DEFAULT_PRECEDENCE: dict[str, int] = {
    "<": 10,
    "+": 20,
    "-": 20,
    "*": 40,
}

ANON_EXPR_NAME = "__anon_expr"

__all__ = [
    "ANON_EXPR_NAME",
    "DEF",
    "DEFAULT_PRECEDENCE",
    "EOF",
    "EXTERN",
    "IDENT",
    "KEYWORDS",
    "NUMBER",
]
