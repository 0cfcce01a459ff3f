"""
Lexical analyzer for the Kaleido language.

This module provides core components for converting raw source text into tokens:

Classes:
    CharacterStream: Forward-only character reader with one pending lookahead character.
    Token: Represents a single token with type, value, and source location.
    Lexer: Converts a CharacterStream into a sequence of tokens, one per call.
    LexerError: Raised for malformed or out-of-range numeric literals.

Features:
    - Skips whitespace and single-line comments (`#`)
    - Classifies identifiers only after the whole word is read, so `defer` and
      `externally` are identifiers while `def` and `extern` are keywords
    - Recognizes:
        * Identifiers and the keywords `def` / `extern`
        * Numbers (ASCII digits and `.`, converted to float). Text that is not
          a valid float, or whose value overflows to infinity, raises LexerError
        * Any other character as a single-character token

End of input is never an error: once the stream is exhausted every call to
`Lexer.next_token()` returns an EOF token.

Example:
    >>> lexer = Lexer(CharacterStream("def f(x) x * 2"))
    >>> lexer.next_token()
    Token(DEF, def)

Exports:
    - CharacterStream
    - Token
    - Lexer
    - LexerError
    - tokenize
"""

import io
import math
from collections.abc import Iterator
from typing import Any, TextIO

from kaleido.kaleido_constants import EOF, IDENT, KEYWORDS, NUMBER

DIGITS = "0123456789"


class LexerError(SyntaxError):
    """Raised when a token cannot be formed from the input text.

    Attributes:
        line (int): Line of the first character of the offending token.
        col (int): Column of the first character of the offending token.
    """

    def __init__(self, message: str, line: int = 0, col: int = 0) -> None:
        super().__init__(message)
        self.line = line
        self.col = col


class CharacterStream:
    """
    A forward-only character reader with line and column tracking.

    The stream accepts either a string or any readable text object (an open
    file, ``io.StringIO``, ``sys.stdin``). It reads one character at a time
    and always holds exactly one pending character: the next one to be
    consumed. It is never rewound.

    Attributes:
        reader (TextIO): The underlying text source.
        line (int): Line number of the pending character (1-indexed).
        column (int): Column number of the pending character (1-indexed).
    """

    def __init__(self, source: str | TextIO, line: int = 1, column: int = 1):
        """
        Initializes the character stream.

        Args:
            source (str | TextIO): Source text, or a readable text object.
            line (int, optional): Starting line number. Defaults to 1.
            column (int, optional): Starting column number. Defaults to 1.
        """
        self.reader: TextIO = io.StringIO(source) if isinstance(source, str) else source
        self.line = line
        self.column = column
        self._pending: str = self.reader.read(1)

    def next(self) -> str:
        """
        Consumes and returns the pending character.

        Returns:
            str: The consumed character.

        Raises:
            EOFError: If the stream is already exhausted.
        """
        if self._pending == "":
            raise EOFError(
                f"CharacterStreamError: Attempted to read past end of source at line=<{self.line}>, column=<{self.column}>"
            )
        char = self._pending
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self._pending = self.reader.read(1)
        return char

    def peek(self) -> str:
        """Returns the pending character without consuming it, or "" at EOF."""
        return self._pending

    def end_of_file(self) -> bool:
        return self._pending == ""


class Token:
    """Represents a single lexical token in the Kaleido language.

    Attributes:
        type (str): 'EOF', 'DEF', 'EXTERN', 'IDENT', 'NUMBER', or the character
            itself for single-character tokens such as '(' or '+'.
        value (str | float): 'EOF', the keyword or identifier text, the numeric
            value, or the character itself.
        line (int): The 1-based line number where the token starts.
        col (int): The 1-based column number where the token starts.
    """

    def __init__(self, type_: str, value: str | float, line: int = 0, col: int = 0):
        self.type = type_
        self.value = value
        self.line = line
        self.col = col

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Token)
            and self.type == other.type
            and self.value == other.value
            and self.line == other.line
            and self.col == other.col
        )

    def __hash__(self) -> int:
        return hash((self.type, self.value, self.line, self.col))

    def is_char(self, char: str) -> bool:
        """Checks whether this is the single-character token `char`."""
        return self.type == char


class Lexer:
    """Lexical analyzer for the Kaleido language.

    The Lexer pulls characters from a CharacterStream and returns one Token
    per call to `next_token()`. It keeps no token history; the only state
    carried between calls is the stream's pending character.

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
    """

    def __init__(self, stream: CharacterStream | str | TextIO) -> None:
        """Initializes the Lexer.

        Args:
            stream (CharacterStream | str | TextIO): A ready-made character
                stream, or raw text / a readable object to wrap in one.
        """
        self.stream = (
            stream if isinstance(stream, CharacterStream) else CharacterStream(stream)
        )

    def peek(self) -> str:
        return self.stream.peek()

    def advance(self) -> str:
        return self.stream.next()

    def skip_whitespace(self) -> None:
        """Skips all whitespace and comments in the stream."""
        while not self.stream.end_of_file():
            if self.peek().isspace():
                self.advance()
            elif self.peek() == "#":
                self.skip_comment()
            else:
                break

    def skip_comment(self) -> None:
        """Advances through the stream until the end of a comment line."""
        while not self.stream.end_of_file() and self.peek() != "\n":
            self.advance()

    def next_token(self) -> Token:
        """Consumes and returns the next Token from the stream.

        Returns:
            Token: The next token, or an EOF token once input is exhausted.

        Raises:
            LexerError: If a numeric literal is malformed or overflows to infinity.
        """
        self.skip_whitespace()

        line, col = self.stream.line, self.stream.column
        if self.stream.end_of_file():
            return Token(EOF, EOF, line, col)

        ch = self.peek()

        # 1. Identifier or keyword
        if ch.isalpha():
            ident = ""
            while not self.stream.end_of_file() and self.peek().isalnum():
                ident += self.advance()
            if ident in KEYWORDS:
                return Token(KEYWORDS[ident], ident, line, col)
            return Token(IDENT, ident, line, col)

        # 2. Number
        if ch in DIGITS or ch == ".":
            num = ""
            while not self.stream.end_of_file() and (
                self.peek() in DIGITS or self.peek() == "."
            ):
                num += self.advance()
            try:
                value = float(num)
            except ValueError:
                raise LexerError(
                    f"Invalid number literal {num!r} at line {line}, col {col}",
                    line,
                    col,
                ) from None
            if math.isinf(value):
                raise LexerError(
                    f"Number literal out of range at line {line}, col {col}",
                    line,
                    col,
                )
            return Token(NUMBER, value, line, col)

        # 3. Single-character operator or punctuation
        char = self.advance()
        return Token(char, char, line, col)

    def tokens(self) -> Iterator[Token]:
        """Yields tokens until (and excluding) the EOF token."""
        while True:
            tok = self.next_token()
            if tok.type == EOF:
                return
            yield tok


def tokenize(source: str | TextIO) -> list[Token]:
    """Returns every token of `source`, excluding the trailing EOF token."""
    return list(Lexer(CharacterStream(source)).tokens())


__all__ = ["CharacterStream", "Lexer", "LexerError", "Token", "tokenize"]
