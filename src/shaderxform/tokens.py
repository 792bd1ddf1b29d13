"""
Token types for the shader source tokenizer.

The tokenizer only distinguishes what the rewrite passes need to see:
identifiers, the handful of keywords used by counting loops and
conditionals, integer literals, braces and parentheses. Everything else
is carried through as generic operator or number tokens. Comments are
kept as tokens so that they can break a pattern (the skip marker relies
on this) while braces inside them are never mistaken for blocks.

Error code ranges:
- E1xx: Matching errors (bad literal bounds)
- E2xx: Rewrite driver errors (divergence)
- E3xx: Configuration errors
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional


class TokenType(Enum):
    """All token types recognized by the shader tokenizer."""

    # --- Literals ---
    INT_LITERAL = auto()        # 42
    NUMBER = auto()             # 1.5, 0x1f, 3u, 2e-4 (never a loop bound)
    STRING_LITERAL = auto()     # "text"
    BOOL_LITERAL = auto()       # true, false

    # --- Identifiers ---
    IDENTIFIER = auto()

    # --- Keywords ---
    FOR = auto()                # for
    VAR = auto()                # var
    IF = auto()                 # if
    ELSE = auto()               # else
    TYPE_U32 = auto()           # u32

    # --- Delimiters ---
    LBRACE = auto()             # {
    RBRACE = auto()             # }
    LPAREN = auto()             # (
    RPAREN = auto()             # )
    SEMICOLON = auto()          # ;
    COLON = auto()              # :
    DOT = auto()                # .

    # --- Operators the matchers care about ---
    ASSIGN = auto()             # =
    LT = auto()                 # <
    INCREMENT = auto()          # ++
    OPERATOR = auto()           # anything else: + <= << == -> ...

    # --- Trivia that still matters ---
    COMMENT = auto()            # // line or /* block */

    # --- Special ---
    UNKNOWN = auto()            # characters outside the surface language
    EOF = auto()


@dataclass(frozen=True)
class SourceLocation:
    """Represents a position in source code."""
    line: int           # 1-indexed line number
    column: int         # 1-indexed column number
    offset: int         # 0-indexed character offset from start
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class SourceSpan:
    """Represents a range in source code."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"


@dataclass(frozen=True)
class Token:
    """A single token from the tokenizer."""
    type: TokenType
    value: Any              # int for INT_LITERAL (None if unparseable), bool for BOOL_LITERAL
    lexeme: str             # The original source text
    span: SourceSpan        # Location in source

    @property
    def start(self) -> int:
        return self.span.start.offset

    @property
    def end(self) -> int:
        return self.span.end.offset

    def __str__(self) -> str:
        if self.type in (TokenType.INT_LITERAL, TokenType.NUMBER,
                         TokenType.IDENTIFIER, TokenType.OPERATOR):
            return f"{self.type.name}({self.lexeme!r})"
        return self.type.name


KEYWORDS: dict[str, TokenType] = {
    "for": TokenType.FOR,
    "var": TokenType.VAR,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "u32": TokenType.TYPE_U32,
    "true": TokenType.BOOL_LITERAL,
    "false": TokenType.BOOL_LITERAL,
}

# Multi-character operators, longest first for maximal munch
OPERATORS: tuple[str, ...] = (
    "<<=", ">>=",
    "++", "--", "<=", ">=", "==", "!=", "&&", "||", "<<", ">>", "->",
    "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=",
)

SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ";": TokenType.SEMICOLON,
    ":": TokenType.COLON,
    ".": TokenType.DOT,
    "=": TokenType.ASSIGN,
    "<": TokenType.LT,
}

OPERATOR_CHARS = frozenset("+-*/%<>=!&|^~?,[]@#")
