"""
Token types for the Sable lexer.

Diagnostic code ranges:
- E0xx: Lexical errors (illegal characters, unterminated strings)
- E1xx: Parser errors
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional


class TokenType(Enum):
    """All token types recognized by the lexer."""

    # --- Literals ---
    INT_LITERAL = auto()        # 42
    STRING_LITERAL = auto()     # "hello"
    BOOL_LITERAL = auto()       # true, false
    NIL_LITERAL = auto()        # nil

    # --- Identifiers ---
    IDENTIFIER = auto()         # user-defined names

    # --- Keywords ---
    LET = auto()                # let
    FN = auto()                 # fn
    IF = auto()                 # if
    ELSE = auto()               # else
    RETURN = auto()             # return
    PRINT = auto()              # print

    # --- Logical operators (keyword-based) ---
    AND = auto()                # and
    OR = auto()                 # or

    # --- Arithmetic operators ---
    PLUS = auto()               # +
    MINUS = auto()              # -
    STAR = auto()               # *
    SLASH = auto()              # /
    BANG = auto()               # !

    # --- Comparison operators ---
    LT = auto()                 # <
    GT = auto()                 # >
    LE = auto()                 # <=
    GE = auto()                 # >=
    EQ = auto()                 # ==
    NE = auto()                 # !=

    # --- Assignment ---
    ASSIGN = auto()             # =

    # --- Delimiters ---
    LPAREN = auto()             # (
    RPAREN = auto()             # )
    LBRACE = auto()             # {
    RBRACE = auto()             # }
    LBRACKET = auto()           # [
    RBRACKET = auto()           # ]
    COMMA = auto()              # ,
    SEMICOLON = auto()          # ;
    COLON = auto()              # :

    # --- Special ---
    EOF = auto()                # end of input
    ILLEGAL = auto()            # unrecognized character or unterminated string


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
    """A single token from the lexer."""
    type: TokenType
    value: Any              # int for INT_LITERAL, str contents for strings, etc.
    lexeme: str             # The original source text
    span: SourceSpan        # Location in source

    def __str__(self) -> str:
        if self.type in (TokenType.INT_LITERAL, TokenType.BOOL_LITERAL,
                         TokenType.STRING_LITERAL, TokenType.IDENTIFIER,
                         TokenType.ILLEGAL):
            return f"{self.type.name}({self.value!r})"
        return self.type.name

    def same_kind(self, other: "Token") -> bool:
        """Compare two tokens ignoring their position in the source."""
        return (self.type == other.type and self.value == other.value
                and self.lexeme == other.lexeme)


# Keyword mapping - maps string to token type
KEYWORDS: dict[str, TokenType] = {
    "let": TokenType.LET,
    "fn": TokenType.FN,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "return": TokenType.RETURN,
    "print": TokenType.PRINT,
    "and": TokenType.AND,
    "or": TokenType.OR,
    "true": TokenType.BOOL_LITERAL,
    "false": TokenType.BOOL_LITERAL,
    "nil": TokenType.NIL_LITERAL,
}


# Tokens that begin a statement; the parser resynchronises on these
STATEMENT_KEYWORDS: frozenset = frozenset({
    TokenType.LET,
    TokenType.RETURN,
    TokenType.PRINT,
})
