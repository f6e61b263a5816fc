"""
Sable exceptions and diagnostics.

Error code ranges:
- E0xx: Lexical errors, surfaced by the parser when it consumes an
        ILLEGAL token
- E1xx: Parser errors

Runtime errors are not exceptions: the interpreter represents them as
Error values (see sable.runtime.values).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, TYPE_CHECKING
from .tokens import SourceSpan

if TYPE_CHECKING:
    from .tokens import Token


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"


@dataclass
class Diagnostic:
    """A single diagnostic message."""
    code: str                       # E001, E101, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity
    span: SourceSpan
    source_line: Optional[str] = None   # The actual line of source code
    hints: List[str] = field(default_factory=list)

    def format(self, show_source: bool = True) -> str:
        """Format the diagnostic for display."""
        parts = []

        # Header: location: severity[code]: message
        loc = f"{self.span.start}"
        parts.append(f"{loc}: {self.severity.value}[{self.code}]: {self.message}")

        # Source line with caret
        if show_source and self.source_line is not None:
            parts.append("  |")
            line_num = str(self.span.start.line)
            parts.append(f"{line_num:>3} | {self.source_line}")

            col = self.span.start.column
            end_col = self.span.end.column if self.span.start.line == self.span.end.line else len(self.source_line) + 1
            underline_len = max(1, end_col - col)
            parts.append(f"    | {' ' * (col - 1)}{'^' * underline_len}")

        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        return "\n".join(parts)

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        return {
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "range": {
                "start": {
                    "line": self.span.start.line,
                    "column": self.span.start.column,
                    "offset": self.span.start.offset,
                },
                "end": {
                    "line": self.span.end.line,
                    "column": self.span.end.column,
                    "offset": self.span.end.offset,
                },
            },
            "hints": self.hints,
        }


class SableError(Exception):
    """Base exception for errors that carry a diagnostic."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    def __str__(self) -> str:
        return self.diagnostic.format()


class ParserError(SableError):
    """Syntax error detected while parsing (E0xx, E1xx)."""

    def __init__(self, diagnostic: Diagnostic, token: Optional["Token"] = None):
        super().__init__(diagnostic)
        self.token = token


class UnboundIdentifierError(LookupError):
    """Raised by Environment.resolve when a name is bound nowhere in the chain."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"unbound identifier: {name}")


class ConfigError(ValueError):
    """Malformed configuration file or value."""
    pass


# --- Lexical error codes ---

def error_illegal_character(token: "Token", source_line: str = None) -> ParserError:
    """E001: Illegal character."""
    diag = Diagnostic(
        code="E001",
        message=f"illegal character '{token.value}'",
        severity=ErrorSeverity.ERROR,
        span=token.span,
        source_line=source_line,
    )
    return ParserError(diag, token)


def error_unterminated_string(token: "Token", source_line: str = None) -> ParserError:
    """E002: Unterminated string literal."""
    diag = Diagnostic(
        code="E002",
        message="unterminated string literal",
        severity=ErrorSeverity.ERROR,
        span=token.span,
        source_line=source_line,
        hints=['string literals must be closed with a matching "'],
    )
    return ParserError(diag, token)


# --- Parser error codes ---

def error_unexpected_token(expected: str, token: "Token",
                           source_line: str = None) -> ParserError:
    """E101: Unexpected token."""
    diag = Diagnostic(
        code="E101",
        message=f"expected {expected}, found {token.type.name} '{token.lexeme}'",
        severity=ErrorSeverity.ERROR,
        span=token.span,
        source_line=source_line,
    )
    return ParserError(diag, token)


def error_unexpected_eof(expected: str, token: "Token") -> ParserError:
    """E102: Unexpected end of input."""
    diag = Diagnostic(
        code="E102",
        message=f"unexpected end of input, expected {expected}",
        severity=ErrorSeverity.ERROR,
        span=token.span,
    )
    return ParserError(diag, token)


def error_expected_expression(token: "Token", source_line: str = None) -> ParserError:
    """E103: No expression can start with this token."""
    diag = Diagnostic(
        code="E103",
        message=f"expected expression, found {token.type.name} '{token.lexeme}'",
        severity=ErrorSeverity.ERROR,
        span=token.span,
        source_line=source_line,
    )
    return ParserError(diag, token)


def error_integer_out_of_range(token: "Token", source_line: str = None) -> ParserError:
    """E104: Integer literal does not fit in 64 bits."""
    literal = token.lexeme if len(token.lexeme) <= 24 else token.lexeme[:20] + "..."
    diag = Diagnostic(
        code="E104",
        message=f"integer literal '{literal}' out of range",
        severity=ErrorSeverity.ERROR,
        span=token.span,
        source_line=source_line,
        hints=["integers are signed 64-bit values"],
    )
    return ParserError(diag, token)


def error_nesting_too_deep(token: "Token", source_line: str = None) -> ParserError:
    """E105: Statement nests deeper than the parser can follow."""
    diag = Diagnostic(
        code="E105",
        message="expression nested too deeply",
        severity=ErrorSeverity.ERROR,
        span=token.span,
        source_line=source_line,
    )
    return ParserError(diag, token)


class DiagnosticCollector:
    """Collects diagnostics during parsing."""

    def __init__(self, max_errors: int = 20):
        self.diagnostics: List[Diagnostic] = []
        self.errors: List[ParserError] = []
        self.max_errors = max_errors
        self._error_count = 0

    def add(self, diagnostic: Diagnostic) -> None:
        """Add a diagnostic."""
        self.diagnostics.append(diagnostic)
        self._error_count += 1

    def add_error(self, error: ParserError) -> None:
        """Add an error exception as a diagnostic."""
        self.errors.append(error)
        self.add(error.diagnostic)

    @property
    def error_count(self) -> int:
        return self._error_count

    @property
    def has_errors(self) -> bool:
        return self._error_count > 0

    @property
    def should_stop(self) -> bool:
        """Check if we've hit the max error limit."""
        return self._error_count >= self.max_errors

    def format_all(self, show_source: bool = True) -> str:
        """Format all diagnostics for display."""
        parts = [d.format(show_source) for d in self.diagnostics]
        if self._error_count > 0:
            parts.append(f"{self._error_count} error(s)")
        return "\n\n".join(parts)

    def to_json(self) -> dict:
        """Convert all diagnostics to JSON format."""
        return {
            "diagnostics": [d.to_json() for d in self.diagnostics],
            "error_count": self._error_count,
        }
