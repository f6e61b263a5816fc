"""
Lexer for Sable.

Converts source text into a stream of tokens for the parser.
Supports:
- Identifiers and keywords (maximal munch over letters, digits, '_')
- Decimal integer literals
- Double-quoted string literals (raw contents, may span lines)
- Line comments (// to end of line)
- One- and two-character operators

The lexer never raises. Anything it cannot recognise becomes an ILLEGAL
token and is reported later by the parser.
"""

from typing import List, Optional, Iterator
from .tokens import Token, TokenType, SourceLocation, SourceSpan, KEYWORDS

# Longest digit run converted to int; 2**63 has 19 digits
MAX_INT_DIGITS = 19

# Operators that may be followed by '=' to form a two-character operator
TWO_CHAR_OPERATORS = {
    '=': (TokenType.ASSIGN, TokenType.EQ),
    '!': (TokenType.BANG, TokenType.NE),
    '<': (TokenType.LT, TokenType.LE),
    '>': (TokenType.GT, TokenType.GE),
}

SINGLE_CHAR_TOKENS = {
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '*': TokenType.STAR,
    '/': TokenType.SLASH,
    ',': TokenType.COMMA,
    ';': TokenType.SEMICOLON,
    ':': TokenType.COLON,
    '(': TokenType.LPAREN,
    ')': TokenType.RPAREN,
    '{': TokenType.LBRACE,
    '}': TokenType.RBRACE,
    '[': TokenType.LBRACKET,
    ']': TokenType.RBRACKET,
}


class Lexer:
    """
    Tokenizer for Sable source text.

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()

    Or for streaming:
        lexer = Lexer(source_code)
        for token in lexer:
            process(token)

    Every iteration starts from the beginning of the source with its own
    cursor, so a Lexer can be walked any number of times, even concurrently.
    """

    def __init__(self, source: str, filename: Optional[str] = None):
        self.source = source
        self.filename = filename
        self.pos = 0            # Current position in source
        self.line = 1           # Current line (1-indexed)
        self.column = 1         # Current column (1-indexed)

    def _location(self) -> SourceLocation:
        """Get current source location."""
        return SourceLocation(self.line, self.column, self.pos, self.filename)

    def _span(self, start: SourceLocation) -> SourceSpan:
        """Create a span from start to current position."""
        return SourceSpan(start, self._location())

    def _peek(self, offset: int = 0) -> str:
        """Look at character at current position + offset without consuming."""
        idx = self.pos + offset
        if idx >= len(self.source):
            return '\0'
        return self.source[idx]

    def _advance(self) -> str:
        """Consume and return current character."""
        if self.pos >= len(self.source):
            return '\0'
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _match(self, expected: str) -> bool:
        """Consume character if it matches expected."""
        if not self._is_at_end() and self._peek() == expected:
            self._advance()
            return True
        return False

    def _is_at_end(self) -> bool:
        """Check if we've reached end of source."""
        return self.pos >= len(self.source)

    def _skip_whitespace_and_comments(self) -> None:
        while not self._is_at_end():
            ch = self._peek()
            if ch in ' \t\r\n':
                self._advance()
            elif ch == '/' and self._peek(1) == '/':
                while not self._is_at_end() and self._peek() != '\n':
                    self._advance()
            else:
                break

    def _make_token(self, token_type: TokenType, value, start: SourceLocation,
                    lexeme: Optional[str] = None) -> Token:
        """Create a token."""
        span = self._span(start)
        if lexeme is None:
            lexeme = self.source[start.offset:self.pos]
        return Token(token_type, value, lexeme, span)

    def _scan_string(self) -> Token:
        """Scan a string literal; no escape processing."""
        start = self._location()
        self._advance()  # consume opening quote

        while not self._is_at_end() and self._peek() != '"':
            self._advance()

        if self._is_at_end():
            lexeme = self.source[start.offset:self.pos]
            return self._make_token(TokenType.ILLEGAL, lexeme, start, lexeme)

        self._advance()  # consume closing quote
        value = self.source[start.offset + 1:self.pos - 1]
        return self._make_token(TokenType.STRING_LITERAL, value, start)

    def _scan_number(self) -> Token:
        """Scan a decimal integer literal."""
        start = self._location()
        while self._peek() in "0123456789":
            self._advance()
        lexeme = self.source[start.offset:self.pos]
        # Past 19 digits no literal fits in 64 bits; the parser reports it
        value = int(lexeme) if len(lexeme) <= MAX_INT_DIGITS else lexeme
        return self._make_token(TokenType.INT_LITERAL, value, start, lexeme)

    def _scan_identifier_or_keyword(self) -> Token:
        """Scan an identifier or keyword."""
        start = self._location()

        while self._peek().isalnum() or self._peek() == '_':
            self._advance()

        lexeme = self.source[start.offset:self.pos]

        if lexeme in KEYWORDS:
            token_type = KEYWORDS[lexeme]
            if token_type == TokenType.BOOL_LITERAL:
                value = lexeme == 'true'
            elif token_type == TokenType.NIL_LITERAL:
                value = None
            else:
                value = lexeme
            return self._make_token(token_type, value, start, lexeme)

        return self._make_token(TokenType.IDENTIFIER, lexeme, start, lexeme)

    def _scan_token(self) -> Token:
        """Scan the next token."""
        self._skip_whitespace_and_comments()

        if self._is_at_end():
            return self._make_token(TokenType.EOF, None, self._location(), "")

        start = self._location()
        ch = self._peek()

        if ch == '"':
            return self._scan_string()

        if ch in "0123456789":
            return self._scan_number()

        if ch.isalpha() or ch == '_':
            return self._scan_identifier_or_keyword()

        self._advance()

        if ch in TWO_CHAR_OPERATORS:
            single, double = TWO_CHAR_OPERATORS[ch]
            if self._match('='):
                return self._make_token(double, ch + '=', start)
            return self._make_token(single, ch, start)

        if ch in SINGLE_CHAR_TOKENS:
            return self._make_token(SINGLE_CHAR_TOKENS[ch], ch, start)

        return self._make_token(TokenType.ILLEGAL, ch, start)

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source, returning a list of tokens."""
        return list(self)

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens from the start of the source."""
        # Each walk scans with its own cursor
        return Lexer(self.source, self.filename)._tokens()

    def _tokens(self) -> Iterator[Token]:
        while True:
            token = self._scan_token()
            yield token
            if token.type == TokenType.EOF:
                break


def tokenize(source: str, filename: Optional[str] = None) -> List[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: The source code to tokenize
        filename: Optional filename for diagnostics

    Returns:
        List of tokens, always ending with an EOF token
    """
    lexer = Lexer(source, filename)
    return lexer.tokenize()


def render_tokens(tokens: List[Token]) -> str:
    """Join token lexemes back into source text, one space apart."""
    return " ".join(t.lexeme for t in tokens if t.type != TokenType.EOF)
