"""
Recursive descent parser for Sable.

Converts a token stream into an Abstract Syntax Tree (AST). Syntax errors
are collected rather than fatal: after an error the parser skips to the
next statement boundary and carries on, so one pass reports every
problem it can find.
"""

import logging
from typing import List, Optional, Tuple
from .tokens import Token, TokenType, SourceSpan, STATEMENT_KEYWORDS
from .lexer import tokenize
from .ast import (
    # Expressions
    Expression, Literal, Identifier, ArrayLiteral, UnaryOp, BinaryOp,
    IfExpr, FunctionLiteral, FunctionCall, IndexAccess,
    # Statements
    Statement, LetStatement, ReturnStatement, PrintStatement,
    ExpressionStatement, Block, Program,
)
from .errors import (
    ParserError,
    error_illegal_character,
    error_unterminated_string,
    error_unexpected_token,
    error_unexpected_eof,
    error_expected_expression,
    error_integer_out_of_range,
    error_nesting_too_deep,
    DiagnosticCollector,
)

logger = logging.getLogger(__name__)

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

LITERAL_TOKENS = (
    TokenType.INT_LITERAL,
    TokenType.STRING_LITERAL,
    TokenType.BOOL_LITERAL,
    TokenType.NIL_LITERAL,
)


class Parser:
    """
    Recursive descent parser for Sable.

    Usage:
        parser = Parser(tokens)
        program = parser.parse_program()
        if parser.diagnostics.has_errors:
            print(parser.diagnostics.format_all())

    Expressions use precedence climbing:
        Lowest:  or
                 and
                 == !=
                 < > <= >=
                 + -
                 * /
                 prefix - !
        Highest: call (...) and index [...]
    All binary operators are left-associative.
    """

    # Operator precedence levels (higher = tighter binding)
    PRECEDENCE = {
        TokenType.OR: 1,
        TokenType.AND: 2,
        TokenType.EQ: 3,
        TokenType.NE: 3,
        TokenType.LT: 4,
        TokenType.GT: 4,
        TokenType.LE: 4,
        TokenType.GE: 4,
        TokenType.PLUS: 5,
        TokenType.MINUS: 5,
        TokenType.STAR: 6,
        TokenType.SLASH: 6,
    }

    def __init__(self, tokens: List[Token], filename: Optional[str] = None,
                 source: Optional[str] = None, max_errors: int = 20):
        if not tokens or tokens[-1].type != TokenType.EOF:
            raise ValueError("token stream must end with an EOF token")
        self.tokens = tokens
        self.filename = filename
        self.source = source  # Original source code for diagnostics
        self.pos = 0
        self.diagnostics = DiagnosticCollector(max_errors)
        self._lines = source.splitlines() if source else []

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Token:
        """Get current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[self.pos]

    def _peek(self, offset: int = 0) -> Token:
        """Peek at token at current position + offset."""
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[idx]

    def _is_at_end(self) -> bool:
        """Check if at end of tokens."""
        return self._current().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        """Check if current token is of given type."""
        return self._current().type == token_type

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _consume(self, token_type: TokenType, expected: str) -> Token:
        """Consume token of expected type, or raise error."""
        if self._check(token_type):
            return self._advance()
        raise self._error(expected)

    def _match(self, *token_types: TokenType) -> Optional[Token]:
        """Consume token if it matches any of the given types."""
        if self._current().type in token_types:
            return self._advance()
        return None

    def _source_line(self, token: Token) -> Optional[str]:
        line = token.span.start.line
        if 1 <= line <= len(self._lines):
            return self._lines[line - 1]
        return None

    def _error(self, expected: str) -> ParserError:
        """Build an error for the current token."""
        token = self._current()
        if token.type == TokenType.EOF:
            return error_unexpected_eof(expected, token)
        if token.type == TokenType.ILLEGAL:
            return self._illegal_token_error(token)
        return error_unexpected_token(expected, token, self._source_line(token))

    def _illegal_token_error(self, token: Token) -> ParserError:
        if token.lexeme.startswith('"'):
            return error_unterminated_string(token, self._source_line(token))
        return error_illegal_character(token, self._source_line(token))

    def _span_from(self, start: Token) -> SourceSpan:
        """Create a span from start token to the last consumed token."""
        prev_pos = max(0, self.pos - 1)
        end_token = self.tokens[prev_pos]
        return SourceSpan(start.span.start, end_token.span.end)

    def _synchronize(self, start_pos: int) -> None:
        """Skip tokens until the start of the next statement."""
        # A keyword reached after the failed statement began starts the next one
        if self.pos > start_pos and self._current().type in STATEMENT_KEYWORDS:
            return
        self._advance()
        while not self._is_at_end():
            if self.tokens[self.pos - 1].type == TokenType.SEMICOLON:
                return
            if self._current().type in STATEMENT_KEYWORDS:
                return
            self._advance()

    # =========================================================================
    # Expression Parsing (Precedence Climbing)
    # =========================================================================

    def _parse_expression(self) -> Expression:
        """Parse an expression."""
        return self._parse_binary_expr(0)

    def _parse_binary_expr(self, min_precedence: int) -> Expression:
        """Parse binary expressions with precedence climbing."""
        left = self._parse_unary_expr()

        while True:
            op_token = self._current()
            precedence = self.PRECEDENCE.get(op_token.type)

            if precedence is None or precedence < min_precedence:
                break

            self._advance()  # consume operator
            right = self._parse_binary_expr(precedence + 1)

            left = BinaryOp(
                span=SourceSpan(left.span.start, right.span.end),
                left=left,
                operator=op_token.type,
                right=right
            )

        return left

    def _parse_unary_expr(self) -> Expression:
        """Parse prefix expressions (! -)."""
        if self._check(TokenType.BANG) or self._check(TokenType.MINUS):
            op = self._advance()
            operand = self._parse_unary_expr()
            return UnaryOp(
                span=SourceSpan(op.span.start, operand.span.end),
                operator=op.type,
                operand=operand
            )

        return self._parse_postfix_expr()

    def _parse_postfix_expr(self) -> Expression:
        """Parse postfix expressions (calls and indexing)."""
        expr = self._parse_primary_expr()

        while True:
            if self._check(TokenType.LPAREN):
                self._advance()  # consume '('
                args = self._parse_expression_list(TokenType.RPAREN, "')'")
                expr = FunctionCall(
                    span=SourceSpan(expr.span.start, self.tokens[self.pos - 1].span.end),
                    callee=expr,
                    arguments=args
                )
            elif self._check(TokenType.LBRACKET):
                self._advance()  # consume '['
                index = self._parse_expression()
                self._consume(TokenType.RBRACKET, "']'")
                expr = IndexAccess(
                    span=SourceSpan(expr.span.start, self.tokens[self.pos - 1].span.end),
                    object=expr,
                    index=index
                )
            else:
                break

        return expr

    def _parse_expression_list(self, closing: TokenType, expected: str) -> List[Expression]:
        """Parse a comma-separated list up to and including the closing token."""
        items = []
        if self._match(closing):
            return items

        items.append(self._parse_expression())
        while self._match(TokenType.COMMA):
            items.append(self._parse_expression())

        self._consume(closing, expected)
        return items

    def _parse_primary_expr(self) -> Expression:
        """Parse primary expressions (literals, identifiers, grouped, etc.)."""
        token = self._current()

        if token.type in LITERAL_TOKENS:
            if (token.type == TokenType.INT_LITERAL
                    and not (isinstance(token.value, int)
                             and INT64_MIN <= token.value <= INT64_MAX)):
                raise error_integer_out_of_range(token, self._source_line(token))
            self._advance()
            return Literal(
                span=token.span,
                value=token.value,
                literal_type=token.type
            )

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            return Identifier(span=token.span, name=token.value)

        if token.type == TokenType.LPAREN:
            self._advance()
            expr = self._parse_expression()
            self._consume(TokenType.RPAREN, "')'")
            return expr

        if token.type == TokenType.LBRACKET:
            self._advance()
            elements = self._parse_expression_list(TokenType.RBRACKET, "']'")
            return ArrayLiteral(span=self._span_from(token), elements=elements)

        if token.type == TokenType.IF:
            return self._parse_if_expr()

        if token.type == TokenType.FN:
            return self._parse_function_literal()

        if token.type == TokenType.ILLEGAL:
            raise self._illegal_token_error(token)

        if token.type == TokenType.EOF:
            raise error_unexpected_eof("expression", token)

        raise error_expected_expression(token, self._source_line(token))

    def _parse_if_expr(self) -> IfExpr:
        """Parse `if cond { ... } [else { ... } | else if ...]`."""
        start = self._advance()  # consume 'if'
        condition = self._parse_expression()
        then_branch = self._parse_block()

        else_branch = None
        if self._match(TokenType.ELSE):
            if self._check(TokenType.IF):
                nested = self._parse_if_expr()
                else_branch = Block(
                    span=nested.span,
                    statements=[ExpressionStatement(span=nested.span, expression=nested)]
                )
            else:
                else_branch = self._parse_block()

        return IfExpr(
            span=self._span_from(start),
            condition=condition,
            then_branch=then_branch,
            else_branch=else_branch
        )

    def _parse_parameters(self) -> List[str]:
        """Parse a parenthesized parameter-name list."""
        self._consume(TokenType.LPAREN, "'('")
        parameters = []
        if self._match(TokenType.RPAREN):
            return parameters

        parameters.append(self._consume(TokenType.IDENTIFIER, "parameter name").value)
        while self._match(TokenType.COMMA):
            parameters.append(self._consume(TokenType.IDENTIFIER, "parameter name").value)

        self._consume(TokenType.RPAREN, "')'")
        return parameters

    def _parse_function_literal(self) -> FunctionLiteral:
        """Parse an anonymous function `fn(params) { body }`."""
        start = self._advance()  # consume 'fn'
        parameters = self._parse_parameters()
        body = self._parse_block()
        return FunctionLiteral(
            span=self._span_from(start),
            parameters=parameters,
            body=body
        )

    # =========================================================================
    # Statement Parsing
    # =========================================================================

    def _parse_statement(self) -> Statement:
        """Parse a single statement."""
        token = self._current()

        if token.type == TokenType.LET:
            return self._parse_let_statement()
        if token.type == TokenType.RETURN:
            return self._parse_return_statement()
        if token.type == TokenType.PRINT:
            return self._parse_print_statement()
        if token.type == TokenType.FN and self._peek(1).type == TokenType.IDENTIFIER:
            return self._parse_named_function()
        if token.type == TokenType.LBRACE:
            return self._parse_block()
        if token.type == TokenType.IF:
            return self._parse_if_statement()

        return self._parse_expression_statement()

    def _parse_let_statement(self) -> LetStatement:
        """Parse `let name = value;`."""
        start = self._advance()  # consume 'let'
        name = self._consume(TokenType.IDENTIFIER, "identifier").value
        self._consume(TokenType.ASSIGN, "'='")
        value = self._parse_expression()
        self._match(TokenType.SEMICOLON)

        return LetStatement(span=self._span_from(start), name=name, value=value)

    def _parse_named_function(self) -> LetStatement:
        """Parse `fn name(params) { body }` as `let name = fn(params) { body };`."""
        start = self._advance()  # consume 'fn'
        name = self._advance().value
        parameters = self._parse_parameters()
        body = self._parse_block()
        self._match(TokenType.SEMICOLON)

        function = FunctionLiteral(
            span=self._span_from(start),
            parameters=parameters,
            body=body
        )
        return LetStatement(span=function.span, name=name, value=function)

    def _parse_return_statement(self) -> ReturnStatement:
        """Parse a return statement."""
        start = self._advance()  # consume 'return'

        value = None
        if not (self._check(TokenType.SEMICOLON) or self._check(TokenType.RBRACE)
                or self._is_at_end()):
            value = self._parse_expression()
        self._match(TokenType.SEMICOLON)

        return ReturnStatement(span=self._span_from(start), value=value)

    def _parse_print_statement(self) -> PrintStatement:
        """Parse `print value;`."""
        start = self._advance()  # consume 'print'
        value = self._parse_expression()
        self._match(TokenType.SEMICOLON)

        return PrintStatement(span=self._span_from(start), value=value)

    def _parse_if_statement(self) -> ExpressionStatement:
        """Parse an `if` in statement position; it ends at its last block."""
        start = self._current()
        expression = self._parse_if_expr()
        self._match(TokenType.SEMICOLON)
        return ExpressionStatement(span=self._span_from(start), expression=expression)

    def _parse_expression_statement(self) -> ExpressionStatement:
        start = self._current()
        expression = self._parse_expression()
        self._match(TokenType.SEMICOLON)
        return ExpressionStatement(span=self._span_from(start), expression=expression)

    def _parse_block(self) -> Block:
        """Parse a brace-delimited block."""
        start = self._consume(TokenType.LBRACE, "'{'")
        statements = []

        while not self._check(TokenType.RBRACE) and not self._is_at_end():
            statements.append(self._parse_statement())

        self._consume(TokenType.RBRACE, "'}'")

        return Block(span=self._span_from(start), statements=statements)

    def parse_program(self) -> Program:
        """Parse every statement up to EOF, collecting syntax errors."""
        start = self._current()
        statements = []

        while not self._is_at_end():
            stmt_start = self._current()
            stmt_pos = self.pos
            try:
                statements.append(self._parse_statement())
                continue
            except ParserError as e:
                error = e
            except RecursionError:
                logger.debug("statement at %s nests too deeply", stmt_start.span.start)
                error = error_nesting_too_deep(stmt_start, self._source_line(stmt_start))

            self.diagnostics.add_error(error)
            if self.diagnostics.should_stop:
                logger.debug("stopping after %d parse errors", self.diagnostics.error_count)
                break
            self._synchronize(stmt_pos)

        logger.debug("parsed %d statement(s) with %d error(s)",
                     len(statements), self.diagnostics.error_count)
        return Program(span=self._span_from(start), statements=statements)


def parse(source: str, filename: Optional[str] = None,
          max_errors: int = 20) -> Tuple[Program, List[ParserError]]:
    """
    Convenience function to parse source text.

    Args:
        source: The source code to parse
        filename: Optional filename for diagnostics
        max_errors: Stop collecting after this many syntax errors

    Returns:
        The parsed Program and the (possibly empty) list of syntax errors.
        The Program holds every statement that parsed cleanly.
    """
    parser = Parser(tokenize(source, filename), filename, source, max_errors)
    program = parser.parse_program()
    return program, list(parser.diagnostics.errors)
