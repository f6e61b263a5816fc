"""
Sable - a small dynamically-typed scripting language.

This module provides:
- Lexer: Tokenizes Sable source code
- Parser: Builds an AST from tokens, collecting syntax errors
- Interpreter: Evaluates programs with closures and built-ins
- Config: YAML-backed interpreter settings

Usage:
    from sable import parse, evaluate, render, Environment

    program, errors = parse('let newAdder = fn(x) { fn(y) { x + y } };')
    env = Environment()
    evaluate(program, env)

    # The same env keeps its bindings between calls
    program, errors = parse('newAdder(2)(3);')
    print(render(evaluate(program, env)))   # 5
"""

import logging

from .tokens import (
    Token,
    TokenType,
    SourceLocation,
    SourceSpan,
    KEYWORDS,
)

from .lexer import (
    Lexer,
    tokenize,
    render_tokens,
)

from .parser import (
    Parser,
    parse,
)

from .ast import (
    # Base
    AstNode,
    AstVisitor,
    # Expressions
    Expression,
    Literal,
    Identifier,
    ArrayLiteral,
    UnaryOp,
    BinaryOp,
    IfExpr,
    FunctionLiteral,
    FunctionCall,
    IndexAccess,
    # Statements
    Statement,
    LetStatement,
    ReturnStatement,
    PrintStatement,
    ExpressionStatement,
    Block,
    Program,
    # Printing
    format_node,
    print_ast,
)

from .errors import (
    SableError,
    ParserError,
    UnboundIdentifierError,
    ConfigError,
    Diagnostic,
    DiagnosticCollector,
    ErrorSeverity,
)

from .config import (
    SableConfig,
    load_config,
)

from .runtime import (
    Interpreter,
    ExecutionResult,
    evaluate,
    run_source,
    Value,
    ValueType,
    Environment,
    render,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    # Tokens
    'Token',
    'TokenType',
    'SourceLocation',
    'SourceSpan',
    'KEYWORDS',

    # Lexer
    'Lexer',
    'tokenize',
    'render_tokens',

    # Parser
    'Parser',
    'parse',

    # AST nodes
    'AstNode',
    'AstVisitor',
    'Expression',
    'Literal',
    'Identifier',
    'ArrayLiteral',
    'UnaryOp',
    'BinaryOp',
    'IfExpr',
    'FunctionLiteral',
    'FunctionCall',
    'IndexAccess',
    'Statement',
    'LetStatement',
    'ReturnStatement',
    'PrintStatement',
    'ExpressionStatement',
    'Block',
    'Program',
    'format_node',
    'print_ast',

    # Errors
    'SableError',
    'ParserError',
    'UnboundIdentifierError',
    'ConfigError',
    'Diagnostic',
    'DiagnosticCollector',
    'ErrorSeverity',

    # Config
    'SableConfig',
    'load_config',

    # Runtime
    'Interpreter',
    'ExecutionResult',
    'evaluate',
    'run_source',
    'Value',
    'ValueType',
    'Environment',
    'render',
]
