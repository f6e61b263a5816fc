"""
Sable runtime - tree-walking evaluation.

This module provides:
- Interpreter: Evaluates programs against an Environment
- Value: Runtime values tagged with their ValueType
- Environment: Scope chain used for lookups and closures
- BuiltinRegistry: The built-in functions (len, first, last, rest, push)
"""

from .values import (
    Value,
    ValueType,
    UserFunction,
    NULL,
    TRUE,
    FALSE,
    int_val,
    bool_val,
    string_val,
    array_val,
    function_val,
    builtin_val,
    return_val,
    error_val,
    values_equal,
    render,
)

from .environment import (
    Environment,
)

from .builtins import (
    BuiltinFunction,
    BuiltinRegistry,
    get_builtin_registry,
    call_builtin,
)

from .interpreter import (
    Interpreter,
    ExecutionResult,
    evaluate,
    run_source,
)

__all__ = [
    # Values
    'Value',
    'ValueType',
    'UserFunction',
    'NULL',
    'TRUE',
    'FALSE',
    'int_val',
    'bool_val',
    'string_val',
    'array_val',
    'function_val',
    'builtin_val',
    'return_val',
    'error_val',
    'values_equal',
    'render',

    # Environment
    'Environment',

    # Builtins
    'BuiltinFunction',
    'BuiltinRegistry',
    'get_builtin_registry',
    'call_builtin',

    # Interpreter
    'Interpreter',
    'ExecutionResult',
    'evaluate',
    'run_source',
]
