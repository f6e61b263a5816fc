"""
Built-in function registry for the Sable interpreter.

Each built-in checks its own arity and argument types and reports misuse
by returning an Error value; built-ins never raise.

    len(x)         length of a string or array
    first(x)       first element of an array (first character of a string)
    last(x)        last element of an array (last character of a string)
    rest(x)        all but the first element / character
    push(arr, v)   a new array with v appended; arr is left untouched

first, last and rest return nil for an empty array or string.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .values import (
    Value, ValueType, NULL,
    int_val, string_val, array_val, error_val,
)


@dataclass
class BuiltinFunction:
    """
    A built-in function with its implementation and arity.
    """
    name: str
    arity: int
    implementation: Callable[..., Value]
    doc: str = ""

    def __call__(self, args: List[Value]) -> Value:
        if len(args) != self.arity:
            return error_val(
                f"wrong number of arguments: expected {self.arity}, got {len(args)}"
            )
        return self.implementation(*args)


def _unsupported(name: str, arg: Value) -> Value:
    return error_val(f'argument to "{name}" not supported, got {arg.type.value}')


class BuiltinRegistry:
    """
    Registry of all built-in functions.

    Functions are registered by name and can be looked up for execution.
    """

    def __init__(self):
        self._functions: Dict[str, BuiltinFunction] = {}
        self._register_all()

    def get_function(self, name: str) -> Optional[BuiltinFunction]:
        """Look up a function by name."""
        return self._functions.get(name)

    def register(self, func: BuiltinFunction) -> None:
        """Register a function."""
        self._functions[func.name] = func

    def names(self) -> List[str]:
        return sorted(self._functions)

    def _register_all(self) -> None:
        """Register all built-in functions."""
        self._register_sequence_functions()

    # --- Sequence Functions ---

    def _register_sequence_functions(self) -> None:
        """Register functions over strings and arrays."""

        def _len(x: Value) -> Value:
            if x.type in (ValueType.STRING, ValueType.ARRAY):
                return int_val(len(x.data))
            return _unsupported("len", x)

        def _first(x: Value) -> Value:
            if x.type == ValueType.ARRAY:
                return x.data[0] if x.data else NULL
            if x.type == ValueType.STRING:
                return string_val(x.data[0]) if x.data else NULL
            return _unsupported("first", x)

        def _last(x: Value) -> Value:
            if x.type == ValueType.ARRAY:
                return x.data[-1] if x.data else NULL
            if x.type == ValueType.STRING:
                return string_val(x.data[-1]) if x.data else NULL
            return _unsupported("last", x)

        def _rest(x: Value) -> Value:
            if x.type == ValueType.ARRAY:
                return array_val(x.data[1:]) if x.data else NULL
            if x.type == ValueType.STRING:
                return string_val(x.data[1:]) if x.data else NULL
            return _unsupported("rest", x)

        def _push(arr: Value, item: Value) -> Value:
            if arr.type != ValueType.ARRAY:
                return _unsupported("push", arr)
            return array_val(arr.data + (item,))

        sequence_funcs = [
            ("len", 1, _len, "Length of a string or array."),
            ("first", 1, _first, "First element of an array or string."),
            ("last", 1, _last, "Last element of an array or string."),
            ("rest", 1, _rest, "Everything after the first element."),
            ("push", 2, _push, "New array with a value appended."),
        ]

        for name, arity, impl, doc in sequence_funcs:
            self.register(BuiltinFunction(name, arity, impl, doc))


# Global singleton registry
_registry: Optional[BuiltinRegistry] = None


def get_builtin_registry() -> BuiltinRegistry:
    """Get the global built-in function registry."""
    global _registry
    if _registry is None:
        _registry = BuiltinRegistry()
    return _registry


def call_builtin(name: str, args: List[Value]) -> Value:
    """
    Call a built-in function by name.

    Returns an Error value if the function is not found.
    """
    registry = get_builtin_registry()
    func = registry.get_function(name)
    if func is None:
        return error_val(f"unknown built-in function: {name}")
    return func(args)
