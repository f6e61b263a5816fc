"""
Runtime values for the Sable interpreter.

Every runtime value is a `Value` whose `type` tag selects how `data` is
interpreted:

    INTEGER   int (signed 64-bit range)
    BOOLEAN   bool
    STRING    str
    ARRAY     tuple of Values (never mutated; built-ins return new arrays)
    FUNCTION  UserFunction (parameters, body, captured Environment)
    BUILTIN   str, the built-in's name
    NULL      None
    RETURN    the Value being returned (transient, never bound)
    ERROR     str, the error message
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from ..ast import Block
    from .environment import Environment


INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class ValueType(Enum):
    """Tags for the runtime value union."""
    INTEGER = "INTEGER"
    BOOLEAN = "BOOLEAN"
    STRING = "STRING"
    ARRAY = "ARRAY"
    FUNCTION = "FUNCTION"
    BUILTIN = "BUILTIN"
    NULL = "NULL"
    RETURN = "RETURN"
    ERROR = "ERROR"


@dataclass(eq=False)
class UserFunction:
    """A function literal closed over the environment it was evaluated in."""
    parameters: List[str]
    body: "Block"
    env: "Environment"


@dataclass(eq=False)
class Value:
    """
    A runtime value with its type tag.

    Equality between values is `values_equal`, not `==`; `==` on Value
    objects is identity.
    """
    data: Any
    type: ValueType

    def __repr__(self) -> str:
        return f"Value({self.data!r}, {self.type.name})"

    def is_truthy(self) -> bool:
        """Only false and nil are falsy; zero and empty collections are truthy."""
        if self.type == ValueType.NULL:
            return False
        if self.type == ValueType.BOOLEAN:
            return bool(self.data)
        return True

    @property
    def is_error(self) -> bool:
        return self.type == ValueType.ERROR


NULL = Value(None, ValueType.NULL)
TRUE = Value(True, ValueType.BOOLEAN)
FALSE = Value(False, ValueType.BOOLEAN)


# Convenience constructors

def int_val(n: int) -> Value:
    """Create an integer value."""
    return Value(int(n), ValueType.INTEGER)


def bool_val(b: bool) -> Value:
    """Return the shared boolean value."""
    return TRUE if b else FALSE


def string_val(s: str) -> Value:
    """Create a string value."""
    return Value(str(s), ValueType.STRING)


def array_val(items: Sequence[Value]) -> Value:
    """Create an array value from a sequence of Values."""
    return Value(tuple(items), ValueType.ARRAY)


def function_val(function: UserFunction) -> Value:
    return Value(function, ValueType.FUNCTION)


def builtin_val(name: str) -> Value:
    return Value(name, ValueType.BUILTIN)


def return_val(inner: Value) -> Value:
    """Wrap a value in the signal that unwinds blocks up to the enclosing call."""
    return Value(inner, ValueType.RETURN)


def error_val(message: str) -> Value:
    """Create an error value."""
    return Value(message, ValueType.ERROR)


def fits_int64(n: int) -> bool:
    return INT64_MIN <= n <= INT64_MAX


def values_equal(a: Value, b: Value) -> bool:
    """
    Equality used by `==` and `!=`.

    Values of different types are never equal. Integers, booleans,
    strings and nil compare by value, built-ins by name, arrays and
    functions by identity.
    """
    if a.type != b.type:
        return False
    if a.type in (ValueType.INTEGER, ValueType.BOOLEAN, ValueType.STRING,
                  ValueType.NULL, ValueType.BUILTIN, ValueType.ERROR):
        return a.data == b.data
    return a is b


def render(value: Value) -> str:
    """Render a value the way print and the REPL show it."""
    if value.type == ValueType.INTEGER:
        return str(value.data)
    if value.type == ValueType.BOOLEAN:
        return "true" if value.data else "false"
    if value.type == ValueType.STRING:
        return value.data
    if value.type == ValueType.NULL:
        return "nil"
    if value.type == ValueType.ARRAY:
        return "[" + ", ".join(render(v) for v in value.data) + "]"
    if value.type == ValueType.FUNCTION:
        return f"fn({', '.join(value.data.parameters)}) {{...}}"
    if value.type == ValueType.BUILTIN:
        return f"builtin function {value.data}"
    if value.type == ValueType.RETURN:
        return render(value.data)
    if value.type == ValueType.ERROR:
        return f"ERROR: {value.data}"
    raise ValueError(f"Unknown value type: {value.type}")
