"""
Tree-walking interpreter for Sable.

Evaluates AST nodes against an Environment to produce Values. Runtime
errors are Error values rather than exceptions: every step that evaluates
a sub-node checks for an Error or a return signal and hands it straight
back, so either one unwinds the enclosing blocks untouched.
"""

import logging
from dataclasses import dataclass, field
from typing import IO, List, Optional

from .values import (
    Value, ValueType, UserFunction, NULL, TRUE, FALSE,
    int_val, bool_val, string_val, array_val, function_val, builtin_val,
    return_val, error_val, fits_int64, values_equal, render,
)
from .environment import Environment
from .builtins import BuiltinRegistry, get_builtin_registry

from ..ast import (
    AstNode, Program,
    Statement, LetStatement, ReturnStatement, PrintStatement,
    ExpressionStatement, Block,
    Expression, Literal, Identifier, ArrayLiteral, UnaryOp, BinaryOp,
    IfExpr, FunctionLiteral, FunctionCall, IndexAccess,
    OPERATOR_SYMBOLS,
)
from ..config import SableConfig
from ..errors import ParserError, UnboundIdentifierError
from ..parser import parse
from ..tokens import TokenType

logger = logging.getLogger(__name__)

_ABRUPT = (ValueType.RETURN, ValueType.ERROR)

_COMPARISONS = {
    TokenType.LT: lambda a, b: a < b,
    TokenType.GT: lambda a, b: a > b,
    TokenType.LE: lambda a, b: a <= b,
    TokenType.GE: lambda a, b: a >= b,
}


def _is_abrupt(value: Value) -> bool:
    return value.type in _ABRUPT


@dataclass
class ExecutionResult:
    """Result of running a piece of source text."""
    value: Optional[Value] = None
    parse_errors: List[ParserError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True if the source parsed cleanly and did not evaluate to an Error."""
        return not self.parse_errors and self.value is not None and not self.value.is_error


class Interpreter:
    """
    Tree-walking interpreter for Sable.

    Statements go through `_execute`, expressions through `_evaluate`; both
    dispatch on the node class and always return a Value.
    """

    def __init__(self, config: Optional[SableConfig] = None,
                 output: Optional[IO[str]] = None,
                 registry: Optional[BuiltinRegistry] = None):
        """
        Initialize the interpreter.

        Args:
            config: Limits to enforce (defaults to SableConfig())
            output: Stream `print` writes to (defaults to sys.stdout at write time)
            registry: Built-in functions visible to programs
        """
        self.config = config or SableConfig()
        self.output = output
        self.registry = registry or get_builtin_registry()
        self._call_depth = 0

    def evaluate(self, node: AstNode, env: Environment) -> Value:
        """
        Evaluate a Program, statement or expression in `env`.

        A top-level `return` yields its value, so the result is never a
        return signal. Exhausting the host stack yields an Error value.
        """
        self._call_depth = 0
        try:
            if isinstance(node, Expression):
                result = self._evaluate(node, env)
            else:
                result = self._execute(node, env)
        except RecursionError:
            logger.debug("host recursion limit reached")
            return error_val("stack overflow: maximum recursion depth exceeded")

        if result.type == ValueType.RETURN:
            return result.data
        return result

    # =========================================================================
    # Statements
    # =========================================================================

    def _execute(self, stmt: AstNode, env: Environment) -> Value:
        """Execute a statement, block or program."""
        if isinstance(stmt, Program):
            return self._execute_statements(stmt.statements, env)
        elif isinstance(stmt, Block):
            return self._execute_statements(stmt.statements, env)
        elif isinstance(stmt, LetStatement):
            return self._execute_let(stmt, env)
        elif isinstance(stmt, ReturnStatement):
            return self._execute_return(stmt, env)
        elif isinstance(stmt, PrintStatement):
            return self._execute_print(stmt, env)
        elif isinstance(stmt, ExpressionStatement):
            return self._evaluate(stmt.expression, env)
        else:
            raise RuntimeError(f"Unknown statement type: {type(stmt).__name__}")

    def _execute_statements(self, statements: List[Statement], env: Environment) -> Value:
        """Run statements in order; stop at the first return signal or Error."""
        result = NULL
        for stmt in statements:
            result = self._execute(stmt, env)
            if _is_abrupt(result):
                return result
        return result

    def _execute_let(self, stmt: LetStatement, env: Environment) -> Value:
        value = self._evaluate(stmt.value, env)
        if _is_abrupt(value):
            return value
        env.define(stmt.name, value)
        return NULL

    def _execute_return(self, stmt: ReturnStatement, env: Environment) -> Value:
        """Wrap the returned value so enclosing blocks stop running."""
        if stmt.value is None:
            return return_val(NULL)
        value = self._evaluate(stmt.value, env)
        if _is_abrupt(value):
            return value
        return return_val(value)

    def _execute_print(self, stmt: PrintStatement, env: Environment) -> Value:
        value = self._evaluate(stmt.value, env)
        if _is_abrupt(value):
            return value
        print(render(value), file=self.output)
        return NULL

    # =========================================================================
    # Expressions
    # =========================================================================

    def _evaluate(self, expr: Expression, env: Environment) -> Value:
        """Evaluate an expression to produce a Value."""
        if isinstance(expr, Literal):
            return self._eval_literal(expr)
        elif isinstance(expr, Identifier):
            return self._eval_identifier(expr, env)
        elif isinstance(expr, BinaryOp):
            return self._eval_binary_op(expr, env)
        elif isinstance(expr, UnaryOp):
            return self._eval_unary_op(expr, env)
        elif isinstance(expr, FunctionCall):
            return self._eval_function_call(expr, env)
        elif isinstance(expr, IndexAccess):
            return self._eval_index_access(expr, env)
        elif isinstance(expr, ArrayLiteral):
            return self._eval_array_literal(expr, env)
        elif isinstance(expr, IfExpr):
            return self._eval_if_expr(expr, env)
        elif isinstance(expr, FunctionLiteral):
            return function_val(UserFunction(list(expr.parameters), expr.body, env))
        else:
            raise RuntimeError(f"Unknown expression type: {type(expr).__name__}")

    def _eval_literal(self, lit: Literal) -> Value:
        """Evaluate a literal value."""
        if lit.literal_type == TokenType.INT_LITERAL:
            return int_val(lit.value)
        elif lit.literal_type == TokenType.STRING_LITERAL:
            return string_val(lit.value)
        elif lit.literal_type == TokenType.BOOL_LITERAL:
            return bool_val(lit.value)
        elif lit.literal_type == TokenType.NIL_LITERAL:
            return NULL
        else:
            raise RuntimeError(f"Unknown literal type: {lit.literal_type}")

    def _eval_identifier(self, ident: Identifier, env: Environment) -> Value:
        """Look the name up in the environment chain, then among the built-ins."""
        try:
            return env.resolve(ident.name)
        except UnboundIdentifierError as e:
            if self.registry.get_function(ident.name) is not None:
                return builtin_val(ident.name)
            return error_val(str(e))

    def _eval_array_literal(self, arr: ArrayLiteral, env: Environment) -> Value:
        elements = []
        for element in arr.elements:
            value = self._evaluate(element, env)
            if _is_abrupt(value):
                return value
            elements.append(value)
        return array_val(elements)

    def _eval_unary_op(self, op: UnaryOp, env: Environment) -> Value:
        """Evaluate a prefix operation."""
        operand = self._evaluate(op.operand, env)
        if _is_abrupt(operand):
            return operand

        if op.operator == TokenType.BANG:
            return bool_val(not operand.is_truthy())

        if op.operator == TokenType.MINUS:
            if operand.type != ValueType.INTEGER:
                return error_val(f"unknown operator: -{operand.type.value}")
            return self._checked_int(-operand.data)

        raise RuntimeError(f"Unknown unary operator: {op.operator}")

    def _eval_binary_op(self, op: BinaryOp, env: Environment) -> Value:
        """Evaluate an infix operation."""
        left = self._evaluate(op.left, env)
        if _is_abrupt(left):
            return left

        # Short-circuit for logical operators
        if op.operator == TokenType.AND and not left.is_truthy():
            return FALSE
        if op.operator == TokenType.OR and left.is_truthy():
            return TRUE

        right = self._evaluate(op.right, env)
        if _is_abrupt(right):
            return right

        if op.operator in (TokenType.AND, TokenType.OR):
            return bool_val(right.is_truthy())

        return self._apply_infix(op.operator, left, right)

    def _apply_infix(self, operator: TokenType, left: Value, right: Value) -> Value:
        """Dispatch an infix operator on the runtime kinds of its operands."""
        if operator == TokenType.EQ:
            return bool_val(values_equal(left, right))
        if operator == TokenType.NE:
            return bool_val(not values_equal(left, right))

        symbol = OPERATOR_SYMBOLS[operator]
        if left.type != right.type:
            return error_val(f"type mismatch: {left.type.value} {symbol} {right.type.value}")

        if left.type == ValueType.INTEGER:
            return self._integer_infix(operator, left.data, right.data)

        if left.type == ValueType.STRING and operator == TokenType.PLUS:
            return string_val(left.data + right.data)

        return error_val(f"unknown operator: {left.type.value} {symbol} {right.type.value}")

    def _integer_infix(self, operator: TokenType, a: int, b: int) -> Value:
        if operator in _COMPARISONS:
            return bool_val(_COMPARISONS[operator](a, b))
        if operator == TokenType.PLUS:
            return self._checked_int(a + b)
        if operator == TokenType.MINUS:
            return self._checked_int(a - b)
        if operator == TokenType.STAR:
            return self._checked_int(a * b)
        if operator == TokenType.SLASH:
            if b == 0:
                return error_val("division by zero")
            # Truncate toward zero
            quotient = abs(a) // abs(b)
            if (a < 0) != (b < 0):
                quotient = -quotient
            return self._checked_int(quotient)
        raise RuntimeError(f"Unknown binary operator: {operator}")

    @staticmethod
    def _checked_int(n: int) -> Value:
        if not fits_int64(n):
            return error_val("integer overflow")
        return int_val(n)

    def _eval_if_expr(self, expr: IfExpr, env: Environment) -> Value:
        """Evaluate the chosen branch; nil when no branch runs."""
        condition = self._evaluate(expr.condition, env)
        if _is_abrupt(condition):
            return condition

        if condition.is_truthy():
            return self._execute(expr.then_branch, env)
        if expr.else_branch is not None:
            return self._execute(expr.else_branch, env)
        return NULL

    def _eval_function_call(self, call: FunctionCall, env: Environment) -> Value:
        """Evaluate the callee, then the arguments left to right in the caller's scope."""
        callee = self._evaluate(call.callee, env)
        if _is_abrupt(callee):
            return callee

        args = []
        for arg in call.arguments:
            value = self._evaluate(arg, env)
            if _is_abrupt(value):
                return value
            args.append(value)

        return self.apply_function(callee, args)

    def apply_function(self, callee: Value, args: List[Value]) -> Value:
        """Call a function or built-in value with already-evaluated arguments."""
        if callee.type == ValueType.BUILTIN:
            builtin = self.registry.get_function(callee.data)
            if builtin is None:
                return error_val(f"unknown built-in function: {callee.data}")
            return builtin(args)

        if callee.type != ValueType.FUNCTION:
            return error_val(f"not a function: {callee.type.value}")

        function: UserFunction = callee.data
        if len(args) != len(function.parameters):
            return error_val(
                f"wrong number of arguments: expected {len(function.parameters)}, got {len(args)}"
            )

        if self._call_depth >= self.config.max_call_depth:
            logger.debug("call depth limit %d reached", self.config.max_call_depth)
            return error_val(
                f"stack overflow: maximum call depth of {self.config.max_call_depth} exceeded"
            )

        # Closures see the scope they were defined in, not the caller's
        call_env = function.env.child_scope()
        for name, value in zip(function.parameters, args):
            call_env.define(name, value)

        self._call_depth += 1
        try:
            result = self._execute(function.body, call_env)
        finally:
            self._call_depth -= 1

        if result.type == ValueType.RETURN:
            return result.data
        return result

    def _eval_index_access(self, expr: IndexAccess, env: Environment) -> Value:
        """Evaluate arr[i]; an index outside the array is nil."""
        obj = self._evaluate(expr.object, env)
        if _is_abrupt(obj):
            return obj
        index = self._evaluate(expr.index, env)
        if _is_abrupt(index):
            return index

        if obj.type != ValueType.ARRAY:
            return error_val(f"index operator not supported: {obj.type.value}")
        if index.type != ValueType.INTEGER:
            return error_val(f"array index must be INTEGER, got {index.type.value}")

        i = index.data
        if i < 0 or i >= len(obj.data):
            return NULL
        return obj.data[i]


def evaluate(program: AstNode, env: Optional[Environment] = None,
             output: Optional[IO[str]] = None,
             config: Optional[SableConfig] = None) -> Value:
    """
    Evaluate a parsed program.

    Pass the same `env` on every call to keep bindings between calls, the
    way a REPL session does. Without one a fresh root Environment is used.
    """
    if env is None:
        env = Environment()
    return Interpreter(config=config, output=output).evaluate(program, env)


def run_source(source: str, env: Optional[Environment] = None,
               output: Optional[IO[str]] = None,
               config: Optional[SableConfig] = None,
               filename: Optional[str] = None) -> ExecutionResult:
    """
    Parse and evaluate source text in one step.

    Example:
        result = run_source("let x = 2; x * 21")
        if result.success:
            print(render(result.value))

    Nothing is evaluated when the source has syntax errors.
    """
    config = config or SableConfig()
    program, errors = parse(source, filename, max_errors=config.max_errors)
    if errors:
        return ExecutionResult(parse_errors=errors)
    return ExecutionResult(value=evaluate(program, env, output, config))
