"""
Abstract Syntax Tree (AST) node definitions for Sable.

A Program is an ordered list of statements. Statements are let-bindings,
returns, prints, blocks and expression statements; everything else,
including `if`, is an expression.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Union, Any
from abc import ABC
from .tokens import SourceSpan, TokenType


# =============================================================================
# Base Classes
# =============================================================================

@dataclass
class AstNode(ABC):
    """Base class for all AST nodes."""
    span: SourceSpan  # Source location for error reporting

    def accept(self, visitor: "AstVisitor") -> Any:
        """Accept a visitor for traversal."""
        method_name = f"visit_{self.__class__.__name__}"
        method = getattr(visitor, method_name, visitor.generic_visit)
        return method(self)


class AstVisitor(ABC):
    """Base class for AST visitors."""

    def generic_visit(self, node: AstNode) -> Any:
        """Default visit method."""
        raise NotImplementedError(f"No visitor for {node.__class__.__name__}")


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass
class Expression(AstNode):
    """Base class for all expressions."""
    pass


@dataclass
class Literal(Expression):
    """A literal value (integer, string, boolean or nil)."""
    value: Union[int, str, bool, None]
    literal_type: TokenType  # INT_LITERAL, STRING_LITERAL, BOOL_LITERAL, NIL_LITERAL


@dataclass
class Identifier(Expression):
    """A variable or function name reference."""
    name: str


@dataclass
class ArrayLiteral(Expression):
    """An array literal (e.g., [1, 2, 3])."""
    elements: List[Expression]


@dataclass
class UnaryOp(Expression):
    """A prefix operation (e.g., -n, !ok)."""
    operator: TokenType  # MINUS or BANG
    operand: Expression


@dataclass
class BinaryOp(Expression):
    """An infix operation (e.g., a + b, x and y)."""
    left: Expression
    operator: TokenType
    right: Expression


@dataclass
class IfExpr(Expression):
    """An if-else expression; its value is the chosen block's value."""
    condition: Expression
    then_branch: "Block"
    else_branch: Optional["Block"] = None


@dataclass
class FunctionLiteral(Expression):
    """An anonymous function (e.g., fn(x, y) { x + y })."""
    parameters: List[str]
    body: "Block"


@dataclass
class FunctionCall(Expression):
    """A call (e.g., add(1, 2) or fn(x) { x }(5))."""
    callee: Expression
    arguments: List[Expression] = field(default_factory=list)


@dataclass
class IndexAccess(Expression):
    """Index access (e.g., arr[0])."""
    object: Expression
    index: Expression


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass
class Statement(AstNode):
    """Base class for all statements."""
    pass


@dataclass
class LetStatement(Statement):
    """A binding in the current scope (e.g., let x = 5;).

    `fn name(params) { ... }` at statement position is parsed into a
    LetStatement whose value is a FunctionLiteral.
    """
    name: str
    value: Expression


@dataclass
class ReturnStatement(Statement):
    """A return statement; a bare `return;` returns nil."""
    value: Optional[Expression] = None


@dataclass
class PrintStatement(Statement):
    """Write a value's rendering to the interpreter output (e.g., print x;)."""
    value: Expression


@dataclass
class ExpressionStatement(Statement):
    """An expression used as a statement."""
    expression: Expression


@dataclass
class Block(Statement):
    """A brace-delimited block of statements."""
    statements: List[Statement] = field(default_factory=list)


@dataclass
class Program(AstNode):
    """A complete parsed program: the top-level statements in order."""
    statements: List[Statement] = field(default_factory=list)


# =============================================================================
# Visitor Helpers
# =============================================================================

OPERATOR_SYMBOLS = {
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
    TokenType.STAR: "*",
    TokenType.SLASH: "/",
    TokenType.BANG: "!",
    TokenType.LT: "<",
    TokenType.GT: ">",
    TokenType.LE: "<=",
    TokenType.GE: ">=",
    TokenType.EQ: "==",
    TokenType.NE: "!=",
    TokenType.AND: "and",
    TokenType.OR: "or",
}


class SourcePrinter(AstVisitor):
    """Renders nodes back to source text with every operation parenthesized."""

    def visit_Program(self, node: Program) -> str:
        return "\n".join(stmt.accept(self) for stmt in node.statements)

    def visit_LetStatement(self, node: LetStatement) -> str:
        return f"let {node.name} = {node.value.accept(self)};"

    def visit_ReturnStatement(self, node: ReturnStatement) -> str:
        if node.value is None:
            return "return;"
        return f"return {node.value.accept(self)};"

    def visit_PrintStatement(self, node: PrintStatement) -> str:
        return f"print {node.value.accept(self)};"

    def visit_ExpressionStatement(self, node: ExpressionStatement) -> str:
        return f"{node.expression.accept(self)};"

    def visit_Block(self, node: Block) -> str:
        if not node.statements:
            return "{ }"
        body = " ".join(stmt.accept(self) for stmt in node.statements)
        return f"{{ {body} }}"

    def visit_Literal(self, node: Literal) -> str:
        if node.literal_type == TokenType.STRING_LITERAL:
            return f'"{node.value}"'
        if node.literal_type == TokenType.BOOL_LITERAL:
            return "true" if node.value else "false"
        if node.literal_type == TokenType.NIL_LITERAL:
            return "nil"
        return str(node.value)

    def visit_Identifier(self, node: Identifier) -> str:
        return node.name

    def visit_ArrayLiteral(self, node: ArrayLiteral) -> str:
        return "[" + ", ".join(e.accept(self) for e in node.elements) + "]"

    def visit_UnaryOp(self, node: UnaryOp) -> str:
        return f"({OPERATOR_SYMBOLS[node.operator]}{node.operand.accept(self)})"

    def visit_BinaryOp(self, node: BinaryOp) -> str:
        op = OPERATOR_SYMBOLS[node.operator]
        return f"({node.left.accept(self)} {op} {node.right.accept(self)})"

    def visit_IfExpr(self, node: IfExpr) -> str:
        text = f"if {node.condition.accept(self)} {node.then_branch.accept(self)}"
        if node.else_branch is not None:
            text += f" else {node.else_branch.accept(self)}"
        return text

    def visit_FunctionLiteral(self, node: FunctionLiteral) -> str:
        return f"fn({', '.join(node.parameters)}) {node.body.accept(self)}"

    def visit_FunctionCall(self, node: FunctionCall) -> str:
        args = ", ".join(a.accept(self) for a in node.arguments)
        callee = node.callee.accept(self)
        # A leading `if` would read back as an if statement
        if isinstance(node.callee, IfExpr):
            callee = f"({callee})"
        return f"{callee}({args})"

    def visit_IndexAccess(self, node: IndexAccess) -> str:
        return f"({node.object.accept(self)}[{node.index.accept(self)}])"


def format_node(node: AstNode) -> str:
    """Render a node as canonical Sable source."""
    return node.accept(SourcePrinter())


class PrintVisitor(AstVisitor):
    """Debug visitor that prints the AST structure."""

    def __init__(self, indent: int = 0, out=None):
        self.indent = indent
        self.out = out

    def _print(self, text: str) -> None:
        print("  " * self.indent + text, file=self.out)

    def generic_visit(self, node: AstNode) -> None:
        self._print(f"{node.__class__.__name__}")
        for name, value in node.__dict__.items():
            if name == "span":
                continue
            if isinstance(value, AstNode):
                self._print(f"  {name}:")
                PrintVisitor(self.indent + 2, self.out).generic_visit(value)
            elif isinstance(value, list):
                self._print(f"  {name}: [")
                for item in value:
                    if isinstance(item, AstNode):
                        PrintVisitor(self.indent + 2, self.out).generic_visit(item)
                    else:
                        self._print(f"    {item!r}")
                self._print("  ]")
            elif isinstance(value, TokenType):
                self._print(f"  {name}: {value.name}")
            else:
                self._print(f"  {name}: {value!r}")


def print_ast(node: AstNode, out=None) -> None:
    """Print an AST node for debugging."""
    PrintVisitor(out=out).generic_visit(node)
