"""
Lexical environments for the Sable interpreter.

An Environment maps names to values and links to the environment that
encloses it. Function values hold on to the environment they were
created in, so a chain stays alive for as long as any closure can still
reach it. Links only ever point at environments that already exist,
which keeps the chain acyclic.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional

from .values import Value
from ..errors import UnboundIdentifierError


@dataclass(eq=False)
class Environment:
    """
    A single scope containing variable bindings.

    Scopes form a chain via the `enclosing` field. A REPL keeps one root
    Environment for the whole session so top-level bindings persist
    between input lines.
    """
    bindings: Dict[str, Value] = field(default_factory=dict)
    enclosing: Optional["Environment"] = None
    name: str = "global"  # For debugging

    def get(self, name: str) -> Optional[Value]:
        """Look up a variable in this scope or enclosing scopes."""
        for scope in self.chain():
            if name in scope.bindings:
                return scope.bindings[name]
        return None

    def resolve(self, name: str) -> Value:
        """Look up a variable, raising UnboundIdentifierError if it is bound nowhere."""
        value = self.get(name)
        if value is None:
            raise UnboundIdentifierError(name)
        return value

    def define(self, name: str, value: Value) -> None:
        """Bind a name in this scope, shadowing any enclosing binding."""
        self.bindings[name] = value

    def contains(self, name: str) -> bool:
        """Check if a variable exists in this scope or enclosing scopes."""
        return self.get(name) is not None

    def child_scope(self, name: str = "call") -> "Environment":
        """Create a new scope whose enclosing link is this one."""
        return Environment(enclosing=self, name=name)

    def chain(self) -> Iterator["Environment"]:
        """Yield this scope, then each enclosing scope outwards."""
        scope: Optional[Environment] = self
        while scope is not None:
            yield scope
            scope = scope.enclosing

    @property
    def depth(self) -> int:
        """Number of enclosing links between this scope and the root."""
        return sum(1 for _ in self.chain()) - 1

    def __repr__(self) -> str:
        names = ", ".join(sorted(self.bindings))
        return f"Environment({self.name!r}, [{names}], depth={self.depth})"
