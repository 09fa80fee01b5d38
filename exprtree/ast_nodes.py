"""
exprtree v0.1 - Expression Tree Nodes
"""

from dataclasses import dataclass, field
from typing import List

from .tokens import Function, Operator, Token


@dataclass
class Node:
    """A token plus, for operators and functions, its ordered operands."""
    token: Token
    children: List["Node"] = field(default_factory=list)

    @property
    def accepts_children(self) -> bool:
        return isinstance(self.token, (Operator, Function))

    @property
    def arity(self) -> int:
        if self.accepts_children:
            return self.token.arity
        return 0

    @property
    def is_complete(self) -> bool:
        token = self.token
        if isinstance(token, Function) and token.is_variadic and token.arguments is None:
            return True
        return len(self.children) == self.arity
