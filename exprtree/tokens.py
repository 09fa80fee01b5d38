"""
exprtree v0.1 - Token Model
Tagged token variants flowing through the lexer, the parser and the tree.
"""

from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Any, Callable, Optional, Union


VARIABLE_PARAMETERS = -1


class OperatorType(Enum):
    PREFIX    = auto()   # -x
    POSTFIX   = auto()   # x!
    INFIX     = auto()   # x + y, grouped left to right
    INFIX_RTL = auto()   # x ^ y, grouped right to left


class Associativity(Enum):
    LEFT  = auto()
    RIGHT = auto()
    NO    = auto()


# ── Operations ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class GreedyOperation:
    """fn(operands) -> value; every child is evaluated before the call."""
    fn: Callable[[list], Any]

    def __call__(self, operands: list) -> Any:
        return self.fn(operands)


@dataclass(frozen=True)
class LazyOperation:
    """fn(expression, nodes, variables) -> value; fn evaluates children itself."""
    fn: Callable[[Any, list, dict], Any]

    def __call__(self, expression, nodes: list, variables: dict) -> Any:
        return self.fn(expression, nodes, variables)


Operation = Union[GreedyOperation, LazyOperation]


# ── Tokens ────────────────────────────────────────────────────────────────────

class Token:
    """Marker base class for all token variants."""


@dataclass(frozen=True)
class Operand(Token):
    value: Any
    position: int = field(default=-1, compare=False, repr=False)


@dataclass(frozen=True)
class Variable(Token):
    label: str
    position: int = field(default=-1, compare=False, repr=False)


@dataclass(frozen=True)
class Operator(Token):
    label: str
    type: OperatorType
    precedence: int
    associativity: Associativity
    operation: Operation
    position: int = field(default=-1, compare=False, repr=False)

    @property
    def arity(self) -> int:
        return 2 if self.is_binary else 1

    @property
    def is_binary(self) -> bool:
        return self.type in (OperatorType.INFIX, OperatorType.INFIX_RTL)

    @property
    def is_prefix(self) -> bool:
        return self.type == OperatorType.PREFIX

    @property
    def is_postfix(self) -> bool:
        return self.type == OperatorType.POSTFIX

    @property
    def groups_right(self) -> bool:
        return self.type == OperatorType.INFIX_RTL or self.associativity == Associativity.RIGHT


@dataclass(frozen=True)
class Function(Token):
    label: str
    parameters: int
    operation: Operation
    # Argument count realised in the source text; set by the parser.
    arguments: Optional[int] = field(default=None, compare=False)
    position: int = field(default=-1, compare=False, repr=False)

    @property
    def arity(self) -> int:
        if self.arguments is not None:
            return self.arguments
        return self.parameters

    @property
    def is_variadic(self) -> bool:
        return self.parameters == VARIABLE_PARAMETERS


@dataclass(frozen=True)
class Punctuation(Token):
    """Structural '(' ')' ','. Never placed in the expression tree."""
    symbol: str
    position: int = field(default=-1, compare=False, repr=False)

    @property
    def is_open(self) -> bool:
        return self.symbol == LPAREN

    @property
    def is_close(self) -> bool:
        return self.symbol == RPAREN

    @property
    def is_separator(self) -> bool:
        return self.symbol == SEPARATOR


LPAREN    = "("
RPAREN    = ")"
SEPARATOR = ","
STRUCTURAL = frozenset((LPAREN, RPAREN, SEPARATOR))


def at_position(token: Token, position: int) -> Token:
    """Copy of a dictionary template stamped with its source position."""
    return replace(token, position=position)
