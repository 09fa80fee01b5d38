"""
exprtree v0.1 - Expression Dictionary
Registry of operators, functions and constants consulted by the lexer.

The predefined operator table is built once at import time and shared
read-only by every dictionary; each ExpressionDictionary layers its own
user-defined entries on top of it.
"""

import operator
import re
from enum import Enum, auto
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Union

from .errors import (
    DuplicateLabelError, InvalidArityError, InvalidLabelError,
    NotFoundError, ProtectedEntryError,
)
from .tokens import (
    Associativity, Function, Operator, OperatorType, STRUCTURAL,
    VARIABLE_PARAMETERS, GreedyOperation,
)


class LabelKind(Enum):
    ABSENT   = auto()
    OPERATOR = auto()
    FUNCTION = auto()
    CONSTANT = auto()


# A label may carry one operator read where an operand is expected (prefix
# slot) and one read after an operand (infix slot, shared with postfix).
PREFIX_SLOT = "prefix"
INFIX_SLOT  = "infix"

IDENTIFIER_RE = re.compile(r'[A-Za-z_][A-Za-z0-9_]*\Z')
_WHITESPACE_RE = re.compile(r'\s')


def _binary(fn) -> GreedyOperation:
    return GreedyOperation(lambda operands: fn(operands[0], operands[1]))


def _unary(fn) -> GreedyOperation:
    return GreedyOperation(lambda operands: fn(operands[0]))


# ── Predefined operators ──────────────────────────────────────────────────────
# Precedence increases with binding strength.

ADDITION       = Operator("+", OperatorType.INFIX, 1, Associativity.LEFT, _binary(operator.add))
SUBTRACTION    = Operator("-", OperatorType.INFIX, 1, Associativity.LEFT, _binary(operator.sub))
MULTIPLICATION = Operator("*", OperatorType.INFIX, 2, Associativity.LEFT, _binary(operator.mul))
DIVISION       = Operator("/", OperatorType.INFIX, 2, Associativity.LEFT, _binary(operator.truediv))
MODULO         = Operator("%", OperatorType.INFIX, 2, Associativity.LEFT, _binary(operator.mod))
IMPLICIT_MULTIPLICATION = Operator(
    "*", OperatorType.INFIX, 3, Associativity.LEFT, _binary(operator.mul)
)
UNARY_PLUS     = Operator("+", OperatorType.PREFIX, 4, Associativity.NO, _unary(operator.pos))
UNARY_MINUS    = Operator("-", OperatorType.PREFIX, 4, Associativity.NO, _unary(operator.neg))
EXPONENTIATION = Operator("^", OperatorType.INFIX_RTL, 5, Associativity.RIGHT, _binary(operator.pow))


def _slot(op: Operator) -> str:
    return PREFIX_SLOT if op.is_prefix else INFIX_SLOT


def _build_predefined() -> Mapping[str, Mapping[str, Operator]]:
    table: Dict[str, Dict[str, Operator]] = {}
    for op in (ADDITION, SUBTRACTION, MULTIPLICATION, DIVISION, MODULO,
               UNARY_PLUS, UNARY_MINUS, EXPONENTIATION):
        table.setdefault(op.label, {})[_slot(op)] = op
    # implicit multiplication is synthesised by the lexer, never looked up
    return MappingProxyType({label: MappingProxyType(slots) for label, slots in table.items()})


PREDEFINED_OPERATORS = _build_predefined()


def is_implicit_multiplication(token) -> bool:
    return token == IMPLICIT_MULTIPLICATION


def is_sign_operator(token) -> bool:
    return token == UNARY_PLUS or token == UNARY_MINUS


class ExpressionDictionary:
    def __init__(self):
        self._operators: Dict[str, Dict[str, Operator]] = {}
        self._functions: Dict[str, Function] = {}
        self._constants: Dict[str, Any] = {}

    # ------------------------------------------------------------------ registration

    def register(self, token: Union[Operator, Function]) -> None:
        """Add a user-defined operator or function."""
        if isinstance(token, Operator):
            self._register_operator(token)
        elif isinstance(token, Function):
            self._register_function(token)
        else:
            raise TypeError(f"Only operators and functions can be registered, got {token!r}")

    def unregister(self, label: str) -> None:
        """Remove every user-defined operator or function under label."""
        if self.is_predefined(label):
            raise ProtectedEntryError(f"Cannot remove predefined entry {label!r}", label)
        if label in self._functions:
            del self._functions[label]
        elif label in self._operators:
            del self._operators[label]
        else:
            raise NotFoundError(f"No operator or function named {label!r}", label)

    def add_constant(self, label: str, value: Any) -> None:
        self._check_identifier(label, "constant")
        self._check_available(label)
        if label in self._operators:
            raise DuplicateLabelError(f"{label!r} is already defined as an operator", label)
        if label in self._constants:
            raise DuplicateLabelError(f"Constant {label!r} is already defined", label)
        self._constants[label] = value

    def remove_constant(self, label: str) -> None:
        if label not in self._constants:
            raise NotFoundError(f"No constant named {label!r}", label)
        del self._constants[label]

    def _register_operator(self, op: Operator) -> None:
        self._check_operator_label(op.label)
        self._check_available(op.label)
        if op.label in self._constants:
            raise DuplicateLabelError(f"{op.label!r} is already defined as a constant", op.label)
        slots = self._operators.get(op.label, {})
        if _slot(op) in slots:
            raise DuplicateLabelError(
                f"A {_slot(op)} operator {op.label!r} is already defined", op.label
            )
        self._operators.setdefault(op.label, {})[_slot(op)] = op

    def _register_function(self, fn: Function) -> None:
        if fn.parameters < VARIABLE_PARAMETERS:
            raise InvalidArityError(
                f"Invalid number of parameters for {fn.label!r}: {fn.parameters}", fn.label
            )
        self._check_identifier(fn.label, "function")
        self._check_available(fn.label)
        if fn.label in self._operators:
            raise DuplicateLabelError(f"{fn.label!r} is already defined as an operator", fn.label)
        if fn.label in self._constants:
            raise DuplicateLabelError(f"{fn.label!r} is already defined as a constant", fn.label)
        self._functions[fn.label] = fn

    # ------------------------------------------------------------------ lookup

    def lookup(self, label: str) -> LabelKind:
        if label in PREDEFINED_OPERATORS or label in self._operators:
            return LabelKind.OPERATOR
        if label in self._functions:
            return LabelKind.FUNCTION
        if label in self._constants:
            return LabelKind.CONSTANT
        return LabelKind.ABSENT

    def get_operator(self, label: str, prefix: bool) -> Optional[Operator]:
        """Operator in the requested slot, or None."""
        slot = PREFIX_SLOT if prefix else INFIX_SLOT
        slots = PREDEFINED_OPERATORS.get(label) or self._operators.get(label) or {}
        return slots.get(slot)

    def get_function(self, label: str) -> Optional[Function]:
        return self._functions.get(label)

    def is_predefined(self, label: str) -> bool:
        return label in PREDEFINED_OPERATORS

    def labels(self) -> List[str]:
        """Operator and function labels, longest first."""
        found = set(PREDEFINED_OPERATORS) | set(self._operators) | set(self._functions)
        return sorted(found, key=lambda label: (-len(label), label))

    @property
    def constants(self) -> Mapping[str, Any]:
        return MappingProxyType(self._constants)

    # ------------------------------------------------------------------ helpers

    def _check_available(self, label: str) -> None:
        if self.is_predefined(label):
            raise ProtectedEntryError(f"Cannot override predefined entry {label!r}", label)
        if label in self._functions:
            raise DuplicateLabelError(f"{label!r} is already defined as a function", label)

    @staticmethod
    def _check_identifier(label: str, kind: str) -> None:
        if not isinstance(label, str) or not IDENTIFIER_RE.match(label):
            raise InvalidLabelError(f"Not a valid {kind} name: {label!r}", label)

    @staticmethod
    def _check_operator_label(label: str) -> None:
        if (not isinstance(label, str) or not label
                or label[0].isdigit() or label[0] == '.'
                or _WHITESPACE_RE.search(label)
                or any(ch in STRUCTURAL for ch in label)):
            raise InvalidLabelError(f"Not a valid operator label: {label!r}", label)
