"""exprtree - expression parsing and evaluation over arbitrary operand types."""

from .ast_nodes import Node
from .builder import ExpressionBuilder
from .dictionary import (
    ExpressionDictionary, LabelKind, PREDEFINED_OPERATORS,
    IMPLICIT_MULTIPLICATION, UNARY_MINUS, UNARY_PLUS,
)
from .errors import (
    ExpressionError, TokenizationError,
    ParseError, MismatchedParenthesisError, UnexpectedSeparatorError,
    ArgumentCountError, InvalidExpressionError,
    EvaluationError, UndefinedVariableError, ArityError, EmptyExpressionError,
    DictionaryError, DuplicateLabelError, InvalidArityError,
    ProtectedEntryError, NotFoundError, InvalidLabelError,
)
from .expression import Expression
from .tokens import (
    Associativity, Function, GreedyOperation, LazyOperation, Operand,
    Operator, OperatorType, Variable, VARIABLE_PARAMETERS,
)

__version__ = "0.1.0"

__all__ = [
    'ExpressionBuilder', 'Expression', 'ExpressionDictionary', 'LabelKind',
    'Node', 'Operand', 'Variable', 'Operator', 'Function', 'OperatorType',
    'Associativity', 'GreedyOperation', 'LazyOperation', 'VARIABLE_PARAMETERS',
    'PREDEFINED_OPERATORS', 'IMPLICIT_MULTIPLICATION', 'UNARY_PLUS', 'UNARY_MINUS',
    'ExpressionError', 'TokenizationError', 'ParseError',
    'MismatchedParenthesisError', 'UnexpectedSeparatorError',
    'ArgumentCountError', 'InvalidExpressionError', 'EvaluationError',
    'UndefinedVariableError', 'ArityError', 'EmptyExpressionError',
    'DictionaryError', 'DuplicateLabelError', 'InvalidArityError',
    'ProtectedEntryError', 'NotFoundError', 'InvalidLabelError',
]
