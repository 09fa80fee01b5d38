"""
exprtree v0.1 - Errors
Typed error taxonomy shared by every phase of the expression engine.
"""

from typing import Optional


class ExpressionError(Exception):
    """Base class of every error raised by the engine."""

    def __init__(self, message: str, position: Optional[int] = None):
        if position is None or position < 0:
            position = None
            super().__init__(f"[{type(self).__name__}] {message}")
        else:
            super().__init__(f"[{type(self).__name__}] Position {position}: {message}")
        self.message = message
        self.position = position


class TokenizationError(ExpressionError):
    pass


# ── Parsing ───────────────────────────────────────────────────────────────────

class ParseError(ExpressionError):
    pass


class MismatchedParenthesisError(ParseError):
    pass


class UnexpectedSeparatorError(ParseError):
    pass


class ArgumentCountError(ParseError):
    pass


class InvalidExpressionError(ParseError):
    pass


# ── Evaluation ────────────────────────────────────────────────────────────────

class EvaluationError(ExpressionError):
    pass


class UndefinedVariableError(EvaluationError):
    def __init__(self, label: str):
        super().__init__(f"Variable not found: {label!r}")
        self.label = label


class ArityError(EvaluationError):
    pass


class EmptyExpressionError(EvaluationError):
    pass


# ── Dictionary ────────────────────────────────────────────────────────────────

class DictionaryError(ExpressionError):
    def __init__(self, message: str, label: str):
        super().__init__(message)
        self.label = label


class DuplicateLabelError(DictionaryError):
    pass


class InvalidArityError(DictionaryError):
    pass


class ProtectedEntryError(DictionaryError):
    pass


class NotFoundError(DictionaryError):
    pass


class InvalidLabelError(DictionaryError):
    pass
