"""
exprtree v0.1 - Lexer
Tokenizes an expression string into a flat token list.

Besides splitting the text, the lexer resolves operator labels that have
both a prefix and an infix meaning (unary vs binary '+'/'-') and inserts
implicit multiplication between juxtaposed operands ('2x', '2(3)', ')(').
"""

import re
from typing import Any, Callable, List, Optional, Pattern, Sequence, Union

from .dictionary import ExpressionDictionary, IMPLICIT_MULTIPLICATION
from .errors import TokenizationError
from .tokens import (
    Function, Operand, Operator, Punctuation, STRUCTURAL, Token, Variable,
    at_position,
)


# Scientific notation must be tried before the plain decimal pattern.
DEFAULT_NUMBER_PATTERNS = (
    r'(?:\d+\.?\d*|\.\d+)[eE][-+]?\d+',
    r'\d*\.?\d+',
)

_WHITESPACE_RE = re.compile(r'\s+')
_IDENTIFIER_RE = re.compile(r'[A-Za-z_][A-Za-z0-9_]*')


def compile_patterns(patterns: Sequence[Union[str, Pattern]]) -> List[Pattern]:
    return [p if isinstance(p, re.Pattern) else re.compile(p) for p in patterns]


def _ends_operand(token: Optional[Token]) -> bool:
    """True if token closes an operand, so the next token follows a value."""
    if isinstance(token, (Operand, Variable)):
        return True
    if isinstance(token, Punctuation):
        return token.is_close
    if isinstance(token, Operator):
        return token.is_postfix
    return False


def _begins_operand(token: Token) -> bool:
    if isinstance(token, (Operand, Variable, Function)):
        return True
    if isinstance(token, Punctuation):
        return token.is_open
    if isinstance(token, Operator):
        return token.is_prefix
    return False


def _expects_operand(token: Optional[Token]) -> bool:
    """True at the start, after '(' or ',', and after a prefix or infix operator."""
    if token is None:
        return True
    if isinstance(token, Punctuation):
        return token.is_open or token.is_separator
    if isinstance(token, Operator):
        return not token.is_postfix
    return False


class Lexer:
    def __init__(
        self,
        dictionary: ExpressionDictionary,
        string_to_operand: Callable[[str], Any],
        number_patterns: Optional[Sequence[Union[str, Pattern]]] = None,
    ):
        self._dictionary = dictionary
        self._string_to_operand = string_to_operand
        self._number_patterns = compile_patterns(
            DEFAULT_NUMBER_PATTERNS if number_patterns is None else number_patterns
        )

    def tokenize(self, text: str) -> List[Token]:
        """
        Convert an expression string into a list of Tokens.
        Raises TokenizationError on unrecognized characters or bad literals.
        """
        tokens: List[Token] = []
        labels = self._dictionary.labels()
        pos = 0
        length = len(text)

        while pos < length:
            m = _WHITESPACE_RE.match(text, pos)
            if m:
                pos = m.end()
                continue

            previous = tokens[-1] if tokens else None
            token, end = self._next_token(text, pos, labels, previous)

            # Juxtaposed operands multiply: 2x, 2(, )(, )x, 2sin(x)
            if _ends_operand(previous) and _begins_operand(token):
                tokens.append(at_position(IMPLICIT_MULTIPLICATION, pos))

            tokens.append(token)
            pos = end

        return tokens

    # ------------------------------------------------------------------ matchers

    def _next_token(self, text: str, pos: int, labels: List[str], previous: Optional[Token]):
        literal = self._match_number(text, pos)
        if literal is not None:
            return Operand(self._convert(literal, pos), pos), pos + len(literal)

        label = self._match_label(text, pos, labels)
        if label is not None:
            return self._resolve_label(label, pos, previous), pos + len(label)

        m = _IDENTIFIER_RE.match(text, pos)
        if m:
            return Variable(m.group(0), pos), m.end()

        if text[pos] in STRUCTURAL:
            return Punctuation(text[pos], pos), pos + 1

        raise TokenizationError(f"Unexpected character: {text[pos]!r}", pos)

    def _match_number(self, text: str, pos: int) -> Optional[str]:
        for pattern in self._number_patterns:
            m = pattern.match(text, pos)
            if m and m.end() > pos:
                return m.group(0)
        return None

    @staticmethod
    def _match_label(text: str, pos: int, labels: List[str]) -> Optional[str]:
        # labels are sorted longest first, so the first hit is the longest
        for label in labels:
            if text.startswith(label, pos):
                return label
        return None

    def _resolve_label(self, label: str, pos: int, previous: Optional[Token]) -> Token:
        function = self._dictionary.get_function(label)
        if function is not None:
            return at_position(function, pos)

        prefix = _expects_operand(previous)
        op = self._dictionary.get_operator(label, prefix)
        if op is None:
            # only one shape exists: a prefix operator after an operand is then
            # juxtaposed (3 ~4 multiplies), a postfix one in operand position
            # fails when the tree is built
            op = self._dictionary.get_operator(label, not prefix)
        return at_position(op, pos)

    def _convert(self, literal: str, pos: int) -> Any:
        try:
            return self._string_to_operand(literal)
        except (ValueError, ArithmeticError, TypeError) as e:
            raise TokenizationError(f"Invalid literal {literal!r}: {e}", pos) from e


def tokenize(
    text: str,
    dictionary: ExpressionDictionary,
    string_to_operand: Callable[[str], Any],
    number_patterns: Optional[Sequence[Union[str, Pattern]]] = None,
) -> List[Token]:
    return Lexer(dictionary, string_to_operand, number_patterns).tokenize(text)
