"""
exprtree v0.1 - Shunting-Yard Parser
Converts the infix token list into postfix (RPN) order.
"""

from dataclasses import dataclass, replace
from typing import List, Optional

from .errors import (
    ArgumentCountError, InvalidExpressionError,
    MismatchedParenthesisError, UnexpectedSeparatorError,
)
from .tokens import Function, Operand, Operator, Punctuation, Token, Variable


@dataclass
class _Call:
    """Argument bookkeeping for a function whose '(' is on the stack."""
    function: Function
    arguments: int


class Parser:
    def __init__(self, tokens: List[Token]):
        self._tokens = tokens
        self._output: List[Token] = []
        self._stack: List[Token] = []
        # one entry per open '('; None for plain grouping parentheses
        self._calls: List[Optional[_Call]] = []

    # ------------------------------------------------------------------ public

    def parse(self) -> List[Token]:
        for index, tok in enumerate(self._tokens):
            previous = self._tokens[index - 1] if index > 0 else None

            if isinstance(tok, (Operand, Variable)):
                self._output.append(tok)
            elif isinstance(tok, Function):
                self._function(tok, index)
            elif isinstance(tok, Operator):
                self._operator(tok)
            elif tok.is_open:
                self._open(tok, index, previous)
            elif tok.is_close:
                self._close(tok, previous)
            else:
                self._separator(tok, previous)

        while self._stack:
            top = self._stack.pop()
            if isinstance(top, Punctuation):
                raise MismatchedParenthesisError("Unclosed '('", top.position)
            self._output.append(top)

        return self._output

    # ------------------------------------------------------------------ rules

    def _function(self, tok: Function, index: int) -> None:
        following = self._peek(index + 1)
        if not (isinstance(following, Punctuation) and following.is_open):
            raise InvalidExpressionError(
                f"Function {tok.label!r} must be followed by '('", tok.position
            )
        self._stack.append(tok)

    def _operator(self, tok: Operator) -> None:
        # a prefix operator has no left operand, so nothing before it is complete
        if not tok.is_prefix:
            while self._stack and isinstance(self._stack[-1], Operator) \
                    and self._pops_before(self._stack[-1], tok):
                self._output.append(self._stack.pop())
        self._stack.append(tok)

    @staticmethod
    def _pops_before(top: Operator, incoming: Operator) -> bool:
        if top.precedence > incoming.precedence:
            return True
        return top.precedence == incoming.precedence and not incoming.groups_right

    def _open(self, tok: Punctuation, index: int, previous: Optional[Token]) -> None:
        following = self._peek(index + 1)
        empty = isinstance(following, Punctuation) and following.is_close

        if isinstance(previous, Function):
            self._calls.append(_Call(previous, 0 if empty else 1))
        else:
            if empty:
                raise InvalidExpressionError("Empty parentheses", tok.position)
            self._calls.append(None)
        self._stack.append(tok)

    def _close(self, tok: Punctuation, previous: Optional[Token]) -> None:
        self._pop_until_open(tok, MismatchedParenthesisError, "Unmatched ')'")
        open_tok = self._stack.pop()
        call = self._calls.pop()

        if call is None:
            return
        if not (isinstance(previous, Punctuation) and previous is open_tok):
            self._check_argument(previous, tok)

        function = self._stack.pop()
        if not function.is_variadic and call.arguments != function.parameters:
            raise ArgumentCountError(
                f"Function {function.label!r} expects {function.parameters} "
                f"argument(s) but got {call.arguments}",
                function.position,
            )
        self._output.append(replace(function, arguments=call.arguments))

    def _separator(self, tok: Punctuation, previous: Optional[Token]) -> None:
        self._pop_until_open(tok, UnexpectedSeparatorError, "',' outside of a function call")
        call = self._calls[-1]
        if call is None:
            raise UnexpectedSeparatorError("',' outside of a function call", tok.position)
        self._check_argument(previous, tok)
        call.arguments += 1

    # ------------------------------------------------------------------ helpers

    def _peek(self, index: int) -> Optional[Token]:
        if index < len(self._tokens):
            return self._tokens[index]
        return None

    def _pop_until_open(self, tok: Punctuation, error, message: str) -> None:
        while self._stack:
            top = self._stack[-1]
            if isinstance(top, Punctuation) and top.is_open:
                return
            self._output.append(self._stack.pop())
        raise error(message, tok.position)

    @staticmethod
    def _check_argument(previous: Optional[Token], tok: Punctuation) -> None:
        """An argument must be complete before ',' or the closing ')'."""
        if isinstance(previous, Punctuation) and not previous.is_close:
            raise InvalidExpressionError("Missing function argument", tok.position)


def to_postfix(tokens: List[Token]) -> List[Token]:
    return Parser(tokens).parse()
