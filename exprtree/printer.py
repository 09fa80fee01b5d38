"""
exprtree v0.1 - Expression Printer
Renders an expression tree back into text that parses to an equivalent tree.
"""

from typing import Any, Callable, List, Optional, Pattern, Sequence, Union

from .ast_nodes import Node
from .dictionary import is_implicit_multiplication, is_sign_operator
from .lexer import DEFAULT_NUMBER_PATTERNS, compile_patterns
from .tokens import Function, Operand, Operator, OperatorType


class ExpressionPrinter:
    def __init__(
        self,
        operand_to_string: Callable[[Any], str] = str,
        number_patterns: Optional[Sequence[Union[str, Pattern]]] = None,
    ):
        self._operand_to_string = operand_to_string
        self._number_patterns = compile_patterns(
            DEFAULT_NUMBER_PATTERNS if number_patterns is None else number_patterns
        )

    def render(self, node: Node) -> str:
        # post-order over an explicit stack; each emitter gets its children's text
        rendered: List[str] = []
        pending = [(node, False)]

        while pending:
            current, expanded = pending.pop()
            if current.children and not expanded:
                pending.append((current, True))
                pending.extend((child, False) for child in reversed(current.children))
                continue

            split = len(rendered) - len(current.children)
            texts = rendered[split:]
            del rendered[split:]
            method = f"_emit_{type(current.token).__name__}"
            rendered.append(getattr(self, method)(current, texts))

        return rendered[0]

    # ------------------------------------------------------------------ leaves

    def _emit_Operand(self, node: Node, texts: List[str]) -> str:
        text = self._operand_to_string(node.token.value)
        # e.g. Fraction(1, 2) prints as '1/2', which would re-lex as a division
        if not any(p.fullmatch(text) for p in self._number_patterns):
            return f"({text})"
        return text

    def _emit_Variable(self, node: Node, texts: List[str]) -> str:
        return node.token.label

    # ------------------------------------------------------------------ calls

    def _emit_Function(self, node: Node, texts: List[str]) -> str:
        return f"{node.token.label}({', '.join(texts)})"

    def _emit_Operator(self, node: Node, texts: List[str]) -> str:
        if node.token.is_binary:
            return self._emit_binary(node, texts)
        return self._emit_unary(node, texts)

    def _emit_binary(self, node: Node, texts: List[str]) -> str:
        (left, right), (left_text, right_text) = node.children, texts
        return (
            self._wrap(node.token, left, left_text)
            + self._binary_label(node)
            + self._wrap(node.token, right, right_text)
        )

    def _emit_unary(self, node: Node, texts: List[str]) -> str:
        op: Operator = node.token
        child = node.children[0]
        text = texts[0]

        if is_sign_operator(op):
            if isinstance(child.token, Operator) and not child.token.is_prefix:
                return f"{op.label}({text})"
            return f"{op.label}{text}"

        if isinstance(child.token, (Operator, Function)):
            if op.type == OperatorType.PREFIX:
                return f"{op.label}({text})"
            return f"({text}) {op.label}"

        if op.type == OperatorType.PREFIX:
            return f"{op.label} {text}"
        return f"{text} {op.label}"

    # ------------------------------------------------------------------ helpers

    def _binary_label(self, node: Node) -> str:
        if is_implicit_multiplication(node.token):
            return self._implicit_label(node)
        return f" {node.token.label} "

    @staticmethod
    def _implicit_label(node: Node) -> str:
        left, right = (child.token for child in node.children)
        if isinstance(left, Operand) and isinstance(right, Operand):
            return " * "
        # a bare '-' after a space would read as subtraction
        if is_sign_operator(right):
            return " * "
        if is_sign_operator(left) and isinstance(right, Operand):
            return " * "
        return " "

    def _wrap(self, parent: Operator, child: Node, text: str) -> str:
        if self._needs_parentheses(parent, child):
            return f"({text})"
        return text

    def _needs_parentheses(self, parent: Operator, child: Node) -> bool:
        tok = child.token
        if not isinstance(tok, Operator):
            return False
        if is_implicit_multiplication(tok):
            return self._implicit_label(child) == " * " or parent.precedence > tok.precedence
        if tok.is_binary:
            return True
        return tok.precedence < parent.precedence
