"""
exprtree v0.1 - Expression
A built expression tree that can be evaluated and printed.
"""

from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Pattern, Sequence, Union

from .ast_nodes import Node
from .errors import ArityError, EmptyExpressionError, UndefinedVariableError
from .printer import ExpressionPrinter
from .tokens import LazyOperation, Operand, Variable


class Expression:
    """
    Parsed expression tree over an arbitrary operand type.

    Parameters
    ----------
    constants          : mapping of constant label -> value; copied, so later
                         changes to the source mapping do not leak in
    operand_to_string  : renders an operand value when the expression is printed
    root               : root node of the tree, None until built
    number_patterns    : literal patterns the printed text is read back with;
                         operand text matching none of them is parenthesised
    """

    def __init__(
        self,
        constants: Mapping[str, Any],
        operand_to_string: Callable[[Any], str] = str,
        root: Optional[Node] = None,
        number_patterns: Optional[Sequence[Union[str, Pattern]]] = None,
    ):
        self._constants: Dict[str, Any] = dict(constants)
        self._printer = ExpressionPrinter(operand_to_string, number_patterns)
        self.root = root

    @property
    def constants(self) -> Mapping[str, Any]:
        return MappingProxyType(self._constants)

    # ------------------------------------------------------------------ evaluation

    def evaluate(self, variables: Optional[Mapping[str, Any]] = None) -> Any:
        """
        Evaluate the tree against a set of variables.
        Variables override constants that share their label.
        """
        if self.root is None:
            raise EmptyExpressionError("Expression has not been built")

        bindings = dict(self._constants)
        if variables:
            bindings.update(variables)
        return self.evaluate_node(self.root, bindings)

    def evaluate_node(self, node: Node, variables: Mapping[str, Any]) -> Any:
        """
        Evaluate a subtree; lazy operations call back into this.

        Greedy operations are applied in post-order from an explicit work
        stack, so only nested lazy calls consume Python stack frames.
        """
        values: List[Any] = []
        pending = [(node, False)]

        while pending:
            current, expanded = pending.pop()
            token = current.token

            if isinstance(token, Operand):
                values.append(token.value)
            elif isinstance(token, Variable):
                values.append(self._lookup(token.label, variables))
            elif isinstance(token.operation, LazyOperation):
                values.append(token.operation(self, list(current.children), variables))
            elif not expanded:
                self._check_arity(current)
                pending.append((current, True))
                pending.extend((child, False) for child in reversed(current.children))
            else:
                split = len(values) - len(current.children)
                operands = values[split:]
                del values[split:]
                values.append(token.operation(operands))

        return values[0]

    @staticmethod
    def _lookup(label: str, variables: Mapping[str, Any]) -> Any:
        if label not in variables:
            raise UndefinedVariableError(label)
        return variables[label]

    @staticmethod
    def _check_arity(node: Node) -> None:
        if not node.is_complete:
            token = node.token
            raise ArityError(
                f"{token.label!r} expects {node.arity} operand(s) "
                f"but has {len(node.children)}",
                token.position,
            )

    # ------------------------------------------------------------------ printing

    def to_string(self) -> str:
        if self.root is None:
            raise EmptyExpressionError("Expression has not been built")
        return self._printer.render(self.root)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        if self.root is None:
            return "Expression(<empty>)"
        return f"Expression({self.to_string()!r})"
