"""
exprtree v0.1 - Tree Builder
Assembles the postfix token list into an n-ary expression tree.

Tokens are consumed from the tail of the postfix list. The first one is the
root; every following token becomes the left-most child of the deepest node
that still has an open slot, found by descending through first children.
"""

from typing import List, Optional

from .ast_nodes import Node
from .errors import InvalidExpressionError
from .tokens import Token


class TreeBuilder:
    def __init__(self, postfix: List[Token]):
        self._postfix = list(postfix)
        self._root: Optional[Node] = None
        # root followed by each first child that accepts children
        self._spine: List[Node] = []

    def build(self) -> Node:
        if not self._postfix:
            raise InvalidExpressionError("Empty expression")

        while self._postfix:
            tok = self._postfix.pop()
            if self._root is None:
                self._root = Node(tok)
                self._extend_spine(self._root)
            elif not self._insert(tok):
                raise InvalidExpressionError(
                    f"Unexpected token {_describe(tok)}", getattr(tok, "position", None)
                )

        self._check_complete(self._root)
        return self._root

    def _insert(self, tok: Token) -> bool:
        for depth in range(len(self._spine) - 1, -1, -1):
            node = self._spine[depth]
            if len(node.children) < node.arity:
                child = Node(tok)
                node.children.insert(0, child)
                del self._spine[depth + 1:]
                self._extend_spine(child)
                return True
        return False

    def _extend_spine(self, node: Node) -> None:
        if node.accepts_children:
            self._spine.append(node)

    def _check_complete(self, node: Node) -> None:
        # explicit stack; trees may be deeper than the recursion limit
        pending = [node]
        while pending:
            current = pending.pop()
            if not current.is_complete:
                raise InvalidExpressionError(
                    f"Missing operand for {_describe(current.token)}",
                    getattr(current.token, "position", None),
                )
            pending.extend(current.children)


def _describe(tok: Token) -> str:
    label = getattr(tok, "label", None)
    if label is not None:
        return repr(label)
    return repr(getattr(tok, "value", tok))


def build_tree(postfix: List[Token]) -> Node:
    return TreeBuilder(postfix).build()
