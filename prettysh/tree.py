"""Syntax tree nodes produced by the parser and consumed by the executor."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum


class NodeKind(IntEnum):
    """Kinds of syntax tree nodes."""

    WORD = 0
    PIPE = 1
    REDIRECT = 2
    IN_FILENAME = 3
    OUT_FILENAME = 4
    HEREDOC_DELIMITER = 5
    OUT_ADD_FILENAME = 6
    OP_LIST = 7
    EOF = 8


@dataclass(eq=False)
class SyntaxNode:
    """One node of the command syntax tree."""

    data: str
    kind: NodeKind = NodeKind.WORD
    left: SyntaxNode | None = None
    right: SyntaxNode | None = None
    parent: SyntaxNode | None = field(default=None, repr=False)
    idx: int = 0
    word_num: int = 0
    builtin_id: int | None = None
    argv: list[str] | None = None
    first_cmd: bool = False
    last_cmd: bool = False
    red_fd: int = 0

    def leftmost(self) -> SyntaxNode:
        """Return the node reached by following left children from here."""
        node = self
        while node.left is not None:
            node = node.left
        return node


def new_node(data: str, kind: NodeKind = NodeKind.WORD) -> SyntaxNode:
    """Create a leaf node holding a copy of ``data``."""
    return SyntaxNode(data=str(data), kind=NodeKind(kind))


def new_binary(
    data: str,
    left: SyntaxNode | None,
    right: SyntaxNode | None,
    kind: NodeKind = NodeKind.WORD,
) -> SyntaxNode:
    """Create a node with the given children and link them back to it."""
    node = new_node(data, kind)
    node.left = left
    if left is not None:
        left.parent = node
    node.right = right
    if right is not None:
        right.parent = node
    return node