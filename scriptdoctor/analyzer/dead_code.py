"""Unreachable statements after a return or throw in the same block."""
from pathlib import Path
from typing import Iterator, List, Optional, Tuple
from tree_sitter import Node, Tree

from .issues import DeadCodePath
from .node_kinds import NodeKind, classify, node_text, traverse

EXCERPT_LENGTH = 80

_REASONS = {
    NodeKind.RETURN: 'after-return',
    NodeKind.THROW: 'after-throw',
}

# Function declarations are hoisted, so they stay reachable after a return
_HOISTED = {NodeKind.FUNCTION_DECLARATION}


def _is_filler(node: Node) -> bool:
    return classify(node) is NodeKind.COMMENT or node.type == 'empty_statement'


def unreachable_statement(block: Node) -> Optional[Tuple[Node, Node]]:
    """Find the first statement in block that control flow cannot reach.

    Args:
        block: A statement_block node

    Returns:
        (terminator, statement) or None when every statement is reachable
    """
    terminator = None
    for child in block.named_children:
        if _is_filler(child):
            continue
        kind = classify(child)
        if terminator is not None:
            if kind in _HOISTED:
                continue
            return terminator, child
        if kind in _REASONS:
            terminator = child
    return None


def excerpt(node: Node, source_code: bytes) -> str:
    """First source line of node, cut to EXCERPT_LENGTH characters."""
    lines = node_text(node, source_code).strip().splitlines()
    first = lines[0].strip() if lines else ''
    if len(first) > EXCERPT_LENGTH:
        return first[:EXCERPT_LENGTH] + '...'
    return first


class DeadCodeFinder:
    """Report one unreachable statement per block."""

    def iter_dead(self, tree: Tree) -> Iterator[Tuple[Node, Node]]:
        for node in traverse(tree.root_node):
            if classify(node) is not NodeKind.STATEMENT_BLOCK:
                continue
            found = unreachable_statement(node)
            if found is not None:
                yield found

    def collect(self, tree: Tree, source_code: bytes, file_path: str | Path) -> List[DeadCodePath]:
        return [
            DeadCodePath(
                file=str(file_path),
                line=statement.start_point[0] + 1,
                reason=_REASONS[classify(terminator)],
                code=excerpt(statement, source_code),
            )
            for terminator, statement in self.iter_dead(tree)
        ]
