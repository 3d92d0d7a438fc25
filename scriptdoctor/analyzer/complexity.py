"""Cyclomatic complexity of function bodies."""
from pathlib import Path
from typing import List
from tree_sitter import Node, Tree

from .fingerprint import function_name
from .issues import ComplexFunction
from .node_kinds import FUNCTION_LIKE_KINDS, NodeKind, classify, traverse

# Functions scoring above this are reported
DEFAULT_MAX_COMPLEXITY = 10

_LOGICAL_OPERATORS = {'&&', '||', '??'}


def _is_decision(node: Node) -> bool:
    kind = classify(node)
    if kind is NodeKind.BRANCH:
        return True
    if kind is NodeKind.BINARY:
        operator = node.child_by_field_name('operator')
        return operator is not None and operator.type in _LOGICAL_OPERATORS
    return False


def cyclomatic_complexity(body: Node) -> int:
    """One plus the decision points in body.

    Branches, loops, switch cases, catch clauses, ternaries and short-circuit
    operators each add one. Nested functions are scored on their own and do
    not count toward the enclosing body.
    """
    def descend(node: Node) -> bool:
        return classify(node) not in FUNCTION_LIKE_KINDS

    if not descend(body):
        return 1
    return 1 + sum(1 for node in traverse(body, descend) if _is_decision(node))


class ComplexityAnalyzer:
    def __init__(self, max_complexity: int = DEFAULT_MAX_COMPLEXITY):
        self.max_complexity = max_complexity

    def collect(self, tree: Tree, source_code: bytes,
                file_path: str | Path) -> List[ComplexFunction]:
        """Return every function whose complexity exceeds max_complexity."""
        issues = []
        for node in traverse(tree.root_node):
            if classify(node) not in FUNCTION_LIKE_KINDS:
                continue
            body = node.child_by_field_name('body')
            if body is None:
                continue
            complexity = cyclomatic_complexity(body)
            if complexity > self.max_complexity:
                issues.append(ComplexFunction(
                    name=function_name(node, source_code),
                    file=str(file_path),
                    line=node.start_point[0] + 1,
                    complexity=complexity,
                ))
        return issues
