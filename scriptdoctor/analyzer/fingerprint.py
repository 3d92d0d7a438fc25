"""Structural fingerprints for duplicate function-body detection."""
import hashlib
import json
import re
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from tree_sitter import Node, Tree

from .issues import DuplicateGroup, DuplicateLocation, Fingerprint
from .node_kinds import FUNCTION_LIKE_KINDS, NodeKind, classify, node_text, traverse

# Bodies must span more than this many lines to be fingerprinted
DEFAULT_MIN_LINES = 3

EXEMPLAR_LENGTH = 150

_ERASED = None
_OUTER_BRACES = re.compile(r'^{\s*|\s*}$')

# Statement terminators are optional under automatic semicolon insertion
_LAYOUT_TOKENS = {";"}


def normalize(node: Node, source_code: bytes) -> List:
    """Flatten a subtree into a canonical token list.

    Comments, statement-terminating semicolons and zero-width leaves are
    dropped, identifier-like leaves keep only their node type, and other
    leaves keep their text. Positions never appear, so two bodies that
    differ only in naming, layout, semicolon style or comments produce the
    same list.
    """
    tokens: List = []
    stack: List[Tuple[Node, bool]] = [(node, False)]
    while stack:
        current, closing = stack.pop()
        if closing:
            tokens.append(")")
            continue

        kind = classify(current)
        if kind is NodeKind.COMMENT:
            continue

        if current.child_count == 0:
            if current.type in _LAYOUT_TOKENS or current.start_byte == current.end_byte:
                continue
            if kind is NodeKind.IDENTIFIER:
                tokens.append([current.type, _ERASED])
            else:
                tokens.append([current.type, node_text(current, source_code)])
            continue

        tokens.append(["(", current.type])
        stack.append((current, True))
        for child in reversed(current.children):
            stack.append((child, False))
    return tokens


def summarize_block(text: str) -> str:
    """Strip the outer braces of a body and cut it to a short excerpt."""
    trimmed = _OUTER_BRACES.sub('', text.strip())
    if len(trimmed) > EXEMPLAR_LENGTH:
        return trimmed[:EXEMPLAR_LENGTH] + '...'
    return trimmed


def fingerprint(subtree: Node, source_code: bytes) -> Fingerprint:
    """Hash the normalized form of subtree.

    Args:
        subtree: Function body (statement block or concise arrow expression)
        source_code: Bytes the subtree was parsed from

    Returns:
        Fingerprint whose hash is the SHA-256 digest of the canonical form
    """
    canonical = json.dumps(normalize(subtree, source_code), separators=(',', ':'),
                           ensure_ascii=False)
    digest = hashlib.sha256(canonical.encode('utf-8')).digest()
    return Fingerprint(hash=digest, exemplar_text=summarize_block(node_text(subtree, source_code)))


def spans_enough_lines(node: Node, min_lines: int = DEFAULT_MIN_LINES) -> bool:
    return node.end_point[0] - node.start_point[0] > min_lines


def function_name(node: Node, source_code: bytes) -> str:
    """Best-effort display name for a function-like node."""
    name_node = node.child_by_field_name('name')
    if name_node is not None:
        return node_text(name_node, source_code)

    # const name = () => {...}
    parent = node.parent
    if parent is not None and classify(parent) is NodeKind.VARIABLE_DECLARATOR:
        declared = parent.child_by_field_name('name')
        if declared is not None and classify(declared) is NodeKind.IDENTIFIER:
            return node_text(declared, source_code)
    return "<anonymous>"


class DuplicateFinder:
    """Fingerprint every sufficiently large function body in a tree."""

    def __init__(self, min_lines: int = DEFAULT_MIN_LINES):
        self.min_lines = min_lines

    def collect(self, tree: Tree, source_code: bytes,
                file_path: str | Path) -> List[Tuple[Fingerprint, DuplicateLocation]]:
        """Return (fingerprint, location) for each qualifying function.

        Concise arrow bodies are fingerprinted on their expression.
        """
        entries = []
        for node in traverse(tree.root_node):
            if classify(node) not in FUNCTION_LIKE_KINDS:
                continue
            body = node.child_by_field_name('body')
            if body is None or not spans_enough_lines(body, self.min_lines):
                continue
            location = DuplicateLocation(
                file=str(file_path),
                start_line=node.start_point[0] + 1,
                end_line=node.end_point[0] + 1,
                name=function_name(node, source_code),
            )
            entries.append((fingerprint(body, source_code), location))
        return entries


def group_duplicates(entries: List[Tuple[Fingerprint, DuplicateLocation]]) -> List[DuplicateGroup]:
    """Group fingerprinted locations by hash, keeping groups of two or more.

    Locations within a group are sorted, so the result does not depend on
    the order entries were collected in. The exemplar comes from the first
    location after sorting.
    """
    by_hash: Dict[bytes, List[Tuple[Fingerprint, DuplicateLocation]]] = defaultdict(list)
    for fp, location in entries:
        by_hash[fp.hash].append((fp, location))

    groups = []
    for members in by_hash.values():
        if len(members) < 2:
            continue
        members.sort(key=lambda member: member[1])
        exemplar: Optional[Fingerprint] = members[0][0]
        groups.append(DuplicateGroup(
            fingerprint=exemplar,
            locations=tuple(location for _, location in members),
        ))
    groups.sort(key=lambda group: (group.file, group.line))
    return groups
