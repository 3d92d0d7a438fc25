"""Usage detection for known symbol names (second indexing pass).

Usage is name based and project wide: any non-binding occurrence of a
known name in any file counts, whatever scope it sits in. Same-named
symbols in different scopes are therefore conflated, and access through
computed keys or reflection is invisible.
"""
from pathlib import Path
from typing import Iterable, Set
from tree_sitter import Tree, Node

from .issues import UsageFact
from .node_kinds import NodeKind, classify, node_text, traverse

# Identifier node types that are always bindings, never references
BINDING_ONLY_TYPES = {'shorthand_property_identifier_pattern'}

# (parent type, field name) pairs whose child identifier is a declaration
DECLARATION_FIELDS = {
    ('function_declaration', 'name'),
    ('generator_function_declaration', 'name'),
    ('function_expression', 'name'),
    ('function', 'name'),
    ('generator_function', 'name'),
    ('class_declaration', 'name'),
    ('class', 'name'),
    ('method_definition', 'name'),
    ('variable_declarator', 'name'),
    ('pair', 'key'),
    ('pair_pattern', 'key'),
    ('public_field_definition', 'name'),
    ('field_definition', 'property'),
    ('required_parameter', 'pattern'),
    ('optional_parameter', 'pattern'),
    ('arrow_function', 'parameter'),
    ('assignment_pattern', 'left'),
    ('catch_clause', 'parameter'),
    ('labeled_statement', 'label'),
    ('break_statement', 'label'),
    ('continue_statement', 'label'),
}

# Containers whose identifier children are all bindings
BINDING_CONTAINERS = {'formal_parameters', 'import_statement'}


def _field_name_of(node: Node) -> str | None:
    """Return the field name under which node hangs off its parent."""
    parent = node.parent
    if parent is None:
        return None
    for index, child in enumerate(parent.children):
        if child.id == node.id:
            return parent.field_name_for_child(index)
    return None


def is_binding_position(node: Node) -> bool:
    """True when the identifier declares a name rather than referring to one."""
    if node.type in BINDING_ONLY_TYPES:
        return True

    parent = node.parent
    if parent is None:
        return False

    if (parent.type, _field_name_of(node)) in DECLARATION_FIELDS:
        return True

    if parent.type in BINDING_CONTAINERS:
        return True

    # `foo = ...` writes foo, it does not read it
    if parent.type == 'assignment_expression' and _field_name_of(node) == 'left':
        return True

    # anything inside an import clause is a binding of this module
    ancestor = parent
    while ancestor is not None:
        if ancestor.type == 'import_statement':
            return True
        if ancestor.type in ('statement_block', 'program', 'class_body'):
            break
        ancestor = ancestor.parent
    return False


class ReferenceTracker:
    """Find references to a fixed set of known names."""

    def __init__(self, known_names: Iterable[str]):
        """Initialize tracker.

        Args:
            known_names: Names produced by the symbol extraction pass
        """
        self.known_names: Set[str] = set(known_names)

    def extract_usages(self, tree: Tree, source_code: bytes, file_path: str | Path) -> Set[UsageFact]:
        """Collect one UsageFact per referenced known name in this file.

        Args:
            tree: Parsed tree-sitter Tree
            source_code: Original source code bytes
            file_path: File the tree came from

        Returns:
            Set of UsageFact, at most one per name
        """
        file_path = str(file_path)
        usages: Set[UsageFact] = set()
        if not self.known_names:
            return usages

        for node in traverse(tree.root_node):
            if classify(node) is not NodeKind.IDENTIFIER or node.child_count:
                continue
            name = node_text(node, source_code)
            if name not in self.known_names:
                continue
            if is_binding_position(node):
                continue
            usages.add(UsageFact(name=name, file=file_path))
        return usages
