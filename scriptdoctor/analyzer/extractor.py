"""Symbol extraction from parsed syntax trees (first indexing pass)."""
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple
from tree_sitter import Tree, Node

from .issues import Symbol, SymbolKind
from .node_kinds import FUNCTION_VALUE_KINDS, NodeKind, classify, dispatch, node_text, traverse

# Class members that are never called by name
IMPLICIT_METHODS = {'constructor'}


def require_source(call: Node, source_code: bytes) -> Optional[str]:
    """Return the module name of a `require('<module>')` call, else None."""
    if classify(call) is not NodeKind.CALL:
        return None
    function_node = call.child_by_field_name('function')
    args_node = call.child_by_field_name('arguments')
    if (function_node is None or node_text(function_node, source_code) != 'require'
            or args_node is None or args_node.named_child_count == 0):
        return None
    first_arg = args_node.named_children[0]
    if classify(first_arg) is not NodeKind.STRING:
        return None
    return node_text(first_arg, source_code)[1:-1]


def pattern_bindings(pattern: Node) -> Iterator[Tuple[Node, Node]]:
    """Yield (binding identifier, removable property) pairs of an object pattern.

    Handles `{ a }`, `{ a: b }` and `{ a = 1 }`. Nested patterns and rest
    elements are not import bindings we can remove one by one, so they
    are skipped.
    """
    for prop in pattern.named_children:
        if prop.type == 'shorthand_property_identifier_pattern':
            yield prop, prop
        elif prop.type == 'pair_pattern':
            value = prop.child_by_field_name('value')
            if value is not None and value.type == 'identifier':
                yield value, prop
        elif prop.type == 'object_assignment_pattern':
            left = prop.child_by_field_name('left')
            if left is not None and left.type == 'shorthand_property_identifier_pattern':
                yield left, prop


def import_bindings(statement: Node) -> Iterator[Tuple[Node, Node]]:
    """Yield (local name node, removable node) pairs of an ES import statement.

    For a default import both are the identifier, for a namespace import
    the removable node is the `* as x` clause, for named imports it is the
    import specifier.
    """
    clause = next((c for c in statement.named_children if c.type == 'import_clause'), None)
    if clause is None:
        return
    for child in clause.named_children:
        if child.type == 'identifier':
            yield child, child
        elif child.type == 'namespace_import':
            for ns_child in child.named_children:
                if ns_child.type == 'identifier':
                    yield ns_child, child
        elif child.type == 'named_imports':
            for specifier in child.named_children:
                if specifier.type != 'import_specifier':
                    continue
                local = specifier.child_by_field_name('alias') or specifier.child_by_field_name('name')
                if local is not None:
                    yield local, specifier


class SymbolExtractor:
    """Record functions, function bindings, class methods and import bindings.

    Dispatch goes through self.handlers, one entry per NodeKind that can
    introduce a symbol.
    """

    def __init__(self):
        self.handlers: Dict[NodeKind, Callable[[Node, bytes, str], List[Symbol]]] = {
            NodeKind.FUNCTION_DECLARATION: self._function_declaration,
            NodeKind.VARIABLE_DECLARATOR: self._variable_declarator,
            NodeKind.METHOD: self._method,
            NodeKind.IMPORT_STATEMENT: self._import_statement,
        }

    def extract(self, tree: Tree, source_code: bytes, file_path: str | Path) -> List[Symbol]:
        """Extract symbols in document order.

        Args:
            tree: Parsed tree-sitter Tree
            source_code: Original source code bytes
            file_path: Path recorded on every symbol

        Returns:
            List of Symbol objects
        """
        file_path = str(file_path)
        symbols = []
        for node in traverse(tree.root_node):
            handler = dispatch(self.handlers, node)
            if handler is not None:
                symbols.extend(handler(node, source_code, file_path))
        return symbols

    def _function_declaration(self, node: Node, source_code: bytes, file_path: str) -> List[Symbol]:
        name_node = node.child_by_field_name('name')
        if name_node is None:
            return []
        return [_symbol(name_node, source_code, file_path, SymbolKind.FUNCTION)]

    def _variable_declarator(self, node: Node, source_code: bytes, file_path: str) -> List[Symbol]:
        name_node = node.child_by_field_name('name')
        value_node = node.child_by_field_name('value')
        if name_node is None or value_node is None:
            return []

        if classify(value_node) in FUNCTION_VALUE_KINDS and name_node.type == 'identifier':
            return [_symbol(name_node, source_code, file_path, SymbolKind.ARROW_BINDING)]

        if require_source(value_node, source_code) is None:
            return []
        if name_node.type == 'identifier':
            return [_symbol(name_node, source_code, file_path, SymbolKind.IMPORT_BINDING)]
        if name_node.type == 'object_pattern':
            return [
                _symbol(binding, source_code, file_path, SymbolKind.IMPORT_BINDING)
                for binding, _ in pattern_bindings(name_node)
            ]
        return []

    def _method(self, node: Node, source_code: bytes, file_path: str) -> List[Symbol]:
        if node.parent is None or node.parent.type != 'class_body':
            return []
        name_node = node.child_by_field_name('name')
        if name_node is None or name_node.type not in ('property_identifier', 'private_property_identifier'):
            return []
        if node_text(name_node, source_code) in IMPLICIT_METHODS:
            return []
        return [_symbol(name_node, source_code, file_path, SymbolKind.METHOD)]

    def _import_statement(self, node: Node, source_code: bytes, file_path: str) -> List[Symbol]:
        return [
            _symbol(local, source_code, file_path, SymbolKind.IMPORT_BINDING)
            for local, _ in import_bindings(node)
        ]


def _symbol(name_node: Node, source_code: bytes, file_path: str, kind: SymbolKind) -> Symbol:
    return Symbol(
        name=node_text(name_node, source_code),
        file=file_path,
        line=name_node.start_point[0] + 1,
        kind=kind,
    )
