"""Closed classification of tree-sitter node types.

Traversals dispatch on NodeKind through per-kind handler tables instead of
comparing raw node.type strings inline. Adding support for a new grammar
node means adding it to NODE_KIND_BY_TYPE and, where relevant, to a
handler table.
"""
from enum import Enum
from typing import Callable, Dict, Optional, TypeVar
from tree_sitter import Node


class NodeKind(Enum):
    """Node categories the analyzers and the removal planner care about."""
    FUNCTION_DECLARATION = "function_declaration"
    FUNCTION_EXPRESSION = "function_expression"
    ARROW_FUNCTION = "arrow_function"
    METHOD = "method"
    VARIABLE_DECLARATION = "variable_declaration"
    VARIABLE_DECLARATOR = "variable_declarator"
    IMPORT_STATEMENT = "import_statement"
    EXPORT_STATEMENT = "export_statement"
    CALL = "call"
    STATEMENT_BLOCK = "statement_block"
    RETURN = "return"
    THROW = "throw"
    BRANCH = "branch"
    BINARY = "binary"
    IDENTIFIER = "identifier"
    STRING = "string"
    COMMENT = "comment"
    OTHER = "other"


NODE_KIND_BY_TYPE: Dict[str, NodeKind] = {
    'function_declaration': NodeKind.FUNCTION_DECLARATION,
    'generator_function_declaration': NodeKind.FUNCTION_DECLARATION,
    'function_expression': NodeKind.FUNCTION_EXPRESSION,
    'function': NodeKind.FUNCTION_EXPRESSION,  # older grammar releases
    'generator_function': NodeKind.FUNCTION_EXPRESSION,
    'arrow_function': NodeKind.ARROW_FUNCTION,
    'method_definition': NodeKind.METHOD,
    'lexical_declaration': NodeKind.VARIABLE_DECLARATION,
    'variable_declaration': NodeKind.VARIABLE_DECLARATION,
    'variable_declarator': NodeKind.VARIABLE_DECLARATOR,
    'import_statement': NodeKind.IMPORT_STATEMENT,
    'export_statement': NodeKind.EXPORT_STATEMENT,
    'call_expression': NodeKind.CALL,
    'statement_block': NodeKind.STATEMENT_BLOCK,
    'return_statement': NodeKind.RETURN,
    'throw_statement': NodeKind.THROW,
    # decision points for cyclomatic complexity
    'if_statement': NodeKind.BRANCH,
    'for_statement': NodeKind.BRANCH,
    'for_in_statement': NodeKind.BRANCH,
    'while_statement': NodeKind.BRANCH,
    'do_statement': NodeKind.BRANCH,
    'switch_case': NodeKind.BRANCH,
    'catch_clause': NodeKind.BRANCH,
    'ternary_expression': NodeKind.BRANCH,
    'binary_expression': NodeKind.BINARY,
    'identifier': NodeKind.IDENTIFIER,
    'property_identifier': NodeKind.IDENTIFIER,
    'shorthand_property_identifier': NodeKind.IDENTIFIER,
    'shorthand_property_identifier_pattern': NodeKind.IDENTIFIER,
    'private_property_identifier': NodeKind.IDENTIFIER,
    'type_identifier': NodeKind.IDENTIFIER,
    'statement_identifier': NodeKind.IDENTIFIER,
    'string': NodeKind.STRING,
    'comment': NodeKind.COMMENT,
}

# Kinds whose body is a candidate for duplicate fingerprinting
FUNCTION_LIKE_KINDS = frozenset({
    NodeKind.FUNCTION_DECLARATION,
    NodeKind.FUNCTION_EXPRESSION,
    NodeKind.ARROW_FUNCTION,
    NodeKind.METHOD,
})

# Values that make `const name = <value>` a function binding
FUNCTION_VALUE_KINDS = frozenset({
    NodeKind.FUNCTION_EXPRESSION,
    NodeKind.ARROW_FUNCTION,
})


def classify(node: Optional[Node]) -> NodeKind:
    """Map a tree-sitter node onto its NodeKind."""
    if node is None:
        return NodeKind.OTHER
    return NODE_KIND_BY_TYPE.get(node.type, NodeKind.OTHER)


H = TypeVar('H')


def dispatch(table: Dict[NodeKind, H], node: Node) -> Optional[H]:
    """Look up the handler registered for node's kind, if any."""
    return table.get(classify(node))


def node_text(node: Node, source_code: bytes) -> str:
    """Decode a node's source slice."""
    return source_code[node.start_byte:node.end_byte].decode('utf-8', errors='replace')


def traverse(node: Node, descend: Optional[Callable[[Node], bool]] = None):
    """Iteratively traverse tree using a stack and yield all nodes.

    Args:
        node: Root node to start traversal
        descend: Optional predicate; children of nodes for which it returns
            False are not visited

    Yields:
        All nodes in document order
    """
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        if descend is not None and not descend(current):
            continue
        # Add children in reverse order to maintain left-to-right traversal
        stack.extend(reversed(current.children))
