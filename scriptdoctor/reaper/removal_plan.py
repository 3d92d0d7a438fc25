"""Plan byte-level removals of targeted declarations in one JS/TS file.

The planner walks the tree once. For every node whose identity (function
name, function-binding name, class-method name or import binding name)
is targeted it records an Edit: a byte range plus its replacement. Whole
statements and methods are deleted together with their own lines and
attached leading comments. Partially used import statements and
destructured requires are rebuilt from the bindings that stay.
"""
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple
from tree_sitter import Node, Tree

from scriptdoctor.analyzer.extractor import import_bindings, pattern_bindings, require_source
from scriptdoctor.analyzer.issues import SymbolKind
from scriptdoctor.analyzer.node_kinds import FUNCTION_VALUE_KINDS, NodeKind, classify, dispatch, node_text, traverse
from scriptdoctor.errors import GenerationError

# Parents under which a declaration statement can be dropped outright
STATEMENT_CONTAINERS = {'program', 'statement_block', 'switch_case', 'switch_default',
                        'class_static_block'}


@dataclass(frozen=True)
class Edit:
    start: int
    end: int
    replacement: bytes = b""

    @property
    def is_deletion(self) -> bool:
        return not self.replacement


@dataclass
class RemovalPlan:
    edits: List[Edit] = field(default_factory=list)
    nodes_removed: int = 0
    removed_names: List[str] = field(default_factory=list)

    def record(self, edit: Edit, names: List[str]):
        self.edits.append(edit)
        self.nodes_removed += len(names)
        self.removed_names.extend(names)


def _line_start(source: bytes, pos: int) -> int:
    return source.rfind(b'\n', 0, pos) + 1


def _starts_line(source: bytes, pos: int) -> bool:
    return source[_line_start(source, pos):pos].strip(b' \t') == b''


def _extend_range_for_newline(source: bytes, start: int, end: int) -> Tuple[int, int]:
    """Consume trailing blanks and one line break after the range.

    Only applies when the range starts its line; otherwise the code before
    it on the same line would be glued to the next line.
    """
    if not _starts_line(source, start):
        return start, end

    length = len(source)
    current = end
    while current < length and source[current] in b' \t':
        current += 1
    if current < length and source[current] == 13:  # \r
        current += 1
    if current < length and source[current] == 10:  # \n
        return _line_start(source, start), current + 1
    if current >= length:
        return _line_start(source, start), current
    return start, end


def removal_range(source: bytes, node: Node, trailing_semicolon: bool = False) -> Tuple[int, int]:
    """Byte range that deletes node cleanly.

    Covers directly preceding own-line comments, an optional trailing `;`
    sibling, a comment on the same line as the end, and the line break.
    """
    start, end = node.start_byte, node.end_byte
    last = node

    if trailing_semicolon:
        following = node.next_sibling
        if following is not None and following.type == ';':
            last = following
            end = following.end_byte

    following = last.next_sibling
    if (following is not None and following.type == 'comment'
            and following.start_point[0] == last.end_point[0]):
        end = following.end_byte

    first_row = node.start_point[0]
    previous = node.prev_sibling
    while (previous is not None and previous.type == 'comment'
           and previous.end_point[0] == first_row - 1
           and _starts_line(source, previous.start_byte)):
        start = previous.start_byte
        first_row = previous.start_point[0]
        previous = previous.prev_sibling

    return _extend_range_for_newline(source, start, end)


def _statement_target(node: Node) -> Optional[Node]:
    """The node to delete for a declaration: itself or its export wrapper.

    Returns None when deleting it would not leave a valid program, as for
    default exports or declarations in a for-loop header.
    """
    parent = node.parent
    if parent is not None and parent.type == 'export_statement':
        if any(child.type == 'default' for child in parent.children):
            return None
        return parent if parent.parent is not None and parent.parent.type in STATEMENT_CONTAINERS else None
    if parent is not None and parent.type in STATEMENT_CONTAINERS:
        return node
    return None


class RemovalPlanner:
    """Plan the removal of targeted symbols from one parsed file.

    Args:
        targets: Symbol name -> kind. A node matches only when both its
            name and its kind agree.
    """

    def __init__(self, targets: Dict[str, SymbolKind]):
        self.targets = dict(targets)
        self.handlers: Dict[NodeKind, Callable[[Node, bytes, RemovalPlan], List[Node]]] = {
            NodeKind.FUNCTION_DECLARATION: self._function_declaration,
            NodeKind.VARIABLE_DECLARATION: self._variable_declaration,
            NodeKind.METHOD: self._method,
            NodeKind.IMPORT_STATEMENT: self._import_statement,
        }

    def plan(self, tree: Tree, source: bytes) -> RemovalPlan:
        """Walk the tree once and collect edits.

        Handlers return the nodes whose text their edits replace; those
        subtrees are not visited again.

        Returns:
            RemovalPlan; no edits means nothing targeted was found
        """
        plan = RemovalPlan()
        removed_ids = set()

        def descend(node: Node) -> bool:
            return node.id not in removed_ids

        for node in traverse(tree.root_node, descend):
            handler = dispatch(self.handlers, node)
            if handler is not None:
                removed_ids.update(replaced.id for replaced in handler(node, source, plan))
        return plan

    def _is_target(self, name: str, kind: SymbolKind) -> bool:
        return self.targets.get(name) is kind

    def _function_declaration(self, node: Node, source: bytes, plan: RemovalPlan) -> List[Node]:
        name_node = node.child_by_field_name('name')
        if name_node is None:
            return []
        name = node_text(name_node, source)
        if not self._is_target(name, SymbolKind.FUNCTION):
            return []
        target = _statement_target(node)
        if target is None:
            return []
        plan.record(Edit(*removal_range(source, target)), [name])
        return [node]

    def _method(self, node: Node, source: bytes, plan: RemovalPlan) -> List[Node]:
        if node.parent is None or node.parent.type != 'class_body':
            return []
        name_node = node.child_by_field_name('name')
        if name_node is None:
            return []
        name = node_text(name_node, source)
        if not self._is_target(name, SymbolKind.METHOD):
            return []
        plan.record(Edit(*removal_range(source, node, trailing_semicolon=True)), [name])
        return [node]

    def _import_statement(self, node: Node, source: bytes, plan: RemovalPlan) -> List[Node]:
        bindings = list(import_bindings(node))
        removed = [
            (local, removable) for local, removable in bindings
            if self._is_target(node_text(local, source), SymbolKind.IMPORT_BINDING)
        ]
        if not removed:
            return []
        names = [node_text(local, source) for local, _ in removed]

        if len(removed) == len(bindings):
            target = _statement_target(node)
            if target is None:
                return []
            plan.record(Edit(*removal_range(source, target)), names)
            return [node]

        removed_ids = {removable.id for _, removable in removed}
        clause = next(c for c in node.named_children if c.type == 'import_clause')
        parts = []
        for child in clause.named_children:
            if child.type == 'named_imports':
                kept = [node_text(spec, source) for spec in child.named_children
                        if spec.type == 'import_specifier' and spec.id not in removed_ids]
                if kept:
                    parts.append('{ ' + ', '.join(kept) + ' }')
            elif child.id not in removed_ids:
                parts.append(node_text(child, source))
        replacement = ', '.join(parts).encode('utf-8')
        plan.record(Edit(clause.start_byte, clause.end_byte, replacement), names)
        return [clause]

    def _variable_declaration(self, node: Node, source: bytes, plan: RemovalPlan) -> List[Node]:
        declarators = [c for c in node.named_children if c.type == 'variable_declarator']
        if not declarators:
            return []

        kept_texts: List[str] = []
        pattern_edits: List[Edit] = []
        rebuilt: List[Node] = []
        removed_names: List[str] = []
        any_declarator_removed = False

        for declarator in declarators:
            outcome = self._declarator(declarator, source)
            if outcome is None:
                kept_texts.append(node_text(declarator, source))
                continue
            names, pattern_edit = outcome
            removed_names.extend(names)
            if pattern_edit is None:
                any_declarator_removed = True
                continue
            pattern_edits.append(pattern_edit)
            rebuilt.append(declarator)
            # declarator text with its pattern rebuilt
            local_start = pattern_edit.start - declarator.start_byte
            local_end = pattern_edit.end - declarator.start_byte
            raw = source[declarator.start_byte:declarator.end_byte]
            kept_texts.append(
                (raw[:local_start] + pattern_edit.replacement + raw[local_end:]).decode('utf-8')
            )

        if not removed_names:
            return []

        if not kept_texts:
            target = _statement_target(node)
            if target is None:
                return []
            plan.record(Edit(*removal_range(source, target)), removed_names)
            return [node]

        if not any_declarator_removed:
            plan.edits.extend(pattern_edits)
            plan.nodes_removed += len(removed_names)
            plan.removed_names.extend(removed_names)
            return rebuilt

        replacement = ', '.join(kept_texts).encode('utf-8')
        plan.record(Edit(declarators[0].start_byte, declarators[-1].end_byte, replacement),
                    removed_names)
        return declarators

    def _declarator(self, declarator: Node, source: bytes) -> Optional[Tuple[List[str], Optional[Edit]]]:
        """Decide what happens to one declarator.

        Returns:
            None to keep it, (names, None) to drop it whole, or
            (names, edit) when only some destructured bindings go
        """
        name_node = declarator.child_by_field_name('name')
        value_node = declarator.child_by_field_name('value')
        if name_node is None or value_node is None:
            return None

        if name_node.type == 'identifier':
            name = node_text(name_node, source)
            if classify(value_node) in FUNCTION_VALUE_KINDS:
                return ([name], None) if self._is_target(name, SymbolKind.ARROW_BINDING) else None
            if require_source(value_node, source) is not None:
                return ([name], None) if self._is_target(name, SymbolKind.IMPORT_BINDING) else None
            return None

        if name_node.type != 'object_pattern' or require_source(value_node, source) is None:
            return None

        bindings = list(pattern_bindings(name_node))
        removed = [
            (binding, prop) for binding, prop in bindings
            if self._is_target(node_text(binding, source), SymbolKind.IMPORT_BINDING)
        ]
        if not removed:
            return None
        names = [node_text(binding, source) for binding, _ in removed]
        removed_ids = {prop.id for _, prop in removed}
        kept = [node_text(prop, source) for prop in name_node.named_children
                if prop.id not in removed_ids and prop.type != 'comment']
        if not kept:
            return names, None
        replacement = ('{ ' + ', '.join(kept) + ' }').encode('utf-8')
        return names, Edit(name_node.start_byte, name_node.end_byte, replacement)


def apply_edits(source: bytes, edits: List[Edit]) -> bytes:
    """Splice edits into source.

    Overlapping deletions are merged and a deletion swallows any edit it
    contains. Any other overlap is ambiguous.

    Raises:
        GenerationError: If two edits overlap in a way that can't be merged
    """
    ordered = sorted(edits, key=lambda e: (e.start, -e.end))
    merged: List[Edit] = []
    for edit in ordered:
        if merged and edit.start < merged[-1].end:
            previous = merged[-1]
            if previous.is_deletion and edit.end <= previous.end:
                continue
            if previous.is_deletion and edit.is_deletion:
                merged[-1] = Edit(previous.start, max(previous.end, edit.end))
                continue
            raise GenerationError(
                f"Conflicting edits at bytes {previous.start}-{previous.end} "
                f"and {edit.start}-{edit.end}"
            )
        merged.append(edit)

    # Apply in descending order to preserve offsets
    modified = bytearray(source)
    for edit in reversed(merged):
        modified[edit.start:edit.end] = edit.replacement
    return bytes(modified)
