"""Message-channel fact collection (third indexing pass).

A channel is Defined by a call such as `ipcMain.handle('ping', fn)` and
Invoked by a call such as `ipcRenderer.invoke('ping')`. Only calls whose
first argument is a plain string literal are recorded; channel names
built at runtime are out of reach.
"""
from pathlib import Path
from typing import Iterable, List, Optional, Tuple
from tree_sitter import Tree, Node

from scriptdoctor.config import DEFAULT_HANDLER_CALLEES, DEFAULT_INVOKE_CALLEES
from .issues import ChannelFact, ChannelRole
from .node_kinds import NodeKind, classify, node_text, traverse


def callee_path(node: Optional[Node], source_code: bytes) -> Optional[str]:
    """Resolve a callee to a dotted name like `window.electronAPI.invoke`.

    Returns None for anything but identifier and member-expression chains
    (computed members, calls, `this`, ...).
    """
    parts = []
    current = node
    while current is not None:
        if current.type == 'identifier':
            parts.append(node_text(current, source_code))
            break
        if current.type != 'member_expression':
            return None
        prop = current.child_by_field_name('property')
        if prop is None or prop.type not in ('property_identifier', 'private_property_identifier'):
            return None
        parts.append(node_text(prop, source_code))
        current = current.child_by_field_name('object')
    if current is None:
        return None
    return '.'.join(reversed(parts))


def matches_form(callee: str, form: str) -> bool:
    """A configured form matches the callee exactly or as a dotted suffix."""
    return callee == form or callee.endswith('.' + form)


def string_literal_value(node: Node, source_code: bytes) -> Optional[str]:
    if classify(node) is not NodeKind.STRING:
        return None
    return node_text(node, source_code)[1:-1]


class ChannelTracker:
    """Collect Defined and Invoked channel facts from call expressions."""

    def __init__(self, handler_callees: Iterable[str] = DEFAULT_HANDLER_CALLEES,
                 invoke_callees: Iterable[str] = DEFAULT_INVOKE_CALLEES):
        self.forms: List[Tuple[str, ChannelRole]] = (
            [(form, ChannelRole.DEFINED) for form in handler_callees]
            + [(form, ChannelRole.INVOKED) for form in invoke_callees]
        )

    def role_of(self, callee: str) -> Optional[ChannelRole]:
        for form, role in self.forms:
            if matches_form(callee, form):
                return role
        return None

    def extract(self, tree: Tree, source_code: bytes, file_path: str | Path) -> List[ChannelFact]:
        """Return channel facts in document order."""
        file_path = str(file_path)
        facts = []
        for node in traverse(tree.root_node):
            if classify(node) is not NodeKind.CALL:
                continue
            callee = callee_path(node.child_by_field_name('function'), source_code)
            if callee is None:
                continue
            role = self.role_of(callee)
            if role is None:
                continue
            args_node = node.child_by_field_name('arguments')
            if args_node is None or args_node.named_child_count == 0:
                continue
            channel = string_literal_value(args_node.named_children[0], source_code)
            if channel is None:
                continue
            facts.append(ChannelFact(
                channel=channel,
                file=file_path,
                line=node.start_point[0] + 1,
                role=role,
            ))
        return facts
