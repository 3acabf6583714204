from __future__ import annotations

"""
Resource Tree Data Model.

In-memory representation of one parsed locale file. Object nodes own an
ordered mapping of children; leaf nodes hold a decoded value plus whatever raw
text the codec needs to reproduce it. Format-specific layout (whitespace,
line spans, quoting) lives in the opaque 'style' slots owned by the codec that
created the tree, so the model itself stays format-agnostic.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Tuple, Union

# -----------------------------------------------------------------------------
# FORMAT DESCRIPTION
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class FormatStyle:
    """
    Serialization style detected when a file was parsed.

    Attributes:
        family: Format family identifier ("json" or "yaml").
        indent: Indentation unit used by nested members.
        newline: Line terminator convention ("\\n" or "\\r\\n").
        trailing_newline: Whether the document ends with a line terminator.
        bom: Whether the file started with a UTF-8 byte order mark.
    """
    family: str
    indent: str = "  "
    newline: str = "\n"
    trailing_newline: bool = True
    bom: bool = False

# -----------------------------------------------------------------------------
# NODES
# -----------------------------------------------------------------------------

@dataclass(eq=False)
class LeafNode:
    """
    Terminal value of a resource tree.

    Attributes:
        value: Decoded value (string, number, boolean, None or a sequence).
        raw: Source text of the value when the codec reproduces it verbatim.
    """
    value: Any
    raw: Optional[str] = None


@dataclass(eq=False)
class ObjectNode:
    """
    Ordered container of named children.

    Attributes:
        children: Child nodes in parse order, keyed by member name.
        style: Codec-owned layout record for this object.
    """
    children: Dict[str, "Node"] = field(default_factory=dict)
    style: Any = None


Node = Union[ObjectNode, LeafNode]


@dataclass(eq=False)
class ResourceTree:
    """
    One locale resource file.

    Trees compare by identity and are hashable.

    Attributes:
        path: Source file path.
        root: Root object node. Never removed, even when empty.
        style: Detected serialization style.
        document: Codec-private document state (prefix text, source lines...).
    """
    path: str
    root: ObjectNode
    style: FormatStyle
    document: Any = None

    @property
    def family(self) -> str:
        return self.style.family

# -----------------------------------------------------------------------------
# NODE OPERATIONS
# -----------------------------------------------------------------------------

def is_object(node: Optional[Node]) -> bool:
    return isinstance(node, ObjectNode)


def get_child(node: Node, name: str) -> Optional[Node]:
    """
    Look up a direct child by name.

    Args:
        node: Parent node. Leaves have no children.
        name: Member name.

    Returns:
        Optional[Node]: The child, or None when absent.
    """
    if not isinstance(node, ObjectNode):
        return None
    return node.children.get(name)


def remove_child(node: Node, name: str) -> bool:
    """
    Detach a direct child.

    Args:
        node: Parent node.
        name: Member name to remove.

    Returns:
        bool: False if the name does not exist; callers decide what that means.
    """
    if not isinstance(node, ObjectNode) or name not in node.children:
        return False
    del node.children[name]
    return True


def is_empty(node: Node) -> bool:
    """An object with no children. Leaves are never empty."""
    return isinstance(node, ObjectNode) and not node.children


def iter_leaves(
        node: ObjectNode,
        prefix: Tuple[str, ...] = (),
) -> Iterator[Tuple[Tuple[str, ...], LeafNode]]:
    """Yield (segments, leaf) pairs in pre-order."""
    for name, child in node.children.items():
        segments = prefix + (name,)
        if isinstance(child, ObjectNode):
            yield from iter_leaves(child, segments)
        else:
            yield segments, child
