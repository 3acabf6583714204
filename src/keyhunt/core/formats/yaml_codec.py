from __future__ import annotations

"""
Layout-Preserving YAML Codec.

Uses the ruamel.yaml round-trip loader to validate indentation-delimited
resource files and to obtain the source line of every mapping key. Block-style
members are pruned by cutting their line span out of the original text, which
leaves comments, quoting and spacing of every other line untouched. Members of
flow-style mappings have no line span of their own; removing one of those
falls back to a ruamel.yaml round-trip dump configured with the indentation
detected on load.
"""

import io
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq
from ruamel.yaml.error import YAMLError

from keyhunt.domain.errors import ParseError
from keyhunt.domain.resource_tree import FormatStyle, LeafNode, ObjectNode, ResourceTree

FAMILY = "yaml"

_SEQ_DASH_RX = re.compile(r"^(\s*)-(\s+)\S")
_SEQ_ITEM_RX = re.compile(r"-(\s|$)")

# -----------------------------------------------------------------------------
# LAYOUT RECORDS
# -----------------------------------------------------------------------------

@dataclass
class YamlMember:
    """
    Location of one mapping member.

    Attributes:
        key: Original key object, needed to delete from the ruamel mapping.
        span: [start, end) line range, or None inside flow-style mappings.
    """
    key: Any
    span: Optional[Tuple[int, int]]


@dataclass
class YamlObjectLayout:
    """Members in original order plus the backing ruamel mapping."""
    members: Dict[str, YamlMember] = field(default_factory=dict)
    mapping: Optional[CommentedMap] = None


@dataclass
class YamlDocument:
    """Original source lines and the indentation settings for fallback dumps."""
    lines: List[str] = field(default_factory=list)
    data: Optional[CommentedMap] = None
    mapping_indent: int = 2
    sequence_indent: int = 2
    sequence_offset: int = 0
    explicit_start: bool = False

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def parse_yaml(text: str, path: str = "", bom: bool = False) -> ResourceTree:
    """
    Parse YAML text into a Resource Tree.

    Args:
        text: Decoded document text (BOM already stripped).
        path: Source path, used in error messages.
        bom: Whether the original bytes carried a UTF-8 BOM.

    Returns:
        ResourceTree: Tree with line spans attached.

    Raises:
        ParseError: On invalid YAML, multiple documents, a non-mapping root or
            two keys that flatten to the same name.
    """
    try:
        data = _new_yaml().load(text)
    except YAMLError as e:
        raise ParseError(_first_line(str(e)), path) from e

    if data is None:
        data = CommentedMap()
    if not isinstance(data, CommentedMap):
        raise ParseError(f"root value must be a mapping, found {type(data).__name__}", path)

    lines = _split_lines(text)
    root = _build_object(data, lines, (), path)

    mapping_indent = _detect_mapping_indent(data)
    seq_indent, seq_offset = _detect_sequence_style(lines, mapping_indent)
    newline = "\r\n" if "\r\n" in text else "\n"

    style = FormatStyle(
        family=FAMILY,
        indent=" " * mapping_indent,
        newline=newline,
        trailing_newline=text.endswith("\n"),
        bom=bom,
    )
    document = YamlDocument(
        lines=lines,
        data=data,
        mapping_indent=mapping_indent,
        sequence_indent=seq_indent,
        sequence_offset=seq_offset,
        explicit_start=text.lstrip().startswith("---"),
    )
    return ResourceTree(path=path, root=root, style=style, document=document)


def render_yaml(tree: ResourceTree) -> str:
    """
    Render a tree back to YAML text.

    Unmodified trees return the original text. Pruned block-style members are
    cut out line by line; anything else goes through a round-trip dump.

    Args:
        tree: Tree produced by parse_yaml, possibly pruned.

    Returns:
        str: Document text without BOM.
    """
    document: YamlDocument = tree.document
    removed: List[Tuple[int, int]] = []
    needs_dump = _collect_removals(tree.root, removed)

    if not removed and not needs_dump:
        return "".join(document.lines)

    if not tree.root.children:
        return "{}" + (tree.style.newline if tree.style.trailing_newline else "")

    if needs_dump:
        return _dump(tree)

    dropped: Set[int] = set()
    for start, end in removed:
        dropped.update(range(start, end))
    return "".join(line for i, line in enumerate(document.lines) if i not in dropped)

# -----------------------------------------------------------------------------
# TREE CONSTRUCTION
# -----------------------------------------------------------------------------

def _new_yaml() -> YAML:
    yaml = YAML(typ="rt")
    yaml.preserve_quotes = True
    yaml.width = 4096
    return yaml


def _build_object(
        mapping: CommentedMap,
        lines: List[str],
        trail: Tuple[str, ...],
        path: str,
        seen: Optional[Set[int]] = None,
) -> ObjectNode:
    """
    Mirror one ruamel mapping as an ObjectNode.

    Only keys written in the mapping itself become children: keys pulled in
    through '<<: *anchor' belong to the anchored mapping. A mapping reached a
    second time through an alias is kept as an opaque leaf, so its keys are
    flattened once, at the anchor.
    """
    seen = set() if seen is None else seen
    seen.add(id(mapping))

    flow = bool(mapping.fa.flow_style())
    positions = mapping.lc.data or {}
    merged = bool(mapping.merge)
    layout = YamlObjectLayout(mapping=mapping)
    node = ObjectNode(style=layout)

    for key, value in mapping.items():
        if merged and key not in positions:
            continue
        name = str(key)
        if name in node.children:
            raise ParseError(f"duplicate key '{'.'.join(trail + (name,))}'", path)

        span: Optional[Tuple[int, int]] = None
        position = positions.get(key) if not flow else None
        if position is not None:
            span = _block_span(lines, position[0], position[1], isinstance(value, CommentedSeq))

        layout.members[name] = YamlMember(key=key, span=span)
        if isinstance(value, CommentedMap) and id(value) not in seen:
            node.children[name] = _build_object(value, lines, trail + (name,), path, seen)
        else:
            node.children[name] = LeafNode(value=_plain(value))

    return node


def _block_span(lines: List[str], start: int, column: int, sequence: bool = False) -> Tuple[int, int]:
    """
    Compute the [start, end) line range of a block member.

    The member owns its key line and every following line that is blank or
    indented deeper than the key. A sequence value may also put its '- '
    items at the key's own column. Trailing blank lines are left in place.
    """
    end = start + 1
    while end < len(lines):
        line = lines[end]
        if line.strip() and _indent_of(line) <= column:
            at_key_column = _indent_of(line) == column
            if not (sequence and at_key_column and _SEQ_ITEM_RX.match(line.lstrip(" \t"))):
                break
        end += 1
    while end > start + 1 and not lines[end - 1].strip():
        end -= 1
    return start, end


def _plain(value: Any) -> Any:
    """Convert ruamel scalar/sequence wrappers into plain Python values."""
    if isinstance(value, CommentedSeq):
        return [_plain(v) for v in value]
    if isinstance(value, CommentedMap):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, str):
        return str(value)
    return value

# -----------------------------------------------------------------------------
# RENDERING
# -----------------------------------------------------------------------------

def _collect_removals(node: ObjectNode, removed: List[Tuple[int, int]]) -> bool:
    """Gather spans of removed members; True if one of them has no span."""
    layout: YamlObjectLayout = node.style
    needs_dump = False
    for name, member in layout.members.items():
        child = node.children.get(name)
        if child is None:
            if member.span is None:
                needs_dump = True
            else:
                removed.append(member.span)
        elif isinstance(child, ObjectNode):
            needs_dump = _collect_removals(child, removed) or needs_dump
    return needs_dump


def _sync_mapping(node: ObjectNode) -> None:
    """Mirror removals from the resource tree into the ruamel mapping."""
    layout: YamlObjectLayout = node.style
    for name, member in layout.members.items():
        child = node.children.get(name)
        if child is None:
            if layout.mapping is not None and member.key in layout.mapping:
                del layout.mapping[member.key]
        elif isinstance(child, ObjectNode):
            _sync_mapping(child)


def _dump(tree: ResourceTree) -> str:
    document: YamlDocument = tree.document
    _sync_mapping(tree.root)

    yaml = _new_yaml()
    yaml.indent(
        mapping=document.mapping_indent,
        sequence=document.sequence_indent,
        offset=document.sequence_offset,
    )
    yaml.explicit_start = document.explicit_start

    stream = io.StringIO()
    yaml.dump(document.data, stream)
    text = stream.getvalue()
    if tree.style.newline != "\n":
        text = text.replace("\n", tree.style.newline)
    if not tree.style.trailing_newline:
        text = text.rstrip("\r\n")
    return text

# -----------------------------------------------------------------------------
# STYLE DETECTION
# -----------------------------------------------------------------------------

def _detect_mapping_indent(data: CommentedMap) -> int:
    """Column difference between the first nested block mapping and its parent."""
    for key, value in data.items():
        if isinstance(value, CommentedMap) and value and not value.fa.flow_style():
            parent_col = (data.lc.data or {}).get(key, [0, 0])[1]
            first_key = next(iter(value))
            child_pos = (value.lc.data or {}).get(first_key)
            if child_pos and child_pos[1] > parent_col:
                return child_pos[1] - parent_col
            return 2
    return 2


def _detect_sequence_style(lines: List[str], mapping_indent: int) -> Tuple[int, int]:
    """Infer ruamel's (sequence, offset) from the first block sequence item."""
    for index, line in enumerate(lines):
        match = _SEQ_DASH_RX.match(line)
        if not match or index == 0:
            continue
        previous = _previous_content_line(lines, index)
        if previous is None or not previous.rstrip().endswith(":"):
            continue
        offset = max(len(match.group(1)) - _indent_of(previous), 0)
        return offset + 1 + len(match.group(2)), offset
    return mapping_indent, 0


def _previous_content_line(lines: List[str], index: int) -> Optional[str]:
    for line in reversed(lines[:index]):
        if line.strip() and not line.lstrip().startswith("#"):
            return line
    return None


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip(" \t"))


def _first_line(message: str) -> str:
    parts = [p.strip() for p in message.strip().splitlines() if p.strip()]
    return " ".join(parts[:3]) if parts else "invalid YAML"


def _split_lines(text: str) -> List[str]:
    """Split on '\\n' only, keeping terminators, so indexes match the YAML reader."""
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines
