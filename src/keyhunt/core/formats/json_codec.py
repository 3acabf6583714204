from __future__ import annotations

"""
Layout-Preserving JSON Codec.

Parses brace-delimited resource files into Resource Trees while recording the
exact text around every object member (leading whitespace, raw key, raw ':'
separator, raw value and trailing whitespace). Rendering re-emits those
pieces, so any member that survives pruning is reproduced byte for byte and
an untouched document round-trips exactly.

Objects are walked by hand to capture positions; strings, numbers, literals
and arrays are delegated to the standard json decoder.
"""

import json
import re
from dataclasses import dataclass, field
from json.decoder import scanstring
from typing import Dict, List, Optional, Tuple

from keyhunt.domain.errors import ParseError
from keyhunt.domain.resource_tree import FormatStyle, LeafNode, Node, ObjectNode, ResourceTree

FAMILY = "json"

_WS = " \t\n\r"
_DECODER = json.JSONDecoder()
_INDENT_RX = re.compile(r"\n([ \t]+)\S")

# -----------------------------------------------------------------------------
# LAYOUT RECORDS
# -----------------------------------------------------------------------------

@dataclass
class JsonMember:
    """Source text surrounding one 'key: value' member."""
    leading: str
    key_raw: str
    separator: str
    trailing: str = ""


@dataclass
class JsonObjectLayout:
    """Per-object layout: original members (in order) and text before '}'."""
    members: Dict[str, JsonMember] = field(default_factory=dict)
    closing: str = ""


@dataclass
class JsonDocument:
    """Whitespace outside the root object."""
    prefix: str = ""
    suffix: str = ""

# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def parse_json(text: str, path: str = "", bom: bool = False) -> ResourceTree:
    """
    Parse JSON text into a Resource Tree.

    Args:
        text: Decoded document text (BOM already stripped).
        path: Source path, used in error messages.
        bom: Whether the original bytes carried a UTF-8 BOM.

    Returns:
        ResourceTree: Tree with layout records attached.

    Raises:
        ParseError: On malformed JSON, a non-object root or duplicate keys.
    """
    parser = _Parser(text, path)
    start = parser.skip_ws(0)
    if start >= len(text) or text[start] != "{":
        raise parser.error("root value must be an object", start)

    root, end = parser.parse_object(start, ())
    tail = parser.skip_ws(end)
    if tail != len(text):
        raise parser.error("unexpected content after root object", tail)

    style = FormatStyle(
        family=FAMILY,
        indent=_detect_indent(text),
        newline="\r\n" if "\r\n" in text else "\n",
        trailing_newline=text.endswith("\n"),
        bom=bom,
    )
    document = JsonDocument(prefix=text[:start], suffix=text[end:])
    return ResourceTree(path=path, root=root, style=style, document=document)


def render_json(tree: ResourceTree) -> str:
    """
    Render a tree back to JSON text using its recorded layout.

    Args:
        tree: Tree produced by parse_json, possibly pruned.

    Returns:
        str: Document text without BOM.
    """
    document: JsonDocument = tree.document or JsonDocument()
    return f"{document.prefix}{_render_object(tree.root)}{document.suffix}"

# -----------------------------------------------------------------------------
# PARSER
# -----------------------------------------------------------------------------

class _Parser:
    """Position-tracking recursive descent over object structure."""

    def __init__(self, text: str, path: str):
        self.text = text
        self.path = path

    def skip_ws(self, pos: int) -> int:
        text = self.text
        n = len(text)
        while pos < n and text[pos] in _WS:
            pos += 1
        return pos

    def error(self, msg: str, pos: int) -> ParseError:
        line = self.text.count("\n", 0, pos) + 1
        col = pos - (self.text.rfind("\n", 0, pos) + 1) + 1
        return ParseError(f"{msg} (line {line}, column {col})", self.path)

    def parse_object(self, pos: int, trail: Tuple[str, ...]) -> Tuple[ObjectNode, int]:
        """Parse an object starting at '{'. Returns the node and the index after '}'."""
        text = self.text
        layout = JsonObjectLayout()
        node = ObjectNode(style=layout)

        cursor = pos + 1
        probe = self.skip_ws(cursor)
        if probe < len(text) and text[probe] == "}":
            layout.closing = text[cursor:probe]
            return node, probe + 1

        while True:
            key_start = self.skip_ws(cursor)
            if key_start >= len(text) or text[key_start] != '"':
                raise self.error("expected a double-quoted member name", key_start)

            try:
                name, key_end = scanstring(text, key_start + 1)
            except ValueError as e:
                raise self.error(f"invalid member name: {e}", key_start) from e

            colon = self.skip_ws(key_end)
            if colon >= len(text) or text[colon] != ":":
                raise self.error("expected ':' after member name", colon)
            value_start = self.skip_ws(colon + 1)

            if name in node.children:
                raise self.error(f"duplicate key '{'.'.join(trail + (name,))}'", key_start)

            child, value_end = self.parse_value(value_start, trail + (name,))
            member = JsonMember(
                leading=text[cursor:key_start],
                key_raw=text[key_start:key_end],
                separator=text[key_end:value_start],
            )
            node.children[name] = child
            layout.members[name] = member

            after = self.skip_ws(value_end)
            if after >= len(text):
                raise self.error("unterminated object", after)
            if text[after] == ",":
                member.trailing = text[value_end:after]
                cursor = after + 1
                continue
            if text[after] == "}":
                layout.closing = text[value_end:after]
                return node, after + 1
            raise self.error("expected ',' or '}'", after)

    def parse_value(self, pos: int, trail: Tuple[str, ...]) -> Tuple[Node, int]:
        text = self.text
        if pos >= len(text):
            raise self.error("unexpected end of document", pos)
        if text[pos] == "{":
            return self.parse_object(pos, trail)
        try:
            value, end = _DECODER.raw_decode(text, pos)
        except json.JSONDecodeError as e:
            raise self.error(e.msg, e.pos) from e
        return LeafNode(value=value, raw=text[pos:end]), end

# -----------------------------------------------------------------------------
# RENDERING
# -----------------------------------------------------------------------------

def _render_object(node: ObjectNode) -> str:
    layout: Optional[JsonObjectLayout] = node.style
    if layout is None:
        layout = JsonObjectLayout()

    if not node.children:
        # An object that lost all members collapses to '{}'
        return "{}" if layout.members else "{" + layout.closing + "}"

    original_names = list(layout.members)
    parts: List[str] = []
    for index, (name, child) in enumerate(node.children.items()):
        member = layout.members.get(name) or _synthetic_member(name)
        leading = member.leading
        if index == 0 and original_names and original_names[0] != name:
            # Keep the first slot's spacing when the original first member is gone
            leading = layout.members[original_names[0]].leading
        parts.append(f"{leading}{member.key_raw}{member.separator}{_render_value(child)}{member.trailing}")

    return "{" + ",".join(parts) + layout.closing + "}"


def _render_value(node: Node) -> str:
    if isinstance(node, ObjectNode):
        return _render_object(node)
    if node.raw is not None:
        return node.raw
    return json.dumps(node.value, ensure_ascii=False)


def _synthetic_member(name: str) -> JsonMember:
    return JsonMember(leading=" ", key_raw=json.dumps(name, ensure_ascii=False), separator=": ")


def _detect_indent(text: str) -> str:
    """Smallest indentation found at the start of a line, or two spaces."""
    found = [m.group(1) for m in _INDENT_RX.finditer(text)]
    if not found:
        return "  "
    return min(found, key=len)
