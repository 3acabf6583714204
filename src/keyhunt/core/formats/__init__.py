from __future__ import annotations

"""
Resource Format Registry.

Byte-level entry points for the Resource Tree Model: format detection,
decoding (UTF-8 with optional BOM) and dispatch to the family codecs.
"""

import codecs
import os
from typing import Callable, Dict, Optional

from keyhunt.core.formats.json_codec import parse_json, render_json
from keyhunt.core.formats.yaml_codec import parse_yaml, render_yaml
from keyhunt.domain.errors import ParseError
from keyhunt.domain.resource_tree import ResourceTree

FORMAT_EXTENSIONS: Dict[str, str] = {
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
}

_PARSERS: Dict[str, Callable[..., ResourceTree]] = {
    "json": parse_json,
    "yaml": parse_yaml,
}

_RENDERERS: Dict[str, Callable[[ResourceTree], str]] = {
    "json": render_json,
    "yaml": render_yaml,
}


def family_for_path(path: str) -> Optional[str]:
    """Format family implied by the file extension, if recognized."""
    _, ext = os.path.splitext(path)
    return FORMAT_EXTENSIONS.get(ext.lower())


def sniff_family(data: bytes) -> str:
    """Guess the family from content: a leading '{' means JSON, anything else YAML."""
    text = data[len(codecs.BOM_UTF8):] if data.startswith(codecs.BOM_UTF8) else data
    stripped = text.lstrip()
    return "json" if stripped.startswith(b"{") else "yaml"


def parse(data: bytes, path: str = "", family: Optional[str] = None) -> ResourceTree:
    """
    Parse raw file bytes into a Resource Tree.

    Args:
        data: File content.
        path: Source path, recorded on the tree and used for detection.
        family: Force a format family instead of detecting it.

    Returns:
        ResourceTree: The parsed tree.

    Raises:
        ParseError: If the bytes are not valid UTF-8 or not a valid document.
    """
    family = family or family_for_path(path) or sniff_family(data)
    parser = _PARSERS.get(family)
    if parser is None:
        raise ParseError(f"unsupported format '{family}'", path)

    bom = data.startswith(codecs.BOM_UTF8)
    payload = data[len(codecs.BOM_UTF8):] if bom else data
    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"not valid UTF-8 ({e.reason} at byte {e.start})", path) from e

    return parser(text, path=path, bom=bom)


def serialize(tree: ResourceTree) -> bytes:
    """
    Serialize a tree back to bytes in its own format and style.

    Args:
        tree: Tree produced by parse().

    Returns:
        bytes: Encoded document, BOM restored when the source had one.
    """
    renderer = _RENDERERS[tree.family]
    payload = renderer(tree).encode("utf-8")
    return codecs.BOM_UTF8 + payload if tree.style.bom else payload


__all__ = [
    "FORMAT_EXTENSIONS",
    "family_for_path",
    "parse",
    "serialize",
    "sniff_family",
]
