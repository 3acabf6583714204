from __future__ import annotations

"""
Resource Tree Flattening.

Turns nested resource trees into ordered lists of fully-qualified key paths.
Only leaves produce entries; empty objects stay in the tree but contribute
nothing to the index. A key whose name contains the separator can spell the
same path as a nested key; such a tree is rejected with a ParseError.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from keyhunt.domain.config import DEFAULT_SEPARATOR
from keyhunt.domain.errors import ParseError
from keyhunt.domain.models import Diagnostic, FlatKeyEntry
from keyhunt.domain.resource_tree import ResourceTree, iter_leaves

logger = logging.getLogger(__name__)


@dataclass
class IndexResult:
    """
    Flattened view of the loaded trees.

    Attributes:
        trees: Trees whose paths are unique, in loader order.
        entries: Their entries, tree by tree.
        diagnostics: One ParseError diagnostic per rejected tree.
    """
    trees: List[ResourceTree] = field(default_factory=list)
    entries: List[FlatKeyEntry] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)


def flatten_tree(tree: ResourceTree, separator: str = DEFAULT_SEPARATOR) -> List[FlatKeyEntry]:
    """
    Flatten one tree in pre-order.

    Args:
        tree: Parsed resource tree.
        separator: Joins path segments.

    Returns:
        List[FlatKeyEntry]: One entry per leaf, in document order.

    Raises:
        ParseError: If two leaves produce the same path.
    """
    entries: List[FlatKeyEntry] = []
    owners: Dict[str, Tuple[str, ...]] = {}
    for segments, leaf in iter_leaves(tree.root):
        path = separator.join(segments)
        if path in owners:
            raise ParseError(
                f"key path '{path}' is ambiguous: {list(owners[path])} and {list(segments)}",
                tree.path,
            )
        owners[path] = segments
        entries.append(FlatKeyEntry(
            path=path,
            segments=segments,
            tree=tree,
            value=leaf.value,
            separator=separator,
        ))
    return entries


def index_trees(trees: Iterable[ResourceTree], separator: str = DEFAULT_SEPARATOR) -> IndexResult:
    """
    Flatten several trees, preserving tree order.

    A tree with ambiguous paths is reported and left out, like a file that
    failed to parse.
    """
    result = IndexResult()
    for tree in trees:
        try:
            entries = flatten_tree(tree, separator)
        except ParseError as e:
            logger.warning(f"Skipping resource file: {e}")
            result.diagnostics.append(Diagnostic.from_error(e, tree.path))
            continue
        result.trees.append(tree)
        result.entries.extend(entries)
    return result


def unique_paths(entries: Iterable[FlatKeyEntry]) -> List[str]:
    """Distinct key paths in first-seen order."""
    seen = set()
    out: List[str] = []
    for entry in entries:
        if entry.path not in seen:
            seen.add(entry.path)
            out.append(entry.path)
    return out
