from __future__ import annotations

"""
Resource Tree Pruning Service.

Removes unused leaves from their trees, collapses objects that become empty
(never the root) and writes each modified tree back through its own codec.
Writes are sequential and atomic per file; a failed write is reported for
that file only.
"""

import logging
from typing import Iterable, List

from keyhunt.core.formats import serialize
from keyhunt.domain.errors import WriteError
from keyhunt.domain.models import Diagnostic, FlatKeyEntry, PruneOutcome, TreeReport
from keyhunt.domain.resource_tree import Node, ResourceTree, get_child, is_empty, is_object, remove_child
from keyhunt.infra.fs import atomic_write_bytes

logger = logging.getLogger(__name__)


def prune_tree(tree: ResourceTree, entries: Iterable[FlatKeyEntry]) -> List[str]:
    """
    Remove the given leaves from a tree.

    After each removal, ancestors left without children are removed from
    their own parents, bottom-up, stopping at the root. Paths that no longer
    exist are skipped silently.

    Args:
        tree: Tree to mutate.
        entries: Entries of that tree to delete.

    Returns:
        List[str]: Paths actually removed, in removal order.
    """
    removed: List[str] = []
    for entry in entries:
        chain: List[Node] = [tree.root]
        for name in entry.segments[:-1]:
            child = get_child(chain[-1], name)
            if not is_object(child):
                chain = []
                break
            chain.append(child)
        if not chain:
            continue

        if not remove_child(chain[-1], entry.segments[-1]):
            continue
        removed.append(entry.path)

        for depth in range(len(chain) - 1, 0, -1):
            if not is_empty(chain[depth]):
                break
            remove_child(chain[depth - 1], entry.segments[depth - 1])

    return removed


def write_tree(tree: ResourceTree) -> None:
    """
    Serialize a tree and atomically replace its file.

    Raises:
        WriteError: If serialization or the file replacement fails.
    """
    try:
        data = serialize(tree)
        atomic_write_bytes(tree.path, data)
    except OSError as e:
        raise WriteError(f"cannot write file ({e.strerror or e})", tree.path) from e


def prune_reports(reports: Iterable[TreeReport]) -> List[PruneOutcome]:
    """
    Prune and rewrite every tree that has prunable keys.

    Keys flagged as possibly dynamic are kept. Trees without removals are not
    rewritten and produce no outcome.

    Args:
        reports: Reconciler output.

    Returns:
        List[PruneOutcome]: One outcome per modified file, in report order.
    """
    outcomes: List[PruneOutcome] = []
    for report in reports:
        prunable = report.prunable
        if not prunable:
            continue

        tree = report.tree
        removed = prune_tree(tree, prunable)
        if not removed:
            continue

        outcome = PruneOutcome(path=tree.path, removed=removed)
        try:
            write_tree(tree)
            outcome.written = True
            logger.info(f"Removed {len(removed)} keys from {tree.path}")
        except WriteError as e:
            outcome.error = e.reason
            logger.error(f"Failed to rewrite {tree.path}: {e.reason}")
        outcomes.append(outcome)

    return outcomes


def write_diagnostics(outcomes: Iterable[PruneOutcome]) -> List[Diagnostic]:
    """Diagnostics for the outcomes whose write failed."""
    return [
        Diagnostic(kind=WriteError.kind, path=o.path, reason=o.error)
        for o in outcomes if o.error
    ]
