from __future__ import annotations

"""
Usage Reconciliation.

Pure classification of flat key entries into used and unused per tree, given
the usage records produced by the scanner. No I/O and no mutation.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Set

from keyhunt.domain.models import FlatKeyEntry, TreeReport, UsageRecord
from keyhunt.domain.resource_tree import ResourceTree


def reconcile(
        trees: Sequence[ResourceTree],
        entries: Iterable[FlatKeyEntry],
        records: Iterable[UsageRecord],
        referenced_parents: Optional[Set[str]] = None,
        *,
        flag_possibly_dynamic: bool = False,
) -> List[TreeReport]:
    """
    Split every entry into used or unused, grouped by tree.

    A key is used when at least one record names its path, in any source file.
    Usage is by path, so a key present in several locale files is used (or
    unused) in all of them at once.

    Args:
        trees: Loaded trees; report order follows this sequence.
        entries: Flattened entries of those trees.
        records: Usage records from the scanner.
        referenced_parents: Enclosing paths seen literally in source.
        flag_possibly_dynamic: Mark unused keys whose parent path is referenced.

    Returns:
        List[TreeReport]: One report per tree, entries in flattening order.
    """
    used_paths = {r.key_path for r in records}
    parents = referenced_parents or set()

    reports: Dict[int, TreeReport] = {id(t): TreeReport(tree=t) for t in trees}
    for entry in entries:
        report = reports.get(id(entry.tree))
        if report is None:
            report = reports[id(entry.tree)] = TreeReport(tree=entry.tree)

        if entry.path in used_paths:
            report.used.append(entry)
            continue

        report.unused.append(entry)
        if flag_possibly_dynamic and entry.parent_path and entry.parent_path in parents:
            report.possibly_dynamic.append(entry.path)

    return list(reports.values())


def unused_key_set(reports: Iterable[TreeReport]) -> Dict[ResourceTree, List[str]]:
    """Map each tree with unused keys to its unused paths, in order."""
    return {r.tree: [e.path for e in r.unused] for r in reports if r.unused}
