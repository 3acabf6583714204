from __future__ import annotations

"""
Hunt Domain Data Models.

Defines the records exchanged between the loader, scanner, reconciler and
pruner, plus the aggregate result handed to the interface layer.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from keyhunt.domain.errors import HuntError
from keyhunt.domain.resource_tree import ResourceTree

# -----------------------------------------------------------------------------
# KEY INDEX MODELS
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class FlatKeyEntry:
    """
    One fully-qualified key of a resource tree.

    Attributes:
        path: Segments joined by the configured separator.
        segments: Individual path segments, used for structural lookups.
        tree: Owning tree (back-reference, compared by identity).
        value: Leaf value, for reporting only.
        separator: Separator used to build 'path'.
    """
    path: str
    segments: Tuple[str, ...]
    tree: ResourceTree = field(repr=False)
    value: Any = field(default=None, compare=False)
    separator: str = field(default=".", compare=False, repr=False)

    @property
    def parent_path(self) -> str:
        """Path of the enclosing object, or '' for top-level keys."""
        return self.separator.join(self.segments[:-1])


@dataclass(frozen=True)
class UsageRecord:
    """
    Evidence that a key path is referenced in source.

    Attributes:
        key_path: Referenced dotted path.
        source_file: File containing the reference.
        line: 1-based line of the first occurrence in that file.
        kind: "exact" for literal matches, "dynamic" for template expansion.
    """
    key_path: str
    source_file: str
    line: int
    kind: str = "exact"

# -----------------------------------------------------------------------------
# DIAGNOSTICS
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Diagnostic:
    """
    A recovered per-item failure.

    Attributes:
        kind: Error family ("parse", "scan", "write").
        path: Offending file.
        reason: Human-readable cause.
    """
    kind: str
    path: str
    reason: str

    @classmethod
    def from_error(cls, error: HuntError, path: str = "") -> "Diagnostic":
        return cls(kind=error.kind, path=error.path or path, reason=error.reason)

# -----------------------------------------------------------------------------
# RECONCILIATION MODELS
# -----------------------------------------------------------------------------

@dataclass
class TreeReport:
    """
    Classification of every key of one tree.

    Attributes:
        tree: The resource tree.
        used: Entries with at least one usage record.
        unused: Entries with none, in flattening order.
        possibly_dynamic: Paths of unused entries whose parent path is referenced.
    """
    tree: ResourceTree
    used: List[FlatKeyEntry] = field(default_factory=list)
    unused: List[FlatKeyEntry] = field(default_factory=list)
    possibly_dynamic: List[str] = field(default_factory=list)

    @property
    def prunable(self) -> List[FlatKeyEntry]:
        """Unused entries that are safe to delete."""
        flagged = set(self.possibly_dynamic)
        return [e for e in self.unused if e.path not in flagged]


@dataclass
class PruneOutcome:
    """
    Result of pruning and rewriting one file.

    Attributes:
        path: Target file.
        removed: Key paths that were removed, in removal order.
        written: Whether the file was rewritten.
        error: Failure reason when the write did not happen.
    """
    path: str
    removed: List[str] = field(default_factory=list)
    written: bool = False
    error: Optional[str] = None

# -----------------------------------------------------------------------------
# AGGREGATE RESULT
# -----------------------------------------------------------------------------

@dataclass
class HuntStats:
    """
    Counters of a complete run.

    Attributes:
        files_scanned: Source files whose content was searched.
        files_skipped: Source files skipped (binary or unreadable).
        resource_files: Resource files successfully loaded.
        keys_total: Flat key entries across all trees.
        unique_keys: Distinct key paths across all trees.
        unused_keys: Unused entries across all trees.
        duration: Wall-clock seconds.
    """
    files_scanned: int = 0
    files_skipped: int = 0
    resource_files: int = 0
    keys_total: int = 0
    unique_keys: int = 0
    unused_keys: int = 0
    duration: float = 0.0

    def formatted_duration(self) -> str:
        millis = int(self.duration * 1000)
        if millis < 1000:
            return f"{millis}ms"
        return f"{millis / 1000.0:.2f}s"


@dataclass
class HuntResult:
    """
    Everything the interface layer needs to render a run.

    Attributes:
        ok: False when any rewrite failed.
        clear: Whether destructive mode was requested.
        reports: Per-tree classification, in loader order.
        diagnostics: Recovered errors, in detection order.
        outcomes: Per-file prune results (clear mode only).
        stats: Run counters.
        config: Effective configuration.
    """
    ok: bool
    clear: bool
    reports: List[TreeReport] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    outcomes: List[PruneOutcome] = field(default_factory=list)
    stats: HuntStats = field(default_factory=HuntStats)
    config: Dict[str, Any] = field(default_factory=dict)

    @property
    def unused_count(self) -> int:
        return sum(len(r.unused) for r in self.reports)

    @property
    def write_failures(self) -> List[PruneOutcome]:
        return [o for o in self.outcomes if o.error]

    def to_dict(self) -> Dict[str, Any]:
        """Serializable view for the JSON report."""
        return {
            "ok": self.ok,
            "clear": self.clear,
            "files": [
                {
                    "path": r.tree.path,
                    "format": r.tree.family,
                    "unused": [e.path for e in r.unused],
                    "possibly_dynamic": list(r.possibly_dynamic),
                    "used_count": len(r.used),
                }
                for r in self.reports
            ],
            "removed": [
                {"path": o.path, "keys": list(o.removed), "written": o.written, "error": o.error}
                for o in self.outcomes
            ],
            "diagnostics": [
                {"kind": d.kind, "path": d.path, "reason": d.reason} for d in self.diagnostics
            ],
            "stats": {
                "files_scanned": self.stats.files_scanned,
                "files_skipped": self.stats.files_skipped,
                "resource_files": self.stats.resource_files,
                "keys_total": self.stats.keys_total,
                "unique_keys": self.stats.unique_keys,
                "unused_keys": self.stats.unused_keys,
                "duration": self.stats.formatted_duration(),
            },
        }
