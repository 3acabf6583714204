from __future__ import annotations

"""
Source Discovery and Usage Scanning Service.

Walks the source roots to find eligible files, then searches every file for
references to the flattened key paths. Files are scanned in parallel on a
thread pool; each task returns an independent partial result and the partials
are merged in file order by a single reduce, so the outcome does not depend on
scheduling.

Two heuristics widen plain literal matching:
- dynamic templates: 'prefix.${...}', 'prefix.{...}' or '"prefix." +' mark
  every key below 'prefix' as used;
- parent references: literal occurrences of a key's enclosing path are
  reported so the reconciler can flag keys that may be built at runtime.
"""

import logging
import os
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from keyhunt.core.pipeline.components.filters import (
    GitignoreRules,
    compile_patterns,
    has_extension,
    is_ignored,
    load_gitignore_patterns,
)
from keyhunt.core.pipeline.components.reader import read_source_text
from keyhunt.core.services.flattener import unique_paths
from keyhunt.domain.errors import ScanIOError
from keyhunt.domain.models import Diagnostic, FlatKeyEntry, UsageRecord
from keyhunt.infra.fs import is_within

logger = logging.getLogger(__name__)

_IDENT_CHARS = r"A-Za-z0-9_$"
_DYNAMIC_SUFFIX = r"(?:\$\{|\{|['\"`]\s*\+)"

# ==============================================================================
# RESULT MODELS
# ==============================================================================

@dataclass
class DiscoveryResult:
    """Eligible source files (sorted, absolute) and discovery problems."""
    files: List[str] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)


@dataclass
class ScanResult:
    """
    Merged outcome of a usage scan.

    Attributes:
        records: Usage records in file order, then key order.
        referenced_parents: Enclosing paths seen as literal text.
        files_scanned: Files whose content was searched.
        files_skipped: Binary or unreadable files.
        diagnostics: Read failures.
    """
    records: List[UsageRecord] = field(default_factory=list)
    referenced_parents: Set[str] = field(default_factory=set)
    files_scanned: int = 0
    files_skipped: int = 0
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def used_paths(self) -> Set[str]:
        return {r.key_path for r in self.records}


@dataclass
class _FileScan:
    records: List[UsageRecord] = field(default_factory=list)
    parents: Set[str] = field(default_factory=set)
    skipped: bool = False
    diagnostic: Optional[Diagnostic] = None

# ==============================================================================
# PUBLIC API (DISCOVERY)
# ==============================================================================

def discover_source_files(
        source_dirs: Sequence[str],
        extensions: Iterable[str],
        ignore_patterns: Iterable[str],
        *,
        respect_gitignore: bool = True,
        exclude_paths: Iterable[str] = (),
) -> DiscoveryResult:
    """
    Enumerate source files eligible for scanning.

    Directories matching an ignore pattern (per path component) or a
    .gitignore rule are pruned during the walk. Symbolic links are not
    followed. Anything inside 'exclude_paths' (the locale root and every
    loaded resource file) is never returned.

    Args:
        source_dirs: Roots to walk; a root may also be a single file.
        extensions: Allowed extensions (dot-prefixed).
        ignore_patterns: Glob patterns for names to skip.
        respect_gitignore: Apply the .gitignore of each root.
        exclude_paths: Files or directories that must not be scanned.

    Returns:
        DiscoveryResult: Sorted unique absolute paths plus diagnostics.
    """
    exts = list(extensions)
    ignore_rx = compile_patterns(ignore_patterns)
    excluded = [os.path.abspath(p) for p in exclude_paths]
    result = DiscoveryResult()
    found: Set[str] = set()

    def _is_excluded(path: str) -> bool:
        return any(is_within(path, ex) for ex in excluded)

    for source_dir in source_dirs:
        root = os.path.abspath(source_dir)

        if os.path.isfile(root):
            if has_extension(root, exts) and not _is_excluded(root):
                found.add(root)
            continue

        if not os.path.isdir(root):
            error = ScanIOError("source directory does not exist", root)
            logger.warning(str(error))
            result.diagnostics.append(Diagnostic.from_error(error, root))
            continue

        if _is_excluded(root):
            logger.debug(f"Source root {root} lies inside the locale path; skipped.")
            continue

        gitignore = load_gitignore_patterns(root) if respect_gitignore else GitignoreRules()

        for current, dirs, files in os.walk(root, followlinks=False):
            rel_dir = os.path.relpath(current, root)

            kept = []
            for d in dirs:
                rel = os.path.join(rel_dir, d)
                full = os.path.join(current, d)
                if is_ignored(d, ignore_rx) or gitignore.matches(rel) or _is_excluded(full):
                    continue
                kept.append(d)
            dirs[:] = sorted(kept)

            for file_name in sorted(files):
                full = os.path.join(current, file_name)
                if not has_extension(file_name, exts):
                    continue
                if is_ignored(file_name, ignore_rx) or gitignore.matches(os.path.join(rel_dir, file_name)):
                    continue
                if os.path.islink(full) or _is_excluded(full):
                    continue
                found.add(full)

    result.files = sorted(found)
    logger.info(f"Discovered {len(result.files)} source files.")
    return result

# ==============================================================================
# PUBLIC API (USAGE SCAN)
# ==============================================================================

def scan_usage(
        files: Sequence[str],
        entries: Sequence[FlatKeyEntry],
        *,
        match_mode: str = "substring",
        dynamic_templates: bool = True,
        track_parents: bool = False,
        max_workers: int = 0,
) -> ScanResult:
    """
    Search source files for references to the flattened key paths.

    Args:
        files: Source files from discover_source_files().
        entries: Flat key entries of every loaded tree.
        match_mode: "substring" or "word".
        dynamic_templates: Enable the dynamic template heuristic.
        track_parents: Report literal occurrences of enclosing paths.
        max_workers: Thread count (0 lets the executor decide).

    Returns:
        ScanResult: Merged records and counters.
    """
    matcher = _UsageMatcher(
        entries,
        match_mode=match_mode,
        dynamic_templates=dynamic_templates,
        track_parents=track_parents,
    )
    partials: List[Optional[_FileScan]] = [None] * len(files)

    if files:
        workers = max_workers if max_workers > 0 else None
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="UsageScanner") as executor:
            tasks = {
                executor.submit(_scan_file, path, matcher): index
                for index, path in enumerate(files)
            }
            for future in as_completed(tasks):
                partials[tasks[future]] = future.result()

    result = ScanResult()
    for partial in partials:
        if partial is None:
            continue
        if partial.diagnostic is not None:
            result.diagnostics.append(partial.diagnostic)
        if partial.skipped:
            result.files_skipped += 1
            continue
        result.files_scanned += 1
        result.records.extend(partial.records)
        result.referenced_parents.update(partial.parents)

    logger.info(
        f"Scanned {result.files_scanned} files ({result.files_skipped} skipped), "
        f"{len(result.used_paths)} key paths referenced."
    )
    return result

# ==============================================================================
# PRIVATE HELPERS
# ==============================================================================

class _UsageMatcher:
    """Immutable per-run matching tables, shared read-only by all workers."""

    def __init__(
            self,
            entries: Sequence[FlatKeyEntry],
            *,
            match_mode: str,
            dynamic_templates: bool,
            track_parents: bool,
    ):
        self.keys: List[str] = unique_paths(entries)
        self.word_rx: Dict[str, re.Pattern] = {}
        if match_mode == "word":
            self.word_rx = {key: _word_pattern(key) for key in self.keys}

        self.descendants: Dict[str, List[str]] = {}
        self.parents: List[str] = []
        parents_seen: Set[str] = set()
        separator = "."

        for entry in entries:
            separator = entry.separator
            for depth in range(1, len(entry.segments)):
                prefix = entry.separator.join(entry.segments[:depth])
                bucket = self.descendants.setdefault(prefix, [])
                if entry.path not in bucket:
                    bucket.append(entry.path)
            parent = entry.parent_path
            if parent and parent not in parents_seen:
                parents_seen.add(parent)
                self.parents.append(parent)

        self.track_parents = track_parents
        self.dynamic_rx: Optional[re.Pattern] = None
        if dynamic_templates and self.descendants:
            alternatives = "|".join(
                re.escape(p) for p in sorted(self.descendants, key=lambda p: (-len(p), p))
            )
            self.dynamic_rx = re.compile(
                rf"(?<![{_IDENT_CHARS}])(?P<prefix>{alternatives}){re.escape(separator)}{_DYNAMIC_SUFFIX}"
            )

    def find(self, key: str, text: str) -> int:
        """Offset of the first reference to 'key', or -1."""
        rx = self.word_rx.get(key)
        if rx is None:
            return text.find(key)
        match = rx.search(text)
        return match.start() if match else -1

    def match(self, text: str, source_file: str) -> Tuple[List[UsageRecord], Set[str]]:
        records: List[UsageRecord] = []
        exact: Set[str] = set()

        for key in self.keys:
            pos = self.find(key, text)
            if pos >= 0:
                exact.add(key)
                records.append(UsageRecord(key, source_file, _line_of(text, pos)))

        if self.dynamic_rx is not None:
            seen_prefixes: Set[str] = set()
            for m in self.dynamic_rx.finditer(text):
                prefix = m.group("prefix")
                if prefix in seen_prefixes:
                    continue
                seen_prefixes.add(prefix)
                line = _line_of(text, m.start())
                for key in self.descendants.get(prefix, []):
                    if key not in exact:
                        exact.add(key)
                        records.append(UsageRecord(key, source_file, line, kind="dynamic"))

        parents: Set[str] = set()
        if self.track_parents:
            parents = {p for p in self.parents if p in text}

        return records, parents


def _scan_file(path: str, matcher: _UsageMatcher) -> _FileScan:
    """Worker task: read one file and match it. Never raises for I/O errors."""
    try:
        text = read_source_text(path)
    except ScanIOError as e:
        logger.warning(f"Cannot read source file: {e}")
        return _FileScan(skipped=True, diagnostic=Diagnostic.from_error(e, path))

    if text is None:
        logger.debug(f"Skipping binary file {path}")
        return _FileScan(skipped=True)

    records, parents = matcher.match(text, path)
    return _FileScan(records=records, parents=parents)


def _word_pattern(key: str) -> re.Pattern:
    return re.compile(rf"(?<![{_IDENT_CHARS}]){re.escape(key)}(?![{_IDENT_CHARS}])")


def _line_of(text: str, pos: int) -> int:
    return text.count("\n", 0, pos) + 1
