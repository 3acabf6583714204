from __future__ import annotations

"""
Source File Filtering Engine.

Implements glob-based exclusion of vendor, build and test artifacts, the
extension allow-list for source discovery, and translation of .gitignore
rules into compiled regular expressions. Ignore patterns are matched per path
component, so 'node_modules' excludes that directory at any depth.
"""

import fnmatch
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Iterable, List

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# CONFIGURATION DEFAULTS
# -----------------------------------------------------------------------------

def default_extensions() -> List[str]:
    """
    Get the default list of scanned source extensions.

    Returns:
        List[str]: Web, mobile and backend source extensions (with dot).
    """
    return [
        ".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs",
        ".vue", ".svelte", ".html",
        ".py", ".rb", ".php", ".go", ".java", ".kt", ".swift", ".dart", ".cs",
    ]


def default_ignore_patterns() -> List[str]:
    """
    Get the built-in exclusion globs.

    Covers dependency and build output directories, editor metadata, logs,
    test directories and test/snapshot files.

    Returns:
        List[str]: Glob patterns matched against each path component.
    """
    return [
        "node_modules", ".git", "dist", "build", "target",
        ".next", ".nuxt", ".cache", "coverage",
        ".idea", ".vscode", ".DS_Store", "*.log",
        "__tests__", "tests", "test",
        "*.test.js", "*.test.jsx", "*.test.ts", "*.test.tsx",
        "*.spec.js", "*.spec.jsx", "*.spec.ts", "*.spec.tsx",
        "*.snap",
    ]

# -----------------------------------------------------------------------------
# PATTERN COMPILATION AND MATCHING
# -----------------------------------------------------------------------------

def compile_patterns(patterns: Iterable[str]) -> List[re.Pattern]:
    """
    Transform glob strings into compiled regex objects.

    Empty entries are discarded.

    Args:
        patterns: Glob patterns (fnmatch syntax).

    Returns:
        List[re.Pattern]: Compiled regex objects.
    """
    compiled: List[re.Pattern] = []
    for p in patterns:
        p = (p or "").strip().rstrip("/")
        if not p:
            continue
        try:
            compiled.append(re.compile(fnmatch.translate(p)))
        except re.error:
            logger.warning(f"Discarding invalid ignore pattern: {p!r}")
    return compiled


def matches_any(name: str, compiled_patterns: List[re.Pattern]) -> bool:
    """
    Verify if a name matches at least one compiled pattern.

    Args:
        name: File or directory name to evaluate.
        compiled_patterns: Output of compile_patterns().

    Returns:
        bool: True if any pattern matches the whole name.
    """
    return any(rx.match(name) for rx in compiled_patterns)


def is_ignored(rel_path: str, compiled_patterns: List[re.Pattern]) -> bool:
    """
    Check every component of a relative path against the ignore patterns.

    Args:
        rel_path: Path relative to a source root ('/' or os.sep separated).

    Returns:
        bool: True when any component is excluded.
    """
    parts = [p for p in rel_path.replace(os.sep, "/").split("/") if p and p != "."]
    return any(matches_any(part, compiled_patterns) for part in parts)


def has_extension(file_name: str, extensions: Iterable[str]) -> bool:
    """Case-insensitive extension allow-list check."""
    _, ext = os.path.splitext(file_name)
    return ext.lower() in {e.lower() for e in extensions}

# -----------------------------------------------------------------------------
# GITIGNORE INTEGRATION
# -----------------------------------------------------------------------------

@dataclass
class GitignoreRules:
    """
    Compiled .gitignore rules of one source root.

    Attributes:
        component: Rules without an inner '/', matched against each component.
        anchored: Rules with an inner or leading '/', matched against the
            relative path from the root.
    """
    component: List[re.Pattern] = field(default_factory=list)
    anchored: List[re.Pattern] = field(default_factory=list)

    def matches(self, rel_path: str) -> bool:
        rel = os.path.normpath(rel_path).replace(os.sep, "/").strip("/")
        if not rel or rel == ".":
            return False
        if is_ignored(rel, self.component):
            return True
        return any(rx.match(rel) for rx in self.anchored)


def load_gitignore_patterns(root_path: str) -> GitignoreRules:
    """
    Parse the .gitignore file of a source root.

    Negation rules ('!pattern') are not supported and are skipped.

    Args:
        root_path: Directory containing the .gitignore file.

    Returns:
        GitignoreRules: Compiled rules (empty when the file is absent).
    """
    rules = GitignoreRules()
    gitignore_path = os.path.join(root_path, ".gitignore")
    if not os.path.isfile(gitignore_path):
        return rules

    try:
        with open(gitignore_path, "r", encoding="utf-8", errors="replace") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or line.startswith("!"):
                    continue

                regex = _gitignore_to_regex(line)
                if regex is None:
                    continue
                if "/" in line.rstrip("/"):
                    rules.anchored.append(regex)
                else:
                    rules.component.append(regex)
    except OSError as e:
        logger.warning(f"Cannot read {gitignore_path}: {e}")

    return rules


def _gitignore_to_regex(glob_pattern: str):
    """
    Translate one gitignore glob into a compiled regex.

    Anchored rules also match everything below the matched directory.

    Args:
        glob_pattern: Raw glob pattern from .gitignore.

    Returns:
        Optional[re.Pattern]: Compiled regex, or None when invalid.
    """
    pattern = glob_pattern.rstrip("/")
    if "/" in pattern:
        pattern = pattern.lstrip("/").replace("**/", "*")
        translated = fnmatch.translate(pattern)
        # fnmatch.translate ends with '\Z'; allow descendants of a matched directory
        translated = translated[:-2] + r"(?:/.*)?\Z" if translated.endswith(r"\Z") else translated
    else:
        translated = fnmatch.translate(pattern)

    try:
        return re.compile(translated)
    except re.error:
        return None
