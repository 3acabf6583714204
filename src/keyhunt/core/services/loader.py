from __future__ import annotations

"""
Resource Tree Loading Service.

Enumerates locale resource files under a root (or accepts a single file),
parses each one independently and collects per-file parse failures as
diagnostics. Paths are sorted before processing so reports are stable across
runs and platforms.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from keyhunt.core.formats import FORMAT_EXTENSIONS, parse
from keyhunt.core.pipeline.components.filters import compile_patterns, matches_any
from keyhunt.domain.errors import FatalConfigError, ParseError
from keyhunt.domain.models import Diagnostic
from keyhunt.domain.resource_tree import ResourceTree
from keyhunt.infra.fs import read_bytes

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    """
    Output of the loading stage.

    Attributes:
        trees: Successfully parsed trees, in sorted path order.
        diagnostics: One entry per file that could not be read or parsed.
        files_found: Recognized resource files, parsed or not.
    """
    trees: List[ResourceTree] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    files_found: List[str] = field(default_factory=list)


# ==============================================================================
# PUBLIC API
# ==============================================================================

def discover_resource_files(locale_path: str, ignore_patterns: Optional[List[str]] = None) -> List[str]:
    """
    List recognized resource files under a root.

    Hidden directories and directories matching an ignore pattern are not
    descended into. A single file is returned as-is whatever its extension.

    Args:
        locale_path: Directory or single file.
        ignore_patterns: Glob patterns for directory names to skip.

    Returns:
        List[str]: Absolute file paths, sorted.

    Raises:
        FatalConfigError: If the root does not exist.
    """
    root = os.path.abspath(locale_path)
    if not os.path.exists(root):
        raise FatalConfigError("locale path does not exist", root)
    if os.path.isfile(root):
        return [root]

    ignore_rx = compile_patterns(ignore_patterns or [])
    found: List[str] = []
    for current, dirs, files in os.walk(root):
        dirs[:] = sorted(
            d for d in dirs
            if not d.startswith(".") and not matches_any(d, ignore_rx)
        )
        for file_name in files:
            _, ext = os.path.splitext(file_name)
            if ext.lower() in FORMAT_EXTENSIONS:
                found.append(os.path.join(current, file_name))

    return sorted(found)


def load_resource_trees(locale_path: str, ignore_patterns: Optional[List[str]] = None) -> LoadResult:
    """
    Load every resource file under a locale root.

    A file that cannot be read or parsed is reported and excluded; it never
    aborts the run.

    Args:
        locale_path: Directory or single file.
        ignore_patterns: Glob patterns for directory names to skip.

    Returns:
        LoadResult: Parsed trees and diagnostics.

    Raises:
        FatalConfigError: If the root is missing or holds no resource files.
    """
    files = discover_resource_files(locale_path, ignore_patterns)
    if not files:
        raise FatalConfigError("no resource files (.json, .yaml, .yml) found", os.path.abspath(locale_path))

    result = LoadResult(files_found=files)
    for path in files:
        try:
            tree = parse(read_bytes(path), path=path)
        except ParseError as e:
            logger.warning(f"Skipping unparseable resource file: {e}")
            result.diagnostics.append(Diagnostic.from_error(e, path))
            continue
        except OSError as e:
            error = ParseError(f"cannot read file ({e.strerror or e})", path)
            logger.warning(f"Skipping unreadable resource file: {error}")
            result.diagnostics.append(Diagnostic.from_error(error, path))
            continue

        logger.debug(f"Loaded {path} ({tree.family})")
        result.trees.append(tree)

    logger.info(f"Loaded {len(result.trees)}/{len(files)} resource files.")
    return result
