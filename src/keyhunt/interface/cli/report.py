from __future__ import annotations

"""
CLI Report Rendering.

Turns a HuntResult into the terminal report: unused keys grouped by resource
file, removal confirmations in clear mode, an optional statistics block and a
summary line on stdout; recovered errors go to stderr, one line each.
"""

import json
import sys
from typing import List, Optional, TextIO

from keyhunt.core.services.reconciler import unused_key_set
from keyhunt.domain.models import HuntResult, HuntStats
from keyhunt.infra.fs import display_path

# -----------------------------------------------------------------------------
# HUMAN READABLE
# -----------------------------------------------------------------------------

def render_human(
        result: HuntResult,
        *,
        show_stats: bool = False,
        out: Optional[TextIO] = None,
        err: Optional[TextIO] = None,
) -> None:
    """
    Print the human-readable report.

    Args:
        result: Hunt outcome.
        show_stats: Append the statistics block.
        out: Report stream (default: stdout).
        err: Diagnostics stream (default: stderr).
    """
    out = out or sys.stdout
    err = err or sys.stderr

    for line in format_unused(result):
        print(line, file=out)

    if result.clear:
        for line in format_removals(result):
            print(line, file=out)

    for diagnostic in result.diagnostics:
        print(f"WARNING [{diagnostic.kind}] {display_path(diagnostic.path)}: {diagnostic.reason}", file=err)

    if show_stats:
        print("", file=out)
        for line in format_stats(result.stats):
            print(line, file=out)

    print("", file=out)
    print(format_summary(result), file=out)


def format_unused(result: HuntResult) -> List[str]:
    """Unused keys grouped by file; possibly dynamic keys are marked."""
    lines: List[str] = []
    flagged = {r.tree: set(r.possibly_dynamic) for r in result.reports}
    for tree, paths in unused_key_set(result.reports).items():
        lines.append(f"{display_path(tree.path)} ({len(paths)} unused)")
        for path in paths:
            marker = "  (possibly dynamic)" if path in flagged[tree] else ""
            lines.append(f"  - {path}{marker}")
    return lines


def format_removals(result: HuntResult) -> List[str]:
    """Removal and confirmation lines for the files that were rewritten."""
    lines: List[str] = []
    for outcome in result.outcomes:
        if not outcome.written:
            continue
        shown = display_path(outcome.path)
        for key in outcome.removed:
            lines.append(f"Removed {key} from {shown}")
        lines.append(f"Rewrote {shown} ({len(outcome.removed)} keys removed)")
    return lines


def format_stats(stats: HuntStats) -> List[str]:
    return [
        "Statistics:",
        f"  Source files scanned: {stats.files_scanned} ({stats.files_skipped} skipped)",
        f"  Resource files:       {stats.resource_files}",
        f"  Keys checked:         {stats.keys_total} ({stats.unique_keys} unique)",
        f"  Unused keys:          {stats.unused_keys}",
        f"  Time:                 {stats.formatted_duration()}",
    ]


def format_summary(result: HuntResult) -> str:
    unused = result.unused_count
    files = sum(1 for r in result.reports if r.unused)

    if result.clear:
        removed = sum(len(o.removed) for o in result.outcomes if o.written)
        written = sum(1 for o in result.outcomes if o.written)
        text = f"Removed {removed} unused keys from {written} files."
        if result.write_failures:
            text += f" {len(result.write_failures)} files could not be written."
        return text

    if unused == 0:
        return "No unused keys found."
    return f"Found {unused} unused keys in {files} files."

# -----------------------------------------------------------------------------
# MACHINE READABLE
# -----------------------------------------------------------------------------

def render_json(result: HuntResult, out: Optional[TextIO] = None) -> None:
    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2), file=out or sys.stdout)
