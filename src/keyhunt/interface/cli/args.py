from __future__ import annotations

"""
CLI Argument Definition and Mapping.

Defines the command-line interface schema (help messages, argument types and
defaults) and translates the parsed namespace into configuration overrides.
"""

import argparse
from typing import Any, Dict, List, Optional

from keyhunt.domain.config import MATCH_MODES

# -----------------------------------------------------------------------------
# ARGUMENT DEFINITION
# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """
    Construct the argument parser for the keyhunt CLI.

    Returns:
        argparse.ArgumentParser: Configured parser instance.
    """
    p = argparse.ArgumentParser(
        prog="keyhunt",
        description="Find translation keys that are never referenced in source code, "
                    "and optionally remove them from the locale files.",
    )

    # --- Path Management ---
    p.add_argument(
        "locale_path",
        nargs="?",
        default=None,
        help="Locale directory or single resource file (.json, .yaml, .yml).",
    )
    p.add_argument(
        "-d", "--dir",
        dest="source_dirs",
        action="append",
        default=None,
        metavar="DIR",
        help="Source directory to scan (repeatable, default: current directory).",
    )

    # --- Run Modes ---
    p.add_argument(
        "-c", "--clear",
        action="store_true",
        help="Remove unused keys from the locale files.",
    )
    p.add_argument(
        "--validate",
        action="store_true",
        help="Exit with code 1 when unused keys are found (pre-commit/CI use).",
    )
    p.add_argument(
        "-s", "--stats",
        action="store_true",
        help="Print run statistics.",
    )

    # --- Source Discovery Filters ---
    p.add_argument(
        "--ext",
        dest="extensions",
        default=None,
        help="Comma-separated source extensions to scan (e.g. .js,.tsx).",
    )
    p.add_argument(
        "--exclude",
        dest="exclude_patterns",
        default=None,
        help="Comma-separated glob patterns to skip, added to the built-in ones.",
    )
    p.add_argument(
        "--no-gitignore",
        action="store_true",
        help="Do not apply .gitignore rules of the source directories.",
    )

    # --- Matching ---
    p.add_argument(
        "--match",
        dest="match_mode",
        choices=MATCH_MODES,
        default=None,
        help="Reference matching mode (default: substring).",
    )
    p.add_argument(
        "--no-dynamic",
        action="store_true",
        help="Disable dynamic template detection (prefix.${...}).",
    )
    p.add_argument(
        "--flag-dynamic",
        action="store_true",
        help="Mark unused keys whose parent path appears in source as possibly dynamic "
             "(reported, never removed).",
    )
    p.add_argument(
        "--workers",
        dest="max_workers",
        type=int,
        default=None,
        help="Number of scanner threads (0 = automatic).",
    )

    # --- Configuration and Diagnostic Tools ---
    p.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Configuration file (default: .keyhunt.json in the working directory).",
    )
    p.add_argument(
        "--use-defaults",
        action="store_true",
        help="Ignore configuration files and use built-in defaults.",
    )
    p.add_argument(
        "--dump-config",
        action="store_true",
        help="Print the effective configuration as JSON and exit.",
    )
    p.add_argument(
        "--log-file",
        dest="log_file",
        default=None,
        help="Also write logs to this rotating file.",
    )
    p.add_argument(
        "--debug",
        action="store_true",
        help="Elevate logging verbosity to DEBUG.",
    )

    # --- Format Selection ---
    p.add_argument(
        "--json",
        dest="json_output",
        action="store_true",
        help="Print a machine-readable JSON report.",
    )

    return p

# -----------------------------------------------------------------------------
# ARGUMENT MAPPING
# -----------------------------------------------------------------------------

def args_to_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Translate the argparse Namespace into a configuration dictionary.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Dict[str, Any]: Configuration overrides subset (None means "not given").
    """
    overrides: Dict[str, Any] = {}

    overrides["locale_path"] = args.locale_path
    overrides["source_dirs"] = list(args.source_dirs) if args.source_dirs else None

    # Discovery overrides
    if args.extensions:
        overrides["extensions"] = _split_csv(args.extensions)
    if args.exclude_patterns:
        overrides["exclude_patterns"] = _split_csv(args.exclude_patterns)
    if args.no_gitignore:
        overrides["respect_gitignore"] = False

    # Matching overrides
    if args.match_mode:
        overrides["match_mode"] = args.match_mode
    if args.no_dynamic:
        overrides["dynamic_templates"] = False
    if args.flag_dynamic:
        overrides["flag_possibly_dynamic"] = True
    if args.max_workers is not None:
        overrides["max_workers"] = args.max_workers

    return overrides

# -----------------------------------------------------------------------------
# HELPERS
# -----------------------------------------------------------------------------

def _split_csv(value: Optional[str]) -> Optional[List[str]]:
    """
    Convert a comma-separated string into a list of sanitized strings.
    """
    if value is None:
        return None
    parts = [x.strip() for x in value.split(",")]
    return [x for x in parts if x]
