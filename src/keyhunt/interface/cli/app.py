from __future__ import annotations

"""
Command Line Interface (CLI) Application Controller.

Orchestrates the CLI lifecycle: logging bootstrap, configuration layering
(defaults, config file, CLI overrides), hunt execution, report rendering and
exit code selection.

Exit codes:
    0  completed
    1  a rewrite failed in clear mode, or unused keys were found with --validate
    2  fatal configuration problem (missing path, no resource files, bad config)
    130 interrupted
"""

import json
import sys
from typing import Any, Dict, List, Optional

from keyhunt.core.pipeline.engine import run_hunt
from keyhunt.core.pipeline.stages.validator import validate_config
from keyhunt.domain.config import get_default_config, load_config
from keyhunt.domain.errors import FatalConfigError
from keyhunt.domain.models import HuntResult
from keyhunt.infra.logging import LoggingConfig, configure_logging, get_logger, shutdown_logging
from keyhunt.interface.cli import args as cli_args
from keyhunt.interface.cli import report

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_FATAL = 2
EXIT_INTERRUPTED = 130

# -----------------------------------------------------------------------------
# ENTRYPOINT ORCHESTRATOR
# -----------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    """
    Execute the main CLI application workflow.

    Args:
        argv: Optional list of command line arguments. Defaults to sys.argv.

    Returns:
        int: Process exit code.
    """
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8")

    # 1. Argument parsing phase
    parser = cli_args.build_parser()
    args = parser.parse_args(argv)

    # 2. Logging bootstrap (console stays quiet unless --debug)
    configure_logging(LoggingConfig.for_cli(debug=args.debug, log_file=args.log_file), force=True)

    try:
        return _run(args)
    finally:
        shutdown_logging()


def _run(args: Any) -> int:
    logger.debug("CLI execution initiated. Resolving configuration hierarchy...")

    # 3. Resolve base configuration (defaults vs config file)
    try:
        base_conf = get_default_config() if args.use_defaults else load_config(args.config_path)
    except FatalConfigError as e:
        return _fatal(e)

    # 4. Map and merge command-line overrides
    overrides = cli_args.args_to_overrides(args)
    raw_conf = _merge_config(base_conf, overrides)

    # 5. Schema validation and normalization
    clean_conf, warnings = validate_config(raw_conf, strict=False)
    for w in warnings:
        logger.warning(f"Configuration Constraint: {w}")

    if args.dump_config:
        print(json.dumps(clean_conf, ensure_ascii=False, indent=2))
        return EXIT_OK

    if not clean_conf["locale_path"]:
        return _fatal(FatalConfigError("no locale path given (positional LOCALE_PATH or 'locale_path' in config)"))

    # 6. Hunt execution phase
    logger.info(f"Hunting unused keys from {clean_conf['locale_path']}")
    try:
        result = run_hunt(clean_conf, clear=bool(args.clear))
    except FatalConfigError as e:
        return _fatal(e)
    except KeyboardInterrupt:
        msg = "Interrupted by user."
        logger.warning(msg)
        print(msg, file=sys.stderr)
        return EXIT_INTERRUPTED
    except Exception as e:
        msg = f"Hunt failed: {e}"
        logger.critical(msg, exc_info=True)
        print(f"ERROR: {msg}", file=sys.stderr)
        return EXIT_FAILURE

    # 7. Output rendering phase
    if args.json_output:
        report.render_json(result)
    else:
        report.render_human(result, show_stats=bool(args.stats))

    return _exit_code(result, validate=bool(args.validate))

# -----------------------------------------------------------------------------
# CONFIGURATION MERGING
# -----------------------------------------------------------------------------

def _merge_config(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Perform a shallow merge of override values into the base configuration.

    Only known keys are merged. Extra exclusion patterns extend the ignore
    list instead of replacing it.

    Args:
        base: The primary configuration dictionary.
        overrides: New values to inject.

    Returns:
        Dict[str, Any]: The merged configuration state.
    """
    out = dict(base)
    keys_to_merge = [
        "locale_path", "source_dirs", "extensions", "respect_gitignore",
        "match_mode", "dynamic_templates", "flag_possibly_dynamic", "max_workers",
    ]
    for k in keys_to_merge:
        if k in overrides and overrides[k] is not None:
            out[k] = overrides[k]

    extra = overrides.get("exclude_patterns")
    if extra:
        current = out.get("ignore_patterns") or []
        if isinstance(current, str):
            current = [current]
        out["ignore_patterns"] = list(current) + [p for p in extra if p not in current]
    return out

# -----------------------------------------------------------------------------
# EXIT HANDLING
# -----------------------------------------------------------------------------

def _exit_code(result: HuntResult, *, validate: bool) -> int:
    if not result.ok:
        return EXIT_FAILURE
    if validate and result.unused_count > 0:
        return EXIT_FAILURE
    return EXIT_OK


def _fatal(error: FatalConfigError) -> int:
    logger.error(str(error))
    print(f"ERROR: {error}", file=sys.stderr)
    return EXIT_FATAL

# -----------------------------------------------------------------------------
# CLI ENTRYPOINT
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
