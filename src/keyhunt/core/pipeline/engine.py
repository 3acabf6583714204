from __future__ import annotations

"""
Core orchestration pipeline.

This module coordinates the complete hunt:
1. Validates the configuration.
2. Loads resource trees and discovers source files in parallel threads.
3. Flattens the trees and scans the sources for key references.
4. Classifies every key as used or unused.
5. In clear mode, prunes unused keys and rewrites the resource files.
"""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

from keyhunt.core.pipeline.stages.validator import validate_config
from keyhunt.core.services.flattener import index_trees, unique_paths
from keyhunt.core.services.loader import load_resource_trees
from keyhunt.core.services.pruner import prune_reports, write_diagnostics
from keyhunt.core.services.reconciler import reconcile
from keyhunt.core.services.scanner import discover_source_files, scan_usage
from keyhunt.domain.errors import FatalConfigError
from keyhunt.domain.models import Diagnostic, HuntResult, HuntStats, PruneOutcome
from keyhunt.infra.fs import normalize_path

logger = logging.getLogger(__name__)


def run_hunt(config: Optional[Dict[str, Any]], *, clear: bool = False) -> HuntResult:
    """
    Execute the full unused-key hunt.

    Args:
        config: The configuration dictionary (raw or partial).
        clear: If True, remove unused keys from the resource files.

    Returns:
        HuntResult: Reports, diagnostics, prune outcomes and statistics.

    Raises:
        FatalConfigError: If no locale path is configured, it does not exist,
            or it holds no resource files.
    """
    started = time.perf_counter()
    logger.info("Hunt started.")

    # -------------------------------------------------------------------------
    # 1) Config & Path Normalization
    # -------------------------------------------------------------------------
    cfg, warnings = validate_config(config, strict=False)
    for warning in warnings:
        logger.warning(f"Configuration Warning: {warning}")

    if not cfg["locale_path"]:
        raise FatalConfigError("no locale path given")

    locale_path = normalize_path(cfg["locale_path"], os.getcwd())
    source_dirs = [normalize_path(d, os.getcwd()) for d in cfg["source_dirs"]]
    cfg["locale_path"] = locale_path
    cfg["source_dirs"] = source_dirs

    # -------------------------------------------------------------------------
    # 2) Load & Discover in Parallel
    # -------------------------------------------------------------------------
    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="HuntExecutor") as executor:
        # Task A: Resource loading
        future_load = executor.submit(
            load_resource_trees,
            locale_path,
            ignore_patterns=cfg["ignore_patterns"],
        )

        # Task B: Source discovery (locale root excluded)
        future_discover = executor.submit(
            discover_source_files,
            source_dirs,
            cfg["extensions"],
            cfg["ignore_patterns"],
            respect_gitignore=cfg["respect_gitignore"],
            exclude_paths=[locale_path],
        )

        loaded = future_load.result()
        discovered = future_discover.result()

    diagnostics: List[Diagnostic] = list(loaded.diagnostics) + list(discovered.diagnostics)

    # Loaded resource files are never scanned, wherever they live
    resource_paths = {os.path.abspath(t.path) for t in loaded.trees}
    source_files = [f for f in discovered.files if f not in resource_paths]

    # -------------------------------------------------------------------------
    # 3) Flatten & Scan
    # -------------------------------------------------------------------------
    index = index_trees(loaded.trees, cfg["separator"])
    diagnostics.extend(index.diagnostics)
    trees, entries = index.trees, index.entries
    logger.info(f"Indexed {len(entries)} keys from {len(trees)} resource files.")

    scan = scan_usage(
        source_files,
        entries,
        match_mode=cfg["match_mode"],
        dynamic_templates=cfg["dynamic_templates"],
        track_parents=cfg["flag_possibly_dynamic"],
        max_workers=cfg["max_workers"],
    )
    diagnostics.extend(scan.diagnostics)

    # -------------------------------------------------------------------------
    # 4) Reconcile
    # -------------------------------------------------------------------------
    reports = reconcile(
        trees,
        entries,
        scan.records,
        scan.referenced_parents,
        flag_possibly_dynamic=cfg["flag_possibly_dynamic"],
    )

    # -------------------------------------------------------------------------
    # 5) Prune (clear mode)
    # -------------------------------------------------------------------------
    outcomes: List[PruneOutcome] = []
    if clear:
        outcomes = prune_reports(reports)
        diagnostics.extend(write_diagnostics(outcomes))

    stats = HuntStats(
        files_scanned=scan.files_scanned,
        files_skipped=scan.files_skipped,
        resource_files=len(trees),
        keys_total=len(entries),
        unique_keys=len(unique_paths(entries)),
        unused_keys=sum(len(r.unused) for r in reports),
        duration=time.perf_counter() - started,
    )

    result = HuntResult(
        ok=not any(o.error for o in outcomes),
        clear=clear,
        reports=reports,
        diagnostics=diagnostics,
        outcomes=outcomes,
        stats=stats,
        config=cfg,
    )
    logger.info(
        f"Hunt finished in {stats.formatted_duration()}: "
        f"{stats.unused_keys} unused of {stats.keys_total} keys."
    )
    return result
