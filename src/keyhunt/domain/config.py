from __future__ import annotations

"""
Configuration Domain Management.

Provides the default run configuration as a plain dictionary and loads
project-level overrides from a JSON file ('.keyhunt.json' in the working
directory, or an explicit path). Values are merged over the defaults here and
coerced later by the validator stage.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

from keyhunt.core.pipeline.components.filters import (
    default_extensions,
    default_ignore_patterns,
)
from keyhunt.domain.errors import FatalConfigError

logger = logging.getLogger(__name__)

# -----------------------------------------------------------------------------
# Constants & Defaults
# -----------------------------------------------------------------------------
CONFIG_FILE_NAME = ".keyhunt.json"

MATCH_MODES = ("substring", "word")
DEFAULT_MATCH_MODE = "substring"
DEFAULT_SEPARATOR = "."


# -----------------------------------------------------------------------------
# Configuration Models (Dict-based)
# -----------------------------------------------------------------------------
def get_default_config() -> Dict[str, Any]:
    """
    Generate the default run configuration.
    This dictionary drives the behavior of the hunt pipeline.

    Returns:
        Dict[str, Any]: Default configuration values.
    """
    return {
        # Inputs
        "locale_path": "",
        "source_dirs": ["."],

        # Discovery
        "extensions": default_extensions(),
        "ignore_patterns": default_ignore_patterns(),
        "respect_gitignore": True,

        # Key model
        "separator": DEFAULT_SEPARATOR,

        # Matching
        "match_mode": DEFAULT_MATCH_MODE,
        "dynamic_templates": True,
        "flag_possibly_dynamic": False,

        # Performance
        "max_workers": 0,
    }


# -----------------------------------------------------------------------------
# Persistence Logic
# -----------------------------------------------------------------------------
def find_config_file(base_dir: Optional[str] = None) -> Optional[str]:
    """Return the path of '.keyhunt.json' in base_dir (default: cwd), if present."""
    candidate = os.path.join(base_dir or os.getcwd(), CONFIG_FILE_NAME)
    return candidate if os.path.isfile(candidate) else None


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the effective file configuration merged over the defaults.

    Lookup order: the explicit 'path', then '.keyhunt.json' in the working
    directory, then built-in defaults. Unknown keys are dropped with a warning.

    Args:
        path: Explicit configuration file.

    Returns:
        Dict[str, Any]: Defaults updated with the file values (not yet validated).

    Raises:
        FatalConfigError: If an explicit file is missing, or a file cannot be
            read or does not contain a JSON object.
    """
    defaults = get_default_config()

    if path is not None and not os.path.isfile(path):
        raise FatalConfigError("configuration file not found", path)

    source = path or find_config_file()
    if source is None:
        logger.debug("No configuration file found. Using defaults.")
        return defaults

    try:
        with open(source, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise FatalConfigError(f"cannot read configuration ({e.strerror or e})", source) from e
    except json.JSONDecodeError as e:
        raise FatalConfigError(f"invalid JSON ({e.msg}, line {e.lineno})", source) from e

    if not isinstance(data, dict):
        raise FatalConfigError("configuration root must be a JSON object", source)

    for key in sorted(set(data) - set(defaults)):
        logger.warning(f"Ignoring unknown configuration key '{key}' in {source}")
        data.pop(key)

    defaults.update(data)
    logger.debug(f"Configuration loaded from {source}")
    return defaults
