from __future__ import annotations

"""
Global Pytest Configuration and Fixtures.

This module sets up the testing environment, including:
1. Path manipulation to ensure the 'src' directory is importable.
2. Shared fixtures: a small locale/source project and a config dictionary.
"""

import json
import os
import sys
from pathlib import Path
from typing import Any, Dict

import pytest

# -----------------------------------------------------------------------------
# Path Configuration
# -----------------------------------------------------------------------------
_SRC_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if _SRC_PATH not in sys.path:
    sys.path.insert(0, _SRC_PATH)


# -----------------------------------------------------------------------------
# Shared Fixtures
# -----------------------------------------------------------------------------
EN_LOCALE = {
    "common": {"save": "Save", "cancel": "Cancel"},
    "home": {"title": "Welcome", "subtitle": "Hello there"},
    "legacy": {"banner": "Old banner"},
}

FR_LOCALE = {
    "common": {"save": "Enregistrer", "cancel": "Annuler"},
    "home": {"title": "Bienvenue"},
    "legacy": {"banner": "Ancienne"},
}

APP_SOURCE = """import { t } from './i18n';

export function Page() {
  return [t('common.save'), t("home.title"), t(`common.cancel`)];
}
"""


@pytest.fixture
def sample_project(tmp_path: Path) -> Path:
    """
    Create a locale directory and a source tree.

    Structure:
    /project
      /locales
        en.json
        fr.json
      /src
        app.js
    """
    project = tmp_path / "project"
    locales = project / "locales"
    src = project / "src"
    locales.mkdir(parents=True)
    src.mkdir()

    (locales / "en.json").write_text(json.dumps(EN_LOCALE, indent=2) + "\n", encoding="utf-8")
    (locales / "fr.json").write_text(json.dumps(FR_LOCALE, indent=4) + "\n", encoding="utf-8")
    (src / "app.js").write_text(APP_SOURCE, encoding="utf-8")
    return project


@pytest.fixture
def mock_config_dict(sample_project: Path) -> Dict[str, Any]:
    """
    Return a complete configuration dictionary pointing at sample_project.

    Returns:
        Dict[str, Any]: A configuration dictionary.
    """
    return {
        "locale_path": str(sample_project / "locales"),
        "source_dirs": [str(sample_project / "src")],
        "extensions": [".js", ".ts"],
        "ignore_patterns": ["node_modules"],
        "respect_gitignore": True,
        "separator": ".",
        "match_mode": "substring",
        "dynamic_templates": True,
        "flag_possibly_dynamic": False,
        "max_workers": 2,
    }
