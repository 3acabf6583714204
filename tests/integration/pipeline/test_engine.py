from __future__ import annotations

"""
Integration tests for the hunt pipeline.

Runs run_hunt() against real files on disk and checks the properties the
tool guarantees: self-reference exclusion, cross-locale sharing,
idempotent clearing, empty-parent collapse and deterministic rewrites.
"""

import json
import shutil
from pathlib import Path
from typing import Any, Dict

import pytest

from keyhunt.core.pipeline.engine import run_hunt
from keyhunt.domain.errors import FatalConfigError


def _unused(result) -> Dict[str, list]:
    return {Path(r.tree.path).name: [e.path for e in r.unused] for r in result.reports}


def test_report_mode_does_not_touch_files(mock_config_dict: Dict[str, Any], sample_project: Path) -> None:
    before = {p.name: p.read_bytes() for p in (sample_project / "locales").iterdir()}

    result = run_hunt(mock_config_dict)

    assert result.ok is True
    assert _unused(result) == {
        "en.json": ["home.subtitle", "legacy.banner"],
        "fr.json": ["legacy.banner"],
    }
    assert result.outcomes == []
    assert {p.name: p.read_bytes() for p in (sample_project / "locales").iterdir()} == before


def test_locale_files_are_not_counted_as_usage(mock_config_dict: Dict[str, Any], sample_project: Path) -> None:
    mock_config_dict["source_dirs"] = [str(sample_project)]
    mock_config_dict["extensions"] = [".js", ".json"]

    result = run_hunt(mock_config_dict)

    assert result.stats.files_scanned == 1
    assert "legacy.banner" in _unused(result)["en.json"]


def test_single_file_locale_is_excluded_from_scan(tmp_path: Path) -> None:
    (tmp_path / "strings.json").write_text('{"greeting": "hi"}', encoding="utf-8")
    (tmp_path / "app.js").write_text("t('nothing')", encoding="utf-8")

    result = run_hunt({
        "locale_path": str(tmp_path / "strings.json"),
        "source_dirs": [str(tmp_path)],
        "extensions": [".js", ".json"],
    })

    assert result.stats.files_scanned == 1
    assert _unused(result) == {"strings.json": ["greeting"]}


def test_clear_is_idempotent(mock_config_dict: Dict[str, Any], sample_project: Path) -> None:
    first = run_hunt(mock_config_dict, clear=True)
    after_first = {p.name: p.read_bytes() for p in (sample_project / "locales").iterdir()}

    second = run_hunt(mock_config_dict, clear=True)
    after_second = {p.name: p.read_bytes() for p in (sample_project / "locales").iterdir()}

    assert [o.removed for o in first.outcomes] == [["home.subtitle", "legacy.banner"], ["legacy.banner"]]
    assert second.outcomes == []
    assert second.unused_count == 0
    assert after_first == after_second

    en = json.loads(after_first["en.json"])
    assert en == {"common": {"save": "Save", "cancel": "Cancel"}, "home": {"title": "Welcome"}}


def test_fully_unused_file_collapses_to_empty_object(tmp_path: Path) -> None:
    locales = tmp_path / "locales"
    locales.mkdir()
    (locales / "en.json").write_text('{"a": {"b": "x"}}', encoding="utf-8")
    (tmp_path / "src").mkdir()

    run_hunt({"locale_path": str(locales), "source_dirs": [str(tmp_path / "src")]}, clear=True)

    assert (locales / "en.json").read_text(encoding="utf-8") == "{}"


def test_yaml_and_json_side_by_side(tmp_path: Path) -> None:
    locales = tmp_path / "locales"
    locales.mkdir()
    yaml_text = "# keep me\nnav:\n    home: Home\n    about: About\nfooter: Bye\n"
    (locales / "en.yaml").write_text(yaml_text, encoding="utf-8")
    (locales / "de.json").write_text('{\n\t"nav": {\n\t\t"home": "Start"\n\t}\n}\n', encoding="utf-8")
    src = tmp_path / "src"
    src.mkdir()
    (src / "menu.tsx").write_text("<a>{t('nav.home')}</a>\n<p>{t('footer')}</p>\n", encoding="utf-8")

    result = run_hunt({"locale_path": str(locales), "source_dirs": [str(src)]}, clear=True)

    assert result.ok is True
    assert (locales / "en.yaml").read_text(encoding="utf-8") == "# keep me\nnav:\n    home: Home\nfooter: Bye\n"
    assert (locales / "de.json").read_text(encoding="utf-8") == '{\n\t"nav": {\n\t\t"home": "Start"\n\t}\n}\n'


def test_possibly_dynamic_keys_are_kept(tmp_path: Path) -> None:
    locales = tmp_path / "locales"
    locales.mkdir()
    (locales / "en.json").write_text('{"errors": {"io": "x", "net": "y"}, "old": "z"}', encoding="utf-8")
    src = tmp_path / "src"
    src.mkdir()
    (src / "a.js").write_text("const key = 'errors' + '.' + code;\n", encoding="utf-8")

    result = run_hunt({
        "locale_path": str(locales),
        "source_dirs": [str(src)],
        "flag_possibly_dynamic": True,
    }, clear=True)

    assert result.reports[0].possibly_dynamic == ["errors.io", "errors.net"]
    assert result.outcomes[0].removed == ["old"]
    assert json.loads((locales / "en.json").read_text(encoding="utf-8")) == {"errors": {"io": "x", "net": "y"}}


def test_parse_errors_do_not_abort(mock_config_dict: Dict[str, Any], sample_project: Path) -> None:
    (sample_project / "locales" / "broken.json").write_text('{"a": ', encoding="utf-8")

    result = run_hunt(mock_config_dict)

    assert result.ok is True
    assert result.stats.resource_files == 2
    assert [d.kind for d in result.diagnostics] == ["parse"]


def test_rewrites_are_deterministic(tmp_path: Path, sample_project: Path) -> None:
    copy = tmp_path / "copy"
    shutil.copytree(sample_project, copy)

    for root in (sample_project, copy):
        run_hunt({"locale_path": str(root / "locales"), "source_dirs": [str(root / "src")]}, clear=True)

    for name in ("en.json", "fr.json"):
        assert (sample_project / "locales" / name).read_bytes() == (copy / "locales" / name).read_bytes()


def test_missing_locale_path_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(FatalConfigError):
        run_hunt({"locale_path": str(tmp_path / "missing"), "source_dirs": [str(tmp_path)]})


def test_empty_locale_path_is_fatal() -> None:
    with pytest.raises(FatalConfigError):
        run_hunt({})


def test_ambiguous_locale_file_is_reported_and_skipped(
        mock_config_dict: Dict[str, Any], sample_project: Path
) -> None:
    (sample_project / "locales" / "de.json").write_text(
        '{"legacy.banner": "x", "legacy": {"banner": "y"}}', encoding="utf-8"
    )

    result = run_hunt(mock_config_dict, clear=True)

    assert "de.json" not in _unused(result)
    assert [(d.kind, Path(d.path).name) for d in result.diagnostics] == [("parse", "de.json")]
    assert result.stats.resource_files == 2
    assert json.loads((sample_project / "locales" / "de.json").read_text(encoding="utf-8")) == {
        "legacy.banner": "x", "legacy": {"banner": "y"},
    }
