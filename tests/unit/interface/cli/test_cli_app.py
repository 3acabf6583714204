from __future__ import annotations

"""
Unit tests for the CLI controller (in-process).

Verifies configuration layering, exit codes and report output without
spawning a subprocess.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from keyhunt.infra.fs import atomic_write_bytes as real_write
from keyhunt.interface.cli.app import _merge_config, main


def _args(project: Path, *extra: str):
    return [
        str(project / "locales"),
        "-d", str(project / "src"),
        "--use-defaults",
        *extra,
    ]


def test_merge_config_extends_ignore_patterns():
    base = {"ignore_patterns": ["node_modules"], "match_mode": "substring"}
    merged = _merge_config(base, {"exclude_patterns": ["gen", "node_modules"], "match_mode": None})

    assert merged["ignore_patterns"] == ["node_modules", "gen"]
    assert merged["match_mode"] == "substring"


def test_report_lists_unused_keys(sample_project: Path, capsys: pytest.CaptureFixture) -> None:
    code = main(_args(sample_project))
    out = capsys.readouterr().out

    assert code == 0
    assert "home.subtitle" in out
    assert "legacy.banner" in out
    assert "common.save" not in out
    assert "Found 3 unused keys in 2 files." in out


def test_validate_exit_code(sample_project: Path) -> None:
    assert main(_args(sample_project, "--validate")) == 1


def test_stats_block(sample_project: Path, capsys: pytest.CaptureFixture) -> None:
    main(_args(sample_project, "-s"))
    out = capsys.readouterr().out

    assert "Statistics:" in out
    assert "Source files scanned: 1 (0 skipped)" in out
    assert "Keys checked:         9 (5 unique)" in out


def test_json_report(sample_project: Path, capsys: pytest.CaptureFixture) -> None:
    main(_args(sample_project, "--json"))
    data = json.loads(capsys.readouterr().out)

    assert data["ok"] is True
    assert [Path(f["path"]).name for f in data["files"]] == ["en.json", "fr.json"]
    assert data["files"][0]["unused"] == ["home.subtitle", "legacy.banner"]


def test_missing_locale_path_exit_code(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    code = main([str(tmp_path / "missing"), "--use-defaults"])
    assert code == 2
    assert "ERROR" in capsys.readouterr().err


def test_no_locale_path_is_fatal(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    assert main([]) == 2


def test_bad_config_file_is_fatal(tmp_path: Path) -> None:
    bad = tmp_path / "cfg.json"
    bad.write_text("{", encoding="utf-8")
    assert main(["locales", "--config", str(bad)]) == 2


def test_dump_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
    monkeypatch.chdir(tmp_path)
    code = main(["locales", "--use-defaults", "--match", "word", "--dump-config"])
    cfg = json.loads(capsys.readouterr().out)

    assert code == 0
    assert cfg["locale_path"] == "locales"
    assert cfg["match_mode"] == "word"


def test_clear_write_failure_exit_code(sample_project: Path, capsys: pytest.CaptureFixture) -> None:
    """A failed rewrite yields exit code 1 while the other files are still rewritten."""
    locales = sample_project / "locales"
    fr_before = (locales / "fr.json").read_bytes()

    def failing_write(path: str, data: bytes) -> None:
        if Path(path).name == "fr.json":
            raise OSError(13, "Permission denied")
        real_write(path, data)

    with patch("keyhunt.core.services.pruner.atomic_write_bytes", side_effect=failing_write):
        code = main(_args(sample_project, "--clear"))
    captured = capsys.readouterr()

    assert code == 1
    assert "WARNING [write]" in captured.err
    assert "fr.json" in captured.err
    assert (locales / "fr.json").read_bytes() == fr_before

    en = json.loads((locales / "en.json").read_text(encoding="utf-8"))
    assert "legacy" not in en
    assert "subtitle" not in en["home"]
    assert "Rewrote" in captured.out
    assert not any(
        line.startswith("Removed") and "fr.json" in line for line in captured.out.splitlines()
    )
