from __future__ import annotations

"""
Unit tests for the Pruner.

Verifies:
1. Leaf removal and bottom-up collapse of emptied objects.
2. The root and pre-existing empty objects are kept.
3. Atomic rewrites and per-file write failure isolation.
"""

import os
from pathlib import Path
from unittest.mock import patch

from keyhunt.core.formats import parse
from keyhunt.core.formats.json_codec import parse_json
from keyhunt.core.services.flattener import flatten_tree, index_trees
from keyhunt.core.services.pruner import prune_reports, prune_tree
from keyhunt.core.services.reconciler import reconcile
from keyhunt.domain.models import UsageRecord


def _load(path: Path):
    return parse(path.read_bytes(), str(path))


def test_collapse_up_to_root() -> None:
    tree = parse_json('{"a": {"b": "x"}}\n')
    removed = prune_tree(tree, flatten_tree(tree))

    assert removed == ["a.b"]
    assert tree.root.children == {}


def test_collapse_stops_at_non_empty_parent() -> None:
    tree = parse_json('{"a": {"b": {"c": "1"}, "d": "2"}}')
    entries = {e.path: e for e in flatten_tree(tree)}
    prune_tree(tree, [entries["a.b.c"]])

    assert list(tree.root.children) == ["a"]
    assert list(tree.root.children["a"].children) == ["d"]


def test_preexisting_empty_objects_stay() -> None:
    tree = parse_json('{"keep": {}, "a": {"b": "1"}, "c": "2"}')
    entries = {e.path: e for e in flatten_tree(tree)}
    prune_tree(tree, [entries["a.b"]])

    assert list(tree.root.children) == ["keep", "c"]


def test_stale_paths_are_skipped() -> None:
    tree = parse_json('{"a": {"b": "1"}}')
    entries = flatten_tree(tree)
    assert prune_tree(tree, entries) == ["a.b"]
    assert prune_tree(tree, entries) == []


def test_prune_reports_rewrites_only_modified_files(tmp_path: Path) -> None:
    en = tmp_path / "en.json"
    fr = tmp_path / "fr.json"
    en.write_text('{\n  "used": "1",\n  "old": "2"\n}\n', encoding="utf-8")
    fr.write_text('{\n  "used": "1"\n}\n', encoding="utf-8")
    os.chmod(en, 0o640)
    fr_mtime = fr.stat().st_mtime_ns

    trees = [_load(en), _load(fr)]
    reports = reconcile(trees, index_trees(trees).entries, [UsageRecord("used", "a.js", 1)])

    outcomes = prune_reports(reports)

    assert [(Path(o.path).name, o.removed, o.written) for o in outcomes] == [("en.json", ["old"], True)]
    assert en.read_text(encoding="utf-8") == '{\n  "used": "1"\n}\n'
    assert oct(en.stat().st_mode & 0o777) == oct(0o640)
    assert fr.stat().st_mtime_ns == fr_mtime
    assert [p.name for p in tmp_path.iterdir() if p.name.startswith(".keyhunt-")] == []


def test_write_failure_is_isolated(tmp_path: Path) -> None:
    a = tmp_path / "a.json"
    b = tmp_path / "b.json"
    a.write_text('{"x": "1"}', encoding="utf-8")
    b.write_text('{"y": "1"}', encoding="utf-8")
    trees = [_load(a), _load(b)]
    reports = reconcile(trees, index_trees(trees).entries, [])

    real_replace = os.replace

    def failing_replace(src, dst):
        if str(dst) == str(a):
            raise PermissionError(13, "Permission denied")
        return real_replace(src, dst)

    with patch("keyhunt.infra.fs.os.replace", side_effect=failing_replace):
        outcomes = prune_reports(reports)

    assert outcomes[0].written is False
    assert "Permission denied" in outcomes[0].error
    assert outcomes[1].written is True
    assert a.read_text(encoding="utf-8") == '{"x": "1"}'
    assert b.read_text(encoding="utf-8") == "{}"
    assert [p.name for p in tmp_path.iterdir() if p.name.startswith(".keyhunt-")] == []
