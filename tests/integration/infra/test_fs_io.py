from __future__ import annotations

"""
Integration tests for FileSystem Infrastructure.

Validates path normalization, containment checks, display paths and the
all-or-nothing file replacement used by the pruner.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from keyhunt.infra.fs import (
    atomic_write_bytes,
    display_path,
    is_within,
    normalize_path,
    read_bytes,
)

# -----------------------------------------------------------------------------
# PATH RESOLUTION TESTS
# -----------------------------------------------------------------------------

def test_normalize_path_expansion() -> None:
    """TC-01: Verify expansion of environment variables and fallbacks."""
    with patch.dict(os.environ, {"TEST_VAR": "my_folder"}):
        path = normalize_path("$TEST_VAR/sub", fallback=".")
        assert path.lower().endswith(os.path.join("my_folder", "sub").lower())

    assert normalize_path("   ", fallback="/tmp") == os.path.abspath("/tmp")
    assert os.path.isabs(normalize_path(None, fallback="."))


def test_is_within(tmp_path: Path) -> None:
    """TC-02: Containment is component-aware."""
    assert is_within(str(tmp_path / "a" / "b.json"), str(tmp_path / "a"))
    assert is_within(str(tmp_path / "a"), str(tmp_path / "a"))
    assert not is_within(str(tmp_path / "ab" / "x"), str(tmp_path / "a"))


def test_display_path_relative_to_base(tmp_path: Path) -> None:
    """TC-03: Paths under the base are shown relative with '/' separators."""
    target = tmp_path / "locales" / "en.json"
    assert display_path(str(target), str(tmp_path)) == "locales/en.json"
    assert display_path("/elsewhere/x.json", str(tmp_path)) == os.path.abspath("/elsewhere/x.json")

# -----------------------------------------------------------------------------
# ATOMIC WRITE TESTS
# -----------------------------------------------------------------------------

def test_atomic_write_replaces_content_and_keeps_mode(tmp_path: Path) -> None:
    """TC-04: Content swapped in, permission bits preserved, no temp leftovers."""
    target = tmp_path / "en.json"
    target.write_bytes(b"old")
    os.chmod(target, 0o604)

    atomic_write_bytes(str(target), b"new")

    assert read_bytes(str(target)) == b"new"
    assert (target.stat().st_mode & 0o777) == 0o604
    assert sorted(p.name for p in tmp_path.iterdir()) == ["en.json"]


def test_atomic_write_creates_missing_file(tmp_path: Path) -> None:
    """TC-05: A new file gets the temp file's default mode."""
    target = tmp_path / "new.json"
    atomic_write_bytes(str(target), b"{}")
    assert target.read_bytes() == b"{}"


def test_atomic_write_failure_leaves_original(tmp_path: Path) -> None:
    """TC-06: A failing swap keeps the original file and removes the temp file."""
    target = tmp_path / "en.json"
    target.write_bytes(b"original")

    with patch("keyhunt.infra.fs.os.replace", side_effect=OSError(28, "No space left on device")):
        with pytest.raises(OSError):
            atomic_write_bytes(str(target), b"partial")

    assert target.read_bytes() == b"original"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["en.json"]
