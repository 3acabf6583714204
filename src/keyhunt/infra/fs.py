from __future__ import annotations

"""
FileSystem Infrastructure Layer.

Provides path normalization, containment checks and all-or-nothing file
replacement. Acts as an abstraction over the 'os' and 'tempfile' modules so
services never write a target file in place.
"""

import os
import stat
import tempfile
from typing import Optional

# -----------------------------------------------------------------------------
# PATH RESOLUTION API
# -----------------------------------------------------------------------------

def normalize_path(path: Optional[str], fallback: str) -> str:
    """
    Normalize a path string into an absolute filesystem path.

    Handles environment variable expansion ($VAR/%VAR%) and user home
    shortcuts (~/). Reverts to fallback if the input is empty or malformed.

    Args:
        path: Raw input path string.
        fallback: Default path to use if resolution fails.

    Returns:
        str: Normalized absolute path.
    """
    p = (path or "").strip()
    if not p:
        p = fallback
    try:
        p = os.path.expandvars(os.path.expanduser(p))
        return os.path.abspath(p)
    except Exception:
        return os.path.abspath(fallback)


def is_within(path: str, root: str) -> bool:
    """
    Check whether 'path' is 'root' itself or lies below it.

    Args:
        path: Candidate path.
        root: Containing directory or file.

    Returns:
        bool: True on containment.
    """
    path_abs = os.path.normcase(os.path.abspath(path))
    root_abs = os.path.normcase(os.path.abspath(root))
    if path_abs == root_abs:
        return True
    return path_abs.startswith(root_abs.rstrip(os.sep) + os.sep)


def display_path(path: str, base: Optional[str] = None) -> str:
    """
    Render a path relative to 'base' (default: cwd) when it lies below it.

    Args:
        path: Absolute or relative path.
        base: Reference directory.

    Returns:
        str: Relative path with '/' separators, or the absolute path.
    """
    base = base or os.getcwd()
    if is_within(path, base):
        rel = os.path.relpath(os.path.abspath(path), os.path.abspath(base))
        return rel.replace(os.sep, "/")
    return os.path.abspath(path)

# -----------------------------------------------------------------------------
# FILE PERSISTENCE API
# -----------------------------------------------------------------------------

def read_bytes(path: str) -> bytes:
    """Read a whole file. OSError propagates to the caller."""
    with open(path, "rb") as f:
        return f.read()


def atomic_write_bytes(path: str, data: bytes) -> None:
    """
    Replace a file's content atomically.

    Writes to a temporary file in the target directory, flushes it to disk,
    copies the original permission bits and swaps it in with os.replace. The
    original file is either fully replaced or left untouched.

    Args:
        path: Target file path.
        data: New content.

    Raises:
        OSError: If any step fails. The temporary file is removed.
    """
    directory = os.path.dirname(os.path.abspath(path)) or "."
    fd, tmp_path = tempfile.mkstemp(prefix=".keyhunt-", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "wb") as tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())

        try:
            mode = stat.S_IMODE(os.stat(path).st_mode)
            os.chmod(tmp_path, mode)
        except FileNotFoundError:
            pass

        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
