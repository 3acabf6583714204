from __future__ import annotations

"""
Resilient Source Reading Component.

Loads source files for usage scanning. Binary artifacts are detected by a NUL
byte in the leading block and skipped; text is decoded as UTF-8 with
replacement so a stray invalid sequence never interrupts a scan.
"""

from typing import Optional

from keyhunt.domain.errors import ScanIOError

BINARY_PROBE_SIZE = 8192


def read_source_text(file_path: str) -> Optional[str]:
    """
    Read a source file as text.

    Args:
        file_path: Absolute path to the target file.

    Returns:
        Optional[str]: Decoded content, or None when the file looks binary.

    Raises:
        ScanIOError: If the file cannot be opened or read.
    """
    try:
        with open(file_path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise ScanIOError(e.strerror or str(e), file_path) from e

    if b"\x00" in data[:BINARY_PROBE_SIZE]:
        return None
    return data.decode("utf-8", errors="replace")
