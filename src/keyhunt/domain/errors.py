from __future__ import annotations

"""
Domain Error Hierarchy.

Separates recoverable per-item failures (malformed resource files, unreadable
sources, failed rewrites) from fatal configuration problems. Only
FatalConfigError is allowed to abort a run; everything else is turned into a
Diagnostic by the service that caught it.
"""

from typing import Optional


class HuntError(Exception):
    """
    Base class for all keyhunt failures.

    Attributes:
        path: File the failure relates to, if any.
        reason: Human-readable cause.
    """

    kind: str = "error"

    def __init__(self, reason: str, path: Optional[str] = None):
        self.reason = reason
        self.path = path
        super().__init__(f"{path}: {reason}" if path else reason)


class ParseError(HuntError):
    """A resource file could not be parsed into a Resource Tree."""

    kind = "parse"


class ScanIOError(HuntError):
    """A source file could not be read during the usage scan."""

    kind = "scan"


class WriteError(HuntError):
    """A pruned resource file could not be persisted."""

    kind = "write"


class FatalConfigError(HuntError):
    """The run cannot proceed (missing root, no resource files, bad config)."""

    kind = "fatal"
