from __future__ import annotations

"""
Logging lifecycle.

Worker threads of the usage scanner log through a QueueHandler on the root
logger; one QueueListener thread drains the queue into the console and file
handlers, so no scanning thread ever blocks on log I/O. Configuration is
idempotent and shutdown_logging() drains the queue before a CLI run returns.
"""

import atexit
import logging
import queue
from logging.handlers import QueueHandler, QueueListener
from typing import List, Optional

from keyhunt.infra.logging.config import _LEVEL_MAP, LoggingConfig
from keyhunt.infra.logging.handlers import (
    _create_console_handler,
    _create_rotating_file_handler,
    _is_our_handler,
    _tag_handler,
)

_CONFIGURED_FLAG_ATTR: str = "_keyhunt_configured"
_QUEUE_LISTENER_ATTR: str = "_keyhunt_queue_listener"


# ==============================================================================
# PUBLIC API
# ==============================================================================

def configure_logging(cfg: LoggingConfig, *, force: bool = False) -> logging.Logger:
    """
    Attach the queue-based handler chain to the root logger.

    A second call is a no-op unless 'force' is set, in which case the previous
    listener is stopped and its handlers replaced.

    Args:
        cfg: Logging settings.
        force: Rebuild even when already configured.

    Returns:
        logging.Logger: The root logger.
    """
    root = logging.getLogger()
    if getattr(root, _CONFIGURED_FLAG_ATTR, False) and not force:
        return root

    try:
        level_int = _parse_level(cfg.level)
        root.setLevel(level_int)
        _detach(root)

        targets = _build_targets(cfg, level_int)
        if not targets:
            return root

        log_queue: queue.Queue[logging.LogRecord] = queue.Queue(-1)
        listener = QueueListener(log_queue, *targets, respect_handler_level=True)
        listener.start()
        atexit.register(_safe_stop_listener, listener)

        root.addHandler(_tag_handler(QueueHandler(log_queue)))
        setattr(root, _QUEUE_LISTENER_ATTR, listener)
        setattr(root, _CONFIGURED_FLAG_ATTR, True)
        return root
    except Exception:
        return _install_emergency_console(root)


def get_logger(name: str) -> logging.Logger:
    """Named logger under the configured root."""
    return logging.getLogger(name)


def shutdown_logging() -> None:
    """Drain the queue, then close and detach every handler we own."""
    root = logging.getLogger()
    _detach(root)
    setattr(root, _CONFIGURED_FLAG_ATTR, False)


# ==============================================================================
# PRIVATE HELPERS
# ==============================================================================

def _parse_level(level: str) -> int:
    if not level:
        return logging.INFO
    return _LEVEL_MAP.get(str(level).strip().upper(), logging.INFO)


def _build_targets(cfg: LoggingConfig, level_int: int) -> List[logging.Handler]:
    """Handlers fed by the queue listener."""
    targets: List[logging.Handler] = []
    if cfg.console:
        targets.append(_create_console_handler(level_int, logging.Formatter(cfg.console_fmt)))
    if cfg.log_file:
        fh = _create_rotating_file_handler(
            cfg.log_file,
            level_int,
            logging.Formatter(cfg.file_fmt, datefmt=cfg.datefmt),
            cfg.max_bytes,
            cfg.backup_count,
        )
        if fh:
            targets.append(fh)
    return targets


def _detach(root: logging.Logger) -> None:
    """Stop the listener (flushing its queue) and close every tagged handler."""
    listener = getattr(root, _QUEUE_LISTENER_ATTR, None)
    targets = list(getattr(listener, "handlers", ()))
    _safe_stop_listener(listener)
    setattr(root, _QUEUE_LISTENER_ATTR, None)

    for h in list(root.handlers):
        if _is_our_handler(h):
            root.removeHandler(h)
            targets.append(h)

    for h in targets:
        try:
            h.close()
        except Exception:
            pass


def _install_emergency_console(root: logging.Logger) -> logging.Logger:
    """Plain synchronous stderr logging after a failed setup."""
    try:
        _detach(root)
        root.setLevel(logging.INFO)
        root.addHandler(_create_console_handler(
            logging.INFO, logging.Formatter("CRITICAL FALLBACK | %(levelname)s | %(message)s")
        ))
        root.warning("Logging infrastructure failed. Switched to emergency console.")
    except Exception:
        pass
    return root


def _safe_stop_listener(listener: Optional[QueueListener]) -> None:
    """Stop a listener; repeated stops (atexit after shutdown) are ignored."""
    if not listener:
        return
    try:
        if getattr(listener, "_thread", None) is not None:
            listener.stop()
    except Exception:
        pass
