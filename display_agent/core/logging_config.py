"""Root logging setup for the agent process.

The agent normally runs as a systemd service, where stdout goes to the
journal and the journal stamps every line itself. When stdout is not a
terminal the console format therefore leaves out the timestamp; the
optional log file always carries one.
"""

from __future__ import annotations

import contextlib
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, List, Optional, TextIO, Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
JOURNAL_FORMAT = "%(levelname)-8s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

LOG_FILE_MAX_BYTES = 1024 * 1024
LOG_FILE_BACKUPS = 3

# paho-mqtt logs every packet at DEBUG when a logger is attached
DEFAULT_SUPPRESSED_LOGGERS = ("paho", "paho.mqtt", "asyncio")

_configured = False


def coerce_level(level: Union[int, str]) -> int:
    """Accept ``"debug"``/``"INFO"``/``10`` alike."""
    if isinstance(level, int):
        return level
    numeric = logging.getLevelName(level.strip().upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level '{level}'")
    return numeric


def _console_handler(stream: TextIO) -> logging.Handler:
    interactive = hasattr(stream, "isatty") and stream.isatty()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        logging.Formatter(LOG_FORMAT if interactive else JOURNAL_FORMAT, datefmt=LOG_DATEFMT)
    )
    return handler


def _file_handler(path: Path, max_bytes: int, backup_count: int) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    return handler


def _replace_root_handlers(root: logging.Logger, handlers: List[logging.Handler]) -> None:
    for old in list(root.handlers):
        root.removeHandler(old)
        with contextlib.suppress(Exception):
            old.close()
    for handler in handlers:
        root.addHandler(handler)


def configure_logging(
    level: Union[int, str] = logging.INFO,
    *,
    force: bool = False,
    console: bool = True,
    log_file: Optional[Union[str, Path]] = None,
    max_bytes: int = LOG_FILE_MAX_BYTES,
    backup_count: int = LOG_FILE_BACKUPS,
    suppressed_loggers: Iterable[str] = DEFAULT_SUPPRESSED_LOGGERS,
) -> None:
    """Install the agent's root handlers.

    Args:
        level: Root level, as a name ("info") or a number.
        force: Rebuild handlers even when logging was configured before;
            otherwise a repeated call only adjusts the level.
        console: Log to stdout.
        log_file: Also log to this file, rotated at ``max_bytes`` with
            ``backup_count`` old files kept.
        suppressed_loggers: Third-party loggers held at WARNING or above.
    """
    global _configured
    numeric_level = coerce_level(level)
    root = logging.getLogger()

    if force or not _configured:
        handlers: List[logging.Handler] = []
        if console:
            handlers.append(_console_handler(sys.stdout))
        if log_file:
            handlers.append(_file_handler(Path(log_file).expanduser(), max_bytes, backup_count))
        if not handlers:
            # neither requested: stderr still reaches the journal
            handlers.append(_console_handler(sys.stderr))
        _replace_root_handlers(root, handlers)
        _configured = True

    root.setLevel(numeric_level)
    for name in suppressed_loggers:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


__all__ = [
    "DEFAULT_SUPPRESSED_LOGGERS",
    "JOURNAL_FORMAT",
    "LOG_DATEFMT",
    "LOG_FORMAT",
    "coerce_level",
    "configure_logging",
]
