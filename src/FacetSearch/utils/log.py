"""FacetSearch logging utilities.

All modules log through the shared ``FacetSearch`` logger. CLI runs call
``configure_logging`` once to attach a console handler and, optionally, a
per-action log file.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Final

_LEVEL_ABBREV: Final[dict[int, str]] = {
    logging.DEBUG: "DEBG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERRO",
    logging.CRITICAL: "ERRO",
}

# requests logs every pooled connection at DEBUG
_NOISY_LOGGERS: Final[tuple[str, ...]] = ("urllib3", "asyncio")


class _AbbrevLevelFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 - record is stdlib name
        record.levelabbr = _LEVEL_ABBREV.get(record.levelno, record.levelname[:4])
        return super().format(record)


log = logging.getLogger("FacetSearch")


def configure_logging(
    *,
    level: str = "INFO",
    action: str | None = None,
    log_to_file: bool = False,
    log_dir: str = "log",
) -> Path | None:
    """Attach handlers to the FacetSearch logger, replacing earlier ones.

    Lines look like ``10-19 14:05:11 [INFO] Fetched 50 of 312 results``.
    The file handler, when enabled, always records DEBUG so a failed run can
    be inspected after the fact.

    Args:
        level: Console level name; unknown names fall back to INFO.
        action: CLI action name; also names the log subdirectory and file.
        log_to_file: Mirror records to ``<log_dir>/<action>/<action>_<ts>.log``.
        log_dir: Base directory for log files.

    Returns:
        Path of the log file, or None when logging to console only.
    """
    console_level = getattr(logging, (level or "INFO").upper(), logging.INFO)
    formatter = _AbbrevLevelFormatter(fmt="%(asctime)s [%(levelabbr)s] %(message)s", datefmt="%m-%d %H:%M:%S")

    log.handlers.clear()
    log.addHandler(_console_handler(console_level, formatter))

    log_path = None
    if log_to_file and action:
        log_path = _log_file_path(Path(log_dir or "log"), action)
        log.addHandler(_file_handler(log_path, formatter))

    log.setLevel(min(logging.DEBUG, console_level))
    log.propagate = False
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, console_level))
    return log_path


def _console_handler(level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _file_handler(path: Path, formatter: logging.Formatter) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def _log_file_path(log_dir: Path, action: str) -> Path:
    timestamp = datetime.now().strftime("%m%d%H%M%S")
    return log_dir / action / f"{action}_{timestamp}.log"
