"""
Logging configuration — set up once by the CLI.

Two sinks:
    - the terminal (stderr), coloured by level through click, at the level
      chosen by the CLI flags or DESKPROV_LOG_LEVEL (default WARNING);
    - an optional run log file (DESKPROV_LOG_FILE), always with full
      detail, so a failed pass on a freshly installed machine can be
      inspected after the reboot prompt is gone.

Every module does ``logger = logging.getLogger(__name__)`` and inherits
this config.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

_FMT_CONSOLE = "%(message)s"
_FMT_CONSOLE_DEBUG = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_DATEFMT = "%H:%M:%S"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

_LEVEL_COLOURS = {
    logging.DEBUG: "bright_black",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "red",
}


class ClickHandler(logging.Handler):
    """Write records to stderr through click so colours degrade cleanly."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            click.secho(message, fg=_LEVEL_COLOURS.get(record.levelno), err=True)
        except Exception:
            self.handleError(record)


def setup_logging(
    level: str = "WARNING",
    log_file: str | Path | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure the root logger for the whole process.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional path of a run log.
        log_file_level: Level for the run log; defaults to DEBUG.
    """
    console_level = parse_level(level)

    console = ClickHandler()
    console.setLevel(console_level)
    if console_level <= logging.DEBUG:
        console.setFormatter(logging.Formatter(_FMT_CONSOLE_DEBUG, datefmt=_DATEFMT))
    else:
        console.setFormatter(logging.Formatter(_FMT_CONSOLE))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    effective = console_level

    if log_file:
        file_level = parse_level(log_file_level, default=logging.DEBUG)
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(path, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)
        effective = min(effective, file_level)

    root.setLevel(effective)
    logging.raiseExceptions = False


def parse_level(level: str | None, default: int = logging.WARNING) -> int:
    """Convert a level name to its numeric constant, falling back to ``default``."""
    if not level:
        return default
    numeric = logging.getLevelName(level.upper())
    return numeric if isinstance(numeric, int) else default
