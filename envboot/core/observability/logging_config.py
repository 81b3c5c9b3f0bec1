"""
Logging configuration — set up once by the CLI entrypoint.

Every module does ``logger = logging.getLogger(__name__)`` and
inherits this config. Diagnostics go to stderr through logging;
user-facing progress goes through an OutputSink instead.

Level precedence:
    CLI flag  >  ENVBOOT_LOG_LEVEL  >  DEBUG=1  >  WARNING
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping

# ── Format tiers ────────────────────────────────────────────────

# (max level, format, datefmt), checked in order
_CONSOLE_TIERS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
)
_CONSOLE_DEFAULT = ("%(message)s", None)

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# distro logs every os-release file it reads
_NOISY_LOGGERS = ("distro",)


def resolve_level(
    cli_level: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Pick the console level name from the CLI flag and environment."""
    env = os.environ if environ is None else environ
    if cli_level:
        return cli_level.upper()
    if env.get("ENVBOOT_LOG_LEVEL"):
        return env["ENVBOOT_LOG_LEVEL"].upper()
    if env.get("DEBUG", "").strip() in ("1", "true", "yes"):
        return "DEBUG"
    return "WARNING"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Configure Python logging for the whole process.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional log file path (``ENVBOOT_LOG_FILE``).
        log_file_level: Separate level for the file; defaults to ``level``.
        quiet_third_party: Hold noisy library loggers at WARNING unless
            running at DEBUG.
    """
    console_level = _parse_level(level)
    handlers = [_console_handler(console_level)]

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handlers.append(_file_handler(log_file, file_level))

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(min(h.level for h in handlers))

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    # A closed stderr must never crash the run
    logging.raiseExceptions = False


def _console_handler(level: int) -> logging.Handler:
    fmt, datefmt = _CONSOLE_DEFAULT
    for max_level, tier_fmt, tier_datefmt in _CONSOLE_TIERS:
        if level <= max_level:
            fmt, datefmt = tier_fmt, tier_datefmt
            break
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
    return handler


def _parse_level(level: str | None) -> int:
    """Level name → numeric constant; anything unrecognised means WARNING."""
    numeric = logging.getLevelName(level.upper()) if level else None
    return numeric if isinstance(numeric, int) else logging.WARNING
