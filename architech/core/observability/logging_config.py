"""
Logging configuration — one root setup shared by every CLI command.

Modules log through ``logging.getLogger(__name__)``; ``setup_logging`` is
called once from the click group callback.

Console level, highest precedence first:
    --debug  >  --verbose  >  --quiet  >  ARCHITECH_LOG_LEVEL  >  WARNING

A second, independently levelled file sink is enabled with
ARCHITECH_LOG_FILE (and optionally ARCHITECH_LOG_FILE_LEVEL).
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping

# ── Formats ─────────────────────────────────────────────────────

# (format, datefmt) per console tier, checked top to bottom
_CONSOLE_TIERS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
)
_CONSOLE_PLAIN = "%(message)s"

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Libraries whose INFO chatter is muted outside --debug
_NOISY_LOGGERS = ("yaml", "asyncio")


def level_from_flags(
    verbose: bool = False,
    quiet: bool = False,
    debug: bool = False,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Pick the console level name from the global CLI flags."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    env = os.environ if environ is None else environ
    return env.get("ARCHITECH_LOG_LEVEL", "WARNING").upper()


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Replace the root logger's handlers with a stderr handler and an optional file.

    Args:
        level: Console level name. Unknown names mean WARNING.
        log_file: File sink path; ``ARCHITECH_LOG_FILE`` when omitted.
        log_file_level: File sink level; ``ARCHITECH_LOG_FILE_LEVEL``, then
            ``level`` when omitted.
        quiet_third_party: Hold ``_NOISY_LOGGERS`` at WARNING unless the
            console is at DEBUG.
    """
    console_level = _parse_level(level)
    log_file = log_file or os.environ.get("ARCHITECH_LOG_FILE") or None
    log_file_level = log_file_level or os.environ.get("ARCHITECH_LOG_FILE_LEVEL") or None

    handlers: list[logging.Handler] = [_console_handler(console_level)]
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handlers.append(_file_handler(log_file, file_level))

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)
    # Root level is the most verbose handler level
    root.setLevel(min(h.level for h in handlers))

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def _console_handler(level: int) -> logging.Handler:
    fmt, datefmt = _CONSOLE_PLAIN, None
    for threshold, tier_fmt, tier_datefmt in _CONSOLE_TIERS:
        if level <= threshold:
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


def _parse_level(name: str | None) -> int:
    """Level name to its numeric value; WARNING for blank or unknown names."""
    value = logging.getLevelName(name.upper()) if name else None
    return value if isinstance(value, int) else logging.WARNING
