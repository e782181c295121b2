"""
Logging setup for the ``shell-formula`` CLI.

``main.cli`` calls ``setup_logging`` once per invocation; every module
logs through ``logging.getLogger(__name__)`` and inherits it.

Console level, highest precedence first:
    --debug  >  --verbose  >  --quiet  >  $SHELL_FORMULA_LOG_LEVEL  >  WARNING

$SHELL_FORMULA_LOG_FILE adds a file handler whose level comes from
$SHELL_FORMULA_LOG_FILE_LEVEL (default: the console level).  Build
output is logged at DEBUG, so a DEBUG log file keeps the full cmake
transcript even when the console stays quiet.
"""

from __future__ import annotations

import logging
import sys

ENV_LOG_LEVEL = "SHELL_FORMULA_LOG_LEVEL"
ENV_LOG_FILE = "SHELL_FORMULA_LOG_FILE"
ENV_LOG_FILE_LEVEL = "SHELL_FORMULA_LOG_FILE_LEVEL"

_DETAILED = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"

# (format, datefmt) per console threshold; first match wins.
_CONSOLE_FORMATS: list[tuple[int, str, str | None]] = [
    (logging.DEBUG, _DETAILED, "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
]
_PLAIN = "%(message)s"

_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _console_formatter(level: int) -> logging.Formatter:
    for threshold, fmt, datefmt in _CONSOLE_FORMATS:
        if level <= threshold:
            return logging.Formatter(fmt, datefmt=datefmt)
    return logging.Formatter(_PLAIN)


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Replace the root logger's handlers with the formula's.

    Args:
        level: Console level name.
        log_file: Also log to this file.
        log_file_level: Level for ``log_file``; defaults to ``level``.
    """
    console_level = _parse_level(level)

    handlers: list[logging.Handler] = []
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(_console_formatter(console_level))
    handlers.append(console)

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        to_file = logging.FileHandler(log_file, encoding="utf-8")
        to_file.setLevel(file_level)
        to_file.setFormatter(logging.Formatter(_DETAILED, datefmt=_FILE_DATEFMT))
        handlers.append(to_file)

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)
    # The root must let through whatever the most verbose handler wants.
    root.setLevel(min(h.level for h in handlers))

    logging.raiseExceptions = False


def resolve_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    env_level: str | None = None,
) -> str:
    """Pick the console level from CLI flags, falling back to the env var."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return env_level or "WARNING"


def _parse_level(level: str | None) -> int:
    """Level name to its numeric value; unknown names mean WARNING."""
    numeric = logging.getLevelName(level.upper()) if level else None
    return numeric if isinstance(numeric, int) else logging.WARNING
