"""
Logging setup for the tooldl command, applied once per process.

Console output goes to stderr so ``--json`` output on stdout stays clean.
The console format grows with the level: bare messages at WARNING,
timestamps at INFO, source locations at DEBUG.

Console level precedence:
    --debug  >  --verbose  >  --quiet  >  TOOLDL_LOG_LEVEL  >  WARNING

TOOLDL_LOG_FILE adds a file log at TOOLDL_LOG_FILE_LEVEL (default: the
console level).
"""

from __future__ import annotations

import logging
import sys

_CONSOLE_FORMATS = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d: %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s %(message)s", "%H:%M:%S"),
}
_CONSOLE_FALLBACK = ("%(message)s", None)

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d: %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# keyring and its Linux Secret Service backend log backend probing at DEBUG
_KEYRING_LOGGERS = ("keyring", "secretstorage", "jeepney")


def resolve_level(debug: bool, verbose: bool, quiet: bool, env_level: str | None) -> str:
    """Pick the console level name from CLI flags and the env override."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return env_level or "WARNING"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Install the console handler and, optionally, a file handler.

    Args:
        level: Console level name; unknown names fall back to WARNING.
        log_file: Path of an extra log file.
        log_file_level: Level for ``log_file`` (default: ``level``).
        quiet_third_party: Hold the keyring loggers at WARNING unless the
            console runs at DEBUG.
    """
    console_level = _parse_level(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_console_handler(console_level))
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        root.addHandler(_file_handler(log_file, file_level))
        root_level = min(root_level, file_level)

    root.setLevel(root_level)

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _KEYRING_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def _console_handler(level: int) -> logging.Handler:
    fmt, datefmt = _CONSOLE_FALLBACK
    for threshold in sorted(_CONSOLE_FORMATS):
        if level <= threshold:
            fmt, datefmt = _CONSOLE_FORMATS[threshold]
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
    """Level name to its numeric value, WARNING when unknown."""
    numeric = getattr(logging, (level or "").upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING
