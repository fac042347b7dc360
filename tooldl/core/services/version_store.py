"""
Version store — the per-tool ``info.txt`` marker.

The marker holds the release tag verbatim. A tool is considered up to
date when the latest tag *starts with* the stored tag, so ``v1.0`` also
covers ``v1.0.1``. The marker is written before any asset is downloaded,
which means an interrupted run can leave it ahead of the extracted files.
"""

from __future__ import annotations

import logging
from pathlib import Path

from tooldl.core.errors import FilesystemError

logger = logging.getLogger(__name__)

MARKER_FILE = "info.txt"


def marker_path(dest_dir: Path) -> Path:
    return dest_dir / MARKER_FILE


def read_marker(dest_dir: Path) -> str | None:
    """Return the installed tag, or None if the tool was never installed.

    Raises:
        FilesystemError: The marker exists but cannot be read.
    """
    path = marker_path(dest_dir)
    if not path.is_file():
        return None
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FilesystemError(path, str(exc)) from exc


def write_marker(dest_dir: Path, tag: str) -> None:
    """Record ``tag`` as installed, replacing any previous marker.

    Raises:
        FilesystemError: The directory or file cannot be written.
    """
    path = marker_path(dest_dir)
    try:
        dest_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(tag, encoding="utf-8")
    except OSError as exc:
        raise FilesystemError(path, str(exc)) from exc
    logger.debug("Marker %s ← %s", path, tag)


def is_up_to_date(installed: str | None, latest_tag: str) -> bool:
    """Whether ``latest_tag`` is already covered by the ``installed`` tag."""
    return installed is not None and latest_tag.startswith(installed)
