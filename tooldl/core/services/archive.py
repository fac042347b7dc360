"""
Archive extractor — unpack a zip archive under a destination root.

Entries are written in stored order. Entry names that would land
outside the root (absolute paths, drive letters, ``..`` climbing above
the root) are skipped. Unix permission bits recorded in the archive are
applied on POSIX systems.
"""

from __future__ import annotations

import logging
import lzma
import os
import stat
import zipfile
import zlib
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import BinaryIO

from tooldl.core.errors import ArchiveCorrupt, ExtractionIOError

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".zip"

_CREATE_SYSTEM_UNIX = 3
_CHUNK_SIZE = 64 * 1024

# Raised by ZipExtFile.read on damaged entry data, depending on the codec.
_READ_ERRORS = (zipfile.BadZipFile, EOFError, zlib.error, lzma.LZMAError, OSError)


def is_archive(name: str) -> bool:
    """Whether an asset name has the suffix this extractor handles."""
    return name.endswith(ARCHIVE_SUFFIX)


def enclosed_name(name: str) -> PurePosixPath | None:
    """Return the safe relative path of an entry name, or None.

    ``..`` segments are allowed as long as they never climb above the
    root; ``.`` and empty segments are dropped.
    """
    if "\0" in name:
        return None

    normalized = name.replace("\\", "/")
    if normalized.startswith("/") or PureWindowsPath(normalized).drive:
        return None

    parts: list[str] = []
    for part in normalized.split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if not parts:
                return None
            parts.pop()
            continue
        parts.append(part)

    if not parts:
        return None
    return PurePosixPath(*parts)


def unix_mode(info: zipfile.ZipInfo) -> int | None:
    """Permission bits recorded by a Unix archiver, if any."""
    if info.create_system != _CREATE_SYSTEM_UNIX:
        return None
    mode = stat.S_IMODE(info.external_attr >> 16)
    return mode or None


def extract(archive_stream: BinaryIO, destination_root: Path) -> list[Path]:
    """Materialize every entry of a zip archive under ``destination_root``.

    Args:
        archive_stream: Seekable binary stream holding the archive.
        destination_root: Directory the entries are written below.

    Returns:
        Paths written (files and directories), in entry order.

    Raises:
        ArchiveCorrupt: The stream is not a valid zip, or an entry cannot
            be decompressed or fails its CRC check.
        ExtractionIOError: A directory or file cannot be written.
    """
    source = getattr(archive_stream, "name", "<stream>")
    try:
        archive = zipfile.ZipFile(archive_stream)
    except (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError, OSError, ValueError) as exc:
        raise ArchiveCorrupt(str(source), str(exc)) from exc

    root = Path(destination_root)
    resolved_root = root.resolve()
    written: list[Path] = []

    with archive:
        for info in archive.infolist():
            rel = enclosed_name(info.filename)
            if rel is None:
                logger.warning("Skipping unsafe archive entry: %r", info.filename)
                continue

            output = root.joinpath(*rel.parts)
            if not output.resolve().is_relative_to(resolved_root):
                logger.warning("Skipping archive entry escaping %s: %r", root, info.filename)
                continue

            if info.is_dir():
                _make_dirs(output)
            else:
                _make_dirs(output.parent)
                _write_entry(archive, info, output, str(source))

            mode = unix_mode(info)
            if mode is not None and os.name == "posix":
                try:
                    os.chmod(output, mode)
                except OSError as exc:
                    raise ExtractionIOError(output, str(exc)) from exc

            written.append(output)

    logger.debug("Extracted %d entr(ies) into %s", len(written), root)
    return written


def extract_file(archive_path: Path, destination_root: Path) -> list[Path]:
    """Open ``archive_path`` and extract it with ``extract``."""
    try:
        fh = open(archive_path, "rb")
    except OSError as exc:
        raise ArchiveCorrupt(str(archive_path), str(exc)) from exc
    with fh:
        return extract(fh, destination_root)


def _make_dirs(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ExtractionIOError(path, str(exc)) from exc


def _write_entry(archive: zipfile.ZipFile, info: zipfile.ZipInfo, output: Path, source: str) -> None:
    try:
        if output.is_symlink() or output.exists():
            output.unlink()
        dst = open(output, "wb")
    except OSError as exc:
        raise ExtractionIOError(output, str(exc)) from exc

    with dst:
        try:
            src = archive.open(info)
        except (zipfile.BadZipFile, NotImplementedError, RuntimeError, OSError, ValueError) as exc:
            raise ArchiveCorrupt(f"{source}:{info.filename}", str(exc)) from exc
        with src:
            _copy_entry(src, dst, output, f"{source}:{info.filename}")


def _copy_entry(src: BinaryIO, dst: BinaryIO, output: Path, label: str) -> None:
    while True:
        try:
            chunk = src.read(_CHUNK_SIZE)
        except _READ_ERRORS as exc:
            raise ArchiveCorrupt(label, str(exc)) from exc
        if not chunk:
            break
        try:
            dst.write(chunk)
        except OSError as exc:
            raise ExtractionIOError(output, str(exc)) from exc
