"""
Registry loader — reads tools.txt into ToolIdentifiers.

Format: one ``owner/repo`` per line, UTF-8 (a leading BOM is ignored).
Blank lines and lines starting with ``//`` are ignored; surrounding
whitespace is trimmed.
"""

from __future__ import annotations

import logging
from pathlib import Path

from tooldl.core.errors import FilesystemError, MalformedRegistryEntry, RegistryNotFound
from tooldl.core.models.release import ToolIdentifier

logger = logging.getLogger(__name__)

COMMENT_PREFIX = "//"


def parse_registry(text: str, source: Path) -> list[ToolIdentifier]:
    """Parse registry text.

    Args:
        text: File content.
        source: Path used in error messages.

    Returns:
        Tool identifiers in file order (duplicates kept).

    Raises:
        MalformedRegistryEntry: For a line that is not exactly one
            non-empty owner and repo separated by a single ``/``.
    """
    tools: list[ToolIdentifier] = []
    for number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith(COMMENT_PREFIX):
            continue

        parts = [part.strip() for part in line.split("/")]
        if len(parts) != 2 or not all(parts) or {".", ".."} & set(parts):
            raise MalformedRegistryEntry(source, number, line)
        owner, repo = parts

        tools.append(ToolIdentifier(owner=owner, repo=repo))
    return tools


def load_registry(path: Path) -> list[ToolIdentifier]:
    """Load the registry file at ``path``.

    Raises:
        RegistryNotFound: If the file does not exist.
        MalformedRegistryEntry: For a malformed line.
        FilesystemError: The file cannot be read or is not UTF-8.
    """
    if not path.is_file():
        raise RegistryNotFound(path)

    logger.debug("Loading registry from %s", path)
    try:
        # utf-8-sig drops the BOM Windows editors prepend
        text = path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as exc:
        raise FilesystemError(path, f"not valid UTF-8 ({exc.reason} at byte {exc.start})") from exc
    except OSError as exc:
        raise FilesystemError(path, str(exc)) from exc

    tools = parse_registry(text, path)
    logger.info("Registry lists %d tool(s)", len(tools))
    return tools
